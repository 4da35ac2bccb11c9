"""
Tests for core/marks.py — mark parsing, sentinel handling and display.
"""

import math
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.marks import (
    EXEMPT,
    format_mark_display,
    is_valid_mark,
    normalize_integrated_mark,
    parse_mark_value,
)


class TestParseMarkValue:
    """Tests for parse_mark_value."""

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", True, False, float("nan"), math.inf])
    def test_unusable_input_is_none(self, raw):
        assert parse_mark_value(raw) is None

    def test_numbers_pass_through(self):
        assert parse_mark_value(45) == 45
        assert parse_mark_value(72.5) == 72.5
        assert parse_mark_value(0) == 0

    def test_exempt_string(self):
        assert parse_mark_value("-1") == EXEMPT
        assert parse_mark_value("  -1 ") == EXEMPT

    def test_leading_integer_is_read(self):
        assert parse_mark_value("45") == 45
        assert parse_mark_value(" 45 ") == 45
        assert parse_mark_value("45abc") == 45
        assert parse_mark_value("72.9") == 72

    def test_zero_string_is_zero_not_none(self):
        assert parse_mark_value("0") == 0


class TestFormatMarkDisplay:
    """Tests for format_mark_display."""

    def test_sentinels(self):
        assert format_mark_display(-1) == "-"
        assert format_mark_display("-1") == "-"
        assert format_mark_display(0) == "0"
        assert format_mark_display("0") == "0"
        assert format_mark_display(None) == ""
        assert format_mark_display("") == ""

    def test_integral_float_prints_as_int(self):
        assert format_mark_display(45.0) == "45"

    def test_nan_is_blank(self):
        assert format_mark_display(float("nan")) == ""

    def test_display_parses_back_for_every_percentage(self):
        for score in range(0, 101):
            assert parse_mark_value(format_mark_display(score)) == score


class TestIsValidMark:
    """Tests for is_valid_mark."""

    def test_zero_is_valid(self):
        assert is_valid_mark(0)

    def test_missing_and_exempt_are_not(self):
        assert not is_valid_mark(None)
        assert not is_valid_mark(EXEMPT)


class TestNormalizeIntegratedMark:
    """Tests for normalize_integrated_mark."""

    def test_keeps_decimals(self):
        assert normalize_integrated_mark("72.5") == 72.5

    def test_tidies_integral_values(self):
        assert normalize_integrated_mark("72.0") == 72
        assert isinstance(normalize_integrated_mark(72.0), int)

    def test_sentinels(self):
        assert normalize_integrated_mark("0") == 0
        assert normalize_integrated_mark("-1") == EXEMPT
        assert normalize_integrated_mark(None) is None
        assert normalize_integrated_mark("n/a") is None
