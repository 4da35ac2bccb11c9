"""
Tests for core/division.py — AGGS and division classification.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.division import (
    NOT_AVAILABLE,
    UNCLASSIFIED,
    UNGRADED,
    compute_table_aggs,
    division_for_aggs,
    get_division_grade,
    has_unclassifiable_subject,
    is_passing_division,
)
from core.models import IntegratedAssessmentRow, RegularAssessmentRow


def _row(subject_id, score, aggregate, compulsory=True):
    return RegularAssessmentRow(
        subject=subject_id.title(),
        subject_id=subject_id,
        score=score,
        aggregate=aggregate,
        is_compulsory=compulsory,
    )


@pytest.fixture
def six_compulsory():
    return [_row(f"s{i}", 85, 2) for i in range(6)]


class TestComputeTableAggs:
    """Tests for compute_table_aggs."""

    def test_sums_compulsory_aggregates(self, six_compulsory):
        assert compute_table_aggs(six_compulsory) == 12

    def test_electives_never_count(self, six_compulsory):
        rows = six_compulsory + [_row("music", 95, 1, compulsory=False)]
        assert compute_table_aggs(rows) == 12

    def test_no_aggregates_is_none(self):
        assert compute_table_aggs([_row("eng", None, None)]) is None
        assert compute_table_aggs([]) is None


class TestGetDivisionGrade:
    """Tests for get_division_grade."""

    def test_div_one(self, six_compulsory):
        assert get_division_grade(12, six_compulsory) == "DIV I"

    def test_zero_score_is_unclassified(self, six_compulsory):
        rows = six_compulsory[:-1] + [_row("s5", 0, 2)]
        assert get_division_grade(compute_table_aggs(rows), rows) == UNCLASSIFIED

    @pytest.mark.parametrize("score", [None, -1, "-"])
    def test_missing_or_exempt_is_unclassified(self, six_compulsory, score):
        rows = six_compulsory[:-1] + [_row("s5", score, None)]
        assert get_division_grade(10, rows) == UNCLASSIFIED

    def test_elective_zero_does_not_matter(self, six_compulsory):
        rows = six_compulsory + [_row("music", 0, None, compulsory=False)]
        assert get_division_grade(12, rows) == "DIV I"

    def test_no_aggs(self, six_compulsory):
        assert get_division_grade(None, six_compulsory) == NOT_AVAILABLE

    def test_no_compulsory_rows(self):
        assert get_division_grade(12, [_row("music", 80, 2, compulsory=False)]) == NOT_AVAILABLE

    def test_integrated_zero_period_is_unclassified(self):
        row = IntegratedAssessmentRow(
            subject="English", subject_id="eng", ca=90, mid=0, eot=90,
            average=60, aggregate=3, is_compulsory=True,
        )
        assert has_unclassifiable_subject([row])
        assert get_division_grade(3, [row]) == UNCLASSIFIED

    def test_integrated_uses_average(self):
        row = IntegratedAssessmentRow(
            subject="English", subject_id="eng", ca=None, mid=70, eot=80,
            average=75, aggregate=2, is_compulsory=True,
        )
        assert not has_unclassifiable_subject([row])


class TestDivisionBands:
    """Tests for division_for_aggs and is_passing_division."""

    @pytest.mark.parametrize("aggs,expected", [
        (4, "DIV I"), (12, "DIV I"), (13, "DIV II"), (24, "DIV II"),
        (25, "DIV III"), (28, "DIV III"), (29, "DIV IV"), (32, "DIV IV"),
        (33, UNGRADED), (36, UNGRADED), (3, NOT_AVAILABLE), (40, NOT_AVAILABLE),
    ])
    def test_bands(self, aggs, expected):
        assert division_for_aggs(aggs) == expected

    def test_passing(self):
        assert is_passing_division("DIV IV")
        assert not is_passing_division(UNGRADED)
        assert not is_passing_division(UNCLASSIFIED)
