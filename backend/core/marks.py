"""
marks.py — Raw mark parsing and display formatting.

Marks arrive from the marks API as strings, numbers or null. Three values
matter and must never be confused:
- -1   → exempt / not applicable, displayed as "-"
- 0    → a genuine zero, displayed as "0"
- None → nothing entered, displayed as ""

Nothing in this module raises; unparseable input degrades to None.
"""

import math
import re
from typing import Any, Optional, Union

Number = Union[int, float]

EXEMPT = -1

_LEADING_INT = re.compile(r"^[+-]?\d+")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _tidy(value: float) -> Number:
    """Return an int for integral floats so 45.0 prints as 45."""
    return int(value) if float(value).is_integer() else value


def is_valid_mark(mark: Any) -> bool:
    """True for a real score: not missing and not exempt."""
    return mark is not None and mark != EXEMPT


def parse_mark_value(raw: Any) -> Optional[Number]:
    """
    Parse a raw mark into a number, -1 for exempt, or None.

    Strings are trimmed and read up to the first non-digit, so "45 " and
    "45abc" both give 45.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        return None
    if _is_number(raw):
        if math.isnan(raw) or math.isinf(raw):
            return None
        return raw
    text = str(raw).strip()
    if text == "-1":
        return EXEMPT
    match = _LEADING_INT.match(text)
    if not match:
        return None
    return int(match.group(0))


def format_mark_display(mark: Any) -> str:
    """Render a mark for a report cell."""
    if mark == EXEMPT or mark == "-1":
        return "-"
    if mark is None or mark == "":
        return ""
    if isinstance(mark, bool):
        return ""
    if mark == 0 or mark == "0":
        return "0"
    if _is_number(mark):
        if math.isnan(mark):
            return ""
        return str(_tidy(mark)) if not math.isinf(mark) else ""
    return str(mark)


def normalize_integrated_mark(raw: Any) -> Optional[Number]:
    """
    Coerce a value already stored on an integrated row.

    Same sentinel handling as parse_mark_value, but numeric strings keep
    their decimals ("72.5" → 72.5).
    """
    if raw is None or raw == "" or isinstance(raw, bool):
        return None
    if raw == 0 or raw == "0":
        return 0
    if raw == EXEMPT or raw == "-1":
        return EXEMPT
    try:
        value = float(str(raw).strip()) if not _is_number(raw) else float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return _tidy(value)
