"""
division.py — AGGS and division classification.

AGGS is the sum of aggregates over compulsory subjects. It maps onto a
primary-leaving style division:

  AGGS 4–12   DIV I
  AGGS 13–24  DIV II
  AGGS 25–28  DIV III
  AGGS 29–32  DIV IV
  AGGS 33–36  U

A pupil with a missing, exempt or zero mark in any compulsory subject
cannot be classified and gets X, whatever the AGGS.
"""

from typing import Optional, Sequence

from core.marks import EXEMPT
from core.models import AssessmentRow, IntegratedAssessmentRow

NOT_AVAILABLE = "N/A"
UNCLASSIFIED = "X"
UNGRADED = "U"

DIVISION_BANDS = [
    (4, 12, "DIV I"),
    (13, 24, "DIV II"),
    (25, 28, "DIV III"),
    (29, 32, "DIV IV"),
    (33, 36, UNGRADED),
]

PASSING_DIVISIONS = ("DIV I", "DIV II", "DIV III", "DIV IV")
ALL_DIVISIONS = PASSING_DIVISIONS + (UNGRADED, UNCLASSIFIED, NOT_AVAILABLE)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compute_table_aggs(rows: Sequence[AssessmentRow]) -> Optional[int]:
    """Sum of numeric aggregates on compulsory rows, or None."""
    aggregates = [
        r.aggregate for r in rows
        if r.is_compulsory and _is_number(getattr(r, "aggregate", None))
    ]
    if not aggregates:
        return None
    return sum(aggregates)


def _deciding_score(row: AssessmentRow):
    if isinstance(row, IntegratedAssessmentRow):
        return row.average
    return getattr(row, "score", None)


def has_unclassifiable_subject(rows: Sequence[AssessmentRow]) -> bool:
    """True when a compulsory subject is missing, exempt or zero."""
    for row in rows:
        if not row.is_compulsory:
            continue
        score = _deciding_score(row)
        if score is None or score == "-" or score == EXEMPT:
            return True
        if _is_number(score) and score == 0:
            return True
        # A zero in either scored period disqualifies, even when CA lifts
        # the average above zero.
        if isinstance(row, IntegratedAssessmentRow) and (row.mid == 0 or row.eot == 0):
            return True
    return False


def division_for_aggs(aggs) -> str:
    for low, high, label in DIVISION_BANDS:
        if low <= aggs <= high:
            return label
    return NOT_AVAILABLE


def get_division_grade(aggs: Optional[int], rows: Sequence[AssessmentRow]) -> str:
    if aggs is None:
        return NOT_AVAILABLE
    if not any(r.is_compulsory for r in rows):
        return NOT_AVAILABLE
    if has_unclassifiable_subject(rows):
        return UNCLASSIFIED
    return division_for_aggs(aggs)


def is_passing_division(grade: str) -> bool:
    return grade in PASSING_DIVISIONS
