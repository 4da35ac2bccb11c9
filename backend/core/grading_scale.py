"""
grading_scale.py — School-defined grading scale lookups.

A grading scale is a list of GradingRow bands scoped to a class, term and
year. Each band maps a mark range to an aggregate (a small integer, lower
is better) and a remark. Scales are supplied by the school, so nothing here
assumes a fixed set of bands.
"""

from typing import Any, Dict, List, Optional, Sequence

from core.marks import EXEMPT
from core.models import GradingRow

NO_SCALE_LEGEND = "Grading scale not available for this class."


def _start(row: GradingRow):
    return row.start_marks if row.start_marks is not None else 0


def sort_grading_rows(rows: Sequence[GradingRow]) -> List[GradingRow]:
    """Ascending by start mark, missing starts treated as 0."""
    return sorted(rows, key=_start)


def derive_start_marks(rows: Sequence[GradingRow]) -> List[GradingRow]:
    """
    Fill in missing start marks from the band below.

    Bands are ordered by end mark; the lowest band starts at 0 and every
    other band starts one above the previous band's end. Rows that already
    carry a start mark keep it.
    """
    by_end = sorted(range(len(rows)), key=lambda i: rows[i].end_marks)
    derived: List[GradingRow] = []
    for position, index in enumerate(by_end):
        row = rows[index]
        if row.start_marks is None:
            start = 0 if position == 0 else rows[by_end[position - 1]].end_marks + 1
            row = GradingRow(
                end_marks=row.end_marks,
                grade=row.grade,
                comment=row.comment,
                start_marks=start,
            )
        derived.append(row)
    return sort_grading_rows(derived)


def _find_band(score, rows: Sequence[GradingRow]) -> Optional[GradingRow]:
    if score is None or score == EXEMPT or not rows:
        return None
    for row in sort_grading_rows(rows):
        if _start(row) <= score <= row.end_marks:
            return row
    return None


def get_aggregate_from_grading_rows(score, rows: Sequence[GradingRow]) -> Optional[int]:
    """Aggregate for the first band containing score, or None."""
    band = _find_band(score, rows)
    return band.grade if band is not None else None


def calculate_remarks(score, rows: Sequence[GradingRow], is_compulsory: Optional[bool] = None) -> str:
    """Band comment for score. Elective subjects never get remarks."""
    if is_compulsory is False:
        return ""
    band = _find_band(score, rows)
    return band.comment if band is not None else ""


def format_grading_legend(rows: Sequence[GradingRow]) -> str:
    """Footer legend, highest band first: '80 - 100 = 1 | 70 - 79 = 2 | ...'."""
    if not rows:
        return NO_SCALE_LEGEND
    ordered = sorted(rows, key=_start, reverse=True)
    return " | ".join(
        f"{str(_start(r)).zfill(2)} - {str(r.end_marks).zfill(2)} = {r.grade}"
        for r in ordered
    )


def get_grade_thresholds(rows: Sequence[GradingRow]) -> List[Dict[str, Any]]:
    """Return the full scale for legend/reference, lowest band first."""
    return [
        {
            "min": _start(r),
            "max": r.end_marks,
            "aggregate": r.grade,
            "comment": r.comment,
        }
        for r in sort_grading_rows(rows)
    ]
