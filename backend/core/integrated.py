"""
integrated.py — Integrated (CA + MID + EOT) subject rows.

Used for lower-primary termly reports, where the three assessment periods
are merged into one final mark per subject.

Sentinel rules:
- total ignores both missing marks and exempt (-1) marks
- average counts an exempt mark as 0 and ignores only missing marks, so
  an exempted period still pulls a compulsory subject's average down
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Mapping, Optional, Sequence

from core.continuous_assessment import find_subject, subject_display_name
from core.grading_scale import calculate_remarks, get_aggregate_from_grading_rows
from core.marks import EXEMPT, is_valid_mark
from core.models import (
    ContinuousAssessmentRow,
    GradingRow,
    IntegratedAssessmentRow,
    RegularAssessmentRow,
    Subject,
)


def round_half_up(value) -> int:
    """Round .5 away from zero (2.5 → 3), unlike Python's banker's round()."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def integrate_scores(ca, mid, eot):
    """Return (total, average) for one subject's three period scores."""
    scores = [ca, mid, eot]
    valid = [s for s in scores if is_valid_mark(s)]
    total = sum(valid) if valid else None

    for_average = [0 if s == EXEMPT else s for s in scores if s is not None]
    average = None
    if for_average:
        average = round_half_up(Decimal(str(sum(for_average))) / len(for_average))
    return total, average


def integrate_subject(
    subject_id: str,
    ca_row: Optional[ContinuousAssessmentRow],
    mid_row: Optional[RegularAssessmentRow],
    eot_row: Optional[RegularAssessmentRow],
    subjects: Sequence[Subject],
    grading_rows: Sequence[GradingRow],
    initials: str = "",
) -> IntegratedAssessmentRow:
    ca = ca_row.total if ca_row else None
    mid = mid_row.score if mid_row else None
    eot = eot_row.score if eot_row else None
    total, average = integrate_scores(ca, mid, eot)

    subject = find_subject(subject_id, subjects)
    is_compulsory = subject.is_compulsory if subject else False
    graded = is_compulsory and average is not None

    return IntegratedAssessmentRow(
        subject=subject_display_name(subject),
        subject_id=subject_id,
        ca=ca,
        mid=mid,
        eot=eot,
        total=total,
        average=average,
        aggregate=get_aggregate_from_grading_rows(average, grading_rows) if graded else None,
        remarks=calculate_remarks(average, grading_rows, True) if graded else "",
        initials=initials,
        is_compulsory=is_compulsory,
    )


def _index(rows) -> Dict[str, object]:
    indexed: Dict[str, object] = {}
    for row in rows:
        indexed.setdefault(row.subject_id, row)
    return indexed


def build_integrated_rows(
    ca_rows: Sequence[ContinuousAssessmentRow],
    mid_rows: Sequence[RegularAssessmentRow],
    eot_rows: Sequence[RegularAssessmentRow],
    subjects: Sequence[Subject],
    grading_rows: Sequence[GradingRow],
    initials_map: Optional[Mapping[str, str]] = None,
) -> List[IntegratedAssessmentRow]:
    """One integrated row per subject seen in any of CA, MID or EOT."""
    initials_map = initials_map or {}
    ca_by_id, mid_by_id, eot_by_id = _index(ca_rows), _index(mid_rows), _index(eot_rows)

    subject_ids: List[str] = []
    for rows in (ca_rows, mid_rows, eot_rows):
        for row in rows:
            if row.subject_id and row.subject_id not in subject_ids:
                subject_ids.append(row.subject_id)

    return [
        integrate_subject(
            sid,
            ca_by_id.get(sid),
            mid_by_id.get(sid),
            eot_by_id.get(sid),
            subjects,
            grading_rows,
            initials_map.get(sid, ""),
        )
        for sid in subject_ids
    ]
