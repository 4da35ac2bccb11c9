"""
regular_assessment.py — Beginning, mid and end of term score rows.
"""

from typing import List, Mapping, Optional, Sequence

from core.continuous_assessment import find_subject, subject_display_name
from core.grading_scale import calculate_remarks, get_aggregate_from_grading_rows
from core.marks import parse_mark_value
from core.models import GradingRow, RawMark, RegularAssessmentRow, Subject


def build_regular_row(
    raw: RawMark,
    subjects: Sequence[Subject],
    grading_rows: Sequence[GradingRow],
    initials: str = "",
) -> RegularAssessmentRow:
    subject = find_subject(raw.subject_id, subjects)
    is_compulsory = subject.is_compulsory if subject else False
    score = parse_mark_value(raw.mark)
    return RegularAssessmentRow(
        subject=subject_display_name(subject, raw.subject_name),
        subject_id=raw.subject_id,
        score=score,
        aggregate=get_aggregate_from_grading_rows(score, grading_rows) if is_compulsory else None,
        remarks=calculate_remarks(score, grading_rows, is_compulsory) if is_compulsory else "",
        initials=initials,
        is_compulsory=is_compulsory,
    )


def build_regular_rows(
    raw_marks: Sequence[RawMark],
    subjects: Sequence[Subject],
    grading_rows: Sequence[GradingRow],
    initials_map: Optional[Mapping[str, str]] = None,
) -> List[RegularAssessmentRow]:
    initials_map = initials_map or {}
    return [
        build_regular_row(raw, subjects, grading_rows, initials_map.get(raw.subject_id, ""))
        for raw in raw_marks
    ]
