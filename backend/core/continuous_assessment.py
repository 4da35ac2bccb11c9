"""
continuous_assessment.py — Continuous Assessment (CA) rows.

CA is scored on five in-term components:
  CW    class work
  HW    home work
  ORG   organisation
  SPART participation
  SMGT  self management

A subject's CA total credits only components that were entered and are not
exempt. A subject with no usable component has no total at all.
"""

from typing import Iterable, List, Mapping, Optional, Sequence

from core.marks import is_valid_mark, parse_mark_value
from core.models import ContinuousAssessmentRow, RawCASubject, Subject

CA_COMPONENTS = ("CW", "HW", "ORG", "SPART", "SMGT")

UNKNOWN_SUBJECT = "Unknown"


def combine_ca_components(components: Iterable) -> Optional[int]:
    """Sum the entered, non-exempt components; None when there are none."""
    valid = [c for c in components if is_valid_mark(c)]
    if not valid:
        return None
    return sum(valid)


def find_subject(subject_id: str, subjects: Sequence[Subject]) -> Optional[Subject]:
    for subject in subjects:
        if subject.id == subject_id:
            return subject
    return None


def subject_display_name(subject: Optional[Subject], fallback: str = "") -> str:
    """Reference name first, then the name on the mark record."""
    if subject is not None and subject.name:
        return subject.name
    return fallback or UNKNOWN_SUBJECT


def build_ca_row(
    raw: RawCASubject,
    subjects: Sequence[Subject],
    initials: str = "",
) -> ContinuousAssessmentRow:
    """Parse one subject's components and total them."""
    parsed = [parse_mark_value(raw.components.get(code)) for code in CA_COMPONENTS]
    cw, hw, org, sp, sm = parsed
    subject = find_subject(raw.subject_id, subjects)
    return ContinuousAssessmentRow(
        subject=subject_display_name(subject, raw.subject_name),
        subject_id=raw.subject_id,
        cw=cw,
        hw=hw,
        org=org,
        sp=sp,
        sm=sm,
        total=combine_ca_components(parsed),
        initials=initials,
        is_compulsory=subject.is_compulsory if subject else False,
    )


def build_ca_rows(
    raw_subjects: Sequence[RawCASubject],
    subjects: Sequence[Subject],
    initials_map: Optional[Mapping[str, str]] = None,
) -> List[ContinuousAssessmentRow]:
    initials_map = initials_map or {}
    return [
        build_ca_row(raw, subjects, initials_map.get(raw.subject_id, "N/A"))
        for raw in raw_subjects
    ]


def is_missing_all_ca(row: ContinuousAssessmentRow) -> bool:
    """True when no CA component carries a mark above zero."""
    return all(c is None or c == 0 for c in row.components)
