"""
comments.py — Class teacher and head teacher remarks.

Schools configure comment ranges keyed on a pupil's AGGS (not on a raw
mark). When no range matches, the report falls back to the general comment
typed for the pupil, then to a fixed placeholder.
"""

import math
from typing import Optional, Sequence

from core.models import CommentRange

CLASS_TEACHER = "Class"
HEAD_TEACHER = "Head"


def placeholder_comment(role: str) -> str:
    return f"Refer to {role} Teacher for overall assessment."


def resolve_comment(aggs, ranges: Sequence[CommentRange]) -> Optional[str]:
    """Comment of the first range containing aggs, or None."""
    if not isinstance(aggs, (int, float)) or isinstance(aggs, bool):
        return None
    if isinstance(aggs, float) and math.isnan(aggs):
        return None
    for rng in ranges or []:
        if rng.start_marks <= aggs <= rng.end_marks:
            return rng.comment
    return None


def resolve_teacher_comment(
    aggs,
    ranges: Sequence[CommentRange],
    general: Optional[str] = None,
    role: str = CLASS_TEACHER,
) -> str:
    matched = resolve_comment(aggs, ranges)
    if matched:
        return matched
    if general:
        return general
    return placeholder_comment(role)
