"""
ingest.py — Turn raw marks-API payloads into canonical engine shapes.

One parser per payload type. Each accepts whatever JSON came back (dict,
list, None, or something unexpected) and returns typed records or an empty
value. None of them raise; a malformed payload simply yields nothing.

Field names vary between endpoints and API versions (camelCase vs
snake_case, `mark` vs `score`), so every field is looked up through the
alias table below.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from core.continuous_assessment import UNKNOWN_SUBJECT
from core.grading_scale import derive_start_marks
from core.marks import normalize_integrated_mark, parse_mark_value
from core.models import (
    CommentRange,
    GradingRow,
    IntegratedAssessmentRow,
    RawCASubject,
    RawMark,
    RegularAssessmentRow,
    StudentMarks,
    Subject,
)

FIELD_ALIASES = {
    "id": ["id", "subjectId", "subject_id", "_id"],
    "subject_id": ["subjectId", "subject_id", "subjectActivityId"],
    "subject_name": ["subjectName", "subject_name", "subject"],
    "name": ["name", "subjectName", "subject_name", "title"],
    "code": ["code", "subject_code", "subjectCode"],
    "is_compulsory": ["isCompulsory", "is_compulsory", "compulsory"],
    "mark": ["mark", "marks", "score"],
    "component": ["component", "caComponent", "ca_component", "code"],
    "start_marks": ["startMarks", "start_marks", "start", "min"],
    "end_marks": ["endMarks", "end_marks", "end", "max"],
    "grade": ["grade", "aggregate"],
    "comment": ["comment", "remarks", "remark"],
    "student_id": ["studentId", "student_id", "id"],
}


# ── Helpers ─────────────────────────────────────────────────────────

def _get(record: Any, field: str, default: Any = None) -> Any:
    """First present alias of field in record."""
    if not isinstance(record, Mapping):
        return default
    for alias in FIELD_ALIASES.get(field, [field]):
        if alias in record and record[alias] is not None:
            return record[alias]
    return default


def _dig(payload: Any, *path: Any) -> Any:
    """Follow dict keys / list indexes, returning None on any miss."""
    node = payload
    for step in path:
        if isinstance(step, int):
            if not isinstance(node, list) or len(node) <= step:
                return None
            node = node[step]
        else:
            if not isinstance(node, Mapping):
                return None
            node = node.get(step)
    return node


def _first_list(payload: Any, paths: Sequence[Sequence[Any]]) -> List[Any]:
    """The first path that resolves to a list."""
    for path in paths:
        node = _dig(payload, *path) if path else payload
        if isinstance(node, list):
            return node
    return []


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return int(number) if number.is_integer() else number


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def _to_str(value: Any) -> str:
    return "" if value is None else str(value).strip()


# ── Subjects ────────────────────────────────────────────────────────

def parse_subject(record: Any) -> Optional[Subject]:
    subject_id = _to_str(_get(record, "id"))
    if not subject_id:
        return None
    return Subject(
        id=subject_id,
        name=_to_str(_get(record, "name")),
        code=_to_str(_get(record, "code")),
        is_compulsory=_to_bool(_get(record, "is_compulsory", False)),
    )


def parse_subjects(payload: Any) -> List[Subject]:
    records = _first_list(payload, [("data", "subjects"), ("subjects",), ("data",), ()])
    return [s for s in (parse_subject(r) for r in records) if s is not None]


# ── Marks ───────────────────────────────────────────────────────────

def parse_mark(record: Any) -> Optional[RawMark]:
    subject_id = _to_str(_get(record, "subject_id"))
    if not subject_id:
        return None
    return RawMark(
        subject_id=subject_id,
        mark=_get(record, "mark"),
        subject_name=_to_str(_get(record, "subject_name")),
    )


def parse_marks(payload: Any) -> List[RawMark]:
    """BOT/MID/EOT marks; `data.marks` may be a list or a single object."""
    single = _dig(payload, "data", "marks")
    if isinstance(single, Mapping):
        records: List[Any] = [single]
    else:
        records = _first_list(payload, [("data", "marks"), ("marks",), ()])
    return [m for m in (parse_mark(r) for r in records) if m is not None]


def parse_ca_subject(record: Any) -> Optional[RawCASubject]:
    subject_id = _to_str(_get(record, "subject_id"))
    if not subject_id:
        return None
    components: Dict[str, Any] = {}
    raw_components = record.get("caComponents") or record.get("components")
    if isinstance(raw_components, list):
        for entry in raw_components:
            code = _to_str(_get(entry, "component")).upper()
            if code:
                components[code] = _get(entry, "mark")
    elif isinstance(raw_components, Mapping):
        components = {str(k).upper(): v for k, v in raw_components.items()}
    return RawCASubject(
        subject_id=subject_id,
        components=components,
        subject_name=_to_str(_get(record, "subject_name")),
    )


def parse_ca_subjects(payload: Any) -> List[RawCASubject]:
    records = _first_list(payload, [("data", "subjects"), ("subjects",), ()])
    return [s for s in (parse_ca_subject(r) for r in records) if s is not None]


# ── Grading scale and comment ranges ────────────────────────────────

def parse_grading_row(record: Any) -> Optional[GradingRow]:
    end = _to_number(_get(record, "end_marks"))
    if end is None:
        return None
    grade = _to_number(_get(record, "grade"))
    return GradingRow(
        end_marks=end,
        grade=int(grade) if grade is not None else None,
        comment=_to_str(_get(record, "comment")),
        start_marks=_to_number(_get(record, "start_marks")),
    )


def parse_grading_rows(payload: Any) -> List[GradingRow]:
    """Grading rows with start marks derived where the API left them out."""
    records = _first_list(payload, [
        ("data", "gradingScale", "gradingRows"),
        ("data", "gradingScales", 0, "gradingRows"),
        ("data", 0, "gradingRows"),
        ("gradingRows",),
        (),
    ])
    rows = [r for r in (parse_grading_row(rec) for rec in records) if r is not None]
    return derive_start_marks(rows)


def parse_comment_range(record: Any) -> Optional[CommentRange]:
    start = _to_number(_get(record, "start_marks"))
    end = _to_number(_get(record, "end_marks"))
    if start is None or end is None:
        return None
    return CommentRange(start_marks=start, end_marks=end, comment=_to_str(_get(record, "comment")))


def parse_comment_ranges(payload: Any) -> List[CommentRange]:
    records = _first_list(payload, [("data", "comments"), ("comments",), ()])
    return [c for c in (parse_comment_range(r) for r in records) if c is not None]


# ── Teacher initials and term dates ─────────────────────────────────

def teacher_initials(first_name: str, last_name: str) -> str:
    first = first_name[:1].upper()
    last = last_name[:1].upper()
    return f"{first}.{last}".replace("..", "")


def parse_teacher_initials(payload: Any) -> Dict[str, str]:
    """subject id → "F.L" initials of the assigned teacher."""
    initials: Dict[str, str] = {}
    for assignment in _first_list(payload, [("data", "assignments"), ("assignments",)]):
        subject_id = _to_str(_dig(assignment, "subjectActivityId") or _dig(assignment, "subjectId"))
        first = _to_str(_dig(assignment, "user", "first_name"))
        last = _to_str(_dig(assignment, "user", "last_name"))
        if subject_id and first and last:
            initials[subject_id] = teacher_initials(first, last)
    return initials


def parse_term_dates(payload: Any, class_id: Optional[str]) -> Dict[str, str]:
    """Term end and next-term start for a class from the active-term payload."""
    empty = {"termEnds": "", "nextTermBegins": ""}
    if not class_id or not isinstance(payload, Mapping):
        return empty
    schedules = _dig(payload, "term", "classTermSchedules")
    if not isinstance(schedules, list):
        return empty
    for schedule in schedules:
        if not isinstance(schedule, Mapping):
            continue
        cls = schedule.get("class")
        sched_class_id = cls.get("id") if isinstance(cls, Mapping) else cls
        if _to_str(sched_class_id) == str(class_id):
            return {
                "termEnds": _to_str(schedule.get("endDate")),
                "nextTermBegins": _to_str(schedule.get("nextTermBeginsDate") or schedule.get("startDate")),
            }
    return empty


# ── Request bodies ──────────────────────────────────────────────────

def parse_student_marks(record: Any) -> StudentMarks:
    """A student entry carrying its own `ca`, `bot`, `mid` and `eot` arrays."""
    if not isinstance(record, Mapping):
        return StudentMarks(student_id="")
    source = record.get("marks") if isinstance(record.get("marks"), Mapping) else record
    return StudentMarks(
        student_id=_to_str(_get(record, "student_id")),
        ca=parse_ca_subjects(source.get("ca")),
        bot=parse_marks(source.get("bot")),
        mid=parse_marks(source.get("mid")),
        eot=parse_marks(source.get("eot")),
    )


def parse_assessment_row(record: Any):
    """
    A computed report row sent back for classification. Rows with any of
    `average`, `mid` or `eot` are integrated rows; the rest are regular.
    """
    if not isinstance(record, Mapping):
        return None
    subject_id = _to_str(_get(record, "subject_id") or _get(record, "id"))
    is_compulsory = _to_bool(_get(record, "is_compulsory", False))
    aggregate = _to_number(_get(record, "grade"))
    common = {
        "subject": _to_str(_get(record, "subject_name")) or UNKNOWN_SUBJECT,
        "subject_id": subject_id,
        "aggregate": int(aggregate) if aggregate is not None else None,
        "remarks": _to_str(record.get("remarks")),
        "initials": _to_str(record.get("initials")),
        "is_compulsory": is_compulsory,
    }
    if any(key in record for key in ("average", "mid", "eot")):
        return IntegratedAssessmentRow(
            ca=normalize_integrated_mark(record.get("ca")),
            mid=normalize_integrated_mark(record.get("mid")),
            eot=normalize_integrated_mark(record.get("eot")),
            total=normalize_integrated_mark(record.get("total")),
            average=normalize_integrated_mark(record.get("average")),
            **common,
        )
    return RegularAssessmentRow(score=parse_mark_value(_get(record, "mark")), **common)


def parse_assessment_rows(payload: Any) -> List[Any]:
    records = _first_list(payload, [("rows",), ("data",), ()])
    return [r for r in (parse_assessment_row(rec) for rec in records) if r is not None]
