"""
Report routes — report card assembly endpoints.

The request body carries the shared report context (report type, class,
term, grading scale, comment ranges, teacher initials, term dates) plus
one or more students with their raw marks. `/fetch` instead pulls the
inputs from the marks API configured in MARKS_API_URL.
"""

import logging
import os
from typing import List, Mapping, Optional

from fastapi import APIRouter, HTTPException

from core.fetcher import DEFAULT_TIMEOUT_SECONDS, MarksApiClient
from core.ingest import (
    parse_comment_ranges,
    parse_grading_rows,
    parse_student_marks,
    parse_subjects,
    parse_teacher_initials,
)
from core.models import StudentMarks
from core.report_assembler import (
    ReportContext,
    StudentEntry,
    assemble_class_reports,
    assemble_student_report,
)

logger = logging.getLogger(__name__)

router = APIRouter()

MARKS_API_URL = os.getenv("MARKS_API_URL", "").strip()
MARKS_API_TIMEOUT_SECONDS = float(os.getenv("MARKS_API_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))


# ── Payload helpers ─────────────────────────────────────────────────

def _initials_from_payload(raw) -> dict:
    """Accept either a ready subject id → initials map or an assignments payload."""
    if isinstance(raw, Mapping) and not any(k in raw for k in ("data", "assignments")):
        return {str(k): str(v) for k, v in raw.items() if v is not None}
    return parse_teacher_initials(raw)


def _text(payload: Mapping, *keys: str) -> str:
    for key in keys:
        value = payload.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def context_from_payload(payload: dict) -> ReportContext:
    """Extract the shared report context from request payload."""
    report_type = payload.get("reportType")
    if not report_type:
        raise HTTPException(400, "No report type provided.")
    dates = payload.get("termDates") if isinstance(payload.get("termDates"), Mapping) else payload
    return ReportContext(
        report_type=str(report_type),
        class_name=_text(payload, "className", "class_name"),
        term=_text(payload, "term"),
        year=_text(payload, "year", "academicYear"),
        subjects=parse_subjects(payload.get("subjects")),
        grading_rows=parse_grading_rows(payload.get("gradingRows", payload.get("gradingScale"))),
        class_teacher_ranges=parse_comment_ranges(payload.get("classTeacherComments")),
        head_teacher_ranges=parse_comment_ranges(payload.get("headTeacherComments")),
        initials_map=_initials_from_payload(payload.get("teacherInitials")),
        term_ends=_text(dates, "termEnds"),
        next_term_begins=_text(dates, "nextTermBegins"),
    )


def student_entry_from_payload(record: Mapping, marks: Optional[StudentMarks] = None) -> StudentEntry:
    return StudentEntry(
        marks=marks or parse_student_marks(record),
        student_name=_text(record, "fullName", "name", "studentName"),
        class_name=_text(record, "className", "class_name") or None,
        class_teacher_comment=_text(record, "classTeacherComment"),
        head_teacher_comment=_text(record, "headTeacherComment"),
    )


def students_from_payload(payload: dict) -> List[StudentEntry]:
    students = payload.get("students")
    if not isinstance(students, list) or not students:
        raise HTTPException(400, "No students provided.")
    return [student_entry_from_payload(s) for s in students if isinstance(s, Mapping)]


# ── Endpoints ───────────────────────────────────────────────────────

@router.post("/student")
async def student_report(payload: dict):
    """Assemble one student's report card."""
    student = payload.get("student")
    if not isinstance(student, Mapping):
        raise HTTPException(400, "No student provided.")
    context = context_from_payload(payload)
    return assemble_student_report(student_entry_from_payload(student), context).to_dict()


@router.post("/class")
async def class_reports(payload: dict):
    """Assemble report cards for every student in a class."""
    context = context_from_payload(payload)
    reports = assemble_class_reports(students_from_payload(payload), context)
    return [r.to_dict() for r in reports]


@router.post("/fetch")
async def fetch_class_reports(payload: dict):
    """
    Fetch marks and report inputs for a class from the marks API, then
    assemble every student's report card.
    """
    if not MARKS_API_URL:
        raise HTTPException(502, "Marks API is not configured (set MARKS_API_URL).")

    class_id = _text(payload, "classId")
    term_id = _text(payload, "termId")
    academic_year_id = _text(payload, "academicYearId")
    if not (class_id and term_id and academic_year_id):
        raise HTTPException(400, "Provide 'classId', 'termId' and 'academicYearId'.")
    students = payload.get("students")
    if not isinstance(students, list) or not students:
        raise HTTPException(400, "No students provided.")
    students = [s for s in students if isinstance(s, Mapping)]
    exam_sets = payload.get("examSets") if isinstance(payload.get("examSets"), Mapping) else {}
    context = context_from_payload(payload)

    student_ids = [_text(s, "studentId", "student_id", "id") for s in students]
    async with MarksApiClient(
        MARKS_API_URL, token=payload.get("token"), timeout=MARKS_API_TIMEOUT_SECONDS,
    ) as client:
        inputs = await client.fetch_report_inputs(
            class_id, term_id, academic_year_id, student_ids,
            {str(k).upper(): v for k, v in exam_sets.items()},
            include_historical=bool(payload.get("includeHistorical")),
        )

    context.subjects = inputs["subjects"]
    context.grading_rows = inputs["grading_rows"]
    context.class_teacher_ranges = inputs["class_teacher_ranges"]
    context.head_teacher_ranges = inputs["head_teacher_ranges"]
    context.initials_map = inputs["initials_map"]
    context.term_ends = inputs["term_dates"]["termEnds"]
    context.next_term_begins = inputs["term_dates"]["nextTermBegins"]

    entries = [
        student_entry_from_payload(s, inputs["marks"].get(sid) or StudentMarks(student_id=sid))
        for s, sid in zip(students, student_ids)
    ]
    logger.info("Assembling %d fetched reports for class %s", len(entries), class_id)
    return [r.to_dict() for r in assemble_class_reports(entries, context)]
