"""
Analyze routes — class-level analytics over assembled report cards.
"""

from fastapi import APIRouter, HTTPException

from core.class_summary import (
    rank_students,
    students_missing_all_ca,
    students_missing_marks,
    summarize_class,
)
from core.classifiers import normalize_report_type
from core.report_assembler import assemble_class_reports
from routes.reports import context_from_payload, students_from_payload

router = APIRouter()


def _context_from_payload(payload: dict):
    """Shared context; an unknown or missing report type means ALL."""
    return context_from_payload(dict(payload, reportType=normalize_report_type(payload.get("reportType"))))


def _reports_from_payload(payload: dict, context=None):
    context = context or _context_from_payload(payload)
    return assemble_class_reports(students_from_payload(payload), context)


@router.post("/class-summary")
async def class_summary(payload: dict):
    """Division distribution, AGGS histogram, subject grade counts and means."""
    return summarize_class(_reports_from_payload(payload))


@router.post("/missing-ca")
async def missing_ca(payload: dict):
    """Pupils with no CA component entered for a subject."""
    subject_id = payload.get("subjectId")
    return students_missing_all_ca(_reports_from_payload(payload), subject_id=subject_id)


@router.post("/missing-marks")
async def missing_marks(payload: dict):
    """Pupils with no BOT, MID or EOT mark in any of the class's subjects."""
    period = payload.get("period")
    if not period:
        raise HTTPException(400, "No period provided.")
    context = _context_from_payload(payload)
    reports = _reports_from_payload(payload, context)
    try:
        return students_missing_marks(reports, period, context.subjects)
    except ValueError as exc:
        raise HTTPException(400, str(exc))


@router.post("/ranking")
async def ranking(payload: dict):
    """Class positions by AGGS."""
    return rank_students(_reports_from_payload(payload))
