"""
Grading routes — single-mark and table-level classification endpoints.
"""

from fastapi import APIRouter, HTTPException

from core.division import compute_table_aggs, get_division_grade
from core.grading_scale import (
    calculate_remarks,
    format_grading_legend,
    get_aggregate_from_grading_rows,
    get_grade_thresholds,
)
from core.ingest import parse_assessment_rows, parse_grading_rows
from core.marks import format_mark_display, parse_mark_value

router = APIRouter()


def _grading_rows_from_payload(payload: dict):
    """Extract the grading scale from request payload."""
    raw = payload.get("gradingRows", payload.get("gradingScale"))
    if raw is None:
        raise HTTPException(400, "No grading rows provided.")
    return parse_grading_rows(raw)


@router.post("/resolve")
async def resolve(payload: dict):
    """Aggregate, remark and display text for one mark."""
    if "score" not in payload:
        raise HTTPException(400, "No score provided.")
    rows = _grading_rows_from_payload(payload)
    score = parse_mark_value(payload.get("score"))
    is_compulsory = payload.get("isCompulsory")
    return {
        "score": score,
        "aggregate": None if is_compulsory is False else get_aggregate_from_grading_rows(score, rows),
        "remarks": calculate_remarks(score, rows, is_compulsory),
        "display": format_mark_display(score),
    }


@router.post("/division")
async def division(payload: dict):
    """AGGS and division for a table of computed subject rows."""
    if not isinstance(payload.get("rows"), list):
        raise HTTPException(400, "No rows provided.")
    rows = parse_assessment_rows(payload["rows"])
    aggs = compute_table_aggs(rows)
    return {"aggs": aggs, "grade": get_division_grade(aggs, rows)}


@router.post("/legend")
async def legend(payload: dict):
    """Report footer legend plus the scale as threshold bands."""
    rows = _grading_rows_from_payload(payload)
    return {
        "legend": format_grading_legend(rows),
        "thresholds": get_grade_thresholds(rows),
    }
