"""
report_assembler.py — Build a student's termly report card payload.

Which tables appear depends on the report type and the pupil's level:

  level  report type        tables
  lower  CA                 CA
  lower  BOT / MID / EOT    that period
  lower  ALL / INTEGRATED   CA + integrated (final assessment)
  upper  BOT / MID / EOT    that period
  upper  ALL                MID + EOT side by side
  upper  INTEGRATED         EOT, labelled final
  any    anything else      "not configured" placeholder, nothing computed

The same choice decides which rows feed the division classification.
Every student is computed independently; nothing is shared between them
except the read-only context.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd

from core.classifiers import (
    REPORT_ALL,
    REPORT_BOT,
    REPORT_CA,
    REPORT_EOT,
    REPORT_INTEGRATED,
    REPORT_MID,
    get_next_class,
    get_report_title,
    is_lower_primary,
    is_term_three,
    parse_report_type,
    primary_level,
)
from core.comments import CLASS_TEACHER, HEAD_TEACHER, resolve_teacher_comment
from core.continuous_assessment import build_ca_rows
from core.division import compute_table_aggs, get_division_grade, is_passing_division
from core.grading_scale import format_grading_legend
from core.integrated import build_integrated_rows
from core.models import (
    CommentRange,
    FinalGrade,
    GradingRow,
    ReportTable,
    StudentMarks,
    StudentReportData,
    Subject,
)
from core.regular_assessment import build_regular_rows

logger = logging.getLogger(__name__)

PERIOD_TABLE_TITLES = {
    REPORT_BOT: "BEGINNING OF TERM",
    REPORT_MID: "MID TERM",
    REPORT_EOT: "END OF TERM",
}
CA_TABLE_TITLE = "CONTINUOUS ASSESSMENT (C.A) SCORES"
INTEGRATED_TABLE_TITLE = "FINAL ASSESSMENT"
INSUFFICIENT_DATA = "Insufficient data to grade."


@dataclass
class ReportContext:
    """Inputs shared by every student in one report run."""

    report_type: str
    class_name: str = ""
    term: str = ""
    year: str = ""
    subjects: List[Subject] = field(default_factory=list)
    grading_rows: List[GradingRow] = field(default_factory=list)
    class_teacher_ranges: List[CommentRange] = field(default_factory=list)
    head_teacher_ranges: List[CommentRange] = field(default_factory=list)
    initials_map: Dict[str, str] = field(default_factory=dict)
    term_ends: str = ""
    next_term_begins: str = ""


@dataclass
class StudentEntry:
    marks: StudentMarks
    student_name: str = ""
    class_name: Optional[str] = None
    class_teacher_comment: str = ""
    head_teacher_comment: str = ""


# ── Helpers ─────────────────────────────────────────────────────────

def format_report_date(value) -> str:
    """'2026-12-04' → '4 December 2026'; blank or unparseable → 'N/A'."""
    if value is None or str(value).strip() == "":
        return "N/A"
    stamp = pd.to_datetime(value, errors="coerce")
    if pd.isna(stamp):
        return "N/A"
    return f"{stamp.day} {stamp.strftime('%B %Y')}"


def sort_subjects_by_compulsory(rows: Sequence) -> list:
    """Compulsory subjects first, then alphabetical."""
    return sorted(rows, key=lambda r: (not r.is_compulsory, r.subject.casefold()))


def _graded_table(title: str, rows: Sequence, kind: str = "regular") -> ReportTable:
    ordered = sort_subjects_by_compulsory(rows)
    aggs = compute_table_aggs(ordered)
    return ReportTable(
        kind=kind,
        title=title,
        rows=ordered,
        aggs=aggs,
        division=get_division_grade(aggs, ordered),
    )


def _ca_table(rows: Sequence) -> ReportTable:
    return ReportTable(kind="ca", title=CA_TABLE_TITLE, rows=sort_subjects_by_compulsory(rows))


def not_configured_message(lower: bool) -> str:
    level = "Lower" if lower else "Upper"
    return f"Report type not configured for {level} Primary."


def placeholder_for(role: str, general: str) -> str:
    """The general comment, or the fixed referral text when there is none."""
    return resolve_teacher_comment(None, [], general, role)


# ── State machine ───────────────────────────────────────────────────

LOWER_PRIMARY_REPORTS = (REPORT_CA, REPORT_BOT, REPORT_MID, REPORT_EOT, REPORT_ALL, REPORT_INTEGRATED)
UPPER_PRIMARY_REPORTS = (REPORT_BOT, REPORT_MID, REPORT_EOT, REPORT_ALL, REPORT_INTEGRATED)


def is_configured(report_type: Optional[str], lower: bool) -> bool:
    return report_type in (LOWER_PRIMARY_REPORTS if lower else UPPER_PRIMARY_REPORTS)


def select_tables(report_type: Optional[str], lower: bool, rows: Dict[str, list]) -> Optional[List[ReportTable]]:
    """Tables for a level/report type pair, or None when not configured."""
    if lower:
        if report_type == REPORT_CA:
            return [_ca_table(rows["ca"])]
        if report_type in PERIOD_TABLE_TITLES:
            key = report_type.lower()
            return [_graded_table(PERIOD_TABLE_TITLES[report_type], rows[key])]
        if report_type in (REPORT_ALL, REPORT_INTEGRATED):
            return [
                _ca_table(rows["ca"]),
                _graded_table(INTEGRATED_TABLE_TITLE, rows["integrated"], kind="integrated"),
            ]
        return None

    if report_type in PERIOD_TABLE_TITLES:
        key = report_type.lower()
        return [_graded_table(PERIOD_TABLE_TITLES[report_type], rows[key])]
    if report_type == REPORT_ALL:
        return [
            _graded_table("MID TERM RESULTS", rows["mid"]),
            _graded_table("END OF TERM RESULTS", rows["eot"]),
        ]
    if report_type == REPORT_INTEGRATED:
        return [_graded_table("END OF TERM (FINAL)", rows["eot"])]
    return None


def select_final_grade_rows(report_type: Optional[str], lower: bool, rows: Dict[str, list]) -> list:
    """Rows whose aggregates decide the pupil's overall division."""
    if report_type in (REPORT_ALL, REPORT_INTEGRATED):
        return rows["integrated"] if lower else rows["eot"]
    if report_type in PERIOD_TABLE_TITLES:
        return rows[report_type.lower()]
    return []


def compute_final_grade(rows: Sequence) -> FinalGrade:
    aggs = compute_table_aggs(rows)
    return FinalGrade(aggs=aggs, grade=get_division_grade(aggs, rows))


def promotion_line(term: str, class_name: str, lower: bool, final_grade: FinalGrade) -> Optional[str]:
    """
    Term 3 reports carry a promotion line. Lower primary pupils are always
    promoted; upper primary pupils only with DIV I to DIV IV.
    """
    if not is_term_three(term):
        return None
    if not lower and not is_passing_division(final_grade.grade):
        return None
    return f"Promoted to {get_next_class(class_name)}"


# ── Assembly ────────────────────────────────────────────────────────

def assemble_student_report(student: StudentEntry, context: ReportContext) -> StudentReportData:
    class_name = student.class_name or context.class_name
    lower = is_lower_primary(class_name)
    report_type = parse_report_type(context.report_type)
    marks = student.marks

    base = StudentReportData(
        student_id=marks.student_id,
        student_name=student.student_name,
        class_name=class_name,
        term=context.term,
        year=context.year,
        level=primary_level(class_name),
        report_type=report_type or str(context.report_type or ""),
        title=get_report_title(report_type, lower),
        grading_legend=format_grading_legend(context.grading_rows),
        term_ends=format_report_date(context.term_ends),
        next_term_begins=format_report_date(context.next_term_begins),
    )

    if not is_configured(report_type, lower):
        logger.info("Report type %r is not configured for %s primary; skipping %s",
                    context.report_type, base.level, marks.student_id)
        base.configured = False
        base.placeholder = not_configured_message(lower)
        base.class_teacher_comment = placeholder_for(CLASS_TEACHER, student.class_teacher_comment)
        base.head_teacher_comment = placeholder_for(HEAD_TEACHER, student.head_teacher_comment)
        return base

    ca_rows = build_ca_rows(marks.ca, context.subjects, context.initials_map)
    rows = {
        "ca": ca_rows,
        "bot": build_regular_rows(marks.bot, context.subjects, context.grading_rows, context.initials_map),
        "mid": build_regular_rows(marks.mid, context.subjects, context.grading_rows, context.initials_map),
        "eot": build_regular_rows(marks.eot, context.subjects, context.grading_rows, context.initials_map),
    }
    rows["integrated"] = build_integrated_rows(
        ca_rows, rows["mid"], rows["eot"],
        context.subjects, context.grading_rows, context.initials_map,
    )

    tables = select_tables(report_type, lower, rows) or []

    final_grade = compute_final_grade(select_final_grade_rows(report_type, lower, rows))
    logger.debug("Student %s: %s/%s → aggs=%s grade=%s", marks.student_id,
                 base.level, report_type, final_grade.aggs, final_grade.grade)

    base.ca = rows["ca"]
    base.bot = rows["bot"]
    base.mid = rows["mid"]
    base.eot = rows["eot"]
    base.integrated = rows["integrated"]
    base.tables = tables
    base.final_grade = final_grade
    base.class_teacher_comment = resolve_teacher_comment(
        final_grade.aggs, context.class_teacher_ranges, student.class_teacher_comment, CLASS_TEACHER,
    )
    base.head_teacher_comment = resolve_teacher_comment(
        final_grade.aggs, context.head_teacher_ranges, student.head_teacher_comment, HEAD_TEACHER,
    )
    base.promotion = promotion_line(context.term, class_name, lower, final_grade)
    return base


def insufficient_data_report(student: StudentEntry, context: ReportContext) -> StudentReportData:
    class_name = student.class_name or context.class_name
    lower = is_lower_primary(class_name)
    return StudentReportData(
        student_id=student.marks.student_id,
        student_name=student.student_name,
        class_name=class_name,
        term=context.term,
        year=context.year,
        level=primary_level(class_name),
        report_type=str(context.report_type or ""),
        title=get_report_title(parse_report_type(context.report_type), lower),
        configured=False,
        placeholder=INSUFFICIENT_DATA,
        class_teacher_comment=placeholder_for(CLASS_TEACHER, student.class_teacher_comment),
        head_teacher_comment=placeholder_for(HEAD_TEACHER, student.head_teacher_comment),
    )


def assemble_class_reports(students: Sequence[StudentEntry], context: ReportContext) -> List[StudentReportData]:
    """Assemble every student; one student's bad data never affects another."""
    reports: List[StudentReportData] = []
    for student in students:
        try:
            reports.append(assemble_student_report(student, context))
        except Exception:
            logger.exception("Could not assemble report for student %s", student.marks.student_id)
            reports.append(insufficient_data_report(student, context))
    return reports
