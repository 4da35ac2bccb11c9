"""
class_summary.py — Class-level views over assembled report cards.

Computes:
- Division distribution, AGGS histogram and mean AGGS for a class
- D1..F9 grade counts and DIV I share per compulsory subject
- Per-subject mean marks from the graded report tables
- Class position by AGGS (lower is better, ties share a position)
- Pupils with no CA component entered for a subject
- Pupils with no BOT, MID or EOT mark in any subject
"""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from core.continuous_assessment import is_missing_all_ca
from core.division import ALL_DIVISIONS, NOT_AVAILABLE
from core.marks import EXEMPT, is_valid_mark
from core.models import BOT, EOT, MID, IntegratedAssessmentRow, StudentReportData, Subject

AGGS_RANGE = range(4, 37)

GRADE_LABELS = {1: "D1", 2: "D2", 3: "C3", 4: "C4", 5: "C5", 6: "C6", 7: "P7", 8: "P8", 9: "F9"}

MARK_PERIODS = (BOT, MID, EOT)


# ── Helpers ─────────────────────────────────────────────────────────

def _safe_float(val) -> Optional[float]:
    """Convert to float or return None."""
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else round(v, 2)
    except (TypeError, ValueError):
        return None


def _students_frame(reports: Sequence[StudentReportData]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "student_id": r.student_id,
                "name": r.student_name,
                "aggs": r.final_grade.aggs,
                "grade": r.final_grade.grade,
            }
            for r in reports
        ],
        columns=["student_id", "name", "aggs", "grade"],
    )


def _subject_marks_frame(reports: Sequence[StudentReportData]) -> pd.DataFrame:
    records = []
    for report in reports:
        for table in report.tables:
            if table.kind == "ca":
                continue
            for row in table.rows:
                mark = row.average if isinstance(row, IntegratedAssessmentRow) else row.score
                if not is_valid_mark(mark):
                    continue
                records.append({
                    "table": table.title,
                    "subject": row.subject,
                    "mark": mark,
                    "compulsory": row.is_compulsory,
                })
    return pd.DataFrame(records, columns=["table", "subject", "mark", "compulsory"])


def _percent(part, whole) -> Optional[float]:
    return round(part / whole * 100, 1) if whole else None


def _deciding_rows(report: StudentReportData) -> list:
    """Rows of the last graded table, the one that decides the division."""
    graded = [t for t in report.tables if t.kind != "ca"]
    return graded[-1].rows if graded else []


def _subject_grades(reports: Sequence[StudentReportData]) -> List[Dict[str, Any]]:
    """Per compulsory subject, how many pupils got each aggregate D1 to F9."""
    records = [
        {"subject": row.subject, "aggregate": row.aggregate}
        for report in reports
        for row in _deciding_rows(report)
        if row.is_compulsory and row.aggregate in GRADE_LABELS
    ]
    if not records:
        return []
    frame = pd.DataFrame(records)
    counts = (
        frame.groupby("subject")["aggregate"]
        .value_counts()
        .unstack(fill_value=0)
        .reindex(columns=list(GRADE_LABELS), fill_value=0)
    )

    result = []
    for subject, r in counts.iterrows():
        entry = {"subject": subject}
        entry.update({label: int(r[grade]) for grade, label in GRADE_LABELS.items()})
        total = int(r.sum())
        entry["total"] = total
        entry["div1_percent"] = _percent(entry["D1"], total)
        result.append(entry)
    return result


# ── Class summary ───────────────────────────────────────────────────

def summarize_class(reports: Sequence[StudentReportData]) -> Dict[str, Any]:
    """
    Division counts, AGGS statistics and subject means for one class.

    Also returns the AGGS histogram (every value from 4 to 36), the D1..F9
    grade counts per compulsory subject from the deciding table, and the
    share of classified pupils in DIV I.
    """
    students = _students_frame(reports)
    counts = students["grade"].value_counts()
    distribution = {div: int(counts.get(div, 0)) for div in ALL_DIVISIONS}

    aggs = pd.to_numeric(students["aggs"], errors="coerce").dropna()
    histogram = aggs.astype(int).value_counts().reindex(AGGS_RANGE, fill_value=0)
    classified = sum(n for div, n in distribution.items() if div != NOT_AVAILABLE)

    subject_means: List[Dict[str, Any]] = []
    marks = _subject_marks_frame(reports)
    if not marks.empty:
        grouped = marks.groupby(["table", "subject"])["mark"].agg(["mean", "count"]).reset_index()
        for _, r in grouped.sort_values(["table", "mean"], ascending=[True, False]).iterrows():
            subject_means.append({
                "table": r["table"],
                "subject": r["subject"],
                "mean": _safe_float(r["mean"]),
                "count": int(r["count"]),
            })

    return {
        "total_students": len(students),
        "graded_students": int(len(aggs)),
        "division_distribution": distribution,
        "mean_aggs": _safe_float(aggs.mean()) if len(aggs) else None,
        "best_aggs": int(aggs.min()) if len(aggs) else None,
        "worst_aggs": int(aggs.max()) if len(aggs) else None,
        "aggs_distribution": {int(k): int(v) for k, v in histogram.items()},
        "div1_percent": _percent(distribution["DIV I"], classified),
        "subject_grades": _subject_grades(reports),
        "subject_means": subject_means,
    }


def rank_students(reports: Sequence[StudentReportData]) -> List[Dict[str, Any]]:
    """Class positions by AGGS; pupils without AGGS come last, unranked."""
    students = _students_frame(reports)
    if students.empty:
        return []
    students["aggs"] = pd.to_numeric(students["aggs"], errors="coerce")
    students["position"] = students["aggs"].rank(method="min", ascending=True)
    students = students.sort_values(["aggs", "name"], na_position="last")

    ranked = []
    for _, r in students.iterrows():
        ranked.append({
            "student_id": r["student_id"],
            "name": r["name"],
            "aggs": int(r["aggs"]) if pd.notna(r["aggs"]) else None,
            "grade": r["grade"],
            "position": int(r["position"]) if pd.notna(r["position"]) else None,
        })
    return ranked


# ── Missing CA ──────────────────────────────────────────────────────

def students_missing_all_ca(
    reports: Sequence[StudentReportData],
    subject_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Pupils with a subject whose five CA components are all blank or zero,
    sorted by name and numbered from 1. Restrict to one subject with
    subject_id.
    """
    found = []
    for report in reports:
        subjects = [
            row.subject for row in report.ca
            if (subject_id is None or row.subject_id == subject_id) and is_missing_all_ca(row)
        ]
        if subjects:
            found.append({"studentId": report.student_id, "name": report.student_name, "subjects": subjects})

    found.sort(key=lambda s: s["name"].casefold())
    for index, entry in enumerate(found, 1):
        entry["displayIndex"] = index
    return found


# ── Missing marks ───────────────────────────────────────────────────

def students_missing_marks(
    reports: Sequence[StudentReportData],
    period: str,
    subjects: Optional[Sequence[Subject]] = None,
) -> List[Dict[str, Any]]:
    """
    Pupils whose BOT, MID or EOT mark is blank or exempt in every subject,
    sorted by name and numbered from 1.

    Subjects are the class's subjects when given, otherwise every subject
    marked for anyone in the class that period. With no subjects at all
    nobody is listed.
    """
    period = str(period).upper()
    if period not in MARK_PERIODS:
        raise ValueError(f"Unknown period {period!r}; expected one of {', '.join(MARK_PERIODS)}")
    attr = period.lower()

    if subjects:
        subject_ids = [s.id for s in subjects]
    else:
        subject_ids = list(dict.fromkeys(
            row.subject_id for report in reports for row in getattr(report, attr)
        ))
    if not subject_ids:
        return []

    found = []
    for report in reports:
        scores = {row.subject_id: row.score for row in getattr(report, attr)}
        if all(scores.get(sid) in (None, EXEMPT) for sid in subject_ids):
            found.append({"studentId": report.student_id, "name": report.student_name})

    found.sort(key=lambda s: s["name"].casefold())
    for index, entry in enumerate(found, 1):
        entry["displayIndex"] = index
    return found
