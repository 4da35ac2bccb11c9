"""
models.py — Canonical shapes flowing through the grading engine.

Every record is a frozen dataclass. Raw API payloads are turned into these
shapes once, in core/ingest.py, so the grading code never has to guess at
field names. `to_dict()` produces the camelCase structure the report
renderer consumes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

Number = Union[int, float]

# Assessment period tags
CA = "CA"
BOT = "BOT"
MID = "MID"
EOT = "EOT"
PERIODS = (CA, BOT, MID, EOT)

LOWER = "lower"
UPPER = "upper"


# ── Reference data ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    code: str = ""
    is_compulsory: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "isCompulsory": self.is_compulsory,
        }


@dataclass(frozen=True)
class GradingRow:
    end_marks: Number
    grade: Optional[int]
    comment: str = ""
    start_marks: Optional[Number] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startMarks": self.start_marks,
            "endMarks": self.end_marks,
            "grade": self.grade,
            "comment": self.comment,
        }


@dataclass(frozen=True)
class CommentRange:
    start_marks: Number
    end_marks: Number
    comment: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startMarks": self.start_marks,
            "endMarks": self.end_marks,
            "comment": self.comment,
        }


# ── Raw marks (ingestion boundary) ──────────────────────────────────

@dataclass(frozen=True)
class RawMark:
    """One BOT/MID/EOT mark as delivered by the marks API."""

    subject_id: str
    mark: Any = None
    subject_name: str = ""


@dataclass(frozen=True)
class RawCASubject:
    """One subject's CA components, keyed by component code (CW, HW, ...)."""

    subject_id: str
    components: Dict[str, Any] = field(default_factory=dict)
    subject_name: str = ""


@dataclass(frozen=True)
class StudentMarks:
    student_id: str
    ca: List[RawCASubject] = field(default_factory=list)
    bot: List[RawMark] = field(default_factory=list)
    mid: List[RawMark] = field(default_factory=list)
    eot: List[RawMark] = field(default_factory=list)


# ── Computed assessment rows ────────────────────────────────────────

@dataclass(frozen=True)
class ContinuousAssessmentRow:
    subject: str
    subject_id: str
    cw: Optional[Number] = None
    hw: Optional[Number] = None
    org: Optional[Number] = None
    sp: Optional[Number] = None
    sm: Optional[Number] = None
    total: Optional[Number] = None
    initials: str = ""
    is_compulsory: bool = False

    @property
    def components(self) -> List[Optional[Number]]:
        return [self.cw, self.hw, self.org, self.sp, self.sm]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "subjectId": self.subject_id,
            "cw": self.cw,
            "hw": self.hw,
            "org": self.org,
            "sp": self.sp,
            "sm": self.sm,
            "total": self.total,
            "initials": self.initials,
            "isCompulsory": self.is_compulsory,
        }


@dataclass(frozen=True)
class RegularAssessmentRow:
    subject: str
    subject_id: str
    score: Optional[Number] = None
    aggregate: Optional[int] = None
    remarks: str = ""
    initials: str = ""
    is_compulsory: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "subjectId": self.subject_id,
            "score": self.score,
            "aggregate": self.aggregate,
            "remarks": self.remarks,
            "initials": self.initials,
            "isCompulsory": self.is_compulsory,
        }


@dataclass(frozen=True)
class IntegratedAssessmentRow:
    subject: str
    subject_id: str
    ca: Optional[Number] = None
    mid: Optional[Number] = None
    eot: Optional[Number] = None
    total: Optional[Number] = None
    average: Optional[int] = None
    aggregate: Optional[int] = None
    remarks: str = ""
    initials: str = ""
    is_compulsory: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "subjectId": self.subject_id,
            "ca": self.ca,
            "mid": self.mid,
            "eot": self.eot,
            "total": self.total,
            "average": self.average,
            "aggregate": self.aggregate,
            "remarks": self.remarks,
            "initials": self.initials,
            "isCompulsory": self.is_compulsory,
        }


AssessmentRow = Union[ContinuousAssessmentRow, RegularAssessmentRow, IntegratedAssessmentRow]


# ── Report output ───────────────────────────────────────────────────

@dataclass(frozen=True)
class FinalGrade:
    aggs: Optional[int] = None
    grade: str = "N/A"

    def to_dict(self) -> Dict[str, Any]:
        return {"aggs": self.aggs, "grade": self.grade}


@dataclass(frozen=True)
class ReportTable:
    """One table section of a rendered report card."""

    kind: str  # "ca", "regular" or "integrated"
    title: str
    rows: List[AssessmentRow] = field(default_factory=list)
    aggs: Optional[int] = None
    division: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "title": self.title,
            "rows": [r.to_dict() for r in self.rows],
            "aggs": self.aggs,
            "division": self.division,
        }


@dataclass
class StudentReportData:
    student_id: str
    student_name: str
    class_name: str
    term: str
    year: str
    level: str
    report_type: str
    title: str
    ca: List[ContinuousAssessmentRow] = field(default_factory=list)
    bot: List[RegularAssessmentRow] = field(default_factory=list)
    mid: List[RegularAssessmentRow] = field(default_factory=list)
    eot: List[RegularAssessmentRow] = field(default_factory=list)
    integrated: List[IntegratedAssessmentRow] = field(default_factory=list)
    tables: List[ReportTable] = field(default_factory=list)
    configured: bool = True
    placeholder: str = ""
    final_grade: FinalGrade = field(default_factory=FinalGrade)
    class_teacher_comment: str = ""
    head_teacher_comment: str = ""
    promotion: Optional[str] = None
    grading_legend: str = ""
    term_ends: str = "N/A"
    next_term_begins: str = "N/A"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "studentId": self.student_id,
            "studentInfo": {
                "fullName": self.student_name,
                "class": self.class_name,
                "term": self.term,
                "year": self.year,
                "level": self.level,
            },
            "reportType": self.report_type,
            "title": self.title,
            "assessments": {
                "ca": [r.to_dict() for r in self.ca],
                "bot": [r.to_dict() for r in self.bot],
                "mid": [r.to_dict() for r in self.mid],
                "eot": [r.to_dict() for r in self.eot],
                "integrated": [r.to_dict() for r in self.integrated],
            },
            "tables": [t.to_dict() for t in self.tables],
            "configured": self.configured,
            "placeholder": self.placeholder,
            "finalGrade": self.final_grade.to_dict(),
            "comments": {
                "classTeacher": self.class_teacher_comment,
                "headTeacher": self.head_teacher_comment,
                "aggs": self.final_grade.aggs,
            },
            "promotion": self.promotion,
            "gradingLegend": self.grading_legend,
            "dates": {
                "termEnds": self.term_ends,
                "nextTermBegins": self.next_term_begins,
            },
        }
