"""
Tests for core/report_assembler.py — level x report type assembly.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.models import FinalGrade, RegularAssessmentRow, StudentMarks
from core.report_assembler import (
    CA_TABLE_TITLE,
    INSUFFICIENT_DATA,
    INTEGRATED_TABLE_TITLE,
    StudentEntry,
    assemble_class_reports,
    assemble_student_report,
    format_report_date,
    promotion_line,
    sort_subjects_by_compulsory,
)


class TestStateMachine:
    """Which tables appear for each level and report type."""

    def test_lower_all_has_ca_and_integrated(self, student, context_factory):
        report = assemble_student_report(student, context_factory("ALL", "Primary One"))
        assert report.level == "lower"
        assert [t.title for t in report.tables] == [CA_TABLE_TITLE, INTEGRATED_TABLE_TITLE]
        assert [t.kind for t in report.tables] == ["ca", "integrated"]

    def test_upper_all_has_mid_and_eot_only(self, student, context_factory):
        report = assemble_student_report(student, context_factory("ALL", "Primary Five"))
        assert report.level == "upper"
        assert [t.title for t in report.tables] == ["MID TERM RESULTS", "END OF TERM RESULTS"]
        assert all(t.kind == "regular" for t in report.tables)

    def test_upper_integrated_is_final_eot(self, student, context_factory):
        report = assemble_student_report(student, context_factory("INTEGRATED", "P6"))
        assert [t.title for t in report.tables] == ["END OF TERM (FINAL)"]

    def test_lower_ca_only(self, student, context_factory):
        report = assemble_student_report(student, context_factory("CA", "P2"))
        assert [t.kind for t in report.tables] == ["ca"]
        assert report.final_grade == FinalGrade(None, "N/A")

    @pytest.mark.parametrize("report_type", ["BOT", "MID", "EOT"])
    def test_single_period(self, student, context_factory, report_type):
        report = assemble_student_report(student, context_factory(report_type, "Primary Four"))
        assert len(report.tables) == 1
        assert report.tables[0].kind == "regular"

    def test_upper_ca_is_not_configured(self, student, context_factory):
        report = assemble_student_report(student, context_factory("CA", "Primary Five"))
        assert report.configured is False
        assert report.tables == []
        assert report.placeholder == "Report type not configured for Upper Primary."
        assert report.class_teacher_comment == "Refer to Class Teacher for overall assessment."

    def test_unknown_type_computes_nothing(self, student, context_factory):
        report = assemble_student_report(student, context_factory("weekly", "Primary One"))
        assert report.configured is False
        assert report.placeholder == "Report type not configured for Lower Primary."
        assert report.ca == [] and report.integrated == []

    def test_student_class_overrides_context(self, context_factory, marks_factory):
        entry = StudentEntry(marks=marks_factory("s9"), student_name="X", class_name="Primary Six")
        report = assemble_student_report(entry, context_factory("ALL", "Primary One"))
        assert report.level == "upper"


class TestFinalGrade:
    """Division and comments from the deciding table."""

    def test_upper_eot_rows_decide(self, student, context_factory):
        report = assemble_student_report(student, context_factory("ALL", "Primary Five"))
        # EOT 85 in three compulsory subjects → aggregate 1 each
        assert report.final_grade.aggs == 3
        assert report.final_grade.grade == "N/A"  # below the DIV I floor of 4
        assert report.tables[0].aggs == 9  # MID 75 → 3 each

    def test_lower_integrated_rows_decide(self, student, context_factory):
        report = assemble_student_report(student, context_factory("ALL", "Primary Two"))
        integrated = report.tables[1]
        eng = next(r for r in integrated.rows if r.subject_id == "eng")
        # CA 18, MID 75, EOT 85 → average 59
        assert eng.average == 59
        assert eng.aggregate == 3
        assert report.final_grade.aggs == 9
        assert report.final_grade.grade == "DIV I"
        assert report.class_teacher_comment == "Excellent work"
        assert report.head_teacher_comment == "Refer to Head Teacher for overall assessment."

    def test_zero_in_compulsory_subject_is_x(self, context_factory, marks_factory):
        entry = StudentEntry(marks=marks_factory("s2", eot=0), student_name="B")
        report = assemble_student_report(entry, context_factory("EOT", "Primary Five"))
        assert report.final_grade.grade == "X"

    def test_elective_has_no_remarks(self, student, context_factory):
        report = assemble_student_report(student, context_factory("EOT", "Primary Five"))
        re_row = next(r for r in report.eot if r.subject_id == "re")
        assert re_row.score == 85
        assert re_row.remarks == ""
        assert re_row.aggregate is None

    def test_compulsory_subjects_listed_first(self, student, context_factory):
        report = assemble_student_report(student, context_factory("EOT", "Primary Five"))
        assert [r.subject for r in report.tables[0].rows] == [
            "English", "Mathematics", "Science", "Religious Education",
        ]


class TestPromotion:
    """Tests for promotion_line."""

    def test_only_in_term_three(self):
        assert promotion_line("Term 2", "P2", True, FinalGrade(9, "DIV I")) is None

    def test_lower_always_promoted(self):
        assert promotion_line("Term 3", "Primary Two", True, FinalGrade(None, "X")) == (
            "Promoted to Primary Three"
        )

    def test_upper_needs_passing_division(self):
        assert promotion_line("term three", "P5", False, FinalGrade(20, "DIV II")) == "Promoted to Primary Six"
        assert promotion_line("term three", "P5", False, FinalGrade(34, "U")) is None

    def test_assembled_report_carries_promotion(self, student, context_factory):
        report = assemble_student_report(student, context_factory("ALL", "Primary One", "Term 3"))
        assert report.promotion == "Promoted to Primary Two"


class TestHelpers:
    """Tests for format_report_date and sort_subjects_by_compulsory."""

    def test_dates(self):
        assert format_report_date("2026-12-04") == "4 December 2026"
        assert format_report_date("") == "N/A"
        assert format_report_date("not a date") == "N/A"

    def test_sort(self):
        rows = [
            RegularAssessmentRow(subject="Art", subject_id="a"),
            RegularAssessmentRow(subject="science", subject_id="s", is_compulsory=True),
            RegularAssessmentRow(subject="English", subject_id="e", is_compulsory=True),
        ]
        assert [r.subject for r in sort_subjects_by_compulsory(rows)] == ["English", "science", "Art"]

    def test_to_dict_shape(self, student, context_factory):
        data = assemble_student_report(student, context_factory()).to_dict()
        assert data["studentInfo"]["fullName"] == "Achieng Mary"
        assert data["dates"] == {"termEnds": "4 December 2026", "nextTermBegins": "1 February 2027"}
        assert data["gradingLegend"].startswith("80 - 100 = 1")
        assert data["tables"][0]["rows"][0]["initials"] == "J.D"


class TestAssembleClassReports:
    """Tests for assemble_class_reports."""

    def test_one_bad_student_does_not_stop_the_class(self, student, context_factory):
        broken = StudentEntry(marks=StudentMarks(student_id="bad", eot=None), student_name="Broken")
        reports = assemble_class_reports([broken, student], context_factory("EOT", "Primary Five"))
        assert len(reports) == 2
        assert reports[0].placeholder == INSUFFICIENT_DATA
        assert reports[0].final_grade.grade == "N/A"
        assert reports[1].configured is True
