"""
Shared fixtures: a small school with three compulsory subjects and one
elective, a two-band grading scale and AGGS comment ranges.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.models import CommentRange, GradingRow, RawCASubject, RawMark, StudentMarks, Subject
from core.report_assembler import ReportContext, StudentEntry


@pytest.fixture
def subjects():
    return [
        Subject(id="eng", name="English", is_compulsory=True),
        Subject(id="math", name="Mathematics", is_compulsory=True),
        Subject(id="sci", name="Science", is_compulsory=True),
        Subject(id="re", name="Religious Education", is_compulsory=False),
    ]


@pytest.fixture
def grading_rows():
    return [
        GradingRow(start_marks=0, end_marks=49, grade=9, comment="Fail"),
        GradingRow(start_marks=50, end_marks=79, grade=3, comment="Good"),
        GradingRow(start_marks=80, end_marks=100, grade=1, comment="Excellent"),
    ]


def make_marks(student_id, eot=85, mid=75, ca=9):
    ids = ("eng", "math", "sci", "re")
    return StudentMarks(
        student_id=student_id,
        ca=[RawCASubject(subject_id=s, components={"CW": ca, "HW": ca}) for s in ids],
        bot=[RawMark(subject_id=s, mark=60) for s in ids],
        mid=[RawMark(subject_id=s, mark=mid) for s in ids],
        eot=[RawMark(subject_id=s, mark=eot) for s in ids],
    )


@pytest.fixture
def student():
    return StudentEntry(marks=make_marks("s1"), student_name="Achieng Mary")


@pytest.fixture
def context_factory(subjects, grading_rows):
    def _make(report_type="ALL", class_name="Primary One", term="Term 1"):
        return ReportContext(
            report_type=report_type,
            class_name=class_name,
            term=term,
            year="2026",
            subjects=subjects,
            grading_rows=grading_rows,
            class_teacher_ranges=[CommentRange(start_marks=3, end_marks=12, comment="Excellent work")],
            head_teacher_ranges=[CommentRange(start_marks=13, end_marks=36, comment="Work harder")],
            initials_map={"eng": "J.D"},
            term_ends="2026-12-04",
            next_term_begins="2027-02-01",
        )
    return _make


@pytest.fixture
def marks_factory():
    return make_marks
