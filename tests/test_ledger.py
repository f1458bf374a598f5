"""
Student ledger tests.
"""

import pytest

from ccrm.domain.enrollment import Enrollment
from ccrm.domain.entities import Semester, Student
from ccrm.domain.exceptions import InvalidMarksError
from ccrm.domain.grading import Grade
from ccrm.domain.ledger import StudentLedger


@pytest.fixture
def ledger(courses):
    student = Student(id=7, reg_no="R2025007", full_name="Dana Ruiz")
    ledger = StudentLedger(student)
    for code in ("CS101", "MA101", "PH101"):
        ledger.append(Enrollment.create(courses[code], Semester.FALL))
    ledger.append(Enrollment.create(courses["EN101"], Semester.SPRING))
    return ledger


def test_semester_credits(ledger):
    assert ledger.semester_credits(Semester.FALL) == 11
    assert ledger.semester_credits(Semester.SPRING) == 3
    assert ledger.semester_credits(Semester.SUMMER) == 0


def test_dropped_excluded_from_credits(ledger):
    ledger.find_active("MA101").drop()
    assert ledger.semester_credits(Semester.FALL) == 7
    assert len(ledger) == 4


def test_find_active_skips_dropped(ledger, courses):
    first = ledger.find_active("CS101")
    first.drop()
    second = Enrollment.create(courses["CS101"], Semester.SPRING)
    ledger.append(second)

    found = ledger.find_active("cs101")
    assert found is second


def test_append_rejects_out_of_range_marks(ledger, courses):
    corrupt = Enrollment.create(courses["CS305"]).model_copy(update={"marks": 140.0})
    with pytest.raises(InvalidMarksError):
        ledger.append(corrupt)
    assert len(ledger) == 4


def test_find_active_in_semester(ledger):
    assert ledger.find_active_in_semester("CS101", Semester.FALL) is not None
    assert ledger.find_active_in_semester("CS101", Semester.SPRING) is None


def test_snapshot_is_detached(ledger):
    snapshot = ledger.snapshot()
    snapshot[0].set_grade(Grade.S)
    snapshot[1].drop()

    assert ledger.find_active("CS101").grade is Grade.NOT_AWARDED
    assert ledger.find_active("MA101") is not None
    assert [e.course_code for e in snapshot] == ["CS101", "MA101", "PH101", "EN101"]


def test_has_passing_in_department(ledger):
    assert not ledger.has_passing_in_department("Computer Science")

    ledger.find_active("CS101").set_grade(Grade.F)
    assert not ledger.has_passing_in_department("Computer Science")

    ledger.find_active("CS101").set_grade(Grade.D)
    assert ledger.has_passing_in_department("Computer Science")


def test_repr(ledger):
    assert repr(ledger) == "StudentLedger(student_id=7, enrollments=4)"
