"""
Enrollment rule engine tests: enroll, drop, grade and marks operations.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from ccrm.domain.entities import Course, Semester, StudentStatus
from ccrm.domain.exceptions import (
    BusinessRuleViolationError,
    CourseNotFoundError,
    CreditLimitExceededError,
    DropDeadlineExceededError,
    DuplicateEnrollmentError,
    EnrollmentNotFoundError,
    GradeAlreadyAssignedError,
    InactiveCourseError,
    InactiveStudentError,
    InvalidGradeError,
    InvalidMarksError,
    InvalidSemesterError,
    MinimumCreditError,
    PrerequisiteNotMetError,
    StudentNotFoundError,
)
from ccrm.domain.grading import Grade

FULL_FALL_LOAD = ("CS101", "CS102", "MA101", "PH101")  # 15 credits


def enroll_all(service, student_id, codes, semester=None):
    for code in codes:
        service.enroll(student_id, code, semester)


# ============================================================================
# Enroll
# ============================================================================


class TestEnroll:
    def test_enroll_returns_snapshot(self, records):
        enrollment = records.enroll(1, "CS101")

        assert enrollment.course_code == "CS101"
        assert enrollment.semester is Semester.FALL
        assert enrollment.grade is Grade.NOT_AWARDED
        assert len(records.active_enrollments(1)) == 1

    def test_explicit_semester(self, records):
        enrollment = records.enroll(1, "cs101", "spring")
        assert enrollment.semester is Semester.SPRING

    def test_invalid_semester(self, records):
        with pytest.raises(InvalidSemesterError):
            records.enroll(1, "CS101", "WINTER")

    def test_unknown_student(self, records):
        with pytest.raises(StudentNotFoundError):
            records.enroll(99, "CS101")

    def test_unknown_course(self, records):
        with pytest.raises(CourseNotFoundError):
            records.enroll(1, "XX999")

    def test_lookup_fails_before_rules(self, records, store):
        store.change_student_status(1, StudentStatus.INACTIVE)
        with pytest.raises(CourseNotFoundError):
            records.enroll(1, "XX999")

    @pytest.mark.parametrize("status", [StudentStatus.INACTIVE, StudentStatus.GRADUATED])
    def test_inactive_student(self, records, store, status):
        store.change_student_status(1, status)
        with pytest.raises(InactiveStudentError):
            records.enroll(1, "CS101")

    def test_inactive_course(self, records, store, courses):
        store.update_course(courses["CS101"].model_copy(update={"active": False}))
        with pytest.raises(InactiveCourseError):
            records.enroll(1, "CS101")

    def test_duplicate_same_semester(self, records):
        records.enroll(1, "CS101")
        with pytest.raises(DuplicateEnrollmentError):
            records.enroll(1, "CS101", Semester.FALL)
        assert len(records.active_enrollments(1)) == 1

    def test_same_course_other_semester(self, records):
        records.enroll(1, "CS101", Semester.FALL)
        records.enroll(1, "CS101", Semester.SPRING)
        assert len(records.active_enrollments(1)) == 2

    def test_reenroll_after_drop(self, records):
        records.enroll(1, "CS101")
        records.drop(1, "CS101")
        records.enroll(1, "CS101")

        fall = records.enrollments.student_enrollments(1, Semester.FALL)
        assert [e.dropped for e in fall] == [True, False]

    def test_credit_limit_scenario(self, records, store):
        store.add_course(Course(code="BI101", title="Biology I", credits=4))
        enroll_all(records, 1, FULL_FALL_LOAD)

        with pytest.raises(CreditLimitExceededError):
            records.enroll(1, "BI101")

        records.enroll(1, "HI201")
        fall = records.enrollments.student_enrollments(1, Semester.FALL)
        assert sum(e.course.credits for e in fall) == 18

    def test_dropped_credits_free_capacity(self, records, store):
        store.add_course(Course(code="BI101", title="Biology I", credits=4))
        enroll_all(records, 1, FULL_FALL_LOAD)
        records.drop(1, "PH101")
        records.enroll(1, "BI101")

    def test_prerequisite(self, records):
        with pytest.raises(PrerequisiteNotMetError):
            records.enroll(1, "CS305")

        records.enroll(1, "CS101", Semester.SPRING)
        records.assign_marks(1, "CS101", 45.0)
        with pytest.raises(PrerequisiteNotMetError):
            records.enroll(1, "CS305")

        records.assign_marks(1, "CS101", 85.0)
        assert records.enroll(1, "CS305").course_code == "CS305"

    def test_rejection_leaves_ledger_untouched(self, records, store):
        records.enroll(1, "CS101")
        before = store.find_ledger(1).snapshot()

        with pytest.raises(BusinessRuleViolationError):
            records.enroll(1, "CS101")

        after = store.find_ledger(1).snapshot()
        assert [e.id for e in after] == [e.id for e in before]

    def test_concurrent_enrollment_single_winner(self, records):
        def attempt(_):
            try:
                records.enroll(1, "CS101")
                return "enrolled"
            except DuplicateEnrollmentError:
                return "duplicate"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(16)))

        assert outcomes.count("enrolled") == 1
        assert outcomes.count("duplicate") == 15
        assert len(records.active_enrollments(1)) == 1


# ============================================================================
# Drop
# ============================================================================


class TestDrop:
    def test_drop_is_soft_delete(self, records):
        records.enroll(1, "CS101")
        dropped = records.drop(1, "CS101")

        assert dropped.dropped
        fall = records.enrollments.student_enrollments(1, Semester.FALL)
        assert len(fall) == 1
        assert fall[0].dropped
        assert fall[0].grade is Grade.NOT_AWARDED
        assert fall[0].marks == -1.0
        assert records.active_enrollments(1) == []

    def test_drop_twice_raises_not_found(self, records, store):
        records.enroll(1, "CS101")
        records.drop(1, "CS101")
        before = store.find_ledger(1).snapshot()

        with pytest.raises(EnrollmentNotFoundError):
            records.drop(1, "CS101")

        after = store.find_ledger(1).snapshot()
        assert len(after) == len(before) == 1
        assert after[0].dropped
        assert after[0].updated_at == before[0].updated_at

    def test_drop_not_enrolled(self, records):
        with pytest.raises(EnrollmentNotFoundError):
            records.drop(1, "CS101")

    def test_drop_unknown_student(self, records):
        with pytest.raises(StudentNotFoundError):
            records.drop(42, "CS101")

    def test_deadline_exceeded(self, records, clock):
        records.enroll(1, "CS101")
        clock.advance(hours=169)
        with pytest.raises(DropDeadlineExceededError):
            records.drop(1, "CS101")
        assert len(records.active_enrollments(1)) == 1

    def test_deadline_boundary_allows_drop(self, records, clock):
        records.enroll(1, "CS101")
        clock.advance(hours=168, minutes=59)
        assert records.drop(1, "CS101").dropped

    def test_minimum_credit(self, strict_records):
        enroll_all(strict_records, 1, FULL_FALL_LOAD)

        strict_records.drop(1, "PH101")  # 15 - 3 = 12, at the floor
        with pytest.raises(MinimumCreditError):
            strict_records.drop(1, "CS101")  # 12 - 4 = 8

    def test_graded_enrollment_cannot_be_dropped(self, records):
        records.enroll(1, "CS101")
        records.assign_grade(1, "CS101", "B")
        with pytest.raises(GradeAlreadyAssignedError):
            records.drop(1, "CS101")

    def test_marks_assigned_blocks_drop(self, records):
        records.enroll(1, "CS101")
        records.assign_marks(1, "CS101", 40.0)
        with pytest.raises(GradeAlreadyAssignedError):
            records.drop(1, "CS101")

    def test_marks_reset_reopens_drop(self, records):
        records.enroll(1, "CS101")
        records.assign_marks(1, "CS101", 40.0)
        records.assign_marks(1, "CS101", -1)
        assert records.drop(1, "CS101").dropped


# ============================================================================
# Grades and marks
# ============================================================================


class TestGradesAndMarks:
    def test_assign_marks_round_trip(self, records):
        records.enroll(1, "CS101")
        assert records.assign_marks(1, "CS101", 75.0).grade is Grade.B
        assert records.assign_marks(1, "CS101", -1).grade is Grade.NOT_AWARDED

    def test_invalid_marks_no_mutation(self, records):
        records.enroll(1, "CS101")
        records.assign_marks(1, "CS101", 88.0)
        with pytest.raises(InvalidMarksError):
            records.assign_marks(1, "CS101", 150.0)

        enrollment = records.active_enrollments(1)[0]
        assert enrollment.marks == 88.0
        assert enrollment.grade is Grade.A

    def test_assign_grade_keeps_marks(self, records):
        records.enroll(1, "CS101")
        enrollment = records.assign_grade(1, "CS101", "s")
        assert enrollment.grade is Grade.S
        assert not enrollment.has_marks

    def test_invalid_grade(self, records):
        records.enroll(1, "CS101")
        with pytest.raises(InvalidGradeError):
            records.assign_grade(1, "CS101", "Q")

    def test_not_enrolled(self, records):
        with pytest.raises(EnrollmentNotFoundError):
            records.assign_marks(1, "CS101", 70.0)
        with pytest.raises(EnrollmentNotFoundError):
            records.assign_grade(1, "CS101", Grade.A)

    def test_dropped_enrollment_not_gradable(self, records):
        records.enroll(1, "CS101")
        records.drop(1, "CS101")
        with pytest.raises(EnrollmentNotFoundError):
            records.assign_grade(1, "CS101", Grade.A)

    def test_first_active_match_is_graded(self, records):
        records.enroll(1, "CS101", Semester.SPRING)
        records.enroll(1, "CS101", Semester.FALL)
        records.assign_grade(1, "CS101", Grade.A)

        spring = records.enrollments.student_enrollments(1, Semester.SPRING)
        fall = records.enrollments.student_enrollments(1, Semester.FALL)
        assert spring[0].grade is Grade.A
        assert fall[0].grade is Grade.NOT_AWARDED

    def test_returned_snapshot_is_detached(self, records):
        enrollment = records.enroll(1, "CS101")
        enrollment.set_grade(Grade.S)
        assert records.active_enrollments(1)[0].grade is Grade.NOT_AWARDED


class TestQueries:
    def test_active_enrollments_across_semesters(self, records):
        records.enroll(1, "CS101", Semester.FALL)
        records.enroll(1, "EN101", Semester.SPRING)
        records.enroll(1, "MA101", Semester.FALL)
        records.drop(1, "MA101")

        active = records.active_enrollments(1)
        assert [e.course_code for e in active] == ["CS101", "EN101"]
        assert not any(e.dropped for e in active)

    def test_student_enrollments_include_dropped(self, records):
        records.enroll(1, "CS101", Semester.FALL)
        records.enroll(1, "MA101", Semester.FALL)
        records.enroll(1, "EN101", Semester.SPRING)
        records.drop(1, "MA101")

        fall = records.student_enrollments(1, "fall")
        assert [(e.course_code, e.dropped) for e in fall] == [("CS101", False), ("MA101", True)]
        assert records.student_enrollments(1, Semester.SUMMER) == []

    def test_queries_return_snapshots(self, records):
        records.enroll(1, "CS101")
        records.active_enrollments(1)[0].drop()
        records.student_enrollments(1, Semester.FALL)[0].set_marks(80.0)

        current = records.active_enrollments(1)
        assert len(current) == 1
        assert current[0].marks == -1.0

    def test_unknown_student(self, records):
        with pytest.raises(StudentNotFoundError):
            records.active_enrollments(99)
        with pytest.raises(StudentNotFoundError):
            records.student_enrollments(99, Semester.FALL)

    def test_bad_semester(self, records):
        with pytest.raises(InvalidSemesterError):
            records.student_enrollments(1, "winter")


class TestInvariantMonitoring:
    def test_mutations_are_verified(self, records):
        records.enroll(1, "CS101")
        records.assign_marks(1, "CS101", 91.0)
        records.assign_grade(1, "CS101", Grade.A)

        stats = records.enrollments.monitor.get_statistics()
        assert stats["verification_count"] == 3
        assert stats["violation_count"] == 0

    def test_rejections_are_not_verified(self, records):
        with pytest.raises(CourseNotFoundError):
            records.enroll(1, "ZZ100")
        assert records.enrollments.monitor.verification_count == 0

    def test_counts_survive_concurrent_students(self, records, store):
        for index in range(5):
            store.add_student(f"Student {index}")
        student_ids = [ledger.student_id for ledger in store.all_ledgers()]

        def enroll_everywhere(student_id):
            for code in ("CS101", "MA101", "PH101"):
                records.enroll(student_id, code)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(enroll_everywhere, student_ids))

        stats = records.enrollments.monitor.get_statistics()
        assert stats["verification_count"] == 3 * len(student_ids)
        assert stats["violation_count"] == 0
