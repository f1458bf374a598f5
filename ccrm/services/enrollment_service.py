"""
Enrollment Service

Enrollment rule engine: validates and performs enroll, drop, grade and marks
operations against the configured business rules. Holds no persistent state;
it works on ledgers and courses supplied by its collaborators.
"""

from collections.abc import Callable
from datetime import datetime

import structlog

from ccrm.config import EnrollmentRules
from ccrm.domain.enrollment import Enrollment
from ccrm.domain.entities import Course, Semester, utcnow
from ccrm.domain.exceptions import (
    CourseNotFoundError,
    EnrollmentNotFoundError,
    StudentNotFoundError,
)
from ccrm.domain.grading import Grade
from ccrm.domain.ledger import StudentLedger
from ccrm.domain.policies import (
    PolicyContext,
    PolicyEngine,
    create_drop_policy_engine,
    create_enrollment_policy_engine,
)
from ccrm.services.directory import CourseCatalog, StudentDirectory
from ccrm.verification.ledger_invariants import InvariantMonitor

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


class EnrollmentService:
    """
    Service orchestrating enrollment with policy enforcement.

    Every mutation runs check-then-mutate under the student's ledger lock, so
    a rejected operation leaves the ledger untouched and no two operations on
    the same student interleave. Callers receive detached snapshots.
    """

    def __init__(
        self,
        directory: StudentDirectory,
        catalog: CourseCatalog,
        rules: EnrollmentRules,
        clock: Clock | None = None,
        enrollment_policies: PolicyEngine | None = None,
        drop_policies: PolicyEngine | None = None,
        monitor: InvariantMonitor | None = None,
    ):
        """
        Initialize enrollment service.

        Args:
            directory: Student lookup
            catalog: Course lookup
            rules: Credit limits and drop deadline
            clock: Current-time source, defaults to UTC now
            enrollment_policies: Engine guarding enroll
            drop_policies: Engine guarding drop
            monitor: Invariant monitor run after every mutation, if given
        """
        self.directory = directory
        self.catalog = catalog
        self.rules = rules
        self.clock = clock or utcnow
        self.enrollment_policies = enrollment_policies or create_enrollment_policy_engine()
        self.drop_policies = drop_policies or create_drop_policy_engine()
        self.monitor = monitor

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get_ledger(self, student_id: int) -> StudentLedger:
        ledger = self.directory.find_ledger(student_id)
        if ledger is None:
            raise StudentNotFoundError(student_id)
        return ledger

    def _get_course(self, course_code: str) -> Course:
        course = self.catalog.find_course(course_code)
        if course is None:
            raise CourseNotFoundError(course_code)
        return course

    def _get_active_enrollment(self, ledger: StudentLedger, course_code: str) -> Enrollment:
        """First non-dropped enrollment for the course; caller holds the ledger lock."""
        enrollment = ledger.find_active(course_code)
        if enrollment is None:
            raise EnrollmentNotFoundError(ledger.student_id, course_code)
        return enrollment

    def _verify(self, ledger: StudentLedger) -> None:
        if self.monitor is not None:
            self.monitor.verify(ledger)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def enroll(
        self,
        student_id: int,
        course_code: str,
        semester: Semester | str | None = None,
    ) -> Enrollment:
        """
        Enroll a student in a course.

        Process:
        1. Look up student and course
        2. Resolve the semester (given, or the course's default)
        3. Run enrollment policies in priority order
        4. Append a fresh enrollment to the ledger

        Args:
            student_id: Student ID
            course_code: Course code
            semester: Enrollment semester, defaults to the course's semester

        Returns:
            Enrollment: Snapshot of the new enrollment

        Raises:
            StudentNotFoundError: Unknown student
            CourseNotFoundError: Unknown course
            InvalidSemesterError: Unparseable semester
            BusinessRuleViolationError: A policy rejected the enrollment
        """
        ledger = self._get_ledger(student_id)
        course = self._get_course(course_code)
        effective_semester = course.semester if semester is None else Semester.parse(semester)

        with ledger.locked():
            now = self.clock()
            context = PolicyContext(
                student=ledger.student,
                course=course,
                semester=effective_semester,
                ledger=ledger,
                rules=self.rules,
                now=now,
            )
            self.enrollment_policies.enforce(context)

            enrollment = Enrollment.create(course, effective_semester, enrolled_at=now)
            ledger.append(enrollment)
            self._verify(ledger)
            result = enrollment.snapshot()

        logger.info(
            "Student enrolled",
            student_id=student_id,
            course_code=course.code,
            semester=effective_semester.value,
            enrollment_id=str(result.id),
        )
        return result

    def drop(self, student_id: int, course_code: str) -> Enrollment:
        """
        Drop a student's active enrollment in a course.

        The record is kept and flagged as dropped. An already-dropped
        enrollment is not found, so dropping twice raises.

        Raises:
            StudentNotFoundError: Unknown student
            EnrollmentNotFoundError: No active enrollment for the course
            BusinessRuleViolationError: A drop policy rejected the drop
        """
        ledger = self._get_ledger(student_id)

        with ledger.locked():
            enrollment = self._get_active_enrollment(ledger, course_code)
            context = PolicyContext(
                student=ledger.student,
                course=enrollment.course,
                semester=enrollment.semester,
                ledger=ledger,
                rules=self.rules,
                now=self.clock(),
                enrollment=enrollment,
            )
            self.drop_policies.enforce(context)

            enrollment.drop()
            self._verify(ledger)
            result = enrollment.snapshot()

        logger.info(
            "Enrollment dropped",
            student_id=student_id,
            course_code=result.course_code,
            semester=result.semester.value,
        )
        return result

    def assign_grade(self, student_id: int, course_code: str, grade: Grade | str) -> Enrollment:
        """
        Set a grade directly, without numeric marks.

        Raises:
            InvalidGradeError: Unknown grade value
            EnrollmentNotFoundError: No active enrollment for the course
        """
        parsed = Grade.parse(grade)
        ledger = self._get_ledger(student_id)

        with ledger.locked():
            enrollment = self._get_active_enrollment(ledger, course_code)
            enrollment.set_grade(parsed)
            self._verify(ledger)
            result = enrollment.snapshot()

        logger.info(
            "Grade assigned",
            student_id=student_id,
            course_code=result.course_code,
            grade=parsed.value,
        )
        return result

    def assign_marks(self, student_id: int, course_code: str, marks: float) -> Enrollment:
        """
        Record numeric marks; the grade is recomputed from them.

        Raises:
            InvalidMarksError: Marks outside [0, 100] and not -1
            EnrollmentNotFoundError: No active enrollment for the course
        """
        ledger = self._get_ledger(student_id)

        with ledger.locked():
            enrollment = self._get_active_enrollment(ledger, course_code)
            enrollment.set_marks(marks)
            self._verify(ledger)
            result = enrollment.snapshot()

        logger.info(
            "Marks assigned",
            student_id=student_id,
            course_code=result.course_code,
            marks=result.marks,
            grade=result.grade.value,
        )
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def student_enrollments(
        self, student_id: int, semester: Semester | str
    ) -> list[Enrollment]:
        """All enrollments in a semester, dropped included, as snapshots."""
        target = Semester.parse(semester)
        ledger = self._get_ledger(student_id)
        return [e for e in ledger.snapshot() if e.semester is target]

    def active_enrollments(self, student_id: int) -> list[Enrollment]:
        ledger = self._get_ledger(student_id)
        return [e for e in ledger.snapshot() if not e.dropped]
