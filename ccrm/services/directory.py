"""
Student Directory & Course Catalog

Lookup contracts the enrollment engine consumes, plus an in-memory store
implementing both for single-process use.
"""

import threading
from datetime import date
from typing import Protocol

import structlog

from ccrm.domain.entities import Course, Student, StudentStatus, utcnow
from ccrm.domain.exceptions import StudentNotFoundError
from ccrm.domain.ledger import StudentLedger

logger = structlog.get_logger(__name__)

REG_NO_BASE = 2025000


class StudentDirectory(Protocol):
    """Student lookup by id."""

    def find_ledger(self, student_id: int) -> StudentLedger | None:
        ...

    def all_ledgers(self) -> list[StudentLedger]:
        ...


class CourseCatalog(Protocol):
    """Course lookup by code."""

    def find_course(self, code: str) -> Course | None:
        ...


class InMemoryRecordStore:
    """
    In-memory source of truth for students and courses.

    Each student is held inside its ledger so the ledger lock covers both the
    student record and its enrollments.
    """

    def __init__(self):
        """Initialize empty store."""
        self._ledgers: dict[int, StudentLedger] = {}
        self._courses: dict[str, Course] = {}
        self._next_student_id = 1
        self._lock = threading.RLock()

    def add_student(
        self,
        full_name: str,
        email: str | None = None,
        registration_date: date | None = None,
    ) -> Student:
        """
        Register a new student with the next sequential id.

        Args:
            full_name: Student's full name
            email: Contact email
            registration_date: Defaults to today (UTC)

        Returns:
            Student: Newly registered, active student

        Raises:
            InvalidRegistrationDateError: Registration date is in the future
        """
        with self._lock:
            student_id = self._next_student_id
            student = Student(
                id=student_id,
                reg_no=f"R{REG_NO_BASE + student_id}",
                full_name=full_name,
                email=email,
                registration_date=registration_date or utcnow().date(),
            )
            student.validate_business_rules()
            self._ledgers[student_id] = StudentLedger(student)
            self._next_student_id += 1

        logger.info("Student added", student_id=student.id, reg_no=student.reg_no)
        return student

    def add_course(self, course: Course) -> Course:
        with self._lock:
            self._courses[course.code] = course
        logger.info("Course added", course_code=course.code, credits=course.credits)
        return course

    def update_course(self, course: Course) -> Course:
        """
        Replace the stored projection for a course code.

        Existing enrollments keep the projection they were created with.
        """
        with self._lock:
            self._courses[course.code] = course
        logger.info("Course updated", course_code=course.code, active=course.active)
        return course

    def find_ledger(self, student_id: int) -> StudentLedger | None:
        with self._lock:
            return self._ledgers.get(student_id)

    def find_student(self, student_id: int) -> Student | None:
        """
        The ledger-owned student record.

        Treat it as read-only; status changes go through change_student_status.
        """
        ledger = self.find_ledger(student_id)
        return ledger.student if ledger is not None else None

    def find_course(self, code: str) -> Course | None:
        with self._lock:
            return self._courses.get(code.strip().upper())

    def all_ledgers(self) -> list[StudentLedger]:
        """Ledgers ordered by student id."""
        with self._lock:
            return [self._ledgers[k] for k in sorted(self._ledgers)]

    def all_courses(self) -> list[Course]:
        with self._lock:
            return sorted(self._courses.values(), key=lambda c: c.code)

    def search_students(self, term: str, status: StudentStatus | None = None) -> list[Student]:
        """
        Students whose name, email, registration number or status contains term.

        The records are ledger-owned; see find_student.

        Args:
            term: Case-insensitive search text; blank matches nothing
            status: Optional status filter

        Returns:
            Matching students ordered by id
        """
        return [
            ledger.student
            for ledger in self.all_ledgers()
            if ledger.student.matches_search_term(term)
            and ledger.student.matches_status_filter(status)
        ]

    def change_student_status(self, student_id: int, status: StudentStatus) -> Student:
        """
        Move a student to a new lifecycle status.

        Runs under the ledger lock, serialized with enrollment checks.

        Raises:
            StudentNotFoundError: Unknown student
        """
        ledger = self.find_ledger(student_id)
        if ledger is None:
            raise StudentNotFoundError(student_id)

        with ledger.locked():
            student = ledger.student
            previous = student.status
            if status is StudentStatus.ACTIVE:
                student.activate()
            elif status is StudentStatus.INACTIVE:
                student.deactivate()
            else:
                student.graduate()

        logger.info(
            "Student status changed",
            student_id=student_id,
            previous_status=previous.value,
            status=status.value,
        )
        return student
