"""
Student Academic Ledger

The ordered set of one student's enrollment records plus the student record.
The ledger exclusively owns its enrollments; mutations are serialized through
a per-student reentrant lock and readers receive detached snapshots.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from ccrm.domain.enrollment import Enrollment
from ccrm.domain.entities import Semester, Student


class StudentLedger:
    """
    A student's academic ledger.

    Insertion order of enrollments is preserved for display only.
    Records are never removed: drops are soft deletes on the record itself.
    """

    def __init__(self, student: Student, enrollments: list[Enrollment] | None = None):
        self.student = student
        self._enrollments: list[Enrollment] = list(enrollments or [])
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator["StudentLedger"]:
        """Hold the ledger lock for a check-then-mutate sequence."""
        with self._lock:
            yield self

    @property
    def student_id(self) -> int:
        return self.student.id

    def __len__(self) -> int:
        with self._lock:
            return len(self._enrollments)

    def append(self, enrollment: Enrollment) -> None:
        enrollment.validate_business_rules()
        with self._lock:
            self._enrollments.append(enrollment)

    def snapshot(self) -> tuple[Enrollment, ...]:
        """
        Copy-on-read view of every enrollment, dropped ones included.

        The returned records are detached; mutating them does not touch the ledger.
        """
        with self._lock:
            return tuple(e.snapshot() for e in self._enrollments)

    # Live lookups below return ledger-owned records. Callers must hold
    # locked() when they intend to mutate what they get back.

    def active_enrollments(self) -> list[Enrollment]:
        with self._lock:
            return [e for e in self._enrollments if not e.dropped]

    def find_active(self, course_code: str) -> Enrollment | None:
        """First non-dropped enrollment for a course, in any semester."""
        code = course_code.strip().upper()
        with self._lock:
            return next(
                (e for e in self._enrollments if not e.dropped and e.course_code == code),
                None,
            )

    def find_active_in_semester(self, course_code: str, semester: Semester) -> Enrollment | None:
        code = course_code.strip().upper()
        with self._lock:
            return next(
                (
                    e
                    for e in self._enrollments
                    if not e.dropped and e.course_code == code and e.semester is semester
                ),
                None,
            )

    def semester_credits(self, semester: Semester) -> int:
        """Sum of course credits over non-dropped enrollments in a semester."""
        with self._lock:
            return sum(
                e.course.credits
                for e in self._enrollments
                if not e.dropped and e.semester is semester
            )

    def has_passing_in_department(self, department: str) -> bool:
        with self._lock:
            return any(
                not e.dropped and e.grade.is_passing and e.course.department == department
                for e in self._enrollments
            )

    def __repr__(self) -> str:
        return f"StudentLedger(student_id={self.student.id}, enrollments={len(self)})"
