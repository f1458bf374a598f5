"""
Runtime Verification: Ledger Invariants

Checks a student's ledger against the invariants the enrollment engine must
preserve:

1. No two non-dropped enrollments share (course, semester).
2. Marks are the -1 sentinel or lie in [0, 100].
3. A grade derived from marks agrees with the grade scale. Manual grade
   overrides are exempt.
4. Per-semester credits over non-dropped enrollments never exceed the maximum.
"""

import threading
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from ccrm.config import EnrollmentRules
from ccrm.domain.enrollment import Enrollment
from ccrm.domain.entities import Semester
from ccrm.domain.grading import Grade, is_valid_marks
from ccrm.domain.ledger import StudentLedger

logger = structlog.get_logger(__name__)


class InvariantViolationType(Enum):
    """Types of invariant violations."""

    DOUBLE_ENROLLMENT = "double_enrollment"
    MARKS_OUT_OF_RANGE = "marks_out_of_range"
    GRADE_MARKS_MISMATCH = "grade_marks_mismatch"
    CREDIT_LIMIT_EXCEEDED = "credit_limit_exceeded"


@dataclass
class InvariantViolation:
    """One detected violation."""

    type: InvariantViolationType
    student_id: int
    message: str
    details: dict[str, Any] = field(default_factory=dict)


def check_ledger(
    student_id: int, enrollments: tuple[Enrollment, ...], rules: EnrollmentRules
) -> list[InvariantViolation]:
    """
    Check one enrollment snapshot.

    Args:
        student_id: Owner of the snapshot (for reporting)
        enrollments: Snapshot of every enrollment, dropped included
        rules: Credit limits in force

    Returns:
        List of violations, empty when the ledger is consistent
    """
    violations: list[InvariantViolation] = []
    active = [e for e in enrollments if not e.dropped]

    pairs = Counter((e.course_code, e.semester) for e in active)
    for (course_code, semester), count in pairs.items():
        if count > 1:
            violations.append(
                InvariantViolation(
                    type=InvariantViolationType.DOUBLE_ENROLLMENT,
                    student_id=student_id,
                    message=(
                        f"Student {student_id} holds {count} active enrollments in "
                        f"{course_code} for {semester.value}"
                    ),
                    details={"course_code": course_code, "semester": semester.value},
                )
            )

    for e in enrollments:
        if not is_valid_marks(e.marks):
            violations.append(
                InvariantViolation(
                    type=InvariantViolationType.MARKS_OUT_OF_RANGE,
                    student_id=student_id,
                    message=f"Marks {e.marks} out of range for {e.course_code}",
                    details={"course_code": e.course_code, "marks": e.marks},
                )
            )
        elif e.grade_derived and e.grade is not Grade.from_marks(e.marks):
            violations.append(
                InvariantViolation(
                    type=InvariantViolationType.GRADE_MARKS_MISMATCH,
                    student_id=student_id,
                    message=(
                        f"{e.course_code} grade {e.grade.value} does not match marks {e.marks}"
                    ),
                    details={
                        "course_code": e.course_code,
                        "marks": e.marks,
                        "expected_grade": Grade.from_marks(e.marks).value,
                    },
                )
            )

    for semester in Semester:
        credits = sum(e.course.credits for e in active if e.semester is semester)
        if credits > rules.max_credits_per_semester:
            violations.append(
                InvariantViolation(
                    type=InvariantViolationType.CREDIT_LIMIT_EXCEEDED,
                    student_id=student_id,
                    message=(
                        f"{semester.value} credits {credits} exceed maximum "
                        f"{rules.max_credits_per_semester}"
                    ),
                    details={
                        "semester": semester.value,
                        "credits": credits,
                        "max_credits": rules.max_credits_per_semester,
                    },
                )
            )

    return violations


class InvariantMonitor:
    """
    Runtime monitor for ledger invariants.

    Records every check and every violation found.
    """

    def __init__(self, rules: EnrollmentRules):
        """Initialize monitor."""
        self.rules = rules
        self.violations: list[InvariantViolation] = []
        self.verification_count = 0
        self.violation_count = 0
        self._lock = threading.Lock()

    def verify(self, ledger: StudentLedger) -> list[InvariantViolation]:
        """
        Check a ledger and record the outcome.

        Returns:
            Violations found in this check
        """
        found = check_ledger(ledger.student_id, ledger.snapshot(), self.rules)

        with self._lock:
            self.verification_count += 1
            self.violations.extend(found)
            self.violation_count += len(found)

        for violation in found:
            logger.error(
                "Ledger invariant violated",
                student_id=violation.student_id,
                violation_type=violation.type.value,
                message=violation.message,
                details=violation.details,
            )
        return found

    def get_statistics(self) -> dict[str, Any]:
        with self._lock:
            return {
                "verification_count": self.verification_count,
                "violation_count": self.violation_count,
                "violations_by_type": dict(Counter(v.type.value for v in self.violations)),
            }

    def reset(self) -> None:
        with self._lock:
            self.violations.clear()
            self.verification_count = 0
            self.violation_count = 0


def assert_ledger_invariants(
    ledger: StudentLedger, rules: EnrollmentRules, raise_on_violation: bool = True
) -> bool:
    """
    Assert that a ledger satisfies every invariant.

    Args:
        ledger: Ledger to check
        rules: Credit limits in force
        raise_on_violation: Raise AssertionError instead of returning False

    Returns:
        True if the ledger is consistent

    Raises:
        AssertionError: If violated and raise_on_violation is True
    """
    violations = check_ledger(ledger.student_id, ledger.snapshot(), rules)
    if violations and raise_on_violation:
        raise AssertionError("; ".join(v.message for v in violations))
    return not violations
