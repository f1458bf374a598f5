"""
Policy Engine & Enrollment Policies

Strategy pattern for pluggable enrollment and drop rules. Policies run in
priority order and stop at the first rejection, so the order of checks (and
therefore which error the caller sees) is fixed by priority.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, ClassVar

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ccrm.config import EnrollmentRules
from ccrm.domain.enrollment import Enrollment
from ccrm.domain.entities import Course, Semester, Student
from ccrm.domain.exceptions import (
    BusinessRuleViolationError,
    CreditLimitExceededError,
    DropDeadlineExceededError,
    DuplicateEnrollmentError,
    GradeAlreadyAssignedError,
    InactiveCourseError,
    InactiveStudentError,
    MinimumCreditError,
    PrerequisiteNotMetError,
)
from ccrm.domain.ledger import StudentLedger

logger = structlog.get_logger(__name__)

ADVANCED_COURSE_LEVEL = 300


class PolicyResult(BaseModel):
    """Result of policy evaluation."""

    model_config = ConfigDict(frozen=True)

    allowed: bool = Field(..., description="Whether action is allowed")
    reason: str = Field(..., description="Human-readable reason")
    violated_rules: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class PolicyContext(BaseModel):
    """
    Everything a policy may look at.

    ``enrollment`` is set for drop evaluation only. The ledger is read under
    the caller's lock.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    student: Student
    course: Course
    semester: Semester
    ledger: StudentLedger
    rules: EnrollmentRules
    now: datetime
    enrollment: Enrollment | None = None


class EnrollmentPolicy(ABC):
    """
    Abstract base class for enrollment rules (Strategy pattern).

    Each concrete policy implements one rule and names the error raised
    when it rejects.
    """

    violation: ClassVar[type[BusinessRuleViolationError]]

    def __init__(self, name: str, priority: int = 0):
        """
        Initialize policy.

        Args:
            name: Policy identifier
            priority: Execution priority (higher = earlier)
        """
        self.name = name
        self.priority = priority

    @abstractmethod
    def evaluate(self, context: PolicyContext) -> PolicyResult:
        """
        Evaluate if the operation is allowed.

        Args:
            context: Student, course, ledger and rule limits

        Returns:
            PolicyResult: Evaluation result
        """

    def reject(self, result: PolicyResult) -> BusinessRuleViolationError:
        """Build the typed error for a rejected result."""
        return self.violation(result.reason, context=result.metadata)

    def __lt__(self, other: "EnrollmentPolicy") -> bool:
        """Compare policies by priority for sorting."""
        return self.priority > other.priority  # Higher priority first


# ---------------------------------------------------------------------------
# Enrollment policies
# ---------------------------------------------------------------------------


class ActiveStudentPolicy(EnrollmentPolicy):
    """Only active students may gain enrollments."""

    violation = InactiveStudentError

    def __init__(self, priority: int = 100):
        super().__init__("active_student", priority)

    def evaluate(self, context: PolicyContext) -> PolicyResult:
        status = context.student.status
        if not context.student.is_active:
            return PolicyResult(
                allowed=False,
                reason="Cannot enroll inactive or graduated student",
                violated_rules=["active_student"],
                metadata={"student_id": context.student.id, "status": status.value},
            )
        return PolicyResult(allowed=True, reason="Student is active")


class ActiveCoursePolicy(EnrollmentPolicy):
    violation = InactiveCourseError

    def __init__(self, priority: int = 95):
        super().__init__("active_course", priority)

    def evaluate(self, context: PolicyContext) -> PolicyResult:
        if not context.course.active:
            return PolicyResult(
                allowed=False,
                reason=f"Cannot enroll in inactive course {context.course.code}",
                violated_rules=["active_course"],
                metadata={"course_code": context.course.code},
            )
        return PolicyResult(allowed=True, reason="Course is active")


class DuplicateEnrollmentPolicy(EnrollmentPolicy):
    """
    Prevents a second active enrollment in the same course and semester.

    Dropped enrollments do not count, so re-enrolling after a drop is allowed.
    """

    violation = DuplicateEnrollmentError

    def __init__(self, priority: int = 90):
        super().__init__("no_duplicate_enrollment", priority)

    def evaluate(self, context: PolicyContext) -> PolicyResult:
        existing = context.ledger.find_active_in_semester(context.course.code, context.semester)
        if existing is not None:
            return PolicyResult(
                allowed=False,
                reason="Student is already enrolled in this course for this semester",
                violated_rules=["no_duplicate_enrollment"],
                metadata={
                    "course_code": context.course.code,
                    "semester": context.semester.value,
                },
            )
        return PolicyResult(allowed=True, reason="No existing enrollment")


class CreditLimitPolicy(EnrollmentPolicy):
    """
    Policy that enforces credit hour limits per semester.

    Prevents students from overloading their schedule.
    """

    violation = CreditLimitExceededError

    def __init__(self, priority: int = 80):
        super().__init__("credit_limit", priority)

    def evaluate(self, context: PolicyContext) -> PolicyResult:
        max_credits = context.rules.max_credits_per_semester
        current_credits = context.ledger.semester_credits(context.semester)
        total_credits = current_credits + context.course.credits

        if total_credits > max_credits:
            return PolicyResult(
                allowed=False,
                reason=(
                    f"Enrollment exceeds max credit limit. Current: {current_credits}, "
                    f"Adding: {context.course.credits}, Max: {max_credits}"
                ),
                violated_rules=["credit_limit"],
                metadata={
                    "max_credits": max_credits,
                    "current_credits": current_credits,
                    "course_credits": context.course.credits,
                    "total_credits": total_credits,
                },
            )

        return PolicyResult(
            allowed=True,
            reason=f"Within credit limit ({total_credits}/{max_credits})",
            metadata={"total_credits": total_credits},
        )


class PrerequisitePolicy(EnrollmentPolicy):
    """
    Placeholder prerequisite gate.

    There is no prerequisite catalog: a course at level 300 or above only
    requires a passing, non-dropped enrollment in the same department.
    Codes without trailing digits are treated as introductory.
    """

    violation = PrerequisiteNotMetError

    def __init__(self, priority: int = 70, advanced_level: int = ADVANCED_COURSE_LEVEL):
        super().__init__("prerequisite_requirement", priority)
        self.advanced_level = advanced_level

    def evaluate(self, context: PolicyContext) -> PolicyResult:
        level = context.course.level
        if level is None or level < self.advanced_level:
            return PolicyResult(allowed=True, reason="No prerequisites required")

        department = context.course.department
        if not context.ledger.has_passing_in_department(department):
            return PolicyResult(
                allowed=False,
                reason=f"Prerequisites not met for course: {context.course.code}",
                violated_rules=["prerequisite_requirement"],
                metadata={
                    "course_code": context.course.code,
                    "course_level": level,
                    "department": department,
                },
            )

        return PolicyResult(
            allowed=True,
            reason=f"Passing course found in {department}",
            metadata={"course_level": level},
        )


# ---------------------------------------------------------------------------
# Drop policies
# ---------------------------------------------------------------------------


class DropDeadlinePolicy(EnrollmentPolicy):
    """Drops are allowed only within the configured window after enrolling."""

    violation = DropDeadlineExceededError

    def __init__(self, priority: int = 100):
        super().__init__("drop_deadline", priority)

    def evaluate(self, context: PolicyContext) -> PolicyResult:
        enrollment = context.enrollment
        if enrollment is None:
            raise ValueError("Drop policies require an enrollment in context")

        deadline = context.rules.drop_deadline_hours
        hours_enrolled = enrollment.hours_since_enrollment(context.now)
        if hours_enrolled > deadline:
            return PolicyResult(
                allowed=False,
                reason="Cannot drop course after enrollment deadline",
                violated_rules=["drop_deadline"],
                metadata={
                    "course_code": enrollment.course_code,
                    "hours_enrolled": hours_enrolled,
                    "deadline_hours": deadline,
                },
            )
        return PolicyResult(
            allowed=True,
            reason=f"Within drop window ({hours_enrolled}/{deadline} hours)",
        )


class MinimumCreditPolicy(EnrollmentPolicy):
    violation = MinimumCreditError

    def __init__(self, priority: int = 90):
        super().__init__("minimum_credit_load", priority)

    def evaluate(self, context: PolicyContext) -> PolicyResult:
        enrollment = context.enrollment
        if enrollment is None:
            raise ValueError("Drop policies require an enrollment in context")

        min_credits = context.rules.min_credits_per_semester
        credits_after_drop = (
            context.ledger.semester_credits(enrollment.semester) - enrollment.course.credits
        )
        if credits_after_drop < min_credits:
            return PolicyResult(
                allowed=False,
                reason=(
                    f"Cannot drop course. Would result in {credits_after_drop} credits, "
                    f"below minimum of {min_credits}"
                ),
                violated_rules=["minimum_credit_load"],
                metadata={
                    "credits_after_drop": credits_after_drop,
                    "min_credits": min_credits,
                    "semester": enrollment.semester.value,
                },
            )
        return PolicyResult(allowed=True, reason="Minimum credit load preserved")


class GradeFinalityPolicy(EnrollmentPolicy):
    """A graded enrollment can no longer be dropped."""

    violation = GradeAlreadyAssignedError

    def __init__(self, priority: int = 80):
        super().__init__("grade_finality", priority)

    def evaluate(self, context: PolicyContext) -> PolicyResult:
        enrollment = context.enrollment
        if enrollment is None:
            raise ValueError("Drop policies require an enrollment in context")

        if enrollment.is_graded:
            return PolicyResult(
                allowed=False,
                reason="Cannot drop course after grade has been assigned",
                violated_rules=["grade_finality"],
                metadata={
                    "course_code": enrollment.course_code,
                    "grade": enrollment.grade.value,
                },
            )
        return PolicyResult(allowed=True, reason="No grade assigned yet")


class PolicyEngine:
    """
    Policy evaluation engine that coordinates multiple policies.

    Executes policies in priority order and stops at the first rejection.
    """

    def __init__(self, name: str = "default"):
        """Initialize policy engine."""
        self.name = name
        self.policies: list[EnrollmentPolicy] = []

    def register_policy(self, policy: EnrollmentPolicy) -> None:
        """
        Register a policy with the engine.

        Args:
            policy: Policy to register
        """
        self.policies.append(policy)
        self.policies.sort()  # Sort by priority
        logger.debug(
            "Policy registered", engine=self.name, policy_name=policy.name, priority=policy.priority
        )

    def unregister_policy(self, policy_name: str) -> bool:
        """
        Unregister a policy.

        Args:
            policy_name: Name of policy to remove

        Returns:
            bool: True if policy was found and removed
        """
        initial_count = len(self.policies)
        self.policies = [p for p in self.policies if p.name != policy_name]
        return len(self.policies) < initial_count

    def evaluate_all(self, context: PolicyContext) -> tuple[bool, list[PolicyResult]]:
        """
        Evaluate registered policies, stopping at the first rejection.

        Returns:
            Tuple of (all_allowed, list of results evaluated so far)
        """
        results: list[PolicyResult] = []

        for policy in self.policies:
            result = policy.evaluate(context)
            results.append(result)
            if not result.allowed:
                return False, results

        return True, results

    def enforce(self, context: PolicyContext) -> list[PolicyResult]:
        """
        Evaluate all policies and raise the first rejecting policy's error.

        Raises:
            BusinessRuleViolationError: Subclass chosen by the rejecting policy
        """
        allowed, results = self.evaluate_all(context)
        if not allowed:
            # evaluate_all stops at the rejecting policy
            policy = self.policies[len(results) - 1]
            failed = results[-1]
            logger.info(
                "Policy evaluation failed",
                engine=self.name,
                policy=policy.name,
                student_id=context.student.id,
                course_code=context.course.code,
                reason=failed.reason,
            )
            raise policy.reject(failed)

        return results

    def get_registered_policies(self) -> list[str]:
        """Get list of registered policy names."""
        return [p.name for p in self.policies]


def create_enrollment_policy_engine() -> PolicyEngine:
    """
    Create the engine guarding enrollment.

    Order: active student, active course, duplicate, credit limit, prerequisite.
    """
    engine = PolicyEngine("enrollment")
    engine.register_policy(ActiveStudentPolicy(priority=100))
    engine.register_policy(ActiveCoursePolicy(priority=95))
    engine.register_policy(DuplicateEnrollmentPolicy(priority=90))
    engine.register_policy(CreditLimitPolicy(priority=80))
    engine.register_policy(PrerequisitePolicy(priority=70))
    return engine


def create_drop_policy_engine() -> PolicyEngine:
    """
    Create the engine guarding drops.

    Order: drop deadline, minimum credit load, grade finality.
    """
    engine = PolicyEngine("drop")
    engine.register_policy(DropDeadlinePolicy(priority=100))
    engine.register_policy(MinimumCreditPolicy(priority=90))
    engine.register_policy(GradeFinalityPolicy(priority=80))
    return engine
