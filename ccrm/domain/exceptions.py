"""
Rich Domain Exceptions

Exception hierarchy for the enrollment and academic record engine.
Every failure is an expected outcome for the caller: lookups, business rule
violations and input validation each have their own branch.
"""

from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for domain exceptions."""

    # Lookup failures
    STUDENT_NOT_FOUND = "STUDENT_NOT_FOUND"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    ENROLLMENT_NOT_FOUND = "ENROLLMENT_NOT_FOUND"

    # Business rule violations
    DUPLICATE_ENROLLMENT = "DUPLICATE_ENROLLMENT"
    CREDIT_LIMIT_EXCEEDED = "CREDIT_LIMIT_EXCEEDED"
    PREREQUISITE_NOT_MET = "PREREQUISITE_NOT_MET"
    DROP_DEADLINE_EXCEEDED = "DROP_DEADLINE_EXCEEDED"
    MINIMUM_CREDIT = "MINIMUM_CREDIT"
    GRADE_ALREADY_ASSIGNED = "GRADE_ALREADY_ASSIGNED"
    INACTIVE_STUDENT = "INACTIVE_STUDENT"
    INACTIVE_COURSE = "INACTIVE_COURSE"

    # Input validation
    INVALID_MARKS = "INVALID_MARKS"
    INVALID_GRADE = "INVALID_GRADE"
    INVALID_SEMESTER = "INVALID_SEMESTER"
    INVALID_REGISTRATION_DATE = "INVALID_REGISTRATION_DATE"
    INVALID_TRANSCRIPT_REQUEST = "INVALID_TRANSCRIPT_REQUEST"


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Provides structured error information with error codes and context.
    """

    log_level = "info"

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        context: dict[str, Any] | None = None,
    ):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            error_code: Standard error code
            context: Additional context data
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

        getattr(logger, self.log_level)(
            "Domain exception raised",
            error_code=error_code.value,
            message=message,
            context=self.context,
            exception_type=type(self).__name__,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for outer layers (CLI, exports)."""
        result = {
            "error": self.error_code.value,
            "message": self.message,
            "type": type(self).__name__,
        }
        if self.context:
            result["context"] = self.context
        return result


# ---------------------------------------------------------------------------
# Lookup failures
# ---------------------------------------------------------------------------


class EntityNotFoundError(DomainException):
    """Raised when a student, course or enrollment cannot be located."""

    def __init__(
        self,
        entity_type: str,
        entity_id: str | int | None,
        error_code: ErrorCode,
        message: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        message = message or f"{entity_type} not found"
        context = dict(context or {})
        context["entity_type"] = entity_type
        if entity_id is not None:
            message += f" (ID: {entity_id})"
            context["entity_id"] = str(entity_id)

        super().__init__(message=message, error_code=error_code, context=context)
        self.entity_type = entity_type
        self.entity_id = entity_id


class StudentNotFoundError(EntityNotFoundError):
    def __init__(self, student_id: int):
        super().__init__("Student", student_id, ErrorCode.STUDENT_NOT_FOUND)


class CourseNotFoundError(EntityNotFoundError):
    def __init__(self, course_code: str):
        super().__init__("Course", course_code, ErrorCode.COURSE_NOT_FOUND)


class EnrollmentNotFoundError(EntityNotFoundError):
    """Raised when a student has no active (non-dropped) enrollment in a course."""

    def __init__(self, student_id: int, course_code: str):
        super().__init__(
            "Enrollment",
            None,
            ErrorCode.ENROLLMENT_NOT_FOUND,
            message=f"Student {student_id} is not enrolled in {course_code}",
            context={"student_id": student_id, "course_code": course_code},
        )
        self.student_id = student_id
        self.course_code = course_code


# ---------------------------------------------------------------------------
# Business rule violations
# ---------------------------------------------------------------------------


class BusinessRuleViolationError(DomainException):
    """Raised when an enrollment rule rejects an operation."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        rule_name: str,
        context: dict[str, Any] | None = None,
    ):
        context = dict(context or {})
        context["rule_name"] = rule_name

        super().__init__(message=message, error_code=error_code, context=context)
        self.rule_name = rule_name


class InactiveStudentError(BusinessRuleViolationError):
    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.INACTIVE_STUDENT, "active_student", context)


class InactiveCourseError(BusinessRuleViolationError):
    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.INACTIVE_COURSE, "active_course", context)


class DuplicateEnrollmentError(BusinessRuleViolationError):
    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.DUPLICATE_ENROLLMENT, "no_duplicate_enrollment", context)


class CreditLimitExceededError(BusinessRuleViolationError):
    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CREDIT_LIMIT_EXCEEDED, "credit_limit", context)


class PrerequisiteNotMetError(BusinessRuleViolationError):
    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.PREREQUISITE_NOT_MET, "prerequisite_requirement", context)


class DropDeadlineExceededError(BusinessRuleViolationError):
    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.DROP_DEADLINE_EXCEEDED, "drop_deadline", context)


class MinimumCreditError(BusinessRuleViolationError):
    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.MINIMUM_CREDIT, "minimum_credit_load", context)


class GradeAlreadyAssignedError(BusinessRuleViolationError):
    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.GRADE_ALREADY_ASSIGNED, "grade_finality", context)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class ValidationError(DomainException):
    """Raised when caller input is rejected before any mutation."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        field: str | None = None,
        value: Any | None = None,
    ):
        context: dict[str, Any] = {}
        if field:
            context["field"] = field
        if value is not None:
            context["value"] = str(value)

        super().__init__(message=message, error_code=error_code, context=context)
        self.field = field
        self.value = value


class InvalidMarksError(ValidationError):
    def __init__(self, marks: float):
        super().__init__(
            "Marks must be between 0 and 100, or -1 for not assigned",
            ErrorCode.INVALID_MARKS,
            field="marks",
            value=marks,
        )


class InvalidGradeError(ValidationError):
    def __init__(self, grade: Any):
        super().__init__(
            f"Invalid grade: {grade!r}",
            ErrorCode.INVALID_GRADE,
            field="grade",
            value=grade,
        )


class InvalidSemesterError(ValidationError):
    def __init__(self, semester: Any):
        super().__init__(
            f"Invalid semester: {semester!r}",
            ErrorCode.INVALID_SEMESTER,
            field="semester",
            value=semester,
        )


class InvalidRegistrationDateError(ValidationError):
    def __init__(self, registration_date: Any):
        super().__init__(
            "Registration date cannot be in the future",
            ErrorCode.INVALID_REGISTRATION_DATE,
            field="registration_date",
            value=registration_date,
        )


class InvalidTranscriptRequestError(ValidationError):
    def __init__(self, message: str, field: str | None = None, value: Any | None = None):
        super().__init__(message, ErrorCode.INVALID_TRANSCRIPT_REQUEST, field=field, value=value)
