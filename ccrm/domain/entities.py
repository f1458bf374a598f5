"""
Core Entities

Read-only course projection, the student record and the capability
interfaces the student implements.

Hierarchy:
AbstractEntity → Student / Enrollment (see ccrm.domain.enrollment)
"""

import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ccrm.domain.exceptions import InvalidRegistrationDateError, InvalidSemesterError

COURSE_CODE_PATTERN = re.compile(r"^[A-Z]{2,4}\d{3,4}$")
REG_NO_PATTERN = r"^R\d{7}$"
_TRAILING_DIGITS = re.compile(r"(\d+)$")


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class StudentStatus(str, Enum):
    """Student lifecycle status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    GRADUATED = "GRADUATED"


class Semester(str, Enum):
    """Academic term. Declaration order is the transcript display order."""

    SPRING = "SPRING"
    SUMMER = "SUMMER"
    FALL = "FALL"

    @classmethod
    def parse(cls, value: "Semester | str") -> "Semester":
        """
        Parse a semester from user input, ignoring case and whitespace.

        Raises:
            InvalidSemesterError: If the value names no semester
        """
        if isinstance(value, Semester):
            return value
        if isinstance(value, str):
            text = value.strip().upper()
            if text in cls.__members__:
                return cls[text]
        raise InvalidSemesterError(value)


class AbstractEntity(BaseModel, ABC):
    """
    Base entity class providing lifecycle timestamps.

    All mutable domain entities inherit from this class.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=False,
    )

    created_at: datetime = Field(default_factory=utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utcnow, description="Last update timestamp")

    @abstractmethod
    def validate_business_rules(self) -> bool:
        """
        Validate entity-specific business rules.

        Returns:
            bool: True if all business rules are satisfied

        Raises:
            ValidationError: If business rules are violated
        """

    def mark_updated(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = utcnow()


class Course(BaseModel):
    """
    Course as consumed by the enrollment engine.

    Immutable projection: the engine never owns course identity and never
    mutates a course.
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Course code, e.g. CS101")
    title: str = Field(..., min_length=1, max_length=100)
    credits: int = Field(..., ge=1, le=9, description="Credit hours")
    department: str = Field(default="General", min_length=1, max_length=50)
    semester: Semester = Field(default=Semester.FALL, description="Default offering semester")
    active: bool = Field(default=True)

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        """Course code must be 2-4 letters followed by 3-4 digits."""
        code = v.strip().upper()
        if not COURSE_CODE_PATTERN.match(code):
            raise ValueError(f"Invalid course code format: {v!r}")
        return code

    @property
    def level(self) -> int | None:
        """Numeric course level from the trailing digits of the code (CS305 -> 305)."""
        match = _TRAILING_DIGITS.search(self.code)
        return int(match.group(1)) if match else None


class Searchable(ABC):
    """Capability: free-text search over an entity's descriptive fields."""

    @abstractmethod
    def matches_search_term(self, term: str) -> bool:
        """Check if this entity matches the given search term."""

    def search_kind(self) -> str:
        """Kind of searchable entity, for result labelling."""
        return type(self).__name__

    @staticmethod
    def is_valid_search_term(term: str | None) -> bool:
        return term is not None and bool(term.strip())

    @staticmethod
    def normalize_search_term(term: str | None) -> str:
        if not Searchable.is_valid_search_term(term):
            return ""
        return term.strip().lower()

    @staticmethod
    def contains_ignore_case(text: str | None, term: str) -> bool:
        if text is None:
            return False
        return term.lower() in text.lower()


class StatusFilterable(ABC):
    """Capability: filtering an entity by its lifecycle status."""

    @abstractmethod
    def matches_status_filter(self, status: StudentStatus | None) -> bool:
        """Check if this entity passes the status filter (None passes all)."""

    def filter_description(self, status: StudentStatus | None) -> str:
        if status is None:
            return "No filter applied"
        return f"Filter: {status.value}"


class Student(AbstractEntity, Searchable, StatusFilterable):
    """
    Student record as seen by the enrollment engine.

    Only ACTIVE students may gain new enrollments.
    """

    id: int = Field(..., gt=0, description="Student ID")
    reg_no: str = Field(..., pattern=REG_NO_PATTERN, description="Registration number")
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str | None = Field(default=None)
    status: StudentStatus = Field(default=StudentStatus.ACTIVE)
    registration_date: date = Field(default_factory=lambda: utcnow().date())
    status_changed_at: datetime = Field(default_factory=utcnow)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        """Basic email validation."""
        if v is None:
            return v
        if "@" not in v or "." not in v:
            raise ValueError("Invalid email format")
        return v.lower()

    def validate_business_rules(self) -> bool:
        if self.registration_date > utcnow().date():
            raise InvalidRegistrationDateError(self.registration_date)
        return True

    @property
    def is_active(self) -> bool:
        return self.status is StudentStatus.ACTIVE

    def _change_status(self, status: StudentStatus) -> None:
        self.status = status
        self.status_changed_at = utcnow()
        self.mark_updated()

    def activate(self) -> None:
        self._change_status(StudentStatus.ACTIVE)

    def deactivate(self) -> None:
        self._change_status(StudentStatus.INACTIVE)

    def graduate(self) -> None:
        self._change_status(StudentStatus.GRADUATED)

    def matches_search_term(self, term: str) -> bool:
        if not self.is_valid_search_term(term):
            return False
        normalized = self.normalize_search_term(term)
        return any(
            self.contains_ignore_case(field, normalized)
            for field in (self.full_name, self.email, self.reg_no, self.status.value)
        )

    def matches_status_filter(self, status: StudentStatus | None) -> bool:
        return status is None or self.status is status

    def profile(self) -> str:
        """Multi-line profile block used as the transcript header."""
        lines = [
            "Student Profile:",
            f"ID: {self.id}",
            f"Reg No: {self.reg_no}",
            f"Name: {self.full_name}",
        ]
        if self.email:
            lines.append(f"Email: {self.email}")
        lines.append(f"Status: {self.status.value}")
        lines.append(f"Registered On: {self.registration_date.isoformat()}")
        return "\n".join(lines)
