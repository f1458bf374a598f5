"""
Enrollment Record

One student-course-semester relationship. Holds marks, grade and the drop flag.
Course, semester and enrollment time are fixed at creation; dropping is a
soft delete so the record stays available for audit.
"""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import Field, field_validator

from ccrm.domain.entities import AbstractEntity, Course, Semester, utcnow
from ccrm.domain.exceptions import InvalidMarksError
from ccrm.domain.grading import UNASSIGNED_MARKS, Grade, is_valid_marks


class Enrollment(AbstractEntity):
    """
    Student enrollment in a course for one semester.

    States: enrolled → dropped (soft delete) or graded (grade is not
    Not Awarded). Graded is derived, not stored.
    """

    id: UUID = Field(default_factory=uuid4, frozen=True)
    course: Course = Field(..., frozen=True, description="Read-only course projection")
    semester: Semester = Field(..., frozen=True)
    enrolled_at: datetime = Field(default_factory=utcnow, frozen=True)

    marks: float = Field(default=UNASSIGNED_MARKS, description="Marks out of 100, -1 if unassigned")
    grade: Grade = Field(default=Grade.NOT_AWARDED)
    dropped: bool = Field(default=False)
    grade_derived: bool = Field(default=False, description="Grade was computed from marks")

    @field_validator("marks")
    @classmethod
    def validate_marks(cls, v: float) -> float:
        if not is_valid_marks(v):
            raise ValueError("Marks must be between 0 and 100, or -1 for not assigned")
        return v

    @classmethod
    def create(
        cls,
        course: Course,
        semester: Semester | None = None,
        enrolled_at: datetime | None = None,
    ) -> "Enrollment":
        """
        Create a fresh enrollment with no marks and no grade.

        Args:
            course: Course being taken (required)
            semester: Enrollment semester, defaults to the course's semester
            enrolled_at: Enrollment time, defaults to now

        Returns:
            Enrollment: New, non-dropped enrollment
        """
        if course is None:
            raise ValueError("Enrollment requires a course")
        return cls(
            course=course,
            semester=semester or course.semester,
            enrolled_at=enrolled_at or utcnow(),
        )

    def validate_business_rules(self) -> bool:
        if not is_valid_marks(self.marks):
            raise InvalidMarksError(self.marks)
        return True

    @property
    def course_code(self) -> str:
        return self.course.code

    @property
    def has_marks(self) -> bool:
        return self.marks != UNASSIGNED_MARKS

    @property
    def is_graded(self) -> bool:
        return self.grade is not Grade.NOT_AWARDED

    @property
    def is_active(self) -> bool:
        return not self.dropped

    def set_marks(self, marks: float) -> None:
        """
        Record numeric marks and derive the grade from them.

        Raises:
            InvalidMarksError: If marks are outside [0, 100] and not the -1 sentinel
        """
        if not is_valid_marks(marks):
            raise InvalidMarksError(marks)
        self.marks = float(marks)
        self.grade = Grade.from_marks(marks)
        self.grade_derived = True
        self.mark_updated()

    def set_grade(self, grade: Grade) -> None:
        """Override the grade directly, leaving marks untouched."""
        self.grade = grade
        self.grade_derived = False
        self.mark_updated()

    def drop(self) -> None:
        self.dropped = True
        self.mark_updated()

    def undrop(self) -> None:
        self.dropped = False
        self.mark_updated()

    def counts_toward_gpa(self) -> bool:
        return not self.dropped and self.grade.counts_toward_gpa

    def quality_points(self) -> float:
        """Grade point × credits, or 0 when dropped or not awarded."""
        if not self.counts_toward_gpa():
            return 0.0
        return self.grade.grade_point * self.course.credits

    def gpa_credits(self) -> int:
        """Credits in the GPA denominator, or 0 when dropped or not awarded."""
        if not self.counts_toward_gpa():
            return 0
        return self.course.credits

    def hours_since_enrollment(self, now: datetime) -> int:
        """Whole hours elapsed since enrollment (truncated)."""
        return int((now - self.enrolled_at).total_seconds() // 3600)

    def snapshot(self) -> "Enrollment":
        """Detached copy for readers; the course projection is shared (frozen)."""
        return self.model_copy()

    def __str__(self) -> str:
        status = " (DROPPED)" if self.dropped else ""
        marks_info = f" [{self.marks:.1f}%]" if self.has_marks else ""
        return (
            f"Enrollment[Course={self.course_code}, Grade={self.grade.label}{marks_info}, "
            f"Semester={self.semester.value}{status}]"
        )
