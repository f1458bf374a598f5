"""
Grade Scale

Fixed ten-point grading scale: numeric marks map to a letter grade, and each
grade carries an immutable grade point and marks band.
"""

from enum import Enum
from typing import NamedTuple

from ccrm.domain.exceptions import InvalidGradeError

UNASSIGNED_MARKS = -1.0
MIN_MARKS = 0.0
MAX_MARKS = 100.0


class GradeBand(NamedTuple):
    """Grade point and marks range for one grade."""

    grade_point: float
    description: str
    min_marks: float
    max_marks: float


class Grade(str, Enum):
    """Letter grade on the ten-point scale."""

    S = "S"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"
    NOT_AWARDED = "NA"

    @property
    def band(self) -> GradeBand:
        return _GRADE_BANDS[self]

    @property
    def grade_point(self) -> float:
        return self.band.grade_point

    @property
    def description(self) -> str:
        return self.band.description

    @property
    def counts_toward_gpa(self) -> bool:
        """Every grade except Not Awarded enters the GPA."""
        return self is not Grade.NOT_AWARDED

    @property
    def is_passing(self) -> bool:
        return self not in (Grade.F, Grade.NOT_AWARDED)

    @classmethod
    def from_marks(cls, marks: float) -> "Grade":
        """
        Convert numeric marks to a grade.

        Total over the reals: anything negative means "no marks yet" and maps
        to Not Awarded.
        """
        if marks >= 90.0:
            return cls.S
        if marks >= 80.0:
            return cls.A
        if marks >= 70.0:
            return cls.B
        if marks >= 60.0:
            return cls.C
        if marks >= 50.0:
            return cls.D
        if marks >= 0.0:
            return cls.F
        return cls.NOT_AWARDED

    @classmethod
    def parse(cls, value: "Grade | str") -> "Grade":
        """
        Parse a grade from user input ("a", " S ", "NA", "NOT_AWARDED").

        Raises:
            InvalidGradeError: If the value names no grade
        """
        if isinstance(value, Grade):
            return value
        if isinstance(value, str):
            text = value.strip().upper()
            if text in cls.__members__:
                return cls[text]
            try:
                return cls(text)
            except ValueError:
                pass
        raise InvalidGradeError(value)

    @property
    def label(self) -> str:
        return f"{self.value} ({self.grade_point:.1f})"


_GRADE_BANDS: dict[Grade, GradeBand] = {
    Grade.S: GradeBand(10.0, "Excellent", 90.0, 100.0),
    Grade.A: GradeBand(9.0, "Very Good", 80.0, 89.9),
    Grade.B: GradeBand(8.0, "Good", 70.0, 79.9),
    Grade.C: GradeBand(7.0, "Satisfactory", 60.0, 69.9),
    Grade.D: GradeBand(6.0, "Pass", 50.0, 59.9),
    Grade.F: GradeBand(0.0, "Fail", 0.0, 49.9),
    Grade.NOT_AWARDED: GradeBand(-1.0, "Not Awarded", -1.0, -1.0),
}


def is_valid_marks(marks: float) -> bool:
    """Marks must sit in [0, 100] or be exactly the unassigned sentinel."""
    return MIN_MARKS <= marks <= MAX_MARKS or marks == UNASSIGNED_MARKS
