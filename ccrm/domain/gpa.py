"""
GPA Aggregation

Pure computations over enrollment lists. Semester and cumulative GPA share one
formula; only the input filter differs. Aggregation runs at full precision and
rounding happens once, for display.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ccrm.domain.enrollment import Enrollment
from ccrm.domain.entities import Semester


class AcademicStanding(str, Enum):
    """Qualitative label derived from cumulative GPA."""

    EXCELLENT = "Excellent"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    SATISFACTORY = "Satisfactory"
    PASS = "Pass"
    BELOW_STANDARD = "Below Standard"


_STANDING_THRESHOLDS: tuple[tuple[float, AcademicStanding], ...] = (
    (9.0, AcademicStanding.EXCELLENT),
    (8.0, AcademicStanding.VERY_GOOD),
    (7.0, AcademicStanding.GOOD),
    (6.0, AcademicStanding.SATISFACTORY),
    (5.0, AcademicStanding.PASS),
)


class GpaSummary(BaseModel):
    """Aggregate academic figures for a set of enrollments."""

    model_config = ConfigDict(frozen=True)

    credits_attempted: int = Field(..., ge=0)
    credits_earned: int = Field(..., ge=0)
    quality_points: float = Field(..., ge=0.0)
    gpa_credits: int = Field(..., ge=0)
    gpa: float = Field(..., ge=0.0, description="Full-precision GPA")
    standing: AcademicStanding

    @property
    def display_gpa(self) -> float:
        return round_gpa(self.gpa)


def gpa_eligible(enrollments: Iterable[Enrollment]) -> list[Enrollment]:
    """Non-dropped enrollments whose grade counts toward GPA."""
    return [e for e in enrollments if e.counts_toward_gpa()]


def compute_gpa(enrollments: Iterable[Enrollment]) -> float:
    """
    Credit-weighted GPA: Σ quality points / Σ GPA credits.

    Returns exactly 0.0 when no enrollment counts toward GPA.
    """
    eligible = gpa_eligible(enrollments)
    if not eligible:
        return 0.0
    credits = sum(e.gpa_credits() for e in eligible)
    if credits == 0:
        return 0.0
    return sum(e.quality_points() for e in eligible) / credits


def semester_gpa(enrollments: Iterable[Enrollment], semester: Semester) -> float:
    return compute_gpa(e for e in enrollments if e.semester is semester)


def credits_attempted(enrollments: Iterable[Enrollment]) -> int:
    return sum(e.course.credits for e in gpa_eligible(enrollments))


def credits_earned(enrollments: Iterable[Enrollment]) -> int:
    return sum(e.course.credits for e in enrollments if not e.dropped and e.grade.is_passing)


def round_gpa(gpa: float) -> float:
    """Round half-up to two decimal places for display."""
    return float(Decimal(repr(gpa)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def academic_standing(gpa: float) -> AcademicStanding:
    for threshold, standing in _STANDING_THRESHOLDS:
        if gpa >= threshold:
            return standing
    return AcademicStanding.BELOW_STANDARD


def summarize(enrollments: Iterable[Enrollment]) -> GpaSummary:
    """Build the full GPA summary for a set of enrollments."""
    records = list(enrollments)
    eligible = gpa_eligible(records)
    gpa = compute_gpa(eligible)
    return GpaSummary(
        credits_attempted=credits_attempted(records),
        credits_earned=credits_earned(records),
        quality_points=sum(e.quality_points() for e in eligible),
        gpa_credits=sum(e.gpa_credits() for e in eligible),
        gpa=gpa,
        standing=academic_standing(gpa),
    )
