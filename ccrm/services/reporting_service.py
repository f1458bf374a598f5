"""
Reporting Service

Cross-student reports built on ledger snapshots: GPA ranking and the
distribution of awarded grades.
"""

from pydantic import BaseModel, ConfigDict

from ccrm.domain import gpa
from ccrm.domain.grading import Grade
from ccrm.services.directory import StudentDirectory

GRADE_POINT_BANDS: tuple[tuple[float, str], ...] = (
    (9.0, "9.0 - 10.0 (S/A)"),
    (8.0, "8.0 - 8.9 (B)"),
    (7.0, "7.0 - 7.9 (C)"),
    (6.0, "6.0 - 6.9 (D)"),
)
LOWEST_BAND = "Below 6.0 (F)"


class StudentRanking(BaseModel):
    """One row of the GPA ranking."""

    model_config = ConfigDict(frozen=True)

    rank: int
    student_id: int
    reg_no: str
    full_name: str
    gpa: float


def grade_point_band(grade: Grade) -> str:
    for threshold, label in GRADE_POINT_BANDS:
        if grade.grade_point >= threshold:
            return label
    return LOWEST_BAND


class ReportingService:
    """Read-only reports over every student in the directory."""

    def __init__(self, directory: StudentDirectory):
        self.directory = directory

    def top_students_by_gpa(self, limit: int = 5) -> list[StudentRanking]:
        """
        Students ordered by cumulative GPA, highest first.

        Ties are broken by ascending student id. GPA is rounded for display
        but ranking uses full precision.

        Args:
            limit: Maximum number of students returned

        Returns:
            Ranked students, at most ``limit`` long
        """
        if limit < 0:
            raise ValueError("limit must be non-negative")

        scored = []
        for ledger in self.directory.all_ledgers():
            student = ledger.student
            scored.append((gpa.compute_gpa(ledger.snapshot()), student))
        scored.sort(key=lambda item: (-item[0], item[1].id))

        return [
            StudentRanking(
                rank=position,
                student_id=student.id,
                reg_no=student.reg_no,
                full_name=student.full_name,
                gpa=gpa.round_gpa(value),
            )
            for position, (value, student) in enumerate(scored[:limit], start=1)
        ]

    def grade_distribution(self) -> dict[str, int]:
        """
        Count of awarded grades per grade-point band, across all students.

        Every band is present, highest first; dropped and Not Awarded
        enrollments are not counted.
        """
        counts = {label: 0 for _, label in GRADE_POINT_BANDS}
        counts[LOWEST_BAND] = 0

        for ledger in self.directory.all_ledgers():
            for enrollment in ledger.snapshot():
                if enrollment.dropped or not enrollment.is_graded:
                    continue
                counts[grade_point_band(enrollment.grade)] += 1
        return counts

    def render_grade_distribution(self) -> str:
        lines = ["Grade Point Range | Count", "------------------|-------"]
        for label, count in self.grade_distribution().items():
            lines.append(f"{label:<17} | {count}")
        return "\n".join(lines)
