"""
Reporting service tests: GPA ranking and grade distribution.
"""

import pytest

from ccrm.domain.grading import Grade
from ccrm.services.reporting_service import ReportingService, grade_point_band


@pytest.fixture
def reporting(store):
    return ReportingService(store)


@pytest.fixture
def ranked(records):
    records.enroll(1, "CS101")
    records.assign_grade(1, "CS101", Grade.A)   # 9.0
    records.enroll(2, "CS101")
    records.assign_grade(2, "CS101", Grade.S)   # 10.0
    records.enroll(3, "PH101")
    records.assign_grade(3, "PH101", Grade.S)   # 10.0, ties with student 2
    return records


class TestTopStudents:
    def test_order_and_tie_break(self, ranked, reporting):
        top = reporting.top_students_by_gpa(3)
        assert [r.student_id for r in top] == [2, 3, 1]
        assert [r.rank for r in top] == [1, 2, 3]
        assert top[0].gpa == 10.0
        assert top[0].reg_no == "R2025002"

    def test_limit(self, ranked, reporting):
        assert len(reporting.top_students_by_gpa(1)) == 1
        assert reporting.top_students_by_gpa(0) == []

    def test_students_without_grades_rank_last(self, records, reporting):
        records.enroll(3, "CS101")
        records.assign_marks(3, "CS101", 55.0)
        assert [r.student_id for r in reporting.top_students_by_gpa(5)] == [3, 1, 2]

    def test_negative_limit(self, reporting):
        with pytest.raises(ValueError):
            reporting.top_students_by_gpa(-1)


class TestGradeDistribution:
    @pytest.mark.parametrize(
        "grade,band",
        [
            (Grade.S, "9.0 - 10.0 (S/A)"),
            (Grade.A, "9.0 - 10.0 (S/A)"),
            (Grade.B, "8.0 - 8.9 (B)"),
            (Grade.C, "7.0 - 7.9 (C)"),
            (Grade.D, "6.0 - 6.9 (D)"),
            (Grade.F, "Below 6.0 (F)"),
        ],
    )
    def test_bands(self, grade, band):
        assert grade_point_band(grade) == band

    def test_counts(self, ranked, reporting):
        ranked.enroll(1, "PH101")
        ranked.assign_marks(1, "PH101", 20.0)
        ranked.enroll(2, "MA101")  # not awarded, not counted

        assert reporting.grade_distribution() == {
            "9.0 - 10.0 (S/A)": 3,
            "8.0 - 8.9 (B)": 0,
            "7.0 - 7.9 (C)": 0,
            "6.0 - 6.9 (D)": 0,
            "Below 6.0 (F)": 1,
        }

    def test_empty(self, reporting):
        assert sum(reporting.grade_distribution().values()) == 0

    def test_render(self, ranked, reporting):
        lines = reporting.render_grade_distribution().splitlines()
        assert lines[0] == "Grade Point Range | Count"
        assert lines[2] == "9.0 - 10.0 (S/A)  | 3"
