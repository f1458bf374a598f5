"""
Grade scale tests: marks thresholds, grade points and parsing.
"""

import pytest

from ccrm.domain.exceptions import InvalidGradeError
from ccrm.domain.grading import UNASSIGNED_MARKS, Grade, is_valid_marks


class TestFromMarks:
    """Marks to grade conversion."""

    @pytest.mark.parametrize(
        "marks,expected",
        [
            (100.0, Grade.S),
            (90.0, Grade.S),
            (89.9, Grade.A),
            (80.0, Grade.A),
            (75.0, Grade.B),
            (70.0, Grade.B),
            (69.99, Grade.C),
            (60.0, Grade.C),
            (59.5, Grade.D),
            (50.0, Grade.D),
            (49.9, Grade.F),
            (0.0, Grade.F),
        ],
    )
    def test_thresholds(self, marks, expected):
        assert Grade.from_marks(marks) is expected

    def test_sentinel_is_not_awarded(self):
        assert Grade.from_marks(UNASSIGNED_MARKS) is Grade.NOT_AWARDED

    def test_any_negative_is_not_awarded(self):
        assert Grade.from_marks(-0.01) is Grade.NOT_AWARDED
        assert Grade.from_marks(-250) is Grade.NOT_AWARDED

    def test_every_valid_mark_gets_a_letter(self):
        letters = {Grade.S, Grade.A, Grade.B, Grade.C, Grade.D, Grade.F}
        for marks in range(0, 101):
            assert Grade.from_marks(float(marks)) in letters


class TestGradeProperties:
    def test_grade_points(self):
        assert [g.grade_point for g in Grade] == [10.0, 9.0, 8.0, 7.0, 6.0, 0.0, -1.0]

    def test_counts_toward_gpa(self):
        assert all(g.counts_toward_gpa for g in Grade if g is not Grade.NOT_AWARDED)
        assert not Grade.NOT_AWARDED.counts_toward_gpa

    def test_failing_grade_still_counts(self):
        assert Grade.F.counts_toward_gpa
        assert not Grade.F.is_passing

    def test_passing(self):
        assert Grade.D.is_passing
        assert not Grade.NOT_AWARDED.is_passing

    def test_label(self):
        assert Grade.S.label == "S (10.0)"
        assert Grade.NOT_AWARDED.label == "NA (-1.0)"

    def test_description(self):
        assert Grade.B.description == "Good"


class TestParse:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("a", Grade.A),
            (" S ", Grade.S),
            ("NA", Grade.NOT_AWARDED),
            ("not_awarded", Grade.NOT_AWARDED),
            (Grade.C, Grade.C),
        ],
    )
    def test_accepts(self, text, expected):
        assert Grade.parse(text) is expected

    @pytest.mark.parametrize("value", ["Z", "", "A+", 9])
    def test_rejects(self, value):
        with pytest.raises(InvalidGradeError):
            Grade.parse(value)


class TestMarksRange:
    @pytest.mark.parametrize("marks", [0.0, 55.5, 100.0, -1.0])
    def test_valid(self, marks):
        assert is_valid_marks(marks)

    @pytest.mark.parametrize("marks", [-0.5, -2.0, 100.01, 150.0])
    def test_invalid(self, marks):
        assert not is_valid_marks(marks)
