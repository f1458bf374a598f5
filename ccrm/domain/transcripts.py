"""
Transcript Generation

One Transcript type parameterized by variant (official, unofficial,
semester-scoped). All variants share the same report body renderer and differ
only in framing text. Output is plain text or JSON.
"""

import json
from collections.abc import Callable, Sequence
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import structlog
from pydantic import BaseModel, Field

from ccrm.domain import gpa
from ccrm.domain.enrollment import Enrollment
from ccrm.domain.entities import Semester, Student, utcnow
from ccrm.domain.exceptions import InvalidTranscriptRequestError

logger = structlog.get_logger(__name__)

TITLE_WIDTH = 30
BODY_RULE = "=" * 60
TABLE_RULE = "-" * 70
SEMESTER_RULE = "=" * 50
NO_ENROLLMENTS_TEXT = "No enrollments found for this semester."


class TranscriptVariant(str, Enum):
    """Transcript audience and framing."""

    OFFICIAL = "official"
    UNOFFICIAL = "unofficial"
    SEMESTER = "semester"


class TranscriptFormat(str, Enum):
    """Supported transcript output formats."""

    TEXT = "text"
    JSON = "json"


class TranscriptMetadata(BaseModel):
    """Transcript metadata."""

    transcript_id: UUID = Field(..., description="Unique transcript ID")
    variant: TranscriptVariant
    title: str
    student_id: int
    semester: Semester | None = None
    issued_on: date
    generated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Shared body rendering
# ---------------------------------------------------------------------------


def truncate(text: str, max_length: int = TITLE_WIDTH) -> str:
    """Shorten text to max_length, ending in an ellipsis when cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def format_marks(enrollment: Enrollment) -> str:
    return f"{enrollment.marks:.1f}" if enrollment.has_marks else "N/A"


def group_by_semester(enrollments: Sequence[Enrollment]) -> dict[Semester, list[Enrollment]]:
    """
    Non-dropped enrollments grouped by semester in fixed semester order.

    Semesters without enrollments are left out.
    """
    grouped: dict[Semester, list[Enrollment]] = {}
    for semester in Semester:
        members = [e for e in enrollments if not e.dropped and e.semester is semester]
        if members:
            grouped[semester] = members
    return grouped


def render_semester_section(semester: Semester, enrollments: Sequence[Enrollment]) -> str:
    lines = [
        "",
        f"--- {semester.value} SEMESTER ---",
        f"{'Course Code':<12} | {'Course Title':<30} | {'Credits':<7} | {'Marks':<8} | {'Grade':<5}",
        TABLE_RULE,
    ]
    for e in enrollments:
        lines.append(
            f"{e.course.code:<12} | {truncate(e.course.title):<30} | "
            f"{e.course.credits:<7d} | {format_marks(e):<8} | {e.grade.value:<5}"
        )
    lines.append(TABLE_RULE)

    semester_credits = sum(e.gpa_credits() for e in enrollments)
    semester_gpa = gpa.round_gpa(gpa.compute_gpa(enrollments))
    lines.append(f"Semester Credits: {semester_credits} | Semester GPA: {semester_gpa:.2f}")
    lines.append("")
    return "\n".join(lines) + "\n"


def render_summary_section(enrollments: Sequence[Enrollment]) -> str:
    summary = gpa.summarize(enrollments)
    lines = [
        "",
        "--- ACADEMIC SUMMARY ---",
        f"Total Credits Attempted: {summary.credits_attempted}",
        f"Total Credits Earned: {summary.credits_earned}",
        f"Cumulative GPA: {summary.display_gpa:.2f}",
        f"Academic Standing: {summary.standing.value}",
    ]
    return "\n".join(lines) + "\n"


def render_report_body(student: Student, enrollments: Sequence[Enrollment]) -> str:
    """Profile, per-semester course listing and academic summary."""
    parts = [
        BODY_RULE,
        "           ACADEMIC TRANSCRIPT",
        BODY_RULE,
        student.profile(),
        BODY_RULE,
    ]
    body = "\n".join(parts) + "\n"

    for semester, members in group_by_semester(enrollments).items():
        body += render_semester_section(semester, members)

    body += render_summary_section(enrollments)
    body += BODY_RULE + "\n"
    return body


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------


class Transcript:
    """
    A student's academic transcript.

    Works on a snapshot of the student's enrollments; rendering never touches
    the live ledger.
    """

    def __init__(
        self,
        student: Student,
        enrollments: Sequence[Enrollment],
        variant: TranscriptVariant = TranscriptVariant.OFFICIAL,
        semester: Semester | None = None,
        issued_on: date | None = None,
        transcript_id: UUID | None = None,
    ):
        """
        Initialize transcript.

        Args:
            student: Student the transcript is for
            enrollments: Snapshot of the student's enrollments (dropped included)
            variant: Official, unofficial or semester-scoped
            semester: Required for, and only valid with, the semester variant
            issued_on: Issue date, defaults to today (UTC)
            transcript_id: Transcript ID, generated when omitted

        Raises:
            InvalidTranscriptRequestError: On a variant/semester mismatch
        """
        if variant is TranscriptVariant.SEMESTER and semester is None:
            raise InvalidTranscriptRequestError(
                "Semester transcript requires a semester", field="semester"
            )
        if variant is not TranscriptVariant.SEMESTER and semester is not None:
            raise InvalidTranscriptRequestError(
                f"{variant.value} transcript cannot be scoped to a semester",
                field="semester",
                value=semester.value,
            )

        self.student = student
        self.enrollments = tuple(enrollments)
        self.variant = variant
        self.semester = semester
        self.issued_on = issued_on or utcnow().date()
        self.transcript_id = transcript_id or uuid4()

    @property
    def scoped_enrollments(self) -> list[Enrollment]:
        """Non-dropped enrollments this transcript reports on."""
        return [
            e
            for e in self.enrollments
            if not e.dropped and (self.semester is None or e.semester is self.semester)
        ]

    def get_metadata(self) -> TranscriptMetadata:
        if self.variant is TranscriptVariant.SEMESTER:
            title = f"{self.semester.value} Semester Transcript"
        else:
            title = f"{self.variant.value.capitalize()} Transcript"
        return TranscriptMetadata(
            transcript_id=self.transcript_id,
            variant=self.variant,
            title=title,
            student_id=self.student.id,
            semester=self.semester,
            issued_on=self.issued_on,
        )

    def render(self, format: TranscriptFormat = TranscriptFormat.TEXT) -> str:
        """
        Render the transcript.

        Args:
            format: Output format (TEXT or JSON)

        Returns:
            str: Rendered transcript
        """
        if format == TranscriptFormat.TEXT:
            return self._render_text()
        if format == TranscriptFormat.JSON:
            return self._render_json()
        raise InvalidTranscriptRequestError(
            f"Unsupported format: {format}", field="format", value=format
        )

    def _render_text(self) -> str:
        if self.variant is TranscriptVariant.OFFICIAL:
            return (
                "*** OFFICIAL TRANSCRIPT ***\n"
                "This is an official academic record.\n"
                f"Date of Issue: {self.issued_on.isoformat()}\n\n"
                + render_report_body(self.student, self.enrollments)
                + "\n*** END OF OFFICIAL TRANSCRIPT ***\n"
            )
        if self.variant is TranscriptVariant.UNOFFICIAL:
            return (
                "*** UNOFFICIAL TRANSCRIPT ***\n"
                "This is an unofficial academic record for student use only.\n\n"
                + render_report_body(self.student, self.enrollments)
                + "\n*** UNOFFICIAL - NOT FOR OFFICIAL USE ***\n"
            )
        return self._render_semester_text()

    def _render_semester_text(self) -> str:
        lines = [
            SEMESTER_RULE,
            f"   {self.semester.value} SEMESTER TRANSCRIPT",
            SEMESTER_RULE,
            f"Student: {self.student.full_name} (ID: {self.student.id})",
            f"Registration Number: {self.student.reg_no}",
            SEMESTER_RULE,
        ]
        text = "\n".join(lines) + "\n"

        members = self.scoped_enrollments
        if not members:
            text += NO_ENROLLMENTS_TEXT + "\n"
        else:
            text += render_semester_section(self.semester, members)

        return text + SEMESTER_RULE + "\n"

    def to_dict(self) -> dict[str, Any]:
        members = self.scoped_enrollments
        summary = gpa.summarize(members)
        return {
            "metadata": self.get_metadata().model_dump(mode="json"),
            "student": {
                "id": self.student.id,
                "reg_no": self.student.reg_no,
                "full_name": self.student.full_name,
                "status": self.student.status.value,
            },
            "semesters": [
                {
                    "semester": semester.value,
                    "courses": [
                        {
                            "code": e.course.code,
                            "title": e.course.title,
                            "credits": e.course.credits,
                            "marks": e.marks if e.has_marks else None,
                            "grade": e.grade.value,
                        }
                        for e in group
                    ],
                    "credits": sum(e.gpa_credits() for e in group),
                    "gpa": gpa.round_gpa(gpa.compute_gpa(group)),
                }
                for semester, group in group_by_semester(members).items()
            ],
            "summary": {
                "credits_attempted": summary.credits_attempted,
                "credits_earned": summary.credits_earned,
                "gpa": summary.display_gpa,
                "standing": summary.standing.value,
            },
        }

    def _render_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        summary = gpa.summarize(self.scoped_enrollments)
        return (
            f"Transcript[Student={self.student.full_name}, GPA={summary.display_gpa:.2f}, "
            f"Credits={summary.credits_earned}]"
        )


class TranscriptGenerator:
    """
    Central transcript generation service.

    Builds a Transcript from a student and an enrollment snapshot and renders it.
    """

    def __init__(self, today: Callable[[], date] | None = None):
        """
        Initialize transcript generator.

        Args:
            today: Issue-date source, defaults to the current UTC date
        """
        self._today = today or (lambda: utcnow().date())

    def build(
        self,
        student: Student,
        enrollments: Sequence[Enrollment],
        variant: TranscriptVariant = TranscriptVariant.OFFICIAL,
        semester: Semester | None = None,
    ) -> Transcript:
        return Transcript(
            student,
            enrollments,
            variant=variant,
            semester=semester,
            issued_on=self._today(),
        )

    def generate(
        self,
        student: Student,
        enrollments: Sequence[Enrollment],
        variant: TranscriptVariant = TranscriptVariant.OFFICIAL,
        semester: Semester | None = None,
        format: TranscriptFormat = TranscriptFormat.TEXT,
    ) -> str:
        """
        Generate a rendered transcript.

        Returns:
            str: Transcript text or JSON document
        """
        transcript = self.build(student, enrollments, variant, semester)
        content = transcript.render(format)
        logger.info(
            "Transcript generated",
            student_id=student.id,
            variant=variant.value,
            semester=semester.value if semester else None,
            format=format.value,
            size_chars=len(content),
        )
        return content
