"""
Academic Records Service

Entry point for the surrounding CLI and import/export collaborators. Wires the
record store, enrollment rule engine, GPA aggregation and transcript generation
behind the operations the core exposes.
"""

import structlog

from ccrm.config import EnrollmentRules, Settings, get_settings
from ccrm.domain import gpa
from ccrm.domain.enrollment import Enrollment
from ccrm.domain.entities import Semester
from ccrm.domain.exceptions import InvalidTranscriptRequestError, StudentNotFoundError
from ccrm.domain.gpa import GpaSummary
from ccrm.domain.grading import Grade
from ccrm.domain.ledger import StudentLedger
from ccrm.domain.transcripts import TranscriptFormat, TranscriptGenerator, TranscriptVariant
from ccrm.services.directory import InMemoryRecordStore
from ccrm.services.enrollment_service import Clock, EnrollmentService
from ccrm.verification.ledger_invariants import InvariantMonitor

logger = structlog.get_logger(__name__)


def _parse_variant(value: TranscriptVariant | str) -> TranscriptVariant:
    try:
        return TranscriptVariant(value.lower() if isinstance(value, str) else value)
    except ValueError:
        raise InvalidTranscriptRequestError(
            f"Unknown transcript variant: {value}", field="variant", value=value
        ) from None


def _parse_format(value: TranscriptFormat | str) -> TranscriptFormat:
    try:
        return TranscriptFormat(value.lower() if isinstance(value, str) else value)
    except ValueError:
        raise InvalidTranscriptRequestError(
            f"Unsupported format: {value}", field="format", value=value
        ) from None


class AcademicRecordsService:
    """
    Facade over enrollment, GPA and transcript operations.

    Reads work on ledger snapshots and may run alongside each other; mutations
    are delegated to the enrollment service.
    """

    def __init__(
        self,
        store: InMemoryRecordStore,
        enrollment_service: EnrollmentService,
        transcripts: TranscriptGenerator | None = None,
    ):
        """
        Initialize records service.

        Args:
            store: Student and course source of truth
            enrollment_service: Rule engine performing mutations
            transcripts: Transcript generator, defaults to one dated by the
                enrollment service's clock
        """
        self.store = store
        self.enrollments = enrollment_service
        self.transcripts = transcripts or TranscriptGenerator(
            today=lambda: enrollment_service.clock().date()
        )

    @classmethod
    def create(
        cls,
        rules: EnrollmentRules | None = None,
        store: InMemoryRecordStore | None = None,
        clock: Clock | None = None,
        verify_invariants: bool = True,
    ) -> "AcademicRecordsService":
        """
        Build a fully wired service around an in-memory store.

        Args:
            rules: Business rule limits, defaults to EnrollmentRules()
            store: Existing store, or a new empty one
            clock: Current-time source for enrollments, drops and issue dates
            verify_invariants: Run the invariant monitor after each mutation
        """
        rules = rules or EnrollmentRules()
        store = store or InMemoryRecordStore()
        monitor = InvariantMonitor(rules) if verify_invariants else None
        service = EnrollmentService(store, store, rules, clock=clock, monitor=monitor)
        return cls(store, service)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        store: InMemoryRecordStore | None = None,
        clock: Clock | None = None,
    ) -> "AcademicRecordsService":
        """Build the service from application settings (cached settings by default)."""
        settings = settings or get_settings()
        logger.info(
            "Records service configured",
            environment=settings.environment,
            max_credits=settings.max_credits_per_semester,
            min_credits=settings.min_credits_per_semester,
            drop_deadline_hours=settings.enrollment_deadline_hours,
        )
        return cls.create(
            rules=EnrollmentRules.from_settings(settings),
            store=store,
            clock=clock,
            verify_invariants=settings.verify_invariants,
        )

    def _get_ledger(self, student_id: int) -> StudentLedger:
        ledger = self.store.find_ledger(student_id)
        if ledger is None:
            raise StudentNotFoundError(student_id)
        return ledger

    # ------------------------------------------------------------------
    # Enrollment commands
    # ------------------------------------------------------------------

    def enroll(
        self, student_id: int, course_code: str, semester: Semester | str | None = None
    ) -> Enrollment:
        return self.enrollments.enroll(student_id, course_code, semester)

    def drop(self, student_id: int, course_code: str) -> Enrollment:
        return self.enrollments.drop(student_id, course_code)

    def assign_grade(self, student_id: int, course_code: str, grade: Grade | str) -> Enrollment:
        return self.enrollments.assign_grade(student_id, course_code, grade)

    def assign_marks(self, student_id: int, course_code: str, marks: float) -> Enrollment:
        return self.enrollments.assign_marks(student_id, course_code, marks)

    # ------------------------------------------------------------------
    # GPA
    # ------------------------------------------------------------------

    def semester_gpa(self, student_id: int, semester: Semester | str) -> float:
        """
        Full-precision GPA over one semester's enrollments.

        Raises:
            StudentNotFoundError: Unknown student
            InvalidSemesterError: Unparseable semester
        """
        target = Semester.parse(semester)
        return gpa.semester_gpa(self._get_ledger(student_id).snapshot(), target)

    def cumulative_gpa(self, student_id: int) -> float:
        """Cumulative GPA rounded half-up to two decimals."""
        return gpa.round_gpa(gpa.compute_gpa(self._get_ledger(student_id).snapshot()))

    def gpa_summary(self, student_id: int) -> GpaSummary:
        return gpa.summarize(self._get_ledger(student_id).snapshot())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def active_enrollments(self, student_id: int) -> list[Enrollment]:
        """Non-dropped enrollments across every semester, as snapshots."""
        return self.enrollments.active_enrollments(student_id)

    def student_enrollments(self, student_id: int, semester: Semester | str) -> list[Enrollment]:
        return self.enrollments.student_enrollments(student_id, semester)

    # ------------------------------------------------------------------
    # Transcripts
    # ------------------------------------------------------------------

    def generate_transcript(
        self,
        student_id: int,
        variant: TranscriptVariant | str = TranscriptVariant.OFFICIAL,
        semester: Semester | str | None = None,
        format: TranscriptFormat | str = TranscriptFormat.TEXT,
    ) -> str:
        """
        Render a transcript for a student.

        Args:
            student_id: Student ID
            variant: Official, unofficial or semester-scoped
            semester: Semester for the semester-scoped variant
            format: TEXT or JSON

        Returns:
            str: Rendered transcript

        Raises:
            StudentNotFoundError: Unknown student
            InvalidTranscriptRequestError: Variant and semester do not fit together
        """
        ledger = self._get_ledger(student_id)
        with ledger.locked():
            student = ledger.student.model_copy()
            enrollments = ledger.snapshot()

        return self.transcripts.generate(
            student,
            enrollments,
            variant=_parse_variant(variant),
            semester=Semester.parse(semester) if semester is not None else None,
            format=_parse_format(format),
        )
