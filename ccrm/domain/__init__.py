"""
CCRM Domain Layer

Pure domain model for enrollment and academic records.

Composition:
- StudentLedger owns Enrollment records (composition)
- Enrollment references a Course (read-only association)
- Transcript reads an enrollment snapshot (no ownership)
"""

from ccrm.domain.enrollment import Enrollment
from ccrm.domain.entities import (
    AbstractEntity,
    Course,
    Searchable,
    Semester,
    StatusFilterable,
    Student,
    StudentStatus,
)
from ccrm.domain.gpa import AcademicStanding, GpaSummary, compute_gpa, summarize
from ccrm.domain.grading import UNASSIGNED_MARKS, Grade
from ccrm.domain.ledger import StudentLedger
from ccrm.domain.policies import (
    PolicyEngine,
    PolicyResult,
    create_drop_policy_engine,
    create_enrollment_policy_engine,
)
from ccrm.domain.transcripts import (
    Transcript,
    TranscriptFormat,
    TranscriptGenerator,
    TranscriptVariant,
)

__all__ = [
    # Entities
    "AbstractEntity",
    "Course",
    "Student",
    "StudentStatus",
    "Semester",
    "Searchable",
    "StatusFilterable",
    # Enrollment
    "Enrollment",
    "StudentLedger",
    "Grade",
    "UNASSIGNED_MARKS",
    # GPA
    "AcademicStanding",
    "GpaSummary",
    "compute_gpa",
    "summarize",
    # Policies
    "PolicyEngine",
    "PolicyResult",
    "create_enrollment_policy_engine",
    "create_drop_policy_engine",
    # Transcripts
    "Transcript",
    "TranscriptFormat",
    "TranscriptGenerator",
    "TranscriptVariant",
]
