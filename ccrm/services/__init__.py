"""
CCRM Services

Use-case orchestration over the domain layer and the in-memory record store.
"""

from ccrm.services.directory import CourseCatalog, InMemoryRecordStore, StudentDirectory
from ccrm.services.enrollment_service import EnrollmentService
from ccrm.services.records_service import AcademicRecordsService
from ccrm.services.reporting_service import ReportingService, StudentRanking

__all__ = [
    "AcademicRecordsService",
    "CourseCatalog",
    "EnrollmentService",
    "InMemoryRecordStore",
    "ReportingService",
    "StudentDirectory",
    "StudentRanking",
]
