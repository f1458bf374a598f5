"""
Shared fixtures for the CCRM test suite.

Time is driven by a mutable clock so deadline behavior is deterministic.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from ccrm.config import EnrollmentRules
from ccrm.domain.entities import Course, Semester
from ccrm.services.directory import InMemoryRecordStore
from ccrm.services.records_service import AcademicRecordsService

START = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rules():
    """Default limits: 18 max, 12 min, 168 hour drop window."""
    return EnrollmentRules()


@pytest.fixture
def lenient_rules():
    """No minimum load, so drops are not blocked by the credit floor."""
    return EnrollmentRules(min_credits_per_semester=0)


@pytest.fixture
def courses():
    return {
        "CS101": Course(code="CS101", title="Introduction to Programming", credits=4,
                        department="Computer Science", semester=Semester.FALL),
        "CS102": Course(code="CS102", title="Data Structures", credits=4,
                        department="Computer Science", semester=Semester.FALL),
        "MA101": Course(code="MA101", title="Calculus I", credits=4,
                        department="Mathematics", semester=Semester.FALL),
        "PH101": Course(code="PH101", title="Physics I", credits=3,
                        department="Physics", semester=Semester.FALL),
        "EN101": Course(code="EN101", title="Academic Writing", credits=3,
                        department="English", semester=Semester.SPRING),
        "CS305": Course(code="CS305", title="Operating Systems", credits=3,
                        department="Computer Science", semester=Semester.FALL),
        "HI201": Course(code="HI201", title="A Very Long Course Title About World History",
                        credits=3, department="History", semester=Semester.FALL),
    }


@pytest.fixture
def store(courses):
    store = InMemoryRecordStore()
    for course in courses.values():
        store.add_course(course)
    store.add_student("Asha Verma", "asha@example.edu", registration_date=date(2025, 1, 5))
    store.add_student("Ben Okafor", "ben@example.edu", registration_date=date(2025, 1, 6))
    store.add_student("Chen Li", None, registration_date=date(2025, 1, 7))
    return store


@pytest.fixture
def records(store, lenient_rules, clock):
    """Records service with no credit floor, invariant checks on."""
    return AcademicRecordsService.create(rules=lenient_rules, store=store, clock=clock)


@pytest.fixture
def strict_records(store, rules, clock):
    """Records service with default limits."""
    return AcademicRecordsService.create(rules=rules, store=store, clock=clock)
