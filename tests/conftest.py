"""
Central pytest configuration for the VetCare test suite.

This file provides common fixtures, test markers, and environment setup
for both unit and integration tests.
"""

import os
from datetime import date, datetime

import pytest

# Test environment configuration (set early so import-time settings use it)
os.environ["TZ"] = "UTC"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENABLE_REMINDER_SCHEDULER"] = "false"
os.environ["APPOINTMENT_STORE"] = "memory"
os.environ["LOG_TO_FILE"] = "false"
os.environ.pop("APPOINTMENT_REMINDER_HOUR", None)
os.environ.pop("VACCINATION_REMINDER_LEAD_DAYS", None)

from vetcare.core.config import APP_TZ  # noqa: E402
from vetcare.domain.entities import (  # noqa: E402
    Appointment,
    Patient,
    Provider,
    ReminderChannel,
)
from vetcare.repositories.appointment_repo import (  # noqa: E402
    InMemoryAppointmentRepository,
)
from vetcare.services.reminder_scheduler import ReminderScheduler  # noqa: E402
from vetcare.services.scheduling_service import SchedulingService  # noqa: E402
from tests.factories.notification_factories import FakeClock, RecordingSender  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "services: mark test as service layer test")
    config.addinivalue_line("markers", "appointment: mark test as appointment-related")
    config.addinivalue_line("markers", "reminders: mark test as reminder-related")
    config.addinivalue_line("markers", "repositories: mark test as repository test")
    config.addinivalue_line("markers", "controllers: mark test as controller-related")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file location."""
    for item in items:
        path = str(item.fspath)
        if os.sep + "unit" + os.sep in path:
            item.add_marker(pytest.mark.unit)
        if os.sep + "integration" + os.sep in path:
            item.add_marker(pytest.mark.integration)
        if "repo" in os.path.basename(path):
            item.add_marker(pytest.mark.repositories)


# =====================================================
# CLOCK AND CHANNEL FIXTURES
# =====================================================


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 4, 20, 9, 0, tzinfo=APP_TZ))


@pytest.fixture
def senders():
    return {channel: RecordingSender() for channel in ReminderChannel}


@pytest.fixture
def reminder_scheduler(clock, senders):
    return ReminderScheduler(senders=senders, clock=clock)


# =====================================================
# DOMAIN FIXTURES
# =====================================================


@pytest.fixture
def provider():
    return Provider(id=1, name="Garcia", specialty="General Medicine", phone="555-1234")


@pytest.fixture
def feline_provider():
    return Provider(id=2, name="Lopez", specialty="Feline surgery", phone="555-9876")


@pytest.fixture
def patient():
    return Patient(
        id=1, name="Firulais", species="canine", breed="Labrador", age=3, owner_id=101
    )


@pytest.fixture
def make_appointment(patient, provider):
    """Factory for appointments with sensible defaults."""

    def _make(
        scheduled_date=date(2024, 5, 1),
        time="10:00",
        reason="consultation",
        patient=patient,
        provider=provider,
        **kwargs,
    ):
        return Appointment(
            scheduled_date=scheduled_date,
            time=time,
            reason=reason,
            patient=patient,
            provider=provider,
            **kwargs,
        )

    return _make


# =====================================================
# SERVICE FIXTURES
# =====================================================


@pytest.fixture
def repository():
    return InMemoryAppointmentRepository()


@pytest.fixture
def scheduling_service(repository, reminder_scheduler):
    return SchedulingService(repository, reminder_scheduler)


# =====================================================
# DATABASE FIXTURES
# =====================================================


@pytest.fixture
def db_session():
    """Provide a session on a fresh in-memory SQLite database."""
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker
    from sqlalchemy.pool import StaticPool

    from vetcare.db import base  # noqa: F401
    from vetcare.db.session import Base

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


# =====================================================
# FLASK FIXTURES
# =====================================================


@pytest.fixture
def app(repository, reminder_scheduler):
    from vetcare.main import create_app

    app = create_app({"TESTING": True}, repository=repository, reminder_scheduler=reminder_scheduler)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
