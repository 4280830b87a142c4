"""
Test configuration and fixtures for Campus Events Service.
Uses an in-memory SQLite database bound to the global database manager.
"""

import os

os.environ.setdefault("ZERO_TOKEN", "test-zero-token")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["ENABLE_DISTRIBUTED_LOCKS"] = "false"

import pytest
import jwt
from datetime import timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from unittest.mock import AsyncMock, patch

from campus_events.core.config import config

# Never reach out to Zero during tests
config.secrets_manager._secrets = {"campus-events": {}}

from campus_events.core.identity import Identity, Role
from campus_events.db.database import db_manager
from campus_events.main import app
from campus_events.models.event import Base, Event, utc_now
from campus_events.models.lifecycle import EventStatus
from campus_events.services.approval_service import approval_service
from campus_events.services.event_service import event_service
from campus_events.services.sms_service import sms_service
from campus_events.services.verification_service import verification_service

# Create test engine
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
db_manager.bind(engine)

# Create test session
TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

TEST_JWT_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def database():
    """Create tables before each test and drop them afterwards."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_service_configs():
    """Services cache their config on first use; start every test from the environment."""
    yield
    event_service.consistency_config = None
    approval_service.consistency_config = None
    verification_service.otp_config = None


@pytest.fixture
def db_session():
    """Create a database session for assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def committee():
    return Identity(user_id="committee-1", role=Role.COMMITTEE)


@pytest.fixture
def other_committee():
    return Identity(user_id="committee-2", role=Role.COMMITTEE)


@pytest.fixture
def general_secretary():
    return Identity(user_id="gs-1", role=Role.GENERAL_SECRETARY)


@pytest.fixture
def dean():
    return Identity(user_id="dean-1", role=Role.DEAN)


@pytest.fixture
def student():
    return Identity(user_id="student-1", role=Role.STUDENT)


@pytest.fixture
def sample_event_data():
    """Sample event data for testing."""
    start = utc_now() + timedelta(days=7)
    return {
        "title": "Tech Fest",
        "description": "Annual technology festival",
        "venue": "Main Auditorium",
        "start_date": start,
        "end_date": start + timedelta(hours=4),
        "department": "Computer Science",
        "expected_attendees": 200,
        "registration_enabled": True,
    }


@pytest.fixture
def make_event(db_session, sample_event_data, committee):
    """Insert an event directly in the given status."""
    def _make_event(status=EventStatus.DRAFT, created_by=None, **overrides):
        data = {**sample_event_data, **overrides}
        event = Event(status=status, created_by=created_by or committee.user_id, **data)
        db_session.add(event)
        db_session.commit()
        return event

    return _make_event


@pytest.fixture
def open_event(make_event):
    """Final approved event with registration enabled."""
    return make_event(status=EventStatus.FINAL_APPROVED, registration_enabled=True)


@pytest.fixture
def mock_send_sms():
    """Replace SMS dispatch with a mock that reports success."""
    with patch.object(sms_service, "send_sms", new=AsyncMock(return_value=True)) as mock_send:
        yield mock_send


@pytest.fixture
def mock_distributed_lock():
    """Mock distributed lock for testing."""
    mock_lock = AsyncMock()
    mock_lock.__aenter__ = AsyncMock(return_value=mock_lock)
    mock_lock.__aexit__ = AsyncMock(return_value=None)
    return mock_lock


@pytest.fixture
def lock_config():
    """Consistency configuration with distributed locks enabled."""
    return {
        "lock_timeout_seconds": 5,
        "lock_blocking_timeout_seconds": 1,
        "enable_distributed_locks": True,
    }


def make_token(identity: Identity) -> str:
    """Issue a bearer token for an identity."""
    return jwt.encode(
        {"user_id": identity.user_id, "role": identity.role.value},
        TEST_JWT_SECRET,
        algorithm="HS256",
    )


@pytest.fixture
def auth_headers():
    """Build Authorization headers for an identity."""
    def _auth_headers(identity: Identity):
        return {"Authorization": f"Bearer {make_token(identity)}"}

    return _auth_headers
