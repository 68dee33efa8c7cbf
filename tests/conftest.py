import os
from collections.abc import AsyncGenerator, Callable, Generator
from datetime import timedelta
from uuid import uuid4

# Settings are read at import time; tests never touch real databases
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NOTIFICATION_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-tests-only")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.exceptions import UpstreamUnavailableException
from app.core.security import claims_subject, issue_identity_token, verify_identity_token
from app.database import get_db, get_notification_db, get_notification_sessionmaker
from app.dependencies import get_event_publisher, get_identity_client
from app.main import appointment_app, notification_app
from app.models.appointments import metadata as appointments_metadata
from app.models.notifications import metadata as notifications_metadata
from app.schemas.events import EventEnvelope
from app.services.event_publisher import EventPublisher
from app.services.identity_client import IdentityClient

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
TEST_NOTIFICATION_DATABASE_URL = os.getenv(
    "TEST_NOTIFICATION_DATABASE_URL", "sqlite+aiosqlite:///:memory:"
)


def _create_test_engine(url: str) -> AsyncEngine:
    """Engine whose in-memory database survives across sessions of one test."""
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url)


class RecordingPublisher(EventPublisher):
    """Publisher that records envelopes instead of sending them."""

    def __init__(self):
        super().__init__(events_url="http://notifications.test/api/events")
        self.published: list[EventEnvelope] = []

    async def publish(self, envelope: EventEnvelope) -> bool:
        self.published.append(envelope)
        return True


class StubIdentityClient(IdentityClient):
    """Identity client answering from a fixed name table."""

    def __init__(self, names: dict[str, str] | None = None, available: bool = True):
        super().__init__(me_url="http://identity.test/api/auth/me")
        self.names = names or {}
        self.available = available
        self.tokens_seen: list[str] = []

    async def get_display_name(self, token: str) -> str:
        self.tokens_seen.append(token)
        if not self.available:
            raise UpstreamUnavailableException("Identity provider request failed: connection refused")
        subject = claims_subject(verify_identity_token(token))
        if subject not in self.names:
            raise UpstreamUnavailableException("Identity provider profile has no full name")
        return self.names[subject]


@pytest_asyncio.fixture
async def appointment_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Appointment database with a fresh schema."""
    engine = _create_test_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(appointments_metadata.drop_all)
        await conn.run_sync(appointments_metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(appointments_metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def notification_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Notification database with a fresh schema."""
    engine = _create_test_engine(TEST_NOTIFICATION_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(notifications_metadata.drop_all)
        await conn.run_sync(notifications_metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(notifications_metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def appointment_sessions(appointment_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(appointment_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def notification_sessions(notification_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(notification_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    appointment_sessions: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session on the appointment database."""
    async with appointment_sessions() as session:
        yield session


@pytest_asyncio.fixture
async def notification_db_session(
    notification_sessions: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session on the notification database."""
    async with notification_sessions() as session:
        yield session


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def identity() -> StubIdentityClient:
    return StubIdentityClient()


@pytest.fixture
def notification_overrides(
    notification_sessions: async_sessionmaker[AsyncSession],
) -> Generator[None, None, None]:
    """Point the notification app at the test database."""

    async def override_get_notification_db() -> AsyncGenerator[AsyncSession, None]:
        async with notification_sessions() as session:
            yield session

    notification_app.dependency_overrides[get_notification_db] = override_get_notification_db
    notification_app.dependency_overrides[get_notification_sessionmaker] = lambda: notification_sessions

    yield

    notification_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(
    appointment_sessions: async_sessionmaker[AsyncSession],
    publisher: RecordingPublisher,
    identity: StubIdentityClient,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the appointment service."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with appointment_sessions() as session:
            yield session

    appointment_app.dependency_overrides[get_db] = override_get_db
    appointment_app.dependency_overrides[get_event_publisher] = lambda: publisher
    appointment_app.dependency_overrides[get_identity_client] = lambda: identity

    async with AsyncClient(
        transport=ASGITransport(app=appointment_app), base_url="http://test"
    ) as client:
        yield client

    appointment_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def notification_client(notification_overrides) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the notification service."""
    async with AsyncClient(
        transport=ASGITransport(app=notification_app), base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
def make_headers() -> Callable[[str, str], dict]:
    """Build bearer headers for a user id and role."""

    def _make_headers(user_id: str, role: str) -> dict:
        token = issue_identity_token(
            user_id,
            role,
            email=f"{user_id}@example.com",
            expires_delta=timedelta(minutes=30),
        )
        return {"Authorization": f"Bearer {token}"}

    return _make_headers


@pytest.fixture
def patient_id() -> str:
    return f"patient-{uuid4().hex[:8]}"


@pytest.fixture
def doctor_id() -> str:
    return f"doctor-{uuid4().hex[:8]}"


@pytest.fixture
def patient_headers(make_headers, patient_id: str) -> dict:
    return make_headers(patient_id, "patient")


@pytest.fixture
def doctor_headers(make_headers, doctor_id: str) -> dict:
    return make_headers(doctor_id, "doctor")


@pytest.fixture
def sample_appointment_data(doctor_id: str) -> dict:
    """Sample appointment request for testing."""
    return {
        "doctorId": doctor_id,
        "doctorName": "Grey",
        "appointmentDate": "2025-03-01",
        "appointmentTime": "10:00",
        "reason": "checkup",
    }
