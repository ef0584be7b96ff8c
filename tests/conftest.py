"""
Test configuration and fixtures.

Provides:
- File-backed SQLite database (shared by threads in concurrency tests)
- Clean tables after each test (services commit for real)
- Schedule/service factories with a fixed `now`
- HTTPX AsyncClient with identity headers
"""
import os
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Generator

_DB_DIR = tempfile.mkdtemp(prefix="booking-engine-tests-")

# Must be set before the app (and its engine) is imported
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["LEDGER_RETRY_BASE_DELAY"] = "0"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from booking_engine.core.deps import ACTOR_ID_HEADER, ACTOR_ROLE_HEADER, get_db
from booking_engine.db import models  # noqa: F401
from booking_engine.db.base import Base
from booking_engine.db.enums import ActorRole
from booking_engine.db.session import SessionLocal, engine
from booking_engine.main import app
from booking_engine.services import schedule_service
from booking_engine.services.notifications import get_notifier
from booking_engine.services.payments import get_payment_gateway

# Monday 2026-03-02 08:00 in Los Angeles (PST, UTC-8)
FIXED_NOW = datetime(2026, 3, 2, 16, 0, tzinfo=timezone.utc)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session against the test database.

    Ledger code commits and rolls back on its own, so isolation comes from
    deleting every row after the test instead of an outer transaction.
    """
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


# =============================================================================
# Schedule Fixtures
# =============================================================================

@pytest.fixture
def contractor_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def schedule(db: Session, contractor_id: uuid.UUID):
    """Default schedule: Mon-Fri 09-17 LA, 15 min buffer, 30 day horizon."""
    return schedule_service.create_schedule(
        db,
        contractor_id,
        timezone_name="America/Los_Angeles",
        minimum_notice_hours=0,
        requires_deposit=False,
    )


@pytest.fixture
def service(db: Session, schedule, contractor_id: uuid.UUID):
    """60 minute service at $100."""
    return schedule_service.create_service(
        db,
        contractor_id,
        name="Standard Cleaning",
        duration_minutes=60,
        price=Decimal("100.00"),
    )


class RecordingNotifier:
    """Collects events instead of sending them."""

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def notify(self, event: str, payload: dict) -> None:
        self.events.append((event, payload))

    @property
    def names(self) -> list[str]:
        return [event for event, _ in self.events]


class RecordingGateway:
    """Returns a fixed reference and records requested deposits."""

    def __init__(self, reference: str | None = "pi_test_123"):
        self.reference = reference
        self.calls: list[tuple] = []

    def create_deposit_intent(self, appointment_id, amount, currency):
        self.calls.append((appointment_id, amount, currency))
        return self.reference


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestActor:
    """Pre-authenticated caller identity."""
    __test__ = False

    actor_id: uuid.UUID
    role: ActorRole

    @property
    def headers(self) -> dict[str, str]:
        return {ACTOR_ID_HEADER: str(self.actor_id), ACTOR_ROLE_HEADER: self.role.value}


@pytest.fixture
def contractor_actor(contractor_id: uuid.UUID) -> TestActor:
    return TestActor(actor_id=contractor_id, role=ActorRole.CONTRACTOR)


@pytest.fixture
def client_actor() -> TestActor:
    return TestActor(actor_id=uuid.uuid4(), role=ActorRole.CLIENT)


@pytest.fixture
def admin_actor() -> TestActor:
    return TestActor(actor_id=uuid.uuid4(), role=ActorRole.ADMIN)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(
    db: Session,
    notifier: RecordingNotifier,
    gateway: RecordingGateway,
) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient wired to the test session and recording collaborators.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
