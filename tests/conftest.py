"""Pytest fixtures for testing"""

import asyncio
import pytest
from datetime import datetime, timezone
from typing import Callable, Generator, List, Tuple
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from debt_escalator.api.main import create_app
from debt_escalator.config import Settings
from debt_escalator.infrastructure.database.models import Base, Debt
from debt_escalator.infrastructure.database.session import get_db
from debt_escalator.services.balance import BalanceService
from debt_escalator.services.locks import AccountLocks
from debt_escalator.services.scheduler import EscalationScheduler


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingNotifier:
    """Stands in for the mail relay client and keeps every message"""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str]] = []

    async def send(self, destination: str, subject: str, body: str) -> bool:
        self.sent.append((destination, subject, body))
        return True

    @property
    def subjects(self) -> List[str]:
        return [subject for _, subject, _ in self.sent]


@pytest.fixture
def test_settings() -> Settings:
    """Compressed timings and a disabled relay"""
    return Settings(
        scheduler_enabled=False,
        notifier_webhook_url="",
        notification_destination="debtor@example.com",
        escalation_cadence_seconds=0.2,
        warning_lead_seconds=0.1,
        increment_amount=10,
        minimum_payment=10,
        debt_history_retention=20,
        payment_history_retention=15,
        recent_window_seconds=60,
    )


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def locks() -> AccountLocks:
    return AccountLocks()


@pytest.fixture
def make_debt(db: Session) -> Callable[..., int]:
    """Provision a debt row the way the store is seeded out of band"""

    def _make(balance: int, last_updated: datetime | None = None) -> int:
        debt = Debt(
            balance=balance,
            last_updated=last_updated or datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        db.add(debt)
        db.commit()
        return debt.id

    return _make


@pytest.fixture
def service(db: Session, notifier: RecordingNotifier, locks: AccountLocks, test_settings: Settings) -> BalanceService:
    return BalanceService(db, notifier, locks, config=test_settings)


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Sessions for code that opens its own, like the scheduler"""
    return TestingSessionLocal


@pytest.fixture
async def scheduler(session_factory, notifier: RecordingNotifier, locks: AccountLocks, test_settings: Settings):
    """Escalation scheduler on the test database; always stopped afterwards"""
    scheduler = EscalationScheduler(session_factory, notifier, locks, config=test_settings)
    try:
        yield scheduler
    finally:
        scheduler.stop()
        await asyncio.sleep(0)  # let cancellations settle


@pytest.fixture
def client(db: Session, notifier: RecordingNotifier, test_settings: Settings) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app(config=test_settings, session_factory=TestingSessionLocal, notifier=notifier)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)
