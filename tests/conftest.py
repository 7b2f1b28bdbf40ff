"""Pytest fixtures for testing"""

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fraud_gateway.api.main import create_app
from fraud_gateway.api.dependencies import (
    get_behavior_velocity_tracker,
    get_profile_cache,
    get_risk_velocity_tracker,
)
from fraud_gateway.infrastructure.database.models import Base
from fraud_gateway.infrastructure.database.session import get_db
from fraud_gateway.domain.models import Transaction
from fraud_gateway.services.profiles import ProfileCache
from fraud_gateway.services.velocity import VelocityTracker


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeClock:
    """Monotonic clock that only moves when told to"""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


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
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and fresh in-process state"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    cache = ProfileCache()
    risk_velocity = VelocityTracker(window_seconds=600)
    behavior_velocity = VelocityTracker(window_seconds=600)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_profile_cache] = lambda: cache
    app.dependency_overrides[get_risk_velocity_tracker] = lambda: risk_velocity
    app.dependency_overrides[get_behavior_velocity_tracker] = lambda: behavior_velocity
    return TestClient(app)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def safe_transaction() -> Transaction:
    """Known merchant, daytime, small amount"""
    return Transaction(
        merchant="Amazon",
        amount=2499,
        time="10:42 AM",
        user_id="user_001",
        source="UPI",
        category="Shopping",
    )


@pytest.fixture
def suspicious_transaction() -> Transaction:
    """Unknown merchant, large UPI payment in the middle of the night"""
    return Transaction(
        merchant="Flipkart",
        amount=32000,
        time="2:14 AM",
        user_id="user_001",
        source="UPI",
        category="Shopping",
    )
