"""
Shared fixtures: in-memory SQLite database, API client and auth headers.
"""

import os
import sys
from datetime import date, timedelta
from decimal import Decimal

# Must be set before rental_calendar.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("ENVIRONMENT", "test")

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rental_calendar.database import Base, get_db
from rental_calendar.main import app
from rental_calendar.models import Listing, CalendarEntry  # noqa: F401
from rental_calendar.utils.security import create_access_token

OWNER_ID = "owner-1"

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    token = create_access_token({"sub": OWNER_ID})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers():
    token = create_access_token({"sub": "owner-2"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_listing(db):
    """Factory for persisted listings."""
    def _make(**overrides):
        data = {
            "name": "Sea View Flat",
            "location": "Lisbon",
            "price_per_night": Decimal("100.00"),
            "availability": True,
            "latitude": 38.7223,
            "longitude": -9.1393,
            "owner_id": OWNER_ID,
        }
        data.update(overrides)
        listing = Listing(**data)
        db.add(listing)
        db.commit()
        db.refresh(listing)
        return listing

    return _make


@pytest.fixture
def future_day():
    """A date safely in the future for policy-checked endpoints."""
    def _day(offset: int = 0) -> date:
        return date.today() + timedelta(days=30 + offset)

    return _day
