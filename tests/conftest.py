"""Shared test configuration and fixtures for Swim Registry tests"""

import logging
import os

# Keep the application engine off disk; tests inject their own engine anyway
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from swim_registry.main import app
from swim_registry.models.database import get_db, get_today, init_db
from swim_registry.services.listing_service import ListingService
from swim_registry.services.user_service import UserService
from tests.config import TODAY, years_before

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@pytest.fixture
def db_engine():
    """Isolated in-memory SQLite engine with the users schema"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def _db_session(db_engine):
    """Private DB session for fixtures only.

    Prefer the service fixtures (`user_service`, `listing_service`) or
    `client` in tests.
    """
    session = Session(db_engine)

    yield session

    session.close()


@pytest.fixture
def user_service(_db_session):
    """Create a UserService instance for testing"""
    return UserService(_db_session)


@pytest.fixture
def listing_service(user_service):
    """Create a ListingService pinned to the test reference date"""
    return ListingService(user_service, today=TODAY)


@pytest.fixture
def create_user(user_service):
    """Factory inserting a user with sensible defaults"""
    counter = {"n": 0}

    def _create_user(**overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "first_name": f"Prenom{n}",
            "last_name": f"Nom{n}",
            "email": f"user{n}@example.com",
            "date_naissance": years_before(TODAY, 20).isoformat(),
            "niveau_natation": "Débutant",
        }
        fields.update(overrides)
        return user_service.insert(fields)

    return _create_user


@pytest.fixture
def client(_db_session):
    """Create a test client bound to the isolated test database"""

    # Store original overrides to restore them later
    original_overrides = app.dependency_overrides.copy()

    def get_test_db():
        return _db_session

    def get_test_today():
        return TODAY

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_today] = get_test_today

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
