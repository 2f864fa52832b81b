"""
Test configuration and fixtures for Fiber Friends.

- Function-scoped in-memory SQLite engine (fresh schema per test)
- Session bound to it, with the same flags as the app's SessionLocal
- Factory fixtures for users and monsters
- TestClient with database and Firebase dependency overrides
"""
import random
from datetime import date
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fiber_friends.database import Base, get_db
from fiber_friends.main import app
from fiber_friends.api.dependencies import get_firebase_user_info
from fiber_friends.models.db_models import User, Monster, Streak
from fiber_friends.services.store import MonsterStore
from fiber_friends.services.vitality import VitalityTracker

from tests.helpers import TEST_UID, TEST_EMAIL, TODAY


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db: Session) -> MonsterStore:
    return MonsterStore(db)


@pytest.fixture
def tracker(store: MonsterStore) -> VitalityTracker:
    """Tracker with a seeded random source."""
    return VitalityTracker(store, rng=random.Random(42))


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_user(db: Session):
    def _make_user(uid: str = TEST_UID, email: str = TEST_EMAIL, **overrides) -> User:
        defaults = {"id": uid, "email": email, "timezone": "UTC", "points": 0}
        defaults.update(overrides)
        user = User(**defaults)
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_monster(db: Session):
    def _make_monster(
        user_id: str = TEST_UID,
        health: float = 90,
        last_recovery_date: date = TODAY,
        name: str = "Grumblefluff",
        **overrides,
    ) -> Monster:
        monster = Monster(
            user_id=user_id,
            name=name,
            image_url="https://images.example.com/grumblefluff.png",
            health=health,
            last_recovery_date=last_recovery_date,
            **overrides,
        )
        db.add(monster)
        db.commit()
        return monster

    return _make_monster


@pytest.fixture
def make_streak(db: Session):
    def _make_streak(category: str, count: int, day: date, user_id: str = TEST_UID) -> Streak:
        streak = Streak(user_id=user_id, category=category, count=count, date=day)
        db.add(streak)
        db.commit()
        return streak

    return _make_streak


@pytest.fixture
def user(make_user) -> User:
    return make_user()


# =============================================================================
# TestClient Fixtures
# =============================================================================


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """
    TestClient with database and Firebase overrides.

    Every request is authenticated as TEST_UID. The app lifespan is not
    run, so no real database file or Firebase app is touched.
    """

    def override_get_db():
        yield db

    async def override_firebase_user():
        return {"uid": TEST_UID, "email": TEST_EMAIL, "display_name": "Test Slayer"}

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_firebase_user_info] = override_firebase_user

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": "Bearer test-token"}
