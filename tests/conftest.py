import datetime as dt
import os
import tempfile

# Settings are read once at import time, so the test environment has to be
# in place before anything from eventease is imported.
_TEST_DIR = tempfile.mkdtemp(prefix="eventease-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/bootstrap.db"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["LOG_DIR"] = os.path.join(_TEST_DIR, "logs")
os.environ["TIMEZONE"] = "UTC"
os.environ["JWT_SECRET_KEY"] = "test-secret"

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from eventease.config import get_settings
from eventease.database import Base, build_engine, get_db
from eventease.main import app
import eventease.models  # noqa: F401


def make_token(user_id: int, **claims) -> str:
    """Sign a bearer token the way the auth service does."""
    settings = get_settings()
    payload = {"sub": str(user_id), **claims}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def today() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


@pytest.fixture
def db_url(tmp_path):
    """A fresh SQLite database file with the full schema."""
    path = tmp_path / "eventease.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def session_factory(db_url):
    engine = build_engine(db_url, poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def client(session_factory):
    """Test client bound to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def create_user(client):
    """Create a user through the API and return its JSON."""
    counter = {"n": 0}

    def _create(role: str = "participant", **overrides) -> dict:
        counter["n"] += 1
        data = {
            "first_name": "Test",
            "last_name": f"User{counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "role": role,
        }
        data.update(overrides)
        response = client.post("/api/v1/users/", json=data)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def organizer(create_user):
    return create_user(role="organizer", first_name="Olga")


@pytest.fixture
def participant(create_user):
    return create_user(role="participant", first_name="Pat")


@pytest.fixture
def auth():
    """Build Authorization headers for a user JSON or id."""
    def _headers(user) -> dict:
        user_id = user["id"] if isinstance(user, dict) else user
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def event_data():
    """Factory for a valid event payload ten days from now."""
    def _data(**overrides) -> dict:
        data = {
            "title": "Python Meetup",
            "description": "Lightning talks and pizza.",
            "date": (today() + dt.timedelta(days=10)).isoformat(),
            "time": "18:30",
            "location": "Community Hall",
            "location_type": "physical",
            "category": "networking",
            "max_attendees": 50,
            "price": "0",
            "is_private": False,
        }
        data.update(overrides)
        return data

    return _data


@pytest.fixture
def create_event(client, organizer, auth, event_data):
    """Create an event through the API as ``organizer`` and return its JSON."""
    def _create(owner=None, **overrides) -> dict:
        response = client.post(
            "/api/v1/events/",
            json=event_data(**overrides),
            headers=auth(owner or organizer),
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create
