"""Pytest fixtures: file-backed SQLite database (WAL) and a recording popularity provider."""
import os
import uuid
from datetime import datetime, timedelta, timezone

# Tests never reach PostgreSQL or the stats service
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("STATS_ENABLED", "false")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from event_explorer.clients.stats_client import PopularityProvider
from event_explorer.database import Base, get_db
from event_explorer.dependencies import get_popularity_provider
from event_explorer.main import app
from event_explorer.models.category import Category
from event_explorer.models.event import Event, EventState
from event_explorer.models.user import User

SQLITE_URL = "sqlite:///./test.db"


class RecordingPopularityProvider(PopularityProvider):
    """In-memory stand-in for the stats service."""

    def __init__(self):
        self.hits: list[tuple[str, str]] = []
        self.views: dict[int, int] = {}

    def record_view(self, uri, ip):
        self.hits.append((uri, ip))

    def get_view_counts(self, event_ids, start, end):
        return {event_id: self.views.get(event_id, 0) for event_id in event_ids}


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False, "timeout": 15})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def popularity():
    return RecordingPopularityProvider()


@pytest.fixture(scope="function")
def client(session_factory, popularity):
    """FastAPI TestClient with the database and stats dependencies overridden."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_popularity_provider] = lambda: popularity
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# API helpers: return the response JSON
# ---------------------------------------------------------------------------
def future(hours: float = 48) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def create_test_user(client: TestClient, name: str = "Test User") -> dict:
    """Helper: POST /admin/users with a unique email."""
    resp = client.post("/admin/users", json={
        "name": name,
        "email": f"user-{uuid.uuid4().hex[:10]}@example.com",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_category(client: TestClient, name: str = None) -> dict:
    resp = client.post("/admin/categories", json={"name": name or f"cat-{uuid.uuid4().hex[:8]}"})
    assert resp.status_code == 201, resp.text
    return resp.json()


def event_payload(category_id: int, **overrides) -> dict:
    payload = {
        "title": "Jazz in the park",
        "annotation": "An evening of live jazz under the open sky",
        "description": "Local bands play from sunset until late. Bring a blanket and friends.",
        "category": category_id,
        "location": {"lat": 55.754, "lon": 37.62},
        "event_date": future(48),
        "paid": False,
        "participant_limit": 0,
        "request_moderation": True,
    }
    payload.update(overrides)
    return payload


def create_test_event(client: TestClient, owner_id: int, category_id: int = None, **overrides) -> dict:
    """Helper: submit an event (PENDING)."""
    if category_id is None:
        category_id = create_test_category(client)["id"]
    resp = client.post(f"/users/{owner_id}/events", json=event_payload(category_id, **overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


def publish(client: TestClient, event_id: int) -> dict:
    resp = client.patch(f"/admin/events/{event_id}", json={"state_action": "PUBLISH_EVENT"})
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_published_event(client: TestClient, owner_id: int, **overrides) -> dict:
    event_data = create_test_event(client, owner_id, **overrides)
    return publish(client, event_data["id"])


def request_participation(client: TestClient, user_id: int, event_id: int):
    return client.post(f"/users/{user_id}/requests", params={"event_id": event_id})


# ---------------------------------------------------------------------------
# ORM helpers for service-level tests
# ---------------------------------------------------------------------------
def seed_user(db, name: str = "Seeded User") -> User:
    user = User(name=name, email=f"seed-{uuid.uuid4().hex[:10]}@example.com")
    db.add(user)
    db.commit()
    return user


def seed_published_event(db, owner: User, participant_limit: int, request_moderation: bool = True) -> Event:
    category = Category(name=f"seed-{uuid.uuid4().hex[:8]}")
    now = datetime.now(timezone.utc)
    ev = Event(
        title="Seeded event",
        annotation="Seeded annotation long enough",
        description="Seeded description long enough",
        category=category,
        initiator=owner,
        location_lat=0.0,
        location_lon=0.0,
        event_date=now + timedelta(days=3),
        paid=False,
        participant_limit=participant_limit,
        request_moderation=request_moderation,
        state=EventState.PUBLISHED,
        created_on=now,
        published_on=now,
        confirmed_requests=0,
    )
    db.add(ev)
    db.commit()
    return ev
