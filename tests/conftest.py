"""
Shared pytest fixtures for the task dependency service test suite.

Uses an in-memory SQLite database so tests run without MySQL.
The FastAPI TestClient provides a fully wired ASGI test harness; every
request carries the owner header of ``OWNER``.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.database import Base, get_db
from app.main import app

OWNER = "user-1"
OTHER_OWNER = "user-2"

# ── In-memory SQLite engine (no MySQL required for tests) ─────────────────────
# StaticPool ensures all connections reuse the same in-memory database so that
# tables created in reset_db are visible to sessions opened inside the TestClient.
SQLITE_URL = "sqlite://"

_engine = create_engine(
    SQLITE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestingSession = sessionmaker(bind=_engine, autocommit=False, autoflush=False)


def _override_get_db():
    db = _TestingSession()
    try:
        yield db
    finally:
        db.close()


def owner_headers(owner_id: str = OWNER) -> dict:
    return {settings.owner_header: owner_id}


@pytest.fixture(autouse=True)
def reset_db():
    """Drop and recreate all tables before each test for isolation."""
    # Import ORM models so metadata knows about all tables
    from app.models import orm  # noqa: F401

    Base.metadata.drop_all(bind=_engine)
    Base.metadata.create_all(bind=_engine)
    yield


@pytest.fixture
def db_session(reset_db):
    """A bare session for service-level tests."""
    db = _TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(reset_db) -> TestClient:
    """Return a TestClient with the DB dependency overridden."""
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app, raise_server_exceptions=True, headers=owner_headers()) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_task(client: TestClient):
    """Factory creating a task through the API and returning its id."""

    def _make(title: str = "Task", owner_id: str = OWNER, **fields) -> int:
        resp = client.post(
            "/api/v1/tasks",
            json={"title": title, **fields},
            headers=owner_headers(owner_id),
        )
        assert resp.status_code == 201, resp.json()
        return resp.json()["id"]

    return _make


@pytest.fixture
def link(client: TestClient):
    """Factory posting a dependency edge and returning the raw response."""

    def _link(task_id: int, depends_on_task_id: int, dependency_type: str = "blocks"):
        return client.post(
            f"/api/v1/tasks/{task_id}/dependencies",
            json={
                "depends_on_task_id": depends_on_task_id,
                "dependency_type": dependency_type,
            },
        )

    return _link
