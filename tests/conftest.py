"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os
from datetime import UTC, datetime

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of repforge.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from repforge.config import ForgeConfig  # noqa: E402
from repforge.database.models import Base  # noqa: E402
from repforge.services.duel_service import DuelArbiter  # noqa: E402
from repforge.services.notifications import NotificationHub  # noqa: E402
from repforge.services.progression_service import ProgressionService  # noqa: E402

ADMIN_ID = 99999
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all RepForge tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def cfg() -> ForgeConfig:
    return ForgeConfig(
        community_name="Test Gym",
        timezone="UTC",
        admin_user_ids=frozenset({ADMIN_ID}),
    )


class EventRecorder:
    """Notification listener that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list = []

    def __call__(self, event) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list:
        return [e for e in self.events if e.event_type == event_type]


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def hub(recorder) -> NotificationHub:
    hub = NotificationHub()
    hub.register_callback("*", recorder)
    return hub


@pytest.fixture
def progression(db_engine, cfg, hub) -> ProgressionService:
    return ProgressionService(db_engine, cfg, hub=hub)


@pytest.fixture
def arbiter(db_engine, cfg) -> DuelArbiter:
    return DuelArbiter(db_engine, cfg, clock=lambda: T0)


def make_token(sub: int | str = 12345, *, is_admin: bool = False, username: str = "tester") -> str:
    """Create a signed JWT.  Usable as a factory in any test module."""
    import jwt

    from repforge.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": str(sub), "username": username, "is_admin": is_admin},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


@pytest.fixture
def admin_token() -> str:
    return make_token(ADMIN_ID, is_admin=True, username="FixtureAdmin")


@pytest.fixture
def client(db_engine, cfg, hub):
    """TestClient with the engine, config, and hub overridden for the test DB."""
    from fastapi.testclient import TestClient

    from repforge.api.deps import get_config, get_engine, get_hub
    from repforge.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: cfg
    app.dependency_overrides[get_hub] = lambda: hub
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
