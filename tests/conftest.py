"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import datetime as dt
import os

# ---------------------------------------------------------------------------
# Ensure a valid AUTH_JWT_SECRET is always set for test runs.
# This must happen before any import of questboard.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("AUTH_JWT_SECRET", _TEST_JWT_SECRET)
os.environ.pop("AUTH_JWT_AUDIENCE", None)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite renders the PG JSONB type as TEXT; SQLAlchemy's JSON processors
# still serialise the values.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.ext.compiler import compiles  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from questboard.database.models import Base  # noqa: E402
from questboard.database.seed import seed_game_systems  # noqa: E402


@compiles(PG_JSONB, "sqlite")
def _compile_jsonb_as_text(type_, compiler, **kw):
    return "TEXT"


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Questboard tables and game systems.

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
    seed_game_systems(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def make_user_token(sub: str = "user-1", name: str = "Test Player", **claims) -> str:
    """Create a signed user JWT.  Usable from fixtures and tests alike."""
    import jwt

    from questboard.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "name": name, **claims},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


def auth_header(sub: str = "user-1", name: str = "Test Player") -> dict:
    return {"Authorization": f"Bearer {make_user_token(sub, name)}"}


def make_user(engine: Engine, user_id: str, display_name: str | None = None) -> str:
    from questboard.database.engine import get_session
    from questboard.services.user_service import get_or_create_user

    with get_session(engine) as session:
        get_or_create_user(session, user_id, display_name or user_id.title())
    return user_id


def make_game_session(engine: Engine, *, max_players: int = 2, gm_id: str = "gm", **overrides):
    """Insert a published one-time session and return it (detached)."""
    from questboard.services.session_service import create_session

    make_user(engine, gm_id, "Game Master")
    fields = {
        "title": "The Sunless Citadel",
        "description": "A classic dungeon crawl for new adventurers.",
        "game_system_id": "dnd-5e",
        "duration": 240,
        "max_players": max_players,
        "is_online": False,
        "timezone": "Europe/Stockholm",
        "date": dt.date(2026, 11, 7),
        "start_time": dt.time(18, 0),
        "location": {"name": "Dragon's Lair", "city": "Stockholm"},
    }
    fields.update(overrides)
    return create_session(engine, gm_id=gm_id, **fields)


@pytest.fixture
def user_token():
    return make_user_token()


@pytest.fixture
def client(db_engine: Engine):
    """FastAPI TestClient backed by the SQLite engine.

    Both the dependency objects the routers captured at import and the
    ones currently in ``questboard.api.deps`` are overridden, so a reload
    of that module cannot route requests to the real database.
    """
    from fastapi.testclient import TestClient

    import questboard.api.deps as deps
    from questboard.api.main import app
    from questboard.api.routes import sessions as sessions_routes
    from questboard.config import QuestboardConfig

    for module in (sessions_routes, deps):
        app.dependency_overrides[module.get_engine] = lambda: db_engine
        app.dependency_overrides[module.get_config] = lambda: QuestboardConfig()
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
