"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of rally.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine, event  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from rally.database.models import Action, Base, Campaign, User  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


def _enforce_foreign_keys(engine: Engine) -> None:
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Rally tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enforce_foreign_keys(engine)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """A file-backed SQLite engine with a real connection pool.

    Each thread gets its own connection, so concurrent writers contend
    on the database the way separate requests would.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'rally.db'}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    _enforce_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------
def make_user(engine: Engine, username: str = "ana", external_id: str | None = None) -> int:
    with Session(engine) as session:
        user = User(
            username=username,
            email=f"{username}@example.org",
            name=username.title(),
            external_id=external_id or f"ext-{username}",
        )
        session.add(user)
        session.commit()
        return user.id


def make_campaign(engine: Engine, slug: str = "spring", n_actions: int = 2) -> tuple[int, list[int]]:
    """Insert a campaign with *n_actions* actions; return (campaign_id, action_ids)."""
    with Session(engine) as session:
        campaign = Campaign(slug=slug)
        session.add(campaign)
        session.flush()
        actions = [
            Action(
                campaign_id=campaign.id,
                title=f"{slug} step {i + 1}",
                description=f"Do step {i + 1} of {slug}",
                type="form",
                config={"fields": [f"field_{i}"]},
            )
            for i in range(n_actions)
        ]
        session.add_all(actions)
        session.commit()
        return campaign.id, [a.id for a in actions]


def make_token(sub: str = "ext-caller", **claims) -> str:
    """Create a caller JWT.  ``sub`` becomes the user's external_id."""
    import jwt

    from rally.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub, **claims}, JWT_SECRET, algorithm=JWT_ALGORITHM)


@pytest.fixture
def app_config():
    from rally.config import RallyConfig

    return RallyConfig(app_name="Rally Test", campaign_slug="spring", api_port=8000)


@pytest.fixture
def client(db_engine, app_config):
    """FastAPI TestClient wired to the in-memory database."""
    from fastapi.testclient import TestClient

    from rally.api.deps import get_config, get_engine
    from rally.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: app_config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
