"""
rally.database.engine — Database Connection & Async Helper
===========================================================

Services are plain synchronous SQLAlchemy functions that take an
:class:`Engine` as their first argument.  The API runs on ``asyncio``,
so every service call from a route goes through :func:`run_db`, which
ships the function to a worker thread:

    1. A request arrives in a FastAPI route  (async world).
    2. The route calls ``await run_db(some_service, engine, arg1, arg2)``.
    3. ``run_db`` runs the service via ``asyncio.to_thread()``.
    4. The query runs on a background thread; the event loop stays free.
    5. The result is awaited back in the route.

There is no module-level engine.  Whoever needs the store receives the
engine explicitly, which is what lets each test build its own database.

Usage::

    from rally.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine, "spring")            # CREATE TABLE IF NOT EXISTS …

    # Inside an async route:
    result = await run_db(enroll, engine, user_id, campaign_id, motive)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from rally.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine() -> Engine:
    """Build a SQLAlchemy :class:`Engine` from the ``DATABASE_URL`` env var.

    The connection pool:
    * ``pool_size=5`` — five persistent connections.
    * ``max_overflow=10`` — up to 10 extra connections under load.
    * ``pool_timeout=10`` — fail after 10 s if no connection is available.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid PostgreSQL URL."
        )

    engine = create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine, campaign_slug: str | None = None) -> None:
    """Create all tables defined in :mod:`rally.database.models`.

    Safe to call on every startup.  When *campaign_slug* is given, the
    campaign is seeded (idempotently) so the "current campaign" resolves
    on a fresh database.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is kept for dev/test environments.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")

    if campaign_slug:
        from rally.database.seed import seed_campaign

        seed_campaign(engine, campaign_slug)


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that commits on success and rolls back
    on exception.

    Objects stay readable after the block (``expire_on_commit=False``),
    so services can hand detached rows back to their callers.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    Every service call made from a route goes through this wrapper::

        result = await run_db(my_sync_db_function, engine, user_id)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
