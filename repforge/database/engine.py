"""
repforge.database.engine — Database Connection & Async Helper
==============================================================

SQLAlchemy is used synchronously.  Async callers (the API's background
sweeper, FastAPI handlers that want to stay off the event loop) go through
:func:`run_db`, which ships the synchronous function to a worker thread via
:func:`asyncio.to_thread`.

Usage::

    from repforge.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside a coroutine:
    expired = await run_db(arbiter.sweep)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from repforge.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine` from *url* or ``DATABASE_URL``.

    Server databases get a small pool (5 + 10 overflow, 10 s timeout,
    hourly recycle).  SQLite URLs are passed through with default pooling.

    Raises
    ------
    RuntimeError
        If neither *url* nor ``DATABASE_URL`` is set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid database URL."
        )

    if url.startswith("sqlite"):
        engine = create_engine(url, echo=False)
    else:
        engine = create_engine(
            url,
            echo=False,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_timeout=10,
            pool_recycle=3600,
        )
    logger.info("Database engine created → %s", engine.url.host or engine.url.database)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`repforge.database.models`.

    Safe to call on every startup (``CREATE TABLE IF NOT EXISTS``).

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``); ``create_all`` covers dev/test databases where it hasn't run.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine, **kwargs) -> Iterator[Session]:
    """Yield a :class:`Session` that commits on success and rolls back on
    exception.

    Usage::

        with get_session(engine) as session:
            session.add(User(id=123, username="drew"))
    """
    session = Session(engine, **kwargs)
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

    Parameters
    ----------
    func:
        Any sync callable (typically a function that opens a session and
        runs queries).
    *args, **kwargs:
        Forwarded to *func*.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
