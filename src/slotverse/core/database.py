"""Async SQLAlchemy engine and session factory.

Provides:
- async_engine:         the process-wide AsyncEngine instance
- AsyncSessionLocal:    the async_sessionmaker factory
- Base.metadata:        re-exported so migrations can reference it without
                        importing individual models

Pool sizing covers the API process plus one worker running
``WORKER_MAX_CONCURRENT_JOBS`` jobs, each holding at most one connection at a
time.  SQLite URLs skip the pool arguments because aiosqlite uses its own
pool classes.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from slotverse.core.models.base import Base  # noqa: F401


def _build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine from a database URL.

    Separated from module-level code so tests can build an engine for a
    temporary SQLite file without touching settings.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=False)
    return create_async_engine(
        database_url,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to *engine* with the project defaults."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def _get_database_url() -> str:
    """Resolve the database URL from application settings.

    Imported lazily so that test code can patch the environment before the
    engine is created.
    """
    from slotverse.config.settings import get_settings  # noqa: PLC0415

    return str(get_settings().database_url)


# ---------------------------------------------------------------------------
# Process-wide engine and session factory.
# Created on first import; no connection is opened until first use.
# ---------------------------------------------------------------------------
async_engine = _build_engine(_get_database_url())

AsyncSessionLocal: async_sessionmaker[AsyncSession] = build_session_factory(async_engine)

