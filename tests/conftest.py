"""Shared pytest fixtures for SlotVerse tests.

Fixture summary
---------------
settings          ``Settings`` built from the test environment.
db_engine         Async engine on a fresh on-disk SQLite file with all tables.
session_factory   ``async_sessionmaker`` bound to ``db_engine``.
job_store         ``JobStore`` on the test database.
game_repository   ``GameRepository`` on the test database.
signing_key       Throwaway Ed25519 key for signing Discord interactions.
app_settings      ``Settings`` whose Discord public key matches ``signing_key``.
app               Application with the store and dispatcher overridden.
api_client        ``httpx.AsyncClient`` driving ``app`` in process.

No test needs PostgreSQL or Redis.  Each test that touches the database
gets its own SQLite file under ``tmp_path``, so tests are isolated without
rollback tricks.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Set before any application module is imported so that Settings() does not
# raise a ValidationError during collection.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "REDIS_URL": "redis://localhost:6379/15",
    "LOG_LEVEL": "WARNING",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

from slotverse.config.settings import Settings, get_settings  # noqa: E402
from slotverse.core.database import _build_engine, build_session_factory  # noqa: E402
from slotverse.core.game_repository import GameRepository  # noqa: E402
from slotverse.core.job_store import JobStore  # noqa: E402
from slotverse.core.models import Base  # noqa: E402
from slotverse.ingress.dispatcher import JobDispatcher  # noqa: E402

get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Yield an engine on a throwaway SQLite file with the schema created."""
    engine = _build_engine(f"sqlite+aiosqlite:///{tmp_path / 'slotverse-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(db_engine)


@pytest.fixture
def job_store(session_factory: async_sessionmaker[AsyncSession]) -> JobStore:
    return JobStore(session_factory)


@pytest.fixture
def game_repository(session_factory: async_sessionmaker[AsyncSession]) -> GameRepository:
    return GameRepository(session_factory)


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------

#: Per-requester hourly limit applied by the ``app`` fixture's dispatcher.
TEST_JOBS_PER_HOUR = 3


@pytest.fixture
def signing_key() -> Ed25519PrivateKey:
    return Ed25519PrivateKey.generate()


@pytest.fixture
def app_settings(signing_key: Ed25519PrivateKey) -> Settings:
    public_hex = signing_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    ).hex()
    return Settings(discord_public_key=public_hex, metrics_enabled=False)


@pytest.fixture
def app(
    job_store: JobStore, game_repository: GameRepository, app_settings: Settings
) -> FastAPI:
    """Application wired to the test database, without Redis wake-ups."""
    from slotverse.api.dependencies import (  # noqa: PLC0415
        get_dispatcher,
        get_game_repository,
        get_job_store,
    )
    from slotverse.api.limiter import limiter  # noqa: PLC0415
    from slotverse.api.main import create_app  # noqa: PLC0415

    application = create_app()
    application.dependency_overrides[get_job_store] = lambda: job_store
    application.dependency_overrides[get_game_repository] = lambda: game_repository
    application.dependency_overrides[get_settings] = lambda: app_settings
    application.dependency_overrides[get_dispatcher] = lambda: JobDispatcher(
        job_store, wakeup=None, max_jobs_per_hour=TEST_JOBS_PER_HOUR
    )
    limiter.reset()
    return application


@pytest_asyncio.fixture
async def api_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
