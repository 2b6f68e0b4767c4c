"""Health check route handlers.

``GET /api/health``
    Verifies the process can reach the database (``SELECT 1``) and Redis
    (``PING``).  Always returns HTTP 200; the ``status`` field
    distinguishes ``"ok"`` from ``"degraded"``.

This endpoint is diagnostic and must never raise HTTP 5xx errors.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

import redis.asyncio as aioredis
import sqlalchemy as sa
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from slotverse import __version__
from slotverse.api.dependencies import JobStoreDep
from slotverse.config.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


async def _check_database() -> str:
    """Run ``SELECT 1`` against the configured database."""
    from slotverse.core.database import AsyncSessionLocal  # noqa: PLC0415

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(sa.text("SELECT 1"))
        return "ok"
    except Exception:
        logger.exception("Health check: database unreachable")
        return "error"


async def _check_redis() -> str:
    """Send ``PING`` to the wake-up Redis instance."""
    settings = get_settings()
    try:
        client: aioredis.Redis = aioredis.from_url(
            settings.redis_url,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        await client.ping()
        await client.aclose()
        return "ok"
    except Exception:
        logger.exception("Health check: Redis unreachable")
        return "error"


@router.get("/api/health", include_in_schema=True)
async def system_health(store: JobStoreDep) -> JSONResponse:
    """Return process-level health including database and Redis connectivity.

    Redis only carries the worker wake-up, so a Redis outage slows job
    pickup to the poll interval but loses nothing; it still reports
    ``"degraded"``.  ``pending_jobs`` is the worker backlog, ``null`` when
    the database is unreachable.

    Returns:
        JSON with keys: ``status``, ``version``, ``database``, ``redis``,
        ``pending_jobs``, ``timestamp``.
    """
    db_status, redis_status = await asyncio.gather(_check_database(), _check_redis())

    pending_jobs = None
    if db_status == "ok":
        try:
            pending_jobs = await store.count_pending()
        except Exception:
            logger.exception("Health check: could not count pending jobs")

    overall = "ok" if db_status == "ok" and redis_status == "ok" else "degraded"
    payload = {
        "status": overall,
        "version": __version__,
        "database": db_status,
        "redis": redis_status,
        "pending_jobs": pending_jobs,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    logger.info("system_health_check", extra={"health": payload})
    return JSONResponse(payload)
