"""Celery application for SlotVerse maintenance.

Scrape jobs themselves run in the asyncio worker
(:mod:`slotverse.scraper.worker`); Celery only drives the periodic
housekeeping in :mod:`slotverse.workers.maintenance_tasks`.

Usage::

    celery -A slotverse.workers.celery_app worker --loglevel=info
    celery -A slotverse.workers.celery_app beat --loglevel=info
"""

from __future__ import annotations

import logging

from celery import Celery
from celery.signals import task_postrun, worker_process_init
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

load_dotenv()

from slotverse.config.settings import get_settings  # noqa: E402

settings = get_settings()

#: The global Celery application instance.
celery_app = Celery(
    "slotverse",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["slotverse.workers.maintenance_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # Acknowledge after completion so a crashed worker's task is redelivered.
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    result_expires=86_400,
    task_soft_time_limit=600,
    task_time_limit=900,
    beat_schedule_filename="celerybeat-schedule",
)

from slotverse.workers.beat_schedule import beat_schedule  # noqa: E402

celery_app.conf.beat_schedule = beat_schedule


@worker_process_init.connect
def _dispose_engines_on_fork(**kwargs: object) -> None:  # noqa: ARG001
    """Dispose the async engine after Celery forks a worker process.

    Pooled connections belong to the parent's event loop and cannot be
    reused by the child.
    """
    from slotverse.core import database as _db  # noqa: PLC0415

    _db.async_engine.sync_engine.dispose(close=False)


@task_postrun.connect
def _dispose_async_engine_after_task(**kwargs: object) -> None:  # noqa: ARG001
    """Drop pooled connections bound to the loop the finished task's ``asyncio.run()`` closed."""
    try:
        from slotverse.core import database as _db  # noqa: PLC0415

        _db.async_engine.sync_engine.dispose(close=False)
    except Exception as exc:  # noqa: BLE001
        _logger.debug("celery: engine disposal after task failed: %s", exc)
