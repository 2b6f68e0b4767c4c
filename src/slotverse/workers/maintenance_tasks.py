"""Periodic housekeeping of the ``scrape_jobs`` table.

Tasks:

``fail_stale_scrape_jobs``
    Marks ``processing`` jobs older than ``STALE_JOB_MINUTES`` as failed.
    Those jobs lost their worker (crash, OOM kill, deploy) before
    :meth:`JobStore.finish` ran; without this they would stay
    ``processing`` forever.

``cleanup_old_scrape_jobs``
    Deletes ``completed`` and ``failed`` jobs created more than
    ``JOB_RETENTION_DAYS`` ago.

Both tasks run their async body with ``asyncio.run`` and return a small
summary dict; errors are logged and reported in the dict, never raised.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any

import structlog

from slotverse.api.metrics import celery_tasks_total
from slotverse.config.settings import get_settings
from slotverse.core.job_store import JobStore
from slotverse.core.models.base import utcnow
from slotverse.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


@celery_app.task(name="slotverse.workers.maintenance_tasks.fail_stale_scrape_jobs")
def fail_stale_scrape_jobs() -> dict[str, Any]:
    """Fail jobs stuck in ``processing`` longer than the stale threshold.

    Returns:
        Dict with ``jobs_failed`` and the affected ``job_ids``.
    """
    settings = get_settings()
    log = logger.bind(task="fail_stale_scrape_jobs")
    older_than = timedelta(minutes=settings.stale_job_minutes)

    try:
        job_ids = asyncio.run(JobStore().fail_stale(older_than))
    except Exception as exc:  # noqa: BLE001
        log.error("fail_stale_scrape_jobs: DB error", error=str(exc), exc_info=True)
        celery_tasks_total.labels(task_name="fail_stale_scrape_jobs", status="error").inc()
        return {"error": str(exc), "jobs_failed": 0, "job_ids": []}

    if job_ids:
        log.warning("fail_stale_scrape_jobs: failed stale jobs", job_ids=job_ids)
    else:
        log.info("fail_stale_scrape_jobs: no stale jobs")
    celery_tasks_total.labels(task_name="fail_stale_scrape_jobs", status="success").inc()
    return {"jobs_failed": len(job_ids), "job_ids": job_ids}


@celery_app.task(name="slotverse.workers.maintenance_tasks.cleanup_old_scrape_jobs")
def cleanup_old_scrape_jobs() -> dict[str, Any]:
    """Delete finished jobs past the retention window.

    Returns:
        Dict with ``jobs_deleted`` and the ``cutoff`` timestamp (ISO 8601).
    """
    settings = get_settings()
    log = logger.bind(task="cleanup_old_scrape_jobs")
    cutoff = utcnow() - timedelta(days=settings.job_retention_days)

    try:
        deleted = asyncio.run(JobStore().delete_finished_before(cutoff))
    except Exception as exc:  # noqa: BLE001
        log.error("cleanup_old_scrape_jobs: DB error", error=str(exc), exc_info=True)
        celery_tasks_total.labels(task_name="cleanup_old_scrape_jobs", status="error").inc()
        return {"error": str(exc), "jobs_deleted": 0}

    summary = {"jobs_deleted": deleted, "cutoff": cutoff.isoformat()}
    log.info("cleanup_old_scrape_jobs: complete", **summary)
    celery_tasks_total.labels(task_name="cleanup_old_scrape_jobs", status="success").inc()
    return summary
