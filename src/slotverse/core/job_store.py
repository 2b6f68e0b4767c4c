"""Durable store for ``ScrapeJob`` rows.

The store is the only shared mutable resource in the pipeline.  Two
operations carry the lifecycle rules:

``claim_pending(limit)``
    Selects the oldest ``pending`` jobs and moves them to ``processing``.
    Each row is flipped with a compare-and-set ``UPDATE ... WHERE status =
    'pending'``, so two concurrent callers can never both claim the same
    job.  On PostgreSQL the candidate ``SELECT`` also takes
    ``FOR UPDATE SKIP LOCKED`` so competing workers pick different rows
    instead of waiting on each other.

``finish(job_id, status, ...)``
    Moves a ``processing`` job to ``completed`` (with a result payload) or
    ``failed`` (with an error message).  Any other starting state raises
    :class:`JobStateError`.

Every method opens its own short transaction from the session factory, so
one ``JobStore`` instance is safe to share between the API, the worker and
the maintenance tasks.

Usage::

    from slotverse.core.job_store import JobStore

    store = JobStore()
    job = await store.create("https://example.com/slots/gates-of-olympus")
    claimed = await store.claim_pending(3)
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from slotverse.core.exceptions import JobStateError
from slotverse.core.models.base import utcnow
from slotverse.core.models.scraping import TERMINAL_STATUSES, JobStatus, ScrapeJob

logger = logging.getLogger(__name__)

#: Default page size of :meth:`JobStore.list_recent`.
RECENT_JOBS_LIMIT: int = 20


class JobStore:
    """CRUD and lifecycle queries over ``scrape_jobs``.

    Args:
        session_factory: Factory for ``AsyncSession`` objects.  Defaults to
            the process-wide ``AsyncSessionLocal``.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> None:
        if session_factory is None:
            from slotverse.core.database import AsyncSessionLocal  # noqa: PLC0415

            session_factory = AsyncSessionLocal
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create(
        self,
        url: str,
        *,
        platform: str = "api",
        callback_channel: str | None = None,
        callback_token: str | None = None,
        requested_by: str | None = None,
    ) -> ScrapeJob:
        """Insert a new ``pending`` job and return it once committed."""
        job = ScrapeJob(
            url=url,
            status=JobStatus.PENDING.value,
            platform=platform,
            callback_channel=callback_channel,
            callback_token=callback_token,
            requested_by=requested_by,
            created_at=utcnow(),
        )
        async with self._session_factory() as session:
            session.add(job)
            await session.commit()
            await session.refresh(job)
        logger.info("scraper: job %s created for %s", job.id, url)
        return job

    async def get(self, job_id: int) -> ScrapeJob | None:
        async with self._session_factory() as session:
            return await session.get(ScrapeJob, job_id)

    async def list_recent(self, limit: int = RECENT_JOBS_LIMIT) -> list[ScrapeJob]:
        """Return the newest jobs first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ScrapeJob)
                .order_by(ScrapeJob.created_at.desc(), ScrapeJob.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def count_recent_for_requester(self, requested_by: str, since: datetime) -> int:
        """Count jobs *requested_by* submitted at or after *since*."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(ScrapeJob.id)).where(
                    ScrapeJob.requested_by == requested_by,
                    ScrapeJob.created_at >= since,
                )
            )
            return int(result.scalar_one())

    async def count_pending(self) -> int:
        """Number of jobs waiting for a worker."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(ScrapeJob.id)).where(
                    ScrapeJob.status == JobStatus.PENDING.value
                )
            )
            return int(result.scalar_one())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def claim_pending(self, limit: int) -> list[ScrapeJob]:
        """Atomically move up to *limit* oldest ``pending`` jobs to ``processing``.

        Args:
            limit: Maximum number of jobs to claim.  ``0`` or less claims nothing.

        Returns:
            The claimed jobs, oldest first, with ``started_at`` set.
        """
        if limit <= 0:
            return []

        async with self._session_factory() as session:
            candidates = await session.execute(
                select(ScrapeJob.id)
                .where(ScrapeJob.status == JobStatus.PENDING.value)
                .order_by(ScrapeJob.created_at, ScrapeJob.id)
                .limit(limit)
                .with_for_update(skip_locked=True)
            )
            candidate_ids = list(candidates.scalars().all())

            started_at = utcnow()
            claimed_ids: list[int] = []
            for job_id in candidate_ids:
                result = await session.execute(
                    update(ScrapeJob)
                    .where(
                        ScrapeJob.id == job_id,
                        ScrapeJob.status == JobStatus.PENDING.value,
                    )
                    .values(status=JobStatus.PROCESSING.value, started_at=started_at)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    claimed_ids.append(job_id)
            await session.commit()

            if not claimed_ids:
                return []

            result = await session.execute(
                select(ScrapeJob)
                .where(ScrapeJob.id.in_(claimed_ids))
                .order_by(ScrapeJob.created_at, ScrapeJob.id)
                .execution_options(populate_existing=True)
            )
            jobs = list(result.scalars().all())

        if len(claimed_ids) < len(candidate_ids):
            logger.debug(
                "scraper: lost %d of %d claim races",
                len(candidate_ids) - len(claimed_ids),
                len(candidate_ids),
            )
        return jobs

    async def finish(
        self,
        job_id: int,
        status: str,
        *,
        error: str | None = None,
        result: dict[str, Any] | None = None,
    ) -> ScrapeJob:
        """Move a ``processing`` job to its terminal state.

        Exactly one of *error* (for ``failed``) or *result* (for
        ``completed``) must be given.

        Raises:
            JobStateError: If the arguments do not match *status*, the job
                does not exist, or it is not currently ``processing``.
        """
        status = JobStatus(status).value
        if status not in TERMINAL_STATUSES:
            raise JobStateError(f"cannot finish job with status {status!r}", job_id)
        if status == JobStatus.COMPLETED.value and (result is None or error is not None):
            raise JobStateError("completed jobs need a result and no error", job_id)
        if status == JobStatus.FAILED.value and (not error or result is not None):
            raise JobStateError("failed jobs need an error and no result", job_id)

        async with self._session_factory() as session:
            updated = await session.execute(
                update(ScrapeJob)
                .where(
                    ScrapeJob.id == job_id,
                    ScrapeJob.status == JobStatus.PROCESSING.value,
                )
                .values(
                    status=status,
                    completed_at=utcnow(),
                    error_message=error,
                    result_payload=result,
                )
                .execution_options(synchronize_session=False)
            )
            if updated.rowcount != 1:
                await session.rollback()
                raise JobStateError(f"job {job_id} is not processing", job_id)
            await session.commit()

            job = await session.get(ScrapeJob, job_id, populate_existing=True)
        if job is None:
            raise JobStateError(f"job {job_id} vanished after finishing", job_id)
        return job

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def fail_stale(self, older_than: timedelta) -> list[int]:
        """Fail ``processing`` jobs claimed longer than *older_than* ago.

        A job stuck in ``processing`` means its worker died before calling
        :meth:`finish`.  The per-job timeout normally ends jobs long before
        this threshold.

        Returns:
            IDs of the jobs that were failed.
        """
        cutoff = utcnow() - older_than
        async with self._session_factory() as session:
            stale = await session.execute(
                select(ScrapeJob.id).where(
                    ScrapeJob.status == JobStatus.PROCESSING.value,
                    ScrapeJob.started_at < cutoff,
                )
            )
            stale_ids = list(stale.scalars().all())
            failed_ids: list[int] = []
            for job_id in stale_ids:
                result = await session.execute(
                    update(ScrapeJob)
                    .where(
                        ScrapeJob.id == job_id,
                        ScrapeJob.status == JobStatus.PROCESSING.value,
                    )
                    .values(
                        status=JobStatus.FAILED.value,
                        completed_at=utcnow(),
                        error_message="internal: worker stopped before the job finished",
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    failed_ids.append(job_id)
            await session.commit()
        return failed_ids

    async def delete_finished_before(self, cutoff: datetime) -> int:
        """Delete terminal jobs created before *cutoff*.  Returns the row count."""
        async with self._session_factory() as session:
            result = await session.execute(
                delete(ScrapeJob)
                .where(
                    ScrapeJob.status.in_(TERMINAL_STATUSES),
                    ScrapeJob.created_at < cutoff,
                )
                .execution_options(synchronize_session=False)
            )
            await session.commit()
        return result.rowcount or 0
