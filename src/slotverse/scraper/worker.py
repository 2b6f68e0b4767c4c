"""Background worker: claims pending scrape jobs and runs them to completion.

One long-lived asyncio loop per process.  Each tick fills the free slots
(``max_concurrent_jobs`` minus jobs in flight) from
:meth:`JobStore.claim_pending`, runs every claimed job as its own task
under a hard deadline, records the terminal state and hands the job to the
notifier.  A failing job is recorded as ``failed``; it never stops the loop
or disturbs its neighbours.

Usage::

    # Continuous worker (SIGINT/SIGTERM drain in-flight jobs, then exit)
    python -m slotverse.scraper.worker

    # One tick, wait for the claimed jobs, exit
    slotverse-worker --once --max-concurrent-jobs 1
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import time
from typing import Any, Optional

import httpx
import structlog

from slotverse.api.metrics import scrape_job_duration_seconds, scrape_jobs_total
from slotverse.core.exceptions import JobFailure, JobStateError, JobTimeoutError
from slotverse.core.game_repository import GameRepository
from slotverse.core.job_store import JobStore
from slotverse.core.logging_config import job_id_var
from slotverse.core.models.scraping import JobStatus, ScrapeJob
from slotverse.notifications.dispatcher import NotificationDispatcher
from slotverse.scraper.runner import StrategyRunner
from slotverse.scraper.wakeup import JobWakeup

logger = structlog.get_logger(__name__)


class ScrapeWorker:
    """Polling job executor with bounded concurrency.

    Args:
        store: Job store to claim from and finish into.
        runner: Strategy runner used for every job.
        games: Catalog repository receiving extracted games.
        notifier: Delivers outcomes; must not raise.
        max_concurrent_jobs: Upper bound on jobs in flight.
        job_timeout: Hard per-job deadline in seconds.
        poll_interval: Seconds between ticks when nothing wakes the loop.
        wakeup: Optional Redis listener that ends the wait early.
    """

    def __init__(
        self,
        store: JobStore,
        runner: StrategyRunner,
        games: GameRepository,
        notifier: NotificationDispatcher,
        *,
        max_concurrent_jobs: int = 3,
        job_timeout: float = 300.0,
        poll_interval: float = 5.0,
        wakeup: Optional[JobWakeup] = None,
    ) -> None:
        self.store = store
        self.runner = runner
        self.games = games
        self.notifier = notifier
        self.max_concurrent_jobs = max_concurrent_jobs
        self.job_timeout = job_timeout
        self.poll_interval = poll_interval
        self.wakeup = wakeup
        self._active: set[asyncio.Task] = set()
        self._stopping = asyncio.Event()

    @property
    def in_flight(self) -> int:
        return len(self._active)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run_forever(self) -> None:
        logger.info(
            "worker_started",
            max_concurrent_jobs=self.max_concurrent_jobs,
            job_timeout=self.job_timeout,
            poll_interval=self.poll_interval,
        )
        while not self._stopping.is_set():
            await self.tick()
            await self._wait()
        await self.drain()
        logger.info("worker_stopped")

    def stop(self) -> None:
        """Stop claiming new jobs; in-flight jobs are drained by ``run_forever``."""
        self._stopping.set()

    async def tick(self) -> list[asyncio.Task]:
        """Claim jobs for the free slots and start them.  Returns the new tasks."""
        slots = self.max_concurrent_jobs - len(self._active)
        if slots <= 0:
            logger.debug("worker_saturated", in_flight=len(self._active))
            return []

        try:
            jobs = await self.store.claim_pending(slots)
        except Exception as exc:  # noqa: BLE001
            logger.error("worker_claim_failed", error=str(exc), exc_info=True)
            return []

        tasks = []
        for job in jobs:
            task = asyncio.create_task(self.run_job(job), name=f"scrape-job-{job.id}")
            self._active.add(task)
            task.add_done_callback(self._active.discard)
            tasks.append(task)
        if tasks:
            logger.info("worker_claimed_jobs", job_ids=[job.id for job in jobs])
        return tasks

    async def drain(self) -> None:
        """Wait for every in-flight job to finish."""
        if self._active:
            await asyncio.gather(*self._active, return_exceptions=True)

    async def _wait(self) -> None:
        if self.wakeup is not None:
            await self.wakeup.wait(self.poll_interval)
            return
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass

    # ------------------------------------------------------------------
    # One job
    # ------------------------------------------------------------------

    async def run_job(self, job: ScrapeJob) -> ScrapeJob | None:
        """Run one claimed job to a terminal state and notify the requester.

        Returns the finished job, or ``None`` if the terminal state could
        not be recorded.
        """
        job_id_var.set(job.id)
        log = logger.bind(url=job.url)
        started = time.monotonic()
        result: dict[str, Any] | None = None
        error: str | None = None

        try:
            result = await asyncio.wait_for(self._execute(job), timeout=self.job_timeout)
        except asyncio.TimeoutError:
            error = JobTimeoutError(self.job_timeout).as_error_message()
        except JobFailure as exc:
            error = exc.as_error_message()
        except Exception as exc:  # noqa: BLE001
            log.error("scrape_job_crashed", error=str(exc), exc_info=True)
            error = f"internal: {exc}"

        try:
            if error is None:
                finished = await self.store.finish(job.id, JobStatus.COMPLETED.value, result=result)
            else:
                finished = await self.store.finish(job.id, JobStatus.FAILED.value, error=error)
        except JobStateError as exc:
            log.warning("scrape_job_finish_rejected", error=str(exc))
            return None
        except Exception as exc:  # noqa: BLE001
            log.error("scrape_job_finish_failed", error=str(exc), exc_info=True)
            return None

        duration = time.monotonic() - started
        scrape_jobs_total.labels(status=finished.status).inc()
        scrape_job_duration_seconds.observe(duration)
        if error is None:
            log.info("scrape_job_completed", strategy=result["strategy"], duration_s=round(duration, 2))
        else:
            log.warning("scrape_job_failed", error=error, duration_s=round(duration, 2))

        await self.notifier.deliver(finished)
        return finished

    async def _execute(self, job: ScrapeJob) -> dict[str, Any]:
        """Fetch, extract and save; return the result payload."""
        outcome = await self.runner.run(job.url)
        saved = await self.games.save_game(outcome.game, source_url=job.url)

        game = outcome.game.to_dict()
        listing_names = game.pop("listing_names")
        game.update(id=saved.id, slug=saved.slug, created=saved.created)
        return {
            "games_found": 1,
            "games": [game],
            "strategy": outcome.strategy,
            "elapsed_ms": outcome.elapsed_ms,
            "final_url": outcome.final_url,
            "source": outcome.game.source,
            "listing_names": listing_names,
            "attempts": [attempt.to_dict() for attempt in outcome.attempts],
        }


# ---------------------------------------------------------------------------
# Process entry point
# ---------------------------------------------------------------------------


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="slotverse-worker",
        description="Run the SlotVerse background scrape worker.",
    )
    parser.add_argument("--max-concurrent-jobs", type=int, default=None)
    parser.add_argument("--job-timeout", type=float, default=None, help="seconds")
    parser.add_argument("--poll-interval", type=float, default=None, help="seconds")
    parser.add_argument(
        "--once",
        action="store_true",
        help="run a single tick, wait for the claimed jobs, then exit",
    )
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> None:
    from slotverse.config.settings import get_settings  # noqa: PLC0415

    settings = get_settings()
    wakeup = JobWakeup(settings.redis_url, settings.worker_wakeup_channel)

    async with httpx.AsyncClient() as notify_client:
        worker = ScrapeWorker(
            store=JobStore(),
            runner=StrategyRunner(),
            games=GameRepository(),
            notifier=NotificationDispatcher.from_settings(settings, notify_client),
            max_concurrent_jobs=args.max_concurrent_jobs or settings.worker_max_concurrent_jobs,
            job_timeout=args.job_timeout or settings.worker_job_timeout_seconds,
            poll_interval=args.poll_interval or settings.worker_poll_interval_seconds,
            wakeup=None if args.once else wakeup,
        )
        try:
            if args.once:
                await worker.tick()
                await worker.drain()
                return
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, worker.stop)
            await worker.run_forever()
        finally:
            await wakeup.close()


def main(argv: list[str] | None = None) -> None:
    from slotverse.config.settings import get_settings  # noqa: PLC0415
    from slotverse.core.logging_config import configure_logging  # noqa: PLC0415

    args = _parse_args(argv)
    configure_logging(get_settings().log_level)
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
