"""Job submission shared by all ingress surfaces.

``submit()`` returns as soon as the ``pending`` row is committed.  Its
latency is one throttle count plus one insert, independent of how slow the
target site is.  The Redis wake-up that follows is capped at
:data:`WAKEUP_PUBLISH_TIMEOUT`, so an unreachable Redis never holds up a
Discord reply.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Optional
from urllib.parse import urlsplit

import structlog
from sqlalchemy.exc import SQLAlchemyError

from slotverse.api.metrics import ingress_requests_total
from slotverse.core.exceptions import (
    DispatchError,
    RequesterThrottledError,
    ScrapeValidationError,
)
from slotverse.core.job_store import JobStore
from slotverse.core.models.base import utcnow
from slotverse.core.models.scraping import ScrapeJob
from slotverse.scraper.wakeup import JobWakeup

logger = structlog.get_logger(__name__)

#: Longest URL accepted, matching the ``scrape_jobs.url`` column.
MAX_URL_LENGTH: int = 2048

#: Seconds ``submit()`` waits for the wake-up publish before giving up.
WAKEUP_PUBLISH_TIMEOUT: float = 0.5

_THROTTLE_WINDOW = timedelta(hours=1)


def validate_url(url: str | None) -> str:
    """Return *url* stripped, or raise if it is not an absolute http(s) URL.

    Raises:
        ScrapeValidationError: With a message suitable for the requester.
    """
    if url is None or not url.strip():
        raise ScrapeValidationError("Please provide a URL to scrape.", url)
    url = url.strip()
    if len(url) > MAX_URL_LENGTH:
        raise ScrapeValidationError(
            f"URL is longer than {MAX_URL_LENGTH} characters.", url
        )
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ScrapeValidationError(
            "Please provide a valid http(s) URL, e.g. "
            "https://slotcatalog.com/slots/sweet-bonanza",
            url,
        )
    return url


class JobDispatcher:
    """Validates, throttles and enqueues scrape requests.

    Args:
        store: Job store receiving the ``pending`` row.
        wakeup: Optional wake-up publisher; ``None`` leaves pickup to polling.
        max_jobs_per_hour: Per-requester limit.  ``0`` disables the check.
        wakeup_timeout: Cap on the wake-up publish, in seconds.
    """

    def __init__(
        self,
        store: JobStore,
        wakeup: Optional[JobWakeup] = None,
        max_jobs_per_hour: int = 0,
        wakeup_timeout: float = WAKEUP_PUBLISH_TIMEOUT,
    ) -> None:
        self.store = store
        self.wakeup = wakeup
        self.max_jobs_per_hour = max_jobs_per_hour
        self.wakeup_timeout = wakeup_timeout

    async def submit(
        self,
        url: str | None,
        *,
        platform: str = "api",
        channel: str | None = None,
        token: str | None = None,
        requested_by: str | None = None,
    ) -> ScrapeJob:
        """Create a ``pending`` job and return it.

        Raises:
            ScrapeValidationError: The URL is missing or malformed.
            RequesterThrottledError: *requested_by* is over the hourly limit.
            DispatchError: The job row could not be written.
        """
        log = logger.bind(platform=platform, requested_by=requested_by)
        try:
            url = validate_url(url)
        except ScrapeValidationError as exc:
            log.info("scrape_request_rejected", reason=str(exc))
            ingress_requests_total.labels(platform=platform, outcome="rejected").inc()
            raise

        try:
            await self._check_throttle(requested_by)
            job = await self.store.create(
                url,
                platform=platform,
                callback_channel=channel,
                callback_token=token,
                requested_by=requested_by,
            )
        except RequesterThrottledError:
            log.warning("scrape_request_throttled", limit=self.max_jobs_per_hour)
            ingress_requests_total.labels(platform=platform, outcome="throttled").inc()
            raise
        except SQLAlchemyError as exc:
            log.error("scrape_request_not_persisted", error=str(exc))
            ingress_requests_total.labels(platform=platform, outcome="error").inc()
            raise DispatchError("The job queue is unavailable, please retry shortly.") from exc

        ingress_requests_total.labels(platform=platform, outcome="accepted").inc()
        log.info("scrape_job_enqueued", job_id=job.id, url=url)

        if self.wakeup is not None:
            try:
                await asyncio.wait_for(self.wakeup.publish(job.id), self.wakeup_timeout)
            except asyncio.TimeoutError:
                # The worker still finds the row on its next poll.
                log.warning("scrape_job_wakeup_timed_out", job_id=job.id)
        return job

    async def _check_throttle(self, requested_by: str | None) -> None:
        if not requested_by or self.max_jobs_per_hour <= 0:
            return
        recent = await self.store.count_recent_for_requester(
            requested_by, utcnow() - _THROTTLE_WINDOW
        )
        if recent >= self.max_jobs_per_hour:
            raise RequesterThrottledError(requested_by, self.max_jobs_per_hour)
