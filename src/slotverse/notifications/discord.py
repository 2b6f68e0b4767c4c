"""Discord delivery through interaction follow-up webhooks.

A follow-up is addressed by the application ID and the interaction token
stored on the job.  Discord only honours that token for a limited window
after the interaction; a job that outlives it gets 401/404 here, which is
reported as :class:`NotificationError` and never retried.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from slotverse.core.exceptions import NotificationError
from slotverse.core.models.scraping import JobStatus, ScrapeJob
from slotverse.notifications.messages import outcome_message

logger = logging.getLogger(__name__)

#: Discord rejects message content longer than this.
MAX_CONTENT_LENGTH: int = 2000

_COLOR_SUCCESS = 0x00FF00
_COLOR_FAILURE = 0xFF0000


class DiscordNotifier:
    """Posts job outcomes as interaction follow-up messages.

    Args:
        application_id: Discord application ID.
        client: Shared ``httpx.AsyncClient``.
        api_base: REST API base URL.
        timeout: Request timeout in seconds.
    """

    platform = "discord"

    def __init__(
        self,
        application_id: str,
        client: httpx.AsyncClient,
        api_base: str = "https://discord.com/api/v10",
        timeout: float = 10.0,
    ) -> None:
        self.application_id = application_id
        self.client = client
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def build_payload(self, job: ScrapeJob) -> dict:
        content = outcome_message(job)
        if len(content) > MAX_CONTENT_LENGTH:
            content = content[: MAX_CONTENT_LENGTH - 1] + "…"
        succeeded = job.status == JobStatus.COMPLETED.value
        return {
            "content": content,
            "embeds": [
                {
                    "title": f"Job #{job.id} {'completed' if succeeded else 'failed'}",
                    "url": job.url,
                    "color": _COLOR_SUCCESS if succeeded else _COLOR_FAILURE,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "footer": {"text": "SlotVerse scraper"},
                }
            ],
        }

    async def send(self, job: ScrapeJob) -> None:
        """Deliver the outcome of *job*.

        Raises:
            NotificationError: On a missing token, a network error or a
                non-2xx response.
        """
        if not job.callback_token:
            raise NotificationError("job has no interaction token", platform=self.platform)

        url = f"{self.api_base}/webhooks/{self.application_id}/{job.callback_token}"
        try:
            response = await self.client.post(url, json=self.build_payload(job), timeout=self.timeout)
        except httpx.RequestError as exc:
            raise NotificationError(
                f"request error: {type(exc).__name__}", platform=self.platform
            ) from None

        if response.status_code >= 400:
            raise NotificationError(
                f"Discord follow-up rejected with HTTP {response.status_code}",
                platform=self.platform,
                status_code=response.status_code,
            )
        logger.debug("notifications: discord follow-up sent for job %s", job.id)
