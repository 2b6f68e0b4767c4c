"""Routes finished jobs to the notifier for their platform.

Delivery is best effort.  The job is already ``completed`` or ``failed`` in
the store before anything is sent, and nothing here changes that: every
failure is logged, counted and swallowed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

from slotverse.api.metrics import notifications_total
from slotverse.core.exceptions import NotificationError
from slotverse.core.models.scraping import ScrapeJob
from slotverse.notifications.discord import DiscordNotifier
from slotverse.notifications.telegram import TelegramNotifier

if TYPE_CHECKING:
    from slotverse.config.settings import Settings

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    platform: str

    async def send(self, job: ScrapeJob) -> None: ...


class NotificationDispatcher:
    """Delivers job outcomes without ever raising.

    Args:
        notifiers: Notifiers keyed by the ``platform`` value stored on jobs.
    """

    def __init__(self, notifiers: dict[str, Notifier] | None = None) -> None:
        self.notifiers = notifiers or {}

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> NotificationDispatcher:
        """Build notifiers for every platform that has credentials configured."""
        notifiers: dict[str, Notifier] = {}
        if settings.discord_application_id:
            notifiers["discord"] = DiscordNotifier(
                settings.discord_application_id,
                client,
                api_base=settings.discord_api_base,
            )
        if settings.telegram_bot_token:
            notifiers["telegram"] = TelegramNotifier(
                settings.telegram_bot_token,
                client,
                api_base=settings.telegram_api_base,
            )
        return cls(notifiers)

    async def deliver(self, job: ScrapeJob) -> bool:
        """Send the outcome of *job*; return whether it was delivered."""
        log = logger.bind(job_id=job.id, platform=job.platform)
        notifier = self.notifiers.get(job.platform)
        if notifier is None or not (job.callback_channel or job.callback_token):
            log.debug("notification_skipped", has_notifier=notifier is not None)
            notifications_total.labels(platform=job.platform, outcome="skipped").inc()
            return False

        try:
            await notifier.send(job)
        except NotificationError as exc:
            log.warning(
                "notification_failed",
                error=str(exc),
                http_status=exc.status_code,
            )
            notifications_total.labels(platform=job.platform, outcome="failed").inc()
            return False
        except Exception as exc:  # noqa: BLE001
            log.error("notification_crashed", error=str(exc), exc_info=True)
            notifications_total.labels(platform=job.platform, outcome="failed").inc()
            return False

        log.info("notification_delivered")
        notifications_total.labels(platform=job.platform, outcome="delivered").inc()
        return True
