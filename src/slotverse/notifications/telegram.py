"""Telegram delivery through the Bot API ``sendMessage`` method."""

from __future__ import annotations

import logging

import httpx

from slotverse.core.exceptions import NotificationError
from slotverse.core.models.scraping import ScrapeJob
from slotverse.notifications.messages import outcome_message

logger = logging.getLogger(__name__)

#: Telegram rejects message text longer than this.
MAX_TEXT_LENGTH: int = 4096


class TelegramNotifier:
    """Sends job outcomes to the chat stored in ``callback_channel``.

    Args:
        bot_token: Bot API token.
        client: Shared ``httpx.AsyncClient``.
        api_base: Bot API base URL.
        timeout: Request timeout in seconds.
    """

    platform = "telegram"

    def __init__(
        self,
        bot_token: str,
        client: httpx.AsyncClient,
        api_base: str = "https://api.telegram.org",
        timeout: float = 10.0,
    ) -> None:
        self._bot_token = bot_token
        self.client = client
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    async def send_text(self, chat_id: str, text: str) -> None:
        """Send *text* to *chat_id*.

        Raises:
            NotificationError: On a network error or when the Bot API
                answers ``ok: false`` / a non-2xx status.
        """
        url = f"{self.api_base}/bot{self._bot_token}/sendMessage"
        try:
            response = await self.client.post(
                url,
                json={
                    "chat_id": chat_id,
                    "text": text[:MAX_TEXT_LENGTH],
                    "disable_web_page_preview": True,
                },
                timeout=self.timeout,
            )
        except httpx.RequestError as exc:
            # The exception text embeds the URL, which contains the bot token.
            raise NotificationError(
                f"request error: {type(exc).__name__}", platform=self.platform
            ) from None

        ok = response.status_code < 400
        if ok:
            try:
                ok = bool(response.json().get("ok", True))
            except ValueError:
                ok = True
        if not ok:
            raise NotificationError(
                f"sendMessage rejected with HTTP {response.status_code}",
                platform=self.platform,
                status_code=response.status_code,
            )

    async def send(self, job: ScrapeJob) -> None:
        if not job.callback_channel:
            raise NotificationError("job has no chat id", platform=self.platform)
        await self.send_text(job.callback_channel, outcome_message(job))
        logger.debug("notifications: telegram message sent for job %s", job.id)
