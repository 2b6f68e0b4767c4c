"""Telegram bot webhook.

Telegram lets a webhook answer with a Bot API method call in the response
body, which is delivered immediately.  ``/copy <url>`` uses that to confirm
the job inline; the outcome follows later as a separate ``sendMessage``
from the notifier.

Every update gets a 200 response.  Telegram retries non-2xx answers, which
would enqueue the same job again.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Request

from slotverse.api.dependencies import DispatcherDep, SettingsDep
from slotverse.api.limiter import INGRESS_RATE_LIMIT, limiter
from slotverse.api.metrics import ingress_requests_total
from slotverse.core.exceptions import (
    DispatchError,
    RequesterThrottledError,
    ScrapeValidationError,
)
from slotverse.notifications.messages import started_message

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/telegram", tags=["telegram"])

USAGE_TEXT = (
    "🎰 SlotVerse scraper\n\n"
    "/copy <url> - scrape a slot game page into the catalog\n\n"
    "Example: /copy https://slotcatalog.com/slots/sweet-bonanza"
)


def _send_message(chat_id: Any, text: str) -> dict[str, Any]:
    return {
        "method": "sendMessage",
        "chat_id": chat_id,
        "text": text,
        "disable_web_page_preview": True,
    }


def parse_command(text: str) -> tuple[str, str]:
    """Split ``"/copy@SlotVerseBot https://..."`` into ``("/copy", "https://...")``."""
    head, _, rest = text.strip().partition(" ")
    command = head.split("@", 1)[0].lower()
    return command, rest.strip()


@router.post("/webhook")
@limiter.limit(INGRESS_RATE_LIMIT)
async def telegram_webhook(
    request: Request,
    dispatcher: DispatcherDep,
    settings: SettingsDep,
) -> dict[str, Any]:
    try:
        update = await request.json()
    except ValueError:
        return {"ok": True}
    message = update.get("message") if isinstance(update, dict) else None
    if not isinstance(message, dict) or "chat" not in message:
        return {"ok": True}

    chat_id = message["chat"].get("id")
    user_id = str((message.get("from") or {}).get("id", ""))
    text = message.get("text") or ""
    log = logger.bind(chat_id=chat_id, telegram_user=user_id)

    if settings.telegram_allowed_user_ids and user_id not in settings.telegram_allowed_user_ids:
        log.info("telegram_user_unauthorised")
        ingress_requests_total.labels(platform="telegram", outcome="rejected").inc()
        return _send_message(chat_id, "🚫 Access denied. You are not authorized to use this bot.")

    command, argument = parse_command(text)
    if command != "/copy":
        return _send_message(chat_id, USAGE_TEXT)

    try:
        job = await dispatcher.submit(
            argument or None,
            platform="telegram",
            channel=str(chat_id),
            requested_by=f"telegram:{user_id}" if user_id else None,
        )
    except ScrapeValidationError as exc:
        return _send_message(chat_id, f"❌ {exc}")
    except RequesterThrottledError:
        return _send_message(chat_id, "⏳ You've reached the hourly scrape limit. Try again later.")
    except DispatchError as exc:
        return _send_message(chat_id, f"❌ {exc}")

    return _send_message(chat_id, started_message(job))
