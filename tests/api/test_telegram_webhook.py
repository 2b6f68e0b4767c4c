"""Tests for the Telegram bot webhook."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from slotverse.config.settings import Settings
from slotverse.core.job_store import JobStore
from slotverse.ingress.telegram import USAGE_TEXT, parse_command

_GAME_URL = "https://slotcatalog.com/slots/sweet-bonanza"


def _update(text: str, user_id: int = 1001, chat_id: int = -42) -> dict[str, Any]:
    return {
        "update_id": 1,
        "message": {
            "message_id": 10,
            "from": {"id": user_id, "is_bot": False, "first_name": "Tess"},
            "chat": {"id": chat_id, "type": "group"},
            "text": text,
        },
    }


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("/copy https://a.example/x", ("/copy", "https://a.example/x")),
        ("/copy@SlotVerseBot   https://a.example/x ", ("/copy", "https://a.example/x")),
        ("/COPY", ("/copy", "")),
        ("hello there", ("hello", "there")),
    ],
)
def test_parse_command(text: str, expected: tuple[str, str]) -> None:
    assert parse_command(text) == expected


@pytest.mark.asyncio
class TestTelegramWebhook:
    async def test_copy_enqueues_job_and_replies_inline(
        self, api_client: httpx.AsyncClient, job_store: JobStore
    ) -> None:
        response = await api_client.post("/telegram/webhook", json=_update(f"/copy {_GAME_URL}"))

        assert response.status_code == 200
        body = response.json()
        assert body["method"] == "sendMessage"
        assert body["chat_id"] == -42
        assert "Scraping job #" in body["text"]

        [job] = await job_store.list_recent()
        assert job.platform == "telegram"
        assert job.callback_channel == "-42"
        assert job.requested_by == "telegram:1001"

    async def test_copy_without_url_explains(
        self, api_client: httpx.AsyncClient, job_store: JobStore
    ) -> None:
        response = await api_client.post("/telegram/webhook", json=_update("/copy"))

        assert response.json()["text"] == "❌ Please provide a URL to scrape."
        assert await job_store.list_recent() == []

    async def test_other_text_gets_usage(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post("/telegram/webhook", json=_update("/start"))

        assert response.json()["text"] == USAGE_TEXT

    async def test_non_message_update_is_acknowledged(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/telegram/webhook", json={"update_id": 2, "edited_message": {"text": "x"}}
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    async def test_invalid_json_is_acknowledged(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/telegram/webhook",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    async def test_user_outside_allow_list_is_refused(
        self,
        api_client: httpx.AsyncClient,
        app_settings: Settings,
        job_store: JobStore,
    ) -> None:
        app_settings.telegram_allowed_user_ids = ["2002"]

        response = await api_client.post("/telegram/webhook", json=_update(f"/copy {_GAME_URL}"))

        assert response.json()["text"].startswith("🚫 Access denied")
        assert await job_store.list_recent() == []

    async def test_throttled_user_is_told_to_wait(self, api_client: httpx.AsyncClient) -> None:
        for _ in range(3):
            await api_client.post("/telegram/webhook", json=_update(f"/copy {_GAME_URL}"))

        response = await api_client.post("/telegram/webhook", json=_update(f"/copy {_GAME_URL}"))

        assert "hourly scrape limit" in response.json()["text"]
