"""Tests for the generic scrape-job routes and the health endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from slotverse.core.job_store import JobStore

_GAME_URL = "https://slotcatalog.com/slots/sweet-bonanza"


@pytest.mark.asyncio
class TestSubmitScrapeJob:
    async def test_accepts_and_persists_pending_job(
        self, api_client: httpx.AsyncClient, job_store: JobStore
    ) -> None:
        response = await api_client.post(
            "/api/scrape-jobs",
            json={"url": _GAME_URL, "channel": "ops", "requested_by": "alice"},
        )

        assert response.status_code == 202
        body = response.json()
        assert body["status"] == "pending"
        assert body["message"] == f"Scraping job #{body['job_id']} queued for {_GAME_URL}"

        job = await job_store.get(body["job_id"])
        assert job is not None
        assert job.platform == "api"
        assert job.callback_channel == "ops"

    async def test_invalid_url_is_rejected_without_a_row(
        self, api_client: httpx.AsyncClient, job_store: JobStore
    ) -> None:
        response = await api_client.post("/api/scrape-jobs", json={"url": "not a url"})

        assert response.status_code == 422
        assert "valid http(s) URL" in response.json()["detail"]
        assert await job_store.list_recent() == []

    async def test_requester_over_hourly_limit_gets_429(
        self, api_client: httpx.AsyncClient
    ) -> None:
        # The app fixture allows three jobs per requester per hour.
        for _ in range(3):
            ok = await api_client.post(
                "/api/scrape-jobs", json={"url": _GAME_URL, "requested_by": "bob"}
            )
            assert ok.status_code == 202

        response = await api_client.post(
            "/api/scrape-jobs", json={"url": _GAME_URL, "requested_by": "bob"}
        )
        assert response.status_code == 429

        other = await api_client.post(
            "/api/scrape-jobs", json={"url": _GAME_URL, "requested_by": "carol"}
        )
        assert other.status_code == 202

    async def test_response_carries_request_id(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post("/api/scrape-jobs", json={"url": _GAME_URL})

        assert response.headers.get("X-Request-ID")

    async def test_caller_request_id_is_echoed(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/scrape-jobs", json={"url": _GAME_URL}, headers={"X-Request-ID": "client-7"}
        )

        assert response.headers["X-Request-ID"] == "client-7"


@pytest.mark.asyncio
class TestReadScrapeJobs:
    async def test_list_is_newest_first(
        self, api_client: httpx.AsyncClient, job_store: JobStore
    ) -> None:
        first = await job_store.create("https://a.example/game")
        second = await job_store.create("https://b.example/game")

        response = await api_client.get("/api/scrape-jobs")

        assert response.status_code == 200
        assert [job["id"] for job in response.json()] == [second.id, first.id]

    async def test_detail_hides_callback_token(
        self, api_client: httpx.AsyncClient, job_store: JobStore
    ) -> None:
        job = await job_store.create(_GAME_URL, platform="discord", callback_token="secret")

        response = await api_client.get(f"/api/scrape-jobs/{job.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["url"] == _GAME_URL
        assert body["status"] == "pending"
        assert "callback_token" not in body

    async def test_unknown_job_is_404(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/api/scrape-jobs/9999")

        assert response.status_code == 404
        assert response.json()["detail"] == "Scrape job 9999 not found"


@pytest.mark.asyncio
class TestHealth:
    async def test_liveness(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/health")

        assert response.json() == {"status": "ok"}

    async def test_all_dependencies_ok(
        self, api_client: httpx.AsyncClient, job_store: JobStore
    ) -> None:
        await job_store.create(_GAME_URL)
        with (
            patch("slotverse.api.routes.health._check_database", AsyncMock(return_value="ok")),
            patch("slotverse.api.routes.health._check_redis", AsyncMock(return_value="ok")),
        ):
            response = await api_client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["pending_jobs"] == 1

    async def test_database_down_omits_backlog(self, api_client: httpx.AsyncClient) -> None:
        with (
            patch("slotverse.api.routes.health._check_database", AsyncMock(return_value="error")),
            patch("slotverse.api.routes.health._check_redis", AsyncMock(return_value="ok")),
        ):
            response = await api_client.get("/api/health")

        body = response.json()
        assert body["status"] == "degraded"
        assert body["pending_jobs"] is None

    async def test_redis_down_is_degraded_not_5xx(self, api_client: httpx.AsyncClient) -> None:
        with (
            patch("slotverse.api.routes.health._check_database", AsyncMock(return_value="ok")),
            patch("slotverse.api.routes.health._check_redis", AsyncMock(return_value="error")),
        ):
            response = await api_client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["redis"] == "error"
