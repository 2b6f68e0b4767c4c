"""Unit tests for the single-attempt HTTP fetcher.

Uses respx to stand in for the target site.
"""

from __future__ import annotations

import httpx
import pytest
import respx

from slotverse.core.exceptions import FetchError
from slotverse.scraper.http_fetcher import (
    FetchResult,
    _is_binary_content_type,
    fetch_with_strategy,
)
from slotverse.scraper.strategies import FetchStrategy

_STRATEGY = FetchStrategy(name="DirectFetch", user_agent="TestAgent/1.0", timeout=5.0)


class TestIsBinaryContentType:
    def test_image_is_binary(self) -> None:
        assert _is_binary_content_type("image/png") is True

    def test_pdf_is_binary(self) -> None:
        assert _is_binary_content_type("application/pdf") is True

    def test_html_not_binary(self) -> None:
        assert _is_binary_content_type("text/html; charset=utf-8") is False


class TestRaiseForError:
    def test_failed_attempt_raises_with_status(self) -> None:
        result = FetchResult(None, 403, "https://example.com/", "HTTP 403")

        with pytest.raises(FetchError) as excinfo:
            result.raise_for_error("MobileUserAgent")

        assert str(excinfo.value) == "HTTP 403"
        assert excinfo.value.strategy == "MobileUserAgent"
        assert excinfo.value.status_code == 403

    def test_successful_attempt_is_silent(self) -> None:
        FetchResult("<h1>Starburst</h1>", 200, "https://example.com/", None).raise_for_error(
            "DirectFetch"
        )


@pytest.mark.asyncio
class TestFetchWithStrategy:
    async def test_successful_fetch_sends_strategy_headers(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            route = mock.get("/slots/starburst").mock(
                return_value=httpx.Response(
                    200,
                    text="<h1>Starburst</h1>",
                    headers={"content-type": "text/html; charset=utf-8"},
                )
            )
            async with httpx.AsyncClient() as client:
                result = await fetch_with_strategy(
                    "https://example.com/slots/starburst", _STRATEGY, client=client
                )

        assert result.ok is True
        assert result.html == "<h1>Starburst</h1>"
        assert result.status_code == 200
        assert route.calls.last.request.headers["user-agent"] == "TestAgent/1.0"
        assert "referer" not in route.calls.last.request.headers

    async def test_referer_is_site_origin(self) -> None:
        strategy = FetchStrategy(name="SlowRequest", user_agent="TestAgent/1.0", send_referer=True)
        with respx.mock(base_url="https://example.com") as mock:
            route = mock.get("/a/b").mock(return_value=httpx.Response(200, text="ok"))
            async with httpx.AsyncClient() as client:
                await fetch_with_strategy("https://example.com/a/b", strategy, client=client)

        assert route.calls.last.request.headers["referer"] == "https://example.com/"

    async def test_http_403_returns_error(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/blocked").mock(return_value=httpx.Response(403))
            async with httpx.AsyncClient() as client:
                result = await fetch_with_strategy(
                    "https://example.com/blocked", _STRATEGY, client=client
                )

        assert result.ok is False
        assert result.html is None
        assert result.status_code == 403
        assert result.error == "HTTP 403"

    async def test_timeout_returns_error(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/slow").mock(side_effect=httpx.ReadTimeout("timed out"))
            async with httpx.AsyncClient() as client:
                result = await fetch_with_strategy(
                    "https://example.com/slow", _STRATEGY, client=client
                )

        assert result.ok is False
        assert result.status_code is None
        assert result.error == "timeout"

    async def test_connection_error_returns_error(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/down").mock(side_effect=httpx.ConnectError("refused"))
            async with httpx.AsyncClient() as client:
                result = await fetch_with_strategy(
                    "https://example.com/down", _STRATEGY, client=client
                )

        assert result.ok is False
        assert (result.error or "").startswith("request error")

    async def test_binary_content_type_skipped(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/banner.png").mock(
                return_value=httpx.Response(
                    200, content=b"\x89PNG", headers={"content-type": "image/png"}
                )
            )
            async with httpx.AsyncClient() as client:
                result = await fetch_with_strategy(
                    "https://example.com/banner.png", _STRATEGY, client=client
                )

        assert result.ok is False
        assert "binary content-type" in (result.error or "")
