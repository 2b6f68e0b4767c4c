"""Single HTTP fetch attempt under one strategy.

Uses ``httpx`` for all requests.  Network errors, HTTP error statuses and
binary responses come back as a :class:`FetchResult` with ``error`` set;
this function does not raise for them.  Callers that want an exception use
:meth:`FetchResult.raise_for_error`.  Cancellation (the per-job deadline)
propagates unchanged so in-flight requests are aborted.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

from slotverse.core.exceptions import FetchError
from slotverse.scraper.config import BINARY_CONTENT_TYPES
from slotverse.scraper.strategies import FetchStrategy

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Result of a single HTTP fetch attempt.

    Attributes:
        html: Response body, or ``None`` if the fetch failed.
        status_code: HTTP status code, or ``None`` on network error.
        final_url: URL after following redirects.
        error: Human-readable error description, or ``None`` on success.
        elapsed_ms: Wall-clock duration of the attempt.
    """

    html: str | None
    status_code: int | None
    final_url: str
    error: str | None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and self.html is not None

    def raise_for_error(self, strategy: str) -> None:
        """Raise :class:`FetchError` unless this attempt returned HTML."""
        if not self.ok:
            raise FetchError(
                self.error or "empty response", strategy=strategy, status_code=self.status_code
            )


def _is_binary_content_type(content_type: str) -> bool:
    ct = content_type.lower().split(";")[0].strip()
    return any(ct.startswith(prefix) for prefix in BINARY_CONTENT_TYPES)


async def fetch_with_strategy(
    url: str,
    strategy: FetchStrategy,
    *,
    client: httpx.AsyncClient,
) -> FetchResult:
    """GET *url* with the headers and timeout of *strategy*.

    Args:
        url: Target URL.
        strategy: Fetch configuration supplying headers and timeout.
        client: Shared :class:`httpx.AsyncClient` for the current run.

    Returns:
        A :class:`FetchResult`; ``result.ok`` is ``True`` only for a 2xx/3xx
        text response.
    """
    started = time.monotonic()

    def _elapsed() -> int:
        return int((time.monotonic() - started) * 1000)

    try:
        response = await client.get(
            url,
            timeout=strategy.timeout,
            follow_redirects=True,
            headers=strategy.request_headers(url),
        )
    except httpx.TimeoutException:
        logger.warning("scraper: %s timeout fetching %s", strategy.name, url)
        return FetchResult(None, None, url, "timeout", _elapsed())
    except httpx.TooManyRedirects:
        logger.warning("scraper: %s too many redirects for %s", strategy.name, url)
        return FetchResult(None, None, url, "too many redirects", _elapsed())
    except httpx.RequestError as exc:
        logger.warning("scraper: %s request error for %s: %s", strategy.name, url, exc)
        return FetchResult(None, None, url, f"request error: {exc}", _elapsed())

    final_url = str(response.url)

    if response.status_code >= 400:
        logger.info("scraper: %s got HTTP %d for %s", strategy.name, response.status_code, url)
        return FetchResult(
            None, response.status_code, final_url, f"HTTP {response.status_code}", _elapsed()
        )

    content_type = response.headers.get("content-type", "")
    if _is_binary_content_type(content_type):
        logger.info("scraper: binary content-type '%s' for %s", content_type, url)
        return FetchResult(
            None,
            response.status_code,
            final_url,
            f"binary content-type: {content_type}",
            _elapsed(),
        )

    try:
        html = response.text
    except (UnicodeDecodeError, LookupError) as exc:
        logger.warning("scraper: decode error for %s: %s", url, exc)
        return FetchResult(None, response.status_code, final_url, f"decode error: {exc}", _elapsed())

    return FetchResult(html, response.status_code, final_url, None, _elapsed())
