"""Fetch strategies: fixed HTTP configurations tried in order against a page.

Many game sites vary their response (or block outright) by header
fingerprint.  Rather than a full anti-bot bypass the runner walks an
escalating list, cheapest first:

=================  ===================  =========  =======  ========  ==========
Strategy           Fingerprint          Timeout    Delay    Attempts  Extra
=================  ===================  =========  =======  ========  ==========
DirectFetch        Chrome / Windows     30 s       none     1
WithRetries        Chrome / macOS       45 s       n * 1 s  3         no-cache
MobileUserAgent    Safari / iPhone      30 s       none     1
WithCookies        Firefox / Windows    30 s       none     1         cookies, Sec-Fetch-*
SlowRequest        Chrome / Linux       60 s       2 s      1         Referer = origin
=================  ===================  =========  =======  ========  ==========

Timeouts, delay and retry counts come from settings; the fingerprints are
fixed data in :mod:`slotverse.scraper.config`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from slotverse.scraper import config

if TYPE_CHECKING:
    from slotverse.config.settings import Settings


@dataclass(frozen=True)
class FetchStrategy:
    """One HTTP fetch configuration.

    Attributes:
        name: Identifier reported in job results and metrics.
        user_agent: ``User-Agent`` header value.
        headers: Additional request headers.
        timeout: Per-attempt timeout in seconds.
        delay: Fixed pause before every attempt, in seconds.
        attempts: How many times a failed fetch is tried.
        backoff: Linear backoff unit; attempt ``n`` also waits ``n * backoff``.
        send_referer: Send the target's origin as ``Referer``.
    """

    name: str
    user_agent: str
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = 30.0
    delay: float = 0.0
    attempts: int = 1
    backoff: float = 0.0
    send_referer: bool = False

    def pause_before(self, attempt: int) -> float:
        """Seconds to wait before *attempt* (1-based)."""
        return self.delay + self.backoff * attempt

    def request_headers(self, url: str) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent, **self.headers}
        if self.send_referer:
            parsed = urlparse(url)
            headers["Referer"] = f"{parsed.scheme}://{parsed.netloc}/"
        return headers


def build_default_strategies(settings: Settings | None = None) -> tuple[FetchStrategy, ...]:
    """Return the standard strategy list, tuned from *settings* when given."""
    if settings is None:
        from slotverse.config.settings import get_settings  # noqa: PLC0415

        settings = get_settings()

    fast = settings.strategy_timeout_seconds
    return (
        FetchStrategy(
            name="DirectFetch",
            user_agent=config.CHROME_WINDOWS_UA,
            headers=config.BROWSER_HEADERS,
            timeout=fast,
        ),
        FetchStrategy(
            name="WithRetries",
            user_agent=config.CHROME_MAC_UA,
            headers={**config.BROWSER_HEADERS, "Cache-Control": "no-cache"},
            timeout=settings.strategy_retry_timeout_seconds,
            attempts=settings.strategy_retry_attempts,
            backoff=settings.strategy_retry_backoff_seconds,
        ),
        FetchStrategy(
            name="MobileUserAgent",
            user_agent=config.IPHONE_SAFARI_UA,
            headers=config.BROWSER_HEADERS,
            timeout=fast,
        ),
        FetchStrategy(
            name="WithCookies",
            user_agent=config.FIREFOX_WINDOWS_UA,
            headers={
                **config.BROWSER_HEADERS,
                **config.SEC_FETCH_HEADERS,
                "Cookie": config.VISITOR_COOKIES,
            },
            timeout=fast,
        ),
        FetchStrategy(
            name="SlowRequest",
            user_agent=config.CHROME_LINUX_UA,
            headers=config.BROWSER_HEADERS,
            timeout=settings.strategy_slow_timeout_seconds,
            delay=settings.strategy_slow_delay_seconds,
            send_referer=True,
        ),
    )
