"""Strategy runner: fetch a page under successive strategies until a game is found.

A strategy *succeeds* only when its fetch returns HTML **and** the
extraction engine produces a game from it.  A 200 response without a game
is a failure like any other and the runner moves to the next strategy.
The first success wins; a skipped strategy is never revisited.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from slotverse.api.metrics import strategy_attempts_total
from slotverse.core.exceptions import ExhaustedStrategiesError, FetchError
from slotverse.scraper.config import MAX_REDIRECTS
from slotverse.scraper.extractor import ExtractedGame, ExtractionEngine
from slotverse.scraper.http_fetcher import fetch_with_strategy
from slotverse.scraper.strategies import FetchStrategy, build_default_strategies

logger = logging.getLogger(__name__)


@dataclass
class StrategyAttempt:
    """One strategy tried during a run.

    ``html`` holds the body on a successful fetch and is not serialised.
    """

    strategy: str
    success: bool
    elapsed_ms: int
    fetch_attempts: int = 1
    status_code: Optional[int] = None
    error: Optional[str] = None
    html: Optional[str] = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy,
            "success": self.success,
            "elapsed_ms": self.elapsed_ms,
            "fetch_attempts": self.fetch_attempts,
            "status_code": self.status_code,
            "error": self.error,
        }


@dataclass
class ScrapeOutcome:
    """Successful run: the game plus provenance."""

    game: ExtractedGame
    strategy: str
    elapsed_ms: int
    final_url: str
    attempts: list[StrategyAttempt]


class StrategyRunner:
    """Walks an ordered strategy list for one URL.

    Args:
        strategies: Strategies in the order they are tried.  Defaults to
            :func:`build_default_strategies`.
        engine: Extraction engine applied to every fetched page.
        sleep: Coroutine used for strategy delays; tests pass a fake.
        client_factory: Builds the ``httpx.AsyncClient`` used for one run.
    """

    def __init__(
        self,
        strategies: tuple[FetchStrategy, ...] | None = None,
        engine: ExtractionEngine | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self.strategies = strategies if strategies is not None else build_default_strategies()
        self.engine = engine or ExtractionEngine()
        self._sleep = sleep
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(max_redirects=MAX_REDIRECTS)
        )

    async def run(self, url: str) -> ScrapeOutcome:
        """Return the first strategy outcome that yields a game.

        Raises:
            ExhaustedStrategiesError: If no strategy produced a game.
        """
        started = time.monotonic()
        attempts: list[StrategyAttempt] = []

        async with self._client_factory() as client:
            for strategy in self.strategies:
                attempt, final_url = await self._fetch(url, strategy, client)
                attempts.append(attempt)
                if not attempt.success:
                    strategy_attempts_total.labels(strategy=strategy.name, outcome="fetch_failed").inc()
                    continue

                game = self.engine.extract(attempt.html or "", final_url)
                if game is None:
                    attempt.success = False
                    attempt.error = "no game found"
                    strategy_attempts_total.labels(strategy=strategy.name, outcome="no_game").inc()
                    logger.info("scraper: %s fetched %s but found no game", strategy.name, url)
                    continue

                strategy_attempts_total.labels(strategy=strategy.name, outcome="success").inc()
                elapsed_ms = int((time.monotonic() - started) * 1000)
                logger.info(
                    "scraper: %s extracted %r from %s in %d ms",
                    strategy.name,
                    game.name,
                    url,
                    elapsed_ms,
                )
                return ScrapeOutcome(
                    game=game,
                    strategy=strategy.name,
                    elapsed_ms=elapsed_ms,
                    final_url=final_url,
                    attempts=attempts,
                )

        raise ExhaustedStrategiesError(
            f"All {len(self.strategies)} scraping strategies failed. "
            "Site may have strong anti-bot protection.",
            attempts=attempts,
        )

    async def _fetch(
        self, url: str, strategy: FetchStrategy, client: httpx.AsyncClient
    ) -> tuple[StrategyAttempt, str]:
        """Fetch under *strategy*, retrying failed fetches up to ``strategy.attempts``."""
        started = time.monotonic()
        attempts = max(strategy.attempts, 1)
        failure = FetchError("no fetch attempted", strategy=strategy.name)
        final_url = url
        for attempt_no in range(1, attempts + 1):
            pause = strategy.pause_before(attempt_no)
            if pause > 0:
                await self._sleep(pause)
            result = await fetch_with_strategy(url, strategy, client=client)
            final_url = result.final_url
            try:
                result.raise_for_error(strategy.name)
            except FetchError as exc:
                failure = exc
                if attempt_no < attempts:
                    logger.info(
                        "scraper: %s attempt %d/%d failed for %s: %s",
                        strategy.name,
                        attempt_no,
                        attempts,
                        url,
                        exc,
                    )
                continue
            attempt = StrategyAttempt(
                strategy=strategy.name,
                success=True,
                elapsed_ms=int((time.monotonic() - started) * 1000),
                fetch_attempts=attempt_no,
                status_code=result.status_code,
                html=result.html,
            )
            return attempt, final_url

        attempt = StrategyAttempt(
            strategy=strategy.name,
            success=False,
            elapsed_ms=int((time.monotonic() - started) * 1000),
            fetch_attempts=attempts,
            status_code=failure.status_code,
            error=str(failure),
        )
        return attempt, final_url
