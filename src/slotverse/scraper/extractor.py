"""Single-game extraction from raw HTML.

``extract(html, url)`` returns at most one :class:`ExtractedGame`.  Signals
are tried in precedence order (see :mod:`slotverse.scraper.signals`) and the
first accepted name wins; enrichment then fills the optional attributes.
``None`` means the page holds no recognisable game.  That is a normal
outcome, not an error: the strategy runner simply moves on.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

from slotverse.scraper import config
from slotverse.scraper.enrichment import FIELD_RULES, FieldRule, enrich, normalise_provider
from slotverse.scraper.signals import DEFAULT_SIGNALS, NameRules, Signal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractedGame:
    """A game record extracted from one page.

    Attributes:
        name: Cleaned, validated game name.
        source: Signal that produced the name (``url-path``,
            ``title-heading``, ``structured-data`` or ``container-scan``).
        provider: Studio name, if found.
        rtp: Return-to-player percentage string, e.g. ``"96.51%"``.
        volatility: ``"low"``, ``"medium"`` or ``"high"``.
        max_win: Multiplier string, e.g. ``"5,000x"``.
        image: Absolute URL of a game thumbnail.
        demo_url: Absolute URL of a playable demo.
        listing_names: Other card names seen on a listing page.  Reported
            to the requester but not saved.
    """

    name: str
    source: str
    provider: Optional[str] = None
    rtp: Optional[str] = None
    volatility: Optional[str] = None
    max_win: Optional[str] = None
    image: Optional[str] = None
    demo_url: Optional[str] = None
    listing_names: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["listing_names"] = list(self.listing_names)
        return data


class ExtractionEngine:
    """Runs signals, name rules and enrichment against one page.

    Instances hold only read-only configuration and are safe to share
    between concurrent jobs.
    """

    def __init__(
        self,
        signals: tuple[Signal, ...] = DEFAULT_SIGNALS,
        rules: NameRules | None = None,
        field_rules: tuple[FieldRule, ...] = FIELD_RULES,
        container_cap: int = config.CONTAINER_SCAN_CAP,
    ) -> None:
        self.signals = signals
        self.rules = rules or NameRules()
        self.field_rules = field_rules
        self.container_cap = container_cap

    def extract(self, html: str, url: str) -> ExtractedGame | None:
        for signal in self.signals:
            names, provider_hint = self._accepted_names(signal, html, url)
            if names:
                break
        else:
            logger.debug("scraper: no valid game name on %s", url)
            return None

        fields = enrich(html, url, self.field_rules)
        provider = normalise_provider(provider_hint, url) if provider_hint else None
        if provider:
            fields["provider"] = provider
        return ExtractedGame(
            name=names[0],
            source=signal.name,
            listing_names=tuple(names[1:]),
            **fields,
        )

    def _accepted_names(
        self, signal: Signal, html: str, url: str
    ) -> tuple[list[str], Optional[str]]:
        """Return the accepted names for *signal* and any provider it carried.

        Single-candidate signals stop at the first accepted name.  The
        container scan keeps collecting distinct names up to the cap.
        """
        names: list[str] = []
        seen: set[str] = set()
        provider_hint: Optional[str] = None
        for candidate in signal.detect(html, url):
            name = self.rules.accept(candidate.raw)
            if name is None or name.lower() in seen:
                continue
            if not names:
                provider_hint = candidate.provider
            names.append(name)
            seen.add(name.lower())
            if not signal.multi or len(names) >= self.container_cap:
                break
        return names, provider_hint


_default_engine = ExtractionEngine()


def extract(html: str, url: str) -> ExtractedGame | None:
    """Extract a game from *html* with the default engine."""
    return _default_engine.extract(html, url)
