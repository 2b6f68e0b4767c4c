"""Game-name signals and the rules every candidate name must pass.

A :class:`Signal` only *detects* raw candidates.  The extraction engine
runs each candidate through :class:`NameRules` (clean, then validate) and
stops at the first signal that produces an accepted name.  Signals run in
this fixed order:

1. ``url-path``        last meaningful path segment of the URL
2. ``title-heading``   ``<h1>``, then ``<title>``, then a game/slot/title-classed h2/h3
3. ``structured-data`` JSON-LD ``name``/``title``, then title-like ``<meta>`` tags
4. ``container-scan``  text of repeated game/slot cards, for listing pages
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import NamedTuple, Optional
from urllib.parse import unquote, urlparse

from slotverse.scraper import config
from slotverse.scraper.markup import iter_json_ld, iter_tags, text_content


class Candidate(NamedTuple):
    """A raw name proposed by a signal, plus a provider when the source names one."""

    raw: str
    provider: Optional[str] = None


# ---------------------------------------------------------------------------
# Cleaning and validation rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NameRules:
    """Data-driven cleaning and validation for candidate game names."""

    min_length: int = config.MIN_NAME_LENGTH
    max_length: int = config.MAX_NAME_LENGTH
    filler_words: tuple[str, ...] = config.FILLER_WORDS
    denylist_exact: frozenset[str] = config.DENYLIST_EXACT
    denylist_terms: tuple[str, ...] = config.DENYLIST_TERMS
    _filler_re: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _terms_re: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        fillers = "|".join(re.escape(word) for word in self.filler_words)
        terms = "|".join(re.escape(term) for term in self.denylist_terms)
        object.__setattr__(
            self, "_filler_re", re.compile(rf"\b(?:{fillers})\b", re.IGNORECASE)
        )
        object.__setattr__(
            self,
            "_terms_re",
            re.compile(rf"(?<!\w)(?:{terms})(?!\w)", re.IGNORECASE) if terms else re.compile(r"(?!)"),
        )

    def clean(self, raw: str) -> str:
        """Strip site suffixes, asides and filler words from *raw*.

        ``"Sweet Bonanza Demo | Pragmatic Play"`` becomes ``"Sweet Bonanza"``.
        """
        name = text_content(raw)
        name = _PIPE_SUFFIX.sub("", name)
        name = _DASH_SUFFIX.sub("", name)
        name = _PARENTHETICAL.sub(" ", name)
        name = self._filler_re.sub(" ", name)
        name = _WHITESPACE.sub(" ", name)
        return name.strip(" \t-–—:|,.")

    def is_valid(self, name: str) -> bool:
        if not self.min_length <= len(name) <= self.max_length:
            return False
        if not any(ch.isalpha() for ch in name):
            return False
        if name.lower() in self.denylist_exact:
            return False
        return self._terms_re.search(name) is None

    def accept(self, raw: str) -> str | None:
        """Return the cleaned name when it passes validation, else ``None``."""
        name = self.clean(raw)
        return name if self.is_valid(name) else None


_PIPE_SUFFIX = re.compile(r"\s*\|.*$")
_DASH_SUFFIX = re.compile(r"\s+[-–—]\s+.*$")
_PARENTHETICAL = re.compile(r"\([^)]*\)|\[[^\]]*\]")
_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------


class Signal:
    """Base class: proposes raw name candidates for one page."""

    #: Tag recorded as ``ExtractedGame.source`` when this signal wins.
    name: str = ""

    #: Multi-candidate signals collect several accepted names instead of
    #: stopping at the first.
    multi: bool = False

    def detect(self, html: str, url: str) -> Iterator[Candidate]:
        raise NotImplementedError


class UrlPathSignal(Signal):
    """Title-cased last meaningful path segment (``/games/gates-of-olympus``).

    Page extensions such as ``.html`` or ``.php`` are dropped first.
    """

    name = "url-path"

    _PAGE_EXTENSION = re.compile(r"\.(?:s?html?|php[0-9]?|aspx?|jsp)$", re.IGNORECASE)

    def detect(self, html: str, url: str) -> Iterator[Candidate]:
        segments = [
            self._PAGE_EXTENSION.sub("", unquote(part))
            for part in urlparse(url).path.split("/")
            if part
        ]
        for segment in reversed(segments):
            lowered = segment.lower()
            if lowered in config.GENERIC_PATH_SEGMENTS or "." in segment or segment.isdigit():
                continue
            words = re.sub(r"[-_+]+", " ", segment).split()
            yield Candidate(" ".join(word[:1].upper() + word[1:] for word in words))
            return


class TitleHeadingSignal(Signal):
    """Primary heading, then the document title, then a classed sub-heading."""

    name = "title-heading"

    _PATTERNS: tuple[re.Pattern[str], ...] = (
        re.compile(r"<h1\b[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL),
        re.compile(r"<title\b[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL),
        re.compile(
            r"""<h[23]\b[^>]*class\s*=\s*["'][^"']*(?:game|slot|title)[^"']*["'][^>]*>(.*?)</h[23]>""",
            re.IGNORECASE | re.DOTALL,
        ),
    )

    def detect(self, html: str, url: str) -> Iterator[Candidate]:
        for pattern in self._PATTERNS:
            match = pattern.search(html)
            if match:
                yield Candidate(match.group(1))


class StructuredDataSignal(Signal):
    """JSON-LD ``name``/``title`` fields, then title-like meta tags."""

    name = "structured-data"

    _SKIPPED_TYPES: frozenset[str] = frozenset(
        {"Organization", "WebSite", "BreadcrumbList", "Person", "ImageObject", "SiteNavigationElement"}
    )
    _META_KEYS: tuple[str, ...] = ("og:title", "title", "game:name", "twitter:title")

    def detect(self, html: str, url: str) -> Iterator[Candidate]:
        for item in iter_json_ld(html):
            item_type = item.get("@type")
            if isinstance(item_type, str) and item_type in self._SKIPPED_TYPES:
                continue
            raw = item.get("name") or item.get("title")
            if isinstance(raw, str):
                yield Candidate(raw, _json_ld_provider(item))

        metas = list(iter_tags(html, "meta"))
        for key in self._META_KEYS:
            for attrs in metas:
                if key in (attrs.get("property"), attrs.get("name")) and attrs.get("content"):
                    yield Candidate(attrs["content"])
                    break


def _json_ld_provider(item: dict) -> Optional[str]:
    for key in ("author", "brand", "creator"):
        value = item.get(key)
        if isinstance(value, list) and value:
            value = value[0]
        if isinstance(value, dict):
            value = value.get("name")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class ContainerScanSignal(Signal):
    """Name of each repeated ``game``/``slot`` card on listing pages.

    A heading inside the card wins.  Otherwise the first text node that
    passes the name rules is used, so badges such as "New" are skipped.
    """

    name = "container-scan"
    multi = True

    _CARD_RE = re.compile(
        r"""<(?:div|article|li|section)\b[^>]*class\s*=\s*["'][^"']*(?:game|slot)[^"']*["'][^>]*>""",
        re.IGNORECASE,
    )
    _HEADING_RE = re.compile(r"<h[1-6]\b[^>]*>(.*?)</h[1-6]>", re.IGNORECASE | re.DOTALL)
    _TEXT_RE = re.compile(r">([^<>]+)<")

    def __init__(self, rules: NameRules | None = None) -> None:
        self.rules = rules or NameRules()

    def detect(self, html: str, url: str) -> Iterator[Candidate]:
        for card in self._CARD_RE.finditer(html):
            window = html[card.end() - 1 : card.end() + config.CONTAINER_WINDOW]
            next_card = self._CARD_RE.search(window, 1)
            if next_card:
                window = window[: next_card.start()]
            heading = self._HEADING_RE.search(window)
            texts = [heading.group(1)] if heading else []
            texts.extend(text.group(1) for text in self._TEXT_RE.finditer(window))
            for raw in texts:
                if self.rules.accept(raw) is not None:
                    yield Candidate(raw)
                    break


#: Signals in precedence order.
DEFAULT_SIGNALS: tuple[Signal, ...] = (
    UrlPathSignal(),
    TitleHeadingSignal(),
    StructuredDataSignal(),
    ContainerScanSignal(),
)
