"""Optional game attributes pulled from the page after a name is accepted.

Each field owns an ordered list of matchers.  A matcher yields raw values
in document order; the first value that survives the field's normaliser
wins and later matchers are not consulted.  A field nobody matches is left
as ``None``; absence is not an error.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Optional

from slotverse.scraper.markup import absolute_url, iter_tags

Matcher = Callable[[str, str], Iterator[str]]
Normaliser = Callable[[str, str], Optional[str]]

_FLAGS = re.IGNORECASE | re.DOTALL

#: Skips any tags between a label element and the value element.
_TAGS = r"\s*(?:<[^>]+>\s*)*"

#: End of a label: the rest of its opening tag, or a closing tag right after
#: the label text.  Never runs into the following element.
_LABEL_END = r"(?:[^<>]{0,40}>|\s*:?\s*</[^>]+>)"


def _regex(pattern: str, flags: int = _FLAGS) -> Matcher:
    compiled = re.compile(pattern, flags)

    def matcher(html: str, base_url: str) -> Iterator[str]:
        for match in compiled.finditer(html):
            yield match.group(1)

    return matcher


# ---------------------------------------------------------------------------
# Normalisers
# ---------------------------------------------------------------------------


def _normalise_rtp(value: str, base_url: str) -> Optional[str]:
    number = value.strip().rstrip("%").strip()
    try:
        if not 0 < float(number) <= 100:
            return None
    except ValueError:
        return None
    return f"{number}%"


_PROVIDER_LABELS = frozenset({"provider", "providers", "developer", "software", "studio"})


def normalise_provider(value: str, base_url: str) -> Optional[str]:
    """Collapse whitespace and reject labels, numbers and implausible lengths."""
    provider = re.sub(r"\s+", " ", value).strip(" \t:-–|,.")
    if not 2 < len(provider) < 50:
        return None
    if provider.lower() in _PROVIDER_LABELS or not any(ch.isalpha() for ch in provider):
        return None
    return provider


def _normalise_volatility(value: str, base_url: str) -> Optional[str]:
    return value.strip().lower()


def _normalise_max_win(value: str, base_url: str) -> Optional[str]:
    max_win = re.sub(r"\s+", "", value).lower().rstrip(".,")
    return max_win if any(ch.isdigit() for ch in max_win) else None


def _normalise_url(value: str, base_url: str) -> Optional[str]:
    resolved = absolute_url(value, base_url)
    if resolved is None or len(resolved) <= 10:
        return None
    return resolved


# ---------------------------------------------------------------------------
# Tag-based matchers
# ---------------------------------------------------------------------------

_DEMO_HINT = re.compile(r"play|demo|opengame|launch", re.IGNORECASE)
_IFRAME_HINT = re.compile(r"game|demo|opengame", re.IGNORECASE)
_IMAGE_HINT = re.compile(r"slot|game|demo|thumb|preview|cover|poster", re.IGNORECASE)
_IMAGE_EXCLUDE = re.compile(r"icon|logo|favicon|sprite|avatar|badge|flag|payment", re.IGNORECASE)


def _demo_anchors(html: str, base_url: str) -> Iterator[str]:
    for attrs in iter_tags(html, "a"):
        href = attrs.get("href", "")
        hints = " ".join(
            value for key, value in attrs.items()
            if key in ("class", "id", "title", "aria-label") or key.startswith("data-")
        )
        if href and (_DEMO_HINT.search(href) or _DEMO_HINT.search(hints)):
            yield href


def _demo_iframes(html: str, base_url: str) -> Iterator[str]:
    for attrs in iter_tags(html, "iframe"):
        src = attrs.get("src") or attrs.get("data-src") or ""
        if src and _IFRAME_HINT.search(src):
            yield src


def _game_images(html: str, base_url: str) -> Iterator[str]:
    for attrs in iter_tags(html, "img"):
        src = attrs.get("src") or attrs.get("data-src") or attrs.get("data-lazy-src") or ""
        if not src or _IMAGE_EXCLUDE.search(src):
            continue
        if _IMAGE_HINT.search(src) or _IMAGE_HINT.search(attrs.get("class", "")):
            yield src


def _og_image(html: str, base_url: str) -> Iterator[str]:
    for attrs in iter_tags(html, "meta"):
        if attrs.get("property") == "og:image" and attrs.get("content"):
            yield attrs["content"]


# ---------------------------------------------------------------------------
# Field table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldRule:
    """Ordered matchers and the normaliser for one enrichment field."""

    name: str
    matchers: tuple[Matcher, ...]
    normalise: Normaliser

    def first(self, html: str, base_url: str) -> Optional[str]:
        for matcher in self.matchers:
            for raw in matcher(html, base_url):
                value = self.normalise(raw, base_url)
                if value is not None:
                    return value
        return None


_NUMBER_PCT = r"([0-9]{2,3}(?:\.[0-9]{1,2})?)\s*%"
_MULTIPLIER = r"([0-9][0-9,.]*\s*x)\b"

FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule(
        "rtp",
        (
            _regex(r"\brtp\b" + _LABEL_END + _TAGS + _NUMBER_PCT),
            _regex(r"\b(?:rtp|return to player)\b\s*:?\s*" + _NUMBER_PCT),
            _regex(r"\breturn\b" + _LABEL_END + _TAGS + _NUMBER_PCT),
            _regex(r""""rtp"\s*:\s*"?([0-9]{2,3}(?:\.[0-9]{1,2})?)"""),
            _regex(r"\b([0-9]{2,3}\.[0-9]{1,2})\s*%"),
        ),
        _normalise_rtp,
    ),
    FieldRule(
        "provider",
        (
            _regex(r""""provider"\s*:\s*"([^"]{2,60})\""""),
            _regex(r"\b(?:provider|developer|software)\b\s*:\s*" + _TAGS + r"([^<>\n]{2,60}?)\s*(?:<|\n|$)"),
            _regex(r"\b(?:provider|developer)\b" + _LABEL_END + _TAGS + r"([^<>]{2,60}?)\s*<"),
            _regex(r"(?i:\bby)\s+([A-Z][A-Za-z0-9&' ]{1,48}?)(?=\s*(?:<|\.|,|\n|$))", re.DOTALL),
        ),
        normalise_provider,
    ),
    FieldRule(
        "volatility",
        (
            _regex(r"\b(?:volatility|variance)\b" + _LABEL_END + _TAGS + r"(high|medium|low)\b"),
            _regex(r"\b(?:volatility|variance)\b\s*:?\s*(high|medium|low)\b"),
            _regex(r"\b(high|medium|low)[\s-]+(?:volatility|variance)\b"),
        ),
        _normalise_volatility,
    ),
    FieldRule(
        "max_win",
        (
            _regex(r"\bmax(?:imum)?[\s_-]*win\b" + _LABEL_END + _TAGS + _MULTIPLIER),
            _regex(r"\bmax(?:imum)?[\s_-]*win\b\s*:?\s*(?:of\s+|up\s+to\s+)?" + _MULTIPLIER),
            _regex(r""""max_?win"\s*:\s*"?([0-9][0-9,.]*x?)"""),
            _regex(r"\bmaximum\b" + _LABEL_END + _TAGS + r"([0-9][0-9,.]*x?)"),
        ),
        _normalise_max_win,
    ),
    FieldRule(
        "demo_url",
        (
            _demo_anchors,
            _demo_iframes,
            _regex(r"""data-(?:game|demo)-url\s*=\s*["']([^"']+)["']"""),
            _regex(r""""(?:gameUrl|demoUrl)"\s*:\s*"([^"]+)\""""),
        ),
        _normalise_url,
    ),
    FieldRule(
        "image",
        (
            _game_images,
            _regex(r""""(?:image|thumbnail|cover)"\s*:\s*"([^"]+\.(?:jpe?g|png|webp|gif)[^"]*)\""""),
            _og_image,
        ),
        _normalise_url,
    ),
)


def enrich(html: str, base_url: str, rules: tuple[FieldRule, ...] = FIELD_RULES) -> dict[str, Optional[str]]:
    """Return ``{field: value-or-None}`` for every rule in *rules*."""
    return {rule.name: rule.first(html, base_url) for rule in rules}
