"""Regex helpers for reading raw HTML without building a DOM.

Pages are treated as text.  These helpers cover the few structural needs the
extractor has: the attributes of a given tag, the text of an element, and
embedded JSON-LD blocks.
"""

from __future__ import annotations

import html as html_lib
import json
import logging
import re
from collections.abc import Iterator
from typing import Any
from urllib.parse import urljoin, urlparse

logger = logging.getLogger(__name__)

_ATTR_RE = re.compile(r"""([\w:.-]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""")
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")
_JSON_LD_RE = re.compile(
    r"""<script\b[^>]*type\s*=\s*["']application/ld\+json["'][^>]*>(.*?)</script>""",
    re.IGNORECASE | re.DOTALL,
)


def parse_attrs(fragment: str) -> dict[str, str]:
    """Parse ``key="value"`` pairs from the inside of an opening tag.

    Keys are lower-cased and values HTML-unescaped.  Repeated keys keep the
    first value, as browsers do.
    """
    attrs: dict[str, str] = {}
    for match in _ATTR_RE.finditer(fragment):
        key = match.group(1).lower()
        if key in attrs:
            continue
        value = next(g for g in match.groups()[1:] if g is not None)
        attrs[key] = html_lib.unescape(value)
    return attrs


def iter_tags(html: str, tag: str) -> Iterator[dict[str, str]]:
    """Yield the attribute dict of every ``<tag ...>`` in document order."""
    pattern = re.compile(rf"<{tag}\b([^>]*)>", re.IGNORECASE)
    for match in pattern.finditer(html):
        yield parse_attrs(match.group(1))


def text_content(fragment: str) -> str:
    """Strip tags, unescape entities and collapse whitespace."""
    text = _TAG_RE.sub(" ", fragment)
    return _WS_RE.sub(" ", html_lib.unescape(text)).strip()


def iter_json_ld(html: str) -> Iterator[dict[str, Any]]:
    """Yield every JSON object embedded in ``application/ld+json`` scripts.

    Top-level lists and ``@graph`` containers are flattened.  Blocks that are
    not valid JSON are skipped.
    """
    for match in _JSON_LD_RE.finditer(html):
        try:
            data = json.loads(match.group(1).strip())
        except ValueError:
            logger.debug("scraper: skipping malformed JSON-LD block")
            continue
        stack = [data]
        while stack:
            item = stack.pop(0)
            if isinstance(item, list):
                stack[0:0] = item
            elif isinstance(item, dict):
                graph = item.get("@graph")
                if isinstance(graph, list):
                    stack[0:0] = graph
                yield item


def absolute_url(value: str, base_url: str) -> str | None:
    """Resolve *value* against *base_url*; ``None`` unless the result is http(s)."""
    value = value.strip().replace("\\/", "/")
    if not value or value.startswith(("#", "javascript:", "data:", "mailto:")):
        return None
    resolved = urljoin(base_url, value)
    if urlparse(resolved).scheme not in ("http", "https"):
        return None
    return resolved
