"""Unit tests for the single-game extraction engine.

Covers signal precedence, name cleaning and validation, listing pages and
attribute enrichment.  All inputs are inline HTML; nothing touches the
network.
"""

from __future__ import annotations

import pytest

from slotverse.scraper.enrichment import FIELD_RULES, enrich
from slotverse.scraper.extractor import ExtractionEngine, extract
from slotverse.scraper.signals import NameRules, UrlPathSignal

_NO_PATH_URL = "https://casino.example.com/"


# ---------------------------------------------------------------------------
# Signal precedence
# ---------------------------------------------------------------------------


class TestSignals:
    def test_heading_with_rtp(self) -> None:
        html = "<html><body><h1>Sweet Bonanza</h1><p>RTP: 96.51%</p></body></html>"

        game = extract(html, _NO_PATH_URL)

        assert game is not None
        assert game.name == "Sweet Bonanza"
        assert game.source == "title-heading"
        assert game.rtp == "96.51%"

    def test_url_path_beats_heading(self) -> None:
        html = "<html><body><h1>Totally Different Heading</h1></body></html>"

        game = extract(html, "https://example.com/slots/gates-of-olympus")

        assert game is not None
        assert game.name == "Gates Of Olympus"
        assert game.source == "url-path"

    def test_generic_path_segments_are_skipped(self) -> None:
        html = "<title>Book of Dead | Casino Reviews</title>"

        game = extract(html, "https://example.com/en/slots/")

        assert game is not None
        assert game.name == "Book of Dead"
        assert game.source == "title-heading"

    def test_navigation_labels_yield_nothing(self) -> None:
        html = "<html><head><title>Login</title></head><body><h1>Home</h1></body></html>"

        assert extract(html, _NO_PATH_URL) is None

    def test_structured_data_name_and_provider(self) -> None:
        html = """
        <script type="application/ld+json">
        {"@graph": [
            {"@type": "Organization", "name": "Example Casino"},
            {"@type": "VideoGame", "name": "Starburst", "author": {"name": "NetEnt"}}
        ]}
        </script>
        """

        game = extract(html, _NO_PATH_URL)

        assert game is not None
        assert game.name == "Starburst"
        assert game.source == "structured-data"
        assert game.provider == "NetEnt"

    def test_og_title_meta(self) -> None:
        html = '<meta property="og:title" content="Big Bass Bonanza Demo - Free Play">'

        game = extract(html, _NO_PATH_URL)

        assert game is not None
        assert game.name == "Big Bass Bonanza"

    def test_listing_page_uses_first_card(self) -> None:
        html = """
        <div class="game-card"><span>Wolf Gold</span></div>
        <div class="game-card"><span>Wolf Gold</span></div>
        <div class="game-card"><span>The Dog House</span></div>
        <div class="slot-tile"><a href="#">Fruit Party</a></div>
        """

        game = extract(html, _NO_PATH_URL)

        assert game is not None
        assert game.source == "container-scan"
        assert game.name == "Wolf Gold"
        assert game.listing_names == ("The Dog House", "Fruit Party")

    def test_container_scan_respects_cap(self) -> None:
        cards = "".join(
            f'<li class="slot-item">Game Title {chr(65 + i)}</li>' for i in range(8)
        )
        engine = ExtractionEngine(container_cap=3)

        game = engine.extract(cards, _NO_PATH_URL)

        assert game is not None
        assert len((game.name,) + game.listing_names) == 3

    def test_url_path_title_cases_words(self) -> None:
        candidates = list(UrlPathSignal().detect("", "https://x.test/games/sugar_rush-1000/"))

        assert [c.raw for c in candidates] == ["Sugar Rush 1000"]

    def test_url_path_drops_page_extension(self) -> None:
        candidates = list(UrlPathSignal().detect("", "https://x.test/slots/sweet-bonanza.html"))

        assert [c.raw for c in candidates] == ["Sweet Bonanza"]

    def test_listing_cards_skip_badges(self) -> None:
        html = """
        <div class="game-card"><span class="badge">New</span><h3>Sweet Bonanza</h3></div>
        <div class="game-card"><span class="badge">Hot</span><h3>Gates of Olympus</h3></div>
        <li class="slot-item"><span>Top</span><a href="#">Fire Joker</a></li>
        """

        game = extract(html, _NO_PATH_URL)

        assert game is not None
        assert game.name == "Sweet Bonanza"
        assert game.listing_names == ("Gates of Olympus", "Fire Joker")

    def test_oversized_structured_data_provider_is_dropped(self) -> None:
        html = (
            '<script type="application/ld+json">'
            '{"@type": "VideoGame", "name": "Starburst", "author": {"name": "' + "N" * 150 + '"}}'
            "</script><p>Provider: NetEnt</p>"
        )

        game = extract(html, _NO_PATH_URL)

        assert game is not None
        assert game.provider == "NetEnt"


# ---------------------------------------------------------------------------
# Name rules
# ---------------------------------------------------------------------------


class TestNameRules:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Sweet Bonanza Demo | Pragmatic Play", "Sweet Bonanza"),
            ("Gates of Olympus (2021) - Review", "Gates of Olympus"),
            ("  <b>Fire &amp; Roses</b>  ", "Fire & Roses"),
        ],
    )
    def test_clean(self, raw: str, expected: str) -> None:
        assert NameRules().clean(raw) == expected

    @pytest.mark.parametrize(
        "name",
        ["ab", "x" * 51, "12345", "Sign Up", "Bovada Slots Lobby", "Welcome"],
    )
    def test_rejects(self, name: str) -> None:
        assert NameRules().is_valid(name) is False

    def test_accepts_ordinary_name(self) -> None:
        assert NameRules().accept("Reactoonz 2") == "Reactoonz 2"


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------


class TestEnrichment:
    def test_full_detail_page(self) -> None:
        html = """
        <h1>Gates of Olympus</h1>
        <table>
          <tr><td>Provider:</td><td>Pragmatic Play</td></tr>
          <tr><td>Volatility</td><td>High</td></tr>
          <tr><td>Max Win</td><td>5,000x</td></tr>
        </table>
        <a class="btn" href="/demo/gates-of-olympus">Play demo</a>
        <img src="/images/slots/gates-of-olympus.jpg" alt="">
        """

        fields = enrich(html, "https://example.com/review/", FIELD_RULES)

        assert fields["provider"] == "Pragmatic Play"
        assert fields["volatility"] == "high"
        assert fields["max_win"] == "5,000x"
        assert fields["demo_url"] == "https://example.com/demo/gates-of-olympus"
        assert fields["image"] == "https://example.com/images/slots/gates-of-olympus.jpg"

    def test_missing_fields_are_none(self) -> None:
        fields = enrich("<p>nothing here</p>", _NO_PATH_URL, FIELD_RULES)

        assert fields["rtp"] is None
        assert fields["provider"] is None

    def test_implausible_rtp_is_ignored(self) -> None:
        fields = enrich("<p>RTP: 250%</p>", _NO_PATH_URL, FIELD_RULES)

        assert fields["rtp"] is None

    def test_inline_rtp_beats_later_percentage(self) -> None:
        html = "<h1>Sweet Bonanza</h1><ul><li>RTP: 96.51%</li><li>12.50%</li></ul>"

        game = extract(html, _NO_PATH_URL)

        assert game is not None
        assert game.rtp == "96.51%"

    def test_label_cell_then_value_cell(self) -> None:
        html = "<dl><dt>RTP</dt><dd>95.5 %</dd><dt>Bonus</dt><dd>10.00%</dd></dl>"

        assert enrich(html, _NO_PATH_URL, FIELD_RULES)["rtp"] == "95.5%"
