"""Constants and tuning parameters for the scrape pipeline.

Everything here is read-only data shared by concurrent jobs.  Extend the
denylist or filler words here; the extraction control flow never needs to
change for that.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Browser fingerprints used by the fetch strategies
# ---------------------------------------------------------------------------

#: Desktop Chrome on Windows.
CHROME_WINDOWS_UA: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

#: Desktop Chrome on macOS.
CHROME_MAC_UA: str = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

#: Mobile Safari on iPhone.
IPHONE_SAFARI_UA: str = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)

#: Desktop Firefox on Windows.
FIREFOX_WINDOWS_UA: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0"
)

#: Desktop Chrome on Linux.
CHROME_LINUX_UA: str = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

#: Accept headers every browser-like strategy sends.
BROWSER_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
}

#: Cookie jar presented by the cookie strategy, mimicking a returning visitor.
VISITOR_COOKIES: str = "session=visitor; preferences=accepted; region=US"

#: Navigation headers a real Firefox sends on a top-level page load.
SEC_FETCH_HEADERS: dict[str, str] = {
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
}

#: Content-Type prefixes that indicate binary resources.  Such responses are
#: treated as a failed attempt without running extraction.
BINARY_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/zip",
        "application/octet-stream",
        "image/",
        "video/",
        "audio/",
        "font/",
    }
)

#: Redirects followed per attempt before giving up.
MAX_REDIRECTS: int = 10

# ---------------------------------------------------------------------------
# Name cleaning and validation
# ---------------------------------------------------------------------------

#: Accepted game-name length, after cleaning.
MIN_NAME_LENGTH: int = 3
MAX_NAME_LENGTH: int = 50

#: Words stripped from candidate names wherever they appear as whole words.
FILLER_WORDS: tuple[str, ...] = ("demo", "slots", "slot", "games", "game", "free", "play")

#: Whole-name rejects: navigation labels and site chrome.
DENYLIST_EXACT: frozenset[str] = frozenset(
    {
        "home",
        "login",
        "log in",
        "register",
        "sign up",
        "sign in",
        "welcome",
        "about",
        "about us",
        "contact",
        "contact us",
        "terms",
        "privacy",
        "privacy policy",
        "help",
        "support",
        "faq",
        "casino",
        "online casino",
        "promotions",
        "bonuses",
        "menu",
        "search",
        "new",
        "hot",
        "top",
        "featured",
        "exclusive",
        "trending",
        "popular",
        "all",
        "vegas",
        "logo",
    }
)

#: Phrases that reject a candidate when they occur anywhere in it as whole
#: words: casino brands, page furniture and unrelated names seen in past
#: bad extractions.
DENYLIST_TERMS: tuple[str, ...] = (
    "logo",
    "casino",
    "bovada",
    "betus",
    "jackpot capital",
    "sunnyspins",
    "cc_silver",
    "001x",
    "askme",
    "you likey",
    "kudos",
    "joey",
    "phoebe",
    "rachel",
    "ross",
    "monica",
    "chandler",
    "comedian",
    "singer",
    "superhuman",
    "basketball",
    "football",
    "hockey",
    "thanksgiving",
    "looking up",
    "click here",
    "sign up",
    "sign in",
    "log in",
    "cookie",
    "terms and conditions",
)

#: Path segments that never name a game on their own.
GENERIC_PATH_SEGMENTS: frozenset[str] = frozenset(
    {
        "game",
        "games",
        "slot",
        "slots",
        "play",
        "demo",
        "free",
        "casino",
        "online",
        "en",
        "us",
        "uk",
        "index",
        "home",
    }
)

# ---------------------------------------------------------------------------
# Container scan
# ---------------------------------------------------------------------------

#: Most card names collected from a listing page.
CONTAINER_SCAN_CAP: int = 5

#: Characters of markup inspected after a card's opening tag.
CONTAINER_WINDOW: int = 1500
