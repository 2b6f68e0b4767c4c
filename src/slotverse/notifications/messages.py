"""Human-readable texts sent to requesters.

Failure messages end with a remediation hint chosen from the kind tag at
the start of ``error_message`` (``"timeout: ..."``).
"""

from __future__ import annotations

from slotverse.core.models.scraping import JobStatus, ScrapeJob

_HINTS: dict[str, str] = {
    "timeout": (
        "The site answered too slowly. Try again later, or use a direct game "
        "page URL instead of a lobby or listing page."
    ),
    "exhausted": (
        "The site blocked every request or the page shows no recognisable game. "
        "Try the game's page on the provider's own site or another casino."
    ),
    "persistence": (
        "The game was found but could not be saved. The catalog database may be "
        "unavailable; retry in a few minutes."
    ),
}

_DEFAULT_HINT = "Check that the URL opens a single game page and try again."


def error_kind(error_message: str | None) -> str:
    """Return the kind tag of a stored error (``"internal"`` when untagged)."""
    if error_message and ":" in error_message:
        kind = error_message.split(":", 1)[0].strip()
        if kind.isidentifier():
            return kind
    return "internal"


def remediation_hint(error_message: str | None) -> str:
    return _HINTS.get(error_kind(error_message), _DEFAULT_HINT)


def started_message(job: ScrapeJob) -> str:
    """Acknowledgment shown right after a job is accepted."""
    return (
        f"🚀 Scraping job #{job.id} started for {job.url}\n"
        "I'll post the result here when it finishes."
    )


def success_message(job: ScrapeJob) -> str:
    payload = job.result_payload or {}
    games = payload.get("games", [])
    lines = [
        f"✅ Scraping job #{job.id} complete!",
        "",
        f"🔗 Source: {job.url}",
        f"🎰 Games found: {len(games)}",
    ]
    if payload.get("strategy"):
        lines.append(f"🛠️ Strategy: {payload['strategy']}")
    if games:
        lines.append("")
        for game in games:
            state = "new" if game.get("created") else "already in catalog"
            lines.append(f"• {game.get('name')} ({game.get('provider') or 'Unknown'}) - {state}")
    listing = payload.get("listing_names") or []
    if listing:
        lines.append("")
        lines.append("Also listed on the page: " + ", ".join(listing))
    return "\n".join(lines)


def failure_message(job: ScrapeJob) -> str:
    error = job.error_message or "Unknown error"
    return "\n".join(
        [
            f"❌ Scraping job #{job.id} failed",
            "",
            f"🔗 Source: {job.url}",
            f"Error: {error}",
            "",
            f"💡 Next steps: {remediation_hint(job.error_message)}",
        ]
    )


def outcome_message(job: ScrapeJob) -> str:
    """Return the success or failure text for a finished job."""
    if job.status == JobStatus.COMPLETED.value:
        return success_message(job)
    return failure_message(job)
