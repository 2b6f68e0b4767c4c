"""Discord interactions endpoint.

Discord POSTs every slash command to ``/discord/interactions`` and expects
an answer within three seconds, so ``/copy`` only enqueues the job and
replies with the "started" message.  The outcome arrives later as an
interaction follow-up (see :mod:`slotverse.notifications.discord`), using
the interaction token stored on the job.

Requests are signed with Ed25519 over ``timestamp + raw body``.  Discord
only shows 200 responses to users, so every command-level problem
(validation, throttling, allow-lists) is answered with 200 and an
ephemeral message; only a bad signature gets 401.
"""

import json
from typing import Any

import structlog
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from slotverse.api.dependencies import (
    DispatcherDep,
    GameRepositoryDep,
    JobStoreDep,
    SettingsDep,
)
from slotverse.api.limiter import INGRESS_RATE_LIMIT, limiter
from slotverse.api.metrics import ingress_requests_total
from slotverse.config.settings import Settings
from slotverse.core.exceptions import (
    DispatchError,
    RequesterThrottledError,
    ScrapeValidationError,
)
from slotverse.core.game_repository import GameRepository
from slotverse.core.job_store import JobStore
from slotverse.notifications.messages import started_message

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/discord", tags=["discord"])

# Interaction types
PING = 1
APPLICATION_COMMAND = 2

# Interaction response types
PONG = 1
CHANNEL_MESSAGE_WITH_SOURCE = 4

#: Message flag that shows a reply only to the invoking user.
EPHEMERAL = 64

#: Games listed by ``/games`` without, and at most with, a ``limit`` option.
GAMES_DEFAULT_LIMIT = 5
GAMES_MAX_LIMIT = 10

HELP_TEXT = (
    "🎰 **SlotVerse bot commands**\n"
    "`/copy url:<game page>` - scrape a slot game into the catalog\n"
    "`/status` - check the bot and the database\n"
    "`/games [limit]` - list the newest catalog games\n"
    "`/help` - show this message\n\n"
    "Example: `/copy url:https://slotcatalog.com/slots/sweet-bonanza`"
)


def verify_signature(
    public_key_hex: str, signature_hex: str, timestamp: str, body: bytes
) -> bool:
    """Return whether *signature_hex* signs ``timestamp + body`` under the key."""
    try:
        key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))
        key.verify(bytes.fromhex(signature_hex), timestamp.encode() + body)
    except (InvalidSignature, ValueError):
        return False
    return True


def _reply(content: str, *, ephemeral: bool = False) -> dict[str, Any]:
    data: dict[str, Any] = {"content": content}
    if ephemeral:
        data["flags"] = EPHEMERAL
    return {"type": CHANNEL_MESSAGE_WITH_SOURCE, "data": data}


def _invoking_user(interaction: dict[str, Any]) -> dict[str, Any]:
    # Guild interactions carry the user under ``member``; DMs carry ``user``.
    return interaction.get("user") or (interaction.get("member") or {}).get("user") or {}


def _authorisation_error(interaction: dict[str, Any], settings: Settings) -> str | None:
    """Return a refusal message, or ``None`` when the caller may submit jobs.

    A configured guild allow-list takes precedence over the user allow-list.
    """
    if settings.discord_allowed_guilds:
        if interaction.get("guild_id") not in settings.discord_allowed_guilds:
            return "❌ This server is not authorized to use SlotVerse bot commands."
    elif settings.discord_allowed_users:
        if _invoking_user(interaction).get("id") not in settings.discord_allowed_users:
            return "❌ You don't have permission to use SlotVerse bot commands."
    return None


def _option(data: dict[str, Any], name: str) -> Any:
    for option in data.get("options") or []:
        if option.get("name") == name:
            return option.get("value")
    return None


async def _status_reply(store: JobStore) -> dict[str, Any]:
    """Report bot liveness plus a live database round trip."""
    try:
        pending = await store.count_pending()
    except SQLAlchemyError:
        logger.exception("discord_status_database_error")
        return _reply(
            "🎰 **SlotVerse status**\n🤖 Bot: online\n🗄️ Database: ❌ unreachable",
            ephemeral=True,
        )
    return _reply(
        "🎰 **SlotVerse status**\n🤖 Bot: online\n🗄️ Database: ✅ connected\n"
        f"⏳ Pending jobs: {pending}"
    )


def _games_limit(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return GAMES_DEFAULT_LIMIT
    return max(1, min(value, GAMES_MAX_LIMIT))


async def _games_reply(repository: GameRepository, limit: int) -> dict[str, Any]:
    try:
        games = await repository.list_recent(limit)
    except SQLAlchemyError:
        logger.exception("discord_games_database_error")
        return _reply("❌ Could not read the game catalog right now.", ephemeral=True)
    if not games:
        return _reply("📭 No games in the catalog yet.")

    lines = [f"🎰 **Recent games** (last {len(games)})"]
    for position, game in enumerate(games, start=1):
        line = f"{position}. **{game.name}** by {game.provider}"
        if game.rtp:
            line += f" (RTP {game.rtp})"
        lines.append(line)
    return _reply("\n".join(lines))


@router.post("/interactions")
@limiter.limit(INGRESS_RATE_LIMIT)
async def discord_interactions(
    request: Request,
    dispatcher: DispatcherDep,
    settings: SettingsDep,
    store: JobStoreDep,
    games: GameRepositoryDep,
) -> JSONResponse:
    """Handle one signed Discord interaction.

    Raises:
        HTTPException 401: Missing or invalid signature.
        HTTPException 400: Malformed body or unsupported interaction type.
    """
    body = await request.body()

    if settings.discord_public_key:
        signature = request.headers.get("X-Signature-Ed25519")
        timestamp = request.headers.get("X-Signature-Timestamp")
        if not signature or not timestamp or not verify_signature(
            settings.discord_public_key, signature, timestamp, body
        ):
            logger.warning("discord_signature_rejected")
            raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Invalid request signature")
    elif not settings.debug:
        logger.error("discord_public_key_missing")
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Invalid request signature")

    try:
        interaction = json.loads(body)
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Body is not JSON") from exc
    if not isinstance(interaction, dict):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Body is not a JSON object")

    interaction_type = interaction.get("type")
    if interaction_type == PING:
        return JSONResponse({"type": PONG})
    if interaction_type != APPLICATION_COMMAND:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Unknown interaction type")

    data = interaction.get("data") or {}
    command = data.get("name")
    user = _invoking_user(interaction)
    log = logger.bind(command=command, discord_user=user.get("id"))

    refusal = _authorisation_error(interaction, settings)
    if refusal is not None:
        log.info("discord_command_unauthorised", guild_id=interaction.get("guild_id"))
        ingress_requests_total.labels(platform="discord", outcome="rejected").inc()
        return JSONResponse(_reply(refusal, ephemeral=True))

    if command == "status":
        return JSONResponse(await _status_reply(store))
    if command == "games":
        limit = _games_limit(_option(data, "limit"))
        return JSONResponse(await _games_reply(games, limit))
    if command != "copy":
        if command != "help":
            log.info("discord_unknown_command")
        return JSONResponse(_reply(HELP_TEXT, ephemeral=True))

    try:
        job = await dispatcher.submit(
            _option(data, "url"),
            platform="discord",
            channel=interaction.get("channel_id"),
            token=interaction.get("token"),
            requested_by=f"discord:{user['id']}" if user.get("id") else None,
        )
    except ScrapeValidationError as exc:
        return JSONResponse(_reply(f"❌ {exc}", ephemeral=True))
    except RequesterThrottledError:
        return JSONResponse(
            _reply("⏳ You've reached the hourly scrape limit. Try again later.", ephemeral=True)
        )
    except DispatchError as exc:
        return JSONResponse(_reply(f"❌ {exc}", ephemeral=True))

    return JSONResponse(_reply(started_message(job)))
