#!/usr/bin/env python
"""Register the SlotVerse slash commands with Discord.

Run from the project root::

    python scripts/register_discord_commands.py [--guild GUILD_ID]

Reads ``DISCORD_APPLICATION_ID`` and ``DISCORD_BOT_TOKEN`` from the
environment (or ``.env``).  Without ``--guild`` the commands are registered
globally, which can take up to an hour to propagate; guild commands
appear immediately.

Exit codes:
    0: Commands registered.
    1: Missing configuration or Discord rejected the request.
"""

from __future__ import annotations

import argparse
import os
import sys

import httpx

# Ensure the src layout is on sys.path when run as a standalone script.
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_SRC_DIR = os.path.join(os.path.dirname(_SCRIPT_DIR), "src")
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)

#: Application command option types.
_STRING_OPTION = 3
_INTEGER_OPTION = 4

COMMANDS: list[dict] = [
    {
        "name": "copy",
        "description": "Scrape a slot game page into the SlotVerse catalog",
        "options": [
            {
                "name": "url",
                "description": "URL of the game page",
                "type": _STRING_OPTION,
                "required": True,
            }
        ],
    },
    {
        "name": "status",
        "description": "Check the bot and database status",
    },
    {
        "name": "games",
        "description": "List the newest games in the SlotVerse catalog",
        "options": [
            {
                "name": "limit",
                "description": "How many games to show (1-10)",
                "type": _INTEGER_OPTION,
                "required": False,
                "min_value": 1,
                "max_value": 10,
            }
        ],
    },
    {
        "name": "help",
        "description": "Show available SlotVerse bot commands",
    },
]


def register(
    application_id: str,
    bot_token: str,
    api_base: str,
    guild_id: str | None = None,
) -> list[dict]:
    """Overwrite the application's commands and return Discord's copy of them.

    Raises:
        httpx.HTTPStatusError: If Discord rejects the request.
    """
    if guild_id:
        url = f"{api_base}/applications/{application_id}/guilds/{guild_id}/commands"
    else:
        url = f"{api_base}/applications/{application_id}/commands"
    response = httpx.put(
        url,
        json=COMMANDS,
        headers={"Authorization": f"Bot {bot_token}"},
        timeout=15.0,
    )
    response.raise_for_status()
    return response.json()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--guild", help="register for one guild instead of globally")
    args = parser.parse_args()

    from slotverse.config.settings import get_settings  # noqa: PLC0415

    settings = get_settings()
    if not settings.discord_application_id or not settings.discord_bot_token:
        print("DISCORD_APPLICATION_ID and DISCORD_BOT_TOKEN must be set.", file=sys.stderr)
        sys.exit(1)

    try:
        registered = register(
            settings.discord_application_id,
            settings.discord_bot_token,
            settings.discord_api_base.rstrip("/"),
            guild_id=args.guild,
        )
    except httpx.HTTPError as exc:
        print(f"Registration failed: {exc}", file=sys.stderr)
        sys.exit(1)

    print("Registered commands:")
    for command in registered:
        print(f"   /{command['name']} - {command.get('description', '')}")


if __name__ == "__main__":
    main()
