"""Configuration package for SlotVerse.

Re-exports the settings symbols so that callers can write::

    from slotverse.config import get_settings
"""

from __future__ import annotations

from slotverse.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
