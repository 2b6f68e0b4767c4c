"""SQLAlchemy ORM models for SlotVerse.

All models are imported here so that:
1. Alembic autogenerate can discover them via Base.metadata.
2. Application code can do ``from slotverse.core.models import ScrapeJob``
   without knowing which sub-module a model lives in.
"""

from __future__ import annotations

from slotverse.core.models.base import Base
from slotverse.core.models.games import Game
from slotverse.core.models.scraping import JobStatus, ScrapeJob

__all__ = [
    "Base",
    "Game",
    "JobStatus",
    "ScrapeJob",
]
