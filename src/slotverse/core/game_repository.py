"""Game catalog persistence.

``save_game`` is idempotent: the slug derived from the cleaned game name is
the identity, so a second save of the same game returns the existing row
with ``created=False`` instead of inserting a duplicate.  A concurrent insert
that loses the unique-constraint race is resolved the same way.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from slotverse.core.exceptions import PersistenceError
from slotverse.core.models.games import Game

if TYPE_CHECKING:
    from slotverse.scraper.extractor import ExtractedGame

logger = logging.getLogger(__name__)

#: Provider stored when the page did not name one.
UNKNOWN_PROVIDER: str = "Unknown"

#: Default page size of :meth:`GameRepository.list_recent`.
RECENT_GAMES_LIMIT: int = 10

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASH_RUNS = re.compile(r"-+")


def slugify(name: str) -> str:
    """Derive the catalog identity from a game name.

    >>> slugify("Gates Of Olympus 1000")
    'gates-of-olympus-1000'
    """
    slug = _NON_SLUG_CHARS.sub("", name.lower())
    slug = _WHITESPACE.sub("-", slug.strip())
    return _DASH_RUNS.sub("-", slug).strip("-")


@dataclass(frozen=True)
class SaveResult:
    """Outcome of :meth:`GameRepository.save_game`."""

    created: bool
    id: int
    slug: str


class GameRepository:
    """Writes extracted games to the ``games`` table.

    Args:
        session_factory: Factory for ``AsyncSession`` objects.  Defaults to
            the process-wide ``AsyncSessionLocal``.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> None:
        if session_factory is None:
            from slotverse.core.database import AsyncSessionLocal  # noqa: PLC0415

            session_factory = AsyncSessionLocal
        self._session_factory = session_factory

    async def save_game(self, game: ExtractedGame, source_url: str) -> SaveResult:
        """Insert *game* unless a game with the same slug already exists.

        Raises:
            PersistenceError: If the name yields an empty slug or the
                database rejects the write.
        """
        slug = slugify(game.name)
        if not slug:
            raise PersistenceError(f"cannot derive a catalog slug from {game.name!r}")

        try:
            existing = await self._find_id(slug)
            if existing is not None:
                logger.info("scraper: game %r already in catalog as #%s", slug, existing)
                return SaveResult(created=False, id=existing, slug=slug)

            provider = game.provider or UNKNOWN_PROVIDER
            row = Game(
                name=game.name,
                slug=slug,
                provider=provider,
                rtp=game.rtp,
                volatility=game.volatility,
                max_win=game.max_win,
                description=f"{game.name} is a slot game by {provider}.",
                image_url=game.image,
                demo_url=game.demo_url,
                source_url=source_url,
            )
            async with self._session_factory() as session:
                session.add(row)
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    existing = await self._find_id(slug)
                    if existing is None:
                        raise
                    return SaveResult(created=False, id=existing, slug=slug)
                game_id = row.id
        except SQLAlchemyError as exc:
            raise PersistenceError(f"could not save {game.name!r}: {exc}") from exc

        logger.info("scraper: saved game %r as #%s", slug, game_id)
        return SaveResult(created=True, id=game_id, slug=slug)

    async def _find_id(self, slug: str) -> int | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Game.id).where(Game.slug == slug))
            return result.scalar_one_or_none()

    async def list_recent(self, limit: int = RECENT_GAMES_LIMIT) -> list[Game]:
        """Return the newest catalog games first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Game).order_by(Game.created_at.desc(), Game.id.desc()).limit(limit)
            )
            return list(result.scalars().all())
