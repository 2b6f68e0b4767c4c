"""SQLAlchemy ORM model for the slot-game catalog.

Rows are keyed by ``slug``, derived from the cleaned game name, so saving
the same game twice is detected rather than re-inserted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from slotverse.core.models.base import Base, BigIntKey, utcnow


class Game(Base):
    """A slot game in the catalog."""

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(BigIntKey, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    slug: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)
    provider: Mapped[str] = mapped_column(
        sa.String(100),
        nullable=False,
        default="Unknown",
    )
    rtp: Mapped[Optional[str]] = mapped_column(sa.String(10), nullable=True)
    volatility: Mapped[Optional[str]] = mapped_column(sa.String(10), nullable=True)
    max_win: Mapped[Optional[str]] = mapped_column(sa.String(20), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(sa.String(2048), nullable=True)
    demo_url: Mapped[Optional[str]] = mapped_column(sa.String(2048), nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(sa.String(2048), nullable=True)
    is_featured: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    is_new: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        sa.Index("idx_games_provider", "provider"),
        sa.Index("idx_games_name", "name"),
    )
