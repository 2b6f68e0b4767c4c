"""SQLAlchemy ORM model for scrape jobs.

A ``ScrapeJob`` is one persisted unit of scrape work.  Its lifecycle runs
one way only::

    pending -> processing -> completed | failed

The ingress writes ``pending`` rows; the worker claims them and writes the
terminal state.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from slotverse.core.models.base import Base, BigIntKey, JSONType, utcnow


class JobStatus(str, enum.Enum):
    """Lifecycle states stored in ``scrape_jobs.status``."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES: frozenset[str] = frozenset(
    {JobStatus.COMPLETED.value, JobStatus.FAILED.value}
)


class ScrapeJob(Base):
    """One request to scrape a game page and report the outcome.

    Attributes:
        id: Auto-incrementing primary key, shown to users as ``#<id>``.
        url: Absolute http(s) URL to scrape.
        status: ``"pending"``, ``"processing"``, ``"completed"`` or ``"failed"``.
        platform: Where the request came from: ``"discord"``, ``"telegram"``
            or ``"api"``.  Selects the notifier.
        callback_channel: Platform channel/chat ID for the completion message.
        callback_token: Short-lived platform credential used to deliver the
            completion message (Discord interaction token).  May have expired
            by the time the job finishes.
        requested_by: Optional requester identity for audit and throttling.
        created_at: When the ingress persisted the job.
        started_at: When a worker claimed the job.
        completed_at: When the job reached a terminal state.
        error_message: ``"<kind>: <detail>"`` on failed jobs only.
        result_payload: Extraction summary on completed jobs only.
    """

    __tablename__ = "scrape_jobs"

    id: Mapped[int] = mapped_column(BigIntKey, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(sa.String(2048), nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(20),
        nullable=False,
        default=JobStatus.PENDING.value,
        server_default=sa.text("'pending'"),
    )

    # Routing
    platform: Mapped[str] = mapped_column(
        sa.String(20),
        nullable=False,
        default="api",
        server_default=sa.text("'api'"),
    )
    callback_channel: Mapped[Optional[str]] = mapped_column(sa.String(255), nullable=True)
    callback_token: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    requested_by: Mapped[Optional[str]] = mapped_column(sa.String(255), nullable=True)

    # Timing
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=True,
    )

    # Outcome
    error_message: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    result_payload: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=True,
    )

    __table_args__ = (
        sa.Index("idx_scrape_jobs_status_created", "status", "created_at"),
        sa.Index("idx_scrape_jobs_requested_by", "requested_by"),
    )

    def __repr__(self) -> str:
        return f"<ScrapeJob id={self.id} status={self.status} url={self.url!r}>"
