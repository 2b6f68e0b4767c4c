"""Initial schema: scrape_jobs and games.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the job store and game catalog tables."""
    op.create_table(
        "scrape_jobs",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("platform", sa.String(20), nullable=False, server_default=sa.text("'api'")),
        sa.Column("callback_channel", sa.String(255), nullable=True),
        sa.Column("callback_token", sa.Text(), nullable=True),
        sa.Column("requested_by", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("result_payload", postgresql.JSONB(), nullable=True),
    )
    op.create_index("idx_scrape_jobs_status_created", "scrape_jobs", ["status", "created_at"])
    op.create_index("idx_scrape_jobs_requested_by", "scrape_jobs", ["requested_by"])

    op.create_table(
        "games",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("provider", sa.String(100), nullable=False),
        sa.Column("rtp", sa.String(10), nullable=True),
        sa.Column("volatility", sa.String(10), nullable=True),
        sa.Column("max_win", sa.String(20), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(2048), nullable=True),
        sa.Column("demo_url", sa.String(2048), nullable=True),
        sa.Column("source_url", sa.String(2048), nullable=True),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_new", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_games_provider", "games", ["provider"])
    op.create_index("idx_games_name", "games", ["name"])


def downgrade() -> None:
    op.drop_index("idx_games_name", table_name="games")
    op.drop_index("idx_games_provider", table_name="games")
    op.drop_table("games")
    op.drop_index("idx_scrape_jobs_requested_by", table_name="scrape_jobs")
    op.drop_index("idx_scrape_jobs_status_created", table_name="scrape_jobs")
    op.drop_table("scrape_jobs")
