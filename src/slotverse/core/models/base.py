"""SQLAlchemy declarative base and shared column types for all ORM models.

Provides:
- Base: the DeclarativeBase subclass all models inherit from
- JSONType: JSON column that becomes JSONB on PostgreSQL
- utcnow: timezone-aware "now" used for application-side timestamps
"""

from __future__ import annotations

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

#: JSON on every backend, JSONB on PostgreSQL.
JSONType = sa.JSON().with_variant(JSONB(), "postgresql")

#: Auto-incrementing BIGINT key that still autoincrements on SQLite.
BigIntKey = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def utcnow() -> datetime:
    """Return the current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Shared declarative base for all SlotVerse models."""
