"""Declarative base and shared mixins for SQLAlchemy models.

Example:
    class Reminder(Base, UUIDPKMixin, TimestampMixin):
        __tablename__ = "reminders"
        trigger_at: Mapped[datetime] = mapped_column(UTCDateTime())
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from reminder_service.core.database.types import UTCDateTime, utcnow

# Predictable constraint names for migrations
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base with consistent constraint naming.

    Models set ``__tablename__`` explicitly.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class UUIDPKMixin:
    """UUID v4 primary key.

    Reminder ids end up in callback URLs, so they must not be enumerable.
    """

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    """Timestamp tracking for create and update operations.

    Timestamps are set Python-side so SQLite and PostgreSQL store the same
    values.

    Provides:
        created_at: Timestamp of record creation (immutable)
        updated_at: Timestamp of last modification (auto-updates)
    """

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


__all__ = ["NAMING_CONVENTION", "Base", "TimestampMixin", "UUIDPKMixin"]
