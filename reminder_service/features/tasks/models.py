"""SQLAlchemy model for user tasks.

Only the columns the reminder pipeline reads are modelled here; task CRUD
belongs to the surrounding application.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from reminder_service.core.database import Base, TimestampMixin, UTCDateTime


class Task(Base, TimestampMixin):
    """A task owned by ``user_id`` that reminders point at."""

    __tablename__ = "tasks"
    __table_args__ = (Index("ix_tasks_user_id_completed", "user_id", "completed"),)

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    defer_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    project_name: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
        comment="Project title shown as notification context",
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, completed={self.completed})>"
