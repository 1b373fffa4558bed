"""SQLAlchemy models for the reminders feature.

Status transitions:

    SCHEDULED ──fire, delivered──→ SENT
    SCHEDULED ──fire, task completed──→ DISMISSED
    any ──snooze──→ SCHEDULED
    any ──done──→ DISMISSED

A fire never moves a reminder out of SENT or DISMISSED; only an explicit
snooze does.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from reminder_service.core.database import Base, TimestampMixin, UTCDateTime, string_enum


class ReminderStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    SENT = "SENT"
    DISMISSED = "DISMISSED"


class Reminder(Base, TimestampMixin):
    """Scheduled notification for one task.

    The reminder row decides whether a fire should still deliver; the job
    store only decides when the fire happens. ``job_id`` is the handle of the
    current job store entry and may point at a resolved job.
    """

    __tablename__ = "reminders"
    __table_args__ = (Index("ix_reminders_task_id_status", "task_id", "status"),)

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    trigger_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    status: Mapped[ReminderStatus] = mapped_column(
        string_enum(ReminderStatus, "reminderstatus"),
        nullable=False,
        default=ReminderStatus.SCHEDULED,
    )
    snoozed_until: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
        comment="Target of the most recent snooze",
    )
    job_id: Mapped[UUID | None] = mapped_column(
        nullable=True,
        comment="Handle of the scheduled_jobs entry for this reminder",
    )

    @property
    def dedup_key(self) -> str:
        return reminder_dedup_key(self.id)

    def __repr__(self) -> str:
        return f"<Reminder(id={self.id}, status={self.status.value}, trigger_at={self.trigger_at.isoformat()})>"


def reminder_dedup_key(reminder_id: UUID | str) -> str:
    """Job store dedup key; one unresolved job per reminder."""
    return f"reminder:{reminder_id}"
