"""SQLAlchemy model for the scheduled job store."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from reminder_service.core.database import Base, TimestampMixin, UTCDateTime, string_enum
from reminder_service.infra.tasks.jobs.enums import JobStatus

# Raw predicate for the partial unique index; must match JobStatus.unresolved_states()
_UNRESOLVED_PREDICATE = "status IN ('pending', 'retrying')"


class ScheduledJob(Base, TimestampMixin):
    """A delayed unit of work on a named queue.

    At most one unresolved (pending or retrying) job may exist per
    ``(queue_name, dedup_key)``. The partial unique index makes concurrent
    enqueues for the same key collide in the database instead of in Python.

    Example:
        job = ScheduledJob(
            queue_name="reminder",
            payload={"reminder_id": "...", "task_id": "..."},
            run_after=trigger_at,
            dedup_key="reminder:...",
        )
    """

    __tablename__ = "scheduled_jobs"
    __table_args__ = (
        Index(
            "uq_scheduled_jobs_queue_dedup_unresolved",
            "queue_name",
            "dedup_key",
            unique=True,
            postgresql_where=text(_UNRESOLVED_PREDICATE),
            sqlite_where=text(_UNRESOLVED_PREDICATE),
        ),
        Index("ix_scheduled_jobs_queue_status_run_after", "queue_name", "status", "run_after"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    queue_name: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    run_after: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    dedup_key: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[JobStatus] = mapped_column(
        string_enum(JobStatus, "scheduledjobstatus"),
        nullable=False,
        default=JobStatus.PENDING,
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=5)

    # Lease
    locked_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    locked_until: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Lifecycle timestamps
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<ScheduledJob(id={self.id}, queue={self.queue_name!r}, "
            f"status={self.status.value}, run_after={self.run_after.isoformat()})>"
        )
