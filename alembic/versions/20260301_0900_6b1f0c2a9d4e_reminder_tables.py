"""reminder tables

Revision ID: 6b1f0c2a9d4e
Revises:
Create Date: 2026-03-01 09:00:00.000000+00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "6b1f0c2a9d4e"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

UNRESOLVED_PREDICATE = "status IN ('pending', 'retrying')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("defer_date", sa.Date(), nullable=True),
        sa.Column(
            "project_name",
            sa.String(length=200),
            nullable=True,
            comment="Project title shown as notification context",
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tasks")),
    )
    op.create_index("ix_tasks_user_id_completed", "tasks", ["user_id", "completed"])

    op.create_table(
        "reminders",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("trigger_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column(
            "snoozed_until",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Target of the most recent snooze",
        ),
        sa.Column(
            "job_id",
            sa.Uuid(),
            nullable=True,
            comment="Handle of the scheduled_jobs entry for this reminder",
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["task_id"],
            ["tasks.id"],
            name=op.f("fk_reminders_task_id_tasks"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_reminders")),
    )
    op.create_index("ix_reminders_task_id_status", "reminders", ["task_id", "status"])
    op.create_index(op.f("ix_reminders_user_id"), "reminders", ["user_id"])

    op.create_table(
        "notification_subscriptions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("ntfy_topic", sa.String(length=255), nullable=True),
        sa.Column("endpoint", sa.Text(), nullable=True),
        sa.Column("p256dh", sa.String(length=255), nullable=True),
        sa.Column("auth", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_notification_subscriptions")),
        sa.UniqueConstraint("user_id", "endpoint", name="uq_notification_subscriptions_user_endpoint"),
        sa.UniqueConstraint("user_id", "ntfy_topic", name="uq_notification_subscriptions_user_topic"),
    )
    op.create_index(
        "ix_notification_subscriptions_user_active",
        "notification_subscriptions",
        ["user_id", "active"],
    )

    op.create_table(
        "scheduled_jobs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("queue_name", sa.String(length=100), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("run_after", sa.DateTime(timezone=True), nullable=False),
        sa.Column("dedup_key", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column("locked_by", sa.String(length=255), nullable=True),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_scheduled_jobs")),
    )
    op.create_index(
        "uq_scheduled_jobs_queue_dedup_unresolved",
        "scheduled_jobs",
        ["queue_name", "dedup_key"],
        unique=True,
        postgresql_where=sa.text(UNRESOLVED_PREDICATE),
        sqlite_where=sa.text(UNRESOLVED_PREDICATE),
    )
    op.create_index(
        "ix_scheduled_jobs_queue_status_run_after",
        "scheduled_jobs",
        ["queue_name", "status", "run_after"],
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("ix_scheduled_jobs_queue_status_run_after", table_name="scheduled_jobs")
    op.drop_index("uq_scheduled_jobs_queue_dedup_unresolved", table_name="scheduled_jobs")
    op.drop_table("scheduled_jobs")
    op.drop_index("ix_notification_subscriptions_user_active", table_name="notification_subscriptions")
    op.drop_table("notification_subscriptions")
    op.drop_index(op.f("ix_reminders_user_id"), table_name="reminders")
    op.drop_index("ix_reminders_task_id_status", table_name="reminders")
    op.drop_table("reminders")
    op.drop_index("ix_tasks_user_id_completed", table_name="tasks")
    op.drop_table("tasks")
