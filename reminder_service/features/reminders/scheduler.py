"""Reminder scheduling: translates reminder lifecycle events into job store operations.

Every operation reloads the reminder in a fresh session. Job store calls
commit in their own sessions and run before this session writes, so a
reminder row is never held across a job store round trip.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import update

from reminder_service.core.database import NotFoundError
from reminder_service.core.exceptions import NotFoundException, ValidationError
from reminder_service.core.services import BaseService
from reminder_service.features.reminders.metrics import reminder_operations_total
from reminder_service.features.reminders.models import Reminder, ReminderStatus, reminder_dedup_key
from reminder_service.features.reminders.repository import get_reminder_repository
from reminder_service.features.tasks.repository import get_task_repository

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from reminder_service.features.reminders.repository import ReminderRepository
    from reminder_service.features.tasks.repository import TaskRepository
    from reminder_service.infra.database import Database
    from reminder_service.infra.tasks.jobs import JobStore

REMINDER_QUEUE = "reminder"

INVALID_MINUTES = "Invalid mins parameter: must be a positive integer"


def reminder_payload(reminder_id: UUID, task_id: UUID) -> dict[str, Any]:
    """Job payload for one reminder fire."""
    return {"reminder_id": str(reminder_id), "task_id": str(task_id)}


def validate_minutes(minutes: Any) -> int:
    """Return ``minutes`` if it is a positive int, else raise ValidationError.

    ``True`` is an int in Python but not a number of minutes.
    """
    if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
        raise ValidationError(INVALID_MINUTES, extra={"mins": repr(minutes)})
    return minutes


class ReminderScheduler(BaseService):
    """Schedule, snooze, cancel and dismiss reminders.

    Example:
        scheduler = ReminderScheduler(database, store)
        reminder = await scheduler.create_reminder(task_id, trigger_at)
        await scheduler.reschedule(reminder.id, 15)
    """

    def __init__(
        self,
        database: Database,
        store: JobStore,
        *,
        reminders: ReminderRepository | None = None,
        tasks: TaskRepository | None = None,
    ) -> None:
        super().__init__()
        self.database = database
        self.store = store
        self.reminders = reminders or get_reminder_repository()
        self.tasks = tasks or get_task_repository()

    async def schedule(self, reminder_id: UUID, task_id: UUID, trigger_at: datetime) -> UUID:
        """Make the reminder's single unresolved job fire at ``trigger_at``.

        Returns:
            Handle of the job, also stored on the reminder.
        """
        job_id = await self.store.upsert(
            REMINDER_QUEUE,
            reminder_payload(reminder_id, task_id),
            trigger_at,
            dedup_key=reminder_dedup_key(reminder_id),
        )
        async with self.database.session() as session:
            await session.execute(
                update(Reminder)
                .where(Reminder.id == reminder_id)
                .values(job_id=job_id, updated_at=self.store.now())
                .execution_options(synchronize_session=False)
            )
            await session.commit()

        reminder_operations_total.labels(operation="scheduled").inc()
        self.logger.info(
            "Reminder scheduled",
            extra={
                "reminder_id": str(reminder_id),
                "job_id": str(job_id),
                "trigger_at": trigger_at.isoformat(),
                "operation": "reminders.schedule",
            },
        )
        return job_id

    async def reschedule(self, reminder_id: UUID, minutes: Any) -> Reminder:
        """Snooze: fire again ``minutes`` from now.

        Allowed from any status; a dismissed reminder snoozed from an old
        notification becomes SCHEDULED again.

        Raises:
            ValidationError: ``minutes`` is not a positive integer.
            NotFoundException: No such reminder.
        """
        minutes = validate_minutes(minutes)

        async with self.database.session() as session:
            reminder = await self._lock_reminder(session, reminder_id)

            new_trigger = self.store.now() + timedelta(minutes=minutes)
            old_job_id = reminder.job_id
            job_id = await self.store.upsert(
                REMINDER_QUEUE,
                reminder_payload(reminder.id, reminder.task_id),
                new_trigger,
                dedup_key=reminder.dedup_key,
            )
            if old_job_id is not None and old_job_id != job_id:
                await self.store.cancel(REMINDER_QUEUE, old_job_id)

            reminder.status = ReminderStatus.SCHEDULED
            reminder.trigger_at = new_trigger
            reminder.snoozed_until = new_trigger
            reminder.job_id = job_id
            await session.commit()

        reminder_operations_total.labels(operation="snoozed").inc()
        self.logger.info(
            "Reminder snoozed",
            extra={
                "reminder_id": str(reminder_id),
                "job_id": str(job_id),
                "minutes": minutes,
                "trigger_at": new_trigger.isoformat(),
                "operation": "reminders.reschedule",
            },
        )
        return reminder

    async def cancel(self, reminder_id: UUID) -> bool:
        """Best-effort cancellation of the reminder's job. Status is unchanged."""
        async with self.database.session() as session:
            reminder = await self.reminders.get(session, reminder_id)
            job_id = reminder.job_id if reminder is not None else None

        if job_id is None:
            self._lazy.debug(lambda: f"reminders.cancel: {reminder_id} has no job")
            return False

        cancelled = await self.store.cancel(REMINDER_QUEUE, job_id)
        if cancelled:
            reminder_operations_total.labels(operation="cancelled").inc()
        self.logger.info(
            "Reminder job cancel requested",
            extra={
                "reminder_id": str(reminder_id),
                "job_id": str(job_id),
                "cancelled": cancelled,
                "operation": "reminders.cancel",
            },
        )
        return cancelled

    async def create_reminder(
        self,
        task_id: UUID,
        trigger_at: datetime,
        *,
        user_id: str | None = None,
    ) -> Reminder:
        """Create a SCHEDULED reminder for a task and schedule its job.

        Args:
            task_id: Task to remind about.
            trigger_at: When to fire.
            user_id: When given, the task must belong to this user.

        Raises:
            NotFoundException: Unknown task, or owned by someone else.
            ValidationError: The task is already completed.
        """
        async with self.database.session() as session:
            task = (
                await self.tasks.get_for_user(session, task_id, user_id)
                if user_id is not None
                else await self.tasks.get(session, task_id)
            )
            if task is None:
                raise NotFoundException("Task not found", extra={"task_id": str(task_id)})
            if task.completed:
                raise ValidationError("Cannot create reminder for completed task", extra={"task_id": str(task_id)})

            reminder = await self.reminders.create(
                session,
                Reminder(
                    task_id=task.id,
                    user_id=task.user_id,
                    trigger_at=trigger_at,
                    status=ReminderStatus.SCHEDULED,
                ),
            )
            await session.commit()

        reminder_operations_total.labels(operation="created").inc()
        reminder.job_id = await self.schedule(reminder.id, reminder.task_id, trigger_at)
        return reminder

    async def dismiss(self, reminder_id: UUID) -> Reminder:
        """Dismiss the reminder and complete its task.

        Idempotent: dismissing a dismissed reminder of a completed task
        changes nothing and succeeds.

        Raises:
            NotFoundException: No such reminder.
        """
        async with self.database.session() as session:
            reminder = await self._lock_reminder(session, reminder_id)

            if reminder.job_id is not None:
                await self.store.cancel(REMINDER_QUEUE, reminder.job_id)

            reminder.status = ReminderStatus.DISMISSED
            task_completed = await self.tasks.mark_completed(session, reminder.task_id)
            await session.commit()

        reminder_operations_total.labels(operation="dismissed").inc()
        self.logger.info(
            "Reminder dismissed",
            extra={
                "reminder_id": str(reminder_id),
                "task_id": str(reminder.task_id),
                "task_completed": task_completed,
                "operation": "reminders.dismiss",
            },
        )
        return reminder

    async def cancel_for_task(self, task_id: UUID) -> int:
        """Cancel and dismiss every SCHEDULED reminder of a task.

        Returns:
            Number of reminders dismissed by this call.
        """
        async with self.database.session() as session:
            pending = await self.reminders.list_for_task(session, task_id, status=ReminderStatus.SCHEDULED)
            targets = [(reminder.id, reminder.job_id) for reminder in pending]

        if not targets:
            return 0

        for _, job_id in targets:
            if job_id is not None:
                await self.store.cancel(REMINDER_QUEUE, job_id)

        async with self.database.session() as session:
            result = await session.execute(
                update(Reminder)
                .where(
                    Reminder.id.in_([reminder_id for reminder_id, _ in targets]),
                    Reminder.status == ReminderStatus.SCHEDULED,
                )
                .values(status=ReminderStatus.DISMISSED, updated_at=self.store.now())
                .execution_options(synchronize_session=False)
            )
            await session.commit()

        dismissed = result.rowcount
        self.logger.info(
            "Task reminders cancelled",
            extra={"task_id": str(task_id), "count": dismissed, "operation": "reminders.cancel_for_task"},
        )
        return dismissed

    async def _lock_reminder(self, session: AsyncSession, reminder_id: UUID) -> Reminder:
        try:
            return await self.reminders.get_or_raise(session, reminder_id, for_update=True)
        except NotFoundError as e:
            raise NotFoundException("Reminder not found", extra={"reminder_id": str(reminder_id)}) from e
