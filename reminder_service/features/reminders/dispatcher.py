"""Reminder job handler: decide whether a fire still delivers, then fan out.

Reads happen in one short session that is closed before any delivery, and
each status change is a conditional UPDATE against the current row, so a
snooze or dismissal that lands while notifications are in flight is never
overwritten.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from reminder_service.core.exceptions import TransientStoreError
from reminder_service.core.services import BaseService
from reminder_service.features.notifications.channels.base import NotificationMessage
from reminder_service.features.notifications.formatting import format_body
from reminder_service.features.notifications.metrics import reminder_fired_total
from reminder_service.features.notifications.repository import get_subscription_repository
from reminder_service.features.reminders.models import Reminder, ReminderStatus
from reminder_service.features.reminders.repository import get_reminder_repository
from reminder_service.features.tasks.repository import get_task_repository
from reminder_service.infra.logging import set_log_context

if TYPE_CHECKING:
    from datetime import datetime

    from reminder_service.features.notifications.channels import NotificationFanout
    from reminder_service.features.notifications.models import NotificationSubscription
    from reminder_service.features.notifications.repository import SubscriptionRepository
    from reminder_service.features.reminders.links import CallbackLinks
    from reminder_service.features.reminders.repository import ReminderRepository
    from reminder_service.features.reminders.scheduler import ReminderScheduler
    from reminder_service.features.tasks.models import Task
    from reminder_service.features.tasks.repository import TaskRepository
    from reminder_service.infra.database import Database


class DispatchOutcome(str, enum.Enum):
    SENT = "sent"
    NO_SUBSCRIPTIONS = "no_subscriptions"
    MISSING = "missing"
    DISMISSED = "dismissed"
    ALREADY_SENT = "already_sent"
    TASK_COMPLETED = "task_completed"
    STALE = "stale"
    INVALID = "invalid"


class ReminderDispatcher(BaseService):
    """Handler registered on the ``reminder`` queue.

    Storage failures are raised as ``TransientStoreError`` so the job store
    retries the job; delivery failures are per subscription and never
    raised. Replaying a payload is safe: a dismissed or already sent
    reminder no-ops, so each trigger is delivered at most once.

    Example:
        dispatcher = ReminderDispatcher(database, scheduler, fanout, links)
        worker.register(REMINDER_QUEUE, dispatcher.handle)
    """

    def __init__(
        self,
        database: Database,
        scheduler: ReminderScheduler,
        fanout: NotificationFanout,
        links: CallbackLinks,
        *,
        title: str = "Flow — Next Action",
        open_url: str = "/today",
        reminders: ReminderRepository | None = None,
        tasks: TaskRepository | None = None,
        subscriptions: SubscriptionRepository | None = None,
    ) -> None:
        super().__init__()
        self.database = database
        self.scheduler = scheduler
        self.fanout = fanout
        self.links = links
        self.title = title
        self.open_url = open_url
        self.reminders = reminders or get_reminder_repository()
        self.tasks = tasks or get_task_repository()
        self.subscriptions = subscriptions or get_subscription_repository()

    def now(self) -> datetime:
        return self.scheduler.store.now()

    async def handle(self, payload: dict[str, Any]) -> DispatchOutcome:
        """Process one fired reminder job."""
        try:
            reminder_id = UUID(str(payload["reminder_id"]))
        except (KeyError, ValueError):
            self.logger.error(
                "Reminder job payload is invalid",
                extra={"payload": payload, "operation": "reminders.dispatch"},
            )
            return self._finish(DispatchOutcome.INVALID)

        set_log_context(reminder_id=str(reminder_id))
        now = self.now()

        try:
            reminder, task, subscriptions = await self._load(reminder_id)
        except SQLAlchemyError as e:
            raise TransientStoreError("Could not load reminder state", extra={"reminder_id": str(reminder_id)}) from e

        if reminder is None:
            self.logger.info("Reminder no longer exists", extra={"operation": "reminders.dispatch"})
            return self._finish(DispatchOutcome.MISSING)

        if reminder.status is ReminderStatus.DISMISSED:
            self.logger.info("Reminder already dismissed, skipping", extra={"operation": "reminders.dispatch"})
            return self._finish(DispatchOutcome.DISMISSED)

        if reminder.status is ReminderStatus.SENT:
            # A new cycle always resets the status to SCHEDULED
            self.logger.info(
                "Reminder already sent for this trigger, skipping",
                extra={"operation": "reminders.dispatch"},
            )
            return self._finish(DispatchOutcome.ALREADY_SENT)

        if reminder.trigger_at > now:
            # The reminder was moved after this job was claimed
            self.logger.info(
                "Fire is older than the reminder's trigger time, rescheduling",
                extra={"trigger_at": reminder.trigger_at.isoformat(), "operation": "reminders.dispatch"},
            )
            await self.scheduler.schedule(reminder.id, reminder.task_id, reminder.trigger_at)
            return self._finish(DispatchOutcome.STALE)

        if task is None or task.completed:
            await self._set_status(reminder.id, ReminderStatus.DISMISSED)
            self.logger.info(
                "Task is completed or gone, reminder dismissed",
                extra={"task_id": str(reminder.task_id), "operation": "reminders.dispatch"},
            )
            return self._finish(DispatchOutcome.TASK_COMPLETED)

        outcome = DispatchOutcome.SENT
        if not subscriptions:
            self.logger.warning(
                "No active subscriptions for reminder owner",
                extra={"user_id": reminder.user_id, "operation": "reminders.dispatch"},
            )
            outcome = DispatchOutcome.NO_SUBSCRIPTIONS
        else:
            results = await self.fanout.deliver_all(subscriptions, self.build_message(reminder, task))
            self._lazy.debug(lambda: f"reminders.dispatch: {[(r.channel, r.status.value) for r in results]}")

        await self._set_status(reminder.id, ReminderStatus.SENT, fired_at=now)
        return self._finish(outcome)

    def build_message(self, reminder: Reminder, task: Task) -> NotificationMessage:
        return NotificationMessage(
            title=self.title,
            body=format_body(task, self.now().date()),
            reminder_id=reminder.id,
            open_url=self.open_url,
            actions=self.links.actions(reminder.id),
        )

    async def _load(
        self, reminder_id: UUID
    ) -> tuple[Reminder | None, Task | None, list[NotificationSubscription]]:
        async with self.database.session() as session:
            reminder = await self.reminders.get(session, reminder_id)
            if reminder is None or reminder.status is not ReminderStatus.SCHEDULED:
                return reminder, None, []
            task = await self.tasks.get(session, reminder.task_id)
            if task is None or task.completed:
                return reminder, task, []
            subscriptions = list(await self.subscriptions.list_active(session, reminder.user_id))
            return reminder, task, subscriptions

    async def _set_status(
        self,
        reminder_id: UUID,
        status: ReminderStatus,
        *,
        fired_at: datetime | None = None,
    ) -> bool:
        """Move a non-dismissed reminder to ``status``.

        With ``fired_at``, only a reminder whose trigger time has passed is
        updated, so a snooze applied during delivery keeps its new cycle.
        """
        stmt = (
            update(Reminder)
            .where(Reminder.id == reminder_id, Reminder.status != ReminderStatus.DISMISSED)
            .values(status=status, updated_at=self.now())
            .execution_options(synchronize_session=False)
        )
        if fired_at is not None:
            stmt = stmt.where(Reminder.trigger_at <= fired_at)
        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise TransientStoreError(
                "Could not update reminder status",
                extra={"reminder_id": str(reminder_id), "status": status.value},
            ) from e

        changed = result.rowcount == 1
        self._lazy.debug(lambda: f"reminders.set_status: {reminder_id} -> {status.value} changed={changed}")
        return changed

    def _finish(self, outcome: DispatchOutcome) -> DispatchOutcome:
        reminder_fired_total.labels(outcome=outcome.value).inc()
        self.logger.info(
            "Reminder fire handled",
            extra={"outcome": outcome.value, "operation": "reminders.dispatch"},
        )
        return outcome
