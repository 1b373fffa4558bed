"""Tests for the reminder scheduler."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy import update

from reminder_service.core.exceptions import NotFoundException, ValidationError
from reminder_service.features.reminders.models import Reminder, ReminderStatus, reminder_dedup_key
from reminder_service.features.reminders.scheduler import REMINDER_QUEUE, ReminderScheduler, validate_minutes
from reminder_service.features.tasks.models import Task
from reminder_service.infra.tasks.jobs import JobStatus, JobStore


async def _reminder(database, reminder_id) -> Reminder:
    async with database.session() as session:
        return await session.get(Reminder, reminder_id)


async def _task(database, task_id) -> Task:
    async with database.session() as session:
        return await session.get(Task, task_id)


async def _unresolved_jobs(store: JobStore, reminder_id):
    return await store.list_jobs(
        REMINDER_QUEUE,
        dedup_key=reminder_dedup_key(reminder_id),
        statuses=JobStatus.unresolved_states(),
    )


async def _set_status(database, reminder_id, status: ReminderStatus) -> None:
    async with database.session() as session:
        await session.execute(update(Reminder).where(Reminder.id == reminder_id).values(status=status))
        await session.commit()


class TestCreateReminder:
    async def test_creates_scheduled_reminder_with_job(
        self, scheduler: ReminderScheduler, store: JobStore, database, make_task, clock
    ) -> None:
        task = await make_task()
        trigger_at = clock() + timedelta(hours=2)

        reminder = await scheduler.create_reminder(task.id, trigger_at)

        stored = await _reminder(database, reminder.id)
        assert stored.status is ReminderStatus.SCHEDULED
        assert stored.trigger_at == trigger_at
        assert stored.user_id == task.user_id
        jobs = await _unresolved_jobs(store, reminder.id)
        assert [job.id for job in jobs] == [stored.job_id]
        assert jobs[0].run_after == trigger_at
        assert jobs[0].payload == {"reminder_id": str(reminder.id), "task_id": str(task.id)}

    async def test_unknown_task(self, scheduler: ReminderScheduler, clock) -> None:
        with pytest.raises(NotFoundException, match="Task not found"):
            await scheduler.create_reminder(uuid4(), clock())

    async def test_task_of_another_user(self, scheduler: ReminderScheduler, make_task, clock) -> None:
        task = await make_task(user_id="someone-else")

        with pytest.raises(NotFoundException):
            await scheduler.create_reminder(task.id, clock(), user_id="user-1")

    async def test_completed_task(self, scheduler: ReminderScheduler, store: JobStore, make_task, clock) -> None:
        task = await make_task(completed=True)

        with pytest.raises(ValidationError, match="completed task"):
            await scheduler.create_reminder(task.id, clock())
        assert await store.list_jobs(REMINDER_QUEUE) == []


class TestReschedule:
    async def test_snooze_moves_trigger_and_job(
        self, scheduler: ReminderScheduler, store: JobStore, database, make_task, clock
    ) -> None:
        task = await make_task()
        reminder = await scheduler.create_reminder(task.id, clock())
        await _set_status(database, reminder.id, ReminderStatus.SENT)

        await scheduler.reschedule(reminder.id, 15)

        stored = await _reminder(database, reminder.id)
        expected = clock() + timedelta(minutes=15)
        assert stored.status is ReminderStatus.SCHEDULED
        assert stored.trigger_at == expected
        assert stored.snoozed_until == expected
        jobs = await _unresolved_jobs(store, reminder.id)
        assert len(jobs) == 1
        assert jobs[0].id == stored.job_id
        assert jobs[0].run_after == expected

    async def test_snooze_reactivates_dismissed_reminder(
        self, scheduler: ReminderScheduler, database, make_task, clock
    ) -> None:
        task = await make_task()
        reminder = await scheduler.create_reminder(task.id, clock())
        await _set_status(database, reminder.id, ReminderStatus.DISMISSED)

        await scheduler.reschedule(reminder.id, 60)

        assert (await _reminder(database, reminder.id)).status is ReminderStatus.SCHEDULED

    async def test_snooze_after_fire_replaces_completed_job(
        self, scheduler: ReminderScheduler, store: JobStore, database, make_task, clock
    ) -> None:
        task = await make_task()
        reminder = await scheduler.create_reminder(task.id, clock())
        [fired] = await store.claim_due(REMINDER_QUEUE, "w1")
        await store.complete(fired.id, "w1")

        await scheduler.reschedule(reminder.id, 10)

        stored = await _reminder(database, reminder.id)
        assert stored.job_id != fired.id
        assert (await store.get(fired.id)).status is JobStatus.COMPLETED
        assert [job.id for job in await _unresolved_jobs(store, reminder.id)] == [stored.job_id]

    async def test_snooze_during_fire_adds_successor_job(
        self, scheduler: ReminderScheduler, store: JobStore, database, make_task, clock
    ) -> None:
        """The running job is left alone; its successor is the reminder's job."""
        task = await make_task()
        reminder = await scheduler.create_reminder(task.id, clock())
        [running] = await store.claim_due(REMINDER_QUEUE, "w1")

        await scheduler.reschedule(reminder.id, 10)

        stored = await _reminder(database, reminder.id)
        assert stored.job_id != running.id
        assert (await store.get(running.id)).status is JobStatus.RUNNING

    async def test_concurrent_snoozes_leave_one_unresolved_job(
        self, scheduler: ReminderScheduler, store: JobStore, database, make_task, clock
    ) -> None:
        task = await make_task()
        reminder = await scheduler.create_reminder(task.id, clock() + timedelta(minutes=1))

        await asyncio.gather(
            scheduler.reschedule(reminder.id, 10),
            scheduler.reschedule(reminder.id, 60),
            scheduler.reschedule(reminder.id, 1440),
        )

        jobs = await _unresolved_jobs(store, reminder.id)
        stored = await _reminder(database, reminder.id)
        assert len(jobs) == 1
        assert stored.job_id == jobs[0].id
        assert stored.trigger_at in {clock() + timedelta(minutes=m) for m in (10, 60, 1440)}

    @pytest.mark.parametrize("minutes", [0, -5, True, "15", 1.5, None])
    async def test_rejects_invalid_minutes(self, scheduler: ReminderScheduler, minutes: object) -> None:
        with pytest.raises(ValidationError, match="Invalid mins parameter"):
            await scheduler.reschedule(uuid4(), minutes)

    async def test_unknown_reminder(self, scheduler: ReminderScheduler) -> None:
        with pytest.raises(NotFoundException, match="Reminder not found"):
            await scheduler.reschedule(uuid4(), 10)


class TestCancelAndDismiss:
    async def test_cancel_cancels_job_but_keeps_status(
        self, scheduler: ReminderScheduler, store: JobStore, database, make_task, clock
    ) -> None:
        task = await make_task()
        reminder = await scheduler.create_reminder(task.id, clock() + timedelta(hours=1))

        assert await scheduler.cancel(reminder.id) is True
        assert await scheduler.cancel(reminder.id) is False

        stored = await _reminder(database, reminder.id)
        assert stored.status is ReminderStatus.SCHEDULED
        assert (await store.get(stored.job_id)).status is JobStatus.CANCELLED

    async def test_cancel_unknown_reminder_is_false(self, scheduler: ReminderScheduler) -> None:
        assert await scheduler.cancel(uuid4()) is False

    async def test_dismiss_cancels_job_and_completes_task(
        self, scheduler: ReminderScheduler, store: JobStore, database, make_task, clock
    ) -> None:
        task = await make_task()
        reminder = await scheduler.create_reminder(task.id, clock() + timedelta(hours=1))

        await scheduler.dismiss(reminder.id)

        stored = await _reminder(database, reminder.id)
        assert stored.status is ReminderStatus.DISMISSED
        assert (await store.get(stored.job_id)).status is JobStatus.CANCELLED
        assert (await _task(database, task.id)).completed is True

    async def test_dismiss_is_idempotent(self, scheduler: ReminderScheduler, database, make_task, clock) -> None:
        task = await make_task()
        reminder = await scheduler.create_reminder(task.id, clock())

        await scheduler.dismiss(reminder.id)
        await scheduler.dismiss(reminder.id)

        assert (await _reminder(database, reminder.id)).status is ReminderStatus.DISMISSED
        assert (await _task(database, task.id)).completed is True

    async def test_dismiss_unknown_reminder(self, scheduler: ReminderScheduler) -> None:
        with pytest.raises(NotFoundException):
            await scheduler.dismiss(uuid4())

    async def test_cancel_for_task_dismisses_scheduled_reminders(
        self, scheduler: ReminderScheduler, store: JobStore, database, make_task, clock
    ) -> None:
        task = await make_task()
        first = await scheduler.create_reminder(task.id, clock() + timedelta(hours=1))
        second = await scheduler.create_reminder(task.id, clock() + timedelta(hours=2))
        sent = await scheduler.create_reminder(task.id, clock() + timedelta(hours=3))
        await _set_status(database, sent.id, ReminderStatus.SENT)

        assert await scheduler.cancel_for_task(task.id) == 2

        for reminder in (first, second):
            stored = await _reminder(database, reminder.id)
            assert stored.status is ReminderStatus.DISMISSED
            assert (await store.get(stored.job_id)).status is JobStatus.CANCELLED
        assert (await _reminder(database, sent.id)).status is ReminderStatus.SENT
        assert await scheduler.cancel_for_task(task.id) == 0


@pytest.mark.parametrize("minutes", [1, 15, 1440])
def test_validate_minutes_accepts_positive_ints(minutes: int) -> None:
    assert validate_minutes(minutes) == minutes
