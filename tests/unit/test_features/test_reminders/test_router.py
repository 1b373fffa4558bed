"""End-to-end tests for the reminder HTTP endpoints."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient

from reminder_service.features.reminders.models import Reminder, ReminderStatus, reminder_dedup_key
from reminder_service.features.reminders.scheduler import INVALID_MINUTES, REMINDER_QUEUE
from reminder_service.features.tasks.models import Task
from reminder_service.infra.tasks.jobs import JobStatus


async def _reminder(database, reminder_id) -> Reminder:
    async with database.session() as session:
        return await session.get(Reminder, reminder_id)


async def _task(database, task_id) -> Task:
    async with database.session() as session:
        return await session.get(Task, task_id)


@pytest.fixture
async def reminder(app, make_task, clock) -> Reminder:
    task = await make_task()
    return await app.state.reminder_scheduler.create_reminder(task.id, clock())


@pytest.fixture
def token(app, reminder: Reminder) -> str:
    return app.state.token_authority.sign(reminder.id)


class TestSnoozeCallback:
    @pytest.mark.parametrize("method", ["GET", "POST"])
    async def test_snooze_moves_reminder(
        self, client: AsyncClient, app, reminder: Reminder, token: str, database, clock, method: str
    ) -> None:
        response = await client.request(
            method, "/api/snooze", params={"id": str(reminder.id), "mins": "15", "token": token}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "action": "snoozed", "minutes": 15}
        stored = await _reminder(database, reminder.id)
        assert stored.status is ReminderStatus.SCHEDULED
        assert stored.trigger_at == clock() + timedelta(minutes=15)
        jobs = await app.state.services.store.list_jobs(
            REMINDER_QUEUE,
            dedup_key=reminder_dedup_key(reminder.id),
            statuses=JobStatus.unresolved_states(),
        )
        assert [job.run_after for job in jobs] == [clock() + timedelta(minutes=15)]

    async def test_wrong_token_is_forbidden_and_changes_nothing(
        self, client: AsyncClient, reminder: Reminder, database
    ) -> None:
        response = await client.get(
            "/api/snooze", params={"id": str(reminder.id), "mins": "15", "token": "0" * 64}
        )

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Invalid token"}
        assert (await _reminder(database, reminder.id)).trigger_at == reminder.trigger_at

    async def test_token_of_another_reminder_is_forbidden(self, client: AsyncClient, app, reminder: Reminder) -> None:
        other_token = app.state.token_authority.sign(uuid4())

        response = await client.get(
            "/api/snooze", params={"id": str(reminder.id), "done": "true", "token": other_token}
        )

        assert response.status_code == 403

    async def test_done_dismisses_and_completes_task(
        self, client: AsyncClient, reminder: Reminder, token: str, database
    ) -> None:
        response = await client.post("/api/snooze", params={"id": str(reminder.id), "done": "true", "token": token})

        assert response.status_code == 200
        assert response.json() == {"success": True, "action": "done"}
        assert (await _reminder(database, reminder.id)).status is ReminderStatus.DISMISSED
        assert (await _task(database, reminder.task_id)).completed is True

    async def test_done_twice_succeeds(self, client: AsyncClient, reminder: Reminder, token: str) -> None:
        params = {"id": str(reminder.id), "done": "true", "token": token}

        assert (await client.get("/api/snooze", params=params)).status_code == 200
        assert (await client.get("/api/snooze", params=params)).status_code == 200

    async def test_done_wins_over_mins(self, client: AsyncClient, reminder: Reminder, token: str, database) -> None:
        response = await client.get(
            "/api/snooze", params={"id": str(reminder.id), "mins": "10", "done": "true", "token": token}
        )

        assert response.json()["action"] == "done"
        assert (await _reminder(database, reminder.id)).status is ReminderStatus.DISMISSED

    @pytest.mark.parametrize(
        ("params", "error"),
        [
            ({"mins": "15", "token": "t"}, "Missing required parameter: id"),
            ({"id": "x", "mins": "15"}, "Missing required parameter: token"),
        ],
    )
    async def test_missing_required_parameter(self, client: AsyncClient, params: dict, error: str) -> None:
        response = await client.get("/api/snooze", params=params)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": error}

    async def test_missing_action(self, client: AsyncClient, reminder: Reminder, token: str) -> None:
        response = await client.get("/api/snooze", params={"id": str(reminder.id), "token": token})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing action parameter: mins or done"

    @pytest.mark.parametrize("mins", ["abc", "0", "-5", "1.5"])
    async def test_invalid_minutes(
        self, client: AsyncClient, reminder: Reminder, token: str, database, mins: str
    ) -> None:
        response = await client.get("/api/snooze", params={"id": str(reminder.id), "mins": mins, "token": token})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": INVALID_MINUTES}
        assert (await _reminder(database, reminder.id)).status is ReminderStatus.SCHEDULED

    async def test_unknown_reminder_with_valid_token(self, client: AsyncClient, app) -> None:
        reminder_id = uuid4()
        token = app.state.token_authority.sign(reminder_id)

        response = await client.get("/api/snooze", params={"id": str(reminder_id), "mins": "10", "token": token})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Reminder not found"}

    async def test_non_uuid_id_with_valid_token(self, client: AsyncClient, app) -> None:
        token = app.state.token_authority.sign("not-a-uuid")

        response = await client.get("/api/snooze", params={"id": "not-a-uuid", "mins": "10", "token": token})

        assert response.status_code == 404

    async def test_snooze_after_done_reactivates(
        self, client: AsyncClient, reminder: Reminder, token: str, database
    ) -> None:
        await client.get("/api/snooze", params={"id": str(reminder.id), "done": "true", "token": token})

        response = await client.get("/api/snooze", params={"id": str(reminder.id), "mins": "60", "token": token})

        assert response.status_code == 200
        assert (await _reminder(database, reminder.id)).status is ReminderStatus.SCHEDULED


class TestCreateReminder:
    async def test_creates_reminder(self, client: AsyncClient, make_task, clock) -> None:
        task = await make_task()
        trigger_at = clock() + timedelta(hours=1)

        response = await client.post(
            "/api/reminders",
            json={"task_id": str(task.id), "trigger_at": trigger_at.isoformat()},
            headers={"X-User-Id": "user-1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["task_id"] == str(task.id)
        assert body["status"] == "SCHEDULED"
        assert body["job_id"] is not None

    async def test_requires_user(self, client: AsyncClient, make_task, clock) -> None:
        task = await make_task()

        response = await client.post(
            "/api/reminders", json={"task_id": str(task.id), "trigger_at": clock().isoformat()}
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Authentication required"}

    async def test_other_users_task_is_not_found(self, client: AsyncClient, make_task, clock) -> None:
        task = await make_task(user_id="user-2")

        response = await client.post(
            "/api/reminders",
            json={"task_id": str(task.id), "trigger_at": clock().isoformat()},
            headers={"X-User-Id": "user-1"},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Task not found"

    async def test_completed_task_is_rejected(self, client: AsyncClient, make_task, clock) -> None:
        task = await make_task(completed=True)

        response = await client.post(
            "/api/reminders",
            json={"task_id": str(task.id), "trigger_at": clock().isoformat()},
            headers={"X-User-Id": "user-1"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Cannot create reminder for completed task"

    async def test_invalid_body(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/reminders", json={"task_id": "nope"}, headers={"X-User-Id": "user-1"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"].startswith("Invalid request: ")
