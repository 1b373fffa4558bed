"""Pytest configuration and shared fixtures.

Organization:
    - Clock Fixtures: a controllable time source shared by the job store
    - Database Fixtures: a throwaway SQLite file per test and row factories
    - Reminder Fixtures: job store, scheduler, channels and dispatcher
    - Application Fixtures: FastAPI app and HTTP client

Everything runs against ``sqlite+aiosqlite`` in ``tmp_path``; no external
infrastructure is needed.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient

from reminder_service.core.settings import Settings
from reminder_service.core.settings.app import AppSettings
from reminder_service.core.settings.logs import LoggingSettings
from reminder_service.core.settings.notifications import NotificationSettings
from reminder_service.core.settings.postgres import PostgresSettings
from reminder_service.core.settings.queue import QueueSettings
from reminder_service.features.notifications.channels import (
    DeliveryResult,
    DeliveryStatus,
    NotificationFanout,
)
from reminder_service.features.notifications.models import NotificationSubscription, SubscriptionType
from reminder_service.features.reminders.dispatcher import ReminderDispatcher
from reminder_service.features.reminders.links import CallbackLinks
from reminder_service.features.reminders.scheduler import ReminderScheduler
from reminder_service.features.reminders.tokens import TokenAuthority
from reminder_service.features.tasks.models import Task
from reminder_service.infra.database import Database
from reminder_service.infra.tasks.jobs import JobStore, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from pathlib import Path

    from fastapi import FastAPI

    from reminder_service.features.notifications.channels import NotificationMessage

TEST_SECRET = "test-secret"
BASE_URL = "https://flow.test"
START = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


# ============================================================================
# Clock Fixtures
# ============================================================================


class FakeClock:
    """Callable time source that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current += timedelta(**delta)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at 2026-03-02 09:00 UTC (a Monday)."""
    return FakeClock(START)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database]:
    """Fresh SQLite database file with all tables created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def make_task(database: Database) -> Callable[..., Awaitable[Task]]:
    """Factory inserting a task row.

    Example:
        task = await make_task(title="Call dentist", due_date=date(2026, 3, 3))
    """

    async def _make(
        *,
        user_id: str = "user-1",
        title: str = "Write report",
        completed: bool = False,
        due_date: date | None = None,
        project_name: str | None = None,
    ) -> Task:
        task = Task(
            user_id=user_id,
            title=title,
            completed=completed,
            due_date=due_date,
            project_name=project_name,
        )
        async with database.session() as session:
            session.add(task)
            await session.commit()
        return task

    return _make


@pytest.fixture
def make_subscription(database: Database) -> Callable[..., Awaitable[NotificationSubscription]]:
    """Factory inserting an active subscription (ntfy by default)."""

    async def _make(
        *,
        user_id: str = "user-1",
        type: SubscriptionType = SubscriptionType.NTFY,
        ntfy_topic: str | None = "flow-user-1",
        endpoint: str | None = None,
        active: bool = True,
    ) -> NotificationSubscription:
        subscription = NotificationSubscription(
            user_id=user_id,
            type=type,
            active=active,
            ntfy_topic=ntfy_topic if type is SubscriptionType.NTFY else None,
            endpoint=endpoint,
            p256dh="p256dh-key" if endpoint else None,
            auth="auth-secret" if endpoint else None,
        )
        async with database.session() as session:
            session.add(subscription)
            await session.commit()
        return subscription

    return _make


# ============================================================================
# Reminder Fixtures
# ============================================================================


@pytest.fixture
def retry_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, initial_delay=5.0, max_delay=60.0, jitter=False)


@pytest.fixture
def store(database: Database, clock: FakeClock, retry_policy: RetryPolicy) -> JobStore:
    return JobStore(database, retry_policy=retry_policy, lease_seconds=60, clock=clock)


@pytest.fixture
def authority() -> TokenAuthority:
    return TokenAuthority(TEST_SECRET)


@pytest.fixture
def links(authority: TokenAuthority) -> CallbackLinks:
    return CallbackLinks(BASE_URL, authority)


@pytest.fixture
def scheduler(database: Database, store: JobStore) -> ReminderScheduler:
    return ReminderScheduler(database, store)


class RecordingChannel:
    """In-memory channel recording every delivery.

    Set ``error`` to make deliveries raise, or ``delay`` to make them slow.
    """

    def __init__(self, channel_name: str) -> None:
        self.channel_name = channel_name
        self.deliveries: list[tuple[UUID, NotificationMessage]] = []
        self.error: Exception | None = None
        self.delay: float = 0.0

    async def deliver(self, subscription: NotificationSubscription, message: NotificationMessage) -> DeliveryResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.deliveries.append((subscription.id, message))
        return DeliveryResult(
            channel=self.channel_name,
            status=DeliveryStatus.DELIVERED,
            subscription_id=subscription.id,
        )


@pytest.fixture
def ntfy_channel() -> RecordingChannel:
    return RecordingChannel("ntfy")


@pytest.fixture
def web_push_channel() -> RecordingChannel:
    return RecordingChannel("web_push")


@pytest.fixture
def fanout(ntfy_channel: RecordingChannel, web_push_channel: RecordingChannel) -> NotificationFanout:
    return NotificationFanout(
        {SubscriptionType.NTFY: ntfy_channel, SubscriptionType.WEB_PUSH: web_push_channel},
        timeout=0.5,
    )


@pytest.fixture
def dispatcher(
    database: Database,
    scheduler: ReminderScheduler,
    fanout: NotificationFanout,
    links: CallbackLinks,
) -> ReminderDispatcher:
    return ReminderDispatcher(database, scheduler, fanout, links)


# ============================================================================
# Application Fixtures
# ============================================================================


def build_settings(**notification_overrides: Any) -> Settings:
    """Settings for an in-process app: no worker, no console logs."""
    return Settings(
        app=AppSettings(environment="test", public_base_url=BASE_URL, run_worker=False),
        db=PostgresSettings(enabled=False, create_tables=False),
        logging=LoggingSettings(console_enabled=False, capture_warnings=False),
        queue=QueueSettings(),
        notifications=NotificationSettings(secret=TEST_SECRET, **notification_overrides),
    )


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
async def app(settings: Settings, database: Database, clock: FakeClock) -> AsyncGenerator[FastAPI]:
    """Application with its lifespan running against the test database."""
    from reminder_service.app.main import create_app

    application = create_app(settings, database=database, clock=clock)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client bound to the running app.

    Example:
        response = await client.get("/api/snooze", params={...})
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
