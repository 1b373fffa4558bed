"""Explicit wiring of the reminder pipeline.

One ``ServiceContainer`` per process holds the job store, scheduler,
dispatcher and worker built from settings. The API lifespan and the CLI
worker both build it here, so neither relies on module-level singletons.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from reminder_service.core.database import utcnow
from reminder_service.features.notifications.channels import NotificationFanout, NtfyChannel, WebPushChannel
from reminder_service.features.notifications.models import SubscriptionType
from reminder_service.features.notifications.service import SubscriptionDeactivator
from reminder_service.features.reminders.dispatcher import ReminderDispatcher
from reminder_service.features.reminders.links import CallbackLinks
from reminder_service.features.reminders.scheduler import REMINDER_QUEUE, ReminderScheduler
from reminder_service.features.reminders.tokens import TokenAuthority
from reminder_service.infra.tasks import JobStore, JobWorker

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from reminder_service.core.settings import Settings
    from reminder_service.infra.database import Database

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContainer:
    database: Database
    store: JobStore
    token_authority: TokenAuthority
    scheduler: ReminderScheduler
    dispatcher: ReminderDispatcher
    worker: JobWorker
    http_client: httpx.AsyncClient

    async def aclose(self) -> None:
        """Stop the worker and close the outbound HTTP client."""
        await self.worker.stop()
        await self.http_client.aclose()


def build_container(
    settings: Settings,
    database: Database,
    *,
    clock: Callable[[], datetime] = utcnow,
    http_client: httpx.AsyncClient | None = None,
) -> ServiceContainer:
    """Build every reminder component from settings.

    Raises:
        ConfigurationError: No callback token secret is configured.
    """
    notify = settings.notifications
    queue = settings.queue

    token_authority = TokenAuthority(notify.secret)
    store = JobStore(
        database,
        retry_policy=queue.retry_policy(),
        lease_seconds=queue.lease_seconds,
        clock=clock,
    )
    scheduler = ReminderScheduler(database, store)

    http_client = http_client or httpx.AsyncClient(timeout=notify.delivery_timeout_seconds)
    fanout = NotificationFanout(
        {
            SubscriptionType.NTFY: NtfyChannel(
                notify.ntfy_base_url,
                timeout=notify.delivery_timeout_seconds,
                client=http_client,
            ),
            SubscriptionType.WEB_PUSH: WebPushChannel(
                vapid_public_key=notify.vapid_public_key,
                vapid_private_key=notify.vapid_private_key,
                vapid_subject=notify.vapid_subject,
                timeout=notify.delivery_timeout_seconds,
                on_expired=SubscriptionDeactivator(database),
            ),
        },
        timeout=notify.delivery_timeout_seconds,
    )
    if not notify.web_push_configured:
        logger.warning("VAPID keys not configured; Web Push deliveries will be skipped")

    dispatcher = ReminderDispatcher(
        database,
        scheduler,
        fanout,
        CallbackLinks(settings.app.public_base_url, token_authority, notify.snooze_options),
        title=notify.notification_title,
        open_url=notify.open_url_path,
    )

    worker = JobWorker(
        store,
        poll_interval=queue.poll_interval_seconds,
        batch_size=queue.batch_size,
    )
    worker.register(REMINDER_QUEUE, dispatcher.handle)

    return ServiceContainer(
        database=database,
        store=store,
        token_authority=token_authority,
        scheduler=scheduler,
        dispatcher=dispatcher,
        worker=worker,
        http_client=http_client,
    )
