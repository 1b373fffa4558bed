"""Reminder operator commands."""

import sys
from uuid import UUID

import click

from reminder_service.cli.utils import coro, error, info, success
from reminder_service.core.exceptions import ConfigurationError
from reminder_service.core.settings import (
    get_app_settings,
    get_db_settings,
    get_notification_settings,
    get_queue_settings,
)
from reminder_service.features.reminders.links import CallbackLinks
from reminder_service.features.reminders.scheduler import ReminderScheduler
from reminder_service.features.reminders.tokens import TokenAuthority
from reminder_service.infra.database import create_database
from reminder_service.infra.tasks import JobStore


@click.group(name="reminders")
def reminders() -> None:
    """Reminder commands."""


@reminders.command(name="sign")
@click.argument("reminder_id")
@click.option("--links", is_flag=True, help="Also print the snooze and done callback URLs")
def sign(reminder_id: str, links: bool) -> None:
    """Print the callback token for REMINDER_ID."""
    notify = get_notification_settings()
    try:
        authority = TokenAuthority(notify.secret)
    except ConfigurationError as e:
        error(str(e))
        sys.exit(1)

    click.echo(authority.sign(reminder_id))
    if links:
        builder = CallbackLinks(get_app_settings().public_base_url, authority, notify.snooze_options)
        for action in builder.actions(reminder_id):
            click.echo(f"{action.label}: {action.url}")


@reminders.command(name="cancel-task")
@click.argument("task_id", type=click.UUID)
@coro
async def cancel_task(task_id: UUID) -> None:
    """Cancel and dismiss every scheduled reminder of TASK_ID.

    Run this when a task is completed outside the notification callback.
    """
    queue = get_queue_settings()
    database = create_database(get_db_settings())
    store = JobStore(database, retry_policy=queue.retry_policy(), lease_seconds=queue.lease_seconds)
    try:
        dismissed = await ReminderScheduler(database, store).cancel_for_task(task_id)
    finally:
        await database.dispose()

    if dismissed:
        success(f"Dismissed {dismissed} reminder(s) for task {task_id}")
    else:
        info(f"No scheduled reminders for task {task_id}")
