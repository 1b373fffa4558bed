"""Scheduled job inspection commands."""

import json
import sys
from uuid import UUID

import click

from reminder_service.cli.utils import coro, error, header, info, success, warning
from reminder_service.core.settings import get_db_settings, get_queue_settings
from reminder_service.infra.database import create_database
from reminder_service.infra.tasks import JobStatus, JobStore


def _store():
    settings = get_queue_settings()
    database = create_database(get_db_settings())
    return database, JobStore(database, retry_policy=settings.retry_policy(), lease_seconds=settings.lease_seconds)


@click.group(name="jobs")
def jobs() -> None:
    """Scheduled job store commands."""


@jobs.command(name="list")
@click.option("--queue", "queue_name", default=None, help="Only jobs of this queue")
@click.option(
    "--status",
    "statuses",
    multiple=True,
    type=click.Choice([status.value for status in JobStatus]),
    help="Only jobs in this status (repeatable)",
)
@click.option("--limit", default=50, show_default=True, type=int)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@coro
async def list_jobs(queue_name: str | None, statuses: tuple[str, ...], limit: int, output_format: str) -> None:
    """List scheduled jobs ordered by run time."""
    database, store = _store()
    try:
        rows = await store.list_jobs(
            queue_name,
            statuses=[JobStatus(value) for value in statuses] or None,
            limit=limit,
        )
    finally:
        await database.dispose()

    if output_format == "json":
        click.echo(
            json.dumps(
                [
                    {
                        "id": str(job.id),
                        "queue": job.queue_name,
                        "status": job.status.value,
                        "run_after": job.run_after.isoformat(),
                        "dedup_key": job.dedup_key,
                        "attempts": job.attempts,
                        "last_error": job.last_error,
                    }
                    for job in rows
                ],
                indent=2,
            )
        )
        return

    header("Scheduled Jobs")
    if not rows:
        info("No jobs found")
        return

    click.echo(f"{'ID':<38} {'Queue':<12} {'Status':<10} {'Run After':<27} {'Attempts':<8} Dedup Key")
    click.echo("-" * 120)
    for job in rows:
        click.echo(
            f"{job.id!s:<38} {job.queue_name:<12} {job.status.value:<10} "
            f"{job.run_after.isoformat():<27} {job.attempts:<8} {job.dedup_key or '-'}"
        )
    click.echo()
    success(f"Total: {len(rows)} jobs")


@jobs.command(name="cancel")
@click.argument("job_id", type=click.UUID)
@coro
async def cancel_job(job_id: UUID) -> None:
    """Cancel a pending or retrying job."""
    database, store = _store()
    try:
        job = await store.get(job_id)
        if job is None:
            error(f"Job {job_id} not found")
            sys.exit(1)
        cancelled = await store.cancel(job.queue_name, job.id)
    finally:
        await database.dispose()

    if cancelled:
        success(f"Job {job_id} cancelled")
    else:
        warning(f"Job {job_id} is {job.status.value}; nothing to cancel")
