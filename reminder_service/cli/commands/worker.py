"""Standalone job worker command."""

import asyncio
import signal
import sys

import click

from reminder_service.app.container import build_container
from reminder_service.cli.utils import coro, error, info, success
from reminder_service.core.exceptions import ConfigurationError
from reminder_service.core.settings import get_settings
from reminder_service.infra.database import create_database
from reminder_service.infra.logging import setup_logging


@click.command(name="worker")
@click.option("--poll-interval", type=float, default=None, help="Seconds between polls (default: QUEUE_POLL_INTERVAL_SECONDS)")
@coro
async def worker(poll_interval: float | None) -> None:
    """Poll the job store and deliver due reminders until interrupted."""
    settings = get_settings()
    setup_logging(settings.logging, force=True)

    database = create_database(settings.db, debug=settings.app.debug)
    try:
        container = build_container(settings, database)
    except ConfigurationError as e:
        await database.dispose()
        error(str(e))
        sys.exit(1)

    if poll_interval is not None:
        container.worker.poll_interval = poll_interval

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    container.worker.start()
    info(f"Worker {container.worker.worker_id} polling queues: {', '.join(container.worker.queues)}")
    try:
        await stop.wait()
    finally:
        await container.aclose()
        await database.dispose()
    success("Worker stopped")
