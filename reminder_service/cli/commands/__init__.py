"""CLI command modules."""

from reminder_service.cli.commands import database, jobs, reminders, server, worker

__all__ = ["database", "jobs", "reminders", "server", "worker"]
