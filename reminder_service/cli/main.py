"""Main CLI entry point for reminder-service management commands."""

import click

from reminder_service.cli.commands import database, jobs, reminders, server, worker


@click.group()
@click.version_option(version="0.1.0", prog_name="reminder-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Reminder Service CLI.

    \b
    Commands:
      serve      Run the API server
      worker     Run the job worker
      db         Table creation, migrations and connectivity
      jobs       Inspect and cancel scheduled jobs
      reminders  Callback token tools
    """
    ctx.ensure_object(dict)


cli.add_command(server.serve)
cli.add_command(worker.worker)
cli.add_command(database.db)
cli.add_command(jobs.jobs)
cli.add_command(reminders.reminders)


def main() -> None:
    """Entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
