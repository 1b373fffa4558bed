"""Database management commands.

Example:
    # Create missing tables directly from the models
    reminder-service db init

    # Apply Alembic migrations
    reminder-service db upgrade

    # Check connectivity
    reminder-service db check
"""

import sys
from pathlib import Path

import click

from reminder_service.cli.utils import coro, error, info, success
from reminder_service.core.settings import get_db_settings
from reminder_service.infra.database import create_database

ALEMBIC_INI = Path(__file__).resolve().parents[3] / "alembic.ini"


@click.group(name="db")
def db() -> None:
    """Database management commands."""


@db.command()
@coro
async def init() -> None:
    """Create all tables that don't exist yet."""
    database = create_database(get_db_settings())
    info(f"Using {database.engine.dialect.name} database")
    try:
        await database.create_all()
    except Exception as e:
        error(f"Failed to create tables: {e}")
        sys.exit(1)
    finally:
        await database.dispose()
    success("Tables created")


@db.command()
@coro
async def check() -> None:
    """Check database connectivity."""
    database = create_database(get_db_settings())
    try:
        ok = await database.check()
    finally:
        await database.dispose()
    if not ok:
        error("Database is unreachable")
        sys.exit(1)
    success(f"Database connected ({database.engine.dialect.name})")


@db.command()
@click.option("--revision", default="head", show_default=True, help="Target revision")
def upgrade(revision: str) -> None:
    """Apply Alembic migrations."""
    from alembic import command
    from alembic.config import Config

    if not ALEMBIC_INI.exists():
        error(f"alembic.ini not found at {ALEMBIC_INI}")
        sys.exit(1)

    command.upgrade(Config(str(ALEMBIC_INI)), revision)
    success(f"Database upgraded to {revision}")
