"""Database engine and session management.

The engine is owned by a ``Database`` object built from ``PostgresSettings``
and passed explicitly to whoever needs it (API lifespan, worker, CLI), so tests
can point everything at a throwaway SQLite file.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reminder_service.core.database import Base

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from reminder_service.core.settings.postgres import PostgresSettings

logger = logging.getLogger(__name__)


def import_models() -> None:
    """Register every mapped model on ``Base.metadata``."""
    import reminder_service.features.notifications.models
    import reminder_service.features.reminders.models
    import reminder_service.features.tasks.models
    import reminder_service.infra.tasks.jobs.models  # noqa: F401


class Database:
    """Async engine plus session factory.

    Example:
        database = Database("sqlite+aiosqlite:///./local.db")
        async with database.session() as session:
            result = await session.execute(select(Reminder))
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: Any) -> None:
        self.url = url
        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    @property
    def is_sqlite(self) -> bool:
        return self.engine.dialect.name == "sqlite"

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Get an async session that is closed on exit.

        Example:
            async with database.session() as session:
                reminder = await session.get(Reminder, reminder_id)
        """
        async with self.session_factory() as session:
            yield session

    async def create_all(self) -> None:
        """Create all tables that don't exist yet."""
        import_models()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured", extra={"operation": "db.create_all"})

    async def drop_all(self) -> None:
        import_models()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def check(self) -> bool:
        """Run ``SELECT 1``; False when the database is unreachable."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(
                "Database connectivity check failed",
                extra={"error": str(e), "operation": "db.check"},
            )
            return False
        return True

    async def dispose(self) -> None:
        """Close pooled connections."""
        logger.info("Closing database connection")
        await self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_conn: Any, connection_record: Any) -> None:
    _ = connection_record
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_database(settings: PostgresSettings, *, debug: bool = False) -> Database:
    """Build a ``Database`` from settings.

    Pool sizing only applies to server databases; SQLite uses SQLAlchemy's
    default pool for its URL.
    """
    url = settings.get_sqlalchemy_url()
    engine_kwargs: dict[str, Any] = {}
    if not url.startswith("sqlite"):
        engine_kwargs.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            pool_recycle=settings.pool_recycle,
            pool_pre_ping=settings.pool_pre_ping,
        )
    database = Database(url, echo=settings.echo or debug, **engine_kwargs)
    logger.info(
        "Database engine created",
        extra={"dialect": database.engine.dialect.name, "operation": "db.create_engine"},
    )
    return database


__all__ = ["Database", "create_database", "import_models"]
