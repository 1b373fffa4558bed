"""Application lifespan management.

Startup order:
1. Logging
2. Database (engine, optional table creation)
3. Reminder services (job store, token authority, scheduler, dispatcher)
4. Job worker, only when ``APP_RUN_WORKER`` is set

Shutdown runs in reverse. Everything the routes need is put on
``app.state``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from reminder_service.app.container import build_container
from reminder_service.core.database import utcnow
from reminder_service.infra.database import create_database
from reminder_service.infra.logging import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from reminder_service.core.settings import Settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start and stop application services.

    ``app.state.settings`` must be set; ``app.state.database`` and
    ``app.state.clock`` are used when present (tests inject them).
    """
    settings: Settings = app.state.settings
    setup_logging(settings.logging, force=True)
    logger.info(
        "Application starting",
        extra={"service": settings.app.service_name, "environment": settings.app.environment},
    )

    database = getattr(app.state, "database", None)
    owns_database = database is None
    if owns_database:
        database = create_database(settings.db, debug=settings.app.debug)
        app.state.database = database

    container = None
    try:
        if settings.db.create_tables:
            await database.create_all()

        container = build_container(settings, database, clock=getattr(app.state, "clock", None) or utcnow)
        app.state.services = container
        app.state.reminder_scheduler = container.scheduler
        app.state.token_authority = container.token_authority

        if settings.app.run_worker:
            container.worker.start()

        logger.info("Application startup complete", extra={"run_worker": settings.app.run_worker})
        yield
    finally:
        if container is not None:
            await container.aclose()
        if owns_database:
            await database.dispose()
            app.state.database = None
        logger.info("Application shutdown complete")
