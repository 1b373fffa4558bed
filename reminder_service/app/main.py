"""FastAPI application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

from reminder_service.app.exception_handlers import configure_exception_handlers
from reminder_service.app.lifespan import lifespan
from reminder_service.app.router import setup_routers
from reminder_service.core.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from reminder_service.core.settings import Settings
    from reminder_service.infra.database import Database


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        database: Pre-built database. The lifespan creates (and disposes)
            its own when omitted.
        clock: Time source for the job store, for tests.
    """
    settings = settings or get_settings()
    app_settings = settings.app

    app = FastAPI(
        title=app_settings.title,
        version=app_settings.version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.clock = clock

    configure_exception_handlers(app)
    setup_routers(app)

    return app
