"""Router registry and setup."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reminder_service.features.metrics.router import router as metrics_router
from reminder_service.features.notifications.router import router as notifications_router
from reminder_service.features.reminders.router import router as reminders_router

if TYPE_CHECKING:
    from fastapi import FastAPI

API_PREFIX = "/api"


def setup_routers(app: FastAPI) -> None:
    """Register all feature routers with the application."""
    # /metrics stays at the root for scrapers
    app.include_router(metrics_router)

    app.include_router(reminders_router, prefix=API_PREFIX)
    app.include_router(notifications_router, prefix=API_PREFIX)
