"""Unified settings composition for convenient access.

Usage:
    from reminder_service.core.settings import get_settings

    settings = get_settings()
    print(settings.app.public_base_url)
    print(settings.queue.poll_interval_seconds)

Each nested settings class still respects its own env prefix.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .loader import (
    get_app_settings,
    get_db_settings,
    get_logging_settings,
    get_notification_settings,
    get_queue_settings,
)

if TYPE_CHECKING:
    from .app import AppSettings
    from .logs import LoggingSettings
    from .notifications import NotificationSettings
    from .postgres import PostgresSettings
    from .queue import QueueSettings


@dataclass(frozen=True, slots=True)
class Settings:
    """All settings domains in one object."""

    app: AppSettings
    db: PostgresSettings
    logging: LoggingSettings
    queue: QueueSettings
    notifications: NotificationSettings


def get_settings() -> Settings:
    """Compose the cached domain settings."""
    return Settings(
        app=get_app_settings(),
        db=get_db_settings(),
        logging=get_logging_settings(),
        queue=get_queue_settings(),
        notifications=get_notification_settings(),
    )
