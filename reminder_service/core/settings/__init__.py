"""Modular Pydantic Settings v2 configuration.

Settings are split by domain, each with its own env prefix:
- APP_     application and public URL
- DB_      database connection (DATABASE_URL accepted as DSN)
- LOG_     logging
- QUEUE_   job store polling and retry policy
- NOTIFY_  channels and callback token secret (SESSION_SECRET accepted)

Import settings via cached loaders:
    from reminder_service.core.settings import get_queue_settings
"""

from __future__ import annotations

from .loader import (
    clear_settings_cache,
    get_app_settings,
    get_db_settings,
    get_logging_settings,
    get_notification_settings,
    get_queue_settings,
)
from .unified import Settings, get_settings

__all__ = [
    "Settings",
    "clear_settings_cache",
    "get_app_settings",
    "get_db_settings",
    "get_logging_settings",
    "get_notification_settings",
    "get_queue_settings",
    "get_settings",
]
