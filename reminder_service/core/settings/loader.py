"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Testing:
    Clear the cache to force a reload:
    get_app_settings.cache_clear()

    Or construct settings directly:
    settings = NotificationSettings(secret="test-secret")
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .logs import LoggingSettings
from .notifications import NotificationSettings
from .postgres import PostgresSettings
from .queue import QueueSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> PostgresSettings:
    """Get cached database settings."""
    return PostgresSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings."""
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_queue_settings() -> QueueSettings:
    """Get cached job queue settings."""
    return QueueSettings()


@lru_cache(maxsize=1)
def get_notification_settings() -> NotificationSettings:
    """Get cached notification settings."""
    return NotificationSettings()


def clear_settings_cache() -> None:
    """Clear all cached settings (tests and CLI reloads)."""
    get_app_settings.cache_clear()
    get_db_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_queue_settings.cache_clear()
    get_notification_settings.cache_clear()
