"""Database building blocks: declarative base, column types and repositories.

Example:
    from reminder_service.core.database import Base, BaseRepository, TimestampMixin
"""

from reminder_service.core.database.base import NAMING_CONVENTION, Base, TimestampMixin, UUIDPKMixin
from reminder_service.core.database.enums import string_enum
from reminder_service.core.database.exceptions import NotFoundError, RepositoryError
from reminder_service.core.database.repository import BaseRepository
from reminder_service.core.database.types import UTCDateTime, utcnow

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "BaseRepository",
    "NotFoundError",
    "RepositoryError",
    "TimestampMixin",
    "UTCDateTime",
    "UUIDPKMixin",
    "string_enum",
    "utcnow",
]
