"""FastAPI dependencies shared across features."""

from reminder_service.core.dependencies.auth import CurrentUserIdDep, get_current_user_id
from reminder_service.core.dependencies.database import DatabaseDep, DbSessionDep, get_database, get_db_session

__all__ = [
    "CurrentUserIdDep",
    "DatabaseDep",
    "DbSessionDep",
    "get_current_user_id",
    "get_database",
    "get_db_session",
]
