"""Database infrastructure: engine and session management.

Example:
    from reminder_service.infra.database import create_database

    database = create_database(get_db_settings())
    async with database.session() as session:
        ...
"""

from .session import Database, create_database, import_models

__all__ = ["Database", "create_database", "import_models"]
