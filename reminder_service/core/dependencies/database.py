"""Database dependencies for FastAPI route handlers.

Route handlers get a request-scoped session from the ``Database`` the app
lifespan put on ``app.state``. Background code (worker, CLI) uses
``Database.session()`` directly.

Usage:
    @router.post("/things")
    async def create_thing(session: DbSessionDep):
        ...
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from reminder_service.infra.database import Database


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db_session(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency for a database session closed after the request."""
    async with database.session() as session:
        yield session


DatabaseDep = Annotated[Database, Depends(get_database)]
DbSessionDep = Annotated[AsyncSession, Depends(get_db_session)]
