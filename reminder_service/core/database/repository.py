"""Minimal generic repository for SQLAlchemy models.

Primary-key lookups and inserts with explicit session passing.
Feature repositories add their own queries on top.

Example:
    class ReminderRepository(BaseRepository[Reminder]):
        async def list_for_task(self, session: AsyncSession, task_id: UUID) -> Sequence[Reminder]:
            stmt = select(Reminder).where(Reminder.task_id == task_id)
            result = await session.execute(stmt)
            return result.scalars().all()

    repo = ReminderRepository(Reminder)
    reminder = await repo.get(session, reminder_id)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import select

from reminder_service.core.database.exceptions import NotFoundError
from reminder_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Minimal generic repository for CRUD operations.

    Provides:
        - get(session, id) -> T | None
        - get_or_raise(session, id) -> T (raises NotFoundError)
        - create(session, instance) -> T

    Session is always explicit - no hidden state.
    """

    __slots__ = ("model", "_logger", "_lazy")

    def __init__(self, model: type[T]) -> None:
        self.model = model
        self._logger = logging.getLogger(f"repository.{model.__name__}")
        self._lazy = get_lazy_logger(f"repository.{model.__name__}")

    async def get(
        self,
        session: AsyncSession,
        id: Any,  # noqa: A002
        *,
        for_update: bool = False,
    ) -> T | None:
        """Get entity by primary key.

        Args:
            session: Database session
            id: Primary key value
            for_update: Reload from the database with ``SELECT ... FOR UPDATE``
                (ignored by SQLite), bypassing the identity map.

        Returns:
            Entity if found, None otherwise
        """
        if for_update:
            stmt = (
                select(self.model)
                .where(self.model.id == id)  # type: ignore[attr-defined]
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            instance = (await session.execute(stmt)).scalar_one_or_none()
        else:
            instance = await session.get(self.model, id)

        self._lazy.debug(
            lambda: f"db.get: {self.model.__name__}({id}) -> {'found' if instance else 'not found'}"
        )
        return instance

    async def get_or_raise(
        self,
        session: AsyncSession,
        id: Any,  # noqa: A002
        *,
        for_update: bool = False,
    ) -> T:
        """Get entity by primary key or raise NotFoundError.

        Raises:
            NotFoundError: If entity doesn't exist
        """
        instance = await self.get(session, id, for_update=for_update)
        if instance is None:
            self._logger.info(
                "Entity not found",
                extra={
                    "entity": self.model.__name__,
                    "id": str(id),
                    "operation": "db.get_or_raise",
                },
            )
            raise NotFoundError(self.model.__name__, {"id": id})
        return instance

    async def create(self, session: AsyncSession, instance: T) -> T:
        """Persist a new entity.

        Adds to session, flushes to get generated values, and refreshes.
        """
        session.add(instance)
        await session.flush()
        await session.refresh(instance)

        entity_id = getattr(instance, "id", None)
        self._lazy.debug(lambda: f"db.create: {self.model.__name__}(id={entity_id})")
        return instance
