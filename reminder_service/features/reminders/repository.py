"""Repository for the reminders feature."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from reminder_service.core.database import BaseRepository
from reminder_service.features.reminders.models import Reminder, ReminderStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession


class ReminderRepository(BaseRepository[Reminder]):
    """Repository for Reminder model.

    Inherits get/get_or_raise/create from BaseRepository.
    """

    def __init__(self) -> None:
        super().__init__(Reminder)

    async def list_for_task(
        self,
        session: AsyncSession,
        task_id: UUID,
        *,
        status: ReminderStatus | None = None,
    ) -> Sequence[Reminder]:
        """Reminders of one task, oldest trigger first."""
        stmt = select(Reminder).where(Reminder.task_id == task_id).order_by(Reminder.trigger_at)
        if status is not None:
            stmt = stmt.where(Reminder.status == status)
        result = await session.execute(stmt)
        items = result.scalars().all()

        self._lazy.debug(lambda: f"db.list_for_task: task={task_id} status={status} -> {len(items)} items")
        return items


_reminder_repository: ReminderRepository | None = None


def get_reminder_repository() -> ReminderRepository:
    """Get the shared ReminderRepository instance."""
    global _reminder_repository
    if _reminder_repository is None:
        _reminder_repository = ReminderRepository()
    return _reminder_repository
