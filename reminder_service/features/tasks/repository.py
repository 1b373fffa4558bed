"""Repository for tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import update

from reminder_service.core.database import BaseRepository, utcnow
from reminder_service.features.tasks.models import Task

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession


class TaskRepository(BaseRepository[Task]):
    """Task lookups and the completion transition."""

    def __init__(self) -> None:
        super().__init__(Task)

    async def get_for_user(self, session: AsyncSession, task_id: UUID, user_id: str) -> Task | None:
        """Get a task only if ``user_id`` owns it."""
        task = await self.get(session, task_id)
        if task is None or task.user_id != user_id:
            return None
        return task

    async def mark_completed(self, session: AsyncSession, task_id: UUID) -> bool:
        """Complete the task if it isn't already.

        Returns True when this call performed the transition; False when the
        task was already completed or doesn't exist. Caller commits.
        """
        now = utcnow()
        result = await session.execute(
            update(Task)
            .where(Task.id == task_id, Task.completed.is_(False))
            .values(completed=True, completed_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        changed = result.rowcount == 1
        if changed:
            self._logger.info(
                "Task completed",
                extra={"task_id": str(task_id), "operation": "tasks.mark_completed"},
            )
        return changed


_task_repository: TaskRepository | None = None


def get_task_repository() -> TaskRepository:
    """Get the shared TaskRepository instance."""
    global _task_repository
    if _task_repository is None:
        _task_repository = TaskRepository()
    return _task_repository
