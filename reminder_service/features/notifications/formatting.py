"""Notification text formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date

    from reminder_service.features.tasks.models import Task

CONTEXT_SEPARATOR = " · "


def due_context(due_date: date | None, today: date) -> str | None:
    """Relative due label, or None when there is no date or it is over a week out.

    Example:
        due_context(date(2025, 1, 3), today=date(2025, 1, 1))
        # 'Due in 2 days'
    """
    if due_date is None:
        return None
    days = (due_date - today).days
    if days < 0:
        return "Overdue"
    if days == 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    if days <= 7:
        return f"Due in {days} days"
    return None


def format_body(task: Task, today: date) -> str:
    """Task title, then project and due context joined on a second line."""
    context = [part for part in (task.project_name, due_context(task.due_date, today)) if part]
    if not context:
        return task.title
    return f"{task.title}\n{CONTEXT_SEPARATOR.join(context)}"
