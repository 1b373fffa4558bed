"""User tasks, as seen by the reminder pipeline."""

from .models import Task
from .repository import TaskRepository, get_task_repository

__all__ = ["Task", "TaskRepository", "get_task_repository"]
