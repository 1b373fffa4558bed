"""Context management for structured logging.

Fields set with ``set_log_context`` are attached to every record emitted in the
same async task, so a job id or reminder id set once at the top of a handler
shows up on every line the handler logs.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        ```python
        set_log_context(job_id=str(job.id), queue="reminder")
        logger.info("Running job")  # includes job_id and queue
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Drop all context fields for the current task."""
    _log_context.set({})


def remove_from_log_context(*keys: str) -> None:
    """Remove specific keys from the logging context."""
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


class ContextInjectingFilter(logging.Filter):
    """Copy contextvars log context onto each LogRecord.

    Installed on the queue handler by ``configure_logging`` so records from
    every logger are enriched before they reach the formatters.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            # Explicit extra={...} fields win over context
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
