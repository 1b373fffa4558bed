"""Logging infrastructure.

Structured logging with:
- JSONL format for log aggregation
- Automatic context injection (job_id, reminder_id, request path, ...)
- QueueHandler + QueueListener for non-blocking I/O
- Lazy evaluation for debug lines
- OpenTelemetry trace correlation

Usage:
    import logging

    from reminder_service.infra.logging import get_lazy_logger, set_log_context

    logger = logging.getLogger(__name__)
    _lazy = get_lazy_logger(__name__)

    set_log_context(job_id="...")
    logger.info("Job claimed", extra={"operation": "jobs.claim"})
    _lazy.debug(lambda: f"payload={payload!r}")
"""

from reminder_service.infra.logging.config import configure_logging, setup_logging, shutdown
from reminder_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    remove_from_log_context,
    set_log_context,
)
from reminder_service.infra.logging.formatters import JSONFormatter
from reminder_service.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "clear_log_context",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "remove_from_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
