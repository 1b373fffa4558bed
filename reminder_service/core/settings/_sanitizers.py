"""Helpers to clean environment variable values before validation."""

from __future__ import annotations

from typing import Any


def sanitize_inline_numeric(value: Any) -> Any:
    """Drop a trailing ``# comment`` from numeric env values.

    Some env-file loaders keep inline comments, so ``QUEUE_BATCH_SIZE=10  # per poll``
    arrives as the full string. A ``#`` only starts a comment when it is
    preceded by whitespace.
    """
    if not isinstance(value, str):
        return value
    idx = value.find("#")
    if idx > 0 and value[idx - 1].isspace():
        value = value[:idx]
    cleaned = value.strip()
    return cleaned or value
