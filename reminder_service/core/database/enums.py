"""Portable enum column types.

Enums are stored as their lowercase string values in a VARCHAR column so the
same schema works on PostgreSQL and SQLite, and raw SQL (partial index
predicates, ad-hoc queries) can compare against plain string literals.

Usage in models:
    status: Mapped[JobStatus] = mapped_column(string_enum(JobStatus, "scheduledjobstatus"))
"""

from __future__ import annotations

import enum

from sqlalchemy import Enum


def string_enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Build a non-native Enum column type that persists member values."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )


__all__ = ["string_enum"]
