"""Scheduled job state machine.

    PENDING ──claim──→ RUNNING ──success──→ COMPLETED
       │                  │
       │                  ├──error, attempts left──→ RETRYING ──claim──→ RUNNING
       │                  ├──error, exhausted──────→ FAILED
       │                  └──error, superseded─────→ CANCELLED
       └──cancel──→ CANCELLED

A RUNNING job whose lease expires is claimable again.
"""

from __future__ import annotations

import enum


class JobStatus(str, enum.Enum):
    """Lifecycle status of a scheduled job."""

    PENDING = "pending"
    RUNNING = "running"
    RETRYING = "retrying"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @classmethod
    def unresolved_states(cls) -> set[JobStatus]:
        """States that still count toward dedup: waiting to be claimed."""
        return {cls.PENDING, cls.RETRYING}

    @classmethod
    def terminal_states(cls) -> set[JobStatus]:
        """States with no further transitions."""
        return {cls.COMPLETED, cls.FAILED, cls.CANCELLED}

    def is_terminal(self) -> bool:
        return self in self.terminal_states()
