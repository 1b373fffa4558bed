"""Database-backed scheduled job store.

Example:
    from reminder_service.infra.tasks.jobs import JobStore, RetryPolicy

    store = JobStore(database, retry_policy=RetryPolicy(max_attempts=5))
    await store.enqueue("reminder", payload, trigger_at, dedup_key="reminder:123")
"""

from reminder_service.infra.tasks.jobs.enums import JobStatus
from reminder_service.infra.tasks.jobs.models import ScheduledJob
from reminder_service.infra.tasks.jobs.retry import RetryPolicy
from reminder_service.infra.tasks.jobs.store import JobStore

__all__ = ["JobStatus", "JobStore", "RetryPolicy", "ScheduledJob"]
