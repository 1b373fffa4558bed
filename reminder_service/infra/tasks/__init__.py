"""Background job infrastructure: job store and polling worker."""

from reminder_service.infra.tasks.jobs import JobStatus, JobStore, RetryPolicy, ScheduledJob
from reminder_service.infra.tasks.worker import JobWorker, default_worker_id

__all__ = ["JobStatus", "JobStore", "JobWorker", "RetryPolicy", "ScheduledJob", "default_worker_id"]
