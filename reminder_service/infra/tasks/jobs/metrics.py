"""Prometheus metrics for the scheduled job store and worker.

Usage:
    from reminder_service.infra.tasks.jobs.metrics import jobs_claimed_total

    jobs_claimed_total.labels(queue="reminder").inc(len(jobs))
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

jobs_enqueued_total = Counter(
    "scheduled_jobs_enqueued_total",
    "Jobs inserted or rescheduled, by queue and outcome",
    labelnames=["queue", "outcome"],
)
"""
Labels:
    queue: Queue name (e.g. "reminder")
    outcome: inserted | rescheduled | deduplicated
"""

jobs_claimed_total = Counter(
    "scheduled_jobs_claimed_total",
    "Jobs claimed by a worker",
    labelnames=["queue"],
)

jobs_finished_total = Counter(
    "scheduled_jobs_finished_total",
    "Job runs by final status of the run",
    labelnames=["queue", "status"],
)
"""
Labels:
    status: completed | retrying | failed | cancelled
"""

job_duration_seconds = Histogram(
    "scheduled_job_duration_seconds",
    "Handler execution time per job run",
    labelnames=["queue"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
