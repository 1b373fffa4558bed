"""Polling worker for the scheduled job store.

APScheduler drives ``poll_once`` on an interval trigger in the running event
loop. Each tick claims due jobs per registered queue and runs their handlers;
the job store decides retries, so handlers just raise on failure.

Usage:
    worker = JobWorker(store, poll_interval=1.0)
    worker.register("reminder", dispatcher.handle)
    worker.start()
    ...
    await worker.stop()
"""

from __future__ import annotations

import asyncio
import logging
import os
import socket
import time
import uuid
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-untyped]

from reminder_service.infra.logging import get_lazy_logger, set_log_context
from reminder_service.infra.tasks.jobs.metrics import job_duration_seconds

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from reminder_service.infra.tasks.jobs import JobStore, ScheduledJob

    JobHandler = Callable[[dict[str, Any]], Awaitable[Any]]

logger = logging.getLogger(__name__)
_lazy = get_lazy_logger(__name__)

POLL_JOB_ID = "job_store_poll"


def default_worker_id() -> str:
    """hostname:pid:suffix, unique per worker instance."""
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


class JobWorker:
    """Claims due jobs and runs the handler registered for their queue."""

    def __init__(
        self,
        store: JobStore,
        *,
        poll_interval: float = 1.0,
        batch_size: int = 10,
        worker_id: str | None = None,
    ) -> None:
        self.store = store
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.worker_id = worker_id or default_worker_id()
        self._handlers: dict[str, JobHandler] = {}
        self._scheduler: AsyncIOScheduler | None = None
        self._stopped = asyncio.Event()

    @property
    def queues(self) -> list[str]:
        return list(self._handlers)

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def register(self, queue_name: str, handler: JobHandler) -> None:
        """Register the async handler for ``queue_name`` (one per queue)."""
        if queue_name in self._handlers:
            raise ValueError(f"Handler already registered for queue {queue_name!r}")
        self._handlers[queue_name] = handler
        logger.info("Job handler registered", extra={"queue": queue_name, "worker_id": self.worker_id})

    async def poll_once(self) -> int:
        """Claim and run due jobs for every queue once. Returns jobs processed."""
        processed = 0
        for queue_name, handler in self._handlers.items():
            jobs = await self.store.claim_due(queue_name, self.worker_id, self.batch_size)
            if not jobs:
                continue
            # One task per job so log context stays per job
            await asyncio.gather(*(self._run(queue_name, handler, job) for job in jobs))
            processed += len(jobs)
        if processed:
            _lazy.debug(lambda: f"worker.poll_once: {self.worker_id} processed {processed} jobs")
        return processed

    async def _run(self, queue_name: str, handler: JobHandler, job: ScheduledJob) -> None:
        set_log_context(job_id=str(job.id), queue=queue_name, attempt=job.attempts)
        started = time.perf_counter()
        try:
            await handler(dict(job.payload))
        except Exception as e:
            logger.exception(
                "Job handler raised",
                extra={"worker_id": self.worker_id, "operation": "worker.run"},
            )
            await self.store.fail(job.id, self.worker_id, f"{type(e).__name__}: {e}")
        else:
            await self.store.complete(job.id, self.worker_id)
        finally:
            job_duration_seconds.labels(queue=queue_name).observe(time.perf_counter() - started)

    async def _tick(self) -> None:
        try:
            await self.poll_once()
        except Exception:
            # Next tick retries
            logger.exception("Job poll failed", extra={"worker_id": self.worker_id, "operation": "worker.poll"})

    def start(self) -> None:
        """Start polling on an APScheduler interval trigger in the current loop."""
        if self.running:
            return
        self._stopped.clear()
        self._scheduler = AsyncIOScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": max(int(self.poll_interval * 5), 5),
            },
        )
        self._scheduler.add_job(
            func=self._tick,
            trigger=IntervalTrigger(seconds=self.poll_interval),
            id=POLL_JOB_ID,
            name="Poll scheduled jobs",
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(
            "Job worker started",
            extra={
                "worker_id": self.worker_id,
                "queues": self.queues,
                "poll_interval": self.poll_interval,
                "batch_size": self.batch_size,
            },
        )

    async def stop(self) -> None:
        """Stop polling. In-flight handlers finish; their leases cover a crash."""
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Job worker stopped", extra={"worker_id": self.worker_id})
        self._scheduler = None
        self._stopped.set()

    async def run_forever(self) -> None:
        """Start and block until ``stop`` is called."""
        self.start()
        await self._stopped.wait()
