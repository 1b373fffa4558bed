"""Durable scheduled job store.

Jobs live in the ``scheduled_jobs`` table. The database is the only
synchronization point between workers:

- dedup: a partial unique index on ``(queue_name, dedup_key)`` over
  unresolved rows rejects a second pending/retrying job for the same key
- claiming: each claim is a compare-and-set UPDATE; a worker owns a job only
  if its UPDATE matched the row (``rowcount == 1``)
- leases: ``locked_until`` bounds how long a crashed worker holds a job

Every method opens its own session and commits before returning, so no
state is cached across awaits.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError

from reminder_service.core.database import utcnow
from reminder_service.infra.logging import get_lazy_logger
from reminder_service.infra.tasks.jobs.enums import JobStatus
from reminder_service.infra.tasks.jobs.metrics import jobs_claimed_total, jobs_enqueued_total, jobs_finished_total
from reminder_service.infra.tasks.jobs.models import ScheduledJob

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from reminder_service.infra.database import Database
    from reminder_service.infra.tasks.jobs.retry import RetryPolicy

logger = logging.getLogger(__name__)
_lazy = get_lazy_logger(__name__)

_UNRESOLVED = tuple(JobStatus.unresolved_states())
_UPSERT_ATTEMPTS = 3


class JobStore:
    """Time-ordered job queue with dedup keys, leases and retries.

    Example:
        store = JobStore(database, retry_policy=RetryPolicy())
        job_id = await store.upsert(
            "reminder",
            {"reminder_id": str(rid)},
            trigger_at,
            dedup_key=f"reminder:{rid}",
        )
    """

    def __init__(
        self,
        database: Database,
        *,
        retry_policy: RetryPolicy,
        lease_seconds: int = 300,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._database = database
        self.retry_policy = retry_policy
        self.lease = timedelta(seconds=lease_seconds)
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    async def enqueue(
        self,
        queue_name: str,
        payload: dict[str, Any],
        trigger_at: datetime,
        dedup_key: str | None = None,
    ) -> UUID | None:
        """Insert a job; ``None`` if an unresolved job with the same key exists."""
        job = self._new_job(queue_name, payload, trigger_at, dedup_key)
        async with self._database.session() as session:
            session.add(job)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                jobs_enqueued_total.labels(queue=queue_name, outcome="deduplicated").inc()
                logger.info(
                    "Job not enqueued, dedup key already scheduled",
                    extra={"queue": queue_name, "dedup_key": dedup_key, "operation": "jobs.enqueue"},
                )
                return None

        jobs_enqueued_total.labels(queue=queue_name, outcome="inserted").inc()
        logger.info(
            "Job enqueued",
            extra={
                "job_id": str(job.id),
                "queue": queue_name,
                "dedup_key": dedup_key,
                "run_after": trigger_at.isoformat(),
                "operation": "jobs.enqueue",
            },
        )
        return job.id

    async def upsert(
        self,
        queue_name: str,
        payload: dict[str, Any],
        trigger_at: datetime,
        dedup_key: str,
    ) -> UUID:
        """Move the unresolved job with ``dedup_key`` to ``trigger_at``, or insert one.

        A concurrent insert for the same key makes our insert fail on the
        unique index; the update is then applied to the winner's row.
        """
        for _ in range(_UPSERT_ATTEMPTS):
            job_id = await self._reschedule_existing(queue_name, payload, trigger_at, dedup_key)
            if job_id is not None:
                jobs_enqueued_total.labels(queue=queue_name, outcome="rescheduled").inc()
                logger.info(
                    "Job rescheduled",
                    extra={
                        "job_id": str(job_id),
                        "queue": queue_name,
                        "dedup_key": dedup_key,
                        "run_after": trigger_at.isoformat(),
                        "operation": "jobs.upsert",
                    },
                )
                return job_id

            job_id = await self.enqueue(queue_name, payload, trigger_at, dedup_key)
            if job_id is not None:
                return job_id

            _lazy.debug(lambda: f"jobs.upsert: insert race on {dedup_key!r}, retrying update")

        raise RuntimeError(f"Could not upsert job for dedup key {dedup_key!r}")

    async def _reschedule_existing(
        self,
        queue_name: str,
        payload: dict[str, Any],
        trigger_at: datetime,
        dedup_key: str,
    ) -> UUID | None:
        async with self._database.session() as session:
            job_id = (
                await session.execute(
                    select(ScheduledJob.id).where(
                        ScheduledJob.queue_name == queue_name,
                        ScheduledJob.dedup_key == dedup_key,
                        ScheduledJob.status.in_(_UNRESOLVED),
                    )
                )
            ).scalar_one_or_none()
            if job_id is None:
                return None

            result = await session.execute(
                update(ScheduledJob)
                .where(ScheduledJob.id == job_id, ScheduledJob.status.in_(_UNRESOLVED))
                .values(
                    payload=payload,
                    run_after=trigger_at,
                    status=JobStatus.PENDING,
                    attempts=0,
                    last_error=None,
                    updated_at=self.now(),
                )
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return job_id if result.rowcount == 1 else None

    async def cancel(self, queue_name: str, job_id: UUID) -> bool:
        """Cancel an unresolved job.

        Returns False, not an error, when the job is absent, already
        resolved, or currently running (running jobs are not interrupted).
        """
        now = self.now()
        async with self._database.session() as session:
            result = await session.execute(
                update(ScheduledJob)
                .where(
                    ScheduledJob.id == job_id,
                    ScheduledJob.queue_name == queue_name,
                    ScheduledJob.status.in_(_UNRESOLVED),
                )
                .values(status=JobStatus.CANCELLED, cancelled_at=now, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            await session.commit()

        cancelled = result.rowcount == 1
        logger.info(
            "Job cancelled" if cancelled else "Job not cancelled, absent or resolved",
            extra={"job_id": str(job_id), "queue": queue_name, "operation": "jobs.cancel"},
        )
        return cancelled

    # ------------------------------------------------------------------
    # Consumers
    # ------------------------------------------------------------------

    def _claimable(self, now: datetime) -> Any:
        return or_(
            and_(ScheduledJob.status.in_(_UNRESOLVED), ScheduledJob.run_after <= now),
            and_(
                ScheduledJob.status == JobStatus.RUNNING,
                ScheduledJob.locked_until < now,
                ScheduledJob.attempts < ScheduledJob.max_attempts,
            ),
        )

    async def claim_due(self, queue_name: str, worker_id: str, limit: int = 10) -> list[ScheduledJob]:
        """Claim up to ``limit`` due jobs for ``worker_id``.

        Each candidate is claimed with its own compare-and-set UPDATE and
        commit, so two workers racing for a row can't both win it.
        """
        now = self.now()
        await self._fail_abandoned(queue_name, now)

        claimed: list[UUID] = []
        async with self._database.session() as session:
            candidates = (
                await session.execute(
                    select(ScheduledJob.id)
                    .where(ScheduledJob.queue_name == queue_name, self._claimable(now))
                    .order_by(ScheduledJob.run_after)
                    .limit(limit)
                )
            ).scalars().all()

            for job_id in candidates:
                result = await session.execute(
                    update(ScheduledJob)
                    .where(ScheduledJob.id == job_id, self._claimable(now))
                    .values(
                        status=JobStatus.RUNNING,
                        attempts=ScheduledJob.attempts + 1,
                        locked_by=worker_id,
                        locked_until=now + self.lease,
                        started_at=now,
                        updated_at=now,
                    )
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
                if result.rowcount == 1:
                    claimed.append(job_id)

            if not claimed:
                return []

            jobs = list(
                (
                    await session.execute(
                        select(ScheduledJob)
                        .where(ScheduledJob.id.in_(claimed))
                        .order_by(ScheduledJob.run_after)
                        .execution_options(populate_existing=True)
                    )
                ).scalars()
            )

        jobs_claimed_total.labels(queue=queue_name).inc(len(jobs))
        _lazy.debug(lambda: f"jobs.claim_due: {worker_id} claimed {[str(j.id) for j in jobs]} on {queue_name}")
        return jobs

    async def _fail_abandoned(self, queue_name: str, now: datetime) -> None:
        """Mark jobs whose lease expired on their last allowed attempt as failed."""
        async with self._database.session() as session:
            result = await session.execute(
                update(ScheduledJob)
                .where(
                    ScheduledJob.queue_name == queue_name,
                    ScheduledJob.status == JobStatus.RUNNING,
                    ScheduledJob.locked_until < now,
                    ScheduledJob.attempts >= ScheduledJob.max_attempts,
                )
                .values(
                    status=JobStatus.FAILED,
                    locked_by=None,
                    locked_until=None,
                    completed_at=now,
                    last_error="lease expired on final attempt",
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            await session.commit()

        if result.rowcount:
            jobs_finished_total.labels(queue=queue_name, status="failed").inc(result.rowcount)
            logger.warning(
                "Abandoned jobs failed after lease expiry",
                extra={"queue": queue_name, "count": result.rowcount, "operation": "jobs.fail_abandoned"},
            )

    async def complete(self, job_id: UUID, worker_id: str) -> bool:
        """Mark a claimed job completed. False if the lease was lost."""
        now = self.now()
        async with self._database.session() as session:
            queue_name = await self._owned_queue(session, job_id, worker_id)
            result = await session.execute(
                update(ScheduledJob)
                .where(
                    ScheduledJob.id == job_id,
                    ScheduledJob.status == JobStatus.RUNNING,
                    ScheduledJob.locked_by == worker_id,
                )
                .values(
                    status=JobStatus.COMPLETED,
                    locked_by=None,
                    locked_until=None,
                    completed_at=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            await session.commit()

        if result.rowcount != 1:
            logger.warning(
                "Job completion ignored, lease no longer held",
                extra={"job_id": str(job_id), "worker_id": worker_id, "operation": "jobs.complete"},
            )
            return False

        jobs_finished_total.labels(queue=queue_name or "unknown", status="completed").inc()
        _lazy.debug(lambda: f"jobs.complete: {job_id} by {worker_id}")
        return True

    async def fail(self, job_id: UUID, worker_id: str, error: str) -> JobStatus | None:
        """Record a failed run and apply the retry policy.

        Returns the job's new status, or None if the lease was lost:
        - CANCELLED when a newer unresolved job exists for the same dedup key
        - RETRYING with backoff while attempts remain
        - FAILED once attempts are exhausted
        """
        now = self.now()
        async with self._database.session() as session:
            job = (
                await session.execute(
                    select(ScheduledJob)
                    .where(
                        ScheduledJob.id == job_id,
                        ScheduledJob.status == JobStatus.RUNNING,
                        ScheduledJob.locked_by == worker_id,
                    )
                    .execution_options(populate_existing=True)
                )
            ).scalar_one_or_none()
            if job is None:
                logger.warning(
                    "Job failure ignored, lease no longer held",
                    extra={"job_id": str(job_id), "worker_id": worker_id, "operation": "jobs.fail"},
                )
                return None

            queue_name, attempts, max_attempts = job.queue_name, job.attempts, job.max_attempts

            if await self._is_superseded(session, job):
                new_status = JobStatus.CANCELLED
            elif self.retry_policy.should_retry(attempts, max_attempts):
                new_status = JobStatus.RETRYING
            else:
                new_status = JobStatus.FAILED

            values: dict[str, Any] = {}
            if new_status is JobStatus.RETRYING:
                values["run_after"] = now + timedelta(seconds=self.retry_policy.delay_for(attempts))
            elif new_status is JobStatus.CANCELLED:
                values["cancelled_at"] = now
            else:
                values["completed_at"] = now

            try:
                await session.execute(self._release(job_id, worker_id, new_status, error, now, **values))
                await session.commit()
            except IntegrityError:
                # A new job for the same key was inserted after the check
                await session.rollback()
                new_status = JobStatus.CANCELLED
                await session.execute(
                    self._release(job_id, worker_id, new_status, error, now, cancelled_at=now)
                )
                await session.commit()

        jobs_finished_total.labels(queue=queue_name, status=new_status.value).inc()
        log = logger.error if new_status is JobStatus.FAILED else logger.warning
        log(
            "Job run failed",
            extra={
                "job_id": str(job_id),
                "queue": queue_name,
                "attempts": attempts,
                "max_attempts": max_attempts,
                "new_status": new_status.value,
                "error": error,
                "operation": "jobs.fail",
            },
        )
        return new_status

    @staticmethod
    def _release(
        job_id: UUID,
        worker_id: str,
        status: JobStatus,
        error: str,
        now: datetime,
        **values: Any,
    ) -> Any:
        return (
            update(ScheduledJob)
            .where(ScheduledJob.id == job_id, ScheduledJob.locked_by == worker_id)
            .values(
                status=status,
                locked_by=None,
                locked_until=None,
                last_error=error[:2000],
                updated_at=now,
                **values,
            )
            .execution_options(synchronize_session=False)
        )

    async def _is_superseded(self, session: AsyncSession, job: ScheduledJob) -> bool:
        if job.dedup_key is None:
            return False
        newer = await session.execute(
            select(ScheduledJob.id).where(
                ScheduledJob.queue_name == job.queue_name,
                ScheduledJob.dedup_key == job.dedup_key,
                ScheduledJob.status.in_(_UNRESOLVED),
                ScheduledJob.id != job.id,
            )
        )
        return newer.first() is not None

    async def _owned_queue(self, session: AsyncSession, job_id: UUID, worker_id: str) -> str | None:
        return (
            await session.execute(
                select(ScheduledJob.queue_name).where(
                    ScheduledJob.id == job_id, ScheduledJob.locked_by == worker_id
                )
            )
        ).scalar_one_or_none()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    async def get(self, job_id: UUID) -> ScheduledJob | None:
        async with self._database.session() as session:
            return await session.get(ScheduledJob, job_id)

    async def list_jobs(
        self,
        queue_name: str | None = None,
        *,
        dedup_key: str | None = None,
        statuses: Iterable[JobStatus] | None = None,
        limit: int = 100,
    ) -> Sequence[ScheduledJob]:
        """List jobs ordered by ``run_after``, optionally filtered."""
        stmt = select(ScheduledJob).order_by(ScheduledJob.run_after).limit(limit)
        if queue_name is not None:
            stmt = stmt.where(ScheduledJob.queue_name == queue_name)
        if dedup_key is not None:
            stmt = stmt.where(ScheduledJob.dedup_key == dedup_key)
        if statuses is not None:
            stmt = stmt.where(ScheduledJob.status.in_(list(statuses)))
        async with self._database.session() as session:
            return (await session.execute(stmt)).scalars().all()

    def _new_job(
        self,
        queue_name: str,
        payload: dict[str, Any],
        trigger_at: datetime,
        dedup_key: str | None,
    ) -> ScheduledJob:
        now = self.now()
        return ScheduledJob(
            queue_name=queue_name,
            payload=payload,
            run_after=trigger_at,
            dedup_key=dedup_key,
            status=JobStatus.PENDING,
            attempts=0,
            max_attempts=self.retry_policy.max_attempts,
            created_at=now,
            updated_at=now,
        )
