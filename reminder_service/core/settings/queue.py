"""Job queue configuration settings.

Environment variables use QUEUE_ prefix.
Example: QUEUE_POLL_INTERVAL_SECONDS=1.0, QUEUE_MAX_ATTEMPTS=5
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ._sanitizers import sanitize_inline_numeric

if TYPE_CHECKING:
    from reminder_service.infra.tasks.jobs.retry import RetryPolicy


class QueueSettings(BaseSettings):
    """Scheduled job store and worker configuration.

    The retry fields are folded into an explicit RetryPolicy object via
    retry_policy(); the job store never relies on hidden defaults.
    """

    # ──────────────────────────────────────────────────────────────
    # Worker polling
    # ──────────────────────────────────────────────────────────────

    poll_interval_seconds: float = Field(
        default=1.0,
        ge=0.05,
        le=60.0,
        description="Seconds between polls of the job store",
    )

    batch_size: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Maximum jobs claimed per queue per poll",
    )

    lease_seconds: int = Field(
        default=300,
        ge=5,
        le=3600,
        description="How long a claimed job stays locked to one worker before it can be reclaimed",
    )

    # ──────────────────────────────────────────────────────────────
    # Retry policy
    # ──────────────────────────────────────────────────────────────

    max_attempts: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Total handler attempts per job before it is marked failed",
    )

    retry_initial_delay_seconds: float = Field(
        default=5.0,
        ge=0.0,
        le=3600.0,
        description="Backoff delay before the first retry",
    )

    retry_max_delay_seconds: float = Field(
        default=600.0,
        ge=0.0,
        le=86400.0,
        description="Upper bound for any single backoff delay",
    )

    retry_exponential_base: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Multiplier applied per attempt",
    )

    retry_jitter: bool = Field(
        default=True,
        description="Randomize delays between 50% and 150% to spread retries",
    )

    @field_validator(
        "poll_interval_seconds",
        "batch_size",
        "lease_seconds",
        "max_attempts",
        mode="before",
    )
    @classmethod
    def _normalize_numeric(cls, value: Any) -> Any:
        """Allow numeric env vars with inline comments."""
        return sanitize_inline_numeric(value)

    @model_validator(mode="after")
    def _check_delays(self) -> QueueSettings:
        if self.retry_max_delay_seconds < self.retry_initial_delay_seconds:
            raise ValueError("retry_max_delay_seconds must be >= retry_initial_delay_seconds")
        return self

    def retry_policy(self) -> RetryPolicy:
        """Build the job store retry policy from these settings."""
        from reminder_service.infra.tasks.jobs.retry import RetryPolicy

        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_delay=self.retry_initial_delay_seconds,
            max_delay=self.retry_max_delay_seconds,
            exponential_base=self.retry_exponential_base,
            jitter=self.retry_jitter,
        )

    model_config = SettingsConfigDict(
        env_prefix="QUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
