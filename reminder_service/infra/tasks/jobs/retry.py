"""Retry policy for failed scheduled jobs."""

from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff with optional jitter.

    Attributes:
        max_attempts: Total runs allowed, the first one included.
        initial_delay: Delay in seconds after the first failure.
        max_delay: Upper bound for any single delay.
        exponential_base: Growth factor between consecutive delays.
        jitter: Scale each delay by a random factor in [0.5, 1.5).
    """

    max_attempts: int = 5
    initial_delay: float = 5.0
    max_delay: float = 600.0
    exponential_base: float = 2.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay < 0 or self.max_delay < self.initial_delay:
            raise ValueError("delays must satisfy 0 <= initial_delay <= max_delay")

    def should_retry(self, attempts: int, max_attempts: int | None = None) -> bool:
        """True when a job that has run ``attempts`` times may run again."""
        return attempts < (max_attempts if max_attempts is not None else self.max_attempts)

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the ``attempt``-th failed run (1-indexed).

        Example:
            RetryPolicy(initial_delay=5, exponential_base=2, jitter=False).delay_for(3)
            # 20.0
        """
        exponent = max(attempt - 1, 0)
        delay = min(self.initial_delay * (self.exponential_base**exponent), self.max_delay)
        if self.jitter:
            delay = min(delay * (0.5 + random.random()), self.max_delay)  # noqa: S311
        return delay
