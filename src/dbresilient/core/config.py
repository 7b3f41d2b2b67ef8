r"""Retry policy value object and its defaults.

This module provides the configuration constants and the immutable
``RetryPolicy`` dataclass consumed by the retry executors, together with
the two named presets used across the application: the default policy
for routine operations and the critical policy for operations whose
failure is costlier.
"""

from __future__ import annotations

__all__ = [
    "CRITICAL_BASE_DELAY_MS",
    "CRITICAL_MAX_ATTEMPTS",
    "CRITICAL_POLICY",
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_BASE_DELAY_MS",
    "DEFAULT_CONNECTION_TIMEOUT_MS",
    "DEFAULT_HEALTH_CHECK_TIMEOUT_MS",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_POLICY",
    "RetryPolicy",
]

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from dbresilient.backoff.exponential import ExponentialBackoff
from dbresilient.core.validation import validate_policy_params

if TYPE_CHECKING:
    from dbresilient.backoff.base import BaseBackoffStrategy


# Total attempts for routine operations, first attempt included
DEFAULT_MAX_ATTEMPTS = 3

# Delay after the first failed attempt
# With the default multiplier: 1000ms, then 2000ms
DEFAULT_BASE_DELAY_MS = 1000.0

# Growth factor between consecutive delays
DEFAULT_BACKOFF_MULTIPLIER = 2.0

# Bound on acquiring a pooled connection for a single attempt
DEFAULT_CONNECTION_TIMEOUT_MS = 20000.0

# Bound on the connectivity probe used by status endpoints
DEFAULT_HEALTH_CHECK_TIMEOUT_MS = 5000.0

# Budget for critical operations: 2000ms, 4000ms, 8000ms, 16000ms
CRITICAL_MAX_ATTEMPTS = 5
CRITICAL_BASE_DELAY_MS = 2000.0


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff schedule for a database operation.

    Args:
        max_attempts: Total number of attempts including the first one.
            Must be >= 1. A value of 1 disables retries.
        base_delay_ms: Delay in milliseconds after the first failed
            attempt. Must be >= 0.
        backoff_multiplier: Growth factor between consecutive delays.
            Must be >= 1.
        connection_timeout_ms: Bound on acquiring a connection for a single
            attempt. Must be >= 0. There is no bound on the whole retry
            sequence beyond the backoff schedule itself.
        max_delay_ms: Optional cap on individual delays. Must be > 0 if
            provided.
        backoff_strategy: Optional strategy replacing the exponential
            formula built from the fields above.

    Example:
        ```pycon
        >>> from dbresilient.core.config import RetryPolicy
        >>> policy = RetryPolicy()
        >>> policy.max_attempts
        3
        >>> policy.delays()
        (1000.0, 2000.0)
        >>> critical = policy.merge(max_attempts=5, base_delay_ms=2000)
        >>> critical.delays()
        (2000.0, 4000.0, 8000.0, 16000.0)
        >>> policy.max_attempts  # Original unchanged
        3

        ```
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    connection_timeout_ms: float = DEFAULT_CONNECTION_TIMEOUT_MS
    max_delay_ms: float | None = None
    backoff_strategy: BaseBackoffStrategy | None = None

    def __post_init__(self) -> None:
        """Validate policy parameters after initialization.

        Raises:
            TypeError: If max_attempts is not an integer.
            ValueError: If any parameter fails validation.
        """
        validate_policy_params(
            max_attempts=self.max_attempts,
            base_delay_ms=self.base_delay_ms,
            backoff_multiplier=self.backoff_multiplier,
            connection_timeout_ms=self.connection_timeout_ms,
            max_delay_ms=self.max_delay_ms,
        )

    @property
    def strategy(self) -> BaseBackoffStrategy:
        """The backoff strategy that produces this policy's delays."""
        if self.backoff_strategy is not None:
            return self.backoff_strategy
        return ExponentialBackoff(
            base_delay_ms=self.base_delay_ms,
            multiplier=self.backoff_multiplier,
            max_delay_ms=self.max_delay_ms,
        )

    def delay_for(self, attempt: int) -> float:
        """Return the delay in milliseconds after a failed attempt.

        Args:
            attempt: The number of the attempt that failed (1-indexed).

        Returns:
            The delay before the next attempt. Never negative.

        Raises:
            ValueError: If ``attempt`` is not in ``[1, max_attempts - 1]``.
                No delay exists after the final attempt.

        Example:
            ```pycon
            >>> from dbresilient.core.config import RetryPolicy
            >>> policy = RetryPolicy(max_attempts=4, base_delay_ms=100, backoff_multiplier=3)
            >>> policy.delay_for(1)
            100.0
            >>> policy.delay_for(3)
            900.0

            ```
        """
        if attempt < 1 or attempt >= self.max_attempts:
            msg = f"attempt must be in [1, {self.max_attempts - 1}], got {attempt}"
            raise ValueError(msg)
        return self._compute_delay(self.strategy, attempt)

    def delays(self) -> tuple[float, ...]:
        """Return the full delay schedule, one entry per retry.

        Returns:
            A tuple of ``max_attempts - 1`` delays in milliseconds.
        """
        strategy = self.strategy
        return tuple(
            self._compute_delay(strategy, attempt) for attempt in range(1, self.max_attempts)
        )

    def _compute_delay(self, strategy: BaseBackoffStrategy, attempt: int) -> float:
        delay = strategy.calculate(attempt)
        if self.max_delay_ms is not None:
            delay = min(delay, self.max_delay_ms)
        return max(0.0, float(delay))

    def merge(self, **overrides: Any) -> RetryPolicy:
        """Create a new policy with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for fields to override.

        Returns:
            A new RetryPolicy instance with overrides applied.

        Example:
            ```pycon
            >>> from dbresilient.core.config import RetryPolicy
            >>> policy = RetryPolicy(max_attempts=3)
            >>> policy.merge(max_attempts=5, base_delay_ms=None).max_attempts
            5

            ```
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert the policy to dictionary format.

        Returns:
            Dictionary with the policy fields.

        Example:
            ```pycon
            >>> from dbresilient.core.config import RetryPolicy
            >>> RetryPolicy(max_attempts=5).to_dict()["max_attempts"]
            5

            ```
        """
        return {
            "max_attempts": self.max_attempts,
            "base_delay_ms": self.base_delay_ms,
            "backoff_multiplier": self.backoff_multiplier,
            "connection_timeout_ms": self.connection_timeout_ms,
            "max_delay_ms": self.max_delay_ms,
            "backoff_strategy": self.backoff_strategy,
        }


DEFAULT_POLICY = RetryPolicy()

CRITICAL_POLICY = RetryPolicy(
    max_attempts=CRITICAL_MAX_ATTEMPTS,
    base_delay_ms=CRITICAL_BASE_DELAY_MS,
)
