r"""Exponential backoff strategy."""

from __future__ import annotations

__all__ = ["ExponentialBackoff"]

import math

from dbresilient.backoff.base import BaseBackoffStrategy


class ExponentialBackoff(BaseBackoffStrategy):
    """Exponential backoff strategy.

    Calculates delay as: base_delay_ms * (multiplier ** (attempt - 1)),
    with optional max_delay_ms cap.

    This is the default backoff strategy. The sequence is deterministic:
    no jitter is applied.

    Args:
        base_delay_ms: The delay after the first failed attempt in
            milliseconds (default: 1000).
        multiplier: Growth factor between consecutive delays (default: 2).
        max_delay_ms: Optional maximum delay cap in milliseconds.

    Example:
        ```pycon
        >>> from dbresilient.backoff import ExponentialBackoff
        >>> backoff = ExponentialBackoff(base_delay_ms=1000)
        >>> backoff.calculate(1)  # Before the second attempt
        1000.0
        >>> backoff.calculate(2)  # Before the third attempt
        2000.0
        >>> backoff.calculate(3)
        4000.0
        >>> backoff = ExponentialBackoff(base_delay_ms=1000, max_delay_ms=5000)
        >>> backoff.calculate(10)  # Would be 512000.0, but capped
        5000.0

        ```
    """

    def __init__(
        self,
        base_delay_ms: float = 1000.0,
        multiplier: float = 2.0,
        max_delay_ms: float | None = None,
    ) -> None:
        if base_delay_ms < 0:
            msg = f"base_delay_ms must be non-negative, got {base_delay_ms}"
            raise ValueError(msg)
        if multiplier < 1:
            msg = f"multiplier must be >= 1, got {multiplier}"
            raise ValueError(msg)
        if max_delay_ms is not None and max_delay_ms <= 0:
            msg = f"max_delay_ms must be positive if specified, got {max_delay_ms}"
            raise ValueError(msg)

        self.base_delay_ms = base_delay_ms
        self.multiplier = multiplier
        self.max_delay_ms = max_delay_ms

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(base_delay_ms={self.base_delay_ms}, "
            f"multiplier={self.multiplier}, max_delay_ms={self.max_delay_ms})"
        )

    def calculate(self, attempt: int) -> float:
        """Calculate exponential backoff delay.

        Args:
            attempt: The number of the attempt that failed (1-indexed).

        Returns:
            The calculated delay: base_delay_ms * (multiplier ** (attempt - 1)),
            capped at max_delay_ms if set.
        """
        try:
            delay = float(self.base_delay_ms * (self.multiplier ** (attempt - 1)))
        except OverflowError:
            # Far past any cap, the float power no longer fits
            delay = math.inf if self.base_delay_ms else 0.0
        if self.max_delay_ms is not None:
            delay = min(delay, self.max_delay_ms)
        return delay
