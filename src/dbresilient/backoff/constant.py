r"""Constant backoff strategy."""

from __future__ import annotations

__all__ = ["ConstantBackoff"]

from dbresilient.backoff.base import BaseBackoffStrategy


class ConstantBackoff(BaseBackoffStrategy):
    """Constant/fixed backoff strategy.

    Returns the same delay for every retry, regardless of the attempt
    number. Useful for batch scripts that would rather poll a recovering
    database at a steady rate.

    Args:
        delay_ms: The fixed delay in milliseconds (default: 1000).

    Example:
        ```pycon
        >>> from dbresilient.backoff import ConstantBackoff
        >>> backoff = ConstantBackoff(delay_ms=250)
        >>> backoff.calculate(1)
        250.0
        >>> backoff.calculate(4)
        250.0

        ```
    """

    def __init__(self, delay_ms: float = 1000.0) -> None:
        if delay_ms < 0:
            msg = f"delay_ms must be non-negative, got {delay_ms}"
            raise ValueError(msg)

        self.delay_ms = delay_ms

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(delay_ms={self.delay_ms})"

    def calculate(self, attempt: int) -> float:  # noqa: ARG002
        """Calculate constant backoff delay.

        Args:
            attempt: The number of the attempt that failed (unused).

        Returns:
            The fixed delay value in milliseconds.
        """
        return float(self.delay_ms)
