r"""Parameter validation utilities for database retry policies.

This module provides validation functions for retry parameters to ensure
they meet the required constraints before being used in the retry loop.
"""

from __future__ import annotations

__all__ = ["validate_policy_params", "validate_timeout_ms"]


def validate_timeout_ms(timeout_ms: float) -> None:
    """Validate a timeout expressed in milliseconds.

    Args:
        timeout_ms: Maximum milliseconds to wait. Must be > 0.

    Raises:
        ValueError: If timeout_ms is <= 0.

    Example:
        ```pycon
        >>> from dbresilient.core.validation import validate_timeout_ms
        >>> validate_timeout_ms(5000)
        >>> validate_timeout_ms(0)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: timeout_ms must be > 0, got 0

        ```
    """
    if timeout_ms <= 0:
        msg = f"timeout_ms must be > 0, got {timeout_ms}"
        raise ValueError(msg)


def validate_policy_params(
    max_attempts: int,
    base_delay_ms: float = 0.0,
    backoff_multiplier: float = 1.0,
    connection_timeout_ms: float = 0.0,
    max_delay_ms: float | None = None,
) -> None:
    """Validate retry policy parameters.

    Args:
        max_attempts: Total number of attempts including the first one.
            Must be >= 1.
        base_delay_ms: Delay in milliseconds after the first failed
            attempt. Must be >= 0.
        backoff_multiplier: Growth factor between consecutive delays.
            Must be >= 1.
        connection_timeout_ms: Bound on a single attempt's connection
            acquisition. Must be >= 0 (0 disables the bound).
        max_delay_ms: Optional cap on individual delays. Must be > 0 if
            provided.

    Raises:
        TypeError: If max_attempts is not an integer.
        ValueError: If any parameter is out of range.

    Example:
        ```pycon
        >>> from dbresilient.core import validate_policy_params
        >>> validate_policy_params(max_attempts=3, base_delay_ms=1000, backoff_multiplier=2)
        >>> validate_policy_params(max_attempts=0)  # doctest: +SKIP

        ```
    """
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int):
        msg = f"max_attempts must be an integer, got {max_attempts!r}"
        raise TypeError(msg)
    if max_attempts < 1:
        msg = f"max_attempts must be >= 1, got {max_attempts}"
        raise ValueError(msg)
    if base_delay_ms < 0:
        msg = f"base_delay_ms must be >= 0, got {base_delay_ms}"
        raise ValueError(msg)
    if backoff_multiplier < 1:
        msg = f"backoff_multiplier must be >= 1, got {backoff_multiplier}"
        raise ValueError(msg)
    if connection_timeout_ms < 0:
        msg = f"connection_timeout_ms must be >= 0, got {connection_timeout_ms}"
        raise ValueError(msg)
    if max_delay_ms is not None and max_delay_ms <= 0:
        msg = f"max_delay_ms must be > 0, got {max_delay_ms}"
        raise ValueError(msg)
