r"""Callback types and data structures for observability.

This module lets callers hook into the retry lifecycle of a database
operation for logging, metrics and alerting, without matching log
strings.

The callback system provides four lifecycle hooks:
- on_attempt: Called before each attempt
- on_retry: Called after a transient failure, before the backoff delay
- on_success: Called when an attempt succeeds
- on_failure: Called when the call fails for good (permanent error or
  exhausted budget)

Example:
    ```pycon
    >>> from dbresilient import execute
    >>> from dbresilient.callbacks import RetryInfo
    >>> def log_retry(info: RetryInfo) -> None:
    ...     print(f"Retry {info.attempt}/{info.max_attempts} in {info.delay_ms}ms")
    ...
    >>> execute(lambda: 42, on_retry=log_retry)
    42

    ```
"""

from __future__ import annotations

__all__ = [
    "AttemptInfo",
    "FailureInfo",
    "RetryInfo",
    "SuccessInfo",
    "invoke_on_attempt",
    "invoke_on_failure",
    "invoke_on_retry",
    "invoke_on_success",
]

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from dbresilient.classification import ErrorKind


@dataclass
class AttemptInfo:
    """Information passed to on_attempt callback.

    Attributes:
        operation: The name of the operation.
        attempt: The current attempt number (1-indexed).
        max_attempts: Number of attempts allowed by the policy.
    """

    operation: str
    attempt: int
    max_attempts: int


@dataclass
class RetryInfo:
    """Information passed to on_retry callback.

    Attributes:
        operation: The name of the operation.
        attempt: The number of the attempt that failed (1-indexed).
        max_attempts: Number of attempts allowed by the policy.
        delay_ms: The delay in milliseconds applied before the next attempt.
        error: The exception that triggered the retry.
        error_kind: The classified kind of the error.
    """

    operation: str
    attempt: int
    max_attempts: int
    delay_ms: float
    error: BaseException
    error_kind: ErrorKind


@dataclass
class SuccessInfo:
    """Information passed to on_success callback.

    Attributes:
        operation: The name of the operation.
        attempt: The attempt number that succeeded (1-indexed).
        max_attempts: Number of attempts allowed by the policy.
        result: The value returned by the operation.
        total_time: Total seconds spent on all attempts including backoff.
    """

    operation: str
    attempt: int
    max_attempts: int
    result: Any
    total_time: float


@dataclass
class FailureInfo:
    """Information passed to on_failure callback.

    Attributes:
        operation: The name of the operation.
        attempt: The final attempt number (1-indexed).
        max_attempts: Number of attempts allowed by the policy.
        error: The exception propagated to the caller.
        error_kind: The classified kind of the last underlying error.
        exhausted: Whether the budget was exhausted on transient errors.
        total_time: Total seconds spent on all attempts including backoff.
    """

    operation: str
    attempt: int
    max_attempts: int
    error: BaseException
    error_kind: ErrorKind
    exhausted: bool
    total_time: float


def invoke_on_attempt(
    on_attempt: Callable[[AttemptInfo], None] | None,
    *,
    operation: str,
    attempt: int,
    max_attempts: int,
) -> None:
    """Invoke on_attempt callback if provided.

    Args:
        on_attempt: Optional callback to invoke before each attempt.
        operation: The name of the operation.
        attempt: The current attempt number (1-indexed).
        max_attempts: Number of attempts allowed by the policy.
    """
    if on_attempt is not None:
        on_attempt(AttemptInfo(operation=operation, attempt=attempt, max_attempts=max_attempts))


def invoke_on_retry(
    on_retry: Callable[[RetryInfo], None] | None,
    *,
    operation: str,
    attempt: int,
    max_attempts: int,
    delay_ms: float,
    error: BaseException,
    error_kind: ErrorKind,
) -> None:
    """Invoke on_retry callback if provided.

    Args:
        on_retry: Optional callback to invoke before each backoff delay.
        operation: The name of the operation.
        attempt: The number of the attempt that failed (1-indexed).
        max_attempts: Number of attempts allowed by the policy.
        delay_ms: The delay in milliseconds before the next attempt.
        error: The exception that triggered the retry.
        error_kind: The classified kind of the error.
    """
    if on_retry is not None:
        on_retry(
            RetryInfo(
                operation=operation,
                attempt=attempt,
                max_attempts=max_attempts,
                delay_ms=delay_ms,
                error=error,
                error_kind=error_kind,
            )
        )


def invoke_on_success(
    on_success: Callable[[SuccessInfo], None] | None,
    *,
    operation: str,
    attempt: int,
    max_attempts: int,
    result: Any,
    start_time: float,
) -> None:
    """Invoke on_success callback if provided.

    Args:
        on_success: Optional callback to invoke when an attempt succeeds.
        operation: The name of the operation.
        attempt: The attempt number that succeeded (1-indexed).
        max_attempts: Number of attempts allowed by the policy.
        result: The value returned by the operation.
        start_time: The timestamp when the call started.
    """
    if on_success is not None:
        on_success(
            SuccessInfo(
                operation=operation,
                attempt=attempt,
                max_attempts=max_attempts,
                result=result,
                total_time=time.time() - start_time,
            )
        )


def invoke_on_failure(
    on_failure: Callable[[FailureInfo], None] | None,
    *,
    operation: str,
    attempt: int,
    max_attempts: int,
    error: BaseException,
    error_kind: ErrorKind,
    exhausted: bool,
    start_time: float,
) -> None:
    """Invoke on_failure callback if provided.

    Args:
        on_failure: Optional callback to invoke when the call fails.
        operation: The name of the operation.
        attempt: The final attempt number (1-indexed).
        max_attempts: Number of attempts allowed by the policy.
        error: The exception propagated to the caller.
        error_kind: The classified kind of the last underlying error.
        exhausted: Whether the budget was exhausted on transient errors.
        start_time: The timestamp when the call started.
    """
    if on_failure is not None:
        on_failure(
            FailureInfo(
                operation=operation,
                attempt=attempt,
                max_attempts=max_attempts,
                error=error,
                error_kind=error_kind,
                exhausted=exhausted,
                total_time=time.time() - start_time,
            )
        )
