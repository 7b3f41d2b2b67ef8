r"""Shared core logic for retry executors.

This module provides helper functions used by both the synchronous and
asynchronous retry executors: operation naming, the per-retry log entry
and the construction of the exhaustion error.
"""

from __future__ import annotations

__all__ = [
    "RETRY_LOG_EVENT",
    "create_exhausted_error",
    "log_retry",
    "resolve_operation_name",
]

import logging
import time
from typing import TYPE_CHECKING, Any

from dbresilient.exceptions import RetryExhaustedError
from dbresilient.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Callable

    from dbresilient.classification import ErrorKind

# Value of the ``event`` field carried by every retry log entry
RETRY_LOG_EVENT = "db_retry"


def resolve_operation_name(operation: Callable[..., Any], name: str | None = None) -> str:
    """Return a human-readable name for an operation.

    Args:
        operation: The callable being executed.
        name: Optional explicit name, returned as is when provided.

    Returns:
        The explicit name, else the callable's qualified name.

    Example:
        ```pycon
        >>> from dbresilient.retry.executor_core import resolve_operation_name
        >>> def get_categories():
        ...     return []
        ...
        >>> resolve_operation_name(get_categories)
        'get_categories'
        >>> resolve_operation_name(get_categories, "categories.list")
        'categories.list'

        ```
    """
    if name is not None:
        return name
    return getattr(operation, "__qualname__", None) or type(operation).__name__


def log_retry(
    logger: logging.Logger,
    *,
    operation: str,
    attempt: int,
    max_attempts: int,
    delay_ms: float,
    error: BaseException,
    error_kind: ErrorKind,
) -> None:
    """Emit the log entry recording a retry.

    Args:
        logger: Logger to use.
        operation: The name of the operation.
        attempt: The number of the attempt that failed (1-indexed).
        max_attempts: Number of attempts allowed by the policy.
        delay_ms: Delay in milliseconds before the next attempt.
        error: Exception that triggered the retry.
        error_kind: The classified kind of the error.
    """
    log_structured(
        logger,
        logging.WARNING,
        f"Database operation {operation} failed (attempt {attempt}/{max_attempts}), "
        f"retrying in {delay_ms:.0f}ms: {type(error).__name__}",
        event=RETRY_LOG_EVENT,
        operation=operation,
        attempt=attempt,
        max_attempts=max_attempts,
        delay_ms=delay_ms,
        error_kind=error_kind.value,
        error_type=type(error).__name__,
    )


def create_exhausted_error(
    *,
    operation: str,
    attempts: int,
    max_attempts: int,
    last_error: BaseException,
    start_time: float,
) -> RetryExhaustedError:
    """Create the error raised when the retry budget is exhausted.

    Args:
        operation: The name of the operation.
        attempts: Number of attempts performed.
        max_attempts: Number of attempts allowed by the policy.
        last_error: The error observed on the final attempt.
        start_time: Timestamp when the call started.

    Returns:
        RetryExhaustedError carrying the last underlying error.
    """
    return RetryExhaustedError(
        f"Database operation {operation} failed after {attempts} attempts: "
        f"{type(last_error).__name__}: {last_error}",
        attempts=attempts,
        max_attempts=max_attempts,
        last_error=last_error,
        operation=operation,
        total_time=time.time() - start_time,
    )
