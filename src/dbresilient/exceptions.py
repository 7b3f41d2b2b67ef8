r"""Exceptions raised by resilient database operations.

The retry wrapper never swallows an error. Permanent failures
(constraint violations, validation errors, not-found) are re-raised
unchanged on their first occurrence. Transient failures that survive
the whole retry budget are surfaced as ``RetryExhaustedError`` so that
callers can tell "gave up after N tries" apart from "the operation
itself is invalid".
"""

from __future__ import annotations

__all__ = ["DatabaseOperationError", "RetryExhaustedError", "TransientDatabaseError"]


class DatabaseOperationError(Exception):
    """Base exception for errors raised by this package.

    Args:
        message: A descriptive error message.
        operation: Optional name of the operation that failed.
        cause: Optional underlying exception.

    Example:
        ```pycon
        >>> from dbresilient.exceptions import DatabaseOperationError
        >>> raise DatabaseOperationError("query failed", operation="get_categories")
        Traceback (most recent call last):
            ...
        dbresilient.exceptions.DatabaseOperationError: query failed

        ```
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.cause = cause


class TransientDatabaseError(DatabaseOperationError):
    """Error that callers raise to request a retry.

    Raising this from an operation marks the failure as transient
    regardless of the classifier's rules, e.g. when a driver reports a
    dropped connection in a way the classifier does not recognize.

    Example:
        ```pycon
        >>> from dbresilient.exceptions import TransientDatabaseError
        >>> err = TransientDatabaseError("replica lagging")
        >>> err.message
        'replica lagging'

        ```
    """


class RetryExhaustedError(DatabaseOperationError):
    """Error raised when every allowed attempt failed transiently.

    The last underlying error is available as ``last_error`` and is also
    chained as ``__cause__``.

    Args:
        message: A descriptive error message.
        attempts: Number of attempts performed.
        max_attempts: Number of attempts allowed by the policy.
        last_error: The error observed on the final attempt.
        operation: Optional name of the operation that failed.
        total_time: Seconds spent on all attempts including backoff.

    Example:
        ```pycon
        >>> from dbresilient.exceptions import RetryExhaustedError
        >>> err = RetryExhaustedError(
        ...     "gave up",
        ...     attempts=3,
        ...     max_attempts=3,
        ...     last_error=ConnectionResetError("reset by peer"),
        ... )
        >>> err.attempts, err.error_kind
        (3, 'transient')

        ```
    """

    error_kind = "transient"

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        max_attempts: int,
        last_error: BaseException,
        operation: str | None = None,
        total_time: float | None = None,
    ) -> None:
        super().__init__(message, operation=operation, cause=last_error)
        self.attempts = attempts
        self.max_attempts = max_attempts
        self.last_error = last_error
        self.total_time = total_time
