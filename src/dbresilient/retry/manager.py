r"""Callback manager for orchestrating retry lifecycle events.

This module provides the CallbackManager class that handles invocation
of user-defined callbacks at various points in the retry lifecycle.
"""

from __future__ import annotations

__all__ = ["CallbackManager"]

from typing import TYPE_CHECKING, Any

from dbresilient.callbacks import (
    invoke_on_attempt,
    invoke_on_failure,
    invoke_on_retry,
    invoke_on_success,
)

if TYPE_CHECKING:
    from dbresilient.classification import ErrorKind
    from dbresilient.retry.config import CallbackConfig


class CallbackManager:
    """Manages callback invocations during the retry lifecycle.

    Attributes:
        callbacks: Configuration containing callback functions for lifecycle events.
    """

    def __init__(self, callbacks: CallbackConfig) -> None:
        self.callbacks = callbacks

    def on_attempt(self, operation: str, attempt: int, max_attempts: int) -> None:
        """Invoke on_attempt callback.

        Args:
            operation: The name of the operation.
            attempt: The current attempt number (1-indexed).
            max_attempts: Number of attempts allowed by the policy.
        """
        invoke_on_attempt(
            self.callbacks.on_attempt,
            operation=operation,
            attempt=attempt,
            max_attempts=max_attempts,
        )

    def on_retry(
        self,
        operation: str,
        attempt: int,
        max_attempts: int,
        delay_ms: float,
        error: BaseException,
        error_kind: ErrorKind,
    ) -> None:
        """Invoke on_retry callback.

        Args:
            operation: The name of the operation.
            attempt: The number of the attempt that failed (1-indexed).
            max_attempts: Number of attempts allowed by the policy.
            delay_ms: Delay in milliseconds before the next attempt.
            error: Exception that triggered the retry.
            error_kind: The classified kind of the error.
        """
        invoke_on_retry(
            self.callbacks.on_retry,
            operation=operation,
            attempt=attempt,
            max_attempts=max_attempts,
            delay_ms=delay_ms,
            error=error,
            error_kind=error_kind,
        )

    def on_success(
        self,
        operation: str,
        attempt: int,
        max_attempts: int,
        result: Any,
        start_time: float,
    ) -> None:
        """Invoke on_success callback.

        Args:
            operation: The name of the operation.
            attempt: Attempt number that succeeded (1-indexed).
            max_attempts: Number of attempts allowed by the policy.
            result: The value returned by the operation.
            start_time: Timestamp when the call started.
        """
        invoke_on_success(
            self.callbacks.on_success,
            operation=operation,
            attempt=attempt,
            max_attempts=max_attempts,
            result=result,
            start_time=start_time,
        )

    def on_failure(
        self,
        operation: str,
        attempt: int,
        max_attempts: int,
        error: BaseException,
        error_kind: ErrorKind,
        exhausted: bool,
        start_time: float,
    ) -> None:
        """Invoke on_failure callback.

        Args:
            operation: The name of the operation.
            attempt: Final attempt number (1-indexed).
            max_attempts: Number of attempts allowed by the policy.
            error: The error propagated to the caller.
            error_kind: The classified kind of the last underlying error.
            exhausted: Whether the budget was exhausted on transient errors.
            start_time: Timestamp when the call started.
        """
        invoke_on_failure(
            self.callbacks.on_failure,
            operation=operation,
            attempt=attempt,
            max_attempts=max_attempts,
            error=error,
            error_kind=error_kind,
            exhausted=exhausted,
            start_time=start_time,
        )
