r"""Asynchronous retry executor for database operations.

This module provides the AsyncRetryExecutor class that runs an async
database operation with error classification and exponential backoff.
Backoff delays use ``asyncio.sleep`` so other requests served by the
same event loop keep running while a call waits.
"""

from __future__ import annotations

__all__ = ["AsyncRetryExecutor"]

import asyncio
import logging
import time
from typing import TYPE_CHECKING, TypeVar

from dbresilient.classification import ErrorKind
from dbresilient.retry.config import CallbackConfig
from dbresilient.retry.decider import RetryDecider
from dbresilient.retry.executor_core import (
    create_exhausted_error,
    log_retry,
    resolve_operation_name,
)
from dbresilient.retry.manager import CallbackManager
from dbresilient.retry.strategy import RetryStrategy

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dbresilient.classification import ErrorClassifier
    from dbresilient.core.config import RetryPolicy

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncRetryExecutor:
    """Executes async database operations with automatic retry logic.

    The executor orchestrates the following components:
    - RetryStrategy: Calculates backoff delays between attempts
    - RetryDecider: Classifies failures and checks the remaining budget
    - CallbackManager: Invokes user-defined callbacks at lifecycle events

    Concurrent calls are fully independent: the executor holds no
    mutable state and takes no lock.

    Args:
        policy: Retry budget and backoff schedule.
        callback_config: Optional lifecycle callbacks.
        classifier: Optional error classifier. Defaults to the built-in
            rules.

    Example:
        ```pycon
        >>> import asyncio
        >>> from dbresilient.core import RetryPolicy
        >>> from dbresilient.retry import AsyncRetryExecutor
        >>> async def fetch():
        ...     return "ok"
        ...
        >>> executor = AsyncRetryExecutor(RetryPolicy(max_attempts=3))
        >>> asyncio.run(executor.execute(fetch))
        'ok'

        ```
    """

    def __init__(
        self,
        policy: RetryPolicy,
        callback_config: CallbackConfig | None = None,
        classifier: ErrorClassifier | None = None,
    ) -> None:
        self.policy = policy
        self.strategy: RetryStrategy = RetryStrategy(policy)
        self.decider: RetryDecider = RetryDecider(classifier)
        self.callbacks: CallbackManager = CallbackManager(
            callback_config if callback_config is not None else CallbackConfig()
        )

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        operation_name: str | None = None,
    ) -> T:
        """Execute the async operation with automatic retry logic.

        The operation is attempted up to ``policy.max_attempts`` times:
        - Success: the result is returned immediately
        - Permanent error: re-raised unchanged, without delay
        - Transient error with attempts left: wait, then try again
        - Transient error on the final attempt: RetryExhaustedError

        Cancellation (``asyncio.CancelledError``) is never retried and
        propagates as is, including during a backoff delay.

        Args:
            operation: A callable taking no argument and returning an
                awaitable.
            operation_name: Optional name used in logs and callbacks.

        Returns:
            The value returned by the first successful attempt.

        Raises:
            RetryExhaustedError: If every attempt failed transiently.
                The last underlying error is chained as the cause.
            Exception: Any permanent error raised by the operation.
        """
        name = resolve_operation_name(operation, operation_name)
        max_attempts = self.policy.max_attempts
        start_time = time.time()

        for attempt in range(1, max_attempts + 1):
            self.callbacks.on_attempt(name, attempt, max_attempts)
            try:
                result = await operation()
            except Exception as exc:
                should_retry, kind = self.decider.should_retry(exc, attempt, max_attempts)
                if kind is ErrorKind.PERMANENT:
                    logger.debug(f"{name}: non-retryable {type(exc).__name__} on attempt {attempt}")
                    self.callbacks.on_failure(
                        name, attempt, max_attempts, exc, kind, False, start_time
                    )
                    raise
                if not should_retry:
                    error = create_exhausted_error(
                        operation=name,
                        attempts=attempt,
                        max_attempts=max_attempts,
                        last_error=exc,
                        start_time=start_time,
                    )
                    self.callbacks.on_failure(
                        name, attempt, max_attempts, error, kind, True, start_time
                    )
                    raise error from exc

                delay_ms = self.strategy.calculate_delay(attempt)
                log_retry(
                    logger,
                    operation=name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay_ms=delay_ms,
                    error=exc,
                    error_kind=kind,
                )
                self.callbacks.on_retry(name, attempt, max_attempts, delay_ms, exc, kind)
                await asyncio.sleep(delay_ms / 1000)
            else:
                self.callbacks.on_success(name, attempt, max_attempts, result, start_time)
                return result

        # The final attempt either returns or raises
        msg = f"retry loop for {name} exited without a result"  # pragma: no cover
        raise RuntimeError(msg)  # pragma: no cover
