r"""Function entry points running an operation with automatic retry.

``execute`` uses the default policy (3 attempts, 1000ms base delay) and
``execute_critical`` the critical policy (5 attempts, 2000ms base
delay). Both have awaitable twins for coroutine operations.
"""

from __future__ import annotations

__all__ = ["execute", "execute_async", "execute_critical", "execute_critical_async"]

from typing import TYPE_CHECKING, TypeVar

from dbresilient.core.config import CRITICAL_POLICY, DEFAULT_POLICY
from dbresilient.retry import AsyncRetryExecutor, CallbackConfig, RetryExecutor

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dbresilient.callbacks import AttemptInfo, FailureInfo, RetryInfo, SuccessInfo
    from dbresilient.classification import ErrorClassifier
    from dbresilient.core.config import RetryPolicy

T = TypeVar("T")


def execute(
    operation: Callable[[], T],
    policy: RetryPolicy | None = None,
    *,
    classifier: ErrorClassifier | None = None,
    operation_name: str | None = None,
    on_attempt: Callable[[AttemptInfo], None] | None = None,
    on_retry: Callable[[RetryInfo], None] | None = None,
    on_success: Callable[[SuccessInfo], None] | None = None,
    on_failure: Callable[[FailureInfo], None] | None = None,
) -> T:
    r"""Run a database operation, retrying transient failures.

    Args:
        operation: A callable taking no argument. It must be safe to run
            more than once.
        policy: Retry budget and backoff schedule. Defaults to
            ``DEFAULT_POLICY``.
        classifier: Optional error classifier. Defaults to the built-in
            rules.
        operation_name: Optional name used in logs and callbacks.
        on_attempt: Optional callback called before each attempt.
        on_retry: Optional callback called before each backoff delay.
        on_success: Optional callback called when an attempt succeeds.
        on_failure: Optional callback called when the call fails.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        RetryExhaustedError: If every attempt failed transiently.
        Exception: Any permanent error raised by the operation, unchanged.

    Example:
        ```pycon
        >>> from dbresilient import execute
        >>> from dbresilient.core import RetryPolicy
        >>> execute(lambda: [1, 2, 3])
        [1, 2, 3]
        >>> execute(lambda: "done", RetryPolicy(max_attempts=1))
        'done'

        ```
    """
    executor = RetryExecutor(
        policy if policy is not None else DEFAULT_POLICY,
        CallbackConfig(
            on_attempt=on_attempt,
            on_retry=on_retry,
            on_success=on_success,
            on_failure=on_failure,
        ),
        classifier,
    )
    return executor.execute(operation, operation_name=operation_name)


def execute_critical(
    operation: Callable[[], T],
    *,
    classifier: ErrorClassifier | None = None,
    operation_name: str | None = None,
    on_attempt: Callable[[AttemptInfo], None] | None = None,
    on_retry: Callable[[RetryInfo], None] | None = None,
    on_success: Callable[[SuccessInfo], None] | None = None,
    on_failure: Callable[[FailureInfo], None] | None = None,
) -> T:
    r"""Run a critical database operation with the larger retry budget.

    Identical to ``execute`` with ``CRITICAL_POLICY``.

    Example:
        ```pycon
        >>> from dbresilient import execute_critical
        >>> execute_critical(lambda: "activity created")
        'activity created'

        ```
    """
    return execute(
        operation,
        CRITICAL_POLICY,
        classifier=classifier,
        operation_name=operation_name,
        on_attempt=on_attempt,
        on_retry=on_retry,
        on_success=on_success,
        on_failure=on_failure,
    )


async def execute_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    classifier: ErrorClassifier | None = None,
    operation_name: str | None = None,
    on_attempt: Callable[[AttemptInfo], None] | None = None,
    on_retry: Callable[[RetryInfo], None] | None = None,
    on_success: Callable[[SuccessInfo], None] | None = None,
    on_failure: Callable[[FailureInfo], None] | None = None,
) -> T:
    r"""Run an async database operation, retrying transient failures.

    Backoff delays are awaited with ``asyncio.sleep`` and do not block
    the event loop.

    Args:
        operation: A callable taking no argument and returning an
            awaitable. It must be safe to run more than once.
        policy: Retry budget and backoff schedule. Defaults to
            ``DEFAULT_POLICY``.
        classifier: Optional error classifier.
        operation_name: Optional name used in logs and callbacks.
        on_attempt: Optional callback called before each attempt.
        on_retry: Optional callback called before each backoff delay.
        on_success: Optional callback called when an attempt succeeds.
        on_failure: Optional callback called when the call fails.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        RetryExhaustedError: If every attempt failed transiently.
        Exception: Any permanent error raised by the operation, unchanged.

    Example:
        ```pycon
        >>> import asyncio
        >>> from dbresilient import execute_async
        >>> async def count_users():
        ...     return 7
        ...
        >>> asyncio.run(execute_async(count_users))
        7

        ```
    """
    executor = AsyncRetryExecutor(
        policy if policy is not None else DEFAULT_POLICY,
        CallbackConfig(
            on_attempt=on_attempt,
            on_retry=on_retry,
            on_success=on_success,
            on_failure=on_failure,
        ),
        classifier,
    )
    return await executor.execute(operation, operation_name=operation_name)


async def execute_critical_async(
    operation: Callable[[], Awaitable[T]],
    *,
    classifier: ErrorClassifier | None = None,
    operation_name: str | None = None,
    on_attempt: Callable[[AttemptInfo], None] | None = None,
    on_retry: Callable[[RetryInfo], None] | None = None,
    on_success: Callable[[SuccessInfo], None] | None = None,
    on_failure: Callable[[FailureInfo], None] | None = None,
) -> T:
    r"""Run a critical async database operation with the larger retry
    budget.

    Identical to ``execute_async`` with ``CRITICAL_POLICY``.
    """
    return await execute_async(
        operation,
        CRITICAL_POLICY,
        classifier=classifier,
        operation_name=operation_name,
        on_attempt=on_attempt,
        on_retry=on_retry,
        on_success=on_success,
        on_failure=on_failure,
    )
