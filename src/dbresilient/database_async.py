r"""Asynchronous database handle running operations with automatic retry.

``AsyncResilientDatabase`` mirrors ``ResilientDatabase`` on top of a
SQLAlchemy ``AsyncEngine``. Backoff delays are awaited, so a request
waiting for the database to come back does not block the other requests
served by the same event loop. Checking out a connection is bounded by
the policy's ``connection_timeout_ms``; a timeout counts as a transient
failure.
"""

from __future__ import annotations

__all__ = ["AsyncResilientDatabase"]

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import text

from dbresilient.core.config import CRITICAL_POLICY, DEFAULT_POLICY
from dbresilient.database import CONNECTION_STATS_QUERY
from dbresilient.health import probe_connection_async
from dbresilient.retry import AsyncRetryExecutor, CallbackConfig
from dbresilient.retry.executor_core import resolve_operation_name

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable
    from types import TracebackType
    from typing import Self

    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from dbresilient.classification import ErrorClassifier
    from dbresilient.core.config import RetryPolicy
    from dbresilient.health import ProbeResult

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncResilientDatabase:
    r"""Asynchronous database handle with automatic retry.

    Args:
        engine: The SQLAlchemy async engine owning the connection pool.
        policy: Policy used by ``run``, ``transaction``, ``query`` and
            ``execute_statement``. Defaults to ``DEFAULT_POLICY``.
        critical_policy: Policy used by ``run_critical``. Defaults to
            ``CRITICAL_POLICY``.
        classifier: Optional error classifier shared by every call.
        callback_config: Optional lifecycle callbacks shared by every
            call.

    Example:
        ```pycon
        >>> import asyncio
        >>> from sqlalchemy import text
        >>> from sqlalchemy.ext.asyncio import create_async_engine
        >>> from dbresilient import AsyncResilientDatabase
        >>> async def main():  # doctest: +SKIP
        ...     engine = create_async_engine("postgresql+asyncpg://localhost/app")
        ...     async with AsyncResilientDatabase(engine) as db:
        ...         return await db.query("SELECT 1 AS test")
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        policy: RetryPolicy = DEFAULT_POLICY,
        critical_policy: RetryPolicy = CRITICAL_POLICY,
        classifier: ErrorClassifier | None = None,
        callback_config: CallbackConfig | None = None,
    ) -> None:
        self._engine = engine
        self._policy = policy
        self._critical_policy = critical_policy
        self._classifier = classifier
        self._callback_config = callback_config if callback_config is not None else CallbackConfig()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(engine={self._engine!r}, policy={self._policy}, "
            f"critical_policy={self._critical_policy})"
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.dispose()

    @property
    def engine(self) -> AsyncEngine:
        """The underlying async engine. Calls made on it directly are not
        retried."""
        return self._engine

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def critical_policy(self) -> RetryPolicy:
        return self._critical_policy

    async def run(
        self,
        operation: Callable[[AsyncConnection], Awaitable[T]],
        *,
        policy: RetryPolicy | None = None,
        operation_name: str | None = None,
    ) -> T:
        r"""Run an operation on a fresh connection, retrying transient
        failures.

        Args:
            operation: A coroutine function receiving an
                ``AsyncConnection``. It is responsible for committing
                its writes.
            policy: Optional policy overriding the handle's default.
            operation_name: Optional name used in logs and callbacks.

        Returns:
            The value returned by the first successful attempt.

        Raises:
            RetryExhaustedError: If every attempt failed transiently.
            Exception: Any permanent error raised by the operation.
        """
        policy = policy if policy is not None else self._policy
        name = resolve_operation_name(operation, operation_name)

        async def attempt() -> T:
            async with self._connect(policy) as connection:
                return await operation(connection)

        return await self._executor(policy).execute(attempt, operation_name=name)

    async def run_critical(
        self,
        operation: Callable[[AsyncConnection], Awaitable[T]],
        *,
        operation_name: str | None = None,
    ) -> T:
        r"""Run an operation with the critical policy."""
        return await self.run(
            operation, policy=self._critical_policy, operation_name=operation_name
        )

    async def transaction(
        self,
        operation: Callable[[AsyncConnection], Awaitable[T]],
        *,
        policy: RetryPolicy | None = None,
        operation_name: str | None = None,
    ) -> T:
        r"""Run an operation inside a transaction, retrying transient
        failures.

        Each attempt commits on success and rolls back on failure.
        """
        policy = policy if policy is not None else self._policy
        name = resolve_operation_name(operation, operation_name)

        async def attempt() -> T:
            async with self._connect(policy) as connection, connection.begin():
                return await operation(connection)

        return await self._executor(policy).execute(attempt, operation_name=name)

    async def query(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> list[dict[str, Any]]:
        r"""Run a read query and return its rows as dictionaries."""

        async def fetch(connection: AsyncConnection) -> list[dict[str, Any]]:
            result = await connection.execute(text(sql), params or {})
            return [dict(row) for row in result.mappings()]

        return await self.run(fetch, policy=policy, operation_name="query")

    async def execute_statement(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> int:
        r"""Run a write statement in a transaction and return the number
        of affected rows."""

        async def write(connection: AsyncConnection) -> int:
            result = await connection.execute(text(sql), params or {})
            return result.rowcount

        return await self.transaction(write, policy=policy, operation_name="execute_statement")

    async def probe(self, timeout_ms: float | None = None) -> ProbeResult:
        r"""Probe connectivity with a bounded ``SELECT 1``. Not retried."""
        if timeout_ms is None:
            return await probe_connection_async(self._engine)
        return await probe_connection_async(self._engine, timeout_ms)

    async def health_check(self, timeout_ms: float | None = None) -> bool:
        r"""Return ``True`` if the database answered the probe in time."""
        return (await self.probe(timeout_ms)).reachable

    async def connection_stats(self) -> dict[str, Any]:
        r"""Return active and maximum connection counts (PostgreSQL only)."""
        row = (await self.query(CONNECTION_STATS_QUERY))[0]
        return {
            "active_connections": int(row["active_connections"]),
            "max_connections": int(row["max_connections"]),
        }

    async def dispose(self) -> None:
        r"""Close every pooled connection."""
        await self._engine.dispose()
        logger.debug("Async database connection pool disposed")

    @asynccontextmanager
    async def _connect(self, policy: RetryPolicy) -> AsyncGenerator[AsyncConnection, None]:
        connection = self._engine.connect()
        if policy.connection_timeout_ms > 0:
            await asyncio.wait_for(connection.start(), timeout=policy.connection_timeout_ms / 1000)
        else:
            await connection.start()
        try:
            yield connection
        finally:
            await connection.close()

    def _executor(self, policy: RetryPolicy) -> AsyncRetryExecutor:
        return AsyncRetryExecutor(policy, self._callback_config, self._classifier)
