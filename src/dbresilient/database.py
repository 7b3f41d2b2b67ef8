r"""Database handle running operations with automatic retry.

``ResilientDatabase`` owns an explicitly passed SQLAlchemy engine and
runs every operation through the retry executor. Each attempt checks
out a fresh connection from the pool, so a connection dropped by the
server is not reused by the next attempt.

Example:
    ```pycon
    >>> from sqlalchemy import create_engine, text
    >>> from dbresilient import ResilientDatabase
    >>> with ResilientDatabase(create_engine("sqlite://")) as db:
    ...     db.run(lambda conn: conn.execute(text("SELECT 41 + 1")).scalar_one())
    ...
    42

    ```
"""

from __future__ import annotations

__all__ = ["ResilientDatabase"]

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import text

from dbresilient.core.config import (
    CRITICAL_POLICY,
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_POLICY,
)
from dbresilient.health import probe_connection
from dbresilient.retry import CallbackConfig, RetryExecutor
from dbresilient.retry.executor_core import resolve_operation_name

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType
    from typing import Self

    from sqlalchemy.engine import Connection, Engine

    from dbresilient.classification import ErrorClassifier
    from dbresilient.core.config import RetryPolicy
    from dbresilient.health import ProbeResult

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")

CONNECTION_STATS_QUERY = """
SELECT
    count(*) AS active_connections,
    current_setting('max_connections') AS max_connections
FROM pg_stat_activity
WHERE state = 'active'
"""


class ResilientDatabase:
    r"""Synchronous database handle with automatic retry.

    Args:
        engine: The SQLAlchemy engine owning the connection pool.
        policy: Policy used by ``run``, ``transaction``, ``query`` and
            ``execute_statement``. Defaults to ``DEFAULT_POLICY``.
        critical_policy: Policy used by ``run_critical``. Defaults to
            ``CRITICAL_POLICY``.
        classifier: Optional error classifier shared by every call.
        callback_config: Optional lifecycle callbacks shared by every
            call.

    Note:
        Operations must be safe to repeat. A write that reached the
        server before the connection dropped may be applied twice unless
        it runs inside ``transaction`` or is idempotent.

        ``RetryPolicy.connection_timeout_ms`` is not enforced here: a
        blocking driver call cannot be interrupted. Bound each attempt
        with the engine's ``pool_timeout`` and the driver's
        ``connect_timeout`` (both set by ``create_engine``), or use
        ``AsyncResilientDatabase``.
    """

    def __init__(
        self,
        engine: Engine,
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
        for candidate in (policy, critical_policy):
            if candidate.connection_timeout_ms != DEFAULT_CONNECTION_TIMEOUT_MS:
                logger.debug(
                    f"connection_timeout_ms={candidate.connection_timeout_ms} is not enforced "
                    "by the synchronous handle, configure the engine pool_timeout and the "
                    "driver connect_timeout instead"
                )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(engine={self._engine!r}, policy={self._policy}, "
            f"critical_policy={self._critical_policy})"
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.dispose()

    @property
    def engine(self) -> Engine:
        """The underlying engine, for operations that manage their own
        connections. Calls made on it directly are not retried."""
        return self._engine

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def critical_policy(self) -> RetryPolicy:
        return self._critical_policy

    def run(
        self,
        operation: Callable[[Connection], T],
        *,
        policy: RetryPolicy | None = None,
        operation_name: str | None = None,
    ) -> T:
        r"""Run an operation on a fresh connection, retrying transient
        failures.

        The operation is responsible for committing its writes.

        Args:
            operation: A callable receiving a ``Connection``.
            policy: Optional policy overriding the handle's default.
            operation_name: Optional name used in logs and callbacks.

        Returns:
            The value returned by the first successful attempt.

        Raises:
            RetryExhaustedError: If every attempt failed transiently.
            Exception: Any permanent error raised by the operation.
        """
        name = resolve_operation_name(operation, operation_name)

        def attempt() -> T:
            with self._engine.connect() as connection:
                return operation(connection)

        return self._executor(policy).execute(attempt, operation_name=name)

    def run_critical(
        self,
        operation: Callable[[Connection], T],
        *,
        operation_name: str | None = None,
    ) -> T:
        r"""Run an operation with the critical policy.

        Identical to ``run`` with ``policy=self.critical_policy``.
        """
        return self.run(operation, policy=self._critical_policy, operation_name=operation_name)

    def transaction(
        self,
        operation: Callable[[Connection], T],
        *,
        policy: RetryPolicy | None = None,
        operation_name: str | None = None,
    ) -> T:
        r"""Run an operation inside a transaction, retrying transient
        failures.

        Each attempt commits on success and rolls back on failure, so a
        retried attempt starts from a clean state.

        Args:
            operation: A callable receiving a ``Connection`` with an open
                transaction.
            policy: Optional policy overriding the handle's default.
            operation_name: Optional name used in logs and callbacks.

        Returns:
            The value returned by the first successful attempt.
        """
        name = resolve_operation_name(operation, operation_name)

        def attempt() -> T:
            with self._engine.begin() as connection:
                return operation(connection)

        return self._executor(policy).execute(attempt, operation_name=name)

    def query(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> list[dict[str, Any]]:
        r"""Run a read query and return its rows as dictionaries.

        Example:
            ```pycon
            >>> from sqlalchemy import create_engine
            >>> from dbresilient import ResilientDatabase
            >>> db = ResilientDatabase(create_engine("sqlite://"))
            >>> db.query("SELECT :value AS test", {"value": "resilience"})
            [{'test': 'resilience'}]

            ```
        """

        def fetch(connection: Connection) -> list[dict[str, Any]]:
            result = connection.execute(text(sql), params or {})
            return [dict(row) for row in result.mappings()]

        return self.run(fetch, policy=policy, operation_name="query")

    def execute_statement(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> int:
        r"""Run a write statement in a transaction and return the number
        of affected rows."""

        def write(connection: Connection) -> int:
            return connection.execute(text(sql), params or {}).rowcount

        return self.transaction(write, policy=policy, operation_name="execute_statement")

    def probe(self, timeout_ms: float | None = None) -> ProbeResult:
        r"""Probe connectivity with a bounded ``SELECT 1``.

        Not retried. Defaults to a 5000ms timeout.
        """
        if timeout_ms is None:
            return probe_connection(self._engine)
        return probe_connection(self._engine, timeout_ms)

    def health_check(self, timeout_ms: float | None = None) -> bool:
        r"""Return ``True`` if the database answered the probe in time."""
        return self.probe(timeout_ms).reachable

    def connection_stats(self) -> dict[str, Any]:
        r"""Return active and maximum connection counts.

        PostgreSQL only: reads ``pg_stat_activity``.
        """
        row = self.query(CONNECTION_STATS_QUERY)[0]
        return {
            "active_connections": int(row["active_connections"]),
            "max_connections": int(row["max_connections"]),
        }

    def dispose(self) -> None:
        r"""Close every pooled connection.

        The engine stays usable and opens new connections on demand.
        """
        self._engine.dispose()
        logger.debug("Database connection pool disposed")

    def _executor(self, policy: RetryPolicy | None) -> RetryExecutor:
        return RetryExecutor(
            policy if policy is not None else self._policy,
            self._callback_config,
            self._classifier,
        )
