r"""dbresilient - Resilient database operations with automatic retry logic.

This package wraps database operations against managed Postgres
providers whose connections drop intermittently. Failures are classified
as transient (closed connection, timeout, network reset, exhausted pool)
or permanent (constraint violation, validation error, not found);
transient ones are retried with deterministic exponential backoff, and
the call gives up after a bounded number of attempts.

Key Features:
    - Error classification from exception types, SQLSTATE/Prisma error
      codes and connection-closed messages
    - Deterministic exponential backoff, no jitter
    - Default policy (3 attempts, 1000ms base) and critical policy
      (5 attempts, 2000ms base)
    - A distinct ``RetryExhaustedError`` for budgets exhausted on
      transient errors; permanent errors propagate unchanged
    - Sync and async entry points built on SQLAlchemy engines
    - Callback/Event system and structured logging for observability
    - Bounded connectivity probe for health endpoints

Example:
    ```pycon
    >>> from sqlalchemy import create_engine, text
    >>> from dbresilient import ResilientDatabase, execute
    >>> execute(lambda: "ok")
    'ok'
    >>> db = ResilientDatabase(create_engine("sqlite://"))
    >>> db.run(lambda conn: conn.execute(text("SELECT 1")).scalar_one())
    1
    >>> db.health_check()
    True

    ```
"""

from __future__ import annotations

__all__ = [
    "CRITICAL_POLICY",
    "DEFAULT_POLICY",
    "AsyncResilientDatabase",
    "DatabaseOperationError",
    "DatabaseSettings",
    "ErrorClassifier",
    "ErrorKind",
    "ProbeResult",
    "ResilientDatabase",
    "RetryExhaustedError",
    "RetryPolicy",
    "TransientDatabaseError",
    "__version__",
    "classify_error",
    "execute",
    "execute_async",
    "execute_critical",
    "execute_critical_async",
    "is_retryable",
    "probe_connection",
    "probe_connection_async",
]

from importlib.metadata import PackageNotFoundError, version

from dbresilient.classification import ErrorClassifier, ErrorKind, classify_error, is_retryable
from dbresilient.core.config import CRITICAL_POLICY, DEFAULT_POLICY, RetryPolicy
from dbresilient.database import ResilientDatabase
from dbresilient.database_async import AsyncResilientDatabase
from dbresilient.exceptions import (
    DatabaseOperationError,
    RetryExhaustedError,
    TransientDatabaseError,
)
from dbresilient.execute import (
    execute,
    execute_async,
    execute_critical,
    execute_critical_async,
)
from dbresilient.health import ProbeResult, probe_connection, probe_connection_async
from dbresilient.settings import DatabaseSettings

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
