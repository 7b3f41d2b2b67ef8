r"""Classification of database failures into transient and permanent.

A transient failure is expected to go away if the operation is simply
tried again: a dropped connection, a timeout, a connection refused while
the managed database scales up, an exhausted pool. Everything else
(constraint violations, not-found, validation and authorization errors)
is permanent and must reach the caller on its first occurrence.

Example:
    ```pycon
    >>> from dbresilient.classification import ErrorKind, classify_error
    >>> classify_error(RuntimeError("connection: Error { kind: Closed, cause: None }"))
    <ErrorKind.TRANSIENT: 'transient'>
    >>> classify_error(ValueError("phone number is invalid"))
    <ErrorKind.PERMANENT: 'permanent'>

    ```
"""

from __future__ import annotations

__all__ = [
    "CONNECTION_ERROR_CODES",
    "CONNECTION_MESSAGE_PATTERNS",
    "CONNECTION_SQLSTATE_CLASSES",
    "TRANSIENT_EXCEPTION_TYPES",
    "ErrorClassifier",
    "ErrorKind",
    "classify_error",
    "extract_error_code",
    "is_retryable",
    "matches_connection_message",
]

import asyncio
import logging
import re
from enum import Enum
from typing import TYPE_CHECKING

import httpx
from sqlalchemy import exc as sa_exc

from dbresilient.exceptions import DatabaseOperationError, TransientDatabaseError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger: logging.Logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """Classified kind of a failed attempt.

    Attributes:
        TRANSIENT: The failure is expected to clear on retry.
        PERMANENT: Retrying cannot help; propagate immediately.
    """

    TRANSIENT = "transient"
    PERMANENT = "permanent"


# Exception types that always denote a connection-level failure
# ConnectionError covers reset, refused, aborted and broken pipe
# TimeoutError also covers socket.timeout; asyncio.TimeoutError is distinct before 3.11
TRANSIENT_EXCEPTION_TYPES: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
)

# Driver error codes that denote a connection-level failure
# 57P01: admin_shutdown, 57P02: crash_shutdown, 57P03: cannot_connect_now
# 53300: too_many_connections
# P1001: can't reach database server, P1002: server timed out
# P1008: operations timed out, P1017: server closed the connection
# P2024: timed out fetching a connection from the pool
CONNECTION_ERROR_CODES: frozenset[str] = frozenset(
    {
        "57P01",
        "57P02",
        "57P03",
        "53300",
        "P1001",
        "P1002",
        "P1008",
        "P1017",
        "P2024",
    }
)

# SQLSTATE class 08: connection exception
CONNECTION_SQLSTATE_CLASSES: tuple[str, ...] = ("08",)

CONNECTION_MESSAGE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"kind:\s*Closed,\s*cause:\s*None",
        r"server closed the connection unexpectedly",
        r"connection (?:is |was |has been |already )?closed",
        r"terminating connection",
        r"connection reset",
        r"connection refused",
        r"could not connect to server",
        r"timed out",
    )
)


def extract_error_code(exc: BaseException) -> str | None:
    """Extract a driver error code from an exception.

    The code is looked up on the ``sqlstate`` (psycopg 3, asyncpg),
    ``pgcode`` (psycopg2) and ``code`` attributes, in that order.

    Args:
        exc: The exception to inspect.

    Returns:
        The error code as a string, or ``None`` if none is set.

    Example:
        ```pycon
        >>> from dbresilient.classification import extract_error_code
        >>> class DriverError(Exception):
        ...     pgcode = "08006"
        ...
        >>> extract_error_code(DriverError())
        '08006'
        >>> extract_error_code(ValueError()) is None
        True

        ```
    """
    for attr in ("sqlstate", "pgcode", "code"):
        code = getattr(exc, attr, None)
        if code:
            return str(code)
    return None


class ErrorClassifier:
    """Classifies exceptions raised by database operations.

    Args:
        extra_codes: Additional driver error codes to treat as transient.
        retry_if: Optional predicate consulted before the built-in rules.
            It returns ``True`` (transient), ``False`` (permanent) or
            ``None`` to fall through to the built-in rules.

    Example:
        ```pycon
        >>> from dbresilient.classification import ErrorClassifier, ErrorKind
        >>> class DriverError(Exception):
        ...     def __init__(self, code):
        ...         self.code = code
        ...
        >>> classifier = ErrorClassifier(extra_codes=("40001",))
        >>> classifier.classify(DriverError("40001"))
        <ErrorKind.TRANSIENT: 'transient'>
        >>> classifier.classify(DriverError("23505"))
        <ErrorKind.PERMANENT: 'permanent'>

        ```
    """

    def __init__(
        self,
        extra_codes: Iterable[str] = (),
        retry_if: Callable[[BaseException], bool | None] | None = None,
    ) -> None:
        self.codes: frozenset[str] = CONNECTION_ERROR_CODES | frozenset(extra_codes)
        self.retry_if = retry_if

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(codes={sorted(self.codes)}, retry_if={self.retry_if})"

    def classify(self, exc: BaseException) -> ErrorKind:
        """Classify an exception.

        Args:
            exc: The exception raised by an attempt.

        Returns:
            ``ErrorKind.TRANSIENT`` if the attempt may be retried,
            otherwise ``ErrorKind.PERMANENT``.
        """
        if self.retry_if is not None:
            decision = self.retry_if(exc)
            if decision is not None:
                return ErrorKind.TRANSIENT if decision else ErrorKind.PERMANENT
        if self._is_transient(exc):
            return ErrorKind.TRANSIENT
        return ErrorKind.PERMANENT

    def is_retryable(self, exc: BaseException) -> bool:
        """Return ``True`` if the exception is classified as transient."""
        return self.classify(exc) is ErrorKind.TRANSIENT

    def _is_transient(self, exc: BaseException) -> bool:
        if isinstance(exc, TransientDatabaseError):
            return True
        if isinstance(exc, DatabaseOperationError):
            # Includes RetryExhaustedError from a nested wrapper
            return False
        if isinstance(exc, TRANSIENT_EXCEPTION_TYPES):
            return True

        target: BaseException = exc
        if isinstance(exc, sa_exc.DBAPIError):
            if exc.connection_invalidated:
                return True
            # str(exc) embeds the SQL and its parameters, only look at the driver error
            if exc.orig is not None:
                target = exc.orig
                if isinstance(target, TRANSIENT_EXCEPTION_TYPES):
                    return True

        code = extract_error_code(target)
        if code is not None and self._is_connection_code(code):
            logger.debug(f"{type(target).__name__} carries connection error code {code}")
            return True
        return matches_connection_message(str(target))

    def _is_connection_code(self, code: str) -> bool:
        if code in self.codes:
            return True
        return len(code) == 5 and code.startswith(CONNECTION_SQLSTATE_CLASSES)


def matches_connection_message(message: str) -> bool:
    """Return ``True`` if the message describes a connection failure.

    Example:
        ```pycon
        >>> from dbresilient.classification import matches_connection_message
        >>> matches_connection_message("server closed the connection unexpectedly")
        True
        >>> matches_connection_message('duplicate key value violates unique constraint')
        False

        ```
    """
    return any(pattern.search(message) for pattern in CONNECTION_MESSAGE_PATTERNS)


_DEFAULT_CLASSIFIER = ErrorClassifier()


def classify_error(exc: BaseException) -> ErrorKind:
    """Classify an exception with the built-in rules.

    Args:
        exc: The exception raised by an attempt.

    Returns:
        The classified error kind.
    """
    return _DEFAULT_CLASSIFIER.classify(exc)


def is_retryable(exc: BaseException) -> bool:
    """Return ``True`` if the built-in rules classify the exception as
    transient."""
    return _DEFAULT_CLASSIFIER.is_retryable(exc)
