r"""Unit tests for error classification."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from sqlalchemy import exc as sa_exc

from dbresilient.classification import (
    CONNECTION_ERROR_CODES,
    ErrorClassifier,
    ErrorKind,
    classify_error,
    extract_error_code,
    is_retryable,
    matches_connection_message,
)
from dbresilient.exceptions import (
    DatabaseOperationError,
    RetryExhaustedError,
    TransientDatabaseError,
)


class DriverError(Exception):
    r"""Driver-level error carrying a SQLSTATE code."""

    def __init__(self, message: str = "driver error", sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class PrismaLikeError(Exception):
    r"""Error carrying a Prisma style ``code`` attribute."""

    def __init__(self, code: str) -> None:
        super().__init__(f"request failed with {code}")
        self.code = code


class Psycopg2LikeError(Exception):
    r"""Error carrying a psycopg2 style ``pgcode`` attribute."""

    def __init__(self, pgcode: str) -> None:
        super().__init__("psycopg2 error")
        self.pgcode = pgcode


def wrap(orig: BaseException, connection_invalidated: bool = False) -> sa_exc.DBAPIError:
    return sa_exc.OperationalError(
        "SELECT * FROM accounts WHERE name = 'connection reset'",
        {},
        orig,
        connection_invalidated=connection_invalidated,
    )


###############################
#     Tests for ErrorKind     #
###############################


def test_error_kind_values() -> None:
    assert ErrorKind.TRANSIENT.value == "transient"
    assert ErrorKind.PERMANENT.value == "permanent"


########################################
#     Tests for extract_error_code     #
########################################


def test_extract_error_code_sqlstate() -> None:
    assert extract_error_code(DriverError(sqlstate="08006")) == "08006"


def test_extract_error_code_pgcode() -> None:
    assert extract_error_code(Psycopg2LikeError("57P01")) == "57P01"


def test_extract_error_code_code() -> None:
    assert extract_error_code(PrismaLikeError("P1001")) == "P1001"


def test_extract_error_code_missing() -> None:
    assert extract_error_code(ValueError("bad")) is None


def test_extract_error_code_empty_sqlstate() -> None:
    assert extract_error_code(DriverError(sqlstate="")) is None


################################################
#     Tests for matches_connection_message     #
################################################


@pytest.mark.parametrize(
    "message",
    [
        "PostgreSQL connection: Error { kind: Closed, cause: None }",
        "server closed the connection unexpectedly",
        "Connection is closed",
        "the connection was closed by the server",
        "connection already closed",
        "terminating connection due to administrator command",
        "read ECONNRESET: Connection reset by peer",
        "connection refused",
        "could not connect to server: No such file or directory",
        "Query timed out after 10000ms",
    ],
)
def test_matches_connection_message_true(message: str) -> None:
    assert matches_connection_message(message)


@pytest.mark.parametrize(
    "message",
    [
        'duplicate key value violates unique constraint "users_email_key"',
        "null value in column \"name\" violates not-null constraint",
        "Record to update not found.",
        "syntax error at or near \"SELEC\"",
        "",
    ],
)
def test_matches_connection_message_false(message: str) -> None:
    assert not matches_connection_message(message)


#####################################
#     Tests for ErrorClassifier     #
#####################################


@pytest.mark.parametrize(
    "exc",
    [
        ConnectionResetError("reset by peer"),
        ConnectionRefusedError("refused"),
        BrokenPipeError("broken pipe"),
        TimeoutError("slow"),
        asyncio.TimeoutError(),
        httpx.ConnectError("connection failed"),
        httpx.ReadTimeout("read timeout"),
        httpx.RemoteProtocolError("peer closed connection"),
        sa_exc.DisconnectionError("dropped"),
        sa_exc.TimeoutError("QueuePool limit reached"),
        TransientDatabaseError("replica lagging"),
    ],
)
def test_error_classifier_transient_types(exc: BaseException) -> None:
    assert ErrorClassifier().classify(exc) is ErrorKind.TRANSIENT


@pytest.mark.parametrize(
    "exc",
    [
        ValueError("invalid email"),
        KeyError("id"),
        LookupError("category not found"),
        DatabaseOperationError("bad input"),
        RetryExhaustedError(
            "gave up", attempts=3, max_attempts=3, last_error=ConnectionResetError()
        ),
        sa_exc.NoResultFound("No row was found when one was required"),
    ],
)
def test_error_classifier_permanent(exc: BaseException) -> None:
    assert ErrorClassifier().classify(exc) is ErrorKind.PERMANENT


def test_error_classifier_connection_closed_message(
    connection_closed_error: RuntimeError,
) -> None:
    assert ErrorClassifier().classify(connection_closed_error) is ErrorKind.TRANSIENT


@pytest.mark.parametrize("code", sorted(CONNECTION_ERROR_CODES))
def test_error_classifier_connection_codes(code: str) -> None:
    assert ErrorClassifier().classify(PrismaLikeError(code)) is ErrorKind.TRANSIENT


@pytest.mark.parametrize("sqlstate", ["08000", "08001", "08003", "08006"])
def test_error_classifier_sqlstate_class_08(sqlstate: str) -> None:
    assert ErrorClassifier().classify(DriverError(sqlstate=sqlstate)) is ErrorKind.TRANSIENT


@pytest.mark.parametrize("sqlstate", ["23505", "23502", "42601", "P2002", "P2025"])
def test_error_classifier_permanent_codes(sqlstate: str) -> None:
    assert ErrorClassifier().classify(DriverError(sqlstate=sqlstate)) is ErrorKind.PERMANENT


def test_error_classifier_dbapi_error_with_transient_orig() -> None:
    exc = wrap(DriverError("terminating connection due to administrator command"))
    assert ErrorClassifier().classify(exc) is ErrorKind.TRANSIENT


def test_error_classifier_dbapi_error_with_transient_orig_type() -> None:
    assert ErrorClassifier().classify(wrap(ConnectionResetError())) is ErrorKind.TRANSIENT


def test_error_classifier_dbapi_error_with_connection_code() -> None:
    assert ErrorClassifier().classify(wrap(DriverError(sqlstate="57P01"))) is ErrorKind.TRANSIENT


def test_error_classifier_dbapi_error_connection_invalidated() -> None:
    exc = wrap(DriverError("whatever"), connection_invalidated=True)
    assert ErrorClassifier().classify(exc) is ErrorKind.TRANSIENT


def test_error_classifier_dbapi_error_ignores_statement_text() -> None:
    exc = wrap(DriverError('duplicate key value violates unique constraint', sqlstate="23505"))
    assert ErrorClassifier().classify(exc) is ErrorKind.PERMANENT


def test_error_classifier_extra_codes() -> None:
    classifier = ErrorClassifier(extra_codes=["40001"])
    assert classifier.classify(DriverError(sqlstate="40001")) is ErrorKind.TRANSIENT
    assert ErrorClassifier().classify(DriverError(sqlstate="40001")) is ErrorKind.PERMANENT


def test_error_classifier_retry_if_true() -> None:
    classifier = ErrorClassifier(retry_if=lambda exc: isinstance(exc, ValueError))
    assert classifier.classify(ValueError("flaky")) is ErrorKind.TRANSIENT


def test_error_classifier_retry_if_false() -> None:
    classifier = ErrorClassifier(retry_if=lambda exc: False)
    assert classifier.classify(ConnectionResetError()) is ErrorKind.PERMANENT


def test_error_classifier_retry_if_none_falls_through() -> None:
    classifier = ErrorClassifier(retry_if=lambda exc: None)
    assert classifier.classify(ConnectionResetError()) is ErrorKind.TRANSIENT
    assert classifier.classify(ValueError("bad")) is ErrorKind.PERMANENT


def test_error_classifier_is_retryable() -> None:
    classifier = ErrorClassifier()
    assert classifier.is_retryable(TimeoutError())
    assert not classifier.is_retryable(ValueError())


def test_error_classifier_repr() -> None:
    assert repr(ErrorClassifier()).startswith("ErrorClassifier(codes=['53300',")


##########################################
#     Tests for module-level helpers     #
##########################################


def test_classify_error() -> None:
    assert classify_error(ConnectionResetError()) is ErrorKind.TRANSIENT
    assert classify_error(ValueError()) is ErrorKind.PERMANENT


def test_is_retryable() -> None:
    assert is_retryable(httpx.ConnectTimeout("timeout"))
    assert not is_retryable(KeyError("id"))
