r"""Unit tests for helpers shared by the sync and async executors."""

from __future__ import annotations

import functools
import logging

import pytest

from dbresilient.classification import ErrorKind
from dbresilient.exceptions import RetryExhaustedError
from dbresilient.retry.executor_core import (
    RETRY_LOG_EVENT,
    create_exhausted_error,
    log_retry,
    resolve_operation_name,
)


def get_categories() -> list[str]:
    return []


class CountUsers:
    def __call__(self) -> int:
        return 0


def test_resolve_operation_name_explicit() -> None:
    """Test that an explicit name wins."""
    assert resolve_operation_name(get_categories, "categories.list") == "categories.list"


def test_resolve_operation_name_function() -> None:
    """Test that a function's qualified name is used."""
    assert resolve_operation_name(get_categories) == "get_categories"


def test_resolve_operation_name_callable_instance() -> None:
    """Test that a callable instance falls back to its type name."""
    assert resolve_operation_name(CountUsers()) == "CountUsers"


def test_resolve_operation_name_partial() -> None:
    """Test that a partial falls back to its type name."""
    assert resolve_operation_name(functools.partial(get_categories)) == "partial"


def test_log_retry(caplog: pytest.LogCaptureFixture) -> None:
    """Test the fields of a retry log entry."""
    logger = logging.getLogger("dbresilient.test")
    with caplog.at_level(logging.WARNING, logger="dbresilient.test"):
        log_retry(
            logger,
            operation="get_categories",
            attempt=1,
            max_attempts=3,
            delay_ms=1000.0,
            error=ConnectionResetError("reset"),
            error_kind=ErrorKind.TRANSIENT,
        )
    (record,) = caplog.records
    assert record.levelno == logging.WARNING
    assert record.getMessage() == (
        "Database operation get_categories failed (attempt 1/3), "
        "retrying in 1000ms: ConnectionResetError"
    )
    assert record.event == RETRY_LOG_EVENT == "db_retry"
    assert record.operation == "get_categories"
    assert record.attempt == 1
    assert record.max_attempts == 3
    assert record.delay_ms == 1000.0
    assert record.error_kind == "transient"
    assert record.error_type == "ConnectionResetError"


def test_create_exhausted_error() -> None:
    """Test the error raised once the budget is spent."""
    last_error = TimeoutError("query timed out")
    error = create_exhausted_error(
        operation="get_categories",
        attempts=3,
        max_attempts=3,
        last_error=last_error,
        start_time=0.0,
    )
    assert isinstance(error, RetryExhaustedError)
    assert str(error) == (
        "Database operation get_categories failed after 3 attempts: "
        "TimeoutError: query timed out"
    )
    assert error.last_error is last_error
    assert error.operation == "get_categories"
    assert error.total_time > 0
