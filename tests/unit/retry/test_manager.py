r"""Unit tests for the callback manager."""

from __future__ import annotations

from unittest.mock import Mock

from dbresilient.callbacks import AttemptInfo, FailureInfo, RetryInfo, SuccessInfo
from dbresilient.classification import ErrorKind
from dbresilient.retry import CallbackConfig, CallbackManager


def test_callback_manager_creation() -> None:
    """Test CallbackManager initialization."""
    config = CallbackConfig()
    assert CallbackManager(config).callbacks is config


def test_callback_manager_on_attempt(mock_callback: Mock) -> None:
    """Test on_attempt callback invocation."""
    manager = CallbackManager(CallbackConfig(on_attempt=mock_callback))
    manager.on_attempt("get_categories", 2, 3)
    mock_callback.assert_called_once_with(
        AttemptInfo(operation="get_categories", attempt=2, max_attempts=3)
    )


def test_callback_manager_on_retry(mock_callback: Mock) -> None:
    """Test on_retry callback invocation."""
    error = ConnectionResetError()
    manager = CallbackManager(CallbackConfig(on_retry=mock_callback))
    manager.on_retry("get_categories", 1, 3, 1000.0, error, ErrorKind.TRANSIENT)
    mock_callback.assert_called_once_with(
        RetryInfo(
            operation="get_categories",
            attempt=1,
            max_attempts=3,
            delay_ms=1000.0,
            error=error,
            error_kind=ErrorKind.TRANSIENT,
        )
    )


def test_callback_manager_on_success(mock_callback: Mock) -> None:
    """Test on_success callback invocation."""
    manager = CallbackManager(CallbackConfig(on_success=mock_callback))
    manager.on_success("get_categories", 1, 3, "ok", 0.0)
    info = mock_callback.call_args.args[0]
    assert isinstance(info, SuccessInfo)
    assert info.result == "ok"
    assert info.attempt == 1


def test_callback_manager_on_failure(mock_callback: Mock) -> None:
    """Test on_failure callback invocation."""
    error = ValueError("invalid")
    manager = CallbackManager(CallbackConfig(on_failure=mock_callback))
    manager.on_failure("create_user", 1, 3, error, ErrorKind.PERMANENT, False, 0.0)
    info = mock_callback.call_args.args[0]
    assert isinstance(info, FailureInfo)
    assert info.error is error
    assert info.error_kind is ErrorKind.PERMANENT
    assert not info.exhausted


def test_callback_manager_without_callbacks() -> None:
    """Test that missing callbacks are skipped."""
    manager = CallbackManager(CallbackConfig())
    manager.on_attempt("op", 1, 3)
    manager.on_retry("op", 1, 3, 1000.0, TimeoutError(), ErrorKind.TRANSIENT)
    manager.on_success("op", 1, 3, None, 0.0)
    manager.on_failure("op", 1, 3, TimeoutError(), ErrorKind.TRANSIENT, True, 0.0)
