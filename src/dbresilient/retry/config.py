r"""Configuration dataclass for retry lifecycle callbacks."""

from __future__ import annotations

__all__ = ["CallbackConfig"]

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from dbresilient.callbacks import AttemptInfo, FailureInfo, RetryInfo, SuccessInfo


@dataclass
class CallbackConfig:
    """Configuration for callbacks.

    Attributes:
        on_attempt: Optional callback invoked before each attempt.
        on_retry: Optional callback invoked before each backoff delay.
        on_success: Optional callback invoked when an attempt succeeds.
        on_failure: Optional callback invoked when the call fails.
    """

    on_attempt: Callable[[AttemptInfo], None] | None = None
    on_retry: Callable[[RetryInfo], None] | None = None
    on_success: Callable[[SuccessInfo], None] | None = None
    on_failure: Callable[[FailureInfo], None] | None = None
