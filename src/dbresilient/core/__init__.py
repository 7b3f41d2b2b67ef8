r"""Core configuration shared by sync and async database operations.

This module contains the retry policy value object, its presets and
the validation helpers used by both the synchronous and asynchronous
retry executors.
"""

from __future__ import annotations

__all__ = [
    "CRITICAL_BASE_DELAY_MS",
    "CRITICAL_MAX_ATTEMPTS",
    "CRITICAL_POLICY",
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_BASE_DELAY_MS",
    "DEFAULT_CONNECTION_TIMEOUT_MS",
    "DEFAULT_HEALTH_CHECK_TIMEOUT_MS",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_POLICY",
    "RetryPolicy",
    "validate_policy_params",
    "validate_timeout_ms",
]

from dbresilient.core.config import (
    CRITICAL_BASE_DELAY_MS,
    CRITICAL_MAX_ATTEMPTS,
    CRITICAL_POLICY,
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_HEALTH_CHECK_TIMEOUT_MS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLICY,
    RetryPolicy,
)
from dbresilient.core.validation import validate_policy_params, validate_timeout_ms
