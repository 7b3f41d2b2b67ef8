r"""Retry package implementing class-based composition pattern.

Public API:
    - CallbackConfig: Configuration for callbacks
    - RetryStrategy: Strategy for calculating retry delays
    - RetryDecider: Logic for deciding whether to retry
    - CallbackManager: Manager for callback invocations
    - RetryExecutor: Synchronous retry executor
    - AsyncRetryExecutor: Asynchronous retry executor
"""

from __future__ import annotations

__all__ = [
    "AsyncRetryExecutor",
    "CallbackConfig",
    "CallbackManager",
    "RetryDecider",
    "RetryExecutor",
    "RetryStrategy",
]

from dbresilient.retry.config import CallbackConfig
from dbresilient.retry.decider import RetryDecider
from dbresilient.retry.executor import RetryExecutor
from dbresilient.retry.executor_async import AsyncRetryExecutor
from dbresilient.retry.manager import CallbackManager
from dbresilient.retry.strategy import RetryStrategy
