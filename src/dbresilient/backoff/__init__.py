r"""Backoff strategies for retry delays.

This package provides the backoff strategies used to compute the wait
between two attempts of a database operation. Delays are expressed in
milliseconds.
"""

from __future__ import annotations

__all__ = [
    "BaseBackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
]

from dbresilient.backoff.base import BaseBackoffStrategy
from dbresilient.backoff.constant import ConstantBackoff
from dbresilient.backoff.exponential import ExponentialBackoff
