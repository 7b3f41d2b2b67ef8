r"""Retry strategy for calculating backoff delays.

This module provides the RetryStrategy class for calculating the delay
between two attempts from a retry policy.
"""

from __future__ import annotations

__all__ = ["RetryStrategy"]

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dbresilient.core.config import RetryPolicy

logger: logging.Logger = logging.getLogger(__name__)


class RetryStrategy:
    """Strategy for calculating retry delays from a policy.

    Args:
        policy: The retry policy providing the backoff schedule.

    Attributes:
        policy: The retry policy providing the backoff schedule.
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay before the next attempt.

        Args:
            attempt: The number of the attempt that failed (1-indexed).

        Returns:
            Sleep time in milliseconds.
        """
        delay_ms = self.policy.delay_for(attempt)
        logger.debug(f"Waiting {delay_ms:.0f}ms before attempt {attempt + 1}")
        return delay_ms
