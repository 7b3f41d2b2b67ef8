r"""Retry decision logic for failed database operations.

This module provides the RetryDecider class that combines the error
classification with the remaining attempt budget.
"""

from __future__ import annotations

__all__ = ["RetryDecider"]

from dbresilient.classification import ErrorClassifier, ErrorKind


class RetryDecider:
    """Decides whether a failed attempt should be retried.

    Args:
        classifier: The classifier used to tell transient failures from
            permanent ones. Defaults to the built-in rules.
    """

    def __init__(self, classifier: ErrorClassifier | None = None) -> None:
        self.classifier = classifier if classifier is not None else ErrorClassifier()

    def should_retry(
        self,
        exc: BaseException,
        attempt: int,
        max_attempts: int,
    ) -> tuple[bool, ErrorKind]:
        """Determine if a failed attempt should trigger a retry.

        Args:
            exc: The exception raised by the attempt.
            attempt: The number of the attempt that failed (1-indexed).
            max_attempts: Number of attempts allowed by the policy.

        Returns:
            Tuple of (should_retry, error_kind). ``should_retry`` is
            ``False`` for permanent errors and after the final attempt.
        """
        kind = self.classifier.classify(exc)
        if kind is ErrorKind.PERMANENT:
            return (False, kind)
        return (attempt < max_attempts, kind)
