r"""Unit tests for the retry policy and its presets."""

from __future__ import annotations

import dataclasses

import pytest
from coola.equality import objects_are_equal

from dbresilient.backoff import ConstantBackoff
from dbresilient.core import (
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

###############################
#     Tests for constants     #
###############################


def test_default_constants() -> None:
    assert DEFAULT_MAX_ATTEMPTS == 3
    assert DEFAULT_BASE_DELAY_MS == 1000.0
    assert DEFAULT_BACKOFF_MULTIPLIER == 2.0
    assert DEFAULT_CONNECTION_TIMEOUT_MS == 20000.0
    assert DEFAULT_HEALTH_CHECK_TIMEOUT_MS == 5000.0


def test_critical_constants() -> None:
    assert CRITICAL_MAX_ATTEMPTS == 5
    assert CRITICAL_BASE_DELAY_MS == 2000.0


#################################
#     Tests for RetryPolicy     #
#################################


def test_retry_policy_defaults() -> None:
    policy = RetryPolicy()
    assert policy.max_attempts == 3
    assert policy.base_delay_ms == 1000.0
    assert policy.backoff_multiplier == 2.0
    assert policy.connection_timeout_ms == 20000.0
    assert policy.max_delay_ms is None
    assert policy.backoff_strategy is None


def test_retry_policy_default_preset() -> None:
    assert DEFAULT_POLICY == RetryPolicy(max_attempts=3, base_delay_ms=1000)


def test_retry_policy_critical_preset() -> None:
    assert CRITICAL_POLICY.max_attempts == 5
    assert CRITICAL_POLICY.base_delay_ms == 2000.0
    assert CRITICAL_POLICY.backoff_multiplier == 2.0


def test_retry_policy_default_delays() -> None:
    assert DEFAULT_POLICY.delays() == (1000.0, 2000.0)


def test_retry_policy_critical_delays() -> None:
    assert CRITICAL_POLICY.delays() == (2000.0, 4000.0, 8000.0, 16000.0)


def test_retry_policy_single_attempt_has_no_delays() -> None:
    assert RetryPolicy(max_attempts=1).delays() == ()


def test_retry_policy_zero_base_delay() -> None:
    assert RetryPolicy(max_attempts=4, base_delay_ms=0).delays() == (0.0, 0.0, 0.0)


def test_retry_policy_delays_are_non_decreasing() -> None:
    delays = RetryPolicy(max_attempts=8, base_delay_ms=10, backoff_multiplier=1.5).delays()
    assert all(a <= b for a, b in zip(delays, delays[1:]))


def test_retry_policy_max_delay_cap() -> None:
    policy = RetryPolicy(max_attempts=5, base_delay_ms=1000, max_delay_ms=3000)
    assert policy.delays() == (1000.0, 2000.0, 3000.0, 3000.0)


def test_retry_policy_custom_backoff_strategy() -> None:
    policy = RetryPolicy(max_attempts=4, backoff_strategy=ConstantBackoff(delay_ms=300))
    assert policy.delays() == (300.0, 300.0, 300.0)


def test_retry_policy_custom_backoff_strategy_capped() -> None:
    policy = RetryPolicy(
        max_attempts=3, max_delay_ms=100, backoff_strategy=ConstantBackoff(delay_ms=300)
    )
    assert policy.delays() == (100.0, 100.0)


def test_retry_policy_max_delay_cap_large_attempt() -> None:
    policy = RetryPolicy(max_attempts=1100, base_delay_ms=1, max_delay_ms=10)
    assert policy.delay_for(1099) == 10.0


def test_retry_policy_strategy_property_default() -> None:
    strategy = RetryPolicy(base_delay_ms=500, backoff_multiplier=3).strategy
    assert strategy.base_delay_ms == 500
    assert strategy.multiplier == 3


def test_retry_policy_strategy_property_custom() -> None:
    backoff = ConstantBackoff()
    assert RetryPolicy(backoff_strategy=backoff).strategy is backoff


@pytest.mark.parametrize(("attempt", "expected"), [(1, 1000.0), (2, 2000.0)])
def test_retry_policy_delay_for(attempt: int, expected: float) -> None:
    assert RetryPolicy().delay_for(attempt) == expected


@pytest.mark.parametrize("attempt", [0, 3, 4, -1])
def test_retry_policy_delay_for_out_of_range(attempt: int) -> None:
    with pytest.raises(ValueError, match=r"attempt must be in \[1, 2\]"):
        RetryPolicy().delay_for(attempt)


def test_retry_policy_is_frozen() -> None:
    policy = RetryPolicy()
    with pytest.raises(dataclasses.FrozenInstanceError):
        policy.max_attempts = 10  # type: ignore[misc]


def test_retry_policy_merge() -> None:
    policy = RetryPolicy()
    merged = policy.merge(max_attempts=5, base_delay_ms=2000)
    assert merged == CRITICAL_POLICY
    assert policy.max_attempts == 3


def test_retry_policy_merge_ignores_none() -> None:
    policy = RetryPolicy(max_attempts=4)
    assert policy.merge(max_attempts=None, base_delay_ms=None) == policy


def test_retry_policy_merge_validates() -> None:
    with pytest.raises(ValueError, match=r"max_attempts must be >= 1"):
        RetryPolicy().merge(max_attempts=0)


def test_retry_policy_to_dict() -> None:
    assert RetryPolicy().to_dict() == {
        "max_attempts": 3,
        "base_delay_ms": 1000.0,
        "backoff_multiplier": 2.0,
        "connection_timeout_ms": 20000.0,
        "max_delay_ms": None,
        "backoff_strategy": None,
    }


def test_retry_policy_max_attempts_zero() -> None:
    with pytest.raises(ValueError, match=r"max_attempts must be >= 1, got 0"):
        RetryPolicy(max_attempts=0)


@pytest.mark.parametrize("max_attempts", [2.5, "3", True])
def test_retry_policy_max_attempts_not_int(max_attempts: object) -> None:
    with pytest.raises(TypeError, match=r"max_attempts must be an integer"):
        RetryPolicy(max_attempts=max_attempts)  # type: ignore[arg-type]


def test_retry_policy_negative_base_delay() -> None:
    with pytest.raises(ValueError, match=r"base_delay_ms must be >= 0"):
        RetryPolicy(base_delay_ms=-1)


def test_retry_policy_multiplier_below_one() -> None:
    with pytest.raises(ValueError, match=r"backoff_multiplier must be >= 1"):
        RetryPolicy(backoff_multiplier=0.5)


def test_retry_policy_negative_connection_timeout() -> None:
    with pytest.raises(ValueError, match=r"connection_timeout_ms must be >= 0"):
        RetryPolicy(connection_timeout_ms=-1)


def test_retry_policy_invalid_max_delay() -> None:
    with pytest.raises(ValueError, match=r"max_delay_ms must be > 0"):
        RetryPolicy(max_delay_ms=0)


def test_retry_policy_to_dict_with_strategy() -> None:
    strategy = ConstantBackoff(delay_ms=300)
    policy = RetryPolicy(max_attempts=5, max_delay_ms=1000, backoff_strategy=strategy)
    assert objects_are_equal(
        policy.to_dict(),
        {
            "max_attempts": 5,
            "base_delay_ms": 1000.0,
            "backoff_multiplier": 2.0,
            "connection_timeout_ms": 20000.0,
            "max_delay_ms": 1000,
            "backoff_strategy": strategy,
        },
    )
