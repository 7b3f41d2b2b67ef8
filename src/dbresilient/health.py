r"""Connectivity probe answering "is the database reachable right now".

The probe runs a lightweight ``SELECT 1`` bounded by a short timeout
(5000ms by default). It is independent of any retry policy and is meant
to back a status endpoint, not to wrap business operations. It never
raises: failures are reported in the returned ``ProbeResult``.

Example:
    ```pycon
    >>> from sqlalchemy import create_engine
    >>> from dbresilient.health import probe_connection
    >>> result = probe_connection(create_engine("sqlite://"))
    >>> result.reachable, result.status
    (True, 'healthy')

    ```
"""

from __future__ import annotations

__all__ = ["PROBE_QUERY", "ProbeResult", "probe_connection", "probe_connection_async"]

import asyncio
import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

from dbresilient.core.config import DEFAULT_HEALTH_CHECK_TIMEOUT_MS
from dbresilient.core.validation import validate_timeout_ms

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.ext.asyncio import AsyncEngine

logger: logging.Logger = logging.getLogger(__name__)

PROBE_QUERY = "SELECT 1"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ProbeResult:
    """Outcome of a connectivity probe.

    Attributes:
        reachable: Whether the probe query completed within the timeout.
        latency_ms: Wall-clock time spent on the probe in milliseconds.
        error: Description of the failure, ``None`` when reachable.
        timestamp: ISO 8601 time at which the probe finished.
    """

    reachable: bool
    latency_ms: float
    error: str | None = None
    timestamp: str = field(default_factory=_utcnow)

    @property
    def status(self) -> str:
        """``"healthy"`` if reachable, otherwise ``"unhealthy"``."""
        return "healthy" if self.reachable else "unhealthy"

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body served by a health endpoint.

        Example:
            ```pycon
            >>> from dbresilient.health import ProbeResult
            >>> body = ProbeResult(reachable=False, latency_ms=5000.0, error="timed out").to_dict()
            >>> body["status"], body["database"]["connected"]
            ('unhealthy', False)

            ```
        """
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "database": {
                "connected": self.reachable,
                "latency_ms": round(self.latency_ms, 2),
                "error": self.error,
            },
        }


def _select_one(engine: Engine) -> None:
    with engine.connect() as connection:
        connection.execute(text(PROBE_QUERY)).scalar_one()


async def _select_one_async(engine: AsyncEngine) -> None:
    async with engine.connect() as connection:
        result = await connection.execute(text(PROBE_QUERY))
        result.scalar_one()


def _describe_failure(
    exc: Exception, future: asyncio.Future[Any] | concurrent.futures.Future[Any], timeout_ms: float
) -> str:
    # A TimeoutError raised by the driver itself is not the probe timeout
    if future.done() and not future.cancelled() and future.exception() is exc:
        return f"{type(exc).__name__}: {exc}"
    return f"Connection test timed out after {timeout_ms:.0f}ms"


def _build_result(start: float, error: str | None) -> ProbeResult:
    latency_ms = (time.perf_counter() - start) * 1000
    if error is not None:
        logger.warning(f"Database connection test failed after {latency_ms:.0f}ms: {error}")
    return ProbeResult(reachable=error is None, latency_ms=latency_ms, error=error)


def probe_connection(
    engine: Engine,
    timeout_ms: float = DEFAULT_HEALTH_CHECK_TIMEOUT_MS,
) -> ProbeResult:
    """Probe a synchronous engine with a bounded ``SELECT 1``.

    The query runs in a single short-lived worker thread so that the
    caller stops waiting once the timeout expires, even if the driver
    itself blocks.

    Args:
        engine: The SQLAlchemy engine to probe.
        timeout_ms: Maximum milliseconds to wait. Must be > 0.

    Returns:
        The probe outcome.

    Raises:
        ValueError: If timeout_ms is <= 0.
    """
    validate_timeout_ms(timeout_ms)
    start = time.perf_counter()
    error: str | None = None
    pool = concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="dbresilient-probe"
    )
    future = pool.submit(_select_one, engine)
    try:
        future.result(timeout=timeout_ms / 1000)
    except Exception as exc:  # noqa: BLE001
        error = _describe_failure(exc, future, timeout_ms)
    finally:
        pool.shutdown(wait=False)
    return _build_result(start, error)


async def probe_connection_async(
    engine: AsyncEngine,
    timeout_ms: float = DEFAULT_HEALTH_CHECK_TIMEOUT_MS,
) -> ProbeResult:
    """Probe an async engine with a bounded ``SELECT 1``.

    Args:
        engine: The SQLAlchemy async engine to probe.
        timeout_ms: Maximum milliseconds to wait. Must be > 0.

    Returns:
        The probe outcome.

    Raises:
        ValueError: If timeout_ms is <= 0.
    """
    validate_timeout_ms(timeout_ms)
    start = time.perf_counter()
    error: str | None = None
    task = asyncio.ensure_future(_select_one_async(engine))
    try:
        await asyncio.wait_for(task, timeout=timeout_ms / 1000)
    except Exception as exc:  # noqa: BLE001
        error = _describe_failure(exc, task, timeout_ms)
    return _build_result(start, error)
