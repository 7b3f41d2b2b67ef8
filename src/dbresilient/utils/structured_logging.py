r"""JSON log output and correlation IDs for database operations.

Retry entries carry extra fields (``attempt``, ``max_attempts``,
``delay_ms``, ``error_kind``, ...) so that log aggregation can alert on
dropped connections without parsing messages. JSON output is opt-in:

```python
import logging
from dbresilient.utils.structured_logging import enable_structured_logging

enable_structured_logging(logging.INFO)
```

A correlation ID ties every entry emitted while serving one inbound
request or webhook to that request:

```python
from dbresilient import execute
from dbresilient.utils.structured_logging import correlation_scope

with correlation_scope(request_id):
    execute(lambda: repository.find_user_by_phone(phone_number))
```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "correlation_scope",
    "enable_structured_logging",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import TextIO

# One value per thread and per asyncio task
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "dbresilient_correlation_id", default=None
)

# Set by logging.LogRecord itself, everything else came from ``extra``
_RECORD_ATTRIBUTES = frozenset(
    {
        "args",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context, if any.

    Example:
        ```pycon
        >>> from dbresilient.utils.structured_logging import get_correlation_id, set_correlation_id
        >>> set_correlation_id("req-123")
        >>> get_correlation_id()
        'req-123'

        ```
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Attach a correlation ID (inbound request ID, message SID, ...) to
    the current context."""
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id.set(None)


@contextmanager
def correlation_scope(correlation_id: str) -> Generator[None, None, None]:
    """Set a correlation ID for the duration of a ``with`` block.

    The previous value is restored on exit, so scopes can be nested.

    Args:
        correlation_id: The correlation ID to set.

    Example:
        ```pycon
        >>> from dbresilient.utils.structured_logging import correlation_scope, get_correlation_id
        >>> with correlation_scope("webhook-42"):
        ...     get_correlation_id()
        ...
        'webhook-42'

        ```
    """
    token = _correlation_id.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """Render each log record as a single JSON object.

    Every entry has ``timestamp`` (ISO 8601, UTC, milliseconds),
    ``level``, ``logger``, ``message``, its origin (``module``,
    ``function``, ``line``) and execution context (``thread``,
    ``process``). ``correlation_id`` and ``exception`` are added when
    set, followed by the fields passed through ``extra``. Values that
    JSON cannot encode, such as exceptions, are rendered with ``str``.

    Example:
        ```pycon
        >>> import logging
        >>> from io import StringIO
        >>> from dbresilient.utils.structured_logging import StructuredFormatter
        >>> stream = StringIO()
        >>> handler = logging.StreamHandler(stream)
        >>> handler.setFormatter(StructuredFormatter())
        >>> logger = logging.getLogger("doctest_structured_formatter")
        >>> logger.addHandler(handler)
        >>> logger.setLevel(logging.INFO)
        >>> logger.info("Query completed", extra={"duration_ms": 12})
        >>> '"duration_ms": 12' in stream.getvalue()
        True

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = self._standard_fields(record)
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            entry["correlation_id"] = correlation_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        )
        return json.dumps(entry, default=str)

    def formatTime(  # noqa: N802
        self, record: logging.LogRecord, datefmt: str | None = None  # noqa: ARG002
    ) -> str:
        # datefmt is ignored, entries always use ISO 8601 in UTC
        seconds = time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
        return f"{seconds}.{int(record.msecs):03d}Z"

    def _standard_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
            "process": record.process,
        }


def enable_structured_logging(
    level: int = logging.INFO,
    stream: TextIO | None = None,
    logger_name: str = "dbresilient",
) -> logging.Handler:
    """Send the package's log entries to ``stream`` as JSON lines.

    Args:
        level: Minimum level of the entries to emit.
        stream: Destination stream. Defaults to ``sys.stderr``.
        logger_name: Logger receiving the handler.

    Returns:
        The attached handler, so that callers can remove it.
    """
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger(logger_name)
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


def log_structured(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """Log a message whose keyword arguments become attributes of the
    log record.

    Args:
        logger: Logger to use.
        level: Log level (e.g., logging.WARNING).
        message: Log message.
        **extra: Structured fields attached to the record.
    """
    logger.log(level, message, extra=extra)
