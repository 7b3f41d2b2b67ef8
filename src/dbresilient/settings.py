r"""Database settings read from the environment and engine factories.

The connection pool handle is created here once and then passed
explicitly to ``ResilientDatabase``/``AsyncResilientDatabase``; nothing
in this package keeps a process-global client.

Environment variables:

| Variable | Default |
| --- | --- |
| ``DATABASE_URL`` | (required to build an engine) |
| ``DB_POOL_SIZE`` | 10 |
| ``DB_POOL_TIMEOUT`` | 20 (seconds) |
| ``DB_CONNECT_TIMEOUT`` | 10 (seconds) |
| ``DB_ECHO`` | false |
| ``DB_RETRY_MAX_ATTEMPTS`` | 3 |
| ``DB_RETRY_BASE_DELAY_MS`` | 1000 |
| ``DB_RETRY_BACKOFF_MULTIPLIER`` | 2 |
| ``DB_HEALTH_CHECK_TIMEOUT_MS`` | 5000 |
"""

from __future__ import annotations

__all__ = ["DatabaseSettings", "create_async_engine", "create_engine"]

import logging
import math
from typing import TYPE_CHECKING, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine as _sa_create_async_engine

from dbresilient.core.config import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_HEALTH_CHECK_TIMEOUT_MS,
    DEFAULT_MAX_ATTEMPTS,
    RetryPolicy,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine
    from sqlalchemy.ext.asyncio import AsyncEngine

logger: logging.Logger = logging.getLogger(__name__)


class DatabaseSettings(BaseSettings):
    """Connection and retry settings for the application database.

    Instantiating the class reads the environment variables listed in
    the module docstring; keyword arguments take precedence over them.
    Values that cannot be parsed raise ``pydantic.ValidationError``.

    Args:
        url: The database URL. ``None`` when not configured.
        pool_size: Number of pooled connections (ignored for SQLite).
        pool_timeout: Seconds to wait for a pooled connection.
        connect_timeout: Seconds to wait when opening a new connection.
        echo: Whether SQLAlchemy logs every statement.
        retry_max_attempts: Attempts allowed by the default policy.
        retry_base_delay_ms: Base delay of the default policy.
        retry_backoff_multiplier: Multiplier of the default policy.
        health_check_timeout_ms: Timeout of the connectivity probe.

    Example:
        ```pycon
        >>> from dbresilient.settings import DatabaseSettings
        >>> settings = DatabaseSettings.from_env(
        ...     {"DATABASE_URL": "sqlite://", "DB_RETRY_MAX_ATTEMPTS": "4"}
        ... )
        >>> settings.retry_policy().max_attempts
        4

        ```
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    url: str | None = Field(default=None, validation_alias="DATABASE_URL")
    pool_size: int = Field(default=10, ge=1, validation_alias="DB_POOL_SIZE")
    pool_timeout: float = Field(default=20.0, gt=0, validation_alias="DB_POOL_TIMEOUT")
    connect_timeout: float = Field(default=10.0, gt=0, validation_alias="DB_CONNECT_TIMEOUT")
    echo: bool = Field(default=False, validation_alias="DB_ECHO")
    retry_max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS, validation_alias="DB_RETRY_MAX_ATTEMPTS"
    )
    retry_base_delay_ms: float = Field(
        default=DEFAULT_BASE_DELAY_MS, validation_alias="DB_RETRY_BASE_DELAY_MS"
    )
    retry_backoff_multiplier: float = Field(
        default=DEFAULT_BACKOFF_MULTIPLIER, validation_alias="DB_RETRY_BACKOFF_MULTIPLIER"
    )
    health_check_timeout_ms: float = Field(
        default=DEFAULT_HEALTH_CHECK_TIMEOUT_MS, validation_alias="DB_HEALTH_CHECK_TIMEOUT_MS"
    )

    @field_validator("url", mode="before")
    @classmethod
    def _empty_url_is_unset(cls, value: Any) -> Any:
        return value or None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DatabaseSettings:
        """Read settings from environment variables.

        Args:
            environ: Mapping to read instead of the process environment.
                Variable names are matched case-insensitively.

        Returns:
            The settings, with defaults for unset variables.

        Raises:
            pydantic.ValidationError: If a variable cannot be parsed or
                is out of range.
        """
        if environ is None:
            return cls()
        # model_validate skips the environment sources of BaseSettings
        return cls.model_validate({key.upper(): value for key, value in environ.items()})

    def retry_policy(self) -> RetryPolicy:
        """Build the default retry policy from these settings.

        The per-attempt connection timeout mirrors ``pool_timeout``.

        Raises:
            ValueError: If the retry settings are out of range.
        """
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            base_delay_ms=self.retry_base_delay_ms,
            backoff_multiplier=self.retry_backoff_multiplier,
            connection_timeout_ms=self.pool_timeout * 1000,
        )

    def require_url(self) -> str:
        """Return the database URL.

        Raises:
            ValueError: If ``DATABASE_URL`` is not configured.
        """
        if not self.url:
            msg = "DATABASE_URL is not configured"
            raise ValueError(msg)
        return self.url


def _engine_kwargs(settings: DatabaseSettings) -> dict[str, Any]:
    url = make_url(settings.require_url())
    kwargs: dict[str, Any] = {"echo": settings.echo, "pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        return kwargs
    kwargs["pool_size"] = settings.pool_size
    kwargs["pool_timeout"] = settings.pool_timeout
    if url.get_backend_name() == "postgresql":
        if url.get_driver_name() == "asyncpg":
            kwargs["connect_args"] = {"timeout": settings.connect_timeout}
        else:
            # libpq takes whole seconds and treats 0 as no limit
            kwargs["connect_args"] = {"connect_timeout": max(1, math.ceil(settings.connect_timeout))}
    return kwargs


def create_engine(settings: DatabaseSettings, **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine from settings.

    Stale pooled connections are detected before use (``pool_pre_ping``)
    and pool sizing is skipped for SQLite.

    Args:
        settings: The database settings.
        **kwargs: Extra arguments forwarded to ``sqlalchemy.create_engine``.

    Returns:
        The engine owning the connection pool.

    Raises:
        ValueError: If ``DATABASE_URL`` is not configured.
    """
    options = {**_engine_kwargs(settings), **kwargs}
    logger.debug(f"Creating engine for {make_url(settings.require_url()).render_as_string()}")
    return _sa_create_engine(settings.require_url(), **options)


def create_async_engine(settings: DatabaseSettings, **kwargs: Any) -> AsyncEngine:
    """Create a SQLAlchemy async engine from settings.

    Args:
        settings: The database settings. The URL must name an async
            driver, e.g. ``postgresql+asyncpg://``.
        **kwargs: Extra arguments forwarded to
            ``sqlalchemy.ext.asyncio.create_async_engine``.

    Returns:
        The async engine owning the connection pool.

    Raises:
        ValueError: If ``DATABASE_URL`` is not configured.
    """
    options = {**_engine_kwargs(settings), **kwargs}
    logger.debug(f"Creating async engine for {make_url(settings.require_url()).render_as_string()}")
    return _sa_create_async_engine(settings.require_url(), **options)
