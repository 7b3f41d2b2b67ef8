r"""Shared test helpers for the async database handle.

This module contains in-memory stand-ins for SQLAlchemy's
``AsyncEngine`` and ``AsyncConnection`` so that async code paths can be
tested without an async driver.
"""

from __future__ import annotations

__all__ = ["FakeAsyncConnection", "FakeAsyncEngine", "FakeResult", "FakeTransaction"]

import asyncio
from typing import Any


class FakeResult:
    r"""Result of a statement run on a ``FakeAsyncConnection``."""

    def __init__(self, rows: list[dict[str, Any]] | None = None, rowcount: int = 0) -> None:
        self.rows = rows if rows is not None else [{"?column?": 1}]
        self.rowcount = rowcount

    def mappings(self) -> list[dict[str, Any]]:
        return list(self.rows)

    def scalar_one(self) -> Any:
        return next(iter(self.rows[0].values()))


class FakeTransaction:
    r"""Transaction opened by ``FakeAsyncConnection.begin``."""

    def __init__(self, connection: FakeAsyncConnection) -> None:
        self.connection = connection
        self.committed = False
        self.rolled_back = False

    async def __aenter__(self) -> FakeTransaction:
        self.connection.engine.transactions.append(self)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.committed = True
        else:
            self.rolled_back = True


class FakeAsyncConnection:
    r"""Connection handed out by ``FakeAsyncEngine.connect``."""

    def __init__(self, engine: FakeAsyncEngine) -> None:
        self.engine = engine
        self.started = False
        self.closed = False

    async def __aenter__(self) -> FakeAsyncConnection:
        return await self.start()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def start(self) -> FakeAsyncConnection:
        if self.engine.blocked_starts > 0:
            self.engine.blocked_starts -= 1
            await asyncio.Event().wait()
        self.started = True
        return self

    async def execute(self, statement: Any, params: dict[str, Any] | None = None) -> FakeResult:
        self.engine.statements.append((str(statement), params))
        if self.engine.outcomes:
            outcome = self.engine.outcomes.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return FakeResult()

    def begin(self) -> FakeTransaction:
        return FakeTransaction(self)

    async def close(self) -> None:
        self.closed = True


class FakeAsyncEngine:
    r"""In-memory async engine.

    Args:
        outcomes: Results or exceptions returned by successive
            ``execute`` calls. A default one-row result is returned once
            they are consumed.
        blocked_starts: Number of connections whose ``start`` never
            completes.
    """

    def __init__(
        self, outcomes: list[FakeResult | BaseException] | None = None, blocked_starts: int = 0
    ) -> None:
        self.outcomes = list(outcomes or [])
        self.blocked_starts = blocked_starts
        self.connections: list[FakeAsyncConnection] = []
        self.transactions: list[FakeTransaction] = []
        self.statements: list[tuple[str, dict[str, Any] | None]] = []
        self.disposed = False

    def __repr__(self) -> str:
        return "FakeAsyncEngine()"

    def connect(self) -> FakeAsyncConnection:
        connection = FakeAsyncConnection(self)
        self.connections.append(connection)
        return connection

    async def dispose(self) -> None:
        self.disposed = True
