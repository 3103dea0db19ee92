"""
Shared pytest fixtures and configuration for polydb tests.

This module provides:
- In-memory fakes for an asyncpg pool, an aiomysql pool and a
  supabase/postgrest client (no live database is needed)
- Structlog reset between tests

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    @pytest.mark.asyncio
    async def test_select(pg_pool):
        pg_pool.fetch.return_value = [{"id": 1}]
        ...
"""

from __future__ import annotations

from collections import deque
from contextlib import asynccontextmanager
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        # Mark all tests without explicit markers as unit tests
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Keep structlog configuration from leaking between tests."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# PostgreSQL (asyncpg) fake
# =============================================================================


@pytest.fixture
def pg_pool() -> MagicMock:
    """asyncpg-shaped pool: ``fetch``/``fetchval``/``close`` coroutines.

    ``acquire()`` yields ``pool.connection`` whose ``prepare()`` returns
    ``pool.statement``; raw SQL runs through that prepared statement.
    """
    pool = MagicMock(name="asyncpg.Pool")
    pool.fetch = AsyncMock(return_value=[])
    pool.fetchval = AsyncMock(return_value=0)
    pool.close = AsyncMock()

    statement = MagicMock(name="asyncpg.PreparedStatement")
    statement.fetch = AsyncMock(return_value=[])
    statement.get_statusmsg = MagicMock(return_value="SELECT 0")
    connection = MagicMock(name="asyncpg.Connection")
    connection.prepare = AsyncMock(return_value=statement)

    @asynccontextmanager
    async def acquire():
        yield connection

    pool.acquire = MagicMock(side_effect=acquire)
    pool.connection = connection
    pool.statement = statement
    return pool


# =============================================================================
# MySQL (aiomysql) fake
# =============================================================================


class FakeCursor:
    """aiomysql cursor; each ``execute`` consumes the next queued result set."""

    def __init__(
        self,
        results: list[list[Any]] | None = None,
        *,
        description: list[tuple] | None = None,
        rowcount: int = 0,
        lastrowid: int | None = None,
        error: Exception | None = None,
    ):
        self._results = deque(results or [])
        self._rows: list[Any] = []
        self._description = description
        self.description: list[tuple] | None = None
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.error = error
        self.executed: list[tuple[str, Any]] = []

    async def execute(self, sql: str, params: Any = None) -> int:
        self.executed.append((sql, params))
        if self.error is not None:
            raise self.error
        if self._results:
            self._rows = list(self._results.popleft())
            self.description = self._description or [("col",)]
        else:
            self._rows = []
            self.description = None
        return self.rowcount

    async def fetchall(self) -> list[Any]:
        return list(self._rows)

    async def fetchone(self) -> Any:
        return self._rows[0] if self._rows else None


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.commits = 0

    @asynccontextmanager
    async def cursor(self):
        yield self._cursor

    async def commit(self) -> None:
        self.commits += 1


class FakeMySQLPool:
    """aiomysql-shaped pool handing out a single fake connection."""

    def __init__(self, cursor: FakeCursor | None = None):
        self.cursor = cursor or FakeCursor()
        self.connection = FakeConnection(self.cursor)
        self.closed = False
        self.wait_closed_called = False

    @asynccontextmanager
    async def acquire(self):
        yield self.connection

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        self.wait_closed_called = True


@pytest.fixture
def mysql_pool() -> FakeMySQLPool:
    return FakeMySQLPool()


# =============================================================================
# Vendor (supabase / postgrest) fake
# =============================================================================


class FakeAPIError(Exception):
    """Shape of ``postgrest.exceptions.APIError``."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class FakeVendorRequest:
    """Records every chained call on its client and returns itself."""

    def __init__(self, client: FakeVendorClient):
        self._client = client

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        def method(*args: Any, **kwargs: Any) -> FakeVendorRequest:
            self._client.calls.append((name, args, kwargs))
            return self

        return method

    @property
    def not_(self) -> FakeVendorRequest:
        self._client.calls.append(("not_", (), {}))
        return self

    def execute(self) -> Any:
        self._client.calls.append(("execute", (), {}))
        return self._client.respond()


class FakeVendorClient:
    """supabase-shaped client (sync by default, ``async_mode=True`` for AsyncClient)."""

    def __init__(
        self,
        data: Any = None,
        count: int | None = None,
        *,
        error: Exception | None = None,
        async_mode: bool = False,
        none_response: bool = False,
    ):
        self.data = data
        self.count = count
        self.error = error
        self.async_mode = async_mode
        self.none_response = none_response
        self.calls: list[tuple[str, tuple, dict]] = []

    def table(self, name: str) -> FakeVendorRequest:
        self.calls.append(("table", (name,), {}))
        return FakeVendorRequest(self)

    def rpc(self, function: str, params: dict[str, Any]) -> FakeVendorRequest:
        self.calls.append(("rpc", (function, params), {}))
        return FakeVendorRequest(self)

    def _response(self) -> Any:
        if self.error is not None:
            raise self.error
        if self.none_response:
            return None
        return SimpleNamespace(data=self.data, count=self.count)

    def respond(self) -> Any:
        if self.async_mode:

            async def _later():
                return self._response()

            return _later()
        return self._response()

    def call_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]


@pytest.fixture
def vendor_client() -> FakeVendorClient:
    return FakeVendorClient(data=[], count=None)
