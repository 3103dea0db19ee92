"""Database adapter base class.

Manifesto:
    Route handlers hold one adapter per tenant and never branch on which
    backend it wraps.  The abstract base fixes the contract; each subclass
    wraps a pool or client that was opened elsewhere (see
    :func:`polydb.adapters.registry.connect_adapter`).

Features:
    - ``from_(table)`` → fresh, independent query builder
    - ``raw()`` that normalizes driver failures into the result envelope
    - ``test_connection()`` that never raises
    - Async context-manager protocol (exit closes the pool)

Tags:
    database, abstract-base, adapter-pattern, polydb
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from polydb.logging import get_logger
from polydb.query.base import QueryBuilder
from polydb.result import QueryResult

from .types import DatabaseType

logger = get_logger(__name__)


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    One adapter instance is safe to share across concurrent requests:
    every ``from_()`` call returns an independent builder.
    """

    def __init__(self, client: Any, db_type: DatabaseType):
        self._client = client
        self._db_type = db_type
        self._closed = False

    @property
    def client(self) -> Any:
        """Underlying pool or vendor client."""
        return self._client

    @property
    def db_type(self) -> DatabaseType:
        return self._db_type

    @property
    def is_closed(self) -> bool:
        return self._closed

    def get_type(self) -> str:
        """``"postgresql"``, ``"mysql"`` or ``"vendor"``."""
        return self._db_type.value

    @abstractmethod
    def from_(self, table: str) -> QueryBuilder:
        """Start a query against ``table``."""
        ...

    def table(self, name: str) -> QueryBuilder:
        """Alias for :meth:`from_`."""
        return self.from_(name)

    @abstractmethod
    async def raw(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Execute driver-native SQL.

        Driver failures are returned as ``QueryResult.failure``, never raised.
        """
        ...

    @abstractmethod
    async def test_connection(self) -> bool:
        """Run a trivial query; ``False`` on any failure."""
        ...

    async def close(self) -> None:
        """Release pooled resources."""
        if self._closed:
            return
        await self._close()
        self._closed = True
        logger.info("adapter.closed", dialect=self.get_type())

    async def _close(self) -> None:
        return None

    async def __aenter__(self) -> DatabaseAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"{self.__class__.__name__}({self.get_type()}, {state})"


__all__ = ["DatabaseAdapter"]
