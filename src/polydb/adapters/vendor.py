"""Adapter for the hosted PostgREST-style service (supabase client).

The vendor exposes no arbitrary-SQL channel: ``raw()`` always raises
:class:`UnsupportedOperationError`.  Server-side logic goes through
:meth:`VendorAdapter.rpc` instead.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from polydb.errors import UnsupportedOperationError
from polydb.logging import get_logger
from polydb.query.vendor import VendorQueryBuilder, execute_vendor_query
from polydb.result import QueryResult

from .base import DatabaseAdapter
from .types import DatabaseType

logger = get_logger(__name__)


class VendorAdapter(DatabaseAdapter):
    """
    Vendor database adapter.

    ``client`` is a ``supabase.Client`` / ``AsyncClient`` (or any object with
    ``table()`` and ``rpc()``).  The client pools its own HTTP connections,
    so :meth:`close` releases nothing.
    """

    def __init__(self, client: Any, *, probe_table: str = "stores", **kwargs: Any):
        super().__init__(client, DatabaseType.VENDOR)
        self._probe_table = probe_table

    @property
    def probe_table(self) -> str:
        """Table read by :meth:`test_connection`."""
        return self._probe_table

    def from_(self, table: str) -> VendorQueryBuilder:
        return VendorQueryBuilder(self._client, table)

    async def raw(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        raise UnsupportedOperationError(
            "raw",
            "vendor",
            "raw() is not supported by the vendor adapter; use rpc() with a server-side function",
        )

    async def rpc(self, function: str, params: Mapping[str, Any] | None = None) -> QueryResult:
        """Call a server-side function; vendor errors land in the envelope."""
        logger.debug("adapter.rpc", dialect="vendor", function=function)
        return await execute_vendor_query(self._client.rpc(function, dict(params or {})), table=function)

    async def test_connection(self) -> bool:
        try:
            result = await self.from_(self._probe_table).select("*").limit(1).execute()
        except Exception as e:
            logger.warning("adapter.test_connection.failed", dialect="vendor", error=str(e))
            return False
        if result.error is not None:
            logger.warning(
                "adapter.test_connection.failed",
                dialect="vendor",
                table=self._probe_table,
                error=result.error.message,
            )
            return False
        return True


__all__ = ["VendorAdapter"]
