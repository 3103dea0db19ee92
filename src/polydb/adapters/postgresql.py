"""PostgreSQL adapter over an asyncpg pool."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from polydb.logging import get_logger
from polydb.query.postgresql import PostgreSQLQueryBuilder
from polydb.result import QueryResult, error_from_exception

from .base import DatabaseAdapter
from .types import DatabaseType

logger = get_logger(__name__)


def rows_affected(status: str | None) -> int:
    """Row count from a command tag such as ``UPDATE 3`` or ``INSERT 0 3``."""
    if not status:
        return 0
    last = status.rsplit(" ", 1)[-1]
    return int(last) if last.isdigit() else 0


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter.

    ``pool`` is an ``asyncpg.Pool`` (or anything with ``fetch``, ``fetchval``
    and ``close`` coroutines plus an ``acquire()`` context manager).
    """

    def __init__(self, pool: Any, **kwargs: Any):
        super().__init__(pool, DatabaseType.POSTGRESQL)

    def from_(self, table: str) -> PostgreSQLQueryBuilder:
        return PostgreSQLQueryBuilder(self._client, table)

    async def raw(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Run ``sql`` as a prepared statement.

        Row-returning statements report ``count`` as the row total; others
        report the affected-row count from the command status tag.
        """
        logger.debug("adapter.raw", dialect="postgresql", sql=sql, param_count=len(params))
        try:
            async with self._client.acquire() as conn:
                stmt = await conn.prepare(sql)
                records = await stmt.fetch(*params)
                status = stmt.get_statusmsg()
        except Exception as e:
            error = error_from_exception(e)
            logger.warning("adapter.raw.failed", dialect="postgresql", error=error.message, code=error.code)
            return QueryResult(data=None, error=error, count=0)
        rows = [dict(record) for record in records]
        return QueryResult(data=rows, count=len(rows) or rows_affected(status))

    async def test_connection(self) -> bool:
        try:
            await self._client.fetchval("SELECT 1")
            return True
        except Exception as e:
            logger.warning("adapter.test_connection.failed", dialect="postgresql", error=str(e))
            return False

    async def _close(self) -> None:
        await self._client.close()


__all__ = ["PostgreSQLAdapter", "rows_affected"]
