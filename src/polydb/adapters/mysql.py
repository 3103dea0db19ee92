"""MySQL / MariaDB adapter over an aiomysql pool."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from polydb.logging import get_logger
from polydb.query.mysql import MySQLQueryBuilder, mutation_summary, rows_as_dicts
from polydb.result import QueryResult, error_from_exception

from .base import DatabaseAdapter
from .types import DatabaseType

logger = get_logger(__name__)


class MySQLAdapter(DatabaseAdapter):
    """
    MySQL database adapter.

    Uses ``%s`` placeholders (aiomysql / PyMySQL paramstyle).
    Statements without a result set return
    ``[{"affected_rows": n, "last_insert_id": id}]``.
    """

    def __init__(self, pool: Any, **kwargs: Any):
        super().__init__(pool, DatabaseType.MYSQL)

    def from_(self, table: str) -> MySQLQueryBuilder:
        return MySQLQueryBuilder(self._client, table)

    async def raw(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        logger.debug("adapter.raw", dialect="mysql", sql=sql, param_count=len(params))
        try:
            async with self._client.acquire() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(sql, tuple(params) or None)
                    if cur.description:
                        rows = rows_as_dicts(cur, await cur.fetchall())
                        return QueryResult(data=rows, count=len(rows))
                    summary = mutation_summary(cur)
                await conn.commit()
        except Exception as e:
            error = error_from_exception(e)
            logger.warning("adapter.raw.failed", dialect="mysql", error=error.message, code=error.code)
            return QueryResult(data=None, error=error, count=0)
        return QueryResult(data=[summary], count=summary["affected_rows"])

    async def test_connection(self) -> bool:
        try:
            async with self._client.acquire() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT 1")
                    await cur.fetchone()
            return True
        except Exception as e:
            logger.warning("adapter.test_connection.failed", dialect="mysql", error=str(e))
            return False

    async def _close(self) -> None:
        self._client.close()
        await self._client.wait_closed()


__all__ = ["MySQLAdapter"]
