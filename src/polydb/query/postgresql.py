"""PostgreSQL query builder over an asyncpg pool."""

from __future__ import annotations

from typing import Any

from polydb.dialect import get_dialect
from polydb.result import QueryResult

from .sql import CompiledQuery, SQLQueryBuilder


class PostgreSQLQueryBuilder(SQLQueryBuilder):
    """
    Renders ``$n`` placeholders and executes through ``asyncpg.Pool``.

    Mutations append ``RETURNING`` so ``data`` holds the affected rows and
    ``count`` their number.
    """

    dialect = get_dialect("postgresql")

    def __init__(self, pool: Any, table: str):
        super().__init__(table)
        self._pool = pool

    async def _fetch_rows(self, query: CompiledQuery) -> list[dict[str, Any]]:
        records = await self._pool.fetch(query.sql, *query.params)
        return [dict(record) for record in records]

    async def _fetch_count(self, query: CompiledQuery) -> int:
        value = await self._pool.fetchval(query.sql, *query.params)
        return int(value or 0)

    async def _execute_mutation(self, query: CompiledQuery) -> QueryResult:
        rows = await self._fetch_rows(query)
        return QueryResult(data=rows, count=len(rows))


__all__ = ["PostgreSQLQueryBuilder"]
