"""MySQL query builder over an aiomysql pool.

MySQL has no ``RETURNING``: mutations report what the driver reports, i.e.
``data=[{"affected_rows": n, "last_insert_id": id}]`` and ``count=n``.
Callers that need the mutated row must read it back.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from polydb.dialect import get_dialect
from polydb.result import QueryResult

from .sql import CompiledQuery, SQLQueryBuilder


def rows_as_dicts(cursor: Any, rows: Sequence[Any]) -> list[dict[str, Any]]:
    """Rows from a plain or ``DictCursor`` as dicts keyed by column name."""
    if rows and isinstance(rows[0], dict):
        return [dict(row) for row in rows]
    columns = [desc[0] for desc in cursor.description or ()]
    return [dict(zip(columns, row, strict=False)) for row in rows]


def mutation_summary(cursor: Any) -> dict[str, Any]:
    return {"affected_rows": cursor.rowcount, "last_insert_id": cursor.lastrowid}


class MySQLQueryBuilder(SQLQueryBuilder):
    """Renders ``%s`` placeholders and executes through ``aiomysql.Pool``."""

    dialect = get_dialect("mysql")

    def __init__(self, pool: Any, table: str):
        super().__init__(table)
        self._pool = pool

    async def _fetch_rows(self, query: CompiledQuery) -> list[dict[str, Any]]:
        async with self._pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query.sql, query.params or None)
                return rows_as_dicts(cur, await cur.fetchall())

    async def _fetch_count(self, query: CompiledQuery) -> int:
        rows = await self._fetch_rows(query)
        if not rows:
            return 0
        return int(next(iter(rows[0].values())) or 0)

    async def _execute_mutation(self, query: CompiledQuery) -> QueryResult:
        async with self._pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query.sql, query.params or None)
                summary = mutation_summary(cur)
            await conn.commit()
        return QueryResult(data=[summary], count=summary["affected_rows"])


__all__ = ["MySQLQueryBuilder", "rows_as_dicts", "mutation_summary"]
