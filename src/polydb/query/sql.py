"""SQL-text rendering shared by the PostgreSQL and MySQL builders.

The builder state is rendered in one pass that appends each bound value to
a parameter list at the moment its placeholder is written.  Placeholder
numbering and parameter order therefore always follow the textual order of
the statement::

    UPDATE users SET name = $1 WHERE id = $2 RETURNING *      -- PostgreSQL
    UPDATE users SET name = %s WHERE id = %s                  -- MySQL

Clause order for reads is fixed: ``WHERE`` (AND of conditions in call
order) → ``ORDER BY`` → ``LIMIT`` → ``OFFSET``.

Identifiers cannot be bound, so table and column names are validated
against a plain identifier pattern instead.
"""

from __future__ import annotations

import re
from abc import abstractmethod
from dataclasses import dataclass, replace
from typing import Any, ClassVar

from polydb.dialect import Dialect
from polydb.errors import QueryBuilderError
from polydb.filters import COMPARISON_OPERATORS, EQUALITY_OPERATORS, Condition, Filter, OrGroup
from polydb.logging import get_logger
from polydb.result import QueryResult

from .base import Delete, Insert, QueryBuilder, Select, Update

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def quote_identifier(name: str) -> str:
    """Validate a table/column name; returns it unchanged."""
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise QueryBuilderError(f"Invalid identifier: {name!r}")
    return name


def select_list(columns: str) -> str:
    parts = [part.strip() for part in columns.split(",")]
    for part in parts:
        if part != "*":
            quote_identifier(part)
    return ", ".join(parts)


@dataclass(frozen=True)
class CompiledQuery:
    """SQL text plus the parameters aligned with its placeholders."""

    sql: str
    params: tuple[Any, ...] = ()


class SQLQueryBuilder(QueryBuilder):
    """Builder that renders SQL text through a :class:`Dialect`.

    Subclasses bind a dialect and implement the three driver hooks.
    """

    dialect: ClassVar[Dialect]

    # -- Rendering ---------------------------------------------------------

    def build(self) -> CompiledQuery:
        """Render the statement for the current state."""
        state = self._state
        table = quote_identifier(state.table)
        params: list[Any] = []

        match state.mutation:
            case Select():
                sql = f"SELECT {select_list(state.columns)} FROM {table}"
                sql += self._render_where(params)
                sql += self._render_order()
                tail = self.dialect.pagination(state.limit, state.offset)
                if tail:
                    sql += f" {tail}"
            case Insert() as insert:
                columns = [quote_identifier(c) for c in insert.columns]
                values = ", ".join(
                    "(" + ", ".join(self._bind(params, row.get(c)) for c in columns) + ")"
                    for row in insert.rows
                )
                sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES {values}"
                if insert.upsert:
                    keys = [quote_identifier(c) for c in insert.conflict_columns]
                    sql += f" {self.dialect.upsert_clause(columns, keys)}"
                sql += self._render_returning()
            case Update(patch=patch):
                assignments = ", ".join(
                    f"{quote_identifier(column)} = {self._bind(params, value)}"
                    for column, value in patch.items()
                )
                sql = f"UPDATE {table} SET {assignments}"
                sql += self._render_where(params)
                sql += self._render_returning()
            case Delete():
                sql = f"DELETE FROM {table}"
                sql += self._render_where(params)
                sql += self._render_returning()

        return CompiledQuery(sql=sql, params=tuple(params))

    def build_count(self) -> CompiledQuery:
        """``SELECT COUNT(*)`` over the same conditions, without pagination."""
        params: list[Any] = []
        sql = f"SELECT COUNT(*) FROM {quote_identifier(self._state.table)}"
        sql += self._render_where(params)
        return CompiledQuery(sql=sql, params=tuple(params))

    def _bind(self, params: list[Any], value: Any) -> str:
        params.append(value)
        return self.dialect.placeholder(len(params) - 1)

    def _render_where(self, params: list[Any]) -> str:
        fragments = [self._render_condition(c, params) for c in self._state.conditions]
        if not fragments:
            return ""
        return " WHERE " + " AND ".join(fragments)

    def _render_condition(self, condition: Condition, params: list[Any]) -> str:
        if isinstance(condition, OrGroup):
            return "(" + " OR ".join(self._render_or_segment(f, params) for f in condition.filters) + ")"
        return self._render_filter(condition, params)

    def _render_or_segment(self, f: Filter, params: list[Any]) -> str:
        # Literals parsed from a string carry no type: equality compares as
        # text, range comparisons bind the dialect's coerced value.
        if f.operator in EQUALITY_OPERATORS:
            return self._render_filter(f, params, column=self.dialect.text_column(quote_identifier(f.column)))
        if f.operator in COMPARISON_OPERATORS:
            return self._render_filter(replace(f, value=self.dialect.coerce_literal(f.value)), params)
        return self._render_filter(f, params)

    def _render_filter(self, f: Filter, params: list[Any], *, column: str | None = None) -> str:
        column = column or quote_identifier(f.column)
        operator = f.operator

        if operator in COMPARISON_OPERATORS:
            sql = f"{column} {COMPARISON_OPERATORS[operator]} {self._bind(params, f.value)}"
        elif operator == "like":
            sql = f"{column} LIKE {self._bind(params, f.value)}"
        elif operator == "ilike":
            sql = self.dialect.ilike(column, self._bind(params, self.dialect.ilike_value(f.value)))
        elif operator == "in":
            if not isinstance(f.value, tuple) or not f.value:
                sql = "1=0"
            else:
                placeholders = ", ".join(self._bind(params, v) for v in f.value)
                sql = f"{column} IN ({placeholders})"
        elif operator == "is":
            sql = f"{column} IS {self._render_is_operand(f.value, params)}"
        else:
            raise QueryBuilderError(f"Unknown filter operator {operator!r}")

        return f"NOT ({sql})" if f.negated else sql

    def _render_is_operand(self, value: Any, params: list[Any]) -> str:
        if value is None or (isinstance(value, str) and value.lower() == "null"):
            return "NULL"
        if value is True:
            return "TRUE"
        if value is False:
            return "FALSE"
        return self._bind(params, value)

    def _render_order(self) -> str:
        if not self._state.ordering:
            return ""
        terms = ", ".join(
            f"{quote_identifier(o.column)} {'ASC' if o.ascending else 'DESC'}"
            for o in self._state.ordering
        )
        return f" ORDER BY {terms}"

    def _render_returning(self) -> str:
        if not self.dialect.supports_returning:
            return ""
        return f" RETURNING {select_list(self._state.columns)}"

    # -- Execution ---------------------------------------------------------

    async def execute(self) -> QueryResult:
        """Run the statement.

        Driver exceptions are logged and re-raised unchanged; callers wrap
        terminal calls in their own failure handling.
        """
        state = self._state
        query = self.build()
        log = logger.bind(dialect=self.dialect.name, table=state.table)
        log.debug("query.execute", sql=query.sql, param_count=len(query.params))

        try:
            if not isinstance(state.mutation, Select):
                return await self._execute_mutation(query)

            rows = await self._fetch_rows(query)
            count = len(rows)
            if state.count is not None:
                count_query = self.build_count()
                log.debug("query.count", sql=count_query.sql, param_count=len(count_query.params))
                count = await self._fetch_count(count_query)
            return QueryResult(data=rows, count=count)
        except Exception as e:
            log.error("query.failed", mutation=type(state.mutation).__name__, error=str(e))
            raise

    @abstractmethod
    async def _fetch_rows(self, query: CompiledQuery) -> list[dict[str, Any]]:
        """Run a row-returning statement."""
        ...

    @abstractmethod
    async def _fetch_count(self, query: CompiledQuery) -> int:
        """Run a ``COUNT(*)`` statement and return the scalar."""
        ...

    @abstractmethod
    async def _execute_mutation(self, query: CompiledQuery) -> QueryResult:
        """Run an INSERT/UPDATE/DELETE and build its envelope."""
        ...


__all__ = [
    "CompiledQuery",
    "SQLQueryBuilder",
    "quote_identifier",
    "select_list",
]
