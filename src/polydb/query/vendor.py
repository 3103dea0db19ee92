"""
Query builder that replays the chain onto a PostgREST-style vendor client.

No SQL text is produced here.  The accumulated :class:`QueryState` is
replayed at the terminal call as vendor SDK calls (``eq`` → ``eq``,
``ilike`` → ``ilike``, ``in_`` → ``in_``, ...) and the SDK owns
parameterization entirely.

Architecture:
    ::

        client.table(t)
          └── select(cols, count=) | insert(rows) | upsert(rows, on_conflict=)
              | update(patch) | delete()
                └── filters in call order (``not_`` prefix for negation)
                    └── order(col, desc=) → range/limit/offset   (reads only)
                        └── execute() | single() | maybe_single()

Features:
    - Works with both the sync and the async supabase/postgrest clients
      (the terminal ``execute()`` result is awaited only when awaitable)
    - Never raises for vendor errors: ``APIError`` and transport failures
      become ``QueryResult.failure(message, code)``

Tags:
    vendor, postgrest, supabase, query-builder, polydb
"""

from __future__ import annotations

import inspect
from typing import Any, Self

from polydb.filters import Filter, OrGroup, parse_or_filter
from polydb.logging import get_logger
from polydb.result import QueryResult, error_from_exception

from .base import Delete, Insert, QueryBuilder, Select, Update

logger = get_logger(__name__)

DIALECT = "vendor"


def _rows_count(data: Any) -> int:
    if data is None:
        return 0
    if isinstance(data, list):
        return len(data)
    return 1


async def execute_vendor_query(request: Any, *, table: str | None = None) -> QueryResult:
    """Run a composed vendor request and wrap its response.

    ``request`` is anything with an ``execute()`` method (query builder,
    ``rpc()`` call, ``single()`` chain).  A ``None`` response, which
    ``maybe_single()`` returns on some SDK versions when nothing matched, is
    an empty result.
    """
    log = logger.bind(dialect=DIALECT, table=table)
    try:
        response = request.execute()
        if inspect.isawaitable(response):
            response = await response
    except Exception as e:
        error = error_from_exception(e)
        log.warning("query.failed", error=error.message, code=error.code)
        return QueryResult(data=None, error=error, count=0)

    if response is None:
        return QueryResult(data=None, count=0)

    data = getattr(response, "data", None)
    count = getattr(response, "count", None)
    return QueryResult(data=data, count=count if count is not None else _rows_count(data))


class VendorQueryBuilder(QueryBuilder):
    """Chainable builder over ``client.table(name)``."""

    def __init__(self, client: Any, table: str):
        super().__init__(table)
        self._client = client

    def or_(self, expression: str) -> Self:
        """Disjunction passed to the vendor unchanged.

        The vendor parses the full PostgREST grammar itself, so nothing is
        dropped here and no warnings are recorded.
        """
        if not (expression or "").strip():
            return self
        parsed = parse_or_filter(expression)
        return self._where(OrGroup(filters=parsed.filters, expression=expression))

    def _compose(self) -> Any:
        state = self._state
        request = self._client.table(state.table)

        match state.mutation:
            case Select():
                if state.count is not None:
                    request = request.select(state.columns, count=state.count)
                else:
                    request = request.select(state.columns)
            case Insert(rows=rows, upsert=True, on_conflict=on_conflict):
                if on_conflict:
                    request = request.upsert(list(rows), on_conflict=on_conflict)
                else:
                    request = request.upsert(list(rows))
            case Insert(rows=rows):
                request = request.insert(list(rows))
            case Update(patch=patch):
                request = request.update(patch)
            case Delete():
                request = request.delete()

        for condition in state.conditions:
            request = self._apply_condition(request, condition)

        if isinstance(state.mutation, Select):
            for ordering in state.ordering:
                request = request.order(ordering.column, desc=not ordering.ascending)
            request = self._apply_pagination(request)

        return request

    @staticmethod
    def _apply_condition(request: Any, condition: Filter | OrGroup) -> Any:
        if isinstance(condition, OrGroup):
            return request.or_(condition.to_expression())

        target = request.not_ if condition.negated else request
        value = condition.value
        match condition.operator:
            case "in":
                return target.in_(condition.column, list(value) if isinstance(value, tuple) else [])
            case "is":
                if value is None:
                    value = "null"
                elif isinstance(value, bool):
                    value = str(value).lower()
                return target.is_(condition.column, value)
            case operator:
                return getattr(target, operator)(condition.column, value)

    def _apply_pagination(self, request: Any) -> Any:
        limit, offset = self._state.limit, self._state.offset
        if limit is not None and offset is not None:
            return request.range(offset, offset + limit - 1)
        if limit is not None:
            return request.limit(limit)
        if offset is not None:
            return request.offset(offset)
        return request

    async def execute(self) -> QueryResult:
        logger.debug(
            "query.execute",
            dialect=DIALECT,
            table=self._state.table,
            mutation=type(self._state.mutation).__name__,
            conditions=len(self._state.conditions),
        )
        return await execute_vendor_query(self._compose(), table=self._state.table)

    async def single(self) -> QueryResult:
        """Vendor ``single()``: exactly one row, else the vendor's error."""
        if not isinstance(self._state.mutation, Select):
            return await super().single()
        return await execute_vendor_query(self._compose().single(), table=self._state.table)

    async def maybe_single(self) -> QueryResult:
        if not isinstance(self._state.mutation, Select):
            return await super().maybe_single()
        return await execute_vendor_query(self._compose().maybe_single(), table=self._state.table)


__all__ = ["VendorQueryBuilder", "execute_vendor_query"]
