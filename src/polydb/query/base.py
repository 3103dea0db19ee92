"""Provider-neutral chainable query builder.

Manifesto:
    Route handlers write one chain and never ask which backend a tenant runs::

        result = await (
            adapter.from_("users")
            .select("*")
            .eq("status", "active")
            .order("created_at", ascending=False)
            .limit(2)
        )

    The builder only records intent.  Each dialect subclass decides how that
    intent becomes SQL text (or vendor SDK calls) at the terminal call.

Features:
    - **Immutable values:** every chained call returns a new builder; a
      builder can be branched or awaited again without cross-talk
    - **One mutation per statement:** ``insert``/``upsert``/``update``/
      ``delete`` are a tagged variant set at most once
    - **Structured filters:** conditions are kept as :class:`Filter` /
      :class:`OrGroup` values so placeholders are numbered at build time
    - **Awaitable:** ``await builder`` is ``await builder.execute()``

Guardrails:
    ❌ DON'T: ``q.insert(a).update(b)`` raises :class:`QueryBuilderError`
    ✅ DO: Build one statement per mutation

Tags:
    query-builder, fluent-api, immutable, polydb
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Generator, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Self

from polydb.errors import QueryBuilderError
from polydb.filters import FILTER_OPERATORS, Condition, Filter, parse_or_filter
from polydb.logging import get_logger
from polydb.result import QueryResult

logger = get_logger(__name__)

COUNT_METHODS = ("exact", "planned", "estimated")


# =============================================================================
# Mutation variants
# =============================================================================


@dataclass(frozen=True)
class Select:
    """No mutation: the statement reads rows."""


@dataclass(frozen=True)
class Insert:
    """Multi-row insert; ``upsert=True`` adds the dialect's conflict clause."""

    rows: tuple[dict[str, Any], ...]
    upsert: bool = False
    on_conflict: str | None = None

    @property
    def columns(self) -> list[str]:
        """Union of row keys in first-seen order."""
        seen: dict[str, None] = {}
        for row in self.rows:
            for key in row:
                seen.setdefault(key, None)
        return list(seen)

    @property
    def conflict_columns(self) -> list[str]:
        if not self.on_conflict:
            return ["id"]
        return [c.strip() for c in self.on_conflict.split(",") if c.strip()]


@dataclass(frozen=True)
class Update:
    patch: dict[str, Any]


@dataclass(frozen=True)
class Delete:
    pass


Mutation = Select | Insert | Update | Delete


@dataclass(frozen=True)
class Ordering:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class QueryState:
    """Everything a builder has accumulated so far."""

    table: str
    columns: str = "*"
    count: str | None = None
    conditions: tuple[Condition, ...] = ()
    ordering: tuple[Ordering, ...] = ()
    limit: int | None = None
    offset: int | None = None
    mutation: Mutation = field(default_factory=Select)
    warnings: tuple[str, ...] = ()


def _normalize_rows(rows: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> tuple[dict[str, Any], ...]:
    if isinstance(rows, Mapping):
        rows = [rows]
    normalized = tuple(dict(row) for row in rows)
    if not normalized or any(not row for row in normalized):
        raise QueryBuilderError("insert()/upsert() requires at least one non-empty row")
    return normalized


def _check_count(value: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise QueryBuilderError(f"{what} must be a non-negative integer, got {value!r}")
    return value


class QueryBuilder(ABC):
    """
    Abstract chainable builder shared by all dialects.

    Subclasses implement :meth:`execute`; :meth:`single` and
    :meth:`maybe_single` default to "first row of ``execute()`` or ``None``".
    """

    def __init__(self, table: str):
        if not table:
            raise QueryBuilderError("from_() requires a table name")
        self._state = QueryState(table=table)

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def table(self) -> str:
        return self._state.table

    @property
    def warnings(self) -> tuple[str, ...]:
        """``or_()`` segments that were rejected while building this query."""
        return self._state.warnings

    def _evolve(self, **changes: Any) -> Self:
        clone = copy.copy(self)
        clone._state = replace(self._state, **changes)
        return clone

    def _where(self, condition: Condition) -> Self:
        return self._evolve(conditions=(*self._state.conditions, condition))

    def _with_mutation(self, mutation: Mutation) -> Self:
        current = self._state.mutation
        if not isinstance(current, Select):
            raise QueryBuilderError(
                f"{type(current).__name__.lower()}() is already set on this query; "
                f"cannot also {type(mutation).__name__.lower()}()"
            )
        return self._evolve(mutation=mutation)

    # -- Column selection --------------------------------------------------

    def select(self, columns: str = "*", *, count: str | None = None) -> Self:
        """Choose columns; ``count="exact"`` also reports the total match count.

        After a mutation this only sets the returned columns.
        """
        if count is not None and count not in COUNT_METHODS:
            raise QueryBuilderError(f"Unknown count method {count!r}; expected one of {COUNT_METHODS}")
        return self._evolve(columns=columns or "*", count=count)

    # -- Mutations ---------------------------------------------------------

    def insert(self, rows: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> Self:
        return self._with_mutation(Insert(rows=_normalize_rows(rows)))

    def upsert(
        self,
        rows: Mapping[str, Any] | Sequence[Mapping[str, Any]],
        *,
        on_conflict: str | None = None,
    ) -> Self:
        return self._with_mutation(
            Insert(rows=_normalize_rows(rows), upsert=True, on_conflict=on_conflict)
        )

    def update(self, patch: Mapping[str, Any]) -> Self:
        if not patch:
            raise QueryBuilderError("update() requires at least one column")
        return self._with_mutation(Update(patch=dict(patch)))

    def delete(self) -> Self:
        return self._with_mutation(Delete())

    # -- Filters -----------------------------------------------------------

    def eq(self, column: str, value: Any) -> Self:
        return self._where(Filter(column, "eq", value))

    def neq(self, column: str, value: Any) -> Self:
        return self._where(Filter(column, "neq", value))

    def gt(self, column: str, value: Any) -> Self:
        return self._where(Filter(column, "gt", value))

    def gte(self, column: str, value: Any) -> Self:
        return self._where(Filter(column, "gte", value))

    def lt(self, column: str, value: Any) -> Self:
        return self._where(Filter(column, "lt", value))

    def lte(self, column: str, value: Any) -> Self:
        return self._where(Filter(column, "lte", value))

    def like(self, column: str, pattern: str) -> Self:
        return self._where(Filter(column, "like", pattern))

    def ilike(self, column: str, pattern: str) -> Self:
        return self._where(Filter(column, "ilike", pattern))

    def in_(self, column: str, values: Sequence[Any] | None) -> Self:
        """Set membership; an empty or non-list ``values`` matches nothing."""
        if isinstance(values, (list, tuple, set, frozenset)):
            values = tuple(values)
        return self._where(Filter(column, "in", values))

    def is_(self, column: str, value: Any) -> Self:
        """``IS NULL`` for ``None``/``"null"``, ``IS TRUE``/``IS FALSE`` for bools."""
        return self._where(Filter(column, "is", value))

    def filter(self, column: str, operator: str, value: Any) -> Self:
        """Generic form of the filter methods, e.g. ``filter("age", "gte", 18)``."""
        return self._where(self._make_filter(column, operator, value, negated=False))

    def not_(self, column: str, operator: str, value: Any) -> Self:
        """Negated filter: ``not_("status", "eq", "archived")``."""
        return self._where(self._make_filter(column, operator, value, negated=True))

    def match(self, query: Mapping[str, Any]) -> Self:
        """``eq`` for every key of ``query``, in key order."""
        builder = self
        for column, value in query.items():
            builder = builder.eq(column, value)
        return builder

    def or_(self, expression: str) -> Self:
        """Disjunction in the compact ``"col.op.value,col.op.value"`` grammar.

        Malformed segments are dropped and recorded in :attr:`warnings`; when
        nothing parses, no condition is added at all.
        """
        parsed = parse_or_filter(expression)
        changes: dict[str, Any] = {}
        if parsed.rejected:
            logger.warning(
                "query.or_filter.rejected",
                table=self._state.table,
                segments=list(parsed.rejected),
            )
            changes["warnings"] = (*self._state.warnings, *parsed.rejected)
        group = parsed.group()
        if group is not None:
            changes["conditions"] = (*self._state.conditions, group)
        return self._evolve(**changes) if changes else self

    @staticmethod
    def _make_filter(column: str, operator: str, value: Any, *, negated: bool) -> Filter:
        if operator not in FILTER_OPERATORS:
            raise QueryBuilderError(f"Unknown filter operator {operator!r}; expected one of {FILTER_OPERATORS}")
        if operator == "in" and isinstance(value, (list, tuple, set, frozenset)):
            value = tuple(value)
        return Filter(column, operator, value, negated=negated)

    # -- Ordering / pagination ---------------------------------------------

    def order(self, column: str, *, ascending: bool = True) -> Self:
        return self._evolve(ordering=(*self._state.ordering, Ordering(column, ascending)))

    def limit(self, count: int) -> Self:
        return self._evolve(limit=_check_count(count, "limit"))

    def offset(self, count: int) -> Self:
        return self._evolve(offset=_check_count(count, "offset"))

    def range(self, start: int, end: int) -> Self:
        """Inclusive row window: ``range(10, 19)`` is ``LIMIT 10 OFFSET 10``."""
        _check_count(start, "range start")
        _check_count(end, "range end")
        if end < start:
            raise QueryBuilderError(f"range end ({end}) is before start ({start})")
        return self._evolve(limit=end - start + 1, offset=start)

    # -- Terminal operations -----------------------------------------------

    @abstractmethod
    async def execute(self) -> QueryResult:
        """Run the statement and return every row (or the mutation outcome)."""
        ...

    async def single(self) -> QueryResult:
        """First row as ``data``, ``None`` when nothing matched."""
        return (await self.execute()).first()

    async def maybe_single(self) -> QueryResult:
        """Same as :meth:`single`: no row is not an error."""
        return (await self.execute()).first()

    def __await__(self) -> Generator[Any, None, QueryResult]:
        return self.execute().__await__()

    def __repr__(self) -> str:
        state = self._state
        return (
            f"{self.__class__.__name__}(table={state.table!r}, "
            f"mutation={type(state.mutation).__name__}, conditions={len(state.conditions)})"
        )


__all__ = [
    "COUNT_METHODS",
    "Select",
    "Insert",
    "Update",
    "Delete",
    "Mutation",
    "Ordering",
    "QueryState",
    "QueryBuilder",
]
