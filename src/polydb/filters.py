"""
Filter conditions and the OR-filter mini-parser.

Builders keep filters as values rather than pre-rendered SQL so that each
dialect renders (and numbers) its own placeholders at build time.

The OR grammar is the compact PostgREST form used by ``or_()``::

    expression := segment ("," segment)*
    segment    := column "." operator "." value
    operator   := eq | neq | gt | gte | lt | lte | like | ilike

Segments that do not match are rejected, not fatal: the parse keeps going
and reports them in :attr:`OrFilterParse.rejected`.

Examples:
    >>> parsed = parse_or_filter("name.eq.Bob,garbage,age.gt.30")
    >>> [(f.column, f.operator, f.value) for f in parsed.filters]
    [('name', 'eq', 'Bob'), ('age', 'gt', '30')]
    >>> parsed.rejected
    ('garbage',)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

COMPARISON_OPERATORS: dict[str, str] = {
    "eq": "=",
    "neq": "!=",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
}
EQUALITY_OPERATORS: tuple[str, ...] = ("eq", "neq")
PATTERN_OPERATORS: tuple[str, ...] = ("like", "ilike")
OR_OPERATORS: tuple[str, ...] = (*COMPARISON_OPERATORS, *PATTERN_OPERATORS)
FILTER_OPERATORS: tuple[str, ...] = (*OR_OPERATORS, "in", "is")

_SEGMENT = re.compile(
    r"^([A-Za-z_][A-Za-z0-9_]*)\.(" + "|".join(OR_OPERATORS) + r")\.(.+)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class Filter:
    """One predicate: ``column <operator> value``, optionally negated."""

    column: str
    operator: str
    value: Any
    negated: bool = False


@dataclass(frozen=True)
class OrGroup:
    """Disjunction of filters, rendered as one parenthesized AND-chain member.

    ``expression`` is the caller's original string; PostgREST-style backends
    receive it verbatim since they understand more of the grammar
    (``is.null``, ``in.(...)``, ``and(...)``) than the SQL renderers do.
    """

    filters: tuple[Filter, ...]
    expression: str | None = None

    def to_expression(self) -> str:
        """The original expression, else the accepted segments re-serialized."""
        if self.expression is not None:
            return self.expression
        return ",".join(f"{f.column}.{f.operator}.{f.value}" for f in self.filters)


Condition = Filter | OrGroup


@dataclass(frozen=True)
class OrFilterParse:
    """Outcome of :func:`parse_or_filter`."""

    filters: tuple[Filter, ...]
    rejected: tuple[str, ...]

    def group(self) -> OrGroup | None:
        """The condition to append, or ``None`` when nothing parsed."""
        if not self.filters:
            return None
        return OrGroup(self.filters)


def parse_or_filter(expression: str) -> OrFilterParse:
    """Parse ``"col.op.value,col.op.value"`` into filters.

    Blank segments (e.g. a trailing comma) are ignored; any other segment
    that does not match the grammar is collected in ``rejected``.
    """
    filters: list[Filter] = []
    rejected: list[str] = []

    for raw in (expression or "").split(","):
        segment = raw.strip()
        if not segment:
            continue
        match = _SEGMENT.match(segment)
        if match is None:
            rejected.append(segment)
            continue
        column, operator, value = match.groups()
        filters.append(Filter(column=column, operator=operator, value=value))

    return OrFilterParse(filters=tuple(filters), rejected=tuple(rejected))


__all__ = [
    "COMPARISON_OPERATORS",
    "EQUALITY_OPERATORS",
    "PATTERN_OPERATORS",
    "OR_OPERATORS",
    "FILTER_OPERATORS",
    "Filter",
    "OrGroup",
    "Condition",
    "OrFilterParse",
    "parse_or_filter",
]
