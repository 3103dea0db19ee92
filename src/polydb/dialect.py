"""SQL dialect abstraction for the query builders.

Provides a ``Dialect`` protocol and the two SQL-text implementations the
builders render through.  A builder never hard-codes a placeholder style,
an upsert syntax or a case-insensitive match: it asks its dialect.

Manifesto:
    The chainable API is provider-neutral; the SQL it produces is not.
    Without a dialect layer every builder grows ``if mysql:`` branches and
    placeholder numbering bugs hide in whichever branch is tested least.

    - **One interface:** Dialect protocol for all SQL fragments
    - **Zero coupling:** Dialects never import database drivers
    - **Stateless:** one shared instance per backend

Architecture::

    ┌──────────────────────────┐ ┌──────────────────────────────┐
    │ PostgreSQL (asyncpg)     │ │ MySQL (aiomysql / PyMySQL)   │
    │ $1, $2, $3               │ │ %s, %s, %s                   │
    │ col ILIKE $1             │ │ LOWER(col) LIKE %s  (lowered)│
    │ ON CONFLICT (k) DO UPDATE│ │ ON DUPLICATE KEY UPDATE      │
    │ RETURNING *              │ │ (no RETURNING)               │
    └──────────────────────────┘ └──────────────────────────────┘

Examples:
    >>> from polydb.dialect import get_dialect
    >>> d = get_dialect("postgresql")
    >>> d.placeholder(0), d.placeholder(1)
    ('$1', '$2')
    >>> get_dialect("mysql").placeholder(5)
    '%s'

Guardrails:
    ❌ DON'T: Interpolate values into SQL text
    ✅ DO: Bind every value and render ``dialect.placeholder(i)``

Tags:
    dialect, sql, abstraction, portability, polydb
"""

from __future__ import annotations

import re
from typing import Any, Protocol, runtime_checkable

_INTEGER = re.compile(r"^-?\d+$")
_DECIMAL = re.compile(r"^-?\d+\.\d+$")

# Largest value MySQL accepts for LIMIT; used when only OFFSET is requested.
MYSQL_MAX_LIMIT = 18446744073709551615


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment (string) or a value to bind.
    """

    @property
    def name(self) -> str:
        """Dialect name (``'postgresql'`` or ``'mysql'``)."""
        ...

    @property
    def supports_returning(self) -> bool:
        """Whether mutations can append ``RETURNING``."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index).

        ``index`` is ignored by anonymous styles (MySQL ``%s``) but required
        by numbered ones (PostgreSQL ``$1``).
        """
        ...

    def ilike(self, column: str, placeholder: str) -> str:
        """Case-insensitive pattern predicate."""
        ...

    def ilike_value(self, value: Any) -> Any:
        """Value to bind for an ``ilike`` predicate."""
        ...

    def text_column(self, column: str) -> str:
        """Column expression compared against an untyped ``or_()`` equality literal."""
        ...

    def coerce_literal(self, value: str) -> Any:
        """Value to bind for an ``or_()`` range literal (``gt``/``gte``/``lt``/``lte``)."""
        ...

    def upsert_clause(self, columns: list[str], key_columns: list[str]) -> str:
        """Conflict clause appended to a multi-row ``INSERT``."""
        ...

    def pagination(self, limit: int | None, offset: int | None) -> str:
        """``LIMIT``/``OFFSET`` tail (empty string when neither is set)."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class PostgreSQLDialect:
    """PostgreSQL dialect: ``$n`` placeholders (asyncpg), native ``ILIKE``."""

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def supports_returning(self) -> bool:
        return True

    def placeholder(self, index: int) -> str:
        return f"${index + 1}"

    def ilike(self, column: str, placeholder: str) -> str:
        return f"{column} ILIKE {placeholder}"

    def ilike_value(self, value: Any) -> Any:
        return value

    def text_column(self, column: str) -> str:
        return f"{column}::text"

    def coerce_literal(self, value: str) -> Any:
        # asyncpg rejects str arguments for int/bool parameters
        if _INTEGER.match(value):
            return int(value)
        if _DECIMAL.match(value):
            return float(value)
        lowered = value.lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return value

    def upsert_clause(self, columns: list[str], key_columns: list[str]) -> str:
        keys = ", ".join(key_columns)
        update_cols = [c for c in columns if c not in key_columns]
        if not update_cols:
            return f"ON CONFLICT ({keys}) DO NOTHING"
        updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in update_cols)
        return f"ON CONFLICT ({keys}) DO UPDATE SET {updates}"

    def pagination(self, limit: int | None, offset: int | None) -> str:
        parts = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)


class MySQLDialect:
    """MySQL dialect: ``%s`` placeholders, ``LOWER(col) LIKE`` emulation.

    Compatible with ``aiomysql`` and ``PyMySQL`` (both use ``%s`` format
    paramstyle).  Values are consumed strictly in textual order.
    """

    @property
    def name(self) -> str:
        return "mysql"

    @property
    def supports_returning(self) -> bool:
        return False

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def ilike(self, column: str, placeholder: str) -> str:
        return f"LOWER({column}) LIKE {placeholder}"

    def ilike_value(self, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    def text_column(self, column: str) -> str:
        return column

    def coerce_literal(self, value: str) -> Any:
        return value

    def upsert_clause(self, columns: list[str], key_columns: list[str]) -> str:  # noqa: ARG002
        # MySQL infers the unique/primary key; the conflict key is not named
        updates = ", ".join(f"{c} = VALUES({c})" for c in columns)
        return f"ON DUPLICATE KEY UPDATE {updates}"

    def pagination(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is None:
            return ""
        if limit is None:
            limit = MYSQL_MAX_LIMIT
        if offset is None:
            return f"LIMIT {limit}"
        return f"LIMIT {limit} OFFSET {offset}"


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "mysql": MySQLDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


__all__ = [
    "Dialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "MYSQL_MAX_LIMIT",
    "get_dialect",
]
