"""
Result envelope returned by every terminal operation.

Route handlers read ``data``, ``error`` and ``count`` the same way whether
the tenant runs PostgreSQL, MySQL or the hosted vendor service.

Architecture:
    ::

        QueryResult
        ├── data:  list[row] | row | None
        ├── error: ResultError(message, code) | None
        └── count: int   (rows returned/affected, or COUNT(*) when requested)

Examples:
    >>> ok = QueryResult(data=[{"id": 1}], count=1)
    >>> ok.ok
    True
    >>> failed = QueryResult.failure("relation does not exist", code="42P01")
    >>> failed.to_dict()["error"]["code"]
    '42P01'

Tags:
    result-envelope, polydb
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from polydb.errors import ErrorContext, QueryError


@dataclass(frozen=True)
class ResultError:
    """Normalized driver or vendor error."""

    message: str
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code}


def error_from_exception(exc: BaseException) -> ResultError:
    """Normalize a driver or vendor exception.

    ``code`` comes from asyncpg's ``sqlstate``, a vendor ``code`` attribute,
    or PyMySQL's ``(errno, message)`` args, in that order.
    """
    code = getattr(exc, "sqlstate", None) or getattr(exc, "code", None)
    message = getattr(exc, "message", None)
    args = getattr(exc, "args", ())
    if code is None and len(args) >= 2 and isinstance(args[0], int):
        code, message = args[0], args[1]
    return ResultError(
        message=str(message) if message else str(exc),
        code=str(code) if code is not None else None,
    )


@dataclass(frozen=True)
class QueryResult:
    """Uniform ``{data, error, count}`` envelope."""

    data: Any = None
    error: ResultError | None = None
    count: int = 0

    @property
    def ok(self) -> bool:
        """True when no error was recorded."""
        return self.error is None

    @classmethod
    def failure(cls, message: str, code: str | None = None) -> QueryResult:
        """Envelope for a normalized failure: no data, zero count."""
        return cls(data=None, error=ResultError(message=message, code=code), count=0)

    def first(self) -> QueryResult:
        """Collapse a row list to its first row (``None`` when empty)."""
        rows = self.data
        if isinstance(rows, list):
            return QueryResult(data=rows[0] if rows else None, error=self.error, count=self.count)
        return self

    def raise_for_error(self) -> QueryResult:
        """Raise :class:`QueryError` if this envelope carries an error."""
        if self.error is not None:
            raise QueryError(self.error.message, context=ErrorContext(sqlstate=self.error.code))
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "error": self.error.to_dict() if self.error else None,
            "count": self.count,
        }


__all__ = ["QueryResult", "ResultError", "error_from_exception"]
