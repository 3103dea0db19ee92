"""
Structured error types for polydb.

Every error raised by this package carries a category, a retry hint, an
optional structured context and the chained driver exception (if any), so
route handlers can log and translate failures without string matching.

Manifesto:
    - **Typed hierarchy:** callers catch what they can handle
    - **Explicit retry semantics:** connection failures are retryable,
      builder misuse never is
    - **Error chaining:** driver exceptions are kept as ``cause``

Architecture:
    ::

        PolyDBError
        ├── ConfigError                  (CONFIG)
        ├── QueryBuilderError            (BUILDER)     caller misuse
        ├── UnsupportedOperationError    (UNSUPPORTED) e.g. vendor raw()
        └── DatabaseError                (DATABASE)
            ├── QueryError
            └── DatabaseConnectionError  retryable

Guardrails:
    ❌ DON'T: Wrap driver errors raised by ``execute()`` / ``single()``
    ✅ DO: Let them propagate; ``raw()`` is the only normalizing path

Tags:
    error-handling, exception-hierarchy, polydb
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    DATABASE = "DATABASE"        # Connection pool, driver, query failures
    CONFIG = "CONFIG"            # Missing driver, bad settings
    BUILDER = "BUILDER"          # Invalid chained call
    UNSUPPORTED = "UNSUPPORTED"  # Operation not offered by the dialect
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Only non-``None`` fields are serialized by :meth:`to_dict`.
    """

    dialect: str | None = None
    table: str | None = None
    operation: str | None = None
    sqlstate: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["dialect", "table", "operation", "sqlstate"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class PolyDBError(Exception):
    """
    Base exception for all polydb errors.

    Subclasses set ``default_category`` and ``default_retryable``.

    Examples:
        >>> error = PolyDBError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(table="users").context.table
        'users'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> PolyDBError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("Failed").with_context(dialect="mysql", table="orders")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(PolyDBError):
    """
    Configuration error.

    Never retryable - configuration (or the installed extras) must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# BUILDER / CONTRACT ERRORS
# =============================================================================


class QueryBuilderError(PolyDBError):
    """Invalid chained call: programming error on the caller's side."""

    default_category = ErrorCategory.BUILDER
    default_retryable = False


class UnsupportedOperationError(PolyDBError):
    """The active dialect does not offer this operation."""

    default_category = ErrorCategory.UNSUPPORTED
    default_retryable = False

    def __init__(self, operation: str, dialect: str, message: str | None = None):
        self.operation = operation
        self.dialect = dialect
        super().__init__(
            message or f"{operation}() is not supported by the {dialect} adapter",
            context=ErrorContext(dialect=dialect, operation=operation),
        )


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(PolyDBError):
    """Database query or transaction error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class QueryError(DatabaseError):
    """SQL query error."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Database connection or pool error."""

    default_retryable = True


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, PolyDBError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "PolyDBError",
    "ConfigError",
    "QueryBuilderError",
    "UnsupportedOperationError",
    "DatabaseError",
    "QueryError",
    "DatabaseConnectionError",
    "is_retryable",
]
