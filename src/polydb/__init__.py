"""
polydb - one chainable query API over PostgreSQL, MySQL and a hosted
PostgREST-style service.

    >>> adapter = await connect_adapter(PolyDBSettings().database_config())
    >>> result = await adapter.from_("users").select("*").eq("status", "active").limit(2)
    >>> result.data, result.error, result.count
"""

__version__ = "0.1.0"

from polydb.adapters import (
    DatabaseAdapter,
    DatabaseConfig,
    DatabaseType,
    MySQLAdapter,
    PostgreSQLAdapter,
    VendorAdapter,
    connect_adapter,
    get_adapter,
)
from polydb.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    PolyDBError,
    QueryBuilderError,
    QueryError,
    UnsupportedOperationError,
)
from polydb.query import QueryBuilder
from polydb.result import QueryResult, ResultError
from polydb.settings import PolyDBSettings

__all__ = [
    "__version__",
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "PostgreSQLAdapter",
    "MySQLAdapter",
    "VendorAdapter",
    "connect_adapter",
    "get_adapter",
    "QueryBuilder",
    "QueryResult",
    "ResultError",
    "PolyDBSettings",
    "PolyDBError",
    "ConfigError",
    "QueryBuilderError",
    "UnsupportedOperationError",
    "DatabaseError",
    "QueryError",
    "DatabaseConnectionError",
]
