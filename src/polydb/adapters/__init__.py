"""Database adapters -- one contract over three backends.

Manifesto:
    A tenant may run on raw PostgreSQL, MySQL, or a hosted PostgREST-style
    service.  Route handlers receive a :class:`DatabaseAdapter` and write the
    same chain against all three.

    Drivers are **import-guarded**: only :func:`connect_adapter` imports
    them, so install just the extra you use::

        pip install polydb[postgresql]   # asyncpg
        pip install polydb[mysql]        # aiomysql
        pip install polydb[vendor]       # supabase

Architecture::

    DatabaseAdapter (base.py)        from_/raw/test_connection/close/get_type
        |-- PostgreSQLAdapter        asyncpg pool
        |-- MySQLAdapter             aiomysql pool
        |-- VendorAdapter            supabase client (raw unsupported, rpc)

    AdapterRegistry (registry.py)    name -> adapter class, connect_adapter()
    DatabaseConfig (types.py)        connection parameters
    DatabaseType (types.py)          enum of supported backends

Guardrails:
    ❌ ``adapter.raw("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``adapter.from_("t").eq("id", user_input)``
    ❌ ``await adapter.raw(...)`` on the vendor adapter
    ✅ ``await adapter.rpc("function_name", {...})``

Tags:
    database, adapters, multi-backend, import-guarded, registry-pattern,
    postgresql, mysql, supabase, polydb
"""

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_registry, connect_adapter, get_adapter
from .types import DatabaseConfig, DatabaseType
from .vendor import VendorAdapter

__all__ = [
    # Base
    "DatabaseAdapter",
    # Types
    "DatabaseType",
    "DatabaseConfig",
    # Implementations
    "PostgreSQLAdapter",
    "MySQLAdapter",
    "VendorAdapter",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
    "connect_adapter",
]
