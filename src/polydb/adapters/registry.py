"""Database adapter registry and factory.

Manifesto:
    Consumers should never hard-code adapter class names.  The registry
    maps dialect names to adapter classes; ``get_adapter()`` wraps a pool or
    client the caller already holds, and ``connect_adapter()`` opens one
    from a :class:`DatabaseConfig` first.

Features:
    - ``AdapterRegistry`` singleton with pre-registered defaults
    - ``register()`` for custom / third-party adapters
    - ``connect_adapter()``: config → open pool/client → adapter, with the
      driver import-guarded so only the extra you use must be installed

Tags:
    database, registry, factory, singleton, polydb
"""

from __future__ import annotations

from typing import Any

from polydb.errors import ConfigError, DatabaseConnectionError, ErrorContext
from polydb.logging import get_logger

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .types import DatabaseConfig, DatabaseType
from .vendor import VendorAdapter

logger = get_logger(__name__)


class AdapterRegistry:
    """
    Registry for database adapter classes.

    Pre-registered adapters:
    - ``postgresql`` / ``postgres``: :class:`PostgreSQLAdapter`
    - ``mysql``: :class:`MySQLAdapter`
    - ``vendor`` / ``supabase``: :class:`VendorAdapter`
    """

    def __init__(self):
        self._factories: dict[str, type[DatabaseAdapter]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories["postgresql"] = PostgreSQLAdapter
        self._factories["postgres"] = PostgreSQLAdapter  # Alias
        self._factories["mysql"] = MySQLAdapter
        self._factories["vendor"] = VendorAdapter
        self._factories["supabase"] = VendorAdapter  # Alias

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        """Register an adapter class."""
        self._factories[name.lower()] = adapter_class

    def create(self, name: str, client: Any, **kwargs: Any) -> DatabaseAdapter:
        """Wrap ``client`` in the adapter registered under ``name``."""
        name = name.lower()
        if name not in self._factories:
            raise ConfigError(f"Unknown database adapter: {name}")
        return self._factories[name](client, **kwargs)

    def list_adapters(self) -> list[str]:
        """List registered adapter names."""
        return sorted(self._factories.keys())


# Global registry
adapter_registry = AdapterRegistry()


def get_adapter(
    db_type: DatabaseType | str,
    client: Any,
    **kwargs: Any,
) -> DatabaseAdapter:
    """
    Wrap an already-open pool or client.

    Usage:
        adapter = get_adapter(DatabaseType.POSTGRESQL, pool)
        adapter = get_adapter("supabase", client, probe_table="stores")
    """
    if isinstance(db_type, DatabaseType):
        name = db_type.value
    else:
        name = db_type

    return adapter_registry.create(name, client, **kwargs)


async def _open_postgresql(config: DatabaseConfig) -> Any:
    try:
        import asyncpg
    except ImportError:
        raise ConfigError(
            "asyncpg is required for PostgreSQL. Install with: pip install polydb[postgresql]"
        ) from None

    return await asyncpg.create_pool(
        host=config.host,
        port=config.port,
        user=config.username,
        password=config.password,
        database=config.database,
        min_size=config.pool_min_size,
        max_size=config.pool_max_size,
        timeout=config.connect_timeout,
        **config.options,
    )


async def _open_mysql(config: DatabaseConfig) -> Any:
    try:
        import aiomysql
    except ImportError:
        raise ConfigError(
            "aiomysql is required for MySQL. Install with: pip install polydb[mysql]"
        ) from None

    return await aiomysql.create_pool(
        host=config.host,
        port=config.port,
        user=config.username,
        password=config.password or "",
        db=config.database,
        minsize=config.pool_min_size,
        maxsize=config.pool_max_size,
        connect_timeout=config.connect_timeout,
        autocommit=True,
        **config.options,
    )


async def _open_vendor(config: DatabaseConfig) -> Any:
    try:
        from supabase import acreate_client
    except ImportError:
        raise ConfigError(
            "supabase is required for the vendor adapter. Install with: pip install polydb[vendor]"
        ) from None

    if not config.vendor_key:
        raise ConfigError("vendor_key is required for the vendor adapter")
    return await acreate_client(config.to_connection_string(), config.vendor_key)


_OPENERS = {
    DatabaseType.POSTGRESQL: _open_postgresql,
    DatabaseType.MYSQL: _open_mysql,
    DatabaseType.VENDOR: _open_vendor,
}


async def connect_adapter(config: DatabaseConfig) -> DatabaseAdapter:
    """
    Open the pool/client described by ``config`` and wrap it.

    Raises:
        ConfigError: driver not installed or config incomplete
        DatabaseConnectionError: the driver could not connect
    """
    db_type = DatabaseType(config.db_type)
    opener = _OPENERS[db_type]

    try:
        client = await opener(config)
    except ConfigError:
        raise
    except Exception as e:
        logger.error("adapter.connect.failed", dialect=db_type.value, host=config.host, error=str(e))
        raise DatabaseConnectionError(
            f"Failed to connect to {db_type.value}: {e}",
            context=ErrorContext(dialect=db_type.value),
            cause=e,
        ) from e

    logger.info("adapter.connected", dialect=db_type.value)
    if db_type is DatabaseType.VENDOR:
        return get_adapter(db_type, client, probe_table=config.vendor_probe_table)
    return get_adapter(db_type, client)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
    "connect_adapter",
]
