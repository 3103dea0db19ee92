"""Database types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from polydb.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    VENDOR = "vendor"


@dataclass
class DatabaseConfig:
    """
    Configuration for opening a tenant connection.

    Different fields are used by different database types.
    """

    db_type: DatabaseType = DatabaseType.POSTGRESQL

    # PostgreSQL / MySQL
    host: str = "localhost"
    port: int = 5432
    database: str = ""
    username: str | None = None
    password: str | None = None

    # Connection pool
    pool_min_size: int = 1
    pool_max_size: int = 10
    connect_timeout: int = 10

    # Vendor (PostgREST-style hosted service)
    vendor_url: str | None = None
    vendor_key: str | None = None
    vendor_probe_table: str = "stores"

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def to_connection_string(self) -> str:
        """Generate connection string for the database type."""
        match self.db_type:
            case DatabaseType.POSTGRESQL:
                return f"postgresql://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"
            case DatabaseType.MYSQL:
                return f"mysql://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"
            case DatabaseType.VENDOR:
                if not self.vendor_url:
                    raise ConfigError("vendor_url is required for the vendor adapter")
                return self.vendor_url
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
