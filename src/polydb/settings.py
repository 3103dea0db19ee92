"""Environment-driven settings for polydb.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    A tenant's connection parameters normally arrive from the connection
    manager, but single-tenant deployments, scripts and health checks read
    them from ``POLYDB_*`` variables or a ``.env`` file.

Features:
    - **PolyDBSettings:** dialect, pool and vendor fields plus logging knobs
    - **env_prefix:** ``POLYDB_`` namespacing
    - **configure_logging():** applies ``log_level``/``json_logs`` to structlog
    - **database_config():** hands a :class:`DatabaseConfig` to
      :func:`polydb.adapters.connect_adapter`

Examples:
    >>> from polydb.settings import PolyDBSettings
    >>> settings = PolyDBSettings(db_type="mysql", port=3306)
    >>> settings.database_config().db_type.value
    'mysql'

Tags:
    settings, configuration, pydantic, environment, polydb
"""

from __future__ import annotations

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from polydb.adapters.types import DatabaseConfig, DatabaseType
from polydb.logging import configure_logging


class PolyDBSettings(BaseSettings):
    """Settings for one backing database.

    Fields
    ──────
    db_type            : postgresql | mysql | vendor
    host/port/database : SQL server location
    username/password  : SQL credentials
    pool_min_size      : Minimum pooled connections
    pool_max_size      : Maximum pooled connections
    connect_timeout    : Seconds to wait when opening the pool
    vendor_url/key     : Hosted PostgREST-style service credentials
    vendor_probe_table : Table read by ``test_connection()`` on the vendor
    log_level          : Structlog log level
    json_logs          : JSON rendering (None = auto-detect tty)
    """

    model_config = SettingsConfigDict(
        env_prefix="POLYDB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Backend ──────────────────────────────────────────────────
    db_type: DatabaseType = DatabaseType.POSTGRESQL
    host: str = "localhost"
    port: int = 5432
    database: str = ""
    username: str | None = None
    password: SecretStr | None = None

    # ── Pool ─────────────────────────────────────────────────────
    pool_min_size: int = Field(default=1, ge=0)
    pool_max_size: int = Field(default=10, ge=1)
    connect_timeout: int = Field(default=10, ge=1)

    # ── Vendor ───────────────────────────────────────────────────
    vendor_url: str | None = None
    vendor_key: SecretStr | None = None
    vendor_probe_table: str = "stores"

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("db_type", mode="before")
    @classmethod
    def _normalize_db_type(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.lower()
            if value == "postgres":
                return DatabaseType.POSTGRESQL.value
            if value == "supabase":
                return DatabaseType.VENDOR.value
        return value

    def configure_logging(self, service: str = "polydb") -> None:
        """Apply ``log_level`` and ``json_logs`` to the structlog pipeline."""
        configure_logging(level=self.log_level, json_format=self.json_logs, service=service)

    def database_config(self) -> DatabaseConfig:
        """Build the connection config consumed by ``connect_adapter()``."""
        return DatabaseConfig(
            db_type=self.db_type,
            host=self.host,
            port=self.port,
            database=self.database,
            username=self.username,
            password=self.password.get_secret_value() if self.password else None,
            pool_min_size=self.pool_min_size,
            pool_max_size=self.pool_max_size,
            connect_timeout=self.connect_timeout,
            vendor_url=self.vendor_url,
            vendor_key=self.vendor_key.get_secret_value() if self.vendor_key else None,
            vendor_probe_table=self.vendor_probe_table,
        )


__all__ = ["PolyDBSettings"]
