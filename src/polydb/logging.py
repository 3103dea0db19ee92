"""
polydb logging - structured logging for the data-access layer.

Every module obtains its logger through :func:`get_logger` and emits dotted
event names with keyword fields::

    logger = get_logger(__name__)
    logger.debug("query.execute", dialect="postgresql", table="users", param_count=2)

Manifesto:
    - **Structures:** key/value events, JSON in production
    - **Correlates:** ``bind_context(store_id=...)`` tags every statement a
      request issues against its tenant database
    - **Redacts:** bound parameter values are dropped (``param_count`` stays)
      and credential fields are masked before rendering

Examples:
    >>> from polydb.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False, service="storefront")
    >>> get_logger(__name__).info("adapter.ready", dialect="mysql")

Tags:
    logging, structlog, observability, polydb
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from polydb.errors import ConfigError

# Store service name for metadata
_SERVICE_NAME = "polydb"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


# Keys whose values are statement data; dropped, with a count left behind
_BOUND_VALUE_KEYS = ("params", "values", "rows", "patch")
# Keys whose values are credentials; masked
_SECRET_KEYS = ("password", "vendor_key", "api_key", "dsn")


def _redact_bound_values(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Drop bound statement values and mask credentials.

    A dropped ``params`` sequence leaves ``param_count`` in its place so the
    event still shows how many placeholders were bound.
    """
    params = event_dict.get("params")
    if isinstance(params, (list, tuple)):
        event_dict.setdefault("param_count", len(params))
    for key in _BOUND_VALUE_KEYS:
        event_dict.pop(key, None)
    for key in _SECRET_KEYS:
        if event_dict.get(key) is not None:
            event_dict[key] = "***"
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")

    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")

    return event_dict


def _processor_chain(json_format: bool, add_timestamp: bool) -> list[Processor]:
    """Processors shared by both renderers; redaction runs after context merge."""
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _redact_bound_values,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]
    if add_timestamp:
        chain.insert(0, structlog.processors.TimeStamper(fmt="iso"))
    if json_format:
        chain.append(_elasticsearch_compatible)
    return chain


def configure_logging(
    level: str | int = "INFO",
    json_format: bool | None = None,
    service: str = "polydb",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog (and the stdlib root logger) for polydb events.

    Args:
        level: Level name or number; ``query.*`` statement events are DEBUG
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Value of ``service.name`` on every event
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()
    numeric_level = level if isinstance(level, int) else logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ConfigError(f"Unknown log level: {level!r}")

    renderer: Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*_processor_chain(json_format, add_timestamp), renderer],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Driver loggers (asyncpg, aiomysql) go through the stdlib root logger
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs.

    Example:
        bind_context(store_id="store-42", dialect="mysql")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
]
