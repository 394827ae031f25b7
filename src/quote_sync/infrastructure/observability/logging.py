"""
Structured logging infrastructure for quote-sync.
Provides consistent, machine-readable logs across all components.

Log Structure:
    {
        "app": "quote-sync",           # Application identifier
        "layer": "sync",               # Architectural layer
        "component": "orchestrator",   # Specific component/service
        "module": "...",               # Python module (optional)
        "symbol": "AAPL",              # Domain context
        "event": "quotes_applied",     # What happened
        ...
    }

Architectural Layers:
    - infrastructure: Cross-cutting (config, clock)
    - ingestion: Data acquisition (provider adapters, HTTP transport)
    - sync: Tier selection, reconciliation, orchestration
    - storage: Quote store implementations
"""

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.types import EventDict

Layer = Literal["infrastructure", "ingestion", "sync", "storage"]


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the application identifier to every log entry."""
    event_dict["app"] = "quote-sync"
    return event_dict


def add_severity_level(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Add severity level for cloud logging compatibility.
    Maps Python log levels to standard severity levels.
    """
    level = event_dict.get("level")
    if level:
        severity_map = {
            "debug": "DEBUG",
            "info": "INFO",
            "warning": "WARNING",
            "error": "ERROR",
            "critical": "CRITICAL",
        }
        event_dict["severity"] = severity_map.get(level, "INFO")
    return event_dict


def setup_logging(
    level: str = "INFO",
    json_logs: bool = True,
    include_timestamp: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON. If False, use human-readable format (dev mode).
        include_timestamp: Whether to include ISO timestamps in logs

    Usage:
        >>> from quote_sync.infrastructure.observability import setup_logging
        >>> setup_logging(level="DEBUG", json_logs=False)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        add_app_context,
        structlog.stdlib.add_log_level,
        add_severity_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(
    name: str | None = None,
    layer: Layer | None = None,
    component: str | None = None,
    **initial_context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance with architectural context.

    Args:
        name: Logger name (typically __name__ of the calling module)
        layer: Architectural layer (infrastructure, ingestion, sync, storage)
        component: Specific component/service within the layer
        **initial_context: Additional context key-value pairs to bind to logger

    Returns:
        Configured structlog logger with bound context

    Usage:
        >>> log = get_logger(__name__, layer="sync", component="orchestrator")
        >>> log.info("sync_pass_started", companies=12)
    """
    logger = structlog.get_logger(name)

    context = {}

    if layer:
        context["layer"] = layer

    if component:
        context["component"] = component

    if name:
        context["module"] = name

    context.update(initial_context)

    if context:
        logger = logger.bind(**context)

    return logger


# ============================================================================
# Layer-Specific Logger Factories
# ============================================================================


def get_ingestion_logger(
    component: str,
    provider: str | None = None,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for ingestion layer (provider adapters).

    Args:
        component: Component name (e.g., "iex-downloader", "http-client")
        provider: Provider name (e.g., "iex_cloud") - optional
        **context: Additional context (symbol, tier, etc.)

    Usage:
        >>> log = get_ingestion_logger("iex-downloader", provider="iex_cloud")
        >>> log.info("chart_fetched", symbol="AAPL", range="1m")
    """
    ctx = {}
    if provider:
        ctx["provider"] = provider
    ctx.update(context)

    return get_logger(
        "ingestion",
        layer="ingestion",
        component=component,
        **ctx,
    )


def get_sync_logger(
    component: str = "orchestrator",
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for the sync layer (gate, reconciler, orchestrators).

    Usage:
        >>> log = get_sync_logger("detail-orchestrator")
        >>> log.info("details_applied", symbol="MSFT")
    """
    return get_logger(
        "sync",
        layer="sync",
        component=component,
        **context,
    )


def get_storage_logger(
    component: str,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for storage layer.

    Usage:
        >>> log = get_storage_logger("memory-store")
        >>> log.info("quotes_added", count=21)
    """
    return get_logger(
        "storage",
        layer="storage",
        component=component,
        **context,
    )
