"""
Observability for the sync engine: structured logs bound to the layer and
component that emitted them, rendered as JSON in production and as colored
console output in development.
"""

from .logging import (
    # Layer-specific logger factories
    get_ingestion_logger,
    # Base logger factory
    get_logger,
    get_storage_logger,
    get_sync_logger,
    # Setup
    setup_logging,
)

__all__ = [
    # Setup
    "setup_logging",
    # Base
    "get_logger",
    # Layer-specific
    "get_ingestion_logger",
    "get_sync_logger",
    "get_storage_logger",
]
