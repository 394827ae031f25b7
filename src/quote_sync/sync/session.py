"""
Scoped sync session.

Wires store, downloader and clock into both orchestrators for the length of
an ``async with`` block and closes the downloader when the block exits,
whether it completed, raised or was cancelled.

Usage:
    async with open_sync_session(get_config(), store) as session:
        await session.details.sync_all_details()
        await session.quotes.sync_all_companies()
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from quote_sync.config.state import ConfigState
from quote_sync.infrastructure.impls.system import SystemClock
from quote_sync.infrastructure.observability import get_sync_logger, setup_logging
from quote_sync.infrastructure.ports.system import IClock
from quote_sync.ingestion.adapters.iex_cloud import IEXCloudDownloader
from quote_sync.ingestion.ports.downloader import MarketDownloader
from quote_sync.storage.ports import QuoteStore
from quote_sync.sync.details import DetailSyncOrchestrator
from quote_sync.sync.orchestrator import SyncOrchestrator

logger = get_sync_logger("session")


@dataclass
class SyncSession:
    """Orchestrators sharing one downloader and one store."""

    quotes: SyncOrchestrator
    details: DetailSyncOrchestrator
    downloader: MarketDownloader


@asynccontextmanager
async def open_sync_session(
    settings: ConfigState,
    store: QuoteStore,
    downloader: MarketDownloader | None = None,
    clock: IClock | None = None,
) -> AsyncIterator[SyncSession]:
    """
    Open a session over ``store``.

    Args:
        settings: Loaded configuration; its logging section configures
            structlog before the orchestrators are built
        store: Company/quote store
        downloader: Downloader to use; an IEX Cloud downloader is built
            from ``settings.provider`` when omitted
        clock: Clock; a SystemClock in the configured timezone by default

    Yields:
        SyncSession
    """
    setup_logging(settings.logging.level, settings.logging.json_logs)
    clock = clock or SystemClock(settings.sync.timezone)
    if downloader is None:
        downloader = IEXCloudDownloader.from_config(settings.provider)

    session = SyncSession(
        quotes=SyncOrchestrator(store, downloader, clock, settings=settings.sync),
        details=DetailSyncOrchestrator(store, downloader, settings.sync, clock),
        downloader=downloader,
    )
    logger.debug("sync_session_opened", downloader=type(downloader).__name__)
    try:
        yield session
    finally:
        await downloader.close()
        logger.debug("sync_session_closed")
