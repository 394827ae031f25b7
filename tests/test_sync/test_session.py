"""Tests for the scoped sync session."""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from quote_sync.config.state import ConfigState, LoggingConfig
from quote_sync.shared.exceptions import DownloaderClosedError, SyncAggregateError
from quote_sync.shared.models.entities import Company, QuotePoint
from quote_sync.sync.details import DetailSyncOrchestrator
from quote_sync.sync.orchestrator import SyncOrchestrator
from quote_sync.sync.session import open_sync_session


@pytest.fixture
def settings():
    return ConfigState()


@pytest.fixture(autouse=True)
def logging_setup():
    with patch("quote_sync.sync.session.setup_logging") as setup:
        yield setup


@pytest.mark.asyncio
async def test_session_configures_logging_from_settings(store, downloader, clock, logging_setup):
    settings = ConfigState(logging=LoggingConfig(level="DEBUG", json_logs=False))

    async with open_sync_session(settings, store, downloader, clock):
        logging_setup.assert_called_once_with("DEBUG", False)


@pytest.mark.asyncio
async def test_session_wires_both_orchestrators(settings, store, downloader, clock):
    async with open_sync_session(settings, store, downloader, clock) as session:
        assert isinstance(session.quotes, SyncOrchestrator)
        assert isinstance(session.details, DetailSyncOrchestrator)
        assert session.quotes.downloader is downloader
        assert session.details.store is store
        assert session.quotes.clock is clock

    assert downloader.closed


@pytest.mark.asyncio
async def test_downloader_closed_when_body_raises(settings, store, downloader, clock):
    with pytest.raises(RuntimeError):
        async with open_sync_session(settings, store, downloader, clock):
            raise RuntimeError("boom")

    assert downloader.closed


@pytest.mark.asyncio
async def test_orchestrator_fails_fast_after_exit(settings, store, downloader, clock):
    store.add_company(Company(symbol="AAPL", retrieve_quotes_flag=True))
    downloader.windows["AAPL"] = [
        QuotePoint(date=datetime(2024, 3, 12), close=Decimal("100.0"))
    ]

    async with open_sync_session(settings, store, downloader, clock) as session:
        await session.quotes.sync_all_companies()
        quotes = session.quotes

    with pytest.raises(SyncAggregateError) as exc_info:
        await quotes.sync_company("AAPL", since=date(2024, 1, 1))

    assert all(
        isinstance(f.error, DownloaderClosedError) for f in exc_info.value.failures
    )


@pytest.mark.asyncio
async def test_builds_iex_downloader_from_settings(settings, store, clock):
    built = MagicMock()
    built.close = AsyncMock()

    with patch(
        "quote_sync.sync.session.IEXCloudDownloader.from_config", return_value=built
    ) as from_config:
        async with open_sync_session(settings, store, clock=clock) as session:
            assert session.downloader is built

    from_config.assert_called_once_with(settings.provider)
    built.close.assert_awaited_once()
