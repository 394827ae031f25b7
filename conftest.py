"""
Shared fixtures: a frozen clock, an in-memory store and a scriptable
downloader standing in for the provider.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure src on path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from quote_sync.infrastructure.impls.system import FixedClock  # noqa: E402
from quote_sync.shared.exceptions import DownloaderClosedError  # noqa: E402
from quote_sync.storage.memory import InMemoryQuoteStore  # noqa: E402

logger = logging.getLogger(__name__)

# Wednesday, market open
NOON = datetime(2024, 3, 13, 12, 0)


class FakeDownloader:
    """
    In-process MarketDownloader.

    Responses are keyed by symbol; ``errors[(symbol, method)]`` makes that
    call raise and ``blockers[symbol]`` holds every call for the symbol
    until the event is set.
    """

    def __init__(self):
        self.windows = {}
        self.minutes = {}
        self.previous = {}
        self.details = {}
        self.errors = {}
        self.blockers = {}
        self.calls = []
        self.closed = False

    async def _enter(self, method, symbol, arg=None):
        if self.closed:
            raise DownloaderClosedError("The downloader has been closed.")
        self.calls.append((method, symbol, arg))
        if symbol in self.blockers:
            await self.blockers[symbol].wait()
        error = self.errors.get((symbol, method))
        if error is not None:
            raise error

    async def fetch_details(self, symbol):
        await self._enter("fetch_details", symbol)
        return self.details[symbol]

    async def fetch_window(self, symbol, tier):
        await self._enter("fetch_window", symbol, tier)
        return list(self.windows.get(symbol, []))

    async def fetch_intraday_minutes(self, symbol):
        await self._enter("fetch_intraday_minutes", symbol)
        return list(self.minutes.get(symbol, []))

    async def fetch_previous_day(self, symbol):
        await self._enter("fetch_previous_day", symbol)
        return self.previous[symbol]

    async def close(self):
        self.closed = True

    def methods_called(self, symbol):
        return [method for method, s, _ in self.calls if s == symbol]


@pytest.fixture
def clock():
    """Clock frozen at 12:00 on a trading day."""
    return FixedClock(NOON)


@pytest.fixture
def store(clock):
    return InMemoryQuoteStore(clock=clock.now)


@pytest.fixture
def downloader():
    return FakeDownloader()

