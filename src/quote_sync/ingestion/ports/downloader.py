"""
Market downloader port.

The sync engine depends only on this protocol. Each call is independent;
retries, rate limiting and authentication belong to the implementation.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from quote_sync.shared.models.entities import CompanyDetails, QuotePoint
from quote_sync.shared.models.enums import Tier


class MarketDownloader(Protocol):
    """Fetches company details and quotes for one symbol per call."""

    async def fetch_details(self, symbol: str) -> CompanyDetails:
        """Fetch descriptive fields for ``symbol``."""
        ...

    async def fetch_window(self, symbol: str, tier: Tier) -> Sequence[QuotePoint]:
        """
        Fetch day quotes covering at least the span of ``tier``.

        Returned points carry no company id; the caller stamps them.
        """
        ...

    async def fetch_intraday_minutes(self, symbol: str) -> Sequence[QuotePoint]:
        """Fetch today's minute quotes."""
        ...

    async def fetch_previous_day(self, symbol: str) -> QuotePoint:
        """Fetch the most recent completed day quote."""
        ...

    async def close(self) -> None:
        """Release the underlying connection. Further calls must fail."""
        ...
