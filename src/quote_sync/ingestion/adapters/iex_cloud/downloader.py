"""
IEX Cloud market downloader.

Implements the MarketDownloader port on top of IEXCloudClient:

    stock/{symbol}/company          -> CompanyDetails
    stock/{symbol}/chart/{range}    -> day quotes for a tier
    stock/{symbol}/previous         -> previous day quote
    stock/{symbol}/intraday-prices  -> today's minute quotes
"""

from __future__ import annotations

from collections.abc import Sequence
from urllib.parse import quote

from quote_sync.config.state import ProviderConfig
from quote_sync.infrastructure.observability import get_ingestion_logger
from quote_sync.ingestion.adapters.iex_cloud.client import IEXCloudClient
from quote_sync.ingestion.adapters.iex_cloud.mappers import (
    TIER_RANGES,
    map_company,
    map_day_record,
    map_minute_records,
)
from quote_sync.ingestion.adapters.iex_cloud.retry_handler import RetryHandler
from quote_sync.ingestion.config.value_objects import HttpClientConfig, RetryConfig
from quote_sync.ingestion.connectors.aiohttp_client import AiohttpClient
from quote_sync.ingestion.ports.downloader import MarketDownloader
from quote_sync.shared.exceptions import (
    DownloaderClosedError,
    InvalidArgumentError,
    ResponseFormatError,
)
from quote_sync.shared.models.entities import CompanyDetails, QuotePoint
from quote_sync.shared.models.enums import Tier

log = get_ingestion_logger("iex-downloader", provider="iex_cloud")


class IEXCloudDownloader(MarketDownloader):
    """MarketDownloader backed by the IEX Cloud REST API."""

    def __init__(self, client: IEXCloudClient):
        self.client = client
        self._closed = False

    @classmethod
    def from_config(cls, config: ProviderConfig) -> IEXCloudDownloader:
        """Build a downloader with an aiohttp transport from provider settings."""
        http_client = AiohttpClient(HttpClientConfig(timeout=config.timeout))
        retry_handler = RetryHandler(RetryConfig(max_attempts=config.max_retries))
        client = IEXCloudClient(
            http_client,
            base_url=config.base_url,
            token=config.token,
            retry_handler=retry_handler,
        )
        return cls(client)

    def _endpoint(self, symbol: str, suffix: str) -> str:
        if self._closed:
            raise DownloaderClosedError("The downloader has been closed.")
        if not symbol or not symbol.strip():
            raise InvalidArgumentError("symbol must not be empty")
        return f"stock/{quote(symbol.strip().lower())}/{suffix}"

    async def fetch_details(self, symbol: str) -> CompanyDetails:
        body = await self.client.get_json(self._endpoint(symbol, "company"))
        details = map_company(symbol, body)
        log.info("details_fetched", symbol=symbol)
        return details

    async def fetch_window(self, symbol: str, tier: Tier) -> Sequence[QuotePoint]:
        if tier is Tier.PREVIOUS_DAY:
            return [await self.fetch_previous_day(symbol)]

        range_ = TIER_RANGES[tier]
        body = await self.client.get_json(self._endpoint(symbol, f"chart/{range_}"))
        if not isinstance(body, list):
            raise ResponseFormatError(f"Unexpected chart payload for {symbol}")

        points = [map_day_record(record) for record in body]
        log.info("chart_fetched", symbol=symbol, range=range_, records=len(points))
        return points

    async def fetch_intraday_minutes(self, symbol: str) -> Sequence[QuotePoint]:
        body = await self.client.get_json(self._endpoint(symbol, "intraday-prices"))
        if not isinstance(body, list):
            raise ResponseFormatError(f"Unexpected intraday payload for {symbol}")

        points = map_minute_records(body)
        log.info("intraday_fetched", symbol=symbol, records=len(points))
        return points

    async def fetch_previous_day(self, symbol: str) -> QuotePoint:
        body = await self.client.get_json(self._endpoint(symbol, "previous"))
        if not isinstance(body, dict):
            raise ResponseFormatError(f"Unexpected previous-day payload for {symbol}")
        return map_day_record(body)

    async def close(self) -> None:
        """Close the HTTP session; every later call raises DownloaderClosedError."""
        if self._closed:
            return
        self._closed = True
        await self.client.close()
        log.debug("downloader_closed")
