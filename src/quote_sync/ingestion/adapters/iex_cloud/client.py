"""
IEX Cloud HTTP client with retry and error mapping.

Builds endpoint URLs, injects the token, retries temporary failures with
exponential backoff and maps HTTP errors to provider exceptions.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from quote_sync.infrastructure.observability import get_ingestion_logger
from quote_sync.ingestion.adapters.iex_cloud.error_mapper import IEXErrorMapper
from quote_sync.ingestion.adapters.iex_cloud.retry_handler import RetryHandler
from quote_sync.ingestion.ports.http import IHttpClient
from quote_sync.shared.exceptions import ProviderError, ServerError

log = get_ingestion_logger("iex-client", provider="iex_cloud")


class IEXCloudClient:
    """HTTP client for the IEX Cloud REST API."""

    def __init__(
        self,
        http_client: IHttpClient,
        base_url: str,
        token: str | None = None,
        retry_handler: RetryHandler | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize client.

        Args:
            http_client: Transport used for requests
            base_url: API root, e.g. https://cloud.iexapis.com/stable
            token: Publishable token sent as the ``token`` query parameter
            retry_handler: Retry policy
            sleep: Awaitable used between retries
        """
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.retry_handler = retry_handler or RetryHandler()
        self._sleep = sleep

    async def get_json(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET ``endpoint`` and return the decoded JSON body.

        Args:
            endpoint: Path relative to the base URL (e.g. "stock/aapl/chart/1m")
            params: Extra query parameters

        Raises:
            ProviderError: Mapped HTTP error once retries are exhausted
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        request_params = dict(params or {})
        if self.token:
            request_params["token"] = self.token

        max_attempts = self.retry_handler.config.max_attempts
        for attempt in range(max_attempts):
            is_last = attempt == max_attempts - 1
            try:
                response = await self.http_client.get(url, params=request_params)
            except (aiohttp.ClientError, TimeoutError) as e:
                if is_last:
                    raise ServerError(
                        f"Transport failure for {endpoint}: {e}", endpoint=endpoint
                    ) from e
                delay = self.retry_handler.get_retry_delay(attempt, 503)
                log.warning(
                    "request_transport_error",
                    endpoint=endpoint,
                    attempt=attempt + 1,
                    error=str(e),
                    retry_in=delay,
                )
                await self._sleep(delay)
                continue

            if response.status_code == 200:
                return response.body

            retry_after = response.headers.get("Retry-After")
            error = IEXErrorMapper.map_error(
                response.status_code, response.body, endpoint, retry_after
            )
            if is_last or not self.retry_handler.should_retry(response.status_code):
                raise error

            delay = self.retry_handler.get_retry_delay(
                attempt, response.status_code, retry_after
            )
            log.warning(
                "request_retry",
                endpoint=endpoint,
                status=response.status_code,
                attempt=attempt + 1,
                retry_in=delay,
            )
            await self._sleep(delay)

        raise ProviderError(f"No attempt made for {endpoint}", endpoint=endpoint)

    async def close(self) -> None:
        await self.http_client.close()
