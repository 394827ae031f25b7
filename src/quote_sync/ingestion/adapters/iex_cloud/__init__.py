"""IEX Cloud adapter: HTTP client, error mapping, retries and downloader."""

from .client import IEXCloudClient
from .downloader import IEXCloudDownloader

__all__ = ["IEXCloudClient", "IEXCloudDownloader"]
