from .downloader import MarketDownloader
from .http import HttpResponse, IHttpClient

__all__ = ["HttpResponse", "IHttpClient", "MarketDownloader"]
