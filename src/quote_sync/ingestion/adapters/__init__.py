"""Provider adapters implementing the MarketDownloader port."""
