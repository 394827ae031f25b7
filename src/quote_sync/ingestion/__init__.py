"""Data acquisition: the market downloader port and provider adapters."""
