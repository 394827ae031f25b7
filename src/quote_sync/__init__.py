"""
Incremental quote synchronization for tracked companies.
Keeps a local quote store up to date against a market-data provider.

Modules:
- sync: tier selection, market-hours gate, reconciliation, orchestrators
- ingestion: market downloader port and provider adapters
- storage: quote store port and in-memory store
- shared: domain models, enums, exceptions
- infrastructure: clock, logging
- config: YAML/env configuration state
"""

__version__ = "0.1.0"
