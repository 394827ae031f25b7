"""
Quote Sync Exception Hierarchy

Argument and lookup errors fail a single call immediately. Provider errors
are captured per unit of work by the orchestrators and surfaced once, as a
SyncAggregateError, after every unit has finished.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quote_sync.sync.results import UnitFailure


class QuoteSyncError(Exception):
    """Base exception for all quote sync errors."""


class InvalidArgumentError(QuoteSyncError, ValueError):
    """Null/empty symbol, start date in the future, or similar bad input."""


class EntityNotFoundError(QuoteSyncError, LookupError):
    """Unknown company id or symbol."""

    def __init__(self, key: int | str):
        super().__init__(f"A company with the key '{key}' does not exist.")
        self.key = key


class StoreIntegrityError(QuoteSyncError):
    """Write rejected: duplicate quote, validity regression or symbol change."""


class ProviderError(QuoteSyncError):
    """Base exception for market-data provider failures."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class BadRequestError(ProviderError):
    """400 - Bad parameter(s) in the request."""


class AuthenticationError(ProviderError):
    """401/403 - Invalid or missing token."""


class SymbolNotFoundError(ProviderError):
    """404 - Unknown symbol or no data available."""


class RateLimitError(ProviderError):
    """429 - Too many requests."""

    def __init__(self, message: str, retry_after: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(ProviderError):
    """500+ - Server-side error."""


class ResponseFormatError(ProviderError):
    """Response body could not be mapped to quotes or details."""


class DownloaderClosedError(ProviderError):
    """Downloader used after its connection was released."""


class SyncAggregateError(QuoteSyncError):
    """One or more units of a sync pass failed.

    Raised only after every unit has finished; writes from successful units
    are already persisted.
    """

    def __init__(self, failures: list[UnitFailure]):
        self.failures = list(failures)
        summary = "; ".join(
            f"{f.symbol}/{f.unit}: {type(f.error).__name__}: {f.error}"
            for f in self.failures
        )
        super().__init__(f"{len(self.failures)} sync unit(s) failed: {summary}")

    @property
    def symbols(self) -> list[str]:
        """Symbols with at least one failed unit, in failure order."""
        seen: list[str] = []
        for failure in self.failures:
            if failure.symbol not in seen:
                seen.append(failure.symbol)
        return seen
