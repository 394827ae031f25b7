"""
Unit-of-work results for sync passes.

Each concurrent unit returns a UnitResult instead of raising; the
orchestrator applies successes as they arrive, collects failures, and
decides at the end of the pass whether to raise SyncAggregateError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from quote_sync.shared.exceptions import SyncAggregateError

T = TypeVar("T")


@dataclass(frozen=True)
class UnitFailure:
    """A unit that failed, and why."""

    symbol: str
    unit: str  # "day", "minute" or "details"
    error: BaseException


@dataclass
class UnitResult(Generic[T]):
    """Outcome of one unit: payload on success, error on failure."""

    symbol: str
    company_id: int
    unit: str
    payload: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_failure(self) -> UnitFailure:
        if self.error is None:
            raise ValueError("successful unit has no failure")
        return UnitFailure(symbol=self.symbol, unit=self.unit, error=self.error)


@dataclass
class SyncReport:
    """Summary of one orchestrator pass."""

    started_at: datetime
    finished_at: datetime | None = None
    units_started: int = 0
    units_succeeded: int = 0
    quotes_added: int = 0
    quotes_updated: int = 0
    companies_updated: int = 0
    failures: list[UnitFailure] = field(default_factory=list)

    @property
    def units_failed(self) -> int:
        return len(self.failures)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def raise_for_failures(self) -> None:
        """Raise SyncAggregateError carrying every failure, if any."""
        if self.failures:
            raise SyncAggregateError(self.failures)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "units_started": self.units_started,
            "units_succeeded": self.units_succeeded,
            "units_failed": self.units_failed,
            "quotes_added": self.quotes_added,
            "quotes_updated": self.quotes_updated,
            "companies_updated": self.companies_updated,
            "duration_seconds": self.duration_seconds,
            "failed_symbols": sorted({f.symbol for f in self.failures}),
        }
