"""
Quote reconciliation.

Merges a downloaded batch into one company's stored quotes, keyed on
(granularity, date):

    stored valid    + anything       -> dropped (stored data is authoritative)
    stored invalid  + valid reading  -> promoted (to_update)
    stored invalid  + invalid        -> dropped (no needless rewrite)
    not stored      + anything       -> added (to_add)
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from quote_sync.shared.models.entities import QuotePoint
from quote_sync.shared.models.enums import Granularity

OHLCV_FIELDS = ("open", "high", "low", "close", "volume")


@dataclass
class ReconcileResult:
    """Writes needed to bring the store in line with a download."""

    to_add: list[QuotePoint] = field(default_factory=list)
    to_update: list[QuotePoint] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_update


def _collapse(downloaded: Iterable[QuotePoint]) -> dict[tuple[Granularity, datetime], QuotePoint]:
    """One point per key; a valid reading beats an invalid one, else last wins."""
    by_key: dict[tuple[Granularity, datetime], QuotePoint] = {}
    for point in downloaded:
        current = by_key.get(point.key)
        if current is not None and current.is_valid and not point.is_valid:
            continue
        by_key[point.key] = point
    return by_key


def reconcile(
    company_id: int,
    existing: Iterable[QuotePoint],
    downloaded: Iterable[QuotePoint],
) -> ReconcileResult:
    """
    Compute the adds and promotions for one company.

    Args:
        company_id: Owning company; stamped onto every added point
        existing: Quotes already stored for the company
        downloaded: Freshly downloaded quotes (any order, may repeat dates)

    Returns:
        ReconcileResult with both lists sorted ascending by date
    """
    valid_keys: set[tuple[Granularity, datetime]] = set()
    invalid_points: dict[tuple[Granularity, datetime], QuotePoint] = {}
    for point in existing:
        if point.is_valid:
            valid_keys.add(point.key)
        else:
            invalid_points[point.key] = point

    result = ReconcileResult()
    for key, point in _collapse(downloaded).items():
        if key in valid_keys:
            continue

        stored = invalid_points.get(key)
        if stored is not None:
            if point.is_valid:
                values = {name: getattr(point, name) for name in OHLCV_FIELDS}
                result.to_update.append(
                    stored.model_copy(update={**values, "is_valid": True})
                )
            continue

        result.to_add.append(
            point.model_copy(update={"id": None, "company_id": company_id})
        )

    result.to_add.sort(key=lambda q: q.date)
    result.to_update.sort(key=lambda q: q.date)
    return result
