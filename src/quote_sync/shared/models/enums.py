"""
Shared enumerations for quote synchronization.

Granularity and sync actions describe WHAT is stored and fetched;
tiers describe HOW MUCH history one provider request returns.
"""

import enum
from datetime import date

from quote_sync.common.utils.date_utils import add_days, add_months, add_years


class Granularity(str, enum.Enum):
    """Resolution of a quote point."""

    DAY = "day"
    MINUTE = "minute"


class SyncAction(str, enum.Enum):
    """Work the market-hours gate may request for one company."""

    FETCH_MINUTE = "fetch_minute"
    FETCH_DAY = "fetch_day"

    @property
    def granularity(self) -> Granularity:
        """Granularity of the quotes this action downloads."""
        if self is SyncAction.FETCH_MINUTE:
            return Granularity.MINUTE
        return Granularity.DAY


class Tier(str, enum.Enum):
    """
    Bounded download window for day quotes.

    Members are declared smallest to largest; tier selection relies on
    that ordering.
    """

    PREVIOUS_DAY = "previous_day"
    FIVE_DAYS = "5d"
    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    FIVE_MONTHS = "5m"
    ONE_YEAR = "1y"
    TWO_YEARS = "2y"

    def add_span(self, start: date) -> date:
        """Return ``start`` moved forward by this tier's span."""
        unit, amount = _TIER_SPANS[self]
        if unit == "days":
            return add_days(start, amount)
        if unit == "months":
            return add_months(start, amount)
        return add_years(start, amount)


_TIER_SPANS: dict[Tier, tuple[str, int]] = {
    Tier.PREVIOUS_DAY: ("days", 1),
    Tier.FIVE_DAYS: ("days", 5),
    Tier.ONE_MONTH: ("months", 1),
    Tier.THREE_MONTHS: ("months", 3),
    Tier.FIVE_MONTHS: ("months", 5),
    Tier.ONE_YEAR: ("years", 1),
    Tier.TWO_YEARS: ("years", 2),
}
