"""
Download tier selection.

Maps the gap between the last stored day quote and today onto the smallest
provider window that covers it.
"""

from datetime import date, datetime

from quote_sync.shared.models.enums import Tier
from quote_sync.common.utils.date_utils import add_months, as_date

# Smallest to largest; the last entry is the fallback when nothing covers the gap.
TIERS_ASCENDING: tuple[Tier, ...] = tuple(Tier)

DEFAULT_LOOKBACK_MONTHS = 1


def default_start(now: date | datetime, lookback_months: int = DEFAULT_LOOKBACK_MONTHS) -> date:
    """Start date assumed for a company without stored history."""
    return add_months(as_date(now), -lookback_months)


def select_window(
    last_known_date: date | datetime | None,
    now: date | datetime,
    lookback_months: int = DEFAULT_LOOKBACK_MONTHS,
) -> Tier:
    """
    Pick the smallest tier whose span reaches from the last known date to now.

    The comparison is inclusive: a gap of exactly one tier span selects that
    tier. A gap larger than every span falls back to TWO_YEARS, which the
    next pass re-evaluates if the gap is still open.

    Args:
        last_known_date: Date of the newest stored day quote, None if none
        now: Current date (datetimes are reduced to their date)
        lookback_months: History assumed missing when last_known_date is None

    Returns:
        Tier to request from the downloader
    """
    today = as_date(now)
    if last_known_date is None:
        start = default_start(today, lookback_months)
    else:
        start = as_date(last_known_date)

    for tier in TIERS_ASCENDING:
        if tier.add_span(start) >= today:
            return tier
    return TIERS_ASCENDING[-1]
