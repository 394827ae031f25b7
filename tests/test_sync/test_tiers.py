"""
Tests for download tier selection.

Boundaries are inclusive: a gap of exactly one tier span selects that
tier, one more day selects the next one.
"""

from datetime import date, datetime, timedelta

import pytest

from quote_sync.common.utils.date_utils import add_days, add_months, add_years
from quote_sync.shared.models.enums import Tier
from quote_sync.sync.tiers import TIERS_ASCENDING, default_start, select_window

TODAY = date(2024, 3, 13)
NOW = datetime(2024, 3, 13, 12, 0)

# (tier, tier chosen one day past its edge)
EDGES = [
    (Tier.PREVIOUS_DAY, Tier.FIVE_DAYS),
    (Tier.FIVE_DAYS, Tier.ONE_MONTH),
    (Tier.ONE_MONTH, Tier.THREE_MONTHS),
    (Tier.THREE_MONTHS, Tier.FIVE_MONTHS),
    (Tier.FIVE_MONTHS, Tier.ONE_YEAR),
    (Tier.ONE_YEAR, Tier.TWO_YEARS),
]

SPANS = {
    Tier.PREVIOUS_DAY: (add_days, 1),
    Tier.FIVE_DAYS: (add_days, 5),
    Tier.ONE_MONTH: (add_months, 1),
    Tier.THREE_MONTHS: (add_months, 3),
    Tier.FIVE_MONTHS: (add_months, 5),
    Tier.ONE_YEAR: (add_years, 1),
    Tier.TWO_YEARS: (add_years, 2),
}


def span_before(tier, end):
    shift, amount = SPANS[tier]
    return shift(end, -amount)


class TestSelectWindow:
    def test_tiers_are_ordered_smallest_first(self):
        assert TIERS_ASCENDING[0] is Tier.PREVIOUS_DAY
        assert TIERS_ASCENDING[-1] is Tier.TWO_YEARS
        ends = [tier.add_span(TODAY) for tier in TIERS_ASCENDING]
        assert ends == sorted(ends)

    @pytest.mark.parametrize("tier,next_tier", EDGES)
    def test_boundary_is_inclusive(self, tier, next_tier):
        edge = span_before(tier, TODAY)

        assert select_window(edge, NOW) is tier
        assert select_window(edge + timedelta(days=1), NOW) is tier
        assert select_window(edge - timedelta(days=1), NOW) is next_tier

    def test_two_years_edge(self):
        edge = span_before(Tier.TWO_YEARS, TODAY)
        assert edge == date(2022, 3, 13)
        assert select_window(edge, NOW) is Tier.TWO_YEARS

    def test_gap_beyond_every_tier_falls_back_to_largest(self):
        assert select_window(date(2015, 1, 1), NOW) is Tier.TWO_YEARS

    def test_today_and_yesterday_select_previous_day(self):
        assert select_window(TODAY, NOW) is Tier.PREVIOUS_DAY
        assert select_window(date(2024, 3, 12), NOW) is Tier.PREVIOUS_DAY

    def test_concrete_edges(self):
        assert select_window(date(2024, 3, 8), NOW) is Tier.FIVE_DAYS
        assert select_window(date(2024, 3, 7), NOW) is Tier.ONE_MONTH
        assert select_window(date(2024, 2, 13), NOW) is Tier.ONE_MONTH
        assert select_window(date(2024, 2, 12), NOW) is Tier.THREE_MONTHS

    def test_monotonic_in_gap(self):
        """An older last-known date never selects a smaller tier."""
        order = {tier: i for i, tier in enumerate(TIERS_ASCENDING)}
        previous = order[Tier.PREVIOUS_DAY]
        for days_back in range(0, 800):
            tier = select_window(TODAY - timedelta(days=days_back), NOW)
            assert order[tier] >= previous
            previous = order[tier]

    def test_accepts_datetime_last_known(self):
        assert select_window(datetime(2024, 3, 12, 16, 0), NOW) is Tier.PREVIOUS_DAY


class TestDefaultLookback:
    def test_empty_history_uses_one_month(self):
        assert select_window(None, NOW) is Tier.ONE_MONTH
        assert default_start(NOW) == date(2024, 2, 13)

    def test_configured_lookback(self):
        assert select_window(None, NOW, lookback_months=3) is Tier.THREE_MONTHS
        assert select_window(None, NOW, lookback_months=24) is Tier.TWO_YEARS

    def test_month_end_is_clamped(self):
        assert default_start(date(2024, 3, 31)) == date(2024, 2, 29)
