"""
Market hours gate.

Decides which granularities a company needs fetched right now, given the
trading session window and the newest stored day and minute quotes.

Three regimes around the daily window [open, close] (exchange-local):

    before open   day quote for yesterday missing      -> FETCH_DAY
    open..close   no minute today / a minute elapsed   -> FETCH_MINUTE
                  day quote more than one day stale    -> FETCH_DAY
    after close   minute series short of close         -> FETCH_MINUTE
                  today's day quote missing            -> FETCH_DAY
"""

from datetime import date, datetime, time, timedelta

from quote_sync.shared.models.enums import SyncAction
from quote_sync.common.utils.date_utils import as_date

MINUTE = timedelta(minutes=1)


class MarketHoursGate:
    """Pure decision function over (now, last minute quote, last day quote)."""

    def __init__(self, market_open: time = time(9, 30), market_close: time = time(15, 59)):
        if market_open >= market_close:
            raise ValueError("market_open must be earlier than market_close")
        self.market_open = market_open
        self.market_close = market_close

    def is_open(self, now: datetime) -> bool:
        return self.market_open <= now.time() <= self.market_close

    def has_closed(self, now: datetime) -> bool:
        """True once today's session is over and its day bar exists."""
        return now.time() > self.market_close

    def determine_actions(
        self,
        now: datetime,
        last_minute_date: datetime | None,
        last_day_date: date | datetime | None,
    ) -> frozenset[SyncAction]:
        """
        Return the sync actions required for one company.

        Args:
            now: Current exchange-local time
            last_minute_date: Timestamp of the newest stored minute quote
            last_day_date: Date of the newest stored day quote

        Returns:
            Empty set, {FETCH_DAY}, {FETCH_MINUTE} or both
        """
        today = now.date()
        last_day = as_date(last_day_date) if last_day_date is not None else None
        minute_today = (
            last_minute_date if last_minute_date and last_minute_date.date() == today else None
        )
        actions: set[SyncAction] = set()

        if now.time() < self.market_open:
            if last_day is None or last_day < today - timedelta(days=1):
                actions.add(SyncAction.FETCH_DAY)

        elif self.is_open(now):
            if minute_today is None or now - minute_today >= MINUTE:
                actions.add(SyncAction.FETCH_MINUTE)
            if last_day is None or today - last_day > timedelta(days=1):
                actions.add(SyncAction.FETCH_DAY)

        else:
            if minute_today is None or minute_today.time() < self.market_close:
                actions.add(SyncAction.FETCH_MINUTE)
            if last_day is None or last_day < today:
                actions.add(SyncAction.FETCH_DAY)

        return frozenset(actions)
