"""Default implementations of infrastructure abstractions."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from quote_sync.infrastructure.ports.system import IClock


class SystemClock(IClock):
    """Clock backed by system time, reported in the exchange timezone."""

    def __init__(self, timezone: str = "America/New_York"):
        """Initialize clock.

        Args:
            timezone: IANA name of the exchange timezone
        """
        self._tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        """Get current exchange-local time (naive)."""
        return datetime.now(self._tz).replace(tzinfo=None)

    def utcnow(self) -> datetime:
        """Get current UTC time."""
        return datetime.now(UTC)


class FixedClock(IClock):
    """Clock frozen at a given exchange-local instant, for tests and replays."""

    def __init__(self, instant: datetime, timezone: str = "America/New_York"):
        self._instant = instant.replace(tzinfo=None)
        self._tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return self._instant

    def utcnow(self) -> datetime:
        return self._instant.replace(tzinfo=self._tz).astimezone(UTC)

    def set(self, instant: datetime) -> None:
        """Move the clock to ``instant``."""
        self._instant = instant.replace(tzinfo=None)
