"""
IEX Cloud response mappers.

Convert raw JSON records into domain models. Prices become Decimals. Every
point carries a close; one missing open, high, low or volume is flagged
invalid. Intraday minutes without trades carry the previous close forward.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from quote_sync.shared.exceptions import ResponseFormatError
from quote_sync.shared.models.entities import CompanyDetails, QuotePoint
from quote_sync.shared.models.enums import Granularity, Tier

# chart/{range} values; IEX has no five-month range so the next one up is used
TIER_RANGES: dict[Tier, str] = {
    Tier.FIVE_DAYS: "5d",
    Tier.ONE_MONTH: "1m",
    Tier.THREE_MONTHS: "3m",
    Tier.FIVE_MONTHS: "6m",
    Tier.ONE_YEAR: "1y",
    Tier.TWO_YEARS: "2y",
}


def to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ResponseFormatError(f"Invalid price value: {value!r}") from e


def _to_volume(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def _is_complete(*values: Any) -> bool:
    return all(value is not None for value in values)


def map_day_record(record: dict[str, Any]) -> QuotePoint:
    """Map a chart or previous-day record to a day quote."""
    try:
        day = datetime.strptime(record["date"], "%Y-%m-%d")
    except (KeyError, TypeError, ValueError) as e:
        raise ResponseFormatError(f"Day record without a usable date: {record}") from e

    close = to_decimal(record.get("close"))
    if close is None:
        raise ResponseFormatError(f"Day record without a close price: {record}")

    open_, high, low = (to_decimal(record.get(k)) for k in ("open", "high", "low"))
    volume = _to_volume(record.get("volume"))
    return QuotePoint(
        date=day,
        granularity=Granularity.DAY,
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=volume,
        is_valid=_is_complete(open_, high, low, volume),
    )


def map_minute_record(
    record: dict[str, Any], previous_close: Decimal | None = None
) -> QuotePoint | None:
    """Map an intraday-prices record to a minute quote.

    A minute without trades has no close; it takes ``previous_close`` and
    is flagged invalid. Returns None when neither is available.
    """
    try:
        stamp = datetime.strptime(
            f"{record['date']} {record['minute']}", "%Y-%m-%d %H:%M"
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ResponseFormatError(
            f"Minute record without a usable timestamp: {record}"
        ) from e

    close = to_decimal(record.get("close"))
    traded = close is not None
    if not traded:
        if previous_close is None:
            return None
        close = previous_close

    open_, high, low = (to_decimal(record.get(k)) for k in ("open", "high", "low"))
    volume = _to_volume(record.get("volume"))
    return QuotePoint(
        date=stamp,
        granularity=Granularity.MINUTE,
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=volume,
        is_valid=traded and _is_complete(open_, high, low, volume),
    )


def map_minute_records(records: list[dict[str, Any]]) -> list[QuotePoint]:
    """Map a whole intraday-prices body, skipping leading minutes without trades."""
    points: list[QuotePoint] = []
    previous_close: Decimal | None = None
    for record in records:
        point = map_minute_record(record, previous_close)
        if point is None:
            continue
        points.append(point)
        previous_close = point.close
    return points



def map_company(symbol: str, body: dict[str, Any]) -> CompanyDetails:
    """Map a stock/{symbol}/company response to CompanyDetails."""
    if not isinstance(body, dict):
        raise ResponseFormatError(f"Unexpected company payload for {symbol}: {body!r}")

    return CompanyDetails(
        symbol=body.get("symbol") or symbol,
        name=body.get("companyName"),
        exchange=body.get("exchange"),
        industry=body.get("industry"),
        website=body.get("website"),
        description=body.get("description"),
        ceo=body.get("CEO"),
        security_name=body.get("securityName"),
        issue_type=body.get("issueType"),
        sector=body.get("sector"),
        employees=body.get("employees"),
        tags=list(body.get("tags") or []),
    )
