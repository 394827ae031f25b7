"""
Date Utilities
==============

Calendar arithmetic used by tier selection and the market-hours gate.
All datetimes handled here are naive and expressed in exchange-local time.
"""

import calendar
from datetime import date, datetime, timedelta


def as_date(value: date | datetime) -> date:
    """
    Reduce a datetime to its calendar date.

    Args:
        value: Date or datetime

    Returns:
        The calendar date (datetimes are truncated, dates returned as-is)
    """
    if isinstance(value, datetime):
        return value.date()
    return value


def add_days(d: date, days: int) -> date:
    """
    Add days to a date (negative values subtract).

    Args:
        d: Base date
        days: Number of days to add

    Returns:
        New date
    """
    return d + timedelta(days=days)


def add_months(d: date, months: int) -> date:
    """
    Add calendar months to a date.

    The day of month is clamped to the last day of the target month,
    so Jan 31 + 1 month is Feb 28 (or 29).

    Args:
        d: Base date
        months: Number of months to add (negative values subtract)

    Returns:
        New date
    """
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


def add_years(d: date, years: int) -> date:
    """Add calendar years to a date, clamping Feb 29 to Feb 28."""
    return add_months(d, years * 12)
