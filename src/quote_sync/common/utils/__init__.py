from .date_utils import (
    add_days,
    add_months,
    add_years,
    as_date,
)

__all__ = [
    "add_days",
    "add_months",
    "add_years",
    "as_date",
]
