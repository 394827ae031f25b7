from .entities import DETAIL_FIELDS, Company, CompanyDetails, QuotePoint
from .enums import Granularity, SyncAction, Tier

__all__ = [
    "Company",
    "CompanyDetails",
    "DETAIL_FIELDS",
    "Granularity",
    "QuotePoint",
    "SyncAction",
    "Tier",
]
