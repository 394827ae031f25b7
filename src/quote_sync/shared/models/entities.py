"""Domain models for companies and their quote points.

Models for:
- QuotePoint: one day or one minute of OHLCV data for a company
- Company: a tracked symbol, its sync flags, descriptive fields and quotes
- CompanyDetails: descriptive fields as returned by the market-data provider

All models use:
- Pydantic for validation
- DECIMAL prices (not float) for financial accuracy
- Naive exchange-local datetimes
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from quote_sync.shared.models.enums import Granularity

# Fields copied from provider details onto a stored company.
DETAIL_FIELDS: tuple[str, ...] = (
    "name",
    "exchange",
    "industry",
    "website",
    "description",
    "ceo",
    "security_name",
    "issue_type",
    "sector",
    "employees",
    "tags",
)


class QuotePoint(BaseModel):
    """OHLCV quote for one company at one date and granularity.

    Day points are dated at midnight; minute points carry the minute
    timestamp. Close is always present; a point whose open, high or low is
    missing is flagged invalid and may later be promoted when a complete
    reading is downloaded.
    """

    id: int | None = Field(None, description="Store PK (None until stored)")
    company_id: int | None = Field(None, description="Owning company id")
    date: datetime = Field(..., description="Quote date (exchange-local)")
    granularity: Granularity = Field(Granularity.DAY)

    open: Decimal | None = Field(None, description="Open price")
    high: Decimal | None = Field(None, description="Highest price in period")
    low: Decimal | None = Field(None, description="Lowest price in period")
    close: Decimal = Field(..., description="Close price")
    volume: int | None = Field(None, ge=0, description="Traded volume")

    is_valid: bool = Field(True, description="Whether the reading is complete")
    last_modified: datetime | None = Field(None)

    @property
    def key(self) -> tuple[Granularity, datetime]:
        """Dedup key within one company."""
        return (self.granularity, self.date)


class CompanyDetails(BaseModel):
    """Descriptive company fields as returned by the provider."""

    symbol: str = Field(..., min_length=1)
    name: str | None = None
    exchange: str | None = None
    industry: str | None = None
    website: str | None = None
    description: str | None = None
    ceo: str | None = None
    security_name: str | None = None
    issue_type: str | None = None
    sector: str | None = None
    employees: int | None = None
    tags: list[str] = Field(default_factory=list)


class Company(BaseModel):
    """Tracked company.

    The company owns its quotes; ``quotes`` is kept ordered by date by the
    store that hands it out.
    """

    id: int | None = Field(None, description="Store PK (None when creating)")
    symbol: str = Field(..., min_length=1, description="Ticker symbol")
    retrieve_quotes_flag: bool = Field(False, description="Opt-in to quote sync")
    download_details_flag: bool = Field(
        False, description="Opt-in to a detail refresh on the next pass"
    )

    name: str | None = None
    exchange: str | None = None
    industry: str | None = None
    website: str | None = None
    description: str | None = None
    ceo: str | None = None
    security_name: str | None = None
    issue_type: str | None = None
    sector: str | None = None
    employees: int | None = None
    tags: list[str] = Field(default_factory=list)

    quotes: list[QuotePoint] = Field(default_factory=list)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("symbol must not be blank")
        return v

    def apply_details(self, details: CompanyDetails) -> None:
        """Overwrite descriptive fields with freshly downloaded details."""
        for field_name in DETAIL_FIELDS:
            setattr(self, field_name, getattr(details, field_name))
