"""In-memory quote store.

Reference QuoteStore used by tests and by hosts that keep quotes in process.
Enforces the same invariants a relational schema would:

  - companies: UNIQUE(symbol), symbol immutable once stored
  - quotes:    UNIQUE(company_id, granularity, date)
  - quotes:    is_valid never goes from True back to False

Reads hand out deep copies so callers never mutate stored state directly.
"""

import threading
from collections.abc import Callable, Sequence
from datetime import datetime

from quote_sync.infrastructure.observability import get_storage_logger
from quote_sync.shared.exceptions import (
    EntityNotFoundError,
    InvalidArgumentError,
    StoreIntegrityError,
)
from quote_sync.shared.models.entities import DETAIL_FIELDS, Company, QuotePoint

log = get_storage_logger("memory-store")


class InMemoryQuoteStore:
    """Thread-safe, dict-backed implementation of QuoteStore."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._companies: dict[int, Company] = {}
        self._quotes: dict[int, QuotePoint] = {}
        self._next_company_id = 1
        self._next_quote_id = 1
        self._lock = threading.Lock()
        self._clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_companies(
        self, predicate: Callable[[Company], bool] | None = None
    ) -> list[Company]:
        with self._lock:
            companies = [self._snapshot(c) for c in self._companies.values()]
        if predicate is not None:
            companies = [c for c in companies if predicate(c)]
        return companies

    def find_company(self, key: int | str) -> Company | None:
        with self._lock:
            company = self._lookup(key)
            return self._snapshot(company) if company else None

    def quotes_for(self, company_id: int) -> list[QuotePoint]:
        """Stored quotes of one company, ordered by granularity then date."""
        with self._lock:
            quotes = [
                q.model_copy() for q in self._quotes.values() if q.company_id == company_id
            ]
        return sorted(quotes, key=lambda q: (q.granularity.value, q.date))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_company(self, company: Company) -> Company:
        with self._lock:
            if self._lookup(company.symbol) is not None:
                raise StoreIntegrityError(f"Symbol {company.symbol} already exists")

            seen = set()
            for quote in company.quotes:
                if quote.key in seen:
                    raise StoreIntegrityError(
                        f"Duplicate {quote.granularity.value} quote for {company.symbol} "
                        f"at {quote.date.isoformat()}"
                    )
                seen.add(quote.key)

            stored = company.model_copy(deep=True, update={"quotes": []})
            stored.id = self._next_company_id
            self._next_company_id += 1
            self._companies[stored.id] = stored
            self._commit_quotes(
                [q.model_copy(update={"company_id": stored.id}) for q in company.quotes]
            )

        log.info(
            "company_added", symbol=stored.symbol, company_id=stored.id, quotes=len(seen)
        )
        return self.find_company(stored.id)

    def add_quotes(self, quotes: Sequence[QuotePoint]) -> int:
        if not quotes:
            return 0

        with self._lock:
            taken = {
                (q.company_id, q.granularity, q.date) for q in self._quotes.values()
            }
            staged: list[QuotePoint] = []
            for quote in quotes:
                if quote.company_id not in self._companies:
                    raise EntityNotFoundError(quote.company_id)
                key = (quote.company_id, quote.granularity, quote.date)
                if key in taken:
                    raise StoreIntegrityError(
                        f"Quote already stored for company {quote.company_id} "
                        f"{quote.granularity.value} {quote.date.isoformat()}"
                    )
                taken.add(key)
                staged.append(quote)
            self._commit_quotes(staged)

        log.debug("quotes_added", count=len(staged))
        return len(staged)

    def update_quotes(self, quotes: Sequence[QuotePoint]) -> int:
        if not quotes:
            return 0

        with self._lock:
            for quote in quotes:
                stored = self._quotes.get(quote.id) if quote.id is not None else None
                if stored is None:
                    raise EntityNotFoundError(quote.id)
                if stored.key != quote.key or stored.company_id != quote.company_id:
                    raise StoreIntegrityError(
                        f"Update for quote {quote.id} changes its identity"
                    )
                if stored.is_valid and not quote.is_valid:
                    raise StoreIntegrityError(
                        f"Quote {quote.id} is valid and cannot become invalid"
                    )

            now = self._clock()
            for quote in quotes:
                self._quotes[quote.id] = quote.model_copy(update={"last_modified": now})

        log.debug("quotes_updated", count=len(quotes))
        return len(quotes)

    def update_company(self, company: Company) -> None:
        if company.id is None:
            raise InvalidArgumentError("company has no id")

        with self._lock:
            stored = self._companies.get(company.id)
            if stored is None:
                raise EntityNotFoundError(company.id)
            if stored.symbol != company.symbol:
                raise StoreIntegrityError(
                    f"Symbol of company {company.id} cannot change "
                    f"({stored.symbol} -> {company.symbol})"
                )

            for field_name in DETAIL_FIELDS:
                setattr(stored, field_name, getattr(company, field_name))
            stored.retrieve_quotes_flag = company.retrieve_quotes_flag
            stored.download_details_flag = company.download_details_flag

        log.debug("company_updated", symbol=company.symbol)

    # ------------------------------------------------------------------
    # Helpers (call with the lock held)
    # ------------------------------------------------------------------

    def _lookup(self, key: int | str) -> Company | None:
        if isinstance(key, int):
            return self._companies.get(key)
        symbol = key.strip().upper()
        for company in self._companies.values():
            if company.symbol == symbol:
                return company
        return None

    def _commit_quotes(self, quotes: Sequence[QuotePoint]) -> None:
        now = self._clock()
        for quote in quotes:
            stored = quote.model_copy(
                update={"id": self._next_quote_id, "last_modified": now}
            )
            self._next_quote_id += 1
            self._quotes[stored.id] = stored

    def _snapshot(self, company: Company) -> Company:
        quotes = sorted(
            (q.model_copy() for q in self._quotes.values() if q.company_id == company.id),
            key=lambda q: q.date,
        )
        return company.model_copy(deep=True, update={"quotes": quotes})
