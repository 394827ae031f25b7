"""
Quote store interface.
Provides abstraction over persistence for dependency injection.

Store operations are synchronous: the sync engine only suspends on
downloader calls. Implementations serialize their own writes.
"""

from collections.abc import Callable, Sequence
from typing import Protocol

from quote_sync.shared.models.entities import Company, QuotePoint


class QuoteStore(Protocol):
    """
    Protocol defining company/quote persistence.
    Enables dependency injection and testing with different implementations.
    """

    def list_companies(
        self, predicate: Callable[[Company], bool] | None = None
    ) -> list[Company]:
        """
        Return companies (with their quotes, ordered by date).

        Args:
            predicate: Optional filter applied to each company
        """
        ...

    def find_company(self, key: int | str) -> Company | None:
        """Find a company by id (int) or symbol (str)."""
        ...

    def add_company(self, company: Company) -> Company:
        """Insert a new company and return it with its id assigned."""
        ...

    def add_quotes(self, quotes: Sequence[QuotePoint]) -> int:
        """
        Insert new quote points.

        Returns:
            Number of points inserted
        """
        ...

    def update_quotes(self, quotes: Sequence[QuotePoint]) -> int:
        """
        Overwrite stored quote points matched by id.

        Returns:
            Number of points updated
        """
        ...

    def update_company(self, company: Company) -> None:
        """Persist descriptive fields and flags of a stored company."""
        ...
