"""Quote store port and the in-memory reference implementation."""

from .memory import InMemoryQuoteStore
from .ports import QuoteStore

__all__ = ["InMemoryQuoteStore", "QuoteStore"]
