"""Domain interfaces for dependency injection."""

from .quote_source import QuoteSource

__all__ = [
    "QuoteSource",
]
