"""Quote source protocol for the heatmap data feed."""

from __future__ import annotations
from typing import List, Optional, Protocol, runtime_checkable

from ..heatmap.instrument import Instrument


@runtime_checkable
class QuoteSource(Protocol):
    """
    Protocol for instrument quote sources.

    Implementations:
    - YahooQuoteService

    Usage:
        source: QuoteSource = YahooQuoteService(config.quotes, dimensions)
        instruments = source.fetch_quotes()
    """

    def fetch_quotes(self) -> List[Instrument]:
        """
        Fetch a fresh snapshot of every catalog instrument.

        Blocking; callers on the event loop run it in a worker thread.

        Returns:
            Instruments merged with their latest quotes.

        Raises:
            QuoteFetchError: If no quote could be fetched at all.
        """
        ...

    def get_cached_snapshot(self) -> Optional[List[Instrument]]:
        """
        Get the last successful snapshot, if any.

        Used for stale-but-available rendering while a fetch is failing.
        """
        ...
