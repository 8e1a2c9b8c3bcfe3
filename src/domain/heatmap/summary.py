"""Market summary statistics for the stats bar above the heatmap."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable

import pandas as pd

from .instrument import Instrument


@dataclass(frozen=True)
class MarketSummary:
    """Aggregate figures over instruments that have a live price."""

    total: int = 0
    average_change: float = 0.0
    gainers: int = 0
    losers: int = 0

    @property
    def unchanged(self) -> int:
        return self.total - self.gainers - self.losers

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "average_change": self.average_change,
            "gainers": self.gainers,
            "losers": self.losers,
        }


def compute_summary(instruments: Iterable[Instrument]) -> MarketSummary:
    """
    Summarize priced instruments.

    Instruments without a price are excluded entirely. A missing change
    counts as 0.
    """
    frame = pd.DataFrame(
        [{"ticker": i.ticker, "price": i.price, "change_pct": i.change_pct} for i in instruments],
        columns=["ticker", "price", "change_pct"],
    )
    priced = frame[frame["price"].notna()]
    if priced.empty:
        return MarketSummary()

    changes = priced["change_pct"].fillna(0.0).astype(float)
    return MarketSummary(
        total=int(len(priced)),
        average_change=float(changes.mean()),
        gainers=int((changes > 0).sum()),
        losers=int((changes < 0).sum()),
    )
