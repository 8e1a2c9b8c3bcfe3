"""
ETF catalog - the static list of instruments the heatmap covers.

The catalog is a JSON array on disk:

    [
      {"ticker": "SPY", "name": "SPDR S&P 500 ETF Trust",
       "brand": "SPDR", "strategy": "Equity", "aum": 500000000000},
      ...
    ]

Grouping dimensions (brand, strategy, ...) are plain top-level keys. The
AUM refresh job rewrites the file in place with updated `aum` values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.domain.exceptions import CatalogError
from src.domain.heatmap.instrument import Instrument
from src.utils.logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_DIMENSIONS = ("strategy", "brand")


@dataclass
class CatalogEntry:
    """One catalog row: identity, grouping values and the last known AUM."""

    ticker: str
    name: str
    dimensions: Dict[str, str] = field(default_factory=dict)
    aum: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], dimensions: Sequence[str]) -> "CatalogEntry":
        ticker = data.get("ticker")
        if not ticker or not isinstance(ticker, str):
            raise CatalogError(f"Catalog entry without ticker: {dict(data)!r}")
        return cls(
            ticker=ticker,
            name=str(data.get("name") or ticker),
            dimensions={dim: str(data[dim]) for dim in dimensions if data.get(dim) is not None},
            aum=float(data.get("aum") or 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "name": self.name,
            **self.dimensions,
            "aum": self.aum,
        }

    def to_instrument(self, quote: Optional[Mapping[str, Any]] = None) -> Instrument:
        """
        Merge this entry with a quote.

        Without a quote the instrument has no price and zero change; it is
        still shown when its AUM is positive.
        """
        quote = quote or {}
        price = quote.get("price")
        return Instrument(
            ticker=self.ticker,
            name=self.name,
            dimensions=dict(self.dimensions),
            price=float(price) if price is not None else None,
            change_pct=float(quote.get("change_pct") or 0.0),
            aum=self.aum,
            volume=float(quote.get("volume") or 0.0),
            change=float(quote.get("change") or 0.0),
        )


def load_catalog(
    path: str | Path,
    dimensions: Sequence[str] = DEFAULT_DIMENSIONS,
) -> List[CatalogEntry]:
    """
    Load the ETF catalog.

    Args:
        path: Path to the catalog JSON file.
        dimensions: Grouping dimensions to read from each entry.

    Returns:
        Catalog entries in file order.

    Raises:
        CatalogError: If the file is missing, unreadable or malformed.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise CatalogError(f"Catalog not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Cannot read catalog {path}: {e}") from e

    if not isinstance(data, list):
        raise CatalogError(f"Catalog {path} must be a JSON array, got {type(data).__name__}")

    entries = [CatalogEntry.from_dict(item, dimensions) for item in data if isinstance(item, dict)]
    skipped = len(data) - len(entries)
    if skipped:
        logger.warning(f"Skipped {skipped} non-object entries in {path}")

    logger.info(f"Loaded {len(entries)} catalog entries from {path}")
    return entries


def save_catalog(path: str | Path, entries: Sequence[CatalogEntry]) -> None:
    """
    Write the catalog back to disk (2-space indented JSON).

    Raises:
        CatalogError: If the file cannot be written.
    """
    path = Path(path)
    payload = [entry.to_dict() for entry in entries]
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        tmp_path.replace(path)
    except OSError as e:
        raise CatalogError(f"Cannot write catalog {path}: {e}") from e
    logger.info(f"Saved {len(payload)} catalog entries to {path}")
