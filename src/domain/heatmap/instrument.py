"""
Instrument data model and grouping.

An Instrument is the single boundary contract between the quote fetcher
and the heatmap core. Groups are never stored; they are derived on demand
from the dataset and the active grouping dimension.

Sizing rule:
    weight = max(aum, volume * max(price, 1), 1)

AUM is the preferred size, the liquidity proxy (volume x price) covers
instruments without AUM, and the floor of 1 keeps every instrument
representable in an area-proportional layout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

# Bucket for instruments that carry no value for the active dimension
OTHER_GROUP = "Other"

MIN_WEIGHT = 1.0


def compute_weight(aum: float, volume: float, price: Optional[float]) -> float:
    """
    Compute the layout weight of a single instrument.

    Args:
        aum: Assets under management (0 when unknown)
        volume: Traded volume (0 when unknown)
        price: Last price, or None when no quote is available

    Returns:
        Positive weight, never below MIN_WEIGHT
    """
    liquidity = max(volume or 0.0, 0.0) * max(price or 0.0, 1.0)
    return max(aum or 0.0, liquidity, MIN_WEIGHT)


@dataclass(frozen=True)
class Instrument:
    """
    Single tradable instrument shown as one leaf of the treemap.

    `dimensions` maps a grouping dimension name (e.g. "brand", "strategy")
    to this instrument's value for it.
    """

    ticker: str
    name: str
    dimensions: Mapping[str, str] = field(default_factory=dict)
    price: Optional[float] = None
    change_pct: float = 0.0
    aum: float = 0.0
    volume: float = 0.0
    change: float = 0.0

    @property
    def weight(self) -> float:
        """Derived layout weight (see module docstring)."""
        return compute_weight(self.aum, self.volume, self.price)

    @property
    def has_price(self) -> bool:
        return self.price is not None

    def is_renderable(self) -> bool:
        """True if the instrument has a known price or a positive AUM."""
        return self.price is not None or self.aum > 0

    def group_key(self, dimension: str) -> str:
        """Value of `dimension` for this instrument, or OTHER_GROUP."""
        value = self.dimensions.get(dimension)
        if value is None or not str(value).strip():
            return OTHER_GROUP
        return str(value)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON/frontend consumption."""
        return {
            "ticker": self.ticker,
            "name": self.name,
            **dict(self.dimensions),
            "price": self.price,
            "change": self.change,
            "changesPercentage": self.change_pct,
            "aum": self.aum,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], dimensions: Sequence[str]) -> "Instrument":
        """
        Build an Instrument from a quote/catalog record.

        Accepts both the snake_case keys used internally and the camelCase
        `changesPercentage` key of the quotes payload.
        """
        change_pct = data.get("change_pct", data.get("changesPercentage", 0.0))
        price = data.get("price")
        return cls(
            ticker=str(data["ticker"]),
            name=str(data.get("name") or data["ticker"]),
            dimensions={
                dim: str(data[dim]) for dim in dimensions if data.get(dim) is not None
            },
            price=float(price) if price is not None else None,
            change_pct=float(change_pct or 0.0),
            aum=float(data.get("aum") or 0.0),
            volume=float(data.get("volume") or 0.0),
            change=float(data.get("change") or 0.0),
        )


@dataclass(frozen=True)
class Group:
    """Instruments sharing one value of the active grouping dimension."""

    key: str
    members: Tuple[Instrument, ...]

    @property
    def total_weight(self) -> float:
        return sum(m.weight for m in self.members)

    @property
    def weighted_average_change(self) -> float:
        """Weight-averaged change percentage of the members (0 when empty)."""
        total = self.total_weight
        if total <= 0:
            return 0.0
        return sum(m.weight * (m.change_pct or 0.0) for m in self.members) / total

    def __len__(self) -> int:
        return len(self.members)


def filter_renderable(instruments: Iterable[Instrument]) -> Tuple[Instrument, ...]:
    """Drop instruments with neither a price nor AUM, preserving order."""
    return tuple(i for i in instruments if i.is_renderable())


def group_instruments(instruments: Iterable[Instrument], dimension: str) -> List[Group]:
    """
    Group instruments by `dimension`.

    Members keep dataset order. Groups are sorted descending by total weight;
    ties keep first-appearance order.

    Args:
        instruments: Dataset to group
        dimension: Grouping dimension name

    Returns:
        List of Group, largest first
    """
    buckets: Dict[str, List[Instrument]] = {}
    for instrument in instruments:
        buckets.setdefault(instrument.group_key(dimension), []).append(instrument)

    groups = [Group(key=key, members=tuple(members)) for key, members in buckets.items()]
    groups.sort(key=lambda g: g.total_weight, reverse=True)
    return groups


def find_group(instruments: Iterable[Instrument], dimension: str, key: str) -> Optional[Group]:
    """Return the group `key` under `dimension`, or None if it has no members."""
    members = tuple(i for i in instruments if i.group_key(dimension) == key)
    if not members:
        return None
    return Group(key=key, members=members)
