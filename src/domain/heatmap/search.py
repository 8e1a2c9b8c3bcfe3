"""
Search resolution for the heatmap.

Decides what a search term means for navigation:
- empty term        -> clear the highlight, stay where we are
- no match          -> nothing changes (a transient keystroke must not blank
                       the view, the previous highlight stays)
- match in Overview -> drill into the group of the FIRST match in dataset order
- match in Detail   -> stay in the group, recompute the highlight (callers
                       pass only the group's members, so a term that
                       matches elsewhere is a miss)

Matching is a case-insensitive substring test on ticker or display name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, Optional

from .instrument import Instrument


@dataclass(frozen=True)
class SearchResolution:
    """Navigation consequence of a search term."""

    term: str
    select_group: Optional[str] = None
    matched: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_clear(self) -> bool:
        return not self.term

    @property
    def has_matches(self) -> bool:
        return bool(self.matched)


def normalize_term(term: Optional[str]) -> str:
    return (term or "").strip()


def matches(instrument: Instrument, term: str) -> bool:
    """Case-insensitive substring match on ticker or name. Empty term matches all."""
    needle = normalize_term(term).lower()
    if not needle:
        return True
    return needle in instrument.ticker.lower() or needle in (instrument.name or "").lower()


def highlight_predicate(term: str) -> Callable[[Instrument], bool]:
    """Build the per-leaf highlight test for `term`."""
    needle = normalize_term(term)
    return lambda instrument: matches(instrument, needle)


def resolve_search(
    term: Optional[str],
    dataset: Iterable[Instrument],
    in_detail: bool,
    dimension: str,
) -> SearchResolution:
    """
    Resolve a search term against the given instruments.

    Args:
        term: Raw search input (surrounding whitespace ignored)
        dataset: Instruments to search, in iteration order (the full
            dataset in Overview, the zoomed group's members in Detail)
        in_detail: True if the current view is a zoomed group
        dimension: Active grouping dimension (to resolve a match's group)

    Returns:
        SearchResolution. `select_group` is set only for a drill-in from
        the overview; `matched` is empty for a clear or a miss.
    """
    needle = normalize_term(term)
    if not needle:
        return SearchResolution(term="")

    first_group: Optional[str] = None
    matched = set()
    for instrument in dataset:
        if matches(instrument, needle):
            matched.add(instrument.ticker)
            if first_group is None:
                first_group = instrument.group_key(dimension)

    if not matched:
        return SearchResolution(term=needle)

    return SearchResolution(
        term=needle,
        select_group=None if in_detail else first_group,
        matched=frozenset(matched),
    )
