"""
Heatmap navigation state machine.

States:
    OVERVIEW           - one tile per group of the active dimension
    DETAIL(group_key)  - one tile per member of the zoomed group

Every transition is a pure function NavigationState -> NavigationState.
A transition that does not apply (select while zoomed, back on the
overview, same dimension, search without matches) returns the SAME object,
so callers can detect a no-op with `new is old`.

State machine:
    OVERVIEW --select_group(key)--> DETAIL(key)
    OVERVIEW --search(hit)--------> DETAIL(group of first hit)
    DETAIL   --back()-------------> OVERVIEW
    DETAIL   --change_dimension()-> OVERVIEW
    DETAIL   --refresh(key gone)--> OVERVIEW
    any      --load(dataset)------> OVERVIEW
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from src.utils.logging_setup import get_logger

from .instrument import Group, Instrument, filter_renderable, find_group, group_instruments
from .search import highlight_predicate, resolve_search

logger = get_logger(__name__)

DEFAULT_DIMENSION = "strategy"


class ViewMode(Enum):
    """Which level of the hierarchy is on screen."""

    OVERVIEW = "overview"
    DETAIL = "detail"


@dataclass(frozen=True)
class NavigationState:
    """
    Single source of navigational truth.

    `dataset` holds the cached "all data" snapshot, already filtered to
    renderable instruments. `active_group_key` is set iff view_mode is DETAIL.
    """

    view_mode: ViewMode = ViewMode.OVERVIEW
    active_group_key: Optional[str] = None
    active_dimension: str = DEFAULT_DIMENSION
    search_term: str = ""
    dataset: Tuple[Instrument, ...] = ()

    def __post_init__(self) -> None:
        if (self.view_mode is ViewMode.DETAIL) != (self.active_group_key is not None):
            raise ValueError(
                f"active_group_key must be set iff DETAIL "
                f"(view_mode={self.view_mode.value}, key={self.active_group_key!r})"
            )

    @property
    def is_detail(self) -> bool:
        return self.view_mode is ViewMode.DETAIL

    @property
    def has_data(self) -> bool:
        return bool(self.dataset)

    def groups(self) -> List[Group]:
        """Groups of the dataset under the active dimension, largest first."""
        return group_instruments(self.dataset, self.active_dimension)

    def active_group(self) -> Optional[Group]:
        if self.active_group_key is None:
            return None
        return find_group(self.dataset, self.active_dimension, self.active_group_key)

    def visible_members(self) -> Tuple[Instrument, ...]:
        """Instruments on screen: the zoomed group's members, or everything."""
        group = self.active_group()
        if group is not None:
            return group.members
        return self.dataset

    def highlight(self) -> Callable[[Instrument], bool]:
        return highlight_predicate(self.search_term)

    def describe(self) -> str:
        if self.is_detail:
            return f"detail({self.active_group_key})"
        return "overview"


def initial_state(dimension: str = DEFAULT_DIMENSION) -> NavigationState:
    """Application-start state: OVERVIEW, no data, default dimension."""
    return NavigationState(active_dimension=dimension)


def _has_group(dataset: Iterable[Instrument], dimension: str, key: str) -> bool:
    return any(i.group_key(dimension) == key for i in dataset)


# =============================================================================
# TRANSITIONS
# =============================================================================


def load(state: NavigationState, dataset: Iterable[Instrument]) -> NavigationState:
    """Replace the dataset and reset to OVERVIEW. Dimension and search term are kept."""
    return replace(
        state,
        view_mode=ViewMode.OVERVIEW,
        active_group_key=None,
        dataset=filter_renderable(dataset),
    )


def change_dimension(state: NavigationState, dimension: str) -> NavigationState:
    """Regroup by `dimension`, dropping any zoom. No-op for the current dimension."""
    if dimension == state.active_dimension:
        return state
    return replace(
        state,
        view_mode=ViewMode.OVERVIEW,
        active_group_key=None,
        active_dimension=dimension,
    )


def select_group(state: NavigationState, key: str) -> NavigationState:
    """Zoom into group `key`. Only valid from OVERVIEW and for an existing group."""
    if state.is_detail:
        logger.debug(f"select_group({key}) ignored: already in {state.describe()}")
        return state
    if not _has_group(state.dataset, state.active_dimension, key):
        logger.debug(f"select_group({key}) ignored: no such group under {state.active_dimension}")
        return state
    return replace(state, view_mode=ViewMode.DETAIL, active_group_key=key)


def back(state: NavigationState) -> NavigationState:
    """Leave the zoomed group. Only valid from DETAIL."""
    if not state.is_detail:
        logger.debug("back() ignored: already in overview")
        return state
    return replace(state, view_mode=ViewMode.OVERVIEW, active_group_key=None)


def refresh(state: NavigationState, dataset: Iterable[Instrument]) -> NavigationState:
    """
    Swap in a refreshed dataset without evicting the user from a live zoom.

    DETAIL(key) survives as long as `key` still has members under the
    active dimension; otherwise the state falls back to OVERVIEW.
    A refresh with nothing renderable keeps the last good dataset.
    """
    renderable = filter_renderable(dataset)
    if not renderable:
        logger.warning("Refresh had no renderable instruments, keeping last dataset")
        return state
    if state.is_detail and not _has_group(renderable, state.active_dimension, state.active_group_key):
        logger.info(f"Group {state.active_group_key!r} gone after refresh, back to overview")
        return replace(state, view_mode=ViewMode.OVERVIEW, active_group_key=None, dataset=renderable)
    return replace(state, dataset=renderable)


def resize(state: NavigationState) -> NavigationState:
    """Container bounds changed. Navigation is untouched; only a re-render is due."""
    return state


def search(state: NavigationState, term: str) -> NavigationState:
    """
    Apply a search term.

    From OVERVIEW a hit drills into the first match's group. In DETAIL the
    group stays and only the highlight changes; only the group's own members
    are searched there. An empty term clears the highlight without leaving
    DETAIL. A miss changes nothing.
    """
    candidates = state.visible_members() if state.is_detail else state.dataset
    resolution = resolve_search(term, candidates, state.is_detail, state.active_dimension)

    if resolution.is_clear:
        if not state.search_term:
            return state
        return replace(state, search_term="")

    if not resolution.has_matches:
        logger.debug(f"search({resolution.term!r}) has no matches, keeping current view")
        return state

    if resolution.select_group is not None:
        return replace(
            state,
            view_mode=ViewMode.DETAIL,
            active_group_key=resolution.select_group,
            search_term=resolution.term,
        )

    if resolution.term == state.search_term:
        return state
    return replace(state, search_term=resolution.term)
