"""
Heatmap controller - single owner of the navigation state.

All external triggers (initial load, periodic refresh, viewport resize,
search keystrokes, tile clicks, dimension toggle) arrive as commands on a
FIFO queue. The controller drains the queue synchronously on the event
loop thread, applies the matching pure transition, and notifies render
subscribers with the freshly composed tiles.

A command issued from inside a render callback is queued and applied after
the current one finishes, so subscribers never observe a half-applied
transition. Layout is always recomputed from the *current* state and the
*current* bounds, never from a captured snapshot.

Usage:
    controller = HeatmapController(bounds=Rect.from_size(1280, 720))
    controller.subscribe(lambda tiles, mode, key: draw(tiles))
    controller.on_load(instruments)
    controller.on_select_group("Equity")
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Sequence, Tuple, Union

from src.domain.heatmap import navigation
from src.domain.heatmap.instrument import Instrument
from src.domain.heatmap.layout import Rect
from src.domain.heatmap.navigation import DEFAULT_DIMENSION, NavigationState, ViewMode
from src.domain.heatmap.tiles import Tile, TileLayoutOptions, build_tiles
from src.utils.logging_setup import get_logger
from src.utils.perf_logger import log_timing
from src.utils.trace_context import get_cycle_id, new_cycle

logger = get_logger(__name__)

RenderCallback = Callable[[List[Tile], ViewMode, Optional[str]], None]


# =============================================================================
# COMMANDS
# =============================================================================


@dataclass(frozen=True)
class Load:
    dataset: Tuple[Instrument, ...]


@dataclass(frozen=True)
class Refresh:
    dataset: Tuple[Instrument, ...]


@dataclass(frozen=True)
class Resize:
    width: float
    height: float


@dataclass(frozen=True)
class Search:
    term: str


@dataclass(frozen=True)
class SelectGroup:
    key: str


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class ChangeDimension:
    dimension: str


@dataclass(frozen=True)
class Redraw:
    """Re-render the current state, e.g. after the data source went stale."""


Command = Union[Load, Refresh, Resize, Search, SelectGroup, Back, ChangeDimension, Redraw]

# Commands that re-render even when the navigation state object is unchanged
_ALWAYS_RENDER = (Load, Refresh, Resize, Redraw)


class HeatmapController:
    """
    Owns the NavigationState and serializes every trigger through a command queue.

    Render subscribers receive ``(tiles, view_mode, active_group_key)`` after
    each command that changed the state, after every load, refresh and
    resize (new data or new bounds mean new rectangles), and on redraw.
    """

    def __init__(
        self,
        bounds: Rect,
        dimension: str = DEFAULT_DIMENSION,
        dimensions: Optional[Sequence[str]] = None,
        options: Optional[TileLayoutOptions] = None,
    ):
        """
        Initialize controller.

        Args:
            bounds: Initial container rectangle.
            dimension: Initial grouping dimension.
            dimensions: Allowed grouping dimensions (None = any).
            options: Padding and overview style for tile composition.
        """
        self._state = navigation.initial_state(dimension)
        self._bounds = bounds
        self._dimensions = tuple(dimensions) if dimensions is not None else None
        self._options = options or TileLayoutOptions()
        self._queue: Deque[Command] = deque()
        self._draining = False
        self._subscribers: List[RenderCallback] = []
        self._tiles: List[Tile] = []
        self._render_count = 0

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def bounds(self) -> Rect:
        return self._bounds

    @property
    def tiles(self) -> List[Tile]:
        """Tiles of the last render."""
        return list(self._tiles)

    @property
    def render_count(self) -> int:
        return self._render_count

    @property
    def dimensions(self) -> Optional[Tuple[str, ...]]:
        return self._dimensions

    # -------------------------------------------------------------------------
    # Subscribers
    # -------------------------------------------------------------------------

    def subscribe(self, callback: RenderCallback) -> None:
        """Register a render callback."""
        self._subscribers.append(callback)
        logger.debug(f"Render subscriber added ({len(self._subscribers)} total)")

    def unsubscribe(self, callback: RenderCallback) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            logger.warning("Render subscriber not found")

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    def on_load(self, dataset: Sequence[Instrument]) -> None:
        self.dispatch(Load(tuple(dataset)))

    def on_refresh(self, dataset: Sequence[Instrument]) -> None:
        self.dispatch(Refresh(tuple(dataset)))

    def on_resize(self, width: float, height: float) -> None:
        self.dispatch(Resize(width, height))

    def on_search(self, term: str) -> None:
        self.dispatch(Search(term))

    def on_select_group(self, key: str) -> None:
        self.dispatch(SelectGroup(key))

    def on_back(self) -> None:
        self.dispatch(Back())

    def on_change_dimension(self, dimension: str) -> None:
        self.dispatch(ChangeDimension(dimension))

    def redraw(self) -> None:
        self.dispatch(Redraw())

    def dispatch(self, command: Command) -> None:
        """
        Queue a command and drain the queue.

        Re-entrant calls (from a render subscriber) only enqueue; the outer
        drain loop picks them up in FIFO order.
        """
        self._queue.append(command)
        if self._draining:
            logger.debug(f"Queued {type(command).__name__} behind running command")
            return

        self._draining = True
        try:
            while self._queue:
                self._apply(self._queue.popleft())
        finally:
            self._draining = False

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply(self, command: Command) -> None:
        with new_cycle(type(command).__name__):
            old = self._state
            self._state = self._transition(old, command)

            changed = self._state is not old
            if changed:
                logger.info(
                    f"[{get_cycle_id()}] {type(command).__name__}: "
                    f"{old.describe()} -> {self._state.describe()}"
                )

            if changed or isinstance(command, _ALWAYS_RENDER):
                self._render()

    def _transition(self, state: NavigationState, command: Command) -> NavigationState:
        if isinstance(command, Load):
            return navigation.load(state, command.dataset)
        if isinstance(command, Refresh):
            return navigation.refresh(state, command.dataset)
        if isinstance(command, Resize):
            self._bounds = Rect.from_size(command.width, command.height)
            return navigation.resize(state)
        if isinstance(command, Search):
            return navigation.search(state, command.term)
        if isinstance(command, SelectGroup):
            return navigation.select_group(state, command.key)
        if isinstance(command, Back):
            return navigation.back(state)
        if isinstance(command, ChangeDimension):
            if self._dimensions is not None and command.dimension not in self._dimensions:
                logger.warning(
                    f"Unknown dimension '{command.dimension}', expected one of {self._dimensions}"
                )
                return state
            return navigation.change_dimension(state, command.dimension)
        if isinstance(command, Redraw):
            return state
        raise TypeError(f"Unknown command: {command!r}")

    def _render(self) -> None:
        with log_timing("tile_compose") as ctx:
            self._tiles = build_tiles(self._state, self._bounds, self._options)
            ctx["tiles"] = len(self._tiles)
            ctx["view"] = self._state.describe()

        self._render_count += 1
        if not self._tiles:
            logger.debug(f"Nothing to render for {self._state.describe()} in {self._bounds}")

        for callback in list(self._subscribers):
            try:
                callback(list(self._tiles), self._state.view_mode, self._state.active_group_key)
            except Exception as e:
                logger.error(f"Error in render subscriber: {e}", exc_info=True)
