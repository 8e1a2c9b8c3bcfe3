"""
Tile composition - turns navigation state into positioned, colored tiles.

This is the only place where the state machine, the layout engine and the
color scale meet. Output tiles are pure data; the renderer draws them
without knowing anything about navigation.

Views:
    OVERVIEW / aggregate      one GROUP tile per group, colored by the
                              group's weighted average change
    OVERVIEW / grouped_cells  GROUP frames with a label strip, LEAF tiles
                              for every instrument inside them
    DETAIL                    LEAF tiles for the zoomed group's members
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .color_scale import color_for
from .instrument import Group, Instrument
from .layout import LayoutRect, Padding, Rect, WeightedNode, layout_tree
from .navigation import NavigationState


class TileKind(Enum):
    GROUP = "group"
    LEAF = "leaf"


class OverviewStyle(Enum):
    """How the overview presents groups."""

    AGGREGATE = "aggregate"
    GROUPED_CELLS = "grouped_cells"


@dataclass(frozen=True)
class TileLayoutOptions:
    """Padding and overview style used when composing tiles."""

    overview_style: OverviewStyle = OverviewStyle.AGGREGATE
    padding_outer: float = 2.0
    padding_inner: float = 1.5
    padding_top: float = 18.0

    def overview_padding(self) -> Padding:
        # Label strip only exists when groups contain cells
        top = self.padding_top if self.overview_style is OverviewStyle.GROUPED_CELLS else None
        return Padding(outer=self.padding_outer, inner=self.padding_inner, top=top)

    def detail_padding(self) -> Padding:
        return Padding(outer=self.padding_outer, inner=self.padding_inner)


@dataclass(frozen=True)
class Tile:
    """One drawable rectangle."""

    kind: TileKind
    key: str
    label: str
    rect: Rect
    weight: float
    change_pct: float
    color: str
    matched: bool = True
    dimmed: bool = False
    parent_key: Optional[str] = None
    instrument: Optional[Instrument] = None
    member_count: int = 0

    @property
    def is_group(self) -> bool:
        return self.kind is TileKind.GROUP


def _leaf_node(instrument: Instrument) -> WeightedNode:
    return WeightedNode(key=instrument.ticker, weight=instrument.weight, payload=instrument)


def _leaf_tile(placed: LayoutRect, term_active: bool, state: NavigationState) -> Tile:
    instrument: Instrument = placed.payload
    matched = state.highlight()(instrument)
    return Tile(
        kind=TileKind.LEAF,
        key=instrument.ticker,
        label=instrument.ticker,
        rect=placed.rect,
        weight=placed.weight,
        change_pct=instrument.change_pct,
        color=color_for(instrument.change_pct),
        matched=matched,
        dimmed=term_active and not matched,
        parent_key=placed.parent_key,
        instrument=instrument,
    )


def _group_tile(placed: LayoutRect, term_active: bool, state: NavigationState) -> Tile:
    group: Group = placed.payload
    predicate = state.highlight()
    matched = any(predicate(m) for m in group.members)
    change = group.weighted_average_change
    return Tile(
        kind=TileKind.GROUP,
        key=group.key,
        label=group.key,
        rect=placed.rect,
        weight=placed.weight,
        change_pct=change,
        color=color_for(change),
        matched=matched,
        dimmed=term_active and not matched,
        member_count=len(group),
    )


def build_tiles(
    state: NavigationState,
    bounds: Rect,
    options: TileLayoutOptions = TileLayoutOptions(),
) -> List[Tile]:
    """
    Compose the tiles for the current view.

    Args:
        state: Current navigation state (dataset, mode, zoomed group, search)
        bounds: Container rectangle
        options: Padding and overview style

    Returns:
        Tiles, group tiles before leaf tiles. Empty when there is no data,
        the bounds have no area, or the zoomed group has no members.
    """
    if not state.has_data or bounds.is_empty:
        return []

    term_active = bool(state.search_term)

    if state.is_detail:
        group = state.active_group()
        if group is None:
            return []
        placed = layout_tree(
            [_leaf_node(m) for m in group.members], bounds, options.detail_padding()
        )
        return [_leaf_tile(p, term_active, state) for p in placed]

    groups = state.groups()
    if options.overview_style is OverviewStyle.GROUPED_CELLS:
        nodes = [
            WeightedNode(key=g.key, children=tuple(_leaf_node(m) for m in g.members), payload=g)
            for g in groups
        ]
    else:
        nodes = [WeightedNode(key=g.key, weight=g.total_weight, payload=g) for g in groups]

    placed = layout_tree(nodes, bounds, options.overview_padding())
    tiles: List[Tile] = []
    for p in placed:
        if p.depth == 0:
            tiles.append(_group_tile(p, term_active, state))
        else:
            tiles.append(_leaf_tile(p, term_active, state))
    return tiles
