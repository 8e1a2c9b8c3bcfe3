"""
Heatmap domain package.

Pure data and logic for the ETF treemap heatmap: instrument model,
color scale, squarified layout, search resolution, navigation state
machine and tile composition. Nothing here performs I/O.
"""

from __future__ import annotations

from .color_scale import COLOR_DOMAIN, COLOR_RANGE, NEUTRAL_COLOR, color_for, text_color_for
from .instrument import (
    OTHER_GROUP,
    Group,
    Instrument,
    compute_weight,
    filter_renderable,
    find_group,
    group_instruments,
)
from .layout import LayoutRect, Padding, Rect, WeightedNode, layout_tree, squarify
from .navigation import (
    DEFAULT_DIMENSION,
    NavigationState,
    ViewMode,
    initial_state,
)
from .search import SearchResolution, highlight_predicate, matches, resolve_search
from .summary import MarketSummary, compute_summary
from .tiles import OverviewStyle, Tile, TileKind, TileLayoutOptions, build_tiles

__all__ = [
    # Model
    "Instrument",
    "Group",
    "OTHER_GROUP",
    "compute_weight",
    "filter_renderable",
    "find_group",
    "group_instruments",
    # Color
    "COLOR_DOMAIN",
    "COLOR_RANGE",
    "NEUTRAL_COLOR",
    "color_for",
    "text_color_for",
    # Layout
    "Rect",
    "Padding",
    "WeightedNode",
    "LayoutRect",
    "squarify",
    "layout_tree",
    # Navigation
    "DEFAULT_DIMENSION",
    "NavigationState",
    "ViewMode",
    "initial_state",
    # Search
    "SearchResolution",
    "highlight_predicate",
    "matches",
    "resolve_search",
    # Summary
    "MarketSummary",
    "compute_summary",
    # Tiles
    "OverviewStyle",
    "Tile",
    "TileKind",
    "TileLayoutOptions",
    "build_tiles",
]
