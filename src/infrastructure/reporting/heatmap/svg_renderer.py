"""
SVG Renderer - draws composed tiles as a standalone SVG treemap.

Stateless: every call receives the tiles, the container size and the view
it belongs to, and returns SVG markup. It never reads navigation state.

Drawing rules:
- GROUP tile with leaves inside (grouped cells): outline frame plus a
  label in the top strip when the frame is wider than 40px
- GROUP tile without leaves (aggregate overview): filled cell colored by
  the group's weighted average change, labeled with the group name
- LEAF tile: filled cell with ticker and % change labels sized to the cell
- Non-matching tiles under an active search are drawn at reduced opacity
  (never removed) so positions stay stable while typing
- Every cell carries a <title> tooltip
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set

from src.domain.heatmap.color_scale import text_color_for
from src.domain.heatmap.navigation import ViewMode
from src.domain.heatmap.tiles import Tile

from .formatters import (
    escape_html,
    format_aum,
    format_change,
    format_price,
    format_volume,
    truncate_text,
)

FONT_FAMILY = '-apple-system, BlinkMacSystemFont, &quot;Segoe UI&quot;, Roboto, sans-serif'

BACKGROUND = "#1a1a2e"
FRAME_STROKE = "#0f3460"
CELL_STROKE = "#1a1a2e"
GROUP_LABEL_COLOR = "#8899aa"
CHANGE_LABEL_COLOR = "rgba(255,255,255,0.85)"

# Cells below this size get no text
MIN_LABEL_WIDTH = 28
MIN_LABEL_HEIGHT = 16
# Change label needs a second line
CHANGE_LABEL_MIN_HEIGHT = 30
CHANGE_LABEL_MIN_WIDTH = 35
GROUP_LABEL_MIN_WIDTH = 40
GROUP_LABEL_FONT_SIZE = 11


def font_size_for(width: float) -> int:
    """Label font size for a cell of the given width."""
    if width < 40:
        return 8
    if width < 60:
        return 9
    if width < 90:
        return 11
    return 13


def _num(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".") or "0"


def _tooltip_lines(tile: Tile) -> List[str]:
    if tile.is_group:
        return [
            tile.label,
            f"{tile.member_count} instruments",
            f"Change: {format_change(tile.change_pct)}",
        ]

    instrument = tile.instrument
    if instrument is None:
        return [tile.label, f"Change: {format_change(tile.change_pct)}"]

    lines = [
        instrument.ticker,
        instrument.name,
        f"Price: {format_price(instrument.price)}",
        f"Change: {format_change(instrument.change_pct)}",
        f"AUM: {format_aum(instrument.aum)}",
        f"Volume: {format_volume(instrument.volume)}",
    ]
    for dimension, value in instrument.dimensions.items():
        lines.append(f"{dimension.capitalize()}: {value}")
    return lines


def _title(tile: Tile) -> str:
    return f"<title>{escape_html(chr(10).join(_tooltip_lines(tile)))}</title>"


def _cell_labels(label: str, change_pct: float, width: float, height: float) -> List[str]:
    """Ticker (or group name) and change labels, relative to the cell origin."""
    if width < MIN_LABEL_WIDTH or height < MIN_LABEL_HEIGHT:
        return []

    font_size = font_size_for(width)
    change_font_size = max(font_size - 2, 7)
    two_lines = height > CHANGE_LABEL_MIN_HEIGHT

    parts = [
        f'<text x="{_num(width / 2)}" y="{_num(height / 2 - (2 if two_lines else 0))}" '
        f'text-anchor="middle" dominant-baseline="{"auto" if two_lines else "central"}" '
        f'fill="{text_color_for(change_pct)}" font-size="{font_size}px" font-weight="700" '
        f'font-family="{FONT_FAMILY}" pointer-events="none">'
        f"{escape_html(truncate_text(label, width - 4, font_size))}</text>"
    ]
    if two_lines and width > CHANGE_LABEL_MIN_WIDTH:
        parts.append(
            f'<text x="{_num(width / 2)}" y="{_num(height / 2 + change_font_size + 2)}" '
            f'text-anchor="middle" fill="{CHANGE_LABEL_COLOR}" '
            f'font-size="{change_font_size}px" font-weight="500" '
            f'font-family="{FONT_FAMILY}" pointer-events="none">'
            f"{escape_html(format_change(change_pct))}</text>"
        )
    return parts


def _render_cell(tile: Tile, dim_opacity: float) -> str:
    rect = tile.rect
    width = max(0.0, rect.width)
    height = max(0.0, rect.height)
    opacity = f' opacity="{dim_opacity}"' if tile.dimmed else ""
    kind = tile.kind.value
    parent = f' data-group="{escape_html(tile.parent_key)}"' if tile.parent_key else ""

    parts = [
        f'<g class="cell {kind}{" dimmed" if tile.dimmed else ""}" '
        f'data-key="{escape_html(tile.key)}"{parent} '
        f'transform="translate({_num(rect.x0)},{_num(rect.y0)})"{opacity}>',
        f'<rect width="{_num(width)}" height="{_num(height)}" fill="{tile.color}" '
        f'stroke="{CELL_STROKE}" stroke-width="0.5" rx="1">{_title(tile)}</rect>',
    ]
    parts.extend(_cell_labels(tile.label, tile.change_pct, width, height))
    parts.append("</g>")
    return "".join(parts)


def _render_frame(tile: Tile, dim_opacity: float) -> str:
    rect = tile.rect
    opacity = f' opacity="{dim_opacity}"' if tile.dimmed else ""
    parts = [
        f'<g class="group-frame" data-key="{escape_html(tile.key)}"{opacity}>',
        f'<rect x="{_num(rect.x0)}" y="{_num(rect.y0)}" width="{_num(rect.width)}" '
        f'height="{_num(rect.height)}" fill="none" stroke="{FRAME_STROKE}" stroke-width="1">'
        f"{_title(tile)}</rect>",
    ]
    if rect.width > GROUP_LABEL_MIN_WIDTH:
        label = truncate_text(tile.label, rect.width - 8, GROUP_LABEL_FONT_SIZE)
        parts.append(
            f'<text x="{_num(rect.x0 + 4)}" y="{_num(rect.y0 + 13)}" fill="{GROUP_LABEL_COLOR}" '
            f'font-size="{GROUP_LABEL_FONT_SIZE}px" font-weight="600" '
            f'font-family="{FONT_FAMILY}" pointer-events="none">{escape_html(label)}</text>'
        )
    parts.append("</g>")
    return "".join(parts)


def render_svg(
    tiles: Sequence[Tile],
    width: float,
    height: float,
    view_mode: ViewMode = ViewMode.OVERVIEW,
    active_group_key: Optional[str] = None,
    dim_opacity: float = 0.2,
) -> str:
    """
    Render tiles as an SVG document fragment.

    Args:
        tiles: Composed tiles (group tiles before leaf tiles)
        width: Container width in pixels
        height: Container height in pixels
        view_mode: View the tiles belong to
        active_group_key: Zoomed group in DETAIL view
        dim_opacity: Opacity for tiles not matching the search term

    Returns:
        SVG markup. An empty tile list yields an empty canvas.
    """
    parent_keys: Set[str] = {t.parent_key for t in tiles if not t.is_group and t.parent_key}

    group_layers: List[str] = []
    leaf_layers: List[str] = []
    for tile in tiles:
        if tile.is_group and tile.key in parent_keys:
            group_layers.append(_render_frame(tile, dim_opacity))
        else:
            leaf_layers.append(_render_cell(tile, dim_opacity))

    view_attrs: Dict[str, str] = {"data-view": view_mode.value}
    if active_group_key is not None:
        view_attrs["data-group"] = escape_html(active_group_key)
    attrs = " ".join(f'{k}="{v}"' for k, v in view_attrs.items())

    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{_num(width)}" height="{_num(height)}" '
        f'viewBox="0 0 {_num(width)} {_num(height)}" {attrs}>'
        f'<rect width="100%" height="100%" fill="{BACKGROUND}"/>'
        + "".join(group_layers)
        + "".join(leaf_layers)
        + "</svg>"
    )
