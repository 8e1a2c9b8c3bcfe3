"""
HTML Template - Generates the complete heatmap HTML page.

Wraps a rendered SVG treemap with the stats bar (instrument count,
average change, gainers, losers, last update time), the grouping toggle,
the breadcrumb for the current view and a color legend. A banner is
shown while the data on screen is cached instead of live.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from src.domain.heatmap.color_scale import COLOR_DOMAIN, COLOR_RANGE
from src.domain.heatmap.summary import MarketSummary

from .formatters import escape_html, format_change

HEATMAP_CSS = """
body.etf-hm { margin: 0; background: #0f0f1e; color: #e0e0e0;
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; }
.hm-header { display: flex; align-items: baseline; justify-content: space-between; padding: 12px 16px; }
.hm-header h1 { margin: 0; font-size: 20px; }
.hm-stats { display: flex; gap: 18px; padding: 0 16px 8px; font-size: 13px; }
.hm-stat-value { font-weight: 600; margin-left: 4px; }
.hm-positive { color: #43a047; }
.hm-negative { color: #e53935; }
.hm-stale { color: #ffb300; }
.hm-banner { margin: 0 16px 8px; padding: 6px 10px; border-left: 3px solid #ffb300; background: #2a2410; font-size: 13px; }
.hm-controls { display: flex; gap: 12px; align-items: center; padding: 0 16px 8px; font-size: 13px; }
.hm-toggle { padding: 2px 8px; border: 1px solid #0f3460; border-radius: 3px; color: #8899aa; }
.hm-toggle.active { background: #0f3460; color: #fff; }
.hm-breadcrumb { color: #8899aa; }
.hm-search { color: #fff; }
.hm-container { padding: 0 16px; }
.hm-empty { padding: 48px; text-align: center; color: #8899aa; }
.hm-legend { display: flex; gap: 2px; padding: 8px 16px; font-size: 11px; }
.hm-legend span { padding: 2px 6px; color: #fff; }
"""


@dataclass
class HeatmapPageContext:
    """Everything the page shows around the treemap."""

    title: str
    svg: str
    summary: MarketSummary
    updated_at: str
    active_dimension: str
    dimensions: Sequence[str] = field(default_factory=list)
    active_group_key: Optional[str] = None
    search_term: str = ""
    stale: bool = False
    tile_count: int = 0


def _change_class(value: float) -> str:
    if value > 0:
        return "hm-positive"
    if value < 0:
        return "hm-negative"
    return ""


def _render_stats(ctx: HeatmapPageContext) -> str:
    summary = ctx.summary
    stale = ' <span class="hm-stale">(stale)</span>' if ctx.stale else ""
    return (
        '<div class="hm-stats">'
        f'<div class="hm-stat">ETFs:<span class="hm-stat-value">{summary.total}</span></div>'
        f'<div class="hm-stat">Avg change:<span class="hm-stat-value {_change_class(summary.average_change)}">'
        f"{format_change(summary.average_change)}</span></div>"
        f'<div class="hm-stat">Gainers:<span class="hm-stat-value hm-positive">{summary.gainers}</span></div>'
        f'<div class="hm-stat">Losers:<span class="hm-stat-value hm-negative">{summary.losers}</span></div>'
        f'<div class="hm-stat">Updated {escape_html(ctx.updated_at)}{stale}</div>'
        "</div>"
    )


def _render_controls(ctx: HeatmapPageContext) -> str:
    toggles: List[str] = []
    for dimension in ctx.dimensions:
        active = " active" if dimension == ctx.active_dimension else ""
        toggles.append(
            f'<span class="hm-toggle{active}">{escape_html(dimension.capitalize())}</span>'
        )

    crumb = "All groups"
    if ctx.active_group_key is not None:
        crumb += f" &rsaquo; {escape_html(ctx.active_group_key)}"

    search = ""
    if ctx.search_term:
        search = f'<span class="hm-search">Search: &quot;{escape_html(ctx.search_term)}&quot;</span>'

    return (
        '<div class="hm-controls">'
        f"<span>Group by:</span>{''.join(toggles)}"
        f'<span class="hm-breadcrumb">{crumb}</span>'
        f"{search}"
        "</div>"
    )


STALE_BANNER = "Failed to load live data. Showing cached data."


def _render_banner(ctx: HeatmapPageContext) -> str:
    if not ctx.stale or ctx.tile_count == 0:
        return ""
    return f'<div class="hm-banner">{STALE_BANNER}</div>'


def _render_legend() -> str:
    swatches = "".join(
        f'<span style="background:{color}">{format_change(value) if value else "0%"}</span>'
        for value, color in zip(COLOR_DOMAIN, COLOR_RANGE)
    )
    return f'<div class="hm-legend">{swatches}</div>'


def render_heatmap_page(ctx: HeatmapPageContext) -> str:
    """
    Render the complete HTML page.

    Args:
        ctx: Page context (SVG, summary, view and search)

    Returns:
        Complete HTML page content
    """
    if ctx.tile_count == 0:
        body = '<div class="hm-empty">Data not yet available</div>'
    else:
        body = ctx.svg

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape_html(ctx.title)}</title>
    <style>{HEATMAP_CSS}</style>
</head>
<body class="etf-hm">
    <div class="hm-header">
        <h1>{escape_html(ctx.title)}</h1>
    </div>
    {_render_stats(ctx)}
    {_render_banner(ctx)}
    {_render_controls(ctx)}
    <div class="hm-container">
        {body}
    </div>
    {_render_legend()}
</body>
</html>
"""
