"""
Heatmap Sub-Package.

Stateless rendering of composed heatmap tiles: SVG treemap, the HTML page
around it, and the display formatters both share.
"""

from __future__ import annotations

from .formatters import (
    escape_html,
    format_aum,
    format_change,
    format_price,
    format_volume,
    truncate_text,
)
from .html_template import HEATMAP_CSS, HeatmapPageContext, render_heatmap_page
from .svg_renderer import font_size_for, render_svg

__all__ = [
    # Renderers
    "render_svg",
    "render_heatmap_page",
    "HeatmapPageContext",
    "HEATMAP_CSS",
    "font_size_for",
    # Formatters
    "escape_html",
    "format_aum",
    "format_change",
    "format_price",
    "format_volume",
    "truncate_text",
]
