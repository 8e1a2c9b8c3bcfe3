"""
Reporting Package.

Provides HTML/SVG output for the ETF heatmap:
- render_svg: treemap tiles as SVG
- render_heatmap_page: full HTML page with stats bar and legend
"""

from .heatmap import HeatmapPageContext, render_heatmap_page, render_svg

__all__ = [
    "HeatmapPageContext",
    "render_heatmap_page",
    "render_svg",
]
