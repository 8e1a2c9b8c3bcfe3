"""
Display formatters shared by the SVG renderer, the HTML page and the CLI.

All formatters accept None and return "N/A" for missing values.
"""

from __future__ import annotations

import html
import math
from typing import Any, Optional

ELLIPSIS = "…"

# Approximate glyph width as a fraction of the font size
AVG_CHAR_WIDTH_RATIO = 0.6


def escape_html(text: Any) -> str:
    """
    Escape HTML/XML special characters.

    Every dynamic string placed into the SVG or the HTML page (tickers,
    names, group keys, search terms) goes through this helper.
    """
    return html.escape(str(text))


def _missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_change(value: Optional[float]) -> str:
    """Signed percentage with 2 decimals: +1.23%, -0.50%."""
    if _missing(value):
        return "N/A"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def format_aum(value: Optional[float]) -> str:
    """Human-readable AUM: $1.2B, $340M, $12K."""
    if _missing(value) or value <= 0:
        return "N/A"
    if value >= 1e9:
        return f"${value / 1e9:.1f}B"
    if value >= 1e6:
        return f"${value / 1e6:.0f}M"
    if value >= 1e3:
        return f"${value / 1e3:.0f}K"
    return f"${value:.0f}"


def format_price(value: Optional[float]) -> str:
    """Dollar price with 2 decimals."""
    if _missing(value):
        return "N/A"
    return f"${value:.2f}"


def format_volume(value: Optional[float]) -> str:
    """Volume with thousands separators (N/A when zero or missing)."""
    if _missing(value) or not value:
        return "N/A"
    return f"{value:,.0f}"


def truncate_text(text: str, max_width: float, font_size: float) -> str:
    """
    Truncate text to fit within max_width pixels (approximate).

    Args:
        text: Label text
        max_width: Available width in pixels
        font_size: Font size in pixels

    Returns:
        The text, or a prefix ending in an ellipsis
    """
    max_chars = int(max_width // (font_size * AVG_CHAR_WIDTH_RATIO))
    if len(text) <= max_chars:
        return text
    if max_chars <= 1:
        return ELLIPSIS if max_chars == 1 else ""
    return text[: max_chars - 1] + ELLIPSIS
