"""
Diverging color scale for daily change.

Deep red (-5%) -> neutral dark gray (0%) -> deep green (+5%), linear
interpolation per RGB channel between adjacent breakpoints, clamped to the
end colors outside the domain.
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np

COLOR_DOMAIN: List[float] = [-5.0, -2.0, -0.5, 0.0, 0.5, 2.0, 5.0]

COLOR_RANGE: List[str] = [
    "#b71c1c",  # deep red
    "#e53935",  # bright red
    "#5d4037",  # muted red-brown
    "#37474f",  # neutral dark
    "#2e7d32",  # muted green
    "#43a047",  # bright green
    "#1b5e20",  # deep green
]

NEUTRAL_COLOR = COLOR_RANGE[COLOR_DOMAIN.index(0.0)]
TEXT_COLOR = "#ffffff"


def _hex_to_rgb(color: str) -> Tuple[int, int, int]:
    value = color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


_DOMAIN = np.array(COLOR_DOMAIN, dtype=float)
_CHANNELS = np.array([_hex_to_rgb(c) for c in COLOR_RANGE], dtype=float).T  # shape (3, 7)


def color_for(change_pct: Optional[float]) -> str:
    """
    Map a signed change percentage to a hex color.

    Args:
        change_pct: Daily change in percent (None/NaN treated as 0)

    Returns:
        Hex color code (#rrggbb)
    """
    if change_pct is None or math.isnan(change_pct):
        change_pct = 0.0

    # np.interp clamps to the end values outside the domain
    rgb = [int(round(float(np.interp(change_pct, _DOMAIN, channel)))) for channel in _CHANNELS]
    return "#{:02x}{:02x}{:02x}".format(*rgb)


def text_color_for(change_pct: Optional[float]) -> str:
    """Label color on top of a tile. Every ramp color is dark enough for white."""
    return TEXT_COLOR
