"""
Tests for the diverging change color scale.

Verifies:
- Breakpoints map exactly to their ramp colors
- Values outside [-5, +5] clamp to the end colors
- Missing values render neutral
- Interpolation stays between adjacent breakpoint colors
"""

import math

import pytest

from src.domain.heatmap.color_scale import (
    COLOR_DOMAIN,
    COLOR_RANGE,
    NEUTRAL_COLOR,
    color_for,
    text_color_for,
)


def _rgb(color: str):
    value = color.lstrip("#")
    return tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))


class TestBreakpoints:
    """Exact colors at the domain stops."""

    @pytest.mark.parametrize("value,color", list(zip(COLOR_DOMAIN, COLOR_RANGE)))
    def test_breakpoint_colors(self, value, color):
        """Each domain stop maps to its ramp color."""
        assert color_for(value) == color

    def test_zero_is_neutral(self):
        """0% change is the neutral dark gray."""
        assert color_for(0.0) == "#37474f"
        assert NEUTRAL_COLOR == "#37474f"

    def test_extremes(self):
        """-5% is deep red, +5% deep green."""
        assert color_for(-5.0) == "#b71c1c"
        assert color_for(5.0) == "#1b5e20"


class TestClamping:
    """Out-of-domain values clamp to the end colors."""

    @pytest.mark.parametrize("value", [-5.01, -12.0, -100.0])
    def test_below_domain_clamps_to_deep_red(self, value):
        assert color_for(value) == color_for(-5.0)

    @pytest.mark.parametrize("value", [5.01, 12.0, 100.0])
    def test_above_domain_clamps_to_deep_green(self, value):
        assert color_for(value) == color_for(5.0)


class TestMissingValues:
    """None and NaN render as neutral."""

    def test_none_is_neutral(self):
        assert color_for(None) == NEUTRAL_COLOR

    def test_nan_is_neutral(self):
        assert color_for(math.nan) == NEUTRAL_COLOR


class TestInterpolation:
    """Between stops every channel lies between the neighbouring colors."""

    @pytest.mark.parametrize("value,lo,hi", [
        (0.25, 0.0, 0.5),
        (1.0, 0.5, 2.0),
        (-1.0, -2.0, -0.5),
        (-3.5, -5.0, -2.0),
    ])
    def test_channels_between_neighbours(self, value, lo, hi):
        mid = _rgb(color_for(value))
        a = _rgb(color_for(lo))
        b = _rgb(color_for(hi))
        for channel, low, high in zip(mid, a, b):
            assert min(low, high) <= channel <= max(low, high)

    def test_output_is_hex(self):
        """Output is always #rrggbb."""
        color = color_for(1.234)
        assert color.startswith("#")
        assert len(color) == 7
        int(color[1:], 16)

    def test_text_is_white(self):
        """Labels are white on every ramp color."""
        assert text_color_for(-4.0) == "#ffffff"
        assert text_color_for(4.0) == "#ffffff"
