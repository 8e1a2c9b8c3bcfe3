"""Tests for the market summary stats."""

import pytest

from src.domain.heatmap.instrument import Instrument
from src.domain.heatmap.summary import MarketSummary, compute_summary


class TestComputeSummary:
    """Stats bar figures."""

    def test_counts(self, sample_instruments):
        summary = compute_summary(sample_instruments)
        assert summary.total == 5
        assert summary.gainers == 2
        assert summary.losers == 2
        assert summary.unchanged == 1
        assert summary.average_change == pytest.approx((1.5 - 0.8 + 3.0 - 2.5 + 0.0) / 5)

    def test_unpriced_excluded(self, sample_instruments):
        unpriced = Instrument(ticker="NOP", name="No Price", price=None, change_pct=9.0, aum=10)
        summary = compute_summary([*sample_instruments, unpriced])
        assert summary.total == 5
        assert summary.gainers == 2

    def test_empty(self):
        assert compute_summary([]) == MarketSummary()
        assert compute_summary([]).average_change == 0.0

    def test_to_dict(self, sample_instruments):
        data = compute_summary(sample_instruments).to_dict()
        assert set(data) == {"total", "average_change", "gainers", "losers"}
