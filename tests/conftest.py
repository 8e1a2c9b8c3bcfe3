"""Pytest configuration and fixtures."""

from typing import List

import pytest

from src.domain.heatmap.instrument import Instrument
from src.domain.heatmap.layout import Rect


def make_instrument(
    ticker: str,
    brand: str = "BrandX",
    strategy: str = "Equity",
    aum: float = 100.0,
    price: float = 10.0,
    change_pct: float = 0.0,
    name: str = "",
    volume: float = 0.0,
) -> Instrument:
    """Build an instrument with brand/strategy dimensions."""
    return Instrument(
        ticker=ticker,
        name=name or f"{ticker} Fund",
        dimensions={"brand": brand, "strategy": strategy},
        price=price,
        change_pct=change_pct,
        aum=aum,
        volume=volume,
    )


@pytest.fixture
def sample_instruments() -> List[Instrument]:
    """
    Five instruments in two brands and two strategies.

    BrandX: AAA (300), BBB (200)      -> total 500
    BrandY: CCC (250), DDD (150), EEE (100) -> total 500 (ties keep order)
    """
    return [
        make_instrument("AAA", brand="BrandX", strategy="Equity", aum=300.0, change_pct=1.5,
                        name="Alpha Equity Fund"),
        make_instrument("BBB", brand="BrandX", strategy="Bond", aum=200.0, change_pct=-0.8,
                        name="Beta Bond Fund"),
        make_instrument("CCC", brand="BrandY", strategy="Equity", aum=250.0, change_pct=3.0,
                        name="Gamma Growth Fund"),
        make_instrument("DDD", brand="BrandY", strategy="Bond", aum=150.0, change_pct=-2.5,
                        name="Delta Treasury Fund"),
        make_instrument("EEE", brand="BrandY", strategy="Equity", aum=100.0, change_pct=0.0,
                        name="Epsilon Dividend Fund"),
    ]


@pytest.fixture
def bounds() -> Rect:
    """Standard 800x600 container."""
    return Rect.from_size(800, 600)


@pytest.fixture
def instrument_factory():
    """Factory for ad-hoc instruments (see make_instrument)."""
    return make_instrument
