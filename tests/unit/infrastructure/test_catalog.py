"""Tests for ETF catalog load/save."""

import json

import pytest

from src.domain.exceptions import CatalogError
from src.infrastructure.quotes.catalog import CatalogEntry, load_catalog, save_catalog


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "etf-catalog.json"
    path.write_text(json.dumps([
        {"ticker": "SPY", "name": "SPDR S&P 500", "brand": "SPDR", "strategy": "Equity", "aum": 5e11},
        {"ticker": "AGG", "name": "iShares Core Agg", "brand": "iShares", "strategy": "Bond"},
    ]))
    return path


class TestLoadCatalog:
    """Reading the catalog."""

    def test_loads_entries_in_order(self, catalog_file):
        entries = load_catalog(catalog_file)
        assert [e.ticker for e in entries] == ["SPY", "AGG"]
        assert entries[0].dimensions == {"strategy": "Equity", "brand": "SPDR"}
        assert entries[0].aum == 5e11
        assert entries[1].aum == 0.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="not found"):
            load_catalog(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "obj.json"
        path.write_text('{"ticker": "SPY"}')
        with pytest.raises(CatalogError, match="JSON array"):
            load_catalog(path)

    def test_entry_without_ticker(self, tmp_path):
        path = tmp_path / "noticker.json"
        path.write_text('[{"name": "Anonymous"}]')
        with pytest.raises(CatalogError, match="without ticker"):
            load_catalog(path)


class TestCatalogEntry:
    """Entry conversions."""

    def test_to_instrument_with_quote(self):
        entry = CatalogEntry(ticker="SPY", name="SPDR", dimensions={"brand": "SPDR"}, aum=10.0)
        inst = entry.to_instrument({"price": 500.0, "change": 2.5, "change_pct": 0.5})
        assert inst.price == 500.0
        assert inst.change_pct == 0.5
        assert inst.aum == 10.0
        assert inst.group_key("brand") == "SPDR"

    def test_to_instrument_without_quote(self):
        inst = CatalogEntry(ticker="X", name="X", aum=10.0).to_instrument(None)
        assert inst.price is None
        assert inst.change_pct == 0.0
        assert inst.volume == 0.0
        assert inst.is_renderable()


class TestSaveCatalog:
    """Writing the catalog back."""

    def test_round_trip_keeps_updated_aum(self, catalog_file):
        entries = load_catalog(catalog_file)
        entries[1].aum = 1.2e11
        save_catalog(catalog_file, entries)

        reloaded = load_catalog(catalog_file)
        assert reloaded[1].aum == 1.2e11
        assert json.loads(catalog_file.read_text())[0]["brand"] == "SPDR"

    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "nested" / "catalog.json"
        save_catalog(path, [CatalogEntry(ticker="A", name="A")])
        assert load_catalog(path)[0].ticker == "A"
