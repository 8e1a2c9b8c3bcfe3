"""
Tests for YahooQuoteService.

Verifies:
- Spark payload parsing (last close, previous close fallback, rounding)
- Error payloads and non-numeric values are skipped
- Batching of tickers
- Retry with backoff on HTTP 429 and transport errors
- QuoteFetchError when nothing is fetched; cached snapshot untouched
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from config.models import QuotesConfig
from src.domain.exceptions import CatalogError, QuoteFetchError
from src.infrastructure.quotes.yahoo_quote_service import (
    YahooQuoteService,
    chunk,
    parse_spark_payload,
)

SLEEP = "src.infrastructure.quotes.yahoo_quote_service.time.sleep"


def _response(status: int = 200, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.json.return_value = payload if payload is not None else {}
    return resp


def _spark(**closes):
    return {
        ticker: {"close": [prev, last], "chartPreviousClose": prev}
        for ticker, (prev, last) in closes.items()
    }


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "etf-catalog.json"
    path.write_text(json.dumps([
        {"ticker": "SPY", "name": "SPDR S&P 500", "brand": "SPDR", "strategy": "Equity", "aum": 500},
        {"ticker": "QQQ", "name": "Invesco QQQ", "brand": "Invesco", "strategy": "Growth", "aum": 300},
        {"ticker": "AGG", "name": "iShares Agg", "brand": "iShares", "strategy": "Bond", "aum": 100},
    ]))
    return path


@pytest.fixture
def config(catalog_path) -> QuotesConfig:
    return QuotesConfig(
        catalog_path=str(catalog_path),
        base_url="https://example.test/spark",
        batch_size=2,
        max_retries=3,
        retry_delay_sec=2.0,
    )


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


class TestParseSpark:
    """Payload parsing."""

    def test_last_close_and_change(self):
        quotes = parse_spark_payload({"SPY": {"close": [500.0, 505.0], "chartPreviousClose": 500.0}})
        assert quotes["SPY"] == {"price": 505.0, "change": 5.0, "change_pct": 1.0}

    def test_rounding(self):
        quotes = parse_spark_payload({"X": {"close": [10.0, 10.0], "chartPreviousClose": 3.0}})
        assert quotes["X"]["change"] == 7.0
        assert quotes["X"]["change_pct"] == 233.33

    def test_previous_close_falls_back_to_close(self):
        quotes = parse_spark_payload({"X": {"close": [10.0]}})
        assert quotes["X"]["change"] == 0.0
        assert quotes["X"]["change_pct"] == 0.0

    def test_error_payload_skipped(self):
        assert parse_spark_payload({"spark": {"error": "bad symbols"}}) == {}

    def test_symbols_without_closes_skipped(self):
        quotes = parse_spark_payload({"A": {"close": []}, "B": None, "C": {"close": [None]}})
        assert quotes == {}

    def test_non_numeric_values_skipped(self):
        quotes = parse_spark_payload({
            "A": {"close": ["12.5"], "chartPreviousClose": 12.0},
            "B": {"close": [10.0], "chartPreviousClose": "9.5"},
            "C": {"close": [True]},
            "D": {"close": [10.0], "chartPreviousClose": 8.0},
        })
        assert list(quotes) == ["D"]
        assert quotes["D"]["change_pct"] == 25.0

    def test_chunk(self):
        assert chunk(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]


class TestFetchQuotes:
    """End-to-end fetch with a mocked session."""

    def test_batches_and_merges(self, config, session):
        session.get.side_effect = [
            _response(payload=_spark(SPY=(500.0, 510.0), QQQ=(400.0, 396.0))),
            _response(payload=_spark(AGG=(100.0, 100.0))),
        ]
        service = YahooQuoteService(config, dimensions=["brand", "strategy"], session=session)

        instruments = service.fetch_quotes()

        assert session.get.call_count == 2
        first_params = session.get.call_args_list[0].kwargs["params"]
        assert first_params == {"symbols": "SPY,QQQ", "range": "1d", "interval": "1d"}
        by_ticker = {i.ticker: i for i in instruments}
        assert by_ticker["SPY"].change_pct == 2.0
        assert by_ticker["QQQ"].change_pct == -1.0
        assert by_ticker["AGG"].group_key("brand") == "iShares"
        assert by_ticker["SPY"].volume == 0.0

    def test_missing_quote_kept_without_price(self, config, session):
        session.get.side_effect = [
            _response(payload=_spark(SPY=(500.0, 510.0))),
            _response(payload={"spark": {"error": "x"}}),
        ]
        service = YahooQuoteService(config, session=session)
        by_ticker = {i.ticker: i for i in service.fetch_quotes()}
        assert by_ticker["AGG"].price is None
        assert by_ticker["AGG"].aum == 100

    @patch(SLEEP)
    def test_retries_on_429_with_backoff(self, mock_sleep, config, session):
        session.get.side_effect = [
            _response(429),
            _response(429),
            _response(payload=_spark(SPY=(1.0, 1.0))),
            _response(payload=_spark(AGG=(1.0, 1.0))),
        ]
        service = YahooQuoteService(config, session=session)
        service.fetch_quotes()

        assert session.get.call_count == 4
        assert [c.args[0] for c in mock_sleep.call_args_list] == [2.0, 4.0]

    @patch(SLEEP)
    def test_transport_error_retries(self, mock_sleep, config, session):
        session.get.side_effect = [
            requests.ConnectionError("reset"),
            _response(payload=_spark(SPY=(1.0, 1.0))),
            _response(payload=_spark(AGG=(1.0, 1.0))),
        ]
        service = YahooQuoteService(config, session=session)
        service.fetch_quotes()
        mock_sleep.assert_called_once_with(2.0)

    @patch(SLEEP)
    def test_nothing_fetched_raises_and_keeps_snapshot(self, mock_sleep, config, session):
        session.get.side_effect = [
            _response(payload=_spark(SPY=(1.0, 2.0))),
            _response(payload=_spark(AGG=(1.0, 1.0))),
        ]
        service = YahooQuoteService(config, session=session)
        first = service.fetch_quotes()
        fetched_at = service.fetched_at

        session.get.side_effect = None
        session.get.return_value = _response(429)
        with pytest.raises(QuoteFetchError):
            service.fetch_quotes()

        snapshot = service.get_cached_snapshot()
        assert [i.ticker for i in snapshot] == [i.ticker for i in first]
        assert snapshot[0].price == 2.0
        assert service.fetched_at == fetched_at

    def test_non_retryable_status_gives_up_on_batch(self, config, session):
        session.get.return_value = _response(500)
        service = YahooQuoteService(config, session=session)
        with pytest.raises(QuoteFetchError):
            service.fetch_quotes()
        assert session.get.call_count == 2
        assert service.get_cached_snapshot() is None
        assert service.snapshot_age == float("inf")

    def test_missing_catalog_is_fatal(self, tmp_path, session):
        config = QuotesConfig(catalog_path=str(tmp_path / "none.json"), base_url="x")
        with pytest.raises(CatalogError):
            YahooQuoteService(config, session=session)
