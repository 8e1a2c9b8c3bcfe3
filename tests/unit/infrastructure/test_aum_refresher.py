"""
Tests for AumRefresher.

Verifies:
- API key resolution (env var first, then config)
- mktCap parsing and failure handling
- Catalog AUM update, batching pauses and write-back
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from config.models import AumRefreshConfig
from src.domain.exceptions import ConfigurationError
from src.infrastructure.quotes.aum_refresher import AumRefresher, _load_fmp_key

SLEEP = "src.infrastructure.quotes.aum_refresher.time.sleep"


def _profile(cap) -> MagicMock:
    resp = MagicMock()
    resp.ok = True
    resp.status_code = 200
    resp.json.return_value = [{"symbol": "X", "mktCap": cap}]
    return resp


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "etf-catalog.json"
    path.write_text(json.dumps([
        {"ticker": "SPY", "name": "SPDR S&P 500", "brand": "SPDR", "strategy": "Equity", "aum": 1},
        {"ticker": "QQQ", "name": "Invesco QQQ", "brand": "Invesco", "strategy": "Growth", "aum": 2},
        {"ticker": "AGG", "name": "iShares Agg", "brand": "iShares", "strategy": "Bond", "aum": 3},
    ]))
    return path


@pytest.fixture
def config() -> AumRefreshConfig:
    return AumRefreshConfig(
        base_url="https://fmp.test/api/v3",
        api_key="config-key",
        batch_size=2,
        batch_delay_sec=1.2,
    )


@pytest.fixture(autouse=True)
def _no_env_key(monkeypatch):
    monkeypatch.delenv("FMP_API_KEY", raising=False)


class TestApiKey:
    def test_env_var_wins(self, monkeypatch):
        monkeypatch.setenv("FMP_API_KEY", "env-key")
        assert _load_fmp_key("config-key") == "env-key"

    def test_config_fallback(self):
        assert _load_fmp_key("config-key") == "config-key"
        assert _load_fmp_key(None) == ""

    def test_missing_key_is_configuration_error(self, catalog_path):
        config = AumRefreshConfig(base_url="https://fmp.test", api_key=None)
        with pytest.raises(ConfigurationError, match="FMP_API_KEY"):
            AumRefresher(config, catalog_path, session=MagicMock())


class TestFetchMarketCap:
    def test_returns_mktcap(self, config, catalog_path):
        session = MagicMock()
        session.get.return_value = _profile(5.5e11)
        refresher = AumRefresher(config, catalog_path, session=session)

        assert refresher.fetch_market_cap("SPY") == 5.5e11
        args, kwargs = session.get.call_args
        assert args[0] == "https://fmp.test/api/v3/profile/SPY"
        assert kwargs["params"] == {"apikey": "config-key"}

    def test_http_error_returns_none(self, config, catalog_path):
        session = MagicMock()
        session.get.return_value = MagicMock(ok=False, status_code=403)
        refresher = AumRefresher(config, catalog_path, session=session)
        assert refresher.fetch_market_cap("SPY") is None

    def test_transport_error_returns_none(self, config, catalog_path):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("slow")
        refresher = AumRefresher(config, catalog_path, session=session)
        assert refresher.fetch_market_cap("SPY") is None

    def test_empty_profile_returns_none(self, config, catalog_path):
        session = MagicMock()
        resp = _profile(0)
        resp.json.return_value = []
        session.get.return_value = resp
        refresher = AumRefresher(config, catalog_path, session=session)
        assert refresher.fetch_market_cap("SPY") is None


class TestRefresh:
    @patch(SLEEP)
    def test_updates_and_saves_catalog(self, mock_sleep, config, catalog_path):
        caps = {"SPY": 5e11, "QQQ": 2e11, "AGG": 0}
        session = MagicMock()
        session.get.side_effect = lambda url, **kw: _profile(caps[url.rsplit("/", 1)[-1]])
        refresher = AumRefresher(config, catalog_path, session=session)

        result = refresher.refresh()

        assert result.to_dict() == {"total": 3, "updated": 2, "failed": 1}
        saved = {item["ticker"]: item for item in json.loads(catalog_path.read_text())}
        assert saved["SPY"]["aum"] == 5e11
        assert saved["QQQ"]["aum"] == 2e11
        # No market cap keeps the previous AUM
        assert saved["AGG"]["aum"] == 3
        assert saved["SPY"]["brand"] == "SPDR"

    @patch(SLEEP)
    def test_pauses_between_batches_only(self, mock_sleep, config, catalog_path):
        session = MagicMock()
        session.get.return_value = _profile(1e9)
        AumRefresher(config, catalog_path, session=session).refresh()

        # 3 tickers in batches of 2: one pause
        mock_sleep.assert_called_once_with(1.2)
        assert session.get.call_count == 3
