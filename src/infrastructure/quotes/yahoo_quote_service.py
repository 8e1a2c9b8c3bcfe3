"""
Yahoo Finance quote service.

Fetches last price and daily change for every catalog ticker from the
public spark endpoint (no API key):

    GET /v8/finance/spark?symbols=SPY,QQQ,...&range=1d&interval=1d

Response shape (per symbol):
    {"SPY": {"close": [..., 512.3], "chartPreviousClose": 508.1, ...}, ...}

An error response carries a top-level "spark" key and is skipped.

Rate limiting:
- Tickers are requested in batches of 20
- HTTP 429 backs off delay * (attempt + 1) and retries
- Transport errors retry after a fixed delay
- Any other status gives up on that batch
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import requests

from config.models import QuotesConfig
from src.domain.exceptions import CatalogError, QuoteFetchError
from src.domain.heatmap.instrument import Instrument
from src.utils.logging_setup import get_logger
from src.utils.timezone import age_seconds, now_utc

from .catalog import DEFAULT_DIMENSIONS, CatalogEntry, load_catalog

logger = get_logger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_spark_payload(payload: Any) -> Dict[str, Dict[str, float]]:
    """
    Extract quotes from one spark response.

    Returns:
        Dict of ticker -> {"price", "change", "change_pct"}. Symbols without
        a numeric close or previous close are left out.
    """
    if not isinstance(payload, dict) or "spark" in payload:
        return {}

    quotes: Dict[str, Dict[str, float]] = {}
    for symbol, data in payload.items():
        if not isinstance(data, dict):
            continue
        closes = data.get("close")
        if not isinstance(closes, list) or not closes:
            continue
        close = closes[-1]
        if not _is_number(close):
            continue

        prev_close = data.get("chartPreviousClose") or close
        if not _is_number(prev_close):
            continue
        change = close - prev_close
        change_pct = (change / prev_close) * 100 if prev_close > 0 else 0.0

        quotes[symbol] = {
            "price": float(close),
            "change": round(change, 2),
            "change_pct": round(change_pct, 2),
        }
    return quotes


def chunk(tickers: Sequence[str], size: int) -> List[List[str]]:
    """Split tickers into consecutive batches of at most `size`."""
    size = max(1, size)
    return [list(tickers[i:i + size]) for i in range(0, len(tickers), size)]


class YahooQuoteService:
    """
    Quote source backed by the Yahoo Finance spark endpoint.

    Keeps the last successful snapshot for stale-but-available rendering.
    """

    def __init__(
        self,
        config: QuotesConfig,
        dimensions: Sequence[str] = DEFAULT_DIMENSIONS,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the service and load the catalog.

        Args:
            config: Quote source configuration.
            dimensions: Grouping dimensions to read from the catalog.
            session: Optional requests session (tests inject a mock).

        Raises:
            CatalogError: If the catalog cannot be loaded.
        """
        self._config = config
        self._dimensions = tuple(dimensions)
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": config.user_agent})
        self._catalog: List[CatalogEntry] = load_catalog(config.catalog_path, self._dimensions)
        self._snapshot: Optional[List[Instrument]] = None
        self._fetched_at: Optional[datetime] = None

    @property
    def catalog(self) -> List[CatalogEntry]:
        return list(self._catalog)

    @property
    def fetched_at(self) -> Optional[datetime]:
        """UTC time of the last successful fetch."""
        return self._fetched_at

    @property
    def snapshot_age(self) -> float:
        """Seconds since the last successful fetch (inf if never)."""
        return age_seconds(self._fetched_at)

    def get_cached_snapshot(self) -> Optional[List[Instrument]]:
        if self._snapshot is None:
            return None
        return list(self._snapshot)

    def fetch_quotes(self) -> List[Instrument]:
        """
        Fetch quotes for the whole catalog and merge them onto it.

        Instruments without a quote are kept with price None.

        Raises:
            QuoteFetchError: If no batch returned any quote.
        """
        self._reload_catalog()
        tickers = [entry.ticker for entry in self._catalog]
        if not tickers:
            raise QuoteFetchError("Catalog is empty, nothing to fetch")

        quote_map: Dict[str, Dict[str, float]] = {}
        for batch in chunk(tickers, self._config.batch_size):
            payload = self._fetch_with_retry(batch)
            quote_map.update(parse_spark_payload(payload))

        if not quote_map:
            raise QuoteFetchError(f"No quotes returned for {len(tickers)} tickers")

        missing = len(tickers) - len(quote_map)
        if missing:
            logger.warning(f"No quote for {missing}/{len(tickers)} tickers")

        instruments = [entry.to_instrument(quote_map.get(entry.ticker)) for entry in self._catalog]
        self._snapshot = instruments
        self._fetched_at = now_utc()
        logger.info(f"Fetched {len(quote_map)} quotes for {len(tickers)} catalog entries")
        return list(instruments)

    def _reload_catalog(self) -> None:
        # Picks up AUM refreshes written since the last fetch
        try:
            self._catalog = load_catalog(self._config.catalog_path, self._dimensions)
        except CatalogError as e:
            logger.error(f"Catalog reload failed, using previous catalog: {e}")

    def _fetch_with_retry(self, batch: List[str]) -> Any:
        """
        GET one batch with retry.

        Returns:
            Parsed JSON payload, or {} when the batch could not be fetched.
        """
        params = {"symbols": ",".join(batch), "range": "1d", "interval": "1d"}
        retries = self._config.max_retries
        delay = self._config.retry_delay_sec

        for attempt in range(retries):
            try:
                resp = self._session.get(
                    self._config.base_url, params=params, timeout=self._config.timeout_sec
                )
            except requests.RequestException as e:
                logger.error(f"Fetch error (attempt {attempt + 1}/{retries}): {e}")
                if attempt < retries - 1:
                    time.sleep(delay)
                continue

            if resp.status_code == 429:
                backoff = delay * (attempt + 1)
                logger.warning(f"Yahoo rate limit hit, backing off {backoff:.1f}s")
                time.sleep(backoff)
                continue

            if not resp.ok:
                logger.error(f"Yahoo returned {resp.status_code} for {len(batch)} tickers")
                return {}

            try:
                return resp.json()
            except ValueError as e:
                logger.error(f"Invalid JSON from Yahoo: {e}")
                return {}

        logger.error(f"Giving up on batch of {len(batch)} tickers after {retries} attempts")
        return {}
