"""FMP AUM refresher.

Updates the `aum` field of every catalog entry from Financial Modeling Prep
company profiles and writes the catalog back to disk. Meant to run
manually or weekly (`python main.py refresh-aum`).

Endpoint:
- /api/v3/profile/{ticker} → [{"mktCap": ...}]; mktCap is used as AUM

Rate limiting:
- 5 tickers fetched concurrently per batch
- 1.2s pause between batches (~50 requests/min)
"""

from __future__ import annotations

import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import requests

from config.models import AumRefreshConfig
from src.domain.exceptions import ConfigurationError
from src.utils.logging_setup import get_logger
from src.utils.perf_logger import log_timing

from .catalog import DEFAULT_DIMENSIONS, load_catalog, save_catalog
from .yahoo_quote_service import chunk

logger = get_logger(__name__)


def _load_fmp_key(config_key: Optional[str] = None) -> str:
    """Load FMP API key from env var, falling back to config (secrets.yaml)."""
    key = os.environ.get("FMP_API_KEY", "")
    if key:
        return key
    return config_key or ""


@dataclass
class AumRefreshResult:
    """Outcome of one refresh run."""

    total: int
    updated: int
    failed: int

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "updated": self.updated, "failed": self.failed}


class AumRefresher:
    """FMP-backed AUM updater for the ETF catalog."""

    def __init__(
        self,
        config: AumRefreshConfig,
        catalog_path: str | Path,
        dimensions: Sequence[str] = DEFAULT_DIMENSIONS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._catalog_path = Path(catalog_path)
        self._dimensions = tuple(dimensions)
        self._api_key = _load_fmp_key(config.api_key)
        if not self._api_key:
            raise ConfigurationError(
                "FMP API key required. Set FMP_API_KEY env var or add fmp.api_key to config/secrets.yaml"
            )
        self._session = session or requests.Session()

    def fetch_market_cap(self, ticker: str) -> Optional[float]:
        """Fetch mktCap for one ticker. None on any failure."""
        url = f"{self._config.base_url}/profile/{ticker}"
        try:
            resp = self._session.get(
                url, params={"apikey": self._api_key}, timeout=self._config.timeout_sec
            )
            if not resp.ok:
                logger.debug(f"FMP returned {resp.status_code} for {ticker}")
                return None
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"FMP request failed for {ticker}: {e}")
            return None

        if isinstance(data, list) and data and isinstance(data[0], dict):
            return float(data[0].get("mktCap") or 0)
        return None

    def refresh(self) -> AumRefreshResult:
        """
        Refresh AUM for every catalog entry and save the catalog.

        Entries whose profile is missing or reports no market cap keep
        their previous AUM.

        Raises:
            CatalogError: If the catalog cannot be read or written.
        """
        entries = load_catalog(self._catalog_path, self._dimensions)
        total = len(entries)
        logger.info(f"Refreshing AUM for {total} ETFs...")

        updated = 0
        failed = 0
        batches = chunk(entries, self._config.batch_size)
        with log_timing("aum_refresh", extra={"tickers": total}), \
                ThreadPoolExecutor(max_workers=max(1, self._config.batch_size)) as executor:
            for index, batch in enumerate(batches):
                caps = list(executor.map(self.fetch_market_cap, [e.ticker for e in batch]))
                for entry, cap in zip(batch, caps):
                    if cap and cap > 0:
                        entry.aum = cap
                        updated += 1
                    else:
                        failed += 1

                progress = min((index + 1) * self._config.batch_size, total)
                logger.info(f"Progress: {progress}/{total} ({updated} updated, {failed} failed)")

                if index < len(batches) - 1:
                    time.sleep(self._config.batch_delay_sec)

        save_catalog(self._catalog_path, entries)
        logger.info(f"Updated {updated}/{total} ETFs, {failed} failed")
        return AumRefreshResult(total=total, updated=updated, failed=failed)
