"""Quote data: ETF catalog, Yahoo quote service, FMP AUM refresh."""

from .aum_refresher import AumRefresher, AumRefreshResult
from .catalog import CatalogEntry, load_catalog, save_catalog
from .yahoo_quote_service import YahooQuoteService, parse_spark_payload

__all__ = [
    "AumRefresher",
    "AumRefreshResult",
    "CatalogEntry",
    "load_catalog",
    "save_catalog",
    "YahooQuoteService",
    "parse_spark_payload",
]
