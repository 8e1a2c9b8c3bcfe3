"""Configuration data models."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


@dataclass
class QuotesConfig:
    """Quote source and ETF catalog configuration."""
    catalog_path: str
    base_url: str
    batch_size: int = 20
    max_retries: int = 3
    retry_delay_sec: float = 2.0
    timeout_sec: float = 15.0
    user_agent: str = "Mozilla/5.0"


@dataclass
class AumRefreshConfig:
    """AUM refresh job (Financial Modeling Prep) configuration."""
    base_url: str
    api_key: Optional[str] = None
    batch_size: int = 5
    batch_delay_sec: float = 1.2
    timeout_sec: float = 30.0


@dataclass
class NavigationConfig:
    """Navigation state machine and trigger timing."""
    default_dimension: str
    dimensions: List[str]
    search_debounce_ms: int = 250
    resize_debounce_ms: int = 250
    refresh_interval_sec: float = 3600.0
    load_retry_sec: float = 5.0


@dataclass
class LayoutConfig:
    """Treemap container size and padding."""
    width: float
    height: float
    padding_outer: float = 2.0
    padding_inner: float = 1.5
    padding_top: float = 18.0
    overview_style: str = "aggregate"  # "aggregate" or "grouped_cells"


@dataclass
class RenderConfig:
    """Renderer output configuration."""
    output_path: str
    title: str = "ETF Heatmap"
    dim_opacity: float = 0.2


@dataclass
class DisplayConfig:
    """Display timezone and formats."""
    timezone: str = "America/New_York"
    time_format: str = "%H:%M"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    dir: str
    console: bool = False
    timezone: str = "local"  # Timezone for log timestamps ("local" = system time)


@dataclass
class AppConfig:
    """Complete application configuration."""
    quotes: QuotesConfig
    aum_refresh: AumRefreshConfig
    navigation: NavigationConfig
    layout: LayoutConfig
    render: RenderConfig
    display: DisplayConfig
    logging: LoggingConfig
    raw: Dict[str, Any] = field(default_factory=dict)  # Raw merged config dict
