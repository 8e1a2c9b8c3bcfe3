"""
Configuration manager with environment-based loading.

Supports:
- Base configuration (base.yaml)
- Environment-specific overrides (dev.yaml, prod.yaml)
- Secrets loading (secrets.yaml - gitignored, e.g. the FMP API key)
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any
import logging

import yaml

from src.domain.exceptions import ConfigurationError

from .models import (
    AppConfig,
    AumRefreshConfig,
    DisplayConfig,
    LayoutConfig,
    LoggingConfig,
    NavigationConfig,
    QuotesConfig,
    RenderConfig,
)


logger = logging.getLogger(__name__)

OVERVIEW_STYLES = ("aggregate", "grouped_cells")


class ConfigManager:
    """
    Configuration manager with environment support.

    Loads configuration in this order:
    1. base.yaml (default config)
    2. {env}.yaml (environment-specific, e.g., dev.yaml)
    3. secrets.yaml (if exists, gitignored)

    Later configs override earlier ones.
    """

    def __init__(self, config_dir: str | Path = "config", env: str = "dev"):
        """
        Initialize config manager.

        Args:
            config_dir: Directory containing config files.
            env: Environment name (dev, prod, etc).
        """
        self.config_dir = Path(config_dir)
        self.env = env
        self.config: Dict[str, Any] = {}

    def load(self) -> AppConfig:
        """
        Load configuration from YAML files.

        Returns:
            AppConfig object.

        Raises:
            ConfigurationError: If base config is missing or invalid.
        """
        base_path = self.config_dir / "base.yaml"
        if not base_path.exists():
            raise ConfigurationError(f"Base config not found: {base_path}")

        self.config = self._load_yaml(base_path)
        logger.info(f"Loaded base config from {base_path}")

        env_path = self.config_dir / f"{self.env}.yaml"
        if env_path.exists():
            env_config = self._load_yaml(env_path)
            self.config = self._merge_dicts(self.config, env_config)
            logger.info(f"Loaded {self.env} config from {env_path}")

        secrets_path = self.config_dir / "secrets.yaml"
        if secrets_path.exists():
            secrets = self._load_yaml(secrets_path)
            self.config = self._merge_dicts(self.config, secrets)
            logger.info("Loaded secrets")

        return self._parse_config()

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML file."""
        try:
            with open(path, "r") as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    def _merge_dicts(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _parse_config(self) -> AppConfig:
        """Parse raw dict into AppConfig."""
        try:
            quotes_raw = self.config.get("quotes", {})
            quotes = QuotesConfig(
                catalog_path=quotes_raw.get("catalog_path", "data/etf-catalog.json"),
                base_url=quotes_raw.get(
                    "base_url", "https://query1.finance.yahoo.com/v8/finance/spark"
                ),
                batch_size=int(quotes_raw.get("batch_size", 20)),
                max_retries=int(quotes_raw.get("max_retries", 3)),
                retry_delay_sec=float(quotes_raw.get("retry_delay_sec", 2.0)),
                timeout_sec=float(quotes_raw.get("timeout_sec", 15.0)),
                user_agent=quotes_raw.get("user_agent", "Mozilla/5.0"),
            )

            # API key lives in secrets.yaml under fmp.api_key
            aum_raw = self.config.get("aum_refresh", {})
            fmp_raw = self.config.get("fmp", {})
            aum_refresh = AumRefreshConfig(
                base_url=aum_raw.get("base_url", "https://financialmodelingprep.com/api/v3"),
                api_key=aum_raw.get("api_key") or fmp_raw.get("api_key"),
                batch_size=int(aum_raw.get("batch_size", 5)),
                batch_delay_sec=float(aum_raw.get("batch_delay_sec", 1.2)),
                timeout_sec=float(aum_raw.get("timeout_sec", 30.0)),
            )

            nav_raw = self.config.get("navigation", {})
            dimensions = list(nav_raw.get("dimensions", ["strategy", "brand"]))
            navigation = NavigationConfig(
                default_dimension=nav_raw.get("default_dimension", dimensions[0] if dimensions else "strategy"),
                dimensions=dimensions,
                search_debounce_ms=int(nav_raw.get("search_debounce_ms", 250)),
                resize_debounce_ms=int(nav_raw.get("resize_debounce_ms", 250)),
                refresh_interval_sec=float(nav_raw.get("refresh_interval_sec", 3600)),
                load_retry_sec=float(nav_raw.get("load_retry_sec", 5)),
            )

            layout_raw = self.config.get("layout", {})
            layout = LayoutConfig(
                width=float(layout_raw.get("width", 1280)),
                height=float(layout_raw.get("height", 720)),
                padding_outer=float(layout_raw.get("padding_outer", 2.0)),
                padding_inner=float(layout_raw.get("padding_inner", 1.5)),
                padding_top=float(layout_raw.get("padding_top", 18.0)),
                overview_style=layout_raw.get("overview_style", "aggregate"),
            )

            render_raw = self.config.get("render", {})
            render = RenderConfig(
                output_path=render_raw.get("output_path", "output/heatmap.html"),
                title=render_raw.get("title", "ETF Heatmap"),
                dim_opacity=float(render_raw.get("dim_opacity", 0.2)),
            )

            display_raw = self.config.get("display", {})
            display = DisplayConfig(
                timezone=display_raw.get("timezone", "America/New_York"),
                time_format=display_raw.get("time_format", "%H:%M"),
            )

            logging_raw = self.config.get("logging", {})
            logging_config = LoggingConfig(
                level=logging_raw.get("level", "INFO"),
                dir=logging_raw.get("dir", "./logs"),
                console=bool(logging_raw.get("console", False)),
                timezone=logging_raw.get("timezone", "local"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

        self._validate(navigation, layout, render)

        return AppConfig(
            quotes=quotes,
            aum_refresh=aum_refresh,
            navigation=navigation,
            layout=layout,
            render=render,
            display=display,
            logging=logging_config,
            raw=self.config,
        )

    def _validate(
        self,
        navigation: NavigationConfig,
        layout: LayoutConfig,
        render: RenderConfig,
    ) -> None:
        """Reject values the heatmap cannot run with."""
        if not navigation.dimensions:
            raise ConfigurationError("navigation.dimensions must list at least one dimension")
        if navigation.default_dimension not in navigation.dimensions:
            raise ConfigurationError(
                f"navigation.default_dimension '{navigation.default_dimension}' "
                f"not in dimensions {navigation.dimensions}"
            )
        if layout.overview_style not in OVERVIEW_STYLES:
            raise ConfigurationError(
                f"layout.overview_style must be one of {OVERVIEW_STYLES}, got '{layout.overview_style}'"
            )
        if min(layout.padding_outer, layout.padding_inner, layout.padding_top) < 0:
            raise ConfigurationError("layout padding values must be non-negative")
        if not 0.0 <= render.dim_opacity <= 1.0:
            raise ConfigurationError("render.dim_opacity must be within [0, 1]")
        if navigation.refresh_interval_sec <= 0 or navigation.load_retry_sec <= 0:
            raise ConfigurationError("navigation refresh/retry intervals must be positive")
