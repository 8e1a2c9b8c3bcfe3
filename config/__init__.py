"""Configuration management."""

from .config_manager import ConfigManager
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

__all__ = [
    "ConfigManager",
    "AppConfig",
    "AumRefreshConfig",
    "DisplayConfig",
    "LayoutConfig",
    "LoggingConfig",
    "NavigationConfig",
    "QuotesConfig",
    "RenderConfig",
]
