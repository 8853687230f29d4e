"""Configuration models and loaders."""

from .config import (
    Config,
    ExtractionSettings,
    FetcherConfig,
    MonitoringConfig,
    WebConfig,
    find_config_file,
    load_config,
    settings,
)

__all__ = [
    "Config",
    "ExtractionSettings",
    "FetcherConfig",
    "MonitoringConfig",
    "WebConfig",
    "find_config_file",
    "load_config",
    "settings",
]
