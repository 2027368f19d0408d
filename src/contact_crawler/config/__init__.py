"""
Configuration module for the contact crawler.

Provides Pydantic-based settings management with YAML file support
and environment variable overrides.
"""

from contact_crawler.config.settings import (
    Settings,
    CrawlOptions,
    ResourceBlockFlags,
    BrowserSettings,
    RobotsSettings,
    BatchSettings,
    LoggingSettings,
    DEFAULT_USER_AGENT,
    FAST_PRESET,
)
from contact_crawler.config.loader import (
    load_config,
    get_settings,
    reset_settings,
    get_default_config_path,
)

__all__ = [
    "Settings",
    "CrawlOptions",
    "ResourceBlockFlags",
    "BrowserSettings",
    "RobotsSettings",
    "BatchSettings",
    "LoggingSettings",
    "DEFAULT_USER_AGENT",
    "FAST_PRESET",
    "load_config",
    "get_settings",
    "reset_settings",
    "get_default_config_path",
]
