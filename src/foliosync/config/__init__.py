"""FolioSync Configuration Module

Unified access to configuration models and settings management:
- Settings: Main configuration facade
- Loader functions: get_config, load_settings, reload_config, update_and_save_config
- Domain models: App, Logging, API and Cache settings
"""

from __future__ import annotations

from .loader import (
    get_config,
    load_settings,
    reload_config,
    reset_config,
    update_and_save_config,
)
from .models import (
    APISettings,
    AppSettings,
    CacheSettings,
    LoggingSettings,
    Settings,
)

__all__ = [
    "APISettings",
    "AppSettings",
    "CacheSettings",
    "LoggingSettings",
    "Settings",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
    "update_and_save_config",
]
