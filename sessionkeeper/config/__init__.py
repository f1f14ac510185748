# Configuration module for sessionkeeper
from .settings import (
    ConfigurationError,
    Environment,
    StoreSettings,
    clear_settings_cache,
    create_settings,
    get_settings,
)

__all__ = [
    "ConfigurationError",
    "Environment",
    "StoreSettings",
    "clear_settings_cache",
    "create_settings",
    "get_settings",
]
