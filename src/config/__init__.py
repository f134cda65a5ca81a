"""
API Relay Gateway Configuration Module
Centralized configuration management using pydantic-settings.
"""

from src.config.settings import (
    DEFAULT_EXACT_ROUTES,
    DEFAULT_ROUTES,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "DEFAULT_EXACT_ROUTES",
    "DEFAULT_ROUTES",
    "Settings",
    "get_settings",
    "reload_settings",
]
