"""
Configuration management for Backend ShadowStack.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for all service configuration.
"""

from backend_shadowstack.config.settings import (  # noqa: F401
    Settings,
    get_settings,
    load_settings,
    reset_settings_cache,
)

__all__ = ["Settings", "get_settings", "load_settings", "reset_settings_cache"]
