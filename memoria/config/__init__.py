"""Configuration loading for memoria.

Configuration is loaded from TOML files with environment variable overrides.

Usage:
    from memoria.config import get_settings

    settings = get_settings()
    window = settings.memory.short_term.window
"""

from functools import lru_cache

from memoria.config.loader import load_config
from memoria.config.settings import Settings, build_settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the singleton settings instance.

    The result is cached for the lifetime of the process.
    Call `reload_settings()` to pick up changed files or env vars.

    Raises:
        ConfigError: If a config file is missing or a value is invalid
    """
    set_toml_config(load_config())
    return build_settings()


def reload_settings() -> Settings:
    """Clear the settings cache and reload configuration."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "build_settings", "get_settings", "reload_settings"]
