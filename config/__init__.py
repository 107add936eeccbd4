"""
Configuration module for ivfdb.

This module provides configuration management including
loading settings from YAML files and environment variables.

Example:
    >>> from config import Settings, load_config
    >>>
    >>> # Load default config
    >>> settings = load_config()
    >>>
    >>> # Access settings
    >>> print(settings.dimension)
    >>> print(settings.index.n_lists)
"""

from .settings import (
    Settings,
    IndexSettings,
    WALSettings,
    load_config,
    get_default_config_path,
    ENV_CONFIG_PATH,
)

__all__ = [
    "Settings",
    "IndexSettings",
    "WALSettings",
    "load_config",
    "get_default_config_path",
    "ENV_CONFIG_PATH",
]
