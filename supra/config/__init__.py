"""Configuration and logging setup."""

from supra.config.logging import configure_logging
from supra.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
]
