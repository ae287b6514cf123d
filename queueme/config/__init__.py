"""
Configuration package.

Exports the singleton settings instance for easy importing.

Usage:
    from queueme.config import settings

    print(settings.database_url)
"""

from queueme.config.settings import Settings, settings, get_settings
from queueme.config.logging import setup_logging

__all__ = [
    "Settings",
    "settings",
    "get_settings",
    "setup_logging",
]
