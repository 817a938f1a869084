"""
==============================================================================
Configuration Package
==============================================================================

Centralized configuration management using Pydantic Settings.

Usage:
------
    from halalscan.config import get_settings, Settings

    settings = get_settings()
    print(settings.api_base_url)
    print(settings.request_timeout_ms)

==============================================================================
"""

from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
