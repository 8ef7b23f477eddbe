# ==============================================================================
# SitePulse Utilities
# ==============================================================================
"""
Shared utilities for the analytics service.

This module exports configuration helpers for use throughout the package.
"""

from sitepulse.utils.config import (
    GeoIPSettings,
    ReportSettings,
    ServerSettings,
    SessionSettings,
    Settings,
    StoreSettings,
    ValkeySettings,
    get_settings,
)
from sitepulse.utils.paths import get_project_root

__all__ = [
    # Config
    "GeoIPSettings",
    "ReportSettings",
    "ServerSettings",
    "SessionSettings",
    "Settings",
    "StoreSettings",
    "ValkeySettings",
    "get_settings",
    # Paths
    "get_project_root",
]
