"""Application services."""

from sitepulse.services.analytics import AnalyticsService, create_service

__all__ = [
    "AnalyticsService",
    "create_service",
]
