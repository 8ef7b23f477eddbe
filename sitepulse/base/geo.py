# ==============================================================================
# Geo Resolver Abstract Base Class
# ==============================================================================
"""
Abstract interface for IP geolocation.

Implementations must answer locally (no network calls) and must never raise:
a miss yields the "Unknown" location and a failed lookup the "Error" one.
"""

from abc import ABC, abstractmethod

from sitepulse.core.models import GeoLocation


class GeoResolver(ABC):
    """Maps an IP address to a geographic location."""

    @abstractmethod
    def resolve(self, ip: str) -> GeoLocation:
        """
        Look up an IP address.

        Args:
            ip: IPv4 or IPv6 address as sent by the client

        Returns:
            Resolved location, or a sentinel location on miss or failure
        """
        ...
