# ==============================================================================
# GeoIP Resolver Implementation
# ==============================================================================
"""
Offline IP geolocation backed by a local MaxMind City database (geoip2).

Lookups never leave the machine and never raise: addresses missing from the
database (or not parseable as IPs) resolve to the "Unknown" location and any
other failure to the "Error" location.
"""

import logging
from pathlib import Path

import geoip2.database
import geoip2.errors

from sitepulse.base.geo import GeoResolver
from sitepulse.core.models import GeoLocation
from sitepulse.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class GeoIP2Resolver(GeoResolver):
    """GeoResolver reading a MaxMind GeoLite2/GeoIP2 City database."""

    def __init__(self, db_path: Path | None = None, reader: geoip2.database.Reader | None = None):
        """
        Initialize the resolver.

        Args:
            db_path: Path to the .mmdb file. If None, uses settings.
            reader: Preconfigured reader (the database is then not opened here)
        """
        self._db_path = db_path or get_settings().geoip.db_file_path
        self._reader = reader

    @property
    def reader(self) -> geoip2.database.Reader:
        """Open the database on first use."""
        if self._reader is None:
            self._reader = geoip2.database.Reader(str(self._db_path))
        return self._reader

    def resolve(self, ip: str) -> GeoLocation:
        if not ip:
            return GeoLocation.unknown()
        try:
            response = self.reader.city(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return GeoLocation.unknown()
        except Exception:
            logger.exception("GeoIP lookup failed for %s", ip)
            return GeoLocation.error()

        location = response.location
        return GeoLocation(
            country=response.country.iso_code or response.registered_country.iso_code,
            region=response.subdivisions.most_specific.iso_code,
            city=response.city.name,
            timezone=location.time_zone,
            coordinates=[location.latitude or 0.0, location.longitude or 0.0],
        )

    def close(self) -> None:
        """Close the database reader."""
        if self._reader is not None:
            self._reader.close()
            self._reader = None


class NullGeoResolver(GeoResolver):
    """GeoResolver used when no database is available: everything is unknown."""

    def resolve(self, ip: str) -> GeoLocation:
        return GeoLocation.unknown()


def get_geo_resolver(settings: Settings | None = None) -> GeoResolver:
    """
    Get a GeoResolver configured from settings.

    Falls back to NullGeoResolver when the database file is missing.
    """
    db_path = (settings or get_settings()).geoip.db_file_path
    if not db_path.exists():
        logger.warning("GeoIP database not found at %s, locations will be unknown", db_path)
        return NullGeoResolver()
    return GeoIP2Resolver(db_path)
