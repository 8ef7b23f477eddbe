# ==============================================================================
# Tests for the GeoIP Resolver
# ==============================================================================
"""
Tests for the geoip2-backed resolver with a mocked database reader.
"""

from unittest.mock import MagicMock

import geoip2.errors
import pytest

from sitepulse.core.models import GeoLocation
from sitepulse.infrastructure.geo import GeoIP2Resolver, NullGeoResolver, get_geo_resolver
from sitepulse.utils.config import GeoIPSettings, Settings


def _city_response(country="BR", region="SP", city="São Paulo", tz="America/Sao_Paulo"):
    response = MagicMock()
    response.country.iso_code = country
    response.registered_country.iso_code = "PT"
    response.subdivisions.most_specific.iso_code = region
    response.city.name = city
    response.location.time_zone = tz
    response.location.latitude = -23.5
    response.location.longitude = -46.6
    return response


@pytest.fixture()
def reader():
    return MagicMock()


class TestGeoIP2Resolver:
    """Tests for mapping database answers onto GeoLocation."""

    def test_resolves_city(self, reader):
        reader.city.return_value = _city_response()
        location = GeoIP2Resolver(reader=reader).resolve("200.1.2.3")
        assert location == GeoLocation(
            country="BR",
            region="SP",
            city="São Paulo",
            timezone="America/Sao_Paulo",
            ll=[-23.5, -46.6],
        )
        reader.city.assert_called_once_with("200.1.2.3")

    def test_missing_fields_are_unknown(self, reader):
        reader.city.return_value = _city_response(region=None, city=None, tz=None)
        location = GeoIP2Resolver(reader=reader).resolve("200.1.2.3")
        assert location.country == "BR"
        assert location.region == "Unknown"
        assert location.city == "Unknown"
        assert location.timezone == "Unknown"

    def test_falls_back_to_registered_country(self, reader):
        reader.city.return_value = _city_response(country=None)
        assert GeoIP2Resolver(reader=reader).resolve("200.1.2.3").country == "PT"

    def test_address_not_found(self, reader):
        reader.city.side_effect = geoip2.errors.AddressNotFoundError("not in database")
        assert GeoIP2Resolver(reader=reader).resolve("10.0.0.1") == GeoLocation.unknown()

    def test_invalid_address(self, reader):
        reader.city.side_effect = ValueError("'testclient' does not appear to be an IP")
        assert GeoIP2Resolver(reader=reader).resolve("testclient").country == "Unknown"

    def test_empty_ip_skips_lookup(self, reader):
        assert GeoIP2Resolver(reader=reader).resolve("").country == "Unknown"
        reader.city.assert_not_called()

    def test_other_failures_give_error_location(self, reader):
        reader.city.side_effect = OSError("corrupt database")
        location = GeoIP2Resolver(reader=reader).resolve("200.1.2.3")
        assert location == GeoLocation.error()
        assert location.country == "Error"

    def test_close(self, reader):
        resolver = GeoIP2Resolver(reader=reader)
        resolver.close()
        reader.close.assert_called_once()


class TestGetGeoResolver:
    def test_missing_database_gives_null_resolver(self, tmp_path):
        settings = Settings(geoip=GeoIPSettings(db_path=tmp_path / "missing.mmdb"))
        resolver = get_geo_resolver(settings)
        assert isinstance(resolver, NullGeoResolver)
        assert resolver.resolve("8.8.8.8") == GeoLocation.unknown()

    def test_existing_database_path(self, tmp_path):
        db_path = tmp_path / "GeoLite2-City.mmdb"
        db_path.write_bytes(b"")
        resolver = get_geo_resolver(Settings(geoip=GeoIPSettings(db_path=db_path)))
        assert isinstance(resolver, GeoIP2Resolver)
