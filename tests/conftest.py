# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis client for the Valkey store (clean state per test)
- Stub geo resolver and User-Agent parser with fixed answers
- In-memory stores and a wired AnalyticsService
- A fixed reference time and a session factory
"""

from datetime import datetime, timedelta, timezone

import fakeredis
import pytest

from sitepulse.base.geo import GeoResolver
from sitepulse.base.user_agent import UserAgentParser
from sitepulse.core.models import BrowserInfo, GeoLocation, Session, SessionInfo, TrafficSource
from sitepulse.core.session_merger import SessionMerger
from sitepulse.infrastructure.stores import InMemoryCounterStore, InMemorySessionStore
from sitepulse.services.analytics import AnalyticsService

NOW = datetime(2024, 5, 20, 12, 0, 0, tzinfo=timezone.utc)

DESKTOP_CHROME = BrowserInfo(
    name="Chrome", version="124.0", os="Windows", platform="Other", is_desktop=True
)


class StubGeoResolver(GeoResolver):
    """Answers from a fixed table; unknown IPs resolve to Unknown."""

    def __init__(self, table: dict[str, str] | None = None):
        self.table = table or {}
        self.calls: list[str] = []

    def resolve(self, ip: str) -> GeoLocation:
        self.calls.append(ip)
        country = self.table.get(ip)
        if country is None:
            return GeoLocation.unknown()
        return GeoLocation(country=country, region="X", city="Y", timezone="UTC", ll=[1.0, 2.0])


class StubUserAgentParser(UserAgentParser):
    """Returns the same browser details for every header."""

    def __init__(self, info: BrowserInfo = DESKTOP_CHROME):
        self.info = info

    def parse(self, header: str) -> BrowserInfo:
        return self.info


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real Valkey client behavior.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def geo():
    return StubGeoResolver({"1.1.1.1": "US", "2.2.2.2": "BR", "3.3.3.3": "DE"})


@pytest.fixture()
def merger(geo):
    return SessionMerger(geo_resolver=geo, user_agent_parser=StubUserAgentParser())


@pytest.fixture()
def session_store():
    return InMemorySessionStore()


@pytest.fixture()
def counter_store():
    return InMemoryCounterStore()


@pytest.fixture()
def service(session_store, counter_store, merger):
    """An AnalyticsService over in-memory stores with a fixed clock."""
    return AnalyticsService(
        session_store=session_store,
        counter_store=counter_store,
        merger=merger,
        clock=lambda: NOW,
    )


@pytest.fixture()
def make_session():
    """Factory for stored sessions relative to the fixed reference time."""

    def _make(
        ip: str = "1.1.1.1",
        age: timedelta = timedelta(hours=1),
        time_on_page: int = 0,
        country: str = "US",
        session_id: str | None = None,
        browser: BrowserInfo | None = DESKTOP_CHROME,
        clicks: list | None = None,
        source: str | None = None,
    ) -> Session:
        start = NOW - age
        return Session(
            session_id=session_id,
            ip=ip,
            start_time=start,
            last_update=start + timedelta(seconds=time_on_page),
            total_time_on_page=time_on_page,
            location=GeoLocation(country=country),
            session_info=SessionInfo(browser_info=browser),
            traffic_source=TrafficSource(source=source),
            clicks=clicks,
        )

    return _make
