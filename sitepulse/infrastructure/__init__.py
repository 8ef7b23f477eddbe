# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for external collaborators (ports-and-adapters architecture).

This module contains concrete implementations of the base interfaces:
- stores/ - Session and counter stores (JSON files, Valkey, in-memory)
- geo.py - Offline IP geolocation (MaxMind database)
- user_agent.py - User-Agent parsing
"""

from sitepulse.infrastructure.geo import GeoIP2Resolver, NullGeoResolver, get_geo_resolver
from sitepulse.infrastructure.stores import (
    InMemoryCounterStore,
    InMemorySessionStore,
    JsonFileCounterStore,
    JsonFileSessionStore,
    get_stores,
)
from sitepulse.infrastructure.user_agent import UserAgentsParser, parse_user_agent

__all__ = [
    # Geo
    "GeoIP2Resolver",
    "NullGeoResolver",
    "get_geo_resolver",
    # Stores
    "InMemoryCounterStore",
    "InMemorySessionStore",
    "JsonFileCounterStore",
    "JsonFileSessionStore",
    "get_stores",
    # User agents
    "UserAgentsParser",
    "parse_user_agent",
]
