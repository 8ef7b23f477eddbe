# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the seams between the analytics core and its
collaborators (ports-and-adapters architecture).

Concrete adapters live in sitepulse.infrastructure.
"""

from sitepulse.base.geo import GeoResolver
from sitepulse.base.stores import CounterStore, SessionStore, StoreError
from sitepulse.base.user_agent import UserAgentParser

__all__ = [
    "CounterStore",
    "GeoResolver",
    "SessionStore",
    "StoreError",
    "UserAgentParser",
]
