# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain logic with no persistence or framework dependencies.

This module contains:
- Domain models (Session, Counter, EventPayload, ...)
- Session merging logic (matching, normalization, counters)
- The aggregation engine and its report models

All code here is framework-agnostic and easily unit-testable.
"""

from sitepulse.core.models import (
    BrowserInfo,
    Counter,
    EventPayload,
    GeoLocation,
    Identity,
    Session,
    SessionEvent,
    SessionInfo,
    TrafficSource,
)
from sitepulse.core.report import StatisticsReport
from sitepulse.core.session_merger import MatchStrategy, SessionMerger
from sitepulse.core.aggregation import AggregationEngine, aggregate

__all__ = [
    "AggregationEngine",
    "BrowserInfo",
    "Counter",
    "EventPayload",
    "GeoLocation",
    "Identity",
    "MatchStrategy",
    "Session",
    "SessionEvent",
    "SessionInfo",
    "SessionMerger",
    "StatisticsReport",
    "TrafficSource",
    "aggregate",
]
