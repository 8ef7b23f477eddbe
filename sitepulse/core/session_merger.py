# ==============================================================================
# Session Merger - Pure Domain Logic
# ==============================================================================
"""
Session merging logic with no persistence dependencies.

This module contains the domain logic for turning one inbound analytics event
into a Session update:
- Matching the event to a stored session (configurable strategy)
- Normalizing the payload (traffic source sentinels, browser info, location)
- Creating new sessions and merging into existing ones
- Counting landing page views

Lookups (geolocation, User-Agent parsing) are injected, and everything works
on in-memory models. This allows the logic to be:
- Unit tested without mocks of files or databases
- Reused by any store backend
"""

import logging
import math
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from pydantic import ValidationError

from sitepulse.core.models import (
    DEFAULT_EVENT_TYPE,
    SESSION_START,
    BrowserInfo,
    Counter,
    EventPayload,
    GeoLocation,
    Identity,
    Session,
    SessionEvent,
    SessionInfo,
    TrafficSource,
    as_utc,
)

if TYPE_CHECKING:
    from sitepulse.base.geo import GeoResolver
    from sitepulse.base.user_agent import UserAgentParser

logger = logging.getLogger(__name__)


class MatchStrategy(str, Enum):
    """
    Rule deciding which stored session an incoming event belongs to.

    SESSION_OR_IP matches on either key, so two session identifiers behind one
    shared IP (NAT, proxies) collapse into a single session. The narrower
    strategies avoid that at the cost of splitting a visitor whose session
    identifier or IP changes.
    """

    SESSION_OR_IP = "session_or_ip"
    SESSION_ID = "session_id"
    IP = "ip"
    COMPOSITE = "composite"


class SessionMerger:
    """
    Pure session merging logic.

    Handles session creation and updates without any storage dependencies.
    Works with lists of Session models representing the whole collection.
    """

    def __init__(
        self,
        geo_resolver: "GeoResolver",
        user_agent_parser: "UserAgentParser",
        match_strategy: MatchStrategy | str = MatchStrategy.SESSION_OR_IP,
        landing_page: str = "index",
    ):
        """
        Initialize session merger.

        Args:
            geo_resolver: Resolves visitor IPs to locations
            user_agent_parser: Parses User-Agent headers into browser details
            match_strategy: How events are matched to stored sessions
            landing_page: Page type whose page_view events feed the counters
        """
        self.geo_resolver = geo_resolver
        self.user_agent_parser = user_agent_parser
        self.match_strategy = MatchStrategy(match_strategy)
        self.landing_page = landing_page

    # ==========================================================================
    # Matching
    # ==========================================================================

    def matches(self, session: Session, payload: EventPayload, ip: str) -> bool:
        """
        Check whether a stored session belongs to the incoming event.

        A missing session identifier never matches, even against a stored
        session that has none either.
        """
        same_id = payload.session_id is not None and session.session_id == payload.session_id
        same_ip = session.ip == ip

        if self.match_strategy is MatchStrategy.SESSION_ID:
            return same_id
        if self.match_strategy is MatchStrategy.IP:
            return same_ip
        if self.match_strategy is MatchStrategy.COMPOSITE:
            return same_id and same_ip
        return same_id or same_ip

    def find_existing(
        self, sessions: list[Session], payload: EventPayload, ip: str
    ) -> Optional[int]:
        """
        Find the stored session for an event.

        Returns:
            Index of the first matching session, or None
        """
        for index, session in enumerate(sessions):
            if self.matches(session, payload, ip):
                return index
        return None

    # ==========================================================================
    # Normalization
    # ==========================================================================

    def resolve_location(self, ip: str) -> GeoLocation:
        """Resolve an IP, substituting the error location if the resolver fails."""
        try:
            return self.geo_resolver.resolve(ip)
        except Exception:
            logger.exception("Geo lookup failed for %s", ip)
            return GeoLocation.error()

    def parse_browser(self, user_agent: str) -> BrowserInfo:
        """Parse a User-Agent header, falling back to unknown browser details."""
        try:
            return self.user_agent_parser.parse(user_agent)
        except Exception:
            logger.exception("User-Agent parsing failed for %r", user_agent)
            return BrowserInfo()

    def build_session_info(
        self, payload: EventPayload, browser: BrowserInfo, now: datetime
    ) -> SessionInfo:
        """Combine client session details with server-side fields."""
        server_fields = {"lastActive": now, "browserInfo": browser}
        try:
            return SessionInfo.model_validate({**payload.session_info, **server_fields})
        except ValidationError as e:
            logger.warning("Dropping malformed sessionInfo: %s", e.errors()[0]["msg"])
            return SessionInfo.model_validate(server_fields)

    # ==========================================================================
    # Merging
    # ==========================================================================

    def create_session(self, payload: EventPayload, identity: Identity, now: datetime) -> Session:
        """
        Create a new session from the first event of a visitor.

        Args:
            payload: Incoming event
            identity: Request IP and User-Agent
            now: Arrival time of the event

        Returns:
            New session holding a single session_start event
        """
        now = as_utc(now)
        browser = self.parse_browser(identity.user_agent)
        return Session(
            session_id=payload.session_id,
            page_type=payload.page_type,
            event_type=payload.event_type,
            ip=identity.ip,
            user_agent=identity.user_agent,
            session_info=self.build_session_info(payload, browser, now),
            location=self.resolve_location(identity.ip),
            start_time=now,
            last_update=now,
            total_time_on_page=0,
            traffic_source=TrafficSource.normalize(payload.traffic_source),
            session_events=[SessionEvent(type=SESSION_START, timestamp=now, data={})],
            clicks=payload.clicks,
            event_data=payload.event_data,
        )

    def merge(
        self,
        existing: Optional[Session],
        payload: EventPayload,
        identity: Identity,
        now: datetime,
    ) -> Session:
        """
        Produce the session that results from one event.

        Incoming fields win over stored ones, except start_time which is
        preserved. Fields the payload does not carry keep their stored value.
        total_time_on_page is recomputed from start_time and one event is
        appended.

        Args:
            existing: Stored session for this visitor, or None
            payload: Incoming event
            identity: Request IP and User-Agent
            now: Arrival time of the event

        Returns:
            The new or updated session (existing is not mutated)
        """
        if existing is None:
            return self.create_session(payload, identity, now)

        now = as_utc(now)
        last_update = max(now, existing.start_time)
        elapsed = (last_update - existing.start_time).total_seconds()
        browser = self.parse_browser(identity.user_agent)

        event = SessionEvent(
            type=payload.event_type or DEFAULT_EVENT_TYPE,
            timestamp=now,
            data=payload.event_data or {},
        )

        return existing.model_copy(
            update={
                "session_id": payload.session_id or existing.session_id,
                "page_type": payload.page_type or existing.page_type,
                "event_type": payload.event_type or existing.event_type,
                "ip": identity.ip,
                "user_agent": identity.user_agent,
                "session_info": self.build_session_info(payload, browser, now),
                "location": self.resolve_location(identity.ip),
                "last_update": last_update,
                # Half-up rounding to whole seconds
                "total_time_on_page": max(0, math.floor(elapsed + 0.5)),
                "traffic_source": TrafficSource.normalize(payload.traffic_source),
                "session_events": [*existing.session_events, event],
                "clicks": payload.clicks if payload.clicks is not None else existing.clicks,
                "event_data": (
                    payload.event_data if payload.event_data is not None else existing.event_data
                ),
            }
        )

    def apply(
        self,
        sessions: list[Session],
        payload: EventPayload,
        identity: Identity,
        now: datetime,
    ) -> list[Session]:
        """
        Apply one event to the whole session collection.

        The matching session is replaced in place; otherwise a new session is
        appended.

        Args:
            sessions: Current collection (not mutated)
            payload: Incoming event
            identity: Request IP and User-Agent
            now: Arrival time of the event

        Returns:
            The new collection
        """
        updated = list(sessions)
        index = self.find_existing(updated, payload, identity.ip)

        if index is None:
            updated.append(self.merge(None, payload, identity, now))
        else:
            updated[index] = self.merge(updated[index], payload, identity, now)

        return updated

    # ==========================================================================
    # Counters
    # ==========================================================================

    def is_landing_view(self, payload: EventPayload) -> bool:
        """True for page_view events on the landing page."""
        return payload.is_page_view and payload.page_type == self.landing_page

    def count_view(self, counter: Counter, payload: EventPayload, ip: str) -> bool:
        """
        Record a landing page view on the counter.

        Mutates the counter in place.

        Returns:
            True if the event was counted
        """
        if not self.is_landing_view(payload):
            return False
        counter.record_view(ip)
        return True
