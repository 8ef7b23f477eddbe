# ==============================================================================
# Analytics Domain Models
# ==============================================================================
"""
Pydantic models for analytics events, sessions and counters.

These models are used for:
- Validating event payloads posted by the tracking script
- Serializing/deserializing the persisted session and counter records
- Type safety throughout the application

Persisted and wire JSON keep the camelCase keys used by the tracking script
and the dashboard (``sessionId``, ``startTime``, ``totalTimeOnPage``...), while
Python code works with snake_case attributes.

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

# Sentinel values for fields the client or a lookup did not provide
DIRECT = "Direct"
NONE = "None"
UNKNOWN = "Unknown"
ERROR = "Error"

SESSION_START = "session_start"
DEFAULT_EVENT_TYPE = "update"
PAGE_VIEW = "page_view"


def text_or_none(value: Any) -> Optional[str]:
    """Coerce a client-supplied identifier: numbers become strings, anything else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value or None
    return None


def list_or_none(value: Any) -> Optional[list]:
    return value if isinstance(value, list) else None


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==============================================================================
# Request-side Models
# ==============================================================================


class EventPayload(CamelModel):
    """
    An analytics event as posted by the tracking script.

    Every field is optional. Values of the wrong type are replaced by the
    field default instead of failing validation, so a partially broken
    payload is still recorded.

    Attributes:
        event_type: Client event tag (page_view, click, focus...)
        page_type: Page the event came from (index, dashboard...)
        session_id: Client-generated session identifier
        session_info: Free-form client session details
        traffic_source: Raw referrer/campaign/medium/source attribution
        event_data: Free-form event payload
        clicks: Click records collected by the client
    """

    model_config = ConfigDict(extra="ignore")

    event_type: Optional[str] = None
    page_type: Optional[str] = None
    session_id: Optional[str] = None
    session_info: dict[str, Any] = Field(default_factory=dict)
    traffic_source: dict[str, Any] = Field(default_factory=dict)
    event_data: Optional[dict[str, Any]] = None
    clicks: Optional[list[Any]] = None

    @field_validator("event_type", "page_type", "session_id", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Optional[str]:
        return text_or_none(value)

    @field_validator("session_info", "traffic_source", mode="before")
    @classmethod
    def _object_or_empty(cls, value: Any) -> dict:
        return value if isinstance(value, dict) else {}

    @field_validator("event_data", mode="before")
    @classmethod
    def _object_or_none(cls, value: Any) -> Optional[dict]:
        return value if isinstance(value, dict) else None

    @field_validator("clicks", mode="before")
    @classmethod
    def _list_or_none(cls, value: Any) -> Optional[list]:
        return list_or_none(value)

    @classmethod
    def from_raw(cls, data: Any) -> "EventPayload":
        """Build a payload from a decoded JSON body of any shape."""
        if not isinstance(data, dict):
            return cls()
        return cls.model_validate(data)

    @property
    def is_page_view(self) -> bool:
        return self.event_type == PAGE_VIEW


class Identity(BaseModel):
    """Who sent a request: client IP and raw User-Agent header."""

    ip: str
    user_agent: str = ""


# ==============================================================================
# Session Record Models
# ==============================================================================


class BrowserInfo(CamelModel):
    """Browser and device details derived from the User-Agent header."""

    name: str = UNKNOWN
    version: str = ""
    os: str = UNKNOWN
    platform: str = UNKNOWN
    is_mobile: bool = False
    is_tablet: bool = False
    is_desktop: bool = False

    @property
    def device_class(self) -> Optional[str]:
        """Single device class, checked in mobile -> tablet -> desktop order."""
        if self.is_mobile:
            return "mobile"
        if self.is_tablet:
            return "tablet"
        if self.is_desktop:
            return "desktop"
        return None


class GeoLocation(CamelModel):
    """Geographic location resolved from a visitor IP."""

    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN
    timezone: str = UNKNOWN
    coordinates: list[float] = Field(default_factory=lambda: [0.0, 0.0], alias="ll")

    @classmethod
    def unknown(cls) -> "GeoLocation":
        """Location used when the address is not in the database."""
        return cls()

    @classmethod
    def error(cls) -> "GeoLocation":
        """Location used when the lookup itself failed."""
        return cls(country=ERROR, region=ERROR, city=ERROR, timezone=ERROR)

    @field_validator("country", "region", "city", "timezone", mode="before")
    @classmethod
    def _blank_is_unknown(cls, value: Any) -> Any:
        return UNKNOWN if value in (None, "") else value


class TrafficSource(CamelModel):
    """Traffic attribution. Missing fields fall into the direct/none buckets."""

    referrer: str = DIRECT
    campaign: str = NONE
    medium: str = DIRECT
    source: str = DIRECT

    @field_validator("referrer", "campaign", "medium", "source", mode="before")
    @classmethod
    def _default_when_blank(cls, value: Any, info: ValidationInfo) -> Any:
        if value in (None, ""):
            return cls.model_fields[info.field_name].default
        return str(value)

    @classmethod
    def normalize(cls, raw: dict[str, Any]) -> "TrafficSource":
        """Build attribution from a raw client object, defaulting every gap."""
        return cls(**{name: raw.get(name) for name in cls.model_fields})


class SessionInfo(CamelModel):
    """
    Client session details.

    Unknown keys sent by the tracking script are kept verbatim.
    """

    model_config = ConfigDict(extra="allow")

    last_active: Optional[datetime] = None
    tab_focused: bool = True
    browser_info: Optional[BrowserInfo] = None

    @field_validator("tab_focused", mode="before")
    @classmethod
    def _focused_by_default(cls, value: Any) -> Any:
        return True if value is None else value


class SessionEvent(CamelModel):
    """One event appended to a session."""

    type: str
    timestamp: datetime
    data: Any = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class Session(CamelModel):
    """
    One merged, evolving record of a single visitor's activity.

    Invariants: ``total_time_on_page >= 0`` and ``last_update >= start_time``.

    Attributes:
        session_id: Last client session identifier seen for this visitor
        page_type: Last page type seen
        event_type: Last event type seen
        ip: Visitor IP address
        user_agent: Raw User-Agent header
        session_info: Client session details, including parsed browser info
        location: Resolved geographic location
        start_time: When the first event arrived
        last_update: When the latest event arrived
        total_time_on_page: Seconds between start_time and last_update
        traffic_source: Normalized traffic attribution
        session_events: Events in arrival order
        clicks: Click records reported by the client, if any
        event_data: Payload of the latest event, if any
    """

    model_config = ConfigDict(extra="allow")

    session_id: Optional[str] = None
    page_type: Optional[str] = None
    event_type: Optional[str] = None
    ip: str = ""
    user_agent: str = ""
    session_info: SessionInfo = Field(default_factory=SessionInfo)
    location: GeoLocation = Field(default_factory=GeoLocation.unknown)
    start_time: datetime
    last_update: datetime
    total_time_on_page: int = 0
    traffic_source: TrafficSource = Field(default_factory=TrafficSource)
    session_events: list[SessionEvent] = Field(default_factory=list)
    clicks: Optional[list[Any]] = None
    event_data: Optional[Any] = None

    @field_validator("start_time", "last_update")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("session_id", "page_type", "event_type", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Optional[str]:
        # Older records hold the raw client values
        return text_or_none(value)

    @field_validator("clicks", mode="before")
    @classmethod
    def _list_or_none(cls, value: Any) -> Optional[list]:
        return list_or_none(value)

    @field_validator("total_time_on_page", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> Any:
        if value is None:
            return 0
        if isinstance(value, (int, float)) and value < 0:
            return 0
        return value

    @field_validator("user_agent", mode="before")
    @classmethod
    def _raw_header(cls, value: Any) -> Any:
        # Older records stored the parsed user agent object with the header under "source"
        if isinstance(value, dict):
            return value.get("source") or ""
        return "" if value is None else value

    @field_validator("location", mode="before")
    @classmethod
    def _missing_location(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def browser_info(self) -> Optional[BrowserInfo]:
        return self.session_info.browser_info

    @property
    def click_count(self) -> int:
        """Number of clicks reported for the session (0 when absent)."""
        return len(self.clicks) if self.clicks else 0

    def to_record(self) -> dict:
        """Serialize the session for persistence or the raw API listing."""
        return self.model_dump(mode="json", by_alias=True)


class Counter(CamelModel):
    """
    Process-wide running totals.

    Attributes:
        page_views: Landing page views ever recorded
        unique_visitors: Distinct visitor IPs ever seen (union-only)
    """

    page_views: int = 0
    unique_visitors: list[str] = Field(default_factory=list)

    @field_validator("unique_visitors")
    @classmethod
    def _distinct(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @property
    def unique_count(self) -> int:
        return len(self.unique_visitors)

    def record_view(self, ip: str) -> None:
        """Count one page view and remember the visitor IP."""
        self.page_views += 1
        if ip not in self.unique_visitors:
            self.unique_visitors.append(ip)

    def to_record(self) -> dict:
        """Serialize the counter for persistence."""
        return self.model_dump(mode="json", by_alias=True)
