# ==============================================================================
# Analytics Service
# ==============================================================================
"""
Orchestration between the HTTP/CLI surfaces, the domain logic and the stores.

Ingestion is a read-modify-write cycle over whole collections. All writers in
this process go through one lock, so two requests can never interleave their
cycles and drop each other's update. Readers take no lock and may see the
collection as it was just before a concurrent write.

Error handling:
- Read failures are logged and replaced by an empty collection or a zeroed
  counter.
- Write failures during ingestion are logged and the event is dropped
  (best-effort persistence), unless strict writes are enabled, in which case
  the StoreError propagates to the caller.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from sitepulse.base.stores import CounterStore, SessionStore, StoreError
from sitepulse.core.aggregation import AggregationEngine
from sitepulse.core.models import Counter, EventPayload, Identity, Session
from sitepulse.core.report import StatisticsReport
from sitepulse.core.session_merger import SessionMerger
from sitepulse.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsService:
    """
    Records analytics events and serves the statistics report.
    """

    def __init__(
        self,
        session_store: SessionStore,
        counter_store: CounterStore,
        merger: SessionMerger,
        engine: AggregationEngine | None = None,
        strict_writes: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the service.

        Args:
            session_store: Store for the session collection
            counter_store: Store for the counter singleton
            merger: Session merging logic
            engine: Aggregation engine (default: server local timezone)
            strict_writes: Propagate store write failures instead of logging them
            clock: Source of the current time
        """
        self.session_store = session_store
        self.counter_store = counter_store
        self.merger = merger
        self.engine = engine or AggregationEngine()
        self.strict_writes = strict_writes
        self._clock = clock
        self._write_lock = threading.Lock()

    # ==========================================================================
    # Ingestion
    # ==========================================================================

    def record_event(
        self, payload: EventPayload, identity: Identity, now: datetime | None = None
    ) -> None:
        """
        Record one analytics event.

        Landing page views update the counter first, then the event is merged
        into the session collection.

        Args:
            payload: Incoming event
            identity: Request IP and User-Agent
            now: Arrival time (default: the service clock)

        Raises:
            StoreError: Only when strict writes are enabled
        """
        now = now or self._clock()

        def _count(counter: Counter) -> Counter:
            self.merger.count_view(counter, payload, identity.ip)
            return counter

        def _merge(sessions: list[Session]) -> list[Session]:
            return self.merger.apply(sessions, payload, identity, now)

        with self._write_lock:
            if self.merger.is_landing_view(payload):
                self._persist("counters", lambda: self.counter_store.update(_count))
            self._persist("analytics data", lambda: self.session_store.update(_merge))

        logger.debug("Recorded %s event from %s", payload.event_type or "update", identity.ip)

    def _persist(self, what: str, write: Callable[[], object]) -> None:
        try:
            write()
        except StoreError:
            logger.exception("Failed to save %s", what)
            if self.strict_writes:
                raise

    # ==========================================================================
    # Queries
    # ==========================================================================

    def list_sessions(self) -> list[Session]:
        """Every stored session; an unreadable store yields an empty list."""
        try:
            return self.session_store.read_all()
        except StoreError:
            logger.exception("Failed to read analytics data")
            return []

    def get_counters(self) -> Counter:
        """The counter snapshot; an unreadable store yields a zeroed counter."""
        try:
            return self.counter_store.read()
        except StoreError:
            logger.exception("Failed to read counters")
            return Counter()

    def get_stats(self, now: datetime | None = None) -> StatisticsReport:
        """
        Compute the statistics report over the current snapshots.

        Args:
            now: Reference time for the trend windows (default: the service clock)
        """
        return self.engine.aggregate(
            self.list_sessions(), self.get_counters(), now or self._clock()
        )

    # ==========================================================================
    # Maintenance
    # ==========================================================================

    def reset(self) -> None:
        """Delete every session and zero the counter."""
        with self._write_lock:
            self.session_store.clear()
            self.counter_store.clear()
        logger.info("Analytics data and counters reset")


def create_service(settings: Settings | None = None) -> AnalyticsService:
    """
    Build an AnalyticsService wired to the configured adapters.

    Args:
        settings: Application settings. If None, uses the cached settings.
    """
    from sitepulse.infrastructure import UserAgentsParser, get_geo_resolver, get_stores

    settings = settings or get_settings()
    session_store, counter_store = get_stores(settings)
    merger = SessionMerger(
        geo_resolver=get_geo_resolver(settings),
        user_agent_parser=UserAgentsParser(),
        match_strategy=settings.session.match_strategy,
        landing_page=settings.session.landing_page,
    )
    tz = ZoneInfo(settings.report.timezone) if settings.report.timezone else None

    return AnalyticsService(
        session_store=session_store,
        counter_store=counter_store,
        merger=merger,
        engine=AggregationEngine(timezone=tz),
        strict_writes=settings.store.strict_writes,
    )
