# ==============================================================================
# Aggregation Engine - Pure Domain Logic
# ==============================================================================
"""
Statistics computation over the full session collection.

Six independent passes read the same session sequence and are assembled into
one StatisticsReport:
- View stats: page view totals, new vs. returning visitors (last 24h)
- Trends: sessions started in the last 24h / 7d, average time on page
- Countries: sessions, time, clicks and distinct IPs per country
- Hours: 24 hour-of-day buckets
- Traffic: source / medium / campaign frequency tables
- Devices: device classes, browser and OS frequency tables

The engine holds no state between calls: the same sessions, counter and
``now`` always give the same report.
"""

import collections
import math
from collections.abc import Sequence
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from sitepulse.core.models import Counter, Session, as_utc
from sitepulse.core.report import (
    HOURS_PER_DAY,
    CountryStats,
    DeviceStats,
    HourStats,
    StatisticsReport,
    TrafficStats,
    Trends,
    ViewStats,
)

LAST_DAY = timedelta(hours=24)
LAST_WEEK = timedelta(days=7)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


class AggregationEngine:
    """
    Computes the dashboard statistics report.

    Averages over empty groups are reported as 0.
    """

    def __init__(self, timezone: Optional[tzinfo] = None):
        """
        Initialize the aggregation engine.

        Args:
            timezone: Timezone for hour-of-day buckets. None uses the
                      server's local timezone.
        """
        self.timezone = timezone

    def aggregate(
        self, sessions: Sequence[Session], counters: Counter, now: datetime
    ) -> StatisticsReport:
        """
        Compute the full report.

        Args:
            sessions: Every stored session
            counters: Current counter snapshot
            now: Reference time for the trend windows

        Returns:
            The assembled statistics report
        """
        now = as_utc(now)
        return StatisticsReport(
            view_stats=self.view_stats(sessions, counters, now),
            trends=self.trends(sessions, now),
            countries=self.countries(sessions),
            hours=self.hours(sessions),
            traffic=self.traffic(sessions),
            devices=self.devices(sessions),
        )

    # ==========================================================================
    # Passes
    # ==========================================================================

    def view_stats(
        self, sessions: Sequence[Session], counters: Counter, now: datetime
    ) -> ViewStats:
        """
        Page view totals plus new and returning visitors.

        Sessions are grouped by IP. Only IPs with a visit in the last 24 hours
        are classified: new when their first visit is inside the window,
        returning when they have more than one visit. IPs with no recent visit
        are counted in neither.
        """
        since = now - LAST_DAY
        visits: dict[str, list[datetime]] = collections.defaultdict(list)
        for session in sessions:
            visits[session.ip].append(session.start_time)

        new_users = 0
        returning_users = 0
        for times in visits.values():
            recent = [t for t in times if t > since]
            if not recent:
                continue
            if min(times) > since:
                new_users += 1
            elif len(recent) > 1 or len(times) > 1:
                returning_users += 1

        return ViewStats(
            total_views=counters.page_views,
            unique_users=counters.unique_count,
            new_users=new_users,
            returning_users=returning_users,
        )

    def trends(self, sessions: Sequence[Session], now: datetime) -> Trends:
        """Sessions started inside each trend window and the mean time on page."""
        day_ago = now - LAST_DAY
        week_ago = now - LAST_WEEK

        average = 0
        if sessions:
            total = sum(s.total_time_on_page for s in sessions)
            average = round_half_up(total / len(sessions))

        return Trends(
            last_24h=sum(1 for s in sessions if s.start_time > day_ago),
            last_7d=sum(1 for s in sessions if s.start_time > week_ago),
            average_time_on_page=average,
        )

    def countries(self, sessions: Sequence[Session]) -> dict[str, CountryStats]:
        """Per-country sessions, total time, total clicks and distinct IPs."""
        stats: dict[str, CountryStats] = {}
        ips: dict[str, set[str]] = collections.defaultdict(set)

        for session in sessions:
            country = session.location.country
            entry = stats.setdefault(country, CountryStats())
            entry.sessions += 1
            entry.total_time += session.total_time_on_page
            entry.total_clicks += session.click_count
            ips[country].add(session.ip)

        for country, entry in stats.items():
            entry.users = len(ips[country])
        return stats

    def hours(self, sessions: Sequence[Session]) -> list[HourStats]:
        """Exactly 24 buckets keyed by the hour the session started."""
        counts = [0] * HOURS_PER_DAY
        times = [0] * HOURS_PER_DAY
        ips: list[set[str]] = [set() for _ in range(HOURS_PER_DAY)]

        for session in sessions:
            hour = session.start_time.astimezone(self.timezone).hour
            counts[hour] += 1
            times[hour] += session.total_time_on_page
            ips[hour].add(session.ip)

        return [
            HourStats(
                sessions=counts[hour],
                average_time=round_half_up(times[hour] / counts[hour]) if counts[hour] else 0,
                users=len(ips[hour]),
            )
            for hour in range(HOURS_PER_DAY)
        ]

    def traffic(self, sessions: Sequence[Session]) -> TrafficStats:
        """Frequency tables by source, medium and campaign."""
        return TrafficStats(
            sources=dict(collections.Counter(s.traffic_source.source for s in sessions)),
            mediums=dict(collections.Counter(s.traffic_source.medium for s in sessions)),
            campaigns=dict(collections.Counter(s.traffic_source.campaign for s in sessions)),
        )

    def devices(self, sessions: Sequence[Session]) -> DeviceStats:
        """
        Device class counts plus browser and OS tables.

        Each session counts as one device class at most (mobile wins over
        tablet, tablet over desktop). Sessions without browser info are
        skipped entirely.
        """
        stats = DeviceStats()
        browsers: collections.Counter[str] = collections.Counter()
        systems: collections.Counter[str] = collections.Counter()

        for session in sessions:
            info = session.browser_info
            if info is None:
                continue
            device_class = info.device_class
            if device_class is not None:
                setattr(stats, device_class, getattr(stats, device_class) + 1)
            browsers[info.name] += 1
            systems[info.os] += 1

        stats.browsers = dict(browsers)
        stats.os = dict(systems)
        return stats


def aggregate(
    sessions: Sequence[Session],
    counters: Counter,
    now: datetime,
    timezone: Optional[tzinfo] = None,
) -> StatisticsReport:
    """Compute the statistics report with a one-off engine."""
    return AggregationEngine(timezone=timezone).aggregate(sessions, counters, now)
