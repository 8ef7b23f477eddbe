# ==============================================================================
# Statistics Report Models
# ==============================================================================
"""
Pydantic models for the statistics report served to the dashboard.

The report is derived and never persisted. Its JSON keys follow the contract
the dashboard page was built against, which is why some sections use
Portuguese keys (``paises``, ``horasAtividade``, ``sessoes``...).
"""

from pydantic import Field

from sitepulse.core.models import CamelModel

HOURS_PER_DAY = 24


class ViewStats(CamelModel):
    """Page view totals and new/returning visitors over the last 24 hours."""

    total_views: int = 0
    unique_users: int = 0
    new_users: int = 0
    returning_users: int = 0


class Trends(CamelModel):
    """Session counts per trend window and the overall average time on page."""

    last_24h: int = Field(default=0, alias="last24h")
    last_7d: int = Field(default=0, alias="last7d")
    average_time_on_page: int = 0


class CountryStats(CamelModel):
    """Per-country accumulation."""

    sessions: int = Field(default=0, alias="sessoes")
    total_time: int = Field(default=0, alias="tempoTotal")
    total_clicks: int = Field(default=0, alias="cliquesTotal")
    users: int = Field(default=0, alias="usuarios")


class HourStats(CamelModel):
    """Per hour-of-day accumulation."""

    sessions: int = Field(default=0, alias="sessoes")
    average_time: int = Field(default=0, alias="tempoMedio")
    users: int = Field(default=0, alias="usuarios")


class TrafficStats(CamelModel):
    """Session frequency tables by traffic attribution field."""

    sources: dict[str, int] = Field(default_factory=dict)
    mediums: dict[str, int] = Field(default_factory=dict)
    campaigns: dict[str, int] = Field(default_factory=dict)


class DeviceStats(CamelModel):
    """Device class counts and browser/OS frequency tables."""

    mobile: int = 0
    desktop: int = 0
    tablet: int = 0
    browsers: dict[str, int] = Field(default_factory=dict)
    os: dict[str, int] = Field(default_factory=dict)


class StatisticsReport(CamelModel):
    """The full dashboard report."""

    view_stats: ViewStats = Field(default_factory=ViewStats)
    trends: Trends = Field(default_factory=Trends)
    countries: dict[str, CountryStats] = Field(default_factory=dict, alias="paises")
    hours: list[HourStats] = Field(
        default_factory=lambda: [HourStats() for _ in range(HOURS_PER_DAY)],
        alias="horasAtividade",
    )
    traffic: TrafficStats = Field(default_factory=TrafficStats, alias="trafego")
    devices: DeviceStats = Field(default_factory=DeviceStats, alias="dispositivos")

    def to_dict(self) -> dict:
        """Serialize the report with the dashboard's keys."""
        return self.model_dump(mode="json", by_alias=True)
