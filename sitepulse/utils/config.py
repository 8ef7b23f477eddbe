# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class StoreSettings(BaseSettings):
    """Record store settings.

    The analytics data (sessions) and the counters are always persisted as
    two separate whole-collection records, whatever the backend.
    """

    model_config = SettingsConfigDict(env_prefix="STORE_")

    backend: Literal["json", "valkey", "memory"] = Field(
        default="json", description="Store backend (json, valkey, memory)"
    )
    data_file: Path = Field(
        default=Path("analytics_data.json"), description="Session records file (json backend)"
    )
    counters_file: Path = Field(
        default=Path("counters.json"), description="Counters file (json backend)"
    )
    key_prefix: str = Field(default="sitepulse", description="Key prefix (valkey backend)")
    strict_writes: bool = Field(
        default=False,
        description="Fail ingestion requests when a store write fails (default: log and continue)",
    )

    @property
    def data_file_path(self) -> Path:
        """Resolve the session records file to an absolute path from project root."""
        return _resolve(self.data_file)

    @property
    def counters_file_path(self) -> Path:
        """Resolve the counters file to an absolute path from project root."""
        return _resolve(self.counters_file)


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for the valkey store backend."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class GeoIPSettings(BaseSettings):
    """Offline IP geolocation settings."""

    model_config = SettingsConfigDict(env_prefix="GEOIP_")

    db_path: Path = Field(
        default=Path("GeoLite2-City.mmdb"), description="Path to a MaxMind City database"
    )

    @property
    def db_file_path(self) -> Path:
        """Resolve the database path to an absolute path from project root."""
        return _resolve(self.db_path)


class SessionSettings(BaseSettings):
    """Session merging settings."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    match_strategy: Literal["session_or_ip", "session_id", "ip", "composite"] = Field(
        default="session_or_ip",
        description="How an incoming event is matched to a stored session",
    )
    landing_page: str = Field(
        default="index", description="Page type whose page_view events feed the counters"
    )


class ServerSettings(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")
    static_dir: Path = Field(default=Path("public"), description="Static HTML directory")
    trust_proxy: bool = Field(
        default=False, description="Take the client IP from X-Forwarded-For / X-Real-IP"
    )

    @property
    def static_dir_path(self) -> Path:
        """Resolve the static directory to an absolute path from project root."""
        return _resolve(self.static_dir)


class ReportSettings(BaseSettings):
    """Statistics report settings."""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone for hour-of-day buckets (default: server local time)",
    )

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    store: StoreSettings = Field(default_factory=StoreSettings)
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)
    geoip: GeoIPSettings = Field(default_factory=GeoIPSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


def _resolve(path: Path) -> Path:
    if path.is_absolute():
        return path
    # Import here to avoid circular imports
    from sitepulse.utils.paths import get_project_root

    return get_project_root() / path


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
