"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

MIN_SYNC_INTERVAL_HOURS = 6


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    # Service settings
    host: str
    port: int
    database_url: str
    admin_token: str | None
    log_level: str

    # Provider credentials (absent -> provider skipped)
    unsplash_access_key: str | None
    pexels_api_key: str | None

    # Sync settings
    sync_enabled: bool
    sync_interval_hours: int
    sync_on_startup: bool
    sync_per_category: int
    sync_max_per_provider: int
    sync_retention_days: int
    sync_provider_delay_seconds: float
    sync_request_delay_seconds: float
    sync_picsum_pages: int

    # Retry / HTTP settings
    retry_max_attempts: int
    retry_base_delay: float
    retry_factor: float
    http_connect_timeout: float
    http_read_timeout: float
    lookup_timeout_seconds: float

    # Recommendation settings
    recs_max_results: int
    recs_min_preferred_categories: int
    recs_preferred_tags_limit: int
    recs_affinity_ceiling: float

    # Maintenance
    interactions_retention_days: int
    weekly_stats_retention_weeks: int
    maintenance_interval_hours: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        host = os.getenv("HOST", "0.0.0.0")
        port_str = os.getenv("PORT", "8000")
        try:
            port = int(port_str)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got: {port_str}")

        database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./wallsync.db")
        admin_token = os.getenv("ADMIN_TOKEN") or None
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        unsplash_access_key = (os.getenv("UNSPLASH_ACCESS_KEY") or "").strip() or None
        pexels_api_key = (os.getenv("PEXELS_API_KEY") or "").strip() or None

        sync_interval_hours = max(
            _env_int("SYNC_INTERVAL_HOURS", 24), MIN_SYNC_INTERVAL_HOURS
        )

        retry_max_attempts = _env_int("RETRY_MAX_ATTEMPTS", 3)
        if retry_max_attempts < 1:
            raise ConfigurationError("RETRY_MAX_ATTEMPTS must be at least 1")

        return cls(
            host=host,
            port=port,
            database_url=database_url,
            admin_token=admin_token,
            log_level=log_level,
            unsplash_access_key=unsplash_access_key,
            pexels_api_key=pexels_api_key,
            sync_enabled=_env_bool("SYNC_ENABLED", True),
            sync_interval_hours=sync_interval_hours,
            sync_on_startup=_env_bool("SYNC_ON_STARTUP", True),
            sync_per_category=_env_int("SYNC_PER_CATEGORY", 30),
            sync_max_per_provider=_env_int("SYNC_MAX_PER_PROVIDER", 120),
            sync_retention_days=_env_int("SYNC_RETENTION_DAYS", 30),
            sync_provider_delay_seconds=_env_float("SYNC_PROVIDER_DELAY_SECONDS", 0.3),
            sync_request_delay_seconds=_env_float("SYNC_REQUEST_DELAY_SECONDS", 0.15),
            sync_picsum_pages=_env_int("SYNC_PICSUM_PAGES", 4),
            retry_max_attempts=retry_max_attempts,
            retry_base_delay=_env_float("RETRY_BASE_DELAY", 1.0),
            retry_factor=_env_float("RETRY_FACTOR", 2.0),
            http_connect_timeout=_env_float("HTTP_CONNECT_TIMEOUT", 10.0),
            http_read_timeout=_env_float("HTTP_READ_TIMEOUT", 30.0),
            lookup_timeout_seconds=_env_float("LOOKUP_TIMEOUT_SECONDS", 5.0),
            recs_max_results=_env_int("RECS_MAX_RESULTS", 20),
            recs_min_preferred_categories=_env_int("RECS_MIN_PREFERRED_CATEGORIES", 1),
            recs_preferred_tags_limit=_env_int("RECS_PREFERRED_TAGS_LIMIT", 50),
            recs_affinity_ceiling=_env_float("RECS_AFFINITY_CEILING", 100.0),
            interactions_retention_days=_env_int("INTERACTIONS_RETENTION_DAYS", 90),
            weekly_stats_retention_weeks=_env_int("WEEKLY_STATS_RETENTION_WEEKS", 4),
            maintenance_interval_hours=_env_int("MAINTENANCE_INTERVAL_HOURS", 24),
        )


config = Config.from_env()
