import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


@dataclass
class Settings:
    """Application settings loaded from environment variables with safe defaults.

    ``database_url`` is the read connection; ``database_write_url`` is the
    privileged connection used for upserts. Without a write URL, on-demand
    hydration is disabled and cache misses degrade to "not ready" placeholders.
    """

    app_name: str = "Postcode Layer Cache"
    env: str = "dev"
    database_url: str = "sqlite+aiosqlite:///./postcode_cache.db"
    database_write_url: Optional[str] = None
    log_level: str = "INFO"
    geocoder_base_url: str = "https://api.postcodes.io"
    crime_feed_base_url: str = "https://data.police.uk/api"
    upstream_timeout_seconds: float = 10.0
    layer_cache_ttl_seconds: int = 24 * 60 * 60
    single_flight: bool = True
    sync_pause_seconds: float = 0.0

    @property
    def hydration_enabled(self) -> bool:
        return bool(self.database_write_url)

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        db_url = os.getenv("DATABASE_URL", cls.database_url).strip()
        write_url = (os.getenv("DATABASE_WRITE_URL") or "").strip() or None
        if write_url is None and _env_flag("HYDRATION_ENABLED", False):
            write_url = db_url or None
        return cls(
            app_name=os.getenv("APP_NAME", cls.app_name),
            env=os.getenv("ENV", cls.env),
            database_url=db_url,
            database_write_url=write_url,
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            geocoder_base_url=os.getenv("GEOCODER_BASE_URL", cls.geocoder_base_url),
            crime_feed_base_url=os.getenv("CRIME_FEED_BASE_URL", cls.crime_feed_base_url),
            upstream_timeout_seconds=_env_float("UPSTREAM_TIMEOUT_SECONDS", cls.upstream_timeout_seconds),
            layer_cache_ttl_seconds=int(_env_float("LAYER_CACHE_TTL_SECONDS", cls.layer_cache_ttl_seconds)),
            single_flight=_env_flag("HYDRATION_SINGLE_FLIGHT", cls.single_flight),
            sync_pause_seconds=max(0.0, _env_float("SYNC_PAUSE_SECONDS", cls.sync_pause_seconds)),
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings.from_env()
