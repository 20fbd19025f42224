"""Service configuration pulled from environment variables via pydantic."""
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger, mask_url_secrets

logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the viewing-conditions service."""
    model_config = SettingsConfigDict(env_prefix="ASTRO_", extra="ignore")

    timezone: str = "UTC"  # calendar-day boundaries and provider local times
    forecast_days: int = 3
    staleness_threshold_seconds: int = 21600
    display_stale_seconds: int = 1800
    n2yo_api_key: str | None = None
    satellite_min_visibility_seconds: int = 60
    http_timeout_seconds: float = 10.0
    cache_redis_url: str | None = None
    cache_key_prefix: str = "astroview:"
    api_key: str | None = None
    log_level: str = "INFO"

    @field_validator("n2yo_api_key", "api_key", "cache_redis_url", mode="after")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat empty strings from the environment as unset."""
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    @field_validator("timezone", mode="after")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        """Reject timezone names zoneinfo cannot resolve."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone '{v}'") from exc
        return v

    @field_validator("forecast_days", mode="after")
    @classmethod
    def positive_horizon(cls, v: int) -> int:
        """Open-Meteo serves 1-16 forecast days."""
        if not 1 <= v <= 16:
            raise ValueError("forecast_days must be between 1 and 16")
        return v

    @property
    def satellites_enabled(self) -> bool:
        """True when an N2YO credential is configured."""
        return bool(self.n2yo_api_key)


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    dumped = settings.model_dump()
    if dumped.get("cache_redis_url"):
        dumped["cache_redis_url"] = mask_url_secrets(dumped["cache_redis_url"])
    for secret in ("n2yo_api_key", "api_key"):
        if dumped.get(secret):
            dumped[secret] = "***"
    logger.debug(f"Loaded settings: {dumped}")
