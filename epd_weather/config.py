"""Fetcher configuration pulled from environment variables via pydantic."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from epd_utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the Open-Meteo weather fetcher.

    Every value is fixed for the life of the process and handed to the client
    at construction time.
    """
    model_config = SettingsConfigDict(env_prefix="EPD_", extra="ignore", frozen=True)

    latitude: float = 43.07
    longitude: float = -89.40
    api_timezone: str = "auto"
    forecast_host: str = "api.open-meteo.com"
    air_quality_host: str = "air-quality-api.open-meteo.com"
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=1.0, ge=0)
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    max_payload_bytes: int = Field(default=262144, gt=0)
    transport: str = "requests"  # options: requests
    wireless_stats_path: str = "/proc/net/wireless"
    log_level: str = "INFO"

    @field_validator("forecast_host", "air_quality_host", mode="after")
    @classmethod
    def strip_scheme_and_slash(cls, v: str) -> str:
        """Accept 'https://host/' as well as a bare host name."""
        host = str(v).strip()
        for scheme in ("https://", "http://"):
            if host.startswith(scheme):
                host = host[len(scheme):]
        return host.rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
