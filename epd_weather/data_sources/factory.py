"""Factory helpers for wiring the Open-Meteo client at startup."""

from __future__ import annotations

from epd_weather import config
from epd_weather.data_sources.http_transport import RequestsTransport, WirelessSignalProbe
from epd_weather.data_sources.open_meteo_client import OpenMeteoClient
from epd_utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_TRANSPORT_NAME = "requests"


def build_client(settings: config.Settings | None = None) -> OpenMeteoClient:
    """Instantiate the client with the configured transport and signal probe."""
    settings = settings or config.settings
    transport_name = (settings.transport or DEFAULT_TRANSPORT_NAME).lower()

    if transport_name == "requests":
        logger.info(
            "Using requests transport",
            extra={
                "forecast_host": settings.forecast_host,
                "air_quality_host": settings.air_quality_host,
                "retry_attempts": settings.retry_attempts,
            },
        )
        return OpenMeteoClient(
            settings,
            RequestsTransport(),
            WirelessSignalProbe(settings.wireless_stats_path),
        )

    raise ValueError(f"Unknown transport '{transport_name}'")
