"""Fetch forecast and air-quality data from the Open-Meteo APIs with retries."""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, Tuple

from epd_weather.config import Settings
from epd_weather.data_sources.base import HttpTransport, SignalProbe, TransportResponse
from epd_weather.data_sources.http_transport import status_phrase
from epd_weather.data_sources.open_meteo_parser import deserialize_air_quality, deserialize_forecast
from epd_weather.models import (
    MAX_DAILY,
    MAX_HOURLY,
    AirQualityResult,
    EndpointKind,
    FailureKind,
    FetchOutcome,
    FetchResult,
    ForecastResult,
    ParseError,
)
from epd_weather.retry_policy import FetchEvent, FetchState, TERMINAL_STATES, classify, transition
from epd_utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/open_meteo_client")

CURRENT_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "pressure_msl",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
    "weather_code",
    "uv_index",
    "visibility",
    "is_day",
]

HOURLY_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation_probability",
    "precipitation",
    "weather_code",
    "is_day",
]

DAILY_VARS = [
    "temperature_2m_max",
    "temperature_2m_min",
    "sunrise",
    "sunset",
    "precipitation_probability_max",
    "precipitation_sum",
    "weather_code",
    "uv_index_max",
]

AIR_CURRENT_VARS = ["us_aqi"]

ENDPOINT_LABELS = {
    EndpointKind.FORECAST: "Forecast",
    EndpointKind.AIR_QUALITY: "Air quality",
}


def build_request(kind: EndpointKind, settings: Settings) -> Tuple[str, Dict[str, Any]]:
    """Return the URL and query parameters for ``kind``."""
    if kind is EndpointKind.FORECAST:
        url = f"https://{settings.forecast_host}/v1/forecast"
        params = {
            "latitude": settings.latitude,
            "longitude": settings.longitude,
            "current": ",".join(CURRENT_VARS),
            "hourly": ",".join(HOURLY_VARS),
            "daily": ",".join(DAILY_VARS),
            "timezone": settings.api_timezone,
            "forecast_days": MAX_DAILY,
            "forecast_hours": MAX_HOURLY,
        }
        return url, params
    if kind is EndpointKind.AIR_QUALITY:
        url = f"https://{settings.air_quality_host}/v1/air-quality"
        params = {
            "latitude": settings.latitude,
            "longitude": settings.longitude,
            "current": ",".join(AIR_CURRENT_VARS),
        }
        return url, params
    raise ValueError(f"Unknown endpoint kind '{kind}'")


def failure_message(
    kind: FailureKind,
    *,
    attempts: int,
    status_code: Optional[int] = None,
    rssi: Optional[int] = None,
    parse_error: Optional[ParseError] = None,
) -> str:
    """Build the text shown on screen when a fetch gives up."""
    if kind is FailureKind.PARSE:
        detail = parse_error.message if parse_error is not None else "unknown"
        return f"JSON parse: {detail}"
    signal = f"{rssi}dBm" if rssi is not None else "n/a"
    noun = "attempt" if attempts == 1 else "attempts"
    return f"{status_phrase(status_code or 0)} RSSI:{signal} (after {attempts} {noun})"


class OpenMeteoClient:
    """Synchronous Open-Meteo client with a fixed retry ceiling and delay.

    Each ``fetch`` runs the state machine in ``epd_weather.retry_policy``
    until it reaches DONE or FAILED and always returns a FetchOutcome; no
    upstream failure escapes as an exception.
    """

    def __init__(
        self,
        settings: Settings,
        transport: HttpTransport,
        signal_probe: SignalProbe,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Bind the client to fixed settings and its collaborators."""
        self.settings = settings
        self.transport = transport
        self.signal_probe = signal_probe
        self.sleep = sleep
        self.max_attempts = settings.retry_attempts
        self.retry_delay_seconds = settings.retry_delay_seconds

    def get_forecast(self) -> FetchOutcome:
        """Fetch current, hourly (48 h) and daily (8 d) weather."""
        return self.fetch(EndpointKind.FORECAST)

    def get_air_quality(self) -> FetchOutcome:
        """Fetch the current US AQI."""
        return self.fetch(EndpointKind.AIR_QUALITY)

    def _deserialize(self, kind: EndpointKind, body: str) -> Tuple[Optional[FetchResult], Optional[ParseError]]:
        if kind is EndpointKind.FORECAST:
            return deserialize_forecast(body, max_payload_bytes=self.settings.max_payload_bytes)
        return deserialize_air_quality(body, max_payload_bytes=self.settings.max_payload_bytes)

    def fetch(self, kind: EndpointKind) -> FetchOutcome:
        """Run one fetch for ``kind``: request, retry transient failures, parse."""
        url, params = build_request(kind, self.settings)
        label = ENDPOINT_LABELS[kind]
        logger.info(f"Fetching {label.lower()} from Open-Meteo...")
        logger.debug("Request", extra={"url": url, "params": params})

        state = FetchState.ATTEMPT
        attempt = 1
        response = TransportResponse(status_code=0)
        result: Optional[FetchResult] = None
        parse_error: Optional[ParseError] = None
        failure: Optional[FailureKind] = None

        while state not in TERMINAL_STATES:
            if state is FetchState.ATTEMPT:
                if attempt > 1:
                    logger.info("Retry attempt %d/%d", attempt, self.max_attempts)
                response = self.transport.get(
                    url, params=params, timeout=self.settings.http_timeout_seconds
                )
                event = classify(response.status_code)
                if event is not FetchEvent.SUCCESS:
                    logger.warning(
                        "%s API error: %s (%d)",
                        label,
                        status_phrase(response.status_code),
                        response.status_code,
                    )
            elif state is FetchState.BACKOFF:
                logger.info(
                    "Retryable error, waiting %.2f s before retry...", self.retry_delay_seconds
                )
                self.sleep(self.retry_delay_seconds)
                event = FetchEvent.BACKOFF_ELAPSED
            else:
                result, parse_error = self._deserialize(kind, response.body)
                event = FetchEvent.PARSED if parse_error is None else FetchEvent.PARSE_FAILED
                if parse_error is not None:
                    logger.error("%s JSON parsing failed: %s", label, parse_error.message)

            step = transition(state, event, attempt=attempt, max_attempts=self.max_attempts)
            if state is FetchState.BACKOFF and step.state is FetchState.ATTEMPT:
                attempt += 1
            state = step.state
            failure = step.failure

        if state is FetchState.DONE:
            logger.info(f"{label} data received successfully")
            return FetchOutcome(
                endpoint=kind,
                result=result,
                message=f"{label} data received successfully",
                attempts=attempt,
            )

        if failure is FailureKind.PARSE:
            return FetchOutcome(
                endpoint=kind,
                failure=failure,
                message=failure_message(failure, attempts=attempt, parse_error=parse_error),
                attempts=attempt,
            )

        rssi = self.signal_probe.rssi()
        message = failure_message(
            failure, attempts=attempt, status_code=response.status_code, rssi=rssi
        )
        logger.error(f"{label} fetch failed: {message}")
        return FetchOutcome(
            endpoint=kind,
            failure=failure,
            message=message,
            attempts=attempt,
            status_code=response.status_code,
            rssi=rssi,
        )


def forecast_or_none(outcome: FetchOutcome) -> Optional[ForecastResult]:
    """Return the ForecastResult carried by a successful outcome, else None."""
    return outcome.result if outcome.ok and isinstance(outcome.result, ForecastResult) else None


def air_quality_or_none(outcome: FetchOutcome) -> Optional[AirQualityResult]:
    """Return the AirQualityResult carried by a successful outcome, else None."""
    return outcome.result if outcome.ok and isinstance(outcome.result, AirQualityResult) else None
