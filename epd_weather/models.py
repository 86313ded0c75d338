"""Typed records produced by the Open-Meteo fetcher.

All values stay in the API's native units (°C, km/h, hPa, mm, m). Timestamps
are epoch seconds; 0 means the source value was missing or unparseable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

MAX_HOURLY = 48
MAX_DAILY = 8


class EndpointKind(str, Enum):
    """Which Open-Meteo endpoint a fetch targets."""
    FORECAST = "forecast"
    AIR_QUALITY = "air_quality"


class FailureKind(str, Enum):
    """Why a fetch ended without a result."""
    TRANSPORT = "transport"  # transient network failure, retries exhausted
    HTTP = "http"            # non-OK status or permanent transport fault
    PARSE = "parse"          # malformed or oversized JSON body


@dataclass(frozen=True)
class CurrentConditions:
    """Snapshot of current conditions; sunrise/sunset come from daily[0]."""
    temp: float = 0.0
    feels_like: float = 0.0
    humidity: int = 0
    pressure: int = 0
    wind_speed: float = 0.0
    wind_deg: int = 0
    wind_gust: float = 0.0
    uvi: float = 0.0
    visibility: int = 10000
    weather_code: int = 0
    is_day: int = 1
    sunrise: int = 0
    sunset: int = 0


@dataclass(frozen=True)
class HourlyEntry:
    """One forecast hour."""
    dt: int = 0
    temp: float = 0.0
    humidity: int = 0
    pop: float = 0.0  # precipitation probability, 0-100
    precipitation: float = 0.0
    weather_code: int = 0
    is_day: int = 1


@dataclass(frozen=True)
class DailyEntry:
    """One forecast day; ``dt`` is local noon."""
    dt: int = 0
    temp_min: float = 0.0
    temp_max: float = 0.0
    sunrise: int = 0
    sunset: int = 0
    pop: float = 0.0
    precipitation: float = 0.0
    weather_code: int = 0
    uvi: float = 0.0


@dataclass(frozen=True)
class ForecastResult:
    """Combined current/hourly/daily forecast for one location."""
    latitude: float = 0.0
    longitude: float = 0.0
    timezone: str = "UTC"
    utc_offset_seconds: int = 0
    current: CurrentConditions = field(default_factory=CurrentConditions)
    hourly: Tuple[HourlyEntry, ...] = ()
    daily: Tuple[DailyEntry, ...] = ()


@dataclass(frozen=True)
class AirQualityResult:
    """US AQI for the location (nominally 0-500, not range-checked)."""
    aqi: int = 0


@dataclass(frozen=True)
class ParseError:
    """JSON body could not be turned into a record."""
    message: str


FetchResult = Union[ForecastResult, AirQualityResult]


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one ``fetch`` call: a record, or a failure and a display message."""
    endpoint: EndpointKind
    result: Optional[FetchResult] = None
    failure: Optional[FailureKind] = None
    message: str = ""
    attempts: int = 0
    status_code: Optional[int] = None
    rssi: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.failure is None
