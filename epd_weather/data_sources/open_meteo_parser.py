"""Turn raw Open-Meteo JSON bodies into bounded, typed records."""
from __future__ import annotations

import json
from typing import Any, Optional, Sequence, Tuple, Type, TypeVar, Union

from epd_utils.logging_utils import get_tagged_logger, payload_preview
from epd_weather.data_sources.field_reader import array_at, read, read_index
from epd_weather.models import (
    MAX_DAILY,
    MAX_HOURLY,
    AirQualityResult,
    CurrentConditions,
    DailyEntry,
    ForecastResult,
    HourlyEntry,
    ParseError,
)
from epd_weather.timestamps import normalize

logger = get_tagged_logger(__name__, tag="data_sources/open_meteo_parser")

DEFAULT_MAX_PAYLOAD_BYTES = 262144

R = TypeVar("R")

# (record attribute, JSON key, default). The default's type is the accepted JSON type.
FieldSpec = Tuple[str, str, Union[int, float, str]]

CURRENT_FIELDS: Tuple[FieldSpec, ...] = (
    ("temp", "temperature_2m", 0.0),
    ("feels_like", "apparent_temperature", 0.0),
    ("humidity", "relative_humidity_2m", 0),
    ("pressure", "pressure_msl", 0),
    ("wind_speed", "wind_speed_10m", 0.0),
    ("wind_deg", "wind_direction_10m", 0),
    ("wind_gust", "wind_gusts_10m", 0.0),
    ("uvi", "uv_index", 0.0),
    ("visibility", "visibility", 10000),
    ("weather_code", "weather_code", 0),
    ("is_day", "is_day", 1),
)

HOURLY_FIELDS: Tuple[FieldSpec, ...] = (
    ("temp", "temperature_2m", 0.0),
    ("humidity", "relative_humidity_2m", 0),
    ("pop", "precipitation_probability", 0.0),
    ("precipitation", "precipitation", 0.0),
    ("weather_code", "weather_code", 0),
    ("is_day", "is_day", 1),
)

DAILY_FIELDS: Tuple[FieldSpec, ...] = (
    ("temp_max", "temperature_2m_max", 0.0),
    ("temp_min", "temperature_2m_min", 0.0),
    ("pop", "precipitation_probability_max", 0.0),
    ("precipitation", "precipitation_sum", 0.0),
    ("weather_code", "weather_code", 0),
    ("uvi", "uv_index_max", 0.0),
)

# Local date/time strings converted to epoch seconds.
HOURLY_TIME_FIELDS: Tuple[Tuple[str, str], ...] = (("dt", "time"),)
DAILY_TIME_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("dt", "time"),
    ("sunrise", "sunrise"),
    ("sunset", "sunset"),
)


def _load_json(raw: Union[str, bytes, None], max_payload_bytes: int) -> Tuple[Any, Optional[ParseError]]:
    """Parse ``raw`` or explain why it could not be parsed."""
    if raw is None:
        return None, ParseError("EmptyInput")
    size = len(raw.encode("utf-8", errors="surrogatepass")) if isinstance(raw, str) else len(raw)
    if size > max_payload_bytes:
        return None, ParseError(
            f"NoMemory: payload of {size} bytes exceeds capacity of {max_payload_bytes} bytes"
        )
    if not raw.strip():
        return None, ParseError("EmptyInput")
    try:
        return json.loads(raw), None
    except ValueError as exc:
        return None, ParseError(str(exc))
    except RecursionError:
        return None, ParseError("TooDeep")


def _read_fields(obj: Any, fields: Sequence[FieldSpec]) -> dict:
    return {attr: read(obj, (key,), default) for attr, key, default in fields}


def _read_series(
    section: Any,
    limit: int,
    fields: Sequence[FieldSpec],
    time_fields: Sequence[Tuple[str, str]],
    record_cls: Type[R],
) -> Tuple[R, ...]:
    """
    Build up to ``limit`` records from parallel arrays keyed off ``section["time"]``.

    Only the time array decides the count; a shorter secondary array just
    yields the field default at the missing indices.
    """
    count = min(limit, len(array_at(section, ("time",))))
    columns = {key: array_at(section, (key,)) for _, key, _ in fields}
    time_columns = {key: array_at(section, (key,)) for _, key in time_fields}

    records = []
    for i in range(count):
        values = {attr: read_index(columns[key], i, default) for attr, key, default in fields}
        for attr, key in time_fields:
            values[attr] = normalize(read_index(time_columns[key], i, ""))
        records.append(record_cls(**values))
    return tuple(records)


def deserialize_forecast(
    raw: Union[str, bytes, None],
    *,
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
) -> Tuple[Optional[ForecastResult], Optional[ParseError]]:
    """
    Map a ``/v1/forecast`` body onto a ForecastResult.

    Only a body that is not JSON at all (or is larger than
    ``max_payload_bytes``) produces a ParseError; missing or mistyped fields
    fall back to their defaults so a partial response still renders.
    """
    doc, error = _load_json(raw, max_payload_bytes)
    if error is not None:
        logger.warning("Forecast deserialization error: %s", error.message)
        logger.debug("Forecast payload head: %s", payload_preview(_as_text(raw)))
        return None, error

    current_values = _read_fields(_section(doc, "current"), CURRENT_FIELDS)
    hourly = _read_series(
        _section(doc, "hourly"), MAX_HOURLY, HOURLY_FIELDS, HOURLY_TIME_FIELDS, HourlyEntry
    )
    daily = _read_series(
        _section(doc, "daily"), MAX_DAILY, DAILY_FIELDS, DAILY_TIME_FIELDS, DailyEntry
    )

    if daily:
        current_values["sunrise"] = daily[0].sunrise
        current_values["sunset"] = daily[0].sunset
    current = CurrentConditions(**current_values)

    logger.debug(
        "Parsed temp: %.2f, humidity: %d, pressure: %d (hourly=%d, daily=%d)",
        current.temp,
        current.humidity,
        current.pressure,
        len(hourly),
        len(daily),
    )

    return ForecastResult(
        latitude=read(doc, ("latitude",), 0.0),
        longitude=read(doc, ("longitude",), 0.0),
        timezone=read(doc, ("timezone",), "UTC"),
        utc_offset_seconds=read(doc, ("utc_offset_seconds",), 0),
        current=current,
        hourly=hourly,
        daily=daily,
    ), None


def deserialize_air_quality(
    raw: Union[str, bytes, None],
    *,
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
) -> Tuple[Optional[AirQualityResult], Optional[ParseError]]:
    """Map a ``/v1/air-quality`` body onto an AirQualityResult (``current.us_aqi``)."""
    doc, error = _load_json(raw, max_payload_bytes)
    if error is not None:
        logger.warning("Air quality deserialization error: %s", error.message)
        logger.debug("Air quality payload head: %s", payload_preview(_as_text(raw)))
        return None, error

    return AirQualityResult(aqi=read(doc, ("current", "us_aqi"), 0)), None


def _section(doc: Any, name: str) -> Any:
    """Return ``doc[name]`` when ``doc`` is an object, else None."""
    return doc.get(name) if isinstance(doc, dict) else None


def _as_text(raw: Union[str, bytes, None]) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw or ""
