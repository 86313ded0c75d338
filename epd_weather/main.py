"""Fetch both Open-Meteo endpoints once and report what came back."""

from __future__ import annotations

import datetime as dt
from typing import Optional, Tuple

from epd_weather import config
from epd_weather.data_sources.factory import build_client
from epd_weather.data_sources.open_meteo_client import (
    OpenMeteoClient,
    air_quality_or_none,
    forecast_or_none,
)
from epd_weather.models import FetchOutcome
from epd_utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="main")


def fetch_all(client: OpenMeteoClient) -> Tuple[FetchOutcome, FetchOutcome]:
    """Fetch the forecast, then air quality, one after the other."""
    forecast = client.get_forecast()
    air_quality = client.get_air_quality()
    return forecast, air_quality


def _fmt_ts(ts: int) -> str:
    if not ts:
        return "--"
    return dt.datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


def summarize(forecast: FetchOutcome, air_quality: FetchOutcome) -> str:
    """Plain-text summary of both outcomes."""
    lines = []
    fc = forecast_or_none(forecast)
    if fc is None:
        lines.append(f"forecast: {forecast.message}")
    else:
        cur = fc.current
        lines.append(
            f"forecast: {fc.latitude:.2f},{fc.longitude:.2f} {fc.timezone} "
            f"temp={cur.temp} feels_like={cur.feels_like} humidity={cur.humidity} "
            f"pressure={cur.pressure} wind={cur.wind_speed}@{cur.wind_deg} code={cur.weather_code}"
        )
        lines.append(f"    sunrise={_fmt_ts(cur.sunrise)} sunset={_fmt_ts(cur.sunset)}")
        lines.append(f"    hourly entries={len(fc.hourly)} daily entries={len(fc.daily)}")
        for day in fc.daily:
            lines.append(
                f"    {_fmt_ts(day.dt)} min={day.temp_min} max={day.temp_max} "
                f"pop={day.pop} code={day.weather_code}"
            )

    aq = air_quality_or_none(air_quality)
    if aq is None:
        lines.append(f"air quality: {air_quality.message}")
    else:
        lines.append(f"air quality: us_aqi={aq.aqi}")
    return "\n".join(lines)


def main(settings: Optional[config.Settings] = None, client: Optional[OpenMeteoClient] = None) -> int:
    """Run one fetch cycle; exit code 0 when the forecast succeeded.

    Air quality is supplementary, so its failure is reported but does not
    fail the run.
    """
    settings = settings or config.settings
    setup_logging(level=settings.log_level, job_name="epd_weather_fetch")

    client = client or build_client(settings)
    forecast, air_quality = fetch_all(client)
    print(summarize(forecast, air_quality))

    if not air_quality.ok:
        logger.warning(f"Air quality unavailable: {air_quality.message}")
    return 0 if forecast.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
