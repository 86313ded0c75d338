import json
import time
import unittest

from epd_weather.data_sources.open_meteo_parser import deserialize_air_quality, deserialize_forecast
from epd_weather.models import CurrentConditions, ForecastResult, ParseError
from epd_weather.timestamps import normalize


def _hour_times(count):
    return [f"2024-01-{1 + i // 24:02d}T{i % 24:02d}:00" for i in range(count)]


def _day_times(count):
    return [f"2024-01-{1 + i:02d}" for i in range(count)]


def _make_forecast_payload(hours=3, days=2):
    return {
        "latitude": 52.52,
        "longitude": 13.419998,
        "generationtime_ms": 0.2,
        "utc_offset_seconds": 3600,
        "timezone": "Europe/Berlin",
        "timezone_abbreviation": "CET",
        "current": {
            "time": "2024-01-01T12:00",
            "temperature_2m": 3.4,
            "relative_humidity_2m": 81,
            "apparent_temperature": -0.2,
            "pressure_msl": 1013.6,
            "wind_speed_10m": 14.8,
            "wind_direction_10m": 247,
            "wind_gusts_10m": 31.3,
            "weather_code": 3,
            "uv_index": 0.65,
            "visibility": 24140.0,
            "is_day": 1,
        },
        "hourly": {
            "time": _hour_times(hours),
            "temperature_2m": [float(i) for i in range(hours)],
            "relative_humidity_2m": [80 + i % 10 for i in range(hours)],
            "precipitation_probability": [i % 100 for i in range(hours)],
            "precipitation": [0.1 * (i % 3) for i in range(hours)],
            "weather_code": [61 for _ in range(hours)],
            "is_day": [0 for _ in range(hours)],
        },
        "daily": {
            "time": _day_times(days),
            "temperature_2m_max": [5.0 + i for i in range(days)],
            "temperature_2m_min": [-1.0 - i for i in range(days)],
            "sunrise": [f"2024-01-{1 + i:02d}T08:17" for i in range(days)],
            "sunset": [f"2024-01-{1 + i:02d}T16:02" for i in range(days)],
            "precipitation_probability_max": [40 for _ in range(days)],
            "precipitation_sum": [1.2 for _ in range(days)],
            "weather_code": [63 for _ in range(days)],
            "uv_index_max": [0.9 for _ in range(days)],
        },
    }


class TestDeserializeForecast(unittest.TestCase):
    def test_full_payload(self):
        result, error = deserialize_forecast(json.dumps(_make_forecast_payload()))
        self.assertIsNone(error)
        self.assertIsInstance(result, ForecastResult)
        self.assertAlmostEqual(result.latitude, 52.52)
        self.assertEqual(result.timezone, "Europe/Berlin")
        self.assertEqual(result.utc_offset_seconds, 3600)

        cur = result.current
        self.assertEqual(cur.temp, 3.4)
        self.assertEqual(cur.feels_like, -0.2)
        self.assertEqual(cur.humidity, 81)
        self.assertEqual(cur.pressure, 1013)
        self.assertEqual(cur.wind_deg, 247)
        self.assertEqual(cur.wind_gust, 31.3)
        self.assertEqual(cur.visibility, 24140)
        self.assertEqual(cur.weather_code, 3)

        self.assertEqual(len(result.hourly), 3)
        self.assertEqual(result.hourly[2].temp, 2.0)
        self.assertEqual(result.hourly[1].dt, normalize("2024-01-01T01:00"))
        self.assertEqual(result.hourly[0].is_day, 0)

        self.assertEqual(len(result.daily), 2)
        self.assertEqual(result.daily[1].temp_max, 6.0)
        self.assertEqual(result.daily[1].temp_min, -2.0)
        self.assertEqual(result.daily[0].pop, 40.0)
        self.assertEqual(result.daily[0].weather_code, 63)

    def test_daily_dates_map_to_noon(self):
        result, _ = deserialize_forecast(json.dumps(_make_forecast_payload(days=3)))
        for day in result.daily:
            self.assertEqual(time.localtime(day.dt).tm_hour, 12)

    def test_current_sun_times_come_from_first_day(self):
        result, _ = deserialize_forecast(json.dumps(_make_forecast_payload()))
        self.assertEqual(result.current.sunrise, result.daily[0].sunrise)
        self.assertEqual(result.current.sunset, result.daily[0].sunset)
        self.assertEqual(result.current.sunrise, normalize("2024-01-01T08:17"))

    def test_hourly_is_truncated_to_48_in_order(self):
        payload = _make_forecast_payload(hours=60)
        result, error = deserialize_forecast(json.dumps(payload))
        self.assertIsNone(error)
        self.assertEqual(len(result.hourly), 48)
        self.assertEqual([h.temp for h in result.hourly], [float(i) for i in range(48)])
        self.assertEqual(result.hourly[47].dt, normalize(payload["hourly"]["time"][47]))

    def test_daily_is_truncated_to_8(self):
        result, _ = deserialize_forecast(json.dumps(_make_forecast_payload(days=10)))
        self.assertEqual(len(result.daily), 8)

    def test_short_secondary_array_uses_default(self):
        payload = _make_forecast_payload(hours=3)
        payload["hourly"]["temperature_2m"] = [7.0, 8.0]
        del payload["hourly"]["is_day"]
        result, error = deserialize_forecast(json.dumps(payload))
        self.assertIsNone(error)
        self.assertEqual(len(result.hourly), 3)
        self.assertEqual(result.hourly[1].temp, 8.0)
        self.assertEqual(result.hourly[2].temp, 0.0)
        self.assertEqual(result.hourly[2].is_day, 1)
        self.assertEqual(result.hourly[2].humidity, 82)

    def test_empty_daily_leaves_sun_times_zero(self):
        payload = _make_forecast_payload()
        payload["daily"]["time"] = []
        result, error = deserialize_forecast(json.dumps(payload))
        self.assertIsNone(error)
        self.assertEqual(result.daily, ())
        self.assertEqual(result.current.sunrise, 0)
        self.assertEqual(result.current.sunset, 0)

    def test_missing_sections_use_defaults(self):
        result, error = deserialize_forecast("{}")
        self.assertIsNone(error)
        self.assertEqual(result.timezone, "UTC")
        self.assertEqual(result.utc_offset_seconds, 0)
        self.assertEqual(result.current, CurrentConditions())
        self.assertEqual(result.current.visibility, 10000)
        self.assertEqual(result.current.is_day, 1)
        self.assertEqual(result.hourly, ())

    def test_wrong_types_use_defaults(self):
        payload = _make_forecast_payload()
        payload["current"]["temperature_2m"] = "warm"
        payload["current"]["relative_humidity_2m"] = None
        payload["timezone"] = 7
        payload["hourly"]["time"][1] = 12345
        payload["daily"]["sunset"] = "not a list"
        result, error = deserialize_forecast(json.dumps(payload))
        self.assertIsNone(error)
        self.assertEqual(result.current.temp, 0.0)
        self.assertEqual(result.current.humidity, 0)
        self.assertEqual(result.timezone, "UTC")
        self.assertEqual(result.hourly[1].dt, 0)
        self.assertEqual(result.daily[0].sunset, 0)
        self.assertEqual(result.current.sunset, 0)

    def test_non_object_root_yields_defaults(self):
        result, error = deserialize_forecast("[1, 2, 3]")
        self.assertIsNone(error)
        self.assertEqual(result, ForecastResult())

    def test_invalid_json_returns_parse_error(self):
        body = json.dumps(_make_forecast_payload())[:-5]
        result, error = deserialize_forecast(body)
        self.assertIsNone(result)
        self.assertIsInstance(error, ParseError)
        self.assertTrue(error.message)

    def test_empty_body_returns_parse_error(self):
        for body in ("", "   ", None):
            result, error = deserialize_forecast(body)
            self.assertIsNone(result)
            self.assertEqual(error.message, "EmptyInput")

    def test_oversized_body_returns_parse_error(self):
        body = json.dumps(_make_forecast_payload())
        result, error = deserialize_forecast(body, max_payload_bytes=100)
        self.assertIsNone(result)
        self.assertTrue(error.message.startswith("NoMemory"))

    def test_accepts_bytes(self):
        result, error = deserialize_forecast(json.dumps(_make_forecast_payload()).encode("utf-8"))
        self.assertIsNone(error)
        self.assertEqual(len(result.hourly), 3)

    def test_lone_surrogate_in_text_body_is_parsed(self):
        result, error = deserialize_forecast('{"timezone": "\ud800"}')
        self.assertIsNone(error)
        self.assertEqual(result.timezone, "\ud800")

    def test_lone_surrogate_in_broken_body_returns_parse_error(self):
        result, error = deserialize_forecast('{"timezone": "\ud800"')
        self.assertIsNone(result)
        self.assertIsInstance(error, ParseError)

    def test_lone_surrogate_counts_toward_capacity(self):
        body = '{"timezone": "' + "\ud800" * 40 + '"}'
        result, error = deserialize_forecast(body, max_payload_bytes=100)
        self.assertIsNone(result)
        self.assertTrue(error.message.startswith("NoMemory"))


class TestDeserializeAirQuality(unittest.TestCase):
    def test_reads_us_aqi(self):
        result, error = deserialize_air_quality('{"current":{"us_aqi":42}}')
        self.assertIsNone(error)
        self.assertEqual(result.aqi, 42)

    def test_missing_us_aqi_defaults_to_zero(self):
        result, error = deserialize_air_quality('{"current":{}}')
        self.assertIsNone(error)
        self.assertEqual(result.aqi, 0)

    def test_aqi_is_not_range_checked(self):
        result, _ = deserialize_air_quality('{"current":{"us_aqi":731}}')
        self.assertEqual(result.aqi, 731)

    def test_invalid_json(self):
        result, error = deserialize_air_quality('{"current":')
        self.assertIsNone(result)
        self.assertIsInstance(error, ParseError)

    def test_lone_surrogate_does_not_raise(self):
        result, error = deserialize_air_quality('{"current":{"us_aqi":5},"note":"\udfff"}')
        self.assertIsNone(error)
        self.assertEqual(result.aqi, 5)
        result, error = deserialize_air_quality('{"note":"\udfff"')
        self.assertIsNone(result)
        self.assertIsInstance(error, ParseError)


if __name__ == "__main__":
    unittest.main()
