import unittest

from epd_weather.config import Settings
from epd_weather.data_sources.factory import DEFAULT_TRANSPORT_NAME, build_client
from epd_weather.data_sources.http_transport import RequestsTransport, WirelessSignalProbe
from epd_weather.data_sources.open_meteo_client import OpenMeteoClient


class TestDataSourceFactory(unittest.TestCase):
    def test_build_requests_client_default(self):
        settings = Settings(transport=DEFAULT_TRANSPORT_NAME, retry_attempts=4, wireless_stats_path="/tmp/wl")
        client = build_client(settings)
        self.assertIsInstance(client, OpenMeteoClient)
        self.assertIsInstance(client.transport, RequestsTransport)
        self.assertIsInstance(client.signal_probe, WirelessSignalProbe)
        self.assertEqual(client.signal_probe.path, "/tmp/wl")
        self.assertEqual(client.max_attempts, 4)
        self.assertIs(client.settings, settings)

    def test_transport_name_is_case_insensitive(self):
        client = build_client(Settings(transport="Requests"))
        self.assertIsInstance(client.transport, RequestsTransport)

    def test_unknown_transport_raises(self):
        with self.assertRaises(ValueError):
            build_client(Settings(transport="carrier-pigeon"))


if __name__ == "__main__":
    unittest.main()
