"""Open-Meteo acquisition: transports, parsing and the retrying client."""

from .base import (
    CallableSignalProbe,
    CallableTransport,
    HttpTransport,
    SignalProbe,
    TransportResponse,
)
from .factory import build_client
from .http_transport import RequestsTransport, WirelessSignalProbe
from .open_meteo_client import OpenMeteoClient, build_request
from .open_meteo_parser import deserialize_air_quality, deserialize_forecast

__all__ = [
    "build_client",
    "build_request",
    "OpenMeteoClient",
    "HttpTransport",
    "SignalProbe",
    "TransportResponse",
    "CallableTransport",
    "CallableSignalProbe",
    "RequestsTransport",
    "WirelessSignalProbe",
    "deserialize_forecast",
    "deserialize_air_quality",
]
