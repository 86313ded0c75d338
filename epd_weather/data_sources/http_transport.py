"""requests-backed HTTP transport and a Linux wireless signal probe."""
from __future__ import annotations

from typing import Any, Mapping, Optional

import requests
from urllib3.exceptions import NameResolutionError

from epd_weather.data_sources.base import HttpTransport, SignalProbe, TransportResponse
from epd_weather.retry_policy import (
    CONNECTION_LOST,
    CONNECTION_REFUSED,
    ENCODING,
    NO_HTTP_SERVER,
    NO_STREAM,
    NOT_CONNECTED,
    READ_TIMEOUT,
    SEND_HEADER_FAILED,
    SEND_PAYLOAD_FAILED,
    STREAM_WRITE,
    TOO_LESS_RAM,
)
from epd_utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/http_transport")

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "epd-weather/0.1",
}

TRANSPORT_ERROR_PHRASES = {
    CONNECTION_REFUSED: "Connection Refused",
    SEND_HEADER_FAILED: "Send Header Failed",
    SEND_PAYLOAD_FAILED: "Send Payload Failed",
    NOT_CONNECTED: "Not Connected",
    CONNECTION_LOST: "Connection Lost",
    NO_STREAM: "No Stream",
    NO_HTTP_SERVER: "No HTTP Server",
    TOO_LESS_RAM: "Too Less RAM",
    ENCODING: "Encoding",
    STREAM_WRITE: "Stream Write",
    READ_TIMEOUT: "Read Timeout",
}


def status_phrase(status_code: int) -> str:
    """Short display text for an HTTP status or a negative transport code."""
    if status_code > 0:
        return f"HTTP {status_code}"
    return TRANSPORT_ERROR_PHRASES.get(status_code, "Unknown Error")


def _is_name_resolution_failure(exc: BaseException) -> bool:
    """True when a requests ConnectionError was caused by DNS lookup failing."""
    seen = set()
    pending = [exc]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, NameResolutionError):
            return True
        pending.append(getattr(current, "reason", None))
        pending.append(current.__cause__)
        pending.append(current.__context__)
        pending.extend(arg for arg in current.args if isinstance(arg, BaseException))
    return False


def transport_code_for(exc: requests.exceptions.RequestException) -> int:
    """Map a requests exception onto the transport code the retry policy understands."""
    # Order matters: ConnectTimeout is both a Timeout and a ConnectionError,
    # SSLError is a ConnectionError.
    if isinstance(exc, requests.exceptions.ConnectTimeout):
        return CONNECTION_REFUSED
    if isinstance(exc, requests.exceptions.ReadTimeout):
        return READ_TIMEOUT
    if isinstance(exc, requests.exceptions.SSLError):
        return NO_HTTP_SERVER
    if isinstance(exc, requests.exceptions.ChunkedEncodingError):
        return CONNECTION_LOST
    if isinstance(exc, requests.exceptions.ContentDecodingError):
        return ENCODING
    if isinstance(exc, requests.exceptions.ConnectionError):
        if _is_name_resolution_failure(exc):
            return NO_HTTP_SERVER
        return CONNECTION_REFUSED
    return SEND_HEADER_FAILED


class RequestsTransport(HttpTransport):
    """
    Blocking GETs through requests, one short-lived session per call.

    ``timeout`` is handed to requests as a single float, which requests
    applies to the connect and then to each socket read on its own. It is
    not a cap on the whole attempt: a server that keeps trickling bytes
    faster than ``timeout`` apart can hold one attempt open for longer.
    """

    def __init__(self, headers: Optional[Mapping[str, str]] = None) -> None:
        self.headers = dict(headers or DEFAULT_HEADERS)

    def get(self, url: str, *, params: Mapping[str, Any], timeout: float) -> TransportResponse:
        """Perform one GET; network failures come back as negative status codes."""
        # The session (and its pooled connection) never outlives this attempt.
        with requests.Session() as session:
            try:
                resp = session.get(url, params=dict(params), headers=self.headers, timeout=timeout)
                body = resp.text
            except requests.exceptions.RequestException as exc:
                code = transport_code_for(exc)
                logger.debug(
                    "GET %s failed: %s (%s)",
                    url,
                    exc.__class__.__name__,
                    status_phrase(code),
                )
                return TransportResponse(status_code=code)

        logger.debug("GET %s -> %d, %d bytes", url, resp.status_code, len(body))
        return TransportResponse(status_code=resp.status_code, body=body)


class WirelessSignalProbe(SignalProbe):
    """
    Read the link level of the first wireless interface from /proc/net/wireless.

    The file looks like::

        Inter-| sta-|   Quality        |   Discarded packets
         face | tus | link level noise |  nwid  crypt   frag  retry   misc | beacon
         wlan0: 0000   54.  -56.  -256        0      0      0      0     12        0
    """

    def __init__(self, path: str = "/proc/net/wireless") -> None:
        self.path = path

    def rssi(self) -> Optional[int]:
        """Return the level column (dBm) or None when there is no wireless link."""
        try:
            with open(self.path, encoding="utf-8") as fh:
                lines = fh.read().splitlines()
        except OSError:
            return None

        for line in lines[2:]:
            if ":" not in line:
                continue
            columns = line.split(":", 1)[1].split()
            if len(columns) < 3:
                continue
            try:
                return int(float(columns[2].rstrip(".")))
            except ValueError:
                continue
        return None
