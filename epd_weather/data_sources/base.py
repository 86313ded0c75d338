"""Interfaces for the pieces the Open-Meteo client talks to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol


@dataclass(frozen=True)
class TransportResponse:
    """Status and body of one HTTP exchange.

    ``status_code`` is the HTTP status, or a negative transport code when no
    response was received (see ``epd_weather.retry_policy``).
    """
    status_code: int
    body: str = ""


class HttpTransport(Protocol):
    """Anything that can perform a single blocking GET."""

    def get(
        self,
        url: str,
        *,
        params: Mapping[str, Any],
        timeout: float,
    ) -> TransportResponse:
        """Issue one request on a fresh connection; report failures as negative codes."""
        ...


class SignalProbe(Protocol):
    """Source of the current wireless signal strength."""

    def rssi(self) -> Optional[int]:
        """Return the signal level in dBm, or None when it cannot be read."""
        ...


@dataclass
class CallableTransport(HttpTransport):
    """Wrap a plain callable so it can stand in for a real transport."""

    func: Callable[..., TransportResponse]

    def get(self, url: str, *, params: Mapping[str, Any], timeout: float) -> TransportResponse:
        """Delegate to the wrapped callable."""
        return self.func(url, params=params, timeout=timeout)


@dataclass
class CallableSignalProbe(SignalProbe):
    """Wrap a zero-argument callable returning dBm."""

    func: Callable[[], Optional[int]]

    def rssi(self) -> Optional[int]:
        """Delegate to the wrapped callable."""
        return self.func()
