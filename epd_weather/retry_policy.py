"""Retry state machine for a single Open-Meteo fetch.

The client drives the machine: it performs the side effect that belongs to
the current state (send a request, sleep, parse the body), turns the result
into a ``FetchEvent`` and asks ``transition`` where to go next. Keeping the
policy here, free of any I/O, lets it be tested without a network.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from epd_weather.models import FailureKind

HTTP_CODE_OK = 200

# Transport-level codes reported by the HTTP transport (never valid HTTP statuses).
CONNECTION_REFUSED = -1
SEND_HEADER_FAILED = -2
SEND_PAYLOAD_FAILED = -3
NOT_CONNECTED = -4
CONNECTION_LOST = -5
NO_STREAM = -6
NO_HTTP_SERVER = -7
TOO_LESS_RAM = -8
ENCODING = -9
STREAM_WRITE = -10
READ_TIMEOUT = -11

# Only these are expected to clear up on their own; everything else points at
# configuration or protocol trouble and is reported straight away.
RETRYABLE_CODES = frozenset({CONNECTION_REFUSED, NOT_CONNECTED, CONNECTION_LOST, READ_TIMEOUT})


class FetchState(str, Enum):
    ATTEMPT = "attempt"
    BACKOFF = "backoff"
    DESERIALIZE = "deserialize"
    FAILED = "failed"
    DONE = "done"


class FetchEvent(str, Enum):
    SUCCESS = "success"
    RETRYABLE_TRANSPORT = "retryable_transport"
    PERMANENT = "permanent"
    BACKOFF_ELAPSED = "backoff_elapsed"
    PARSED = "parsed"
    PARSE_FAILED = "parse_failed"


TERMINAL_STATES = frozenset({FetchState.FAILED, FetchState.DONE})


@dataclass(frozen=True)
class Step:
    """Next state, plus the failure kind when that state is FAILED."""
    state: FetchState
    failure: Optional[FailureKind] = None


def classify(status_code: int) -> FetchEvent:
    """Sort a transport/HTTP status into success, retryable or permanent."""
    if status_code == HTTP_CODE_OK:
        return FetchEvent.SUCCESS
    if status_code in RETRYABLE_CODES:
        return FetchEvent.RETRYABLE_TRANSPORT
    return FetchEvent.PERMANENT


def transition(state: FetchState, event: FetchEvent, *, attempt: int, max_attempts: int) -> Step:
    """
    Return the step that follows ``event`` in ``state``.

    ``attempt`` is the 1-based number of the attempt that produced the event.
    Raises ValueError for pairs the client can never produce.
    """
    if state is FetchState.ATTEMPT:
        if event is FetchEvent.SUCCESS:
            return Step(FetchState.DESERIALIZE)
        if event is FetchEvent.RETRYABLE_TRANSPORT:
            if attempt < max_attempts:
                return Step(FetchState.BACKOFF)
            return Step(FetchState.FAILED, FailureKind.TRANSPORT)
        if event is FetchEvent.PERMANENT:
            return Step(FetchState.FAILED, FailureKind.HTTP)
    elif state is FetchState.BACKOFF:
        if event is FetchEvent.BACKOFF_ELAPSED:
            return Step(FetchState.ATTEMPT)
    elif state is FetchState.DESERIALIZE:
        if event is FetchEvent.PARSED:
            return Step(FetchState.DONE)
        if event is FetchEvent.PARSE_FAILED:
            return Step(FetchState.FAILED, FailureKind.PARSE)
    raise ValueError(f"No transition from {state.value!r} on {event.value!r}")
