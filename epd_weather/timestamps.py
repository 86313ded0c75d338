"""Convert Open-Meteo local date/time strings into epoch seconds."""
from __future__ import annotations

import re
import time

NOON_HOUR = 12

# "2024-01-15", "2024-01-15T14:00", also tolerates "2024-01-15T14" and a trailing ":SS".
_ISO_LOCAL_RE = re.compile(
    r"^\s*([+-]?\d+)-([+-]?\d+)-([+-]?\d+)(?:T([+-]?\d+)(?::([+-]?\d+))?)?"
)


def normalize(text: object) -> int:
    """
    Interpret an ISO-8601 local date or date-time as seconds since the epoch.

    Open-Meteo reports times in the requested timezone without an offset, so
    the string is read as wall-clock time in the process's local zone and the
    DST flag is left for the platform to resolve. A bare date maps to local
    noon (used for daily summaries).

    Returns 0 for anything that is not at least ``YYYY-MM-DD``; callers treat
    0 as "unknown".
    """
    if not isinstance(text, str):
        return 0
    match = _ISO_LOCAL_RE.match(text)
    if match is None:
        return 0

    year, month, day = (int(g) for g in match.group(1, 2, 3))
    hour = int(match.group(4)) if match.group(4) is not None else NOON_HOUR
    minute = int(match.group(5)) if match.group(5) is not None else 0

    try:
        return int(time.mktime((year, month, day, hour, minute, 0, 0, 0, -1)))
    except (OverflowError, ValueError):
        return 0
