"""Default-on-miss readers for loosely shaped JSON documents.

Open-Meteo only returns the variables that were requested and occasionally
drops some of those, so every field is read with a default that stands in for
anything absent or of the wrong JSON type.
"""
from __future__ import annotations

from typing import Any, Iterable, Sequence, TypeVar, Union

T = TypeVar("T", int, float, str)

PathPart = Union[str, int]


def coerce(value: Any, default: T) -> T:
    """
    Return ``value`` converted to the type of ``default``, or ``default``.

    - float fields accept JSON ints and floats
    - int fields accept JSON ints and truncate JSON floats
    - str fields accept strings only
    - booleans and nulls never count as numbers
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(default, float):
        if isinstance(value, (int, float)):
            return float(value)
        return default
    if isinstance(default, int):
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value == value and abs(value) != float("inf"):
            return int(value)
        return default
    if isinstance(default, str):
        return value if isinstance(value, str) else default
    return default


def lookup(obj: Any, path: Iterable[PathPart]) -> Any:
    """Walk ``path`` through nested dicts/lists; None as soon as a step is missing."""
    current = obj
    for part in path:
        if isinstance(part, int) and not isinstance(part, bool):
            if not isinstance(current, list) or not 0 <= part < len(current):
                return None
            current = current[part]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(part)
        if current is None:
            return None
    return current


def read(obj: Any, path: Sequence[PathPart], default: T) -> T:
    """Read ``path`` from ``obj`` and coerce it, falling back to ``default``."""
    return coerce(lookup(obj, path), default)


def read_index(array: Any, index: int, default: T) -> T:
    """Read ``array[index]``; short, missing or non-list arrays give ``default``."""
    return read(array, (index,), default)


def array_at(obj: Any, path: Sequence[PathPart]) -> list:
    """Return the list at ``path`` or an empty list."""
    value = lookup(obj, path)
    return value if isinstance(value, list) else []
