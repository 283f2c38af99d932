"""Projection of source log objects onto QuickSearch events.

A source log object is a mapping shaped like a structured log line::

    {"level": 30, "time": 1703937600000, "pid": 123, "hostname": "web-1",
     "msg": "User logged in", "userId": "123"}

Levels use the source numeric scale (trace=10 ... fatal=60). All functions
here are pure and stateless.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Final

from quicksearch_transport.contracts.enums import EventType, LevelName
from quicksearch_transport.contracts.events import QuickSearchEvent

LEVEL_VALUES: Final[dict[LevelName, int]] = {
    LevelName.TRACE: 10,
    LevelName.DEBUG: 20,
    LevelName.INFO: 30,
    LevelName.WARN: 40,
    LevelName.ERROR: 50,
    LevelName.FATAL: 60,
}

LEVEL_TO_TYPE: Final[dict[LevelName, EventType]] = {
    LevelName.TRACE: EventType.TRACE,
    LevelName.DEBUG: EventType.DEBUG,
    LevelName.INFO: EventType.INFORMATION,
    LevelName.WARN: EventType.WARNING,
    LevelName.ERROR: EventType.ERROR,
    LevelName.FATAL: EventType.CRITICAL,
}

# Keys consumed into dedicated event fields; "v" is the source format version.
RESERVED_KEYS: Final = frozenset({"level", "time", "pid", "hostname", "msg", "err", "v"})
_TRACE_KEYS: Final = ("traceId", "spanId")


def level_name(level: int) -> LevelName:
    """Map a numeric level to its name.

    Custom levels between standard ones map to the nearest lower standard
    level; anything below debug is trace, anything from 60 up is fatal.
    """
    if level < 20:
        return LevelName.TRACE
    if level < 30:
        return LevelName.DEBUG
    if level < 40:
        return LevelName.INFO
    if level < 50:
        return LevelName.WARN
    if level < 60:
        return LevelName.ERROR
    return LevelName.FATAL


def level_type(level: int) -> EventType:
    """Map a numeric level to the collector's event category."""
    return LEVEL_TO_TYPE[level_name(level)]


def level_value(name: str) -> int:
    """Numeric value for a level name (case-insensitive). Unknown names are trace."""
    try:
        return LEVEL_VALUES[LevelName(name.lower())]
    except ValueError:
        return LEVEL_VALUES[LevelName.TRACE]


def meets_minimum_level(level: int, minimum_level: str) -> bool:
    """Return True if ``level`` is at or above ``minimum_level``."""
    return level >= level_value(minimum_level)


def timestamp_to_iso(time_ms: float) -> str:
    """Convert epoch milliseconds to ISO-8601 UTC with millisecond precision.

    >>> timestamp_to_iso(1703937600000)
    '2023-12-30T12:00:00.000Z'
    """
    moment = datetime.fromtimestamp(time_ms / 1000, tz=UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def extract_exception(log_object: Mapping[str, Any]) -> dict[str, str] | None:
    """Extract exception fields from the ``err`` entry of a log object.

    Returns:
        Dict with exception, exceptionType and exceptionMessage, or None
        when the log object carries no error.
    """
    err = log_object.get("err")
    if not err:
        return None
    if not isinstance(err, Mapping):
        return {
            "exception": str(err),
            "exceptionType": type(err).__name__ if isinstance(err, BaseException) else "Error",
            "exceptionMessage": str(err),
        }
    return {
        "exception": str(err.get("stack") or err),
        "exceptionType": str(err.get("type") or "Error"),
        "exceptionMessage": str(err.get("message") if err.get("message") is not None else err),
    }


def format_event(log_object: Mapping[str, Any], application: str) -> QuickSearchEvent:
    """Build a QuickSearchEvent from one source log object.

    ``data`` is assembled in this order: level name, pid, hostname, exception
    fields, trace context, then every remaining non-reserved key of the log
    object in its original order.

    Args:
        log_object: Source log mapping (must contain ``level`` and ``time``)
        application: Application tag for the event

    Returns:
        Immutable event ready for enqueueing
    """
    level = int(log_object["level"])
    data: dict[str, Any] = {
        "level": level_name(level).value,
        "pid": log_object.get("pid"),
        "hostname": log_object.get("hostname"),
    }

    exception_data = extract_exception(log_object)
    if exception_data:
        data.update(exception_data)

    for key in _TRACE_KEYS:
        if log_object.get(key):
            data[key] = log_object[key]

    for key, value in log_object.items():
        if key in RESERVED_KEYS or key in _TRACE_KEYS:
            continue
        data[key] = value

    message = log_object.get("msg")
    return QuickSearchEvent(
        type=level_type(level),
        application=application,
        timestamp=timestamp_to_iso(log_object["time"]),
        message="" if message is None else str(message),
        data=data,
    )
