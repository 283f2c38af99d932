"""Event and response types exchanged with the QuickSearch collector."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from quicksearch_transport.contracts.enums import EventType


def _json_default(value: Any) -> Any:
    """Fallback conversion for values json cannot encode natively.

    Extra fields come from arbitrary log records, so anything unknown is
    rendered with str() rather than failing the whole event.
    """
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, set | frozenset | tuple):
        return list(value)
    return str(value)


@dataclass(frozen=True, slots=True)
class QuickSearchEvent:
    """A normalized, immutable event queued for delivery.

    Attributes:
        type: Severity-derived category
        application: Application tag applied to every event of a transport
        timestamp: ISO-8601 UTC timestamp with millisecond precision
        message: Log message (may be empty)
        data: Additional string-keyed fields, read-only after construction
    """

    type: EventType
    application: str
    timestamp: str
    message: str
    data: Mapping[str, Any]

    def __post_init__(self) -> None:
        # Copy so the caller's dict cannot mutate the event afterwards
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready wire representation."""
        return {
            "type": self.type.value,
            "application": self.application,
            "timestamp": self.timestamp,
            "message": self.message,
            "data": dict(self.data),
        }

    def to_json(self) -> str:
        """Serialize the event body sent to POST /api/events."""
        return json.dumps(self.to_payload(), default=_json_default)


@dataclass(frozen=True, slots=True)
class EventResponse:
    """Body of a successful collector response.

    The collector answers ``{"success": bool, "message": str, "eventId"?: str}``.
    Success of a delivery is decided by the HTTP status alone; this body is
    informational.
    """

    success: bool
    message: str
    event_id: str | None = None

    @classmethod
    def from_body(cls, body: str) -> EventResponse:
        """Parse a response body leniently.

        A 2xx answer with an unparseable or unexpected body is still a
        delivered event, so malformed bodies produce ``success=True`` with the
        raw text as message.
        """
        try:
            parsed = json.loads(body) if body else {}
        except json.JSONDecodeError:
            return cls(success=True, message=body)
        if not isinstance(parsed, dict):
            return cls(success=True, message=body)
        event_id = parsed.get("eventId")
        return cls(
            success=bool(parsed.get("success", True)),
            message=str(parsed.get("message", "")),
            event_id=str(event_id) if event_id is not None else None,
        )
