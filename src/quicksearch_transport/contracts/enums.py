"""All levels, categories, states and error kinds used across module boundaries."""

from enum import StrEnum


class LevelName(StrEnum):
    """Source severity level names.

    Numeric values follow the source scale: trace=10 through fatal=60.
    """

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class EventType(StrEnum):
    """Event category expected by the QuickSearch collector.

    Serialized verbatim into the ``type`` field of every event.
    """

    TRACE = "Trace"
    DEBUG = "Debug"
    INFORMATION = "Information"
    WARNING = "Warning"
    ERROR = "Error"
    CRITICAL = "Critical"


class TransportState(StrEnum):
    """Lifecycle of a FlushScheduler.

    Values:
        ACTIVE: Accepting events; timer running
        CLOSING: close() in progress; events rejected, final flush pending
        CLOSED: Terminal; no further flushes
    """

    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class DeliveryErrorKind(StrEnum):
    """Tag carried by every DeliveryError.

    HTTP_STATUS covers non-2xx responses outside the 4xx/429/5xx classes
    (for example an unfollowed 3xx redirect).
    """

    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    CLIENT = "client"
    RATE_LIMIT_OR_SERVER = "rate_limit_or_server"
    EXHAUSTED = "exhausted"
