"""stdlib logging integration.

QuickSearchHandler turns LogRecords into source-shaped log objects, applies
the minimum level, formats them into QuickSearchEvents and hands them to a
FlushScheduler. Records from this package and from the HTTP stack are never
forwarded, so the transport's own diagnostics cannot feed back into it.
"""

from __future__ import annotations

import logging
import socket
import traceback
from collections.abc import Mapping
from typing import Any, Final

from quicksearch_transport.core.config import DEFAULTS, TransportSettings, build_settings
from quicksearch_transport.transport.factory import create_transport
from quicksearch_transport.transport.formatting import format_event, meets_minimum_level
from quicksearch_transport.transport.scheduler import FlushScheduler

# Attributes every LogRecord has; anything else on a record came from extra=
_STANDARD_RECORD_ATTRS: Final = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}

_INTERNAL_LOGGERS: Final = ("quicksearch_transport", "httpx", "httpcore")


def _is_internal(logger_name: str) -> bool:
    return any(logger_name == name or logger_name.startswith(f"{name}.") for name in _INTERNAL_LOGGERS)


def python_level_value(levelno: int) -> int:
    """Map a stdlib level number onto the source scale (trace=10 ... fatal=60).

    Custom levels fall into the bucket of the nearest standard level below them.
    """
    if levelno >= logging.CRITICAL:
        return 60
    if levelno >= logging.ERROR:
        return 50
    if levelno >= logging.WARNING:
        return 40
    if levelno >= logging.INFO:
        return 30
    if levelno >= logging.DEBUG:
        return 20
    return 10


def record_to_log_object(record: logging.LogRecord, hostname: str) -> dict[str, Any]:
    """Convert a LogRecord into a source log object for format_event()."""
    log_object: dict[str, Any] = {
        "level": python_level_value(record.levelno),
        "time": record.created * 1000,
        "pid": record.process,
        "hostname": hostname,
        "msg": record.getMessage(),
        "logger": record.name,
    }

    if record.exc_info and record.exc_info[1] is not None:
        exc_type, exc, tb = record.exc_info
        log_object["err"] = {
            "type": exc_type.__name__ if exc_type is not None else type(exc).__name__,
            "message": str(exc),
            "stack": "".join(traceback.format_exception(exc_type, exc, tb)).rstrip(),
        }

    for key, value in vars(record).items():
        if key in _STANDARD_RECORD_ATTRS or key.startswith("_") or key in log_object:
            continue
        log_object[key] = value
    return log_object


class QuickSearchHandler(logging.Handler):
    """Logging handler that ships records to a QuickSearch collector.

    Example:
        handler = QuickSearchHandler.from_settings({"server_url": "http://localhost:3000"})
        logging.getLogger().addHandler(handler)
        logging.getLogger("app").info("User logged in", extra={"userId": "123"})
        handler.close()  # final flush
    """

    def __init__(
        self,
        scheduler: FlushScheduler,
        *,
        application: str = DEFAULTS["application"],
        minimum_level: str = DEFAULTS["minimum_level"],
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self._scheduler = scheduler
        self._application = application
        self._minimum_level = minimum_level
        self._hostname = socket.gethostname()

    @classmethod
    def from_settings(
        cls,
        settings: TransportSettings | Mapping[str, Any],
        **transport_kwargs: Any,
    ) -> QuickSearchHandler:
        """Build the handler and its transport from settings.

        Raises:
            ConfigurationError: If a raw mapping fails validation
        """
        if not isinstance(settings, TransportSettings):
            settings = build_settings(settings)
        scheduler = create_transport(settings, **transport_kwargs)
        return cls(
            scheduler,
            application=settings.application,
            minimum_level=settings.minimum_level,
        )

    @property
    def scheduler(self) -> FlushScheduler:
        return self._scheduler

    def emit(self, record: logging.LogRecord) -> None:
        if _is_internal(record.name):
            return
        try:
            log_object = record_to_log_object(record, self._hostname)
            if not meets_minimum_level(log_object["level"], self._minimum_level):
                return
            self._scheduler.enqueue(format_event(log_object, self._application))
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        """Deliver buffered events now (no-op if a flush is already running)."""
        self._scheduler.flush()

    def close(self) -> None:
        """Final flush, then reject further records."""
        try:
            self._scheduler.close()
        finally:
            super().close()
