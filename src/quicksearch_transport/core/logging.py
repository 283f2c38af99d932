"""Structured logging configuration for the QuickSearch transport.

The transport's own diagnostics (retries, drops, failed batches) are emitted
through structlog. Applications that do not configure logging themselves can
call configure_logging() to route both structlog and stdlib records to stderr
through one processor chain.

Debug diagnostics are emitted only when QUICKSEARCH_DEBUG=true. Each debug
emit site checks debug_enabled() itself, so the toggle holds whether or not
configure_logging() was ever called.
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

from quicksearch_transport.core.config import DEBUG_ENV_VAR

# httpx/httpcore log every request at DEBUG; keep them quiet even in debug mode.
_NOISY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
)


def debug_enabled() -> bool:
    """Return True when QUICKSEARCH_DEBUG=true (case-insensitive)."""
    return os.environ.get(DEBUG_ENV_VAR, "").lower() == "true"


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Remove ProcessorFormatter bookkeeping fields from output."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        json_output: If True, output JSON. If False, human-readable.
        level: Log level name. None resolves to DEBUG when QUICKSEARCH_DEBUG
            is set, otherwise INFO.

    Root handlers are replaced, except QuickSearchHandler instances, which
    stay attached.
    """
    if level is None:
        level = "DEBUG" if debug_enabled() else "INFO"
    log_level = getattr(logging, level.upper())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        final_processors: list[Any] = [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            _remove_internal_fields,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration in tests needs fresh loggers
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    from quicksearch_transport.transport.handler import QuickSearchHandler

    # Replace console handlers but keep any QuickSearchHandler already shipping records
    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if isinstance(h, QuickSearchHandler)]
    root.addHandler(handler)
    root.setLevel(log_level)

    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Bound structlog logger.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
