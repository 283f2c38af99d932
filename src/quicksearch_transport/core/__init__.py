"""Core infrastructure: configuration and logging."""

from quicksearch_transport.core.config import (
    DEFAULTS,
    TransportSettings,
    build_settings,
    load_settings,
)
from quicksearch_transport.core.logging import configure_logging, debug_enabled, get_logger

__all__ = [
    "DEFAULTS",
    "TransportSettings",
    "build_settings",
    "configure_logging",
    "debug_enabled",
    "get_logger",
    "load_settings",
]
