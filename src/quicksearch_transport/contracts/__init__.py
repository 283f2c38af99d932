"""Shared contracts for cross-module data types.

This package is a leaf module with no dependencies on core/ or transport/.
Settings live in quicksearch_transport.core.config and are not re-exported here.
"""

from quicksearch_transport.contracts.enums import (
    DeliveryErrorKind,
    EventType,
    LevelName,
    TransportState,
)
from quicksearch_transport.contracts.errors import (
    ClientError,
    ConfigurationError,
    DeliveryError,
    DeliveryHTTPError,
    DeliveryTimeoutError,
    ExhaustedError,
    NetworkError,
    RateLimitOrServerError,
)
from quicksearch_transport.contracts.events import EventResponse, QuickSearchEvent

__all__ = [
    "ClientError",
    "ConfigurationError",
    "DeliveryError",
    "DeliveryErrorKind",
    "DeliveryHTTPError",
    "DeliveryTimeoutError",
    "EventResponse",
    "EventType",
    "ExhaustedError",
    "LevelName",
    "NetworkError",
    "QuickSearchEvent",
    "RateLimitOrServerError",
    "TransportState",
]
