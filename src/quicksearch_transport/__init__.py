"""QuickSearch transport: batched, retrying delivery of log events to a QuickSearch collector."""

from quicksearch_transport.contracts import (
    ConfigurationError,
    DeliveryError,
    EventResponse,
    QuickSearchEvent,
)
from quicksearch_transport.core.config import TransportSettings, load_settings
from quicksearch_transport.transport import (
    FlushScheduler,
    QuickSearchHandler,
    create_transport,
    format_event,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DeliveryError",
    "EventResponse",
    "FlushScheduler",
    "QuickSearchEvent",
    "QuickSearchHandler",
    "TransportSettings",
    "__version__",
    "create_transport",
    "format_event",
    "load_settings",
]
