"""Event delivery pipeline: formatting, buffering, flush scheduling and HTTP delivery.

Public API:
- FlushScheduler: Bounded buffer plus size/time/shutdown flush policy
- BatchDispatcher: Concurrent fan-out of one flushed batch
- DeliveryClient: Single-event HTTP delivery with retry and backoff
- QuickSearchHandler: stdlib logging.Handler feeding a scheduler
- create_transport: Wire the pipeline from settings

Example:
    from quicksearch_transport.transport import QuickSearchHandler

    handler = QuickSearchHandler.from_settings({"server_url": "http://localhost:3000"})
    logging.getLogger().addHandler(handler)
"""

from quicksearch_transport.transport.buffer import BoundedBuffer
from quicksearch_transport.transport.client import DeliveryClient
from quicksearch_transport.transport.dispatcher import BatchDispatcher, BatchResult
from quicksearch_transport.transport.factory import create_transport
from quicksearch_transport.transport.formatting import (
    extract_exception,
    format_event,
    level_name,
    level_type,
    level_value,
    meets_minimum_level,
    timestamp_to_iso,
)
from quicksearch_transport.transport.handler import QuickSearchHandler
from quicksearch_transport.transport.scheduler import FlushScheduler

__all__ = [
    "BatchDispatcher",
    "BatchResult",
    "BoundedBuffer",
    "DeliveryClient",
    "FlushScheduler",
    "QuickSearchHandler",
    "create_transport",
    "extract_exception",
    "format_event",
    "level_name",
    "level_type",
    "level_value",
    "meets_minimum_level",
    "timestamp_to_iso",
]
