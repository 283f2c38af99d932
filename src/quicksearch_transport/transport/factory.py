"""Factory functions wiring the delivery pipeline from configuration.

Usage:
    from quicksearch_transport.core.config import load_settings
    from quicksearch_transport.transport.factory import create_transport

    scheduler = create_transport(load_settings())
    scheduler.enqueue(event)
    scheduler.close()
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import httpx

from quicksearch_transport.core.config import TransportSettings, build_settings
from quicksearch_transport.core.logging import debug_enabled, get_logger
from quicksearch_transport.transport.client import DeliveryClient
from quicksearch_transport.transport.dispatcher import BatchDispatcher
from quicksearch_transport.transport.scheduler import FlushScheduler

logger = get_logger(__name__)


def create_transport(
    settings: TransportSettings | Mapping[str, Any],
    *,
    http_client: httpx.Client | None = None,
    sleep: Callable[[float], None] | None = None,
) -> FlushScheduler:
    """Create a running FlushScheduler from settings.

    Builds DeliveryClient -> BatchDispatcher -> FlushScheduler. The scheduler
    closes the delivery client after its final flush.

    Args:
        settings: Validated settings, or a raw mapping validated here
        http_client: Optional externally owned httpx.Client (not closed by the transport)
        sleep: Optional backoff sleep override

    Returns:
        FlushScheduler with its flush timer already running

    Raises:
        ConfigurationError: If a raw mapping fails validation
    """
    if not isinstance(settings, TransportSettings):
        settings = build_settings(settings)

    client_kwargs: dict[str, Any] = {"http_client": http_client}
    if sleep is not None:
        client_kwargs["sleep"] = sleep
    client = DeliveryClient.from_settings(settings, **client_kwargs)
    dispatcher = BatchDispatcher(client, max_workers=settings.max_concurrent_sends)

    if debug_enabled():
        logger.debug(
            "Initializing transport",
            endpoint=client.endpoint,
            application=settings.application,
            batch_size=settings.batch_size,
            flush_interval=settings.flush_interval,
            queue_size_limit=settings.queue_size_limit,
            authenticated=settings.api_key is not None,
        )

    return FlushScheduler(
        dispatcher,
        batch_size=settings.batch_size,
        flush_interval=settings.flush_interval,
        queue_size_limit=settings.queue_size_limit,
        on_close=client.close,
    )
