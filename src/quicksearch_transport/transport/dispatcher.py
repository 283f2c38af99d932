"""BatchDispatcher: concurrent fan-out of one flushed batch.

Each event is delivered independently via DeliveryClient.send_with_retry() on
a worker thread. Outcomes are aggregated; no failure crosses back to the
caller. Failed events are lost for this batch.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from quicksearch_transport.contracts.errors import DeliveryError
from quicksearch_transport.contracts.events import EventResponse, QuickSearchEvent
from quicksearch_transport.core.logging import debug_enabled

logger = structlog.get_logger(__name__)


class EventSender(Protocol):
    """Anything that can deliver one event (DeliveryClient in production)."""

    def send_with_retry(self, event: QuickSearchEvent) -> EventResponse: ...


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Outcome of one send_all() call.

    Attributes:
        sent: Events the collector acknowledged with 2xx
        failed: Events lost after exhausting retries or a non-retryable error
        errors: The terminal error of each failed event
    """

    sent: int = 0
    failed: int = 0
    errors: tuple[BaseException, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.failed == 0


class BatchDispatcher:
    """Delivers a list of events as independent concurrent sends.

    Example:
        dispatcher = BatchDispatcher(client, max_workers=32)
        result = dispatcher.send_all(events)  # never raises
    """

    def __init__(self, sender: EventSender, *, max_workers: int = 32) -> None:
        """Initialize the dispatcher.

        Args:
            sender: Single-event sender, typically a DeliveryClient
            max_workers: Upper bound on concurrent sends within one batch
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._sender = sender
        self._max_workers = max_workers

    def send_all(self, events: list[QuickSearchEvent]) -> BatchResult:
        """Send every event concurrently and wait for all to settle.

        Args:
            events: Events drained from the buffer

        Returns:
            Aggregated BatchResult. Never raises.
        """
        if not events:
            return BatchResult()

        errors: list[BaseException] = []
        sent = 0
        workers = min(len(events), self._max_workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="quicksearch-send") as executor:
            futures: list[Future[EventResponse]] = [executor.submit(self._sender.send_with_retry, event) for event in events]
            for future in as_completed(futures):
                try:
                    future.result()
                    sent += 1
                except DeliveryError as e:
                    errors.append(e)
                except Exception as e:
                    # Not a delivery outcome (serialization bug, bad URL)
                    logger.error("Unexpected error sending event", error=str(e), error_type=type(e).__name__)
                    errors.append(e)

        result = BatchResult(sent=sent, failed=len(errors), errors=tuple(errors))
        if result.ok:
            if debug_enabled():
                logger.debug("Successfully sent events", count=sent)
        else:
            logger.warning(
                "Some events failed to send",
                sent=sent,
                failed=result.failed,
                kinds=sorted({str(getattr(e, "kind", type(e).__name__)) for e in errors}),
                status_codes=sorted({code for e in errors if (code := getattr(e, "status_code", None)) is not None}),
            )
        return result
