"""FlushScheduler owns the pending-event buffer and decides when to flush.

Flush triggers:
1. Size: enqueue() brings the buffer to batch_size or more
2. Time: a daemon timer thread ticks every flush_interval seconds
3. Shutdown: close() performs one final synchronous flush

Design principles:
- The producer never blocks: enqueue() only touches memory, network I/O runs
  on a background flush thread, the timer thread or the closing thread
- At most one flush in flight; a trigger during a flush is a no-op
- A flush takes the whole buffer atomically; events enqueued while it is
  sending wait for the next trigger
- Delivery failures never propagate out of the scheduler

Thread Safety:
    One lock guards the buffer, the lifecycle state, the flushing flag and
    the health counters. The lock is never held during network I/O. A
    Condition on the same lock lets close() wait for an in-flight flush.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, Protocol

import structlog

from quicksearch_transport.contracts.enums import TransportState
from quicksearch_transport.contracts.events import QuickSearchEvent
from quicksearch_transport.core.logging import debug_enabled
from quicksearch_transport.transport.buffer import BoundedBuffer
from quicksearch_transport.transport.dispatcher import BatchResult

logger = structlog.get_logger(__name__)


class BatchSender(Protocol):
    """Anything that can deliver a drained batch (BatchDispatcher in production)."""

    def send_all(self, events: list[QuickSearchEvent]) -> BatchResult: ...


class FlushScheduler:
    """Bounded buffer plus size/time/shutdown flush policy.

    State machine:
        ACTIVE --close()--> CLOSING --final flush done--> CLOSED
        ACTIVE --timer tick / size threshold--> ACTIVE (triggers flush())

    Example:
        >>> scheduler = FlushScheduler(dispatcher, batch_size=100, flush_interval=2.0)
        >>> scheduler.enqueue(event)
        >>> scheduler.close()  # final flush, then CLOSED
    """

    _TIMER_JOIN_TIMEOUT = 5.0

    def __init__(
        self,
        dispatcher: BatchSender,
        *,
        batch_size: int = 100,
        flush_interval: float = 2.0,
        queue_size_limit: int = 10_000,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the scheduler and start the flush timer.

        Args:
            dispatcher: Receives each drained batch
            batch_size: Buffer length that triggers an immediate flush
            flush_interval: Seconds between timer-driven flushes
            queue_size_limit: Buffer capacity; beyond it the oldest event is evicted
            on_close: Called once after the final flush (e.g. to close the HTTP client)
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if flush_interval <= 0:
            raise ValueError(f"flush_interval must be > 0, got {flush_interval}")

        self._dispatcher = dispatcher
        self._batch_size = batch_size
        self._flush_interval = flush_interval
        self._on_close = on_close
        self._buffer = BoundedBuffer(max_size=queue_size_limit)

        self._lock = threading.Lock()
        self._flush_done = threading.Condition(self._lock)
        self._state = TransportState.ACTIVE
        self._flushing = False

        # Health metrics (guarded by _lock)
        self._events_enqueued = 0
        self._events_rejected = 0
        self._flushes = 0
        self._events_sent = 0
        self._events_failed = 0

        # Daemon thread: must never keep the host process alive
        self._stop_timer = threading.Event()
        self._timer_thread = threading.Thread(
            target=self._timer_loop,
            name="quicksearch-flush-timer",
            daemon=True,
        )
        self._timer_thread.start()

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def flushing(self) -> bool:
        """True while a flush is in flight."""
        return self._flushing

    @property
    def pending(self) -> int:
        """Number of buffered events awaiting the next flush."""
        with self._lock:
            return len(self._buffer)

    def enqueue(self, event: QuickSearchEvent) -> bool:
        """Buffer an event, triggering an asynchronous flush at batch_size.

        Never blocks on network I/O and never raises for delivery reasons.

        Args:
            event: Event to deliver

        Returns:
            False if the event was rejected because the scheduler is closing
            or closed, True otherwise (even if an older event was evicted).
        """
        batch: list[QuickSearchEvent] | None = None
        with self._lock:
            state = self._state
            if state is TransportState.ACTIVE:
                self._buffer.append(event)
                self._events_enqueued += 1
                if len(self._buffer) >= self._batch_size:
                    batch = self._take_batch_locked()
            else:
                self._events_rejected += 1

        if state is not TransportState.ACTIVE:
            logger.warning("Transport is closed, dropping event", state=state.value)
            return False

        if batch:
            self._start_background_flush(batch)
        return True

    def flush(self) -> bool:
        """Drain the buffer and deliver it on the calling thread.

        No-op when the buffer is empty, a flush is already in flight, or the
        scheduler is closed. Never raises.

        Returns:
            True if a batch was dispatched by this call.
        """
        with self._lock:
            batch = self._take_batch_locked()
        if not batch:
            return False
        self._deliver(batch)
        return True

    def wait_for_flush(self, timeout: float | None = None) -> bool:
        """Block until no flush is in flight.

        Args:
            timeout: Maximum seconds to wait (None waits indefinitely)

        Returns:
            True if idle, False if the timeout expired first.
        """
        with self._flush_done:
            return self._flush_done.wait_for(lambda: not self._flushing, timeout=timeout)

    def close(self) -> None:
        """Stop the timer, deliver what is left, and reject further events.

        Shutdown sequence:
        1. ACTIVE -> CLOSING (enqueue now rejects)
        2. Signal the timer thread to stop (exactly once)
        3. Wait for any in-flight flush to settle
        4. Final synchronous flush of the remaining buffer
        5. CLOSING -> CLOSED, then run on_close

        Idempotent: calls after the first return immediately.
        """
        with self._lock:
            if self._state is not TransportState.ACTIVE:
                return
            self._state = TransportState.CLOSING
            pending = len(self._buffer)

        if debug_enabled():
            logger.debug("Closing transport, flushing remaining events", pending=pending)
        self._stop_timer.set()

        with self._flush_done:
            self._flush_done.wait_for(lambda: not self._flushing)
            batch = self._take_batch_locked()
        if batch:
            self._deliver(batch)

        with self._lock:
            self._state = TransportState.CLOSED

        if threading.current_thread() is not self._timer_thread:
            self._timer_thread.join(timeout=self._TIMER_JOIN_TIMEOUT)
            if self._timer_thread.is_alive():
                logger.error("Flush timer thread did not exit cleanly within timeout")

        if self._on_close is not None:
            try:
                self._on_close()
            except Exception as e:
                logger.warning("Transport close hook failed", error=str(e))

        if debug_enabled():
            logger.debug("Transport closed", **self.health_metrics)

    @property
    def health_metrics(self) -> dict[str, Any]:
        """Snapshot of buffer and delivery counters for monitoring."""
        with self._lock:
            return {
                "state": self._state.value,
                "events_enqueued": self._events_enqueued,
                "events_dropped": self._buffer.dropped_count,
                "events_rejected": self._events_rejected,
                "flushes": self._flushes,
                "events_sent": self._events_sent,
                "events_failed": self._events_failed,
                "buffer_depth": len(self._buffer),
            }

    def _take_batch_locked(self) -> list[QuickSearchEvent] | None:
        """Claim the single flush slot and drain the buffer.

        Must be called while holding _lock.
        """
        if self._flushing or self._state is TransportState.CLOSED or len(self._buffer) == 0:
            return None
        self._flushing = True
        return self._buffer.drain()

    def _start_background_flush(self, batch: list[QuickSearchEvent]) -> None:
        thread = threading.Thread(
            target=self._deliver,
            args=(batch,),
            name="quicksearch-flush",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as e:
            # Interpreter shutdown refuses new threads; deliver inline instead of stranding the batch
            logger.warning("Could not start flush thread, flushing inline", error=str(e))
            self._deliver(batch)

    def _deliver(self, batch: list[QuickSearchEvent]) -> None:
        """Send a claimed batch and release the flush slot. Never raises."""
        sent = 0
        failed = 0
        try:
            result = self._dispatcher.send_all(batch)
            sent, failed = result.sent, result.failed
        except Exception as e:
            failed = len(batch)
            logger.error("Failed to flush events", count=len(batch), error=str(e))
        finally:
            with self._flush_done:
                self._flushing = False
                self._flushes += 1
                self._events_sent += sent
                self._events_failed += failed
                self._flush_done.notify_all()

        if debug_enabled():
            logger.debug("Flushed events", count=len(batch), sent=sent, failed=failed)

    def _timer_loop(self) -> None:
        """Timer thread: flush every flush_interval until stopped.

        Ticks that land during an in-flight flush are dropped by flush().
        """
        while not self._stop_timer.wait(self._flush_interval):
            self.flush()

    def __enter__(self) -> FlushScheduler:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
