"""Bounded buffer for pending events.

Ring buffer that drops the oldest event on overflow, so memory stays bounded
when the collector is slow or unreachable.

Key design decisions:
- Ring buffer via deque(maxlen=N): automatic oldest-first eviction
- Overflow detected by checking was_full BEFORE append (deque evicts during)
- Aggregate logging: first drop, then every 100 drops
"""

from collections import deque

import structlog

from quicksearch_transport.contracts.events import QuickSearchEvent

logger = structlog.get_logger(__name__)


class BoundedBuffer:
    """Ring buffer of QuickSearchEvents that drops oldest on overflow.

    Thread Safety:
        NOT thread-safe. FlushScheduler serializes every append() and drain()
        under its own lock.

    Example:
        buffer = BoundedBuffer(max_size=1000)
        buffer.append(event)
        batch = buffer.drain()
    """

    _LOG_INTERVAL = 100

    def __init__(self, max_size: int = 10_000) -> None:
        """Initialize the bounded buffer.

        Args:
            max_size: Maximum number of events to hold. When full, the oldest
                event is evicted on append. Defaults to 10,000.

        Raises:
            ValueError: If max_size < 1.
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self._buffer: deque[QuickSearchEvent] = deque(maxlen=max_size)
        self._dropped_count: int = 0
        self._last_logged_drop_count: int = 0

    def append(self, event: QuickSearchEvent) -> bool:
        """Append event, evicting the oldest one if the buffer is full.

        Args:
            event: The event to buffer.

        Returns:
            True if an older event was evicted to make room.
        """
        was_full = len(self._buffer) == self._buffer.maxlen
        self._buffer.append(event)
        if not was_full:
            return False

        self._dropped_count += 1
        if self._dropped_count == 1 or self._dropped_count - self._last_logged_drop_count >= self._LOG_INTERVAL:
            logger.warning(
                "Queue size limit reached, dropping oldest events",
                dropped_since_last_log=self._dropped_count - self._last_logged_drop_count,
                dropped_total=self._dropped_count,
                buffer_size=self._buffer.maxlen,
            )
            self._last_logged_drop_count = self._dropped_count
        return True

    def drain(self) -> list[QuickSearchEvent]:
        """Remove and return every buffered event in FIFO order."""
        batch = list(self._buffer)
        self._buffer.clear()
        return batch

    @property
    def max_size(self) -> int:
        """Configured capacity."""
        maxlen = self._buffer.maxlen
        assert maxlen is not None
        return maxlen

    @property
    def dropped_count(self) -> int:
        """Number of events evicted due to overflow."""
        return self._dropped_count

    def __len__(self) -> int:
        return len(self._buffer)
