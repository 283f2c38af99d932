"""Tests for BatchDispatcher fan-out and aggregation."""

import threading
from unittest.mock import patch

import pytest

from quicksearch_transport.contracts.enums import EventType
from quicksearch_transport.contracts.errors import ClientError, ExhaustedError, RateLimitOrServerError
from quicksearch_transport.contracts.events import EventResponse, QuickSearchEvent
from quicksearch_transport.transport.dispatcher import BatchDispatcher, BatchResult


def make_event(message: str) -> QuickSearchEvent:
    return QuickSearchEvent(
        type=EventType.INFORMATION,
        application="test-app",
        timestamp="2024-01-01T00:00:00.000Z",
        message=message,
        data={},
    )


class FakeSender:
    """Sender whose outcome per event is keyed by message."""

    def __init__(self, failures: dict[str, Exception] | None = None) -> None:
        self._failures = failures or {}
        self._lock = threading.Lock()
        self.sent: list[str] = []
        self.threads: set[str] = set()

    def send_with_retry(self, event: QuickSearchEvent) -> EventResponse:
        with self._lock:
            self.threads.add(threading.current_thread().name)
        failure = self._failures.get(event.message)
        if failure is not None:
            raise failure
        with self._lock:
            self.sent.append(event.message)
        return EventResponse(success=True, message="ok")


class BarrierSender:
    """Sender that only returns once `parties` sends are in flight together."""

    def __init__(self, parties: int) -> None:
        self._barrier = threading.Barrier(parties, timeout=5.0)

    def send_with_retry(self, event: QuickSearchEvent) -> EventResponse:
        self._barrier.wait()
        return EventResponse(success=True, message="ok")


class TestSendAll:
    def test_empty_batch(self) -> None:
        sender = FakeSender()
        result = BatchDispatcher(sender).send_all([])

        assert result == BatchResult()
        assert result.ok
        assert sender.threads == set()

    def test_all_sent(self) -> None:
        sender = FakeSender()
        events = [make_event(f"event-{i}") for i in range(10)]

        result = BatchDispatcher(sender).send_all(events)

        assert result.sent == 10
        assert result.failed == 0
        assert result.ok
        assert sorted(sender.sent) == sorted(e.message for e in events)

    def test_sends_are_concurrent(self) -> None:
        # Deadlocks (BrokenBarrierError after 5s) unless all three run at once
        result = BatchDispatcher(BarrierSender(parties=3)).send_all([make_event(str(i)) for i in range(3)])
        assert result.sent == 3

    def test_failures_do_not_affect_siblings(self) -> None:
        sender = FakeSender(
            failures={
                "bad": ClientError(400, "invalid"),
                "flaky": ExhaustedError(4, RateLimitOrServerError(503)),
            }
        )
        events = [make_event("ok-1"), make_event("bad"), make_event("flaky"), make_event("ok-2")]

        result = BatchDispatcher(sender).send_all(events)

        assert result.sent == 2
        assert result.failed == 2
        assert not result.ok
        assert sorted(sender.sent) == ["ok-1", "ok-2"]
        assert {type(e) for e in result.errors} == {ClientError, ExhaustedError}

    def test_unexpected_exception_is_contained(self) -> None:
        sender = FakeSender(failures={"boom": RuntimeError("serializer bug")})

        with patch("quicksearch_transport.transport.dispatcher.logger") as mock_logger:
            result = BatchDispatcher(sender).send_all([make_event("boom"), make_event("fine")])

        assert result.sent == 1
        assert result.failed == 1
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[1]["error_type"] == "RuntimeError"

    def test_partial_failure_logged_with_kinds(self) -> None:
        sender = FakeSender(failures={"bad": ClientError(404, "missing")})

        with patch("quicksearch_transport.transport.dispatcher.logger") as mock_logger:
            BatchDispatcher(sender).send_all([make_event("bad"), make_event("good")])

        mock_logger.warning.assert_called_once()
        call_args = mock_logger.warning.call_args
        assert call_args[0][0] == "Some events failed to send"
        assert call_args[1]["kinds"] == ["client"]
        assert call_args[1]["status_codes"] == [404]

    def test_success_logged_at_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QUICKSEARCH_DEBUG", "true")
        with patch("quicksearch_transport.transport.dispatcher.logger") as mock_logger:
            BatchDispatcher(FakeSender()).send_all([make_event("a")])

        mock_logger.debug.assert_called_once_with("Successfully sent events", count=1)
        mock_logger.warning.assert_not_called()

    def test_worker_threads_capped(self) -> None:
        sender = FakeSender()
        BatchDispatcher(sender, max_workers=2).send_all([make_event(str(i)) for i in range(20)])

        assert len(sender.threads) <= 2
        assert all(name.startswith("quicksearch-send") for name in sender.threads)

    def test_max_workers_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="max_workers must be >= 1"):
            BatchDispatcher(FakeSender(), max_workers=0)
