"""DeliveryClient: resilient single-event HTTP delivery.

Each event is POSTed to ``{server_url}/api/events`` as JSON. Failures are
classified into the DeliveryError taxonomy and retried with tenacity:

- Non-retryable: HTTP 4xx except 429 (raised immediately)
- Retryable: timeouts, network failures, 429, 5xx, other non-2xx
- Backoff before attempt k (0-indexed, k >= 1) = retry_delay * 2**(k-1)
- No sleep after the final attempt; exhaustion raises ExhaustedError
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from quicksearch_transport.contracts.errors import (
    DeliveryError,
    DeliveryHTTPError,
    DeliveryTimeoutError,
    ExhaustedError,
    NetworkError,
)
from quicksearch_transport.contracts.events import EventResponse, QuickSearchEvent
from quicksearch_transport.core.logging import debug_enabled

if TYPE_CHECKING:
    from quicksearch_transport.core.config import TransportSettings

logger = structlog.get_logger(__name__)


def _is_retryable(error: BaseException) -> bool:
    """Only typed delivery failures flagged retryable are retried."""
    return isinstance(error, DeliveryError) and error.retryable


class DeliveryClient:
    """Sends events to the QuickSearch collector one request at a time.

    Holds no per-event state. The underlying httpx.Client is thread-safe, so
    send_with_retry() may be called concurrently for distinct events.

    Example:
        client = DeliveryClient(server_url="http://localhost:3000", api_key="secret")
        response = client.send_with_retry(event)
        client.close()
    """

    def __init__(
        self,
        *,
        server_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the delivery client.

        Args:
            server_url: Collector base URL (trailing slash tolerated)
            api_key: Optional bearer token
            timeout: Wall-clock deadline per attempt, in seconds
            retry_attempts: Retries after the first attempt (total = retry_attempts + 1)
            retry_delay: Initial backoff delay in seconds
            http_client: Optional externally owned httpx.Client. When omitted a
                client is created and closed by close().
            sleep: Backoff sleep function (injectable for tests)
            clock: Monotonic clock used for the per-attempt deadline
        """
        if retry_attempts < 0:
            raise ValueError(f"retry_attempts must be >= 0, got {retry_attempts}")
        self._endpoint = f"{server_url.rstrip('/')}/api/events"
        self._timeout = timeout
        self._retry_attempts = retry_attempts
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._clock = clock
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.Client(timeout=httpx.Timeout(timeout))
        self._closed = False

    @classmethod
    def from_settings(cls, settings: TransportSettings, **kwargs: Any) -> DeliveryClient:
        """Build a client from validated settings.

        Extra keyword arguments (http_client, sleep, clock) are passed through.
        """
        return cls(
            server_url=settings.server_url,
            api_key=settings.api_key,
            timeout=settings.timeout,
            retry_attempts=settings.retry_attempts,
            retry_delay=settings.retry_delay,
            **kwargs,
        )

    @property
    def endpoint(self) -> str:
        """Delivery URL."""
        return self._endpoint

    @property
    def max_attempts(self) -> int:
        """Total tries per event, first attempt included."""
        return self._retry_attempts + 1

    def send(self, event: QuickSearchEvent) -> EventResponse:
        """Make exactly one delivery attempt.

        The attempt has a wall-clock deadline of ``timeout`` seconds covering
        the request and the whole response body. httpx timeouts only bound
        each individual phase and socket read, so the body is streamed and
        the deadline checked as chunks arrive.

        Raises:
            DeliveryTimeoutError: No complete response within the timeout
            NetworkError: Transport failure without a response
            DeliveryHTTPError: Non-2xx response (ClientError / RateLimitOrServerError
                for the 4xx and 429/5xx classes)
        """
        deadline = self._clock() + self._timeout
        try:
            with self._client.stream(
                "POST",
                self._endpoint,
                content=event.to_json(),
                headers=self._headers,
                timeout=self._timeout,
            ) as response:
                body = self._read_body(response, deadline)
        except httpx.TimeoutException as e:
            raise DeliveryTimeoutError(self._timeout) from e
        except httpx.RequestError as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise DeliveryHTTPError.for_status(response.status_code, body)
        return EventResponse.from_body(body)

    def _read_body(self, response: httpx.Response, deadline: float) -> str:
        """Read the streamed body, aborting once the attempt deadline passes."""
        chunks: list[bytes] = []
        if self._clock() > deadline:
            raise DeliveryTimeoutError(self._timeout)
        for chunk in response.iter_bytes():
            if self._clock() > deadline:
                raise DeliveryTimeoutError(self._timeout)
            chunks.append(chunk)
        return b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")

    def send_with_retry(self, event: QuickSearchEvent) -> EventResponse:
        """Deliver one event, retrying transient failures with backoff.

        Returns:
            Parsed collector response of the successful attempt

        Raises:
            ClientError: Non-retryable HTTP 4xx, raised on the attempt that got it
            ExhaustedError: Every attempt failed with a retryable error
        """
        attempt = 0
        try:
            for attempt_state in Retrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self._retry_delay, exp_base=2),
                retry=retry_if_exception(_is_retryable),
                sleep=self._sleep,
                before_sleep=self._log_retry,
                reraise=False,
            ):
                with attempt_state:
                    attempt = attempt_state.retry_state.attempt_number
                    return self.send(event)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            assert isinstance(last_error, DeliveryError), "only DeliveryErrors are retried"
            raise ExhaustedError(attempt, last_error) from e

        raise RuntimeError("Unexpected state in retry loop")  # pragma: no cover

    def _log_retry(self, retry_state: RetryCallState) -> None:
        if not debug_enabled():
            return
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.debug(
            "Retrying event delivery",
            attempt=retry_state.attempt_number,
            retry_attempts=self._retry_attempts,
            delay_seconds=delay,
            kind=getattr(error, "kind", None),
            status_code=getattr(error, "status_code", None),
        )

    def close(self) -> None:
        """Release the HTTP client if this instance created it. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._owns_client:
            self._client.close()
