"""Transport exceptions.

ConfigurationError is raised at construction time only. DeliveryError and its
subclasses describe the outcome of a single event delivery; they are raised by
DeliveryClient and absorbed by BatchDispatcher - they never reach the producer.

Every DeliveryError carries a DeliveryErrorKind tag and, when an HTTP response
was actually received, the numeric status code. Retry decisions are made on
those structured fields, never on message text.
"""

from __future__ import annotations

from typing import ClassVar

from quicksearch_transport.contracts.enums import DeliveryErrorKind


class ConfigurationError(Exception):
    """Raised when transport settings are missing or invalid.

    Attributes:
        field: Name of the offending setting (or "settings" when unknown)
        message: Human-readable error description
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"Invalid transport configuration for '{field}': {message}")


class DeliveryError(Exception):
    """Base class for a failed delivery of one event."""

    kind: ClassVar[DeliveryErrorKind]
    retryable: ClassVar[bool] = True

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DeliveryTimeoutError(DeliveryError):
    """No response arrived within the per-attempt timeout."""

    kind = DeliveryErrorKind.TIMEOUT

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Request timeout after {timeout}s")


class NetworkError(DeliveryError):
    """Transport-level failure before any response (refused, DNS, reset)."""

    kind = DeliveryErrorKind.NETWORK


class DeliveryHTTPError(DeliveryError):
    """The collector answered with a non-2xx status.

    Use for_status() to get the subclass matching the status class.
    """

    kind = DeliveryErrorKind.HTTP_STATUS

    def __init__(self, status_code: int, body: str = "") -> None:
        self.body = body
        super().__init__(f"HTTP {status_code}: {body or 'Unknown error'}", status_code=status_code)

    @staticmethod
    def for_status(status_code: int, body: str = "") -> DeliveryHTTPError:
        """Build the error for a non-2xx status.

        4xx except 429 -> ClientError (non-retryable); 429 and 5xx ->
        RateLimitOrServerError; anything else -> DeliveryHTTPError (retryable).
        """
        if status_code == 429 or 500 <= status_code <= 599:
            return RateLimitOrServerError(status_code, body)
        if 400 <= status_code <= 499:
            return ClientError(status_code, body)
        return DeliveryHTTPError(status_code, body)


class ClientError(DeliveryHTTPError):
    """HTTP 4xx other than 429. Retrying is futile."""

    kind = DeliveryErrorKind.CLIENT
    retryable = False


class RateLimitOrServerError(DeliveryHTTPError):
    """HTTP 429 or 5xx. Transient."""

    kind = DeliveryErrorKind.RATE_LIMIT_OR_SERVER


class ExhaustedError(DeliveryError):
    """All attempts for an event failed with retryable errors.

    Attributes:
        attempts: Total number of attempts made
        last_error: The error observed on the final attempt
    """

    kind = DeliveryErrorKind.EXHAUSTED
    retryable = False

    def __init__(self, attempts: int, last_error: DeliveryError) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Delivery failed after {attempts} attempt(s): {last_error}",
            status_code=last_error.status_code,
        )

    @property
    def last_kind(self) -> DeliveryErrorKind:
        """Kind of the final underlying failure (timeout, network, ...)."""
        return self.last_error.kind
