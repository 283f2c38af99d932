"""Tests for the delivery error taxonomy."""

import pytest

from quicksearch_transport.contracts.enums import DeliveryErrorKind
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


class TestForStatus:
    """DeliveryHTTPError.for_status() classifies by status class."""

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 422, 499])
    def test_4xx_is_client_error(self, status_code: int) -> None:
        error = DeliveryHTTPError.for_status(status_code, "nope")
        assert type(error) is ClientError
        assert error.kind == DeliveryErrorKind.CLIENT
        assert error.retryable is False
        assert error.status_code == status_code

    @pytest.mark.parametrize("status_code", [429, 500, 502, 503, 599])
    def test_429_and_5xx_are_transient(self, status_code: int) -> None:
        error = DeliveryHTTPError.for_status(status_code)
        assert type(error) is RateLimitOrServerError
        assert error.kind == DeliveryErrorKind.RATE_LIMIT_OR_SERVER
        assert error.retryable is True

    def test_other_non_success_is_generic_and_retryable(self) -> None:
        error = DeliveryHTTPError.for_status(302, "moved")
        assert type(error) is DeliveryHTTPError
        assert error.kind == DeliveryErrorKind.HTTP_STATUS
        assert error.retryable is True

    def test_message_includes_body(self) -> None:
        assert str(DeliveryHTTPError.for_status(404, "Not Found")) == "HTTP 404: Not Found"

    def test_empty_body_message(self) -> None:
        error = DeliveryHTTPError.for_status(500)
        assert str(error) == "HTTP 500: Unknown error"
        assert error.body == ""


class TestTransportErrors:
    def test_timeout_error(self) -> None:
        error = DeliveryTimeoutError(30.0)
        assert str(error) == "Request timeout after 30.0s"
        assert error.kind == DeliveryErrorKind.TIMEOUT
        assert error.status_code is None
        assert error.retryable is True

    def test_network_error(self) -> None:
        error = NetworkError("ConnectError: Connection refused")
        assert error.kind == DeliveryErrorKind.NETWORK
        assert error.status_code is None
        assert error.retryable is True
        assert isinstance(error, DeliveryError)


class TestExhaustedError:
    def test_carries_attempts_and_last_error(self) -> None:
        last = RateLimitOrServerError(429, "slow down")
        error = ExhaustedError(4, last)

        assert error.attempts == 4
        assert error.last_error is last
        assert error.last_kind == DeliveryErrorKind.RATE_LIMIT_OR_SERVER
        assert error.status_code == 429
        assert error.kind == DeliveryErrorKind.EXHAUSTED
        assert "after 4 attempt(s)" in str(error)

    def test_status_code_none_for_transport_failures(self) -> None:
        error = ExhaustedError(2, DeliveryTimeoutError(1.0))
        assert error.status_code is None
        assert error.last_kind == DeliveryErrorKind.TIMEOUT

    def test_is_not_a_client_error(self) -> None:
        error = ExhaustedError(4, RateLimitOrServerError(429))
        assert not isinstance(error, ClientError)
        assert error.retryable is False


class TestConfigurationError:
    def test_message_names_field(self) -> None:
        error = ConfigurationError("server_url", "server_url is required")
        assert error.field == "server_url"
        assert error.message == "server_url is required"
        assert str(error) == "Invalid transport configuration for 'server_url': server_url is required"

    def test_not_a_delivery_error(self) -> None:
        assert not issubclass(ConfigurationError, DeliveryError)
