"""
Error taxonomy for LLM provider calls.

Every failure that crosses the provider boundary is a ProviderError tagged
with a closed ErrorKind and a retryable flag:

    configuration_error   no
    authentication_error  no
    quota_exceeded        no
    rate_limited          yes
    network_error         yes
    response_timeout      yes
    invalid_response      no
    service_unavailable   yes (5xx or ambiguous non-2xx >= 500)

Adapters absorb retryable failures, the integration layer fails over
between providers, and the orchestrator degrades to static content.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Closed set of provider failure kinds."""

    CONFIGURATION_ERROR = "configuration_error"
    AUTHENTICATION_ERROR = "authentication_error"
    QUOTA_EXCEEDED = "quota_exceeded"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    RESPONSE_TIMEOUT = "response_timeout"
    INVALID_RESPONSE = "invalid_response"
    SERVICE_UNAVAILABLE = "service_unavailable"


class ProviderError(Exception):
    """Base class for all provider failures."""

    kind: ErrorKind = ErrorKind.SERVICE_UNAVAILABLE
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        retryable: Optional[bool] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.retryable = self.default_retryable if retryable is None else retryable
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "provider": self.provider,
            "message": self.message,
            "retryable": self.retryable,
            "status_code": self.status_code,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, provider={self.provider!r}, "
            f"retryable={self.retryable}, message={self.message!r})"
        )


class ConfigurationError(ProviderError):
    """Invalid configuration or misuse (unknown provider, bad parameters)."""

    kind = ErrorKind.CONFIGURATION_ERROR
    default_retryable = False


class AuthenticationError(ProviderError):
    kind = ErrorKind.AUTHENTICATION_ERROR
    default_retryable = False


class QuotaExceededError(ProviderError):
    kind = ErrorKind.QUOTA_EXCEEDED
    default_retryable = False


class RateLimitedError(ProviderError):
    kind = ErrorKind.RATE_LIMITED
    default_retryable = True


class NetworkError(ProviderError):
    """Transport failure: DNS, refused connection, reset stream."""

    kind = ErrorKind.NETWORK_ERROR
    default_retryable = True


class ResponseTimeoutError(ProviderError):
    kind = ErrorKind.RESPONSE_TIMEOUT
    default_retryable = True


class InvalidResponseError(ProviderError):
    """Success status with a body that does not match the vendor contract."""

    kind = ErrorKind.INVALID_RESPONSE
    default_retryable = False


class ServiceUnavailableError(ProviderError):
    kind = ErrorKind.SERVICE_UNAVAILABLE
    default_retryable = True


class InvalidRequestError(ValueError):
    """Raised for caller misuse detected before any pipeline starts."""


def error_from_status(
    status_code: int,
    provider: str,
    detail: Optional[str] = None,
) -> ProviderError:
    """
    Map a non-2xx HTTP status to the provider error taxonomy.

    Args:
        status_code: HTTP status returned by the vendor
        provider: Provider name for attribution
        detail: Optional vendor error message

    Returns:
        ProviderError subclass instance (not raised)
    """
    if status_code == 401:
        return AuthenticationError(
            "Invalid API key or authentication failed",
            provider=provider,
            status_code=status_code,
        )
    if status_code == 429:
        return RateLimitedError(
            "Rate limit exceeded",
            provider=provider,
            status_code=status_code,
        )
    if status_code in (402, 403):
        return QuotaExceededError(
            "API quota exceeded or insufficient credits",
            provider=provider,
            status_code=status_code,
        )
    if status_code >= 500:
        return ServiceUnavailableError(
            f"API server error (HTTP {status_code})",
            provider=provider,
            retryable=True,
            status_code=status_code,
        )
    return ServiceUnavailableError(
        f"HTTP {status_code}: {detail or 'Unknown error'}",
        provider=provider,
        retryable=False,
        status_code=status_code,
    )
