"""Typed failures surfaced by the review client.

Every transport or provider failure is classified into one ErrorKind and
raised as the matching ReviewError subclass. The message is always written
for the end user; callers display ``str(error)`` as-is.

A model reply that is not valid review JSON is deliberately absent here: the
normalizer converts it into a fallback Review instead of raising.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    INVALID_API_KEY = "invalid_api_key"
    QUOTA_EXHAUSTED = "quota_exhausted"
    FORBIDDEN = "forbidden"
    PROVIDER_RATE_LIMITED = "provider_rate_limited"
    BAD_REQUEST = "bad_request"
    SERVICE_UNAVAILABLE = "service_unavailable"
    MODEL_NOT_FOUND = "model_not_found"
    MALFORMED_PROVIDER_RESPONSE = "malformed_provider_response"
    NETWORK_ERROR = "network_error"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    PROVIDER_ERROR = "provider_error"


class ReviewError(Exception):
    """Base class for every failure review_code() can raise."""

    kind: ErrorKind = ErrorKind.PROVIDER_ERROR

    def __init__(self, message: str, *, retry_after_seconds: int | None = None):
        super().__init__(message)
        self.message = message
        self.retry_after_seconds = retry_after_seconds


class RateLimited(ReviewError):
    """Client-side cooldown has not elapsed; no request was sent."""

    kind = ErrorKind.RATE_LIMITED


class InvalidApiKey(ReviewError):
    kind = ErrorKind.INVALID_API_KEY


class QuotaExhausted(ReviewError):
    kind = ErrorKind.QUOTA_EXHAUSTED


class Forbidden(ReviewError):
    kind = ErrorKind.FORBIDDEN


class ProviderRateLimited(ReviewError):
    """The provider answered 429."""

    kind = ErrorKind.PROVIDER_RATE_LIMITED


class BadRequest(ReviewError):
    kind = ErrorKind.BAD_REQUEST


class ServiceUnavailable(ReviewError):
    kind = ErrorKind.SERVICE_UNAVAILABLE


class ModelNotFound(ReviewError):
    kind = ErrorKind.MODEL_NOT_FOUND


class MalformedProviderResponse(ReviewError):
    """A 2xx reply whose envelope lacks the expected fields.

    Distinct from an unparseable review: this is about the provider's JSON
    structure, not the text the model wrote.
    """

    kind = ErrorKind.MALFORMED_PROVIDER_RESPONSE


class NetworkError(ReviewError):
    """No HTTP response at all: DNS, connection refused, timeout."""

    kind = ErrorKind.NETWORK_ERROR


class UnsupportedProvider(ReviewError):
    kind = ErrorKind.UNSUPPORTED_PROVIDER


class ProviderError(ReviewError):
    """An HTTP failure outside the classified statuses."""

    kind = ErrorKind.PROVIDER_ERROR
