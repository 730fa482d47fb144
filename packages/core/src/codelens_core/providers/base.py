"""Base provider implementing the Template Method pattern.

All providers share the same request algorithm:
    complete() → truncate_prompt() → _send() → _extract_text()
                                        ↑ only these two differ per provider
    on failure → classify() → _record_failure() → raise ReviewError

Subclasses implement:
  - CONFIG: the immutable ProviderConfig for that provider
  - _send: make one HTTP round-trip and return the decoded success envelope,
    raising TransportFailure for any non-2xx status or missing response
  - _extract_text: pull the model's text out of the envelope, raising
    MalformedProviderResponse for each missing field
and may override the message hooks where their wording differs.

Status classification, error logging and the connection probe live here so
the error taxonomy is defined once and shared by every provider. No retries:
the only backoff is the pre-flight cooldown in ratelimit.py.
"""

from __future__ import annotations

import json
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from codelens_core.diagnostics import REDACTED, sanitize_request_meta
from codelens_core.errors import (
    BadRequest,
    ErrorKind,
    Forbidden,
    InvalidApiKey,
    MalformedProviderResponse,
    ModelNotFound,
    NetworkError,
    ProviderError,
    ProviderRateLimited,
    QuotaExhausted,
    ReviewError,
    ServiceUnavailable,
)
from codelens_core.models import ConnectionResult
from codelens_core.prompts import truncate_prompt
from codelens_store.models import ErrorLogEntry

if TYPE_CHECKING:
    from codelens_core.diagnostics import DiagnosticsLog

logger = logging.getLogger(__name__)

# Words in a 400 body that mean the input was too long for the model.
_LENGTH_MARKERS = ("token", "length", "too long", "too large")

PROBE_PROMPT = "Hi"


@dataclass(frozen=True)
class ProviderConfig:
    """Everything fixed about one provider, defined once at import time."""

    name: str
    display_name: str
    endpoint: str  # may contain {model}
    model: str
    cooldown_seconds: int
    max_output_tokens: int
    max_prompt_chars: int | None = None
    temperature: float = 0.3
    timeout_seconds: float = 30.0
    probe_timeout_seconds: float = 10.0


class TransportFailure(Exception):
    """A request that did not produce a usable 2xx response.

    ``status`` is None when no HTTP response arrived at all. Header names are
    lower-cased so lookups do not depend on the HTTP library.
    """

    def __init__(
        self,
        status: int | None,
        *,
        status_text: str = "",
        body: str = "",
        headers: dict | None = None,
        detail: str = "",
    ):
        super().__init__(detail or f"HTTP {status} {status_text}".strip())
        self.status = status
        self.status_text = status_text
        self.body = body or ""
        self.headers = {str(k).lower(): str(v) for k, v in (headers or {}).items()}
        self.detail = detail or str(self)

    @property
    def provider_message(self) -> str:
        """The provider's own ``error.message``, or the raw body when absent."""
        try:
            payload = json.loads(self.body)
        except (json.JSONDecodeError, TypeError):
            return self.body
        if isinstance(payload, list) and payload:
            payload = payload[0]
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str):
                return error
        return self.body

    def retry_after_seconds(self) -> int | None:
        value = self.headers.get("retry-after")
        if value is None:
            return None
        try:
            seconds = float(value)
        except ValueError:
            return None  # HTTP-date form; callers fall back to a generic wait
        return max(0, math.ceil(seconds))


class BaseProvider(ABC):
    CONFIG: ProviderConfig

    # Substring in a 401/429 body meaning credit is used up, not a bad key.
    QUOTA_MARKER: str | None = None

    def __init__(self, api_key: str, model: str | None = None, diagnostics: DiagnosticsLog | None = None):
        self.api_key = api_key
        self.model = model or self.CONFIG.model
        self.diagnostics = diagnostics

    @property
    def name(self) -> str:
        return self.CONFIG.name

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def complete(self, prompt: str) -> str:
        """Send one prompt and return the model's text, or raise ReviewError.

        Concrete here because the algorithm is identical for every provider;
        only the wire format (_send) and envelope shape (_extract_text) vary.
        """
        prompt = truncate_prompt(prompt, self.CONFIG.max_prompt_chars)
        envelope = None
        try:
            envelope = self._send(
                prompt,
                max_tokens=self.CONFIG.max_output_tokens,
                temperature=self.CONFIG.temperature,
                timeout=self.CONFIG.timeout_seconds,
            )
            return self._extract_text(envelope)
        except TransportFailure as failure:
            error = self.classify(failure)
            self._record_failure(failure, error)
            raise error from failure
        except MalformedProviderResponse as error:
            body = self._describe(envelope) if envelope is not None else ""
            self._record_failure(TransportFailure(200, status_text="OK", body=body, detail=error.message), error)
            raise

    def test_connection(self) -> ConnectionResult:
        """Probe the real endpoint with the smallest possible request.

        Only the HTTP outcome matters: a one-token reply may legitimately
        carry no text. Never raises.
        """
        try:
            self._send(PROBE_PROMPT, max_tokens=1, temperature=0.0, timeout=self.CONFIG.probe_timeout_seconds)
        except TransportFailure as failure:
            error = self.classify(failure)
            self._record_failure(failure, error)
            return ConnectionResult(success=False, message=self._probe_failure_message(error))
        except Exception as e:  # the probe must always resolve to a result
            logger.warning("%s connection test failed unexpectedly: %s", self.CONFIG.display_name, e)
            return ConnectionResult(success=False, message=f"Connection failed: {self._scrub(str(e))}")
        return ConnectionResult(success=True, message=self._probe_success_message())

    def classify(self, failure: TransportFailure) -> ReviewError:
        """Map a transport failure onto the shared error taxonomy."""
        status = failure.status
        if status is None:
            return NetworkError(self._network_message())

        quota_hit = self.QUOTA_MARKER is not None and self.QUOTA_MARKER in failure.body
        if status in (401, 429) and quota_hit:
            return QuotaExhausted(self._quota_message())
        if status == 401:
            return InvalidApiKey(self._invalid_key_message())
        if status == 403:
            return Forbidden(self._forbidden_message())
        if status == 429:
            retry_after = self._retry_after(failure)
            return ProviderRateLimited(self._rate_limited_message(retry_after), retry_after_seconds=retry_after)
        if status == 400:
            return self._classify_bad_request(failure)
        if status == 404:
            return ModelNotFound(self._model_not_found_message())
        if status >= 500:
            return ServiceUnavailable(self._unavailable_message())
        return ProviderError(f"Failed to get AI review: {self._scrub(failure.provider_message or failure.detail)}")

    # ------------------------------------------------------------------ #
    # Abstract — implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _send(self, prompt: str, *, max_tokens: int, temperature: float, timeout: float) -> Any:
        """Make a single HTTP round-trip and return the decoded envelope.

        Must raise TransportFailure for a non-2xx status or when no response
        arrives, and MalformedProviderResponse when a 2xx body is not JSON.
        """

    @abstractmethod
    def _extract_text(self, envelope: Any) -> str:
        """Return the model text, raising MalformedProviderResponse otherwise."""

    @abstractmethod
    def _request_url(self) -> str:
        """Full request URL including any credential query parameter."""

    @abstractmethod
    def _request_headers(self) -> dict[str, str]:
        """Headers sent with every request, credentials included."""

    # ------------------------------------------------------------------ #
    # Message hooks — override where a provider's wording differs         #
    # ------------------------------------------------------------------ #

    def _classify_bad_request(self, failure: TransportFailure) -> ReviewError:
        message = failure.provider_message
        if any(marker in message.lower() for marker in _LENGTH_MARKERS):
            return BadRequest(self._too_large_message())
        return BadRequest(f"{self.CONFIG.display_name} API error: {self._scrub(message) or 'Bad request'}")

    def _retry_after(self, failure: TransportFailure) -> int | None:
        return failure.retry_after_seconds()

    def _rate_limited_message(self, retry_after: int | None) -> str:
        wait = f"{retry_after} seconds" if retry_after is not None else "a few minutes"
        return f"{self.CONFIG.display_name} rate limit exceeded. Please wait {wait} before trying again."

    def _invalid_key_message(self) -> str:
        return "Invalid API key. Please check your API key in settings and ensure it's valid."

    def _quota_message(self) -> str:
        return f"{self.CONFIG.display_name} quota exhausted. Add billing to your account or switch provider."

    def _forbidden_message(self) -> str:
        return (
            "Access forbidden. Your API key may not have the required permissions "
            "or you may need to add billing to your account."
        )

    def _model_not_found_message(self) -> str:
        return f"{self.CONFIG.display_name} model {self.model!r} not found. Try switching provider."

    def _unavailable_message(self) -> str:
        return f"{self.CONFIG.display_name} service temporarily unavailable. Please try again later."

    def _too_large_message(self) -> str:
        return "Request too large for this model. Try again with a smaller code file."

    def _network_message(self) -> str:
        return "Network error. Please check your internet connection."

    def _probe_success_message(self) -> str:
        return f"{self.CONFIG.display_name} connection successful!"

    def _probe_failure_message(self, error: ReviewError) -> str:
        if error.kind == ErrorKind.PROVIDER_RATE_LIMITED:
            return "Rate limit exceeded. Please wait and try again."
        if error.kind == ErrorKind.INVALID_API_KEY:
            return "Invalid API key. Please check your key."
        if error.kind in (ErrorKind.QUOTA_EXHAUSTED, ErrorKind.FORBIDDEN):
            return error.message
        return f"Connection failed: {error.message}"

    # ------------------------------------------------------------------ #
    # Shared helpers                                                       #
    # ------------------------------------------------------------------ #

    def _record_failure(self, failure: TransportFailure, error: ReviewError) -> None:
        logger.warning("%s request failed (%s): %s", self.CONFIG.display_name, failure.status, error.kind.value)
        if self.diagnostics is None:
            return
        self.diagnostics.record_error(
            ErrorLogEntry(
                provider=self.name,
                message=self._scrub(error.message),
                http_status=failure.status,
                status_text=failure.status_text,
                raw_body=self._scrub(failure.body or failure.detail),
                request_meta=sanitize_request_meta(
                    "POST", self._request_url(), self._request_headers(), model=self.model
                ),
            )
        )

    def _scrub(self, text: str) -> str:
        """Remove this provider's key from text bound for logs or the user."""
        if not self.api_key or not text:
            return text
        return text.replace(self.api_key, REDACTED)

    @staticmethod
    def _describe(envelope: Any) -> str:
        if isinstance(envelope, (dict, list)):
            return json.dumps(envelope)
        return str(envelope)
