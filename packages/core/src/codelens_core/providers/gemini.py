from __future__ import annotations

import math
import re
from typing import Any

import requests

from codelens_core.errors import InvalidApiKey, MalformedProviderResponse, ModelNotFound, ReviewError
from codelens_core.providers.base import BaseProvider, ProviderConfig, TransportFailure

# Gemini puts the suggested wait in the error body ("retryDelay": "17s")
# rather than a Retry-After header on most 429s.
_RETRY_DELAY = re.compile(r'"retryDelay"\s*:\s*"(\d+(?:\.\d+)?)s"')


class GeminiProvider(BaseProvider):
    """Google Gemini over the public generateContent REST endpoint.

    The key travels as the ``key`` query parameter; there is no auth header.
    """

    CONFIG = ProviderConfig(
        name="gemini",
        display_name="Google Gemini",
        endpoint="https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
        model="gemini-2.0-flash",
        cooldown_seconds=15,
        max_output_tokens=2000,
    )

    def _send(self, prompt: str, *, max_tokens: int, temperature: float, timeout: float) -> Any:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        try:
            response = requests.post(
                self._endpoint(),
                params={"key": self.api_key},
                json=payload,
                headers=self._request_headers(),
                timeout=timeout,
            )
        except requests.RequestException as e:
            raise TransportFailure(None, detail=self._scrub(f"{type(e).__name__}: {e}")) from e

        if not response.ok:
            raise TransportFailure(
                response.status_code,
                status_text=response.reason or "",
                body=response.text,
                headers=dict(response.headers),
            )
        try:
            return response.json()
        except ValueError as e:
            raise MalformedProviderResponse("Invalid Gemini response: body is not JSON") from e

    def _extract_text(self, envelope: Any) -> str:
        """Walk candidates[0].content.parts[0].text, one explicit check per level."""
        if not isinstance(envelope, dict):
            raise MalformedProviderResponse("Invalid Gemini response structure: expected a JSON object")

        candidates = envelope.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            reason = (envelope.get("promptFeedback") or {}).get("blockReason")
            suffix = f" (prompt blocked: {reason})" if reason else ""
            raise MalformedProviderResponse(f"Invalid Gemini response structure: no candidates found{suffix}")

        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
            raise MalformedProviderResponse("Invalid Gemini response structure: no content parts found")

        text = parts[0].get("text")
        if not isinstance(text, str) or not text:
            raise MalformedProviderResponse("Empty response from Gemini API")
        return text

    def _endpoint(self) -> str:
        return self.CONFIG.endpoint.format(model=self.model)

    def _request_url(self) -> str:
        return f"{self._endpoint()}?key={self.api_key}"

    def _request_headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    # --- Gemini wording ---------------------------------------------------

    def _classify_bad_request(self, failure: TransportFailure) -> ReviewError:
        # Gemini reports a bad key as 400 INVALID_ARGUMENT, not 401.
        message = failure.provider_message
        if "API key" in message:
            return InvalidApiKey(self._invalid_key_message())
        if "model" in message.lower():
            return ModelNotFound(
                f"Model access issue. The {self.model} model might not be available in your region. "
                "Try switching to OpenAI."
            )
        return super()._classify_bad_request(failure)

    def _retry_after(self, failure: TransportFailure) -> int | None:
        retry_after = failure.retry_after_seconds()
        if retry_after is not None:
            return retry_after
        match = _RETRY_DELAY.search(failure.body)
        if match:
            return math.ceil(float(match.group(1)))
        return None

    def _rate_limited_message(self, retry_after: int | None) -> str:
        wait = f"{retry_after} seconds" if retry_after is not None else "a few minutes"
        return f"Google Gemini rate limit exceeded. Please wait {wait} before trying again."

    def _invalid_key_message(self) -> str:
        return "Invalid Google Gemini API key. Please check your API key in settings."

    def _forbidden_message(self) -> str:
        return "Access forbidden. Please check your Google Gemini API key permissions."

    def _model_not_found_message(self) -> str:
        return (
            "Gemini model not found. This could be a regional availability issue. "
            "Try switching to OpenAI."
        )

    def _probe_success_message(self) -> str:
        return "Google Gemini connection successful! Good choice for free usage."
