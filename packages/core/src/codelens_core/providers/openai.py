from __future__ import annotations

from typing import Any

import openai
from openai import OpenAI

from codelens_core.errors import ErrorKind, MalformedProviderResponse, ReviewError
from codelens_core.providers.base import BaseProvider, ProviderConfig, TransportFailure

SYSTEM_PROMPT = (
    "You are an expert code reviewer. Always respond with valid JSON only. "
    "Keep responses concise for free tier limits."
)


class OpenAIProvider(BaseProvider):
    # Free-tier accounts get a handful of requests per minute, hence the long
    # cooldown and the 2500-character prompt ceiling.
    CONFIG = ProviderConfig(
        name="openai",
        display_name="OpenAI",
        endpoint="https://api.openai.com/v1/chat/completions",
        model="gpt-4o-mini",
        cooldown_seconds=60,
        max_output_tokens=1500,
        max_prompt_chars=2500,
    )
    QUOTA_MARKER = "insufficient_quota"
    DEFAULT_RETRY_AFTER = 60

    def __init__(self, api_key: str, model: str | None = None, diagnostics=None):
        super().__init__(api_key, model=model, diagnostics=diagnostics)
        # The SDK's own retries would hammer a rate-limited key; pacing is
        # the limiter's job.
        self.client = OpenAI(api_key=api_key, timeout=self.CONFIG.timeout_seconds, max_retries=0)

    def _send(self, prompt: str, *, max_tokens: int, temperature: float, timeout: float) -> Any:
        try:
            return self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
            )
        except openai.APIStatusError as e:
            raise TransportFailure(
                e.status_code,
                status_text=e.response.reason_phrase,
                body=e.response.text,
                headers=dict(e.response.headers),
                detail=e.message,
            ) from e
        except openai.APIConnectionError as e:  # includes APITimeoutError
            raise TransportFailure(None, detail=f"{type(e).__name__}: {e}") from e

    def _extract_text(self, envelope: Any) -> str:
        choices = getattr(envelope, "choices", None)
        if not choices:
            raise MalformedProviderResponse("Invalid OpenAI response structure: no choices found")
        message = getattr(choices[0], "message", None)
        if message is None:
            raise MalformedProviderResponse("Invalid OpenAI response structure: no message in first choice")
        content = getattr(message, "content", None)
        if not content:
            raise MalformedProviderResponse("Empty response from OpenAI API")
        return content

    def _request_url(self) -> str:
        return self.CONFIG.endpoint

    def _request_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    # --- OpenAI wording ---------------------------------------------------

    def _retry_after(self, failure: TransportFailure) -> int | None:
        retry_after = failure.retry_after_seconds()
        return retry_after if retry_after is not None else self.DEFAULT_RETRY_AFTER

    def _rate_limited_message(self, retry_after: int | None) -> str:
        return (
            f"OpenAI rate limit exceeded! Free tier: 3 requests/minute. Please wait {retry_after} seconds. "
            "Consider upgrading for higher limits or switching to Google Gemini."
        )

    def _invalid_key_message(self) -> str:
        return (
            "OpenAI authentication failed: Invalid API key. "
            "Please check your API key in settings and your billing status."
        )

    def _quota_message(self) -> str:
        return (
            "OpenAI quota exceeded! Your free credits are exhausted. Add billing to your OpenAI account "
            "(https://platform.openai.com/account/billing) or switch to Google Gemini, "
            "which offers a more generous free tier."
        )

    def _forbidden_message(self) -> str:
        return (
            "OpenAI access forbidden. Your free trial may have ended (add billing to continue), "
            "your API key may lack the required permissions, or switch to Google Gemini for free access."
        )

    def _too_large_message(self) -> str:
        return "Request too large for free tier. Try with smaller code files (under 2000 characters)."

    def _probe_success_message(self) -> str:
        return "OpenAI connection successful! Warning: free tier is very limited."

    def _probe_failure_message(self, error: ReviewError) -> str:
        if error.kind == ErrorKind.PROVIDER_RATE_LIMITED:
            return (
                "Rate limit hit during test! OpenAI free tier is extremely limited. "
                "Consider switching to Google Gemini or adding billing credit."
            )
        return super()._probe_failure_message(error)
