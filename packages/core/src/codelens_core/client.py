"""Core review orchestration.

ReviewClient is the one entry point the CLI (or any other front end) needs:

    review_code()      → provider lookup → cooldown check → build_prompt()
                       → provider.complete() → normalize() → Review
    test_connection()  → provider.test_connection() → ConnectionResult
    get_error_log() / clear_error_log() / get_success_log()

Provider and transport failures propagate as ReviewError subclasses. An
unparseable model reply does not: it comes back as the fallback Review.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from codelens_core.diagnostics import DiagnosticsLog
from codelens_core.errors import UnsupportedProvider
from codelens_core.models import ConnectionResult, Review
from codelens_core.normalizer import normalize
from codelens_core.prompts import build_prompt
from codelens_core.providers.gemini import GeminiProvider
from codelens_core.providers.openai import OpenAIProvider
from codelens_core.ratelimit import RateLimiter

if TYPE_CHECKING:
    from codelens_core.providers.base import BaseProvider
    from codelens_store.base import BaseStore
    from codelens_store.models import ErrorLogEntry, SuccessLogEntry

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[BaseProvider]] = {
    OpenAIProvider.CONFIG.name: OpenAIProvider,
    GeminiProvider.CONFIG.name: GeminiProvider,
}


class ReviewClient:
    """Review pipeline bound to one store.

    The store holds the cooldown timestamps and both diagnostic logs, so two
    clients on the same store share cooldowns.
    """

    def __init__(
        self,
        store: BaseStore,
        models: dict[str, str | None] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.diagnostics = DiagnosticsLog(store)
        self.rate_limiter = RateLimiter(store, clock=clock)
        # Per-provider model overrides, e.g. {"gemini": "gemini-2.5-flash"}.
        self._models = models or {}

    def get_provider(self, provider_id: str, api_key: str) -> BaseProvider:
        provider_cls = PROVIDERS.get(provider_id)
        if provider_cls is None:
            raise UnsupportedProvider(
                f"Unsupported AI provider: {provider_id!r}. Choose one of: {', '.join(sorted(PROVIDERS))}."
            )
        return provider_cls(api_key, model=self._models.get(provider_id), diagnostics=self.diagnostics)

    def review_code(self, code: str, file_name: str, provider_id: str, api_key: str, rules: dict[str, bool]) -> Review:
        """Review one file with the chosen provider.

        The cooldown slot is claimed before the request goes out, so a call
        that fails afterwards still counts against the cooldown.
        """
        provider = self.get_provider(provider_id, api_key)
        self.rate_limiter.check_and_record(provider.name, api_key, provider.CONFIG.cooldown_seconds)

        prompt = build_prompt(code, file_name, rules)
        logger.info("Requesting %s review of %s (%d chars)", provider.CONFIG.display_name, file_name, len(code))
        raw = provider.complete(prompt)
        return normalize(raw, self.diagnostics)

    def test_connection(self, provider_id: str, api_key: str) -> ConnectionResult:
        """Check that a key works; never raises."""
        try:
            provider = self.get_provider(provider_id, api_key)
        except UnsupportedProvider as e:
            return ConnectionResult(success=False, message=e.message)
        return provider.test_connection()

    def cooldown_remaining(self, provider_id: str, api_key: str) -> int:
        """Seconds until review_code() would be allowed for this key; 0 if now."""
        provider_cls = PROVIDERS.get(provider_id)
        if provider_cls is None:
            return 0
        return self.rate_limiter.remaining_seconds(provider_id, api_key, provider_cls.CONFIG.cooldown_seconds)

    def get_error_log(self) -> list[ErrorLogEntry]:
        return self.diagnostics.get_error_log()

    def clear_error_log(self) -> None:
        self.diagnostics.clear_error_log()

    def get_success_log(self) -> list[SuccessLogEntry]:
        return self.diagnostics.get_success_log()
