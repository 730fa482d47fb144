"""Client-side request pacing per provider and API key.

Free-tier provider quotas are small enough that a second request a few
seconds after the first often earns a hard 429 (or burns the day's quota).
The limiter refuses to send a request until the provider's cooldown has
elapsed since the previous one for the same key.

Timestamps are written *before* the request is dispatched, so a request that
later fails still consumes its slot. This is only correct under single-flight
use from one caller: two concurrent calls both read the same timestamp.
"""

from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING, Callable

from codelens_core.errors import RateLimited

if TYPE_CHECKING:
    from codelens_store.base import BaseStore

logger = logging.getLogger(__name__)

KEY_SUFFIX_CHARS = 8


def rate_limit_key(provider: str, api_key: str) -> str:
    """Storage key for one (provider, key) pair: ``<provider>_<last 8 of key>``.

    Only the suffix is stored, never the full key, and it is enough to track
    distinct keys for the same provider independently.
    """
    return f"{provider}_{api_key[-KEY_SUFFIX_CHARS:]}"


class RateLimiter:
    def __init__(self, store: BaseStore, clock: Callable[[], float] = time.time):
        self._store = store
        self._clock = clock

    def remaining_seconds(self, provider: str, api_key: str, cooldown_seconds: float) -> int:
        """Whole seconds until the next request is allowed; 0 when allowed now."""
        last = self._store.get(rate_limit_key(provider, api_key))
        if not isinstance(last, (int, float)):
            return 0
        elapsed = self._clock() - last
        if elapsed >= cooldown_seconds:
            return 0
        return max(1, math.ceil(cooldown_seconds - elapsed))

    def check_and_record(self, provider: str, api_key: str, cooldown_seconds: float) -> None:
        """Raise RateLimited inside the window; otherwise claim the slot.

        The timestamp is recorded immediately, before the caller issues the
        request.
        """
        wait = self.remaining_seconds(provider, api_key, cooldown_seconds)
        if wait:
            logger.info("Rate limit protection for %s: %ds remaining", provider, wait)
            raise RateLimited(
                f"Rate limit protection: Please wait {wait} seconds before making another request.",
                retry_after_seconds=wait,
            )
        self._store.set(rate_limit_key(provider, api_key), self._clock())
