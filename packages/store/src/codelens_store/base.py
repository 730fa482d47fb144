"""Abstract store interface.

The review client keeps three kinds of state between runs: rate-limit
timestamps, the diagnostic ring buffers and the review history. All of it is
string-keyed JSON, so any backend that can hold a small key-value map
(SQLite, a JSON file, a dict) implements this interface. The core depends on
BaseStore, not on a concrete backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseStore(ABC):
    """Pluggable string-keyed JSON persistence.

    Values are anything ``json.dumps`` accepts. Writes are synchronous, so a
    value written by ``set`` is visible to the next ``get`` from the same
    process.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None.

        A value that cannot be decoded reads back as None — never raises.
        """

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Deleting a missing key is not an error."""

    def push_front(self, key: str, item: Any, limit: int) -> list:
        """Prepend item to the list under key, keeping at most limit entries.

        This is the ring buffer used by the diagnostic logs and the review
        history: newest first, the oldest entry silently dropped once full.
        Returns the list as stored.
        """
        current = self.get(key)
        if not isinstance(current, list):
            current = []
        updated = [item, *current][:limit]
        self.set(key, updated)
        return updated

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional — subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
