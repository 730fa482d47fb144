"""In-memory store — process-local state with no persistence.

Used by the test suites and by `store: memory` in .codelens.yml for one-off
runs where cooldowns and logs should not outlive the process.
"""

from __future__ import annotations

import copy
from typing import Any

from codelens_store.base import BaseStore


class MemoryStore(BaseStore):
    """Holds values in a dict for the lifetime of the object.

    Values are deep-copied on the way in and out so callers cannot mutate
    stored state by accident, matching the copy-on-read behaviour of the
    serializing backends.
    """

    def __init__(self):
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
