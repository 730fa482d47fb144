"""JSONFileStore — the whole store as one human-readable JSON document.

Why a JSON file alongside SQLite:
- Inspectable: `cat state.json` shows every cooldown timestamp and log entry
  without a database client, which helps when debugging provider failures.
- Portable: the file can be copied between machines or checked into a
  scratch directory for a reproducible diagnostics bundle.

Data format: a single JSON object mapping keys to values. Every write
rewrites the document; the store is meant for a handful of small keys.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from codelens_store.base import BaseStore

logger = logging.getLogger(__name__)


class JSONFileStore(BaseStore):
    """Stores every key in one JSON object on disk.

    The document is read on every ``get`` so two CLI invocations see each
    other's writes. A missing or corrupt file reads as an empty store.
    """

    def __init__(self, path: str = ".codelens.json"):
        self._path = Path(path).expanduser()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Any | None:
        return self._read_document().get(key)

    def set(self, key: str, value: Any) -> None:
        document = self._read_document()
        document[key] = value
        self._write_document(document)

    def delete(self, key: str) -> None:
        document = self._read_document()
        if key in document:
            del document[key]
            self._write_document(document)

    def _read_document(self) -> dict:
        """Read the current JSON object from disk, or return {}."""
        if not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text() or "{}")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("JSONFileStore: could not read %s (%s); starting empty", self._path, e)
            return {}
        return document if isinstance(document, dict) else {}

    def _write_document(self, document: dict) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(document, indent=2))
        tmp_path.replace(self._path)
