"""SQLiteStore — the default local store.

Why SQLite as the default:
- Batteries included: ships with Python, no extra dependencies.
- Atomic writes: a crash mid-write never leaves a half-written JSON file,
  which matters for the rate-limit timestamps a cooldown depends on.
- One file per user (``~/.codelens/state.db``) stands in for per-browser
  storage: cooldowns and logs survive between runs.

Schema:
  kv  — one row per key, the value serialized as JSON text.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from codelens_store.base import BaseStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SQLiteStore(BaseStore):
    """Stores JSON values in a local SQLite database file.

    The database file path defaults to ``.codelens.db`` in the current
    working directory; the CLI passes ``store_path`` from .codelens.yml.
    Parent directories are created on demand.
    """

    def __init__(self, db_path: str = ".codelens.db"):
        if db_path != ":memory:":
            Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
            db_path = str(Path(db_path).expanduser())
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def get(self, key: str) -> Any | None:
        row = self._conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning("SQLiteStore: discarding undecodable value for key %r", key)
            return None

    def set(self, key: str, value: Any) -> None:
        self._conn.execute(
            """
            INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
            """,
            (key, json.dumps(value)),
        )
        self._conn.commit()

    def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv WHERE key=?", (key,))
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
