"""Bounded diagnostic logs for provider failures and model replies.

Two ring buffers, both newest first, both held in the store so they survive
between runs:

  error_log    — last 10 transport failures and unparseable replies
  success_log  — last 5 previews of replies that normalized cleanly

They exist for the `logs` view only; nothing in the review path reads them.
Access goes through DiagnosticsLog so the storage keys stay private to this
module.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from codelens_store.models import ErrorLogEntry, SuccessLogEntry

if TYPE_CHECKING:
    from codelens_store.base import BaseStore

logger = logging.getLogger(__name__)

ERROR_LOG_KEY = "error_log"
SUCCESS_LOG_KEY = "success_log"
ERROR_LOG_LIMIT = 10
SUCCESS_LOG_LIMIT = 5

PREVIEW_CHARS = 500
# Raw bodies can be whole model replies; keep enough to debug, not megabytes.
RAW_BODY_LIMIT = 10_000

REDACTED = "[REDACTED]"
_SECRET_HEADERS = {"authorization", "x-goog-api-key", "api-key"}
_SECRET_PARAMS = {"key", "api_key"}
# Some providers echo the offending key back inside the error body.
_KEY_PATTERN = re.compile(r"(sk-[A-Za-z0-9_\-]{8,}|AIza[0-9A-Za-z_\-]{20,})")


def redact_url(url: str) -> str:
    """Replace secret query parameters (Gemini's ?key=) with [REDACTED]."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [(k, REDACTED if k.lower() in _SECRET_PARAMS else v) for k, v in parse_qsl(parts.query, keep_blank_values=True)]
    return urlunsplit(parts._replace(query=urlencode(query, safe="[]")))


def redact_headers(headers: dict | None) -> dict:
    if not headers:
        return {}
    return {k: (REDACTED if k.lower() in _SECRET_HEADERS else v) for k, v in headers.items()}


def redact_text(text: str) -> str:
    return _KEY_PATTERN.sub(REDACTED, text)


def sanitize_request_meta(method: str, url: str, headers: dict | None = None, **extra) -> dict:
    """Build the request description stored with an error entry."""
    meta = {"method": method, "url": redact_url(url), "headers": redact_headers(headers)}
    meta.update(extra)
    return meta


class DiagnosticsLog:
    """Process-wide view of the two diagnostic ring buffers.

    Starts empty on a fresh store; entries are only ever added through the
    record_* methods and removed by clear_error_log() or by falling off the
    end of a full buffer.
    """

    def __init__(self, store: BaseStore):
        self._store = store

    def record_error(self, entry: ErrorLogEntry) -> None:
        entry.raw_body = redact_text(entry.raw_body[:RAW_BODY_LIMIT])
        entry.message = redact_text(entry.message)
        self._store.push_front(ERROR_LOG_KEY, entry.to_dict(), ERROR_LOG_LIMIT)
        logger.debug("Recorded %s error (status=%s): %s", entry.provider, entry.http_status, entry.message)

    def record_parse_failure(self, raw_text: str, message: str) -> None:
        self.record_error(
            ErrorLogEntry(
                provider="parsing",
                message=message,
                raw_body=raw_text,
                request_meta={"content_length": len(raw_text), "error_position": _error_position(message)},
            )
        )

    def record_success(self, raw_text: str) -> None:
        entry = SuccessLogEntry(content_length=len(raw_text), content_preview=raw_text[:PREVIEW_CHARS])
        self._store.push_front(SUCCESS_LOG_KEY, entry.to_dict(), SUCCESS_LOG_LIMIT)

    def get_error_log(self) -> list[ErrorLogEntry]:
        return [ErrorLogEntry.from_dict(d) for d in self._read(ERROR_LOG_KEY)]

    def clear_error_log(self) -> None:
        self._store.delete(ERROR_LOG_KEY)

    def get_success_log(self) -> list[SuccessLogEntry]:
        return [SuccessLogEntry.from_dict(d) for d in self._read(SUCCESS_LOG_KEY)]

    def _read(self, key: str) -> list[dict]:
        value = self._store.get(key)
        if not isinstance(value, list):
            return []
        return [d for d in value if isinstance(d, dict)]


def _error_position(message: str) -> str:
    # json.JSONDecodeError messages end with "(char N)".
    match = re.search(r"char (\d+)", message)
    return match.group(1) if match else "unknown"
