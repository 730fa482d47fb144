"""Persisted record types.

Decoupled from codelens_core so the store layer can be used independently.
Every record round-trips through plain dicts because backends hold JSON
values under string keys.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ErrorLogEntry:
    """One failed provider call or unparseable model reply.

    ``request_meta`` must already be sanitized: no Authorization header
    value and no ``key`` query parameter ever reach the store.
    """

    provider: str  # "openai" | "gemini" | "parsing"
    message: str
    http_status: int | None = None
    status_text: str = ""
    raw_body: str = ""
    request_meta: dict = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> ErrorLogEntry:
        return cls(
            provider=d.get("provider", ""),
            message=d.get("message", ""),
            http_status=d.get("http_status"),
            status_text=d.get("status_text", ""),
            raw_body=d.get("raw_body", ""),
            request_meta=d.get("request_meta") or {},
            timestamp=d.get("timestamp", ""),
        )


@dataclass
class SuccessLogEntry:
    """Preview of a model reply that normalized cleanly."""

    content_length: int
    content_preview: str  # at most 500 characters
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> SuccessLogEntry:
        return cls(
            content_length=d.get("content_length", 0),
            content_preview=d.get("content_preview", ""),
            timestamp=d.get("timestamp", ""),
        )


@dataclass
class ReviewRecord:
    """A completed review kept in the local history.

    Created by the CLI layer after ReviewClient.review_code() returns.
    Only aggregate figures are kept; the full review is what `--output`
    exports.
    """

    file_name: str
    provider: str  # "openai" | "gemini" | "demo"
    overall_score: int
    summary: str
    total_issues: int
    issues_by_type: dict[str, int] = field(default_factory=dict)
    issues_by_category: dict[str, int] = field(default_factory=dict)
    reviewed_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> ReviewRecord:
        return cls(
            file_name=d.get("file_name", ""),
            provider=d.get("provider", ""),
            overall_score=d.get("overall_score", 0),
            summary=d.get("summary", ""),
            total_issues=d.get("total_issues", 0),
            issues_by_type=d.get("issues_by_type") or {},
            issues_by_category=d.get("issues_by_category") or {},
            reviewed_at=d.get("reviewed_at", ""),
        )
