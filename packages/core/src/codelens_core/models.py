"""Review result types.

A Review is only ever built by the normalizer (from model output that passed
validation) or as the explicit fallback for unparseable output. from_dict()
coerces loosely-typed model JSON into these shapes; it never returns a
partially populated record.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field

ISSUE_TYPES = ("error", "warning", "suggestion")
ISSUE_CATEGORIES = ("performance", "security", "style", "bugs", "complexity", "documentation", "parsing")

_DEFAULT_TYPE = "suggestion"
_DEFAULT_CATEGORY = "style"
_DEFAULT_SUMMARY = "No summary provided."


def _optional_str(value) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _positive_int(value) -> int | None:
    """Accept 5, 5.0 and "5" as line 5; anything else (including 0) is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        if isinstance(value, (int, float)):
            number = int(value)
        elif isinstance(value, str) and value.strip().isdecimal():
            number = int(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if number > 0 else None


def _str_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else str(item) for item in value if item is not None]


@dataclass
class Issue:
    type: str  # error | warning | suggestion
    category: str  # performance | security | style | bugs | complexity | documentation | parsing
    message: str
    line: int | None = None
    suggestion: str | None = None
    code_example: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Issue:
        issue_type = str(d.get("type", "")).lower()
        category = str(d.get("category", "")).lower()
        return cls(
            type=issue_type if issue_type in ISSUE_TYPES else _DEFAULT_TYPE,
            category=category if category in ISSUE_CATEGORIES else _DEFAULT_CATEGORY,
            message=_optional_str(d.get("message")) or "",
            line=_positive_int(d.get("line")),
            suggestion=_optional_str(d.get("suggestion")),
            code_example=_optional_str(d.get("code_example")),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Review:
    overall_score: int  # 0-100
    summary: str
    issues: list[Issue] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> Review:
        """Coerce a validated payload into a Review.

        The caller has already checked that ``overall_score`` is a number and
        ``issues`` a list. Scores are rounded and clamped to 0-100, non-dict
        issue entries are dropped and a blank summary gets a placeholder.
        """
        score = max(0, min(100, int(round(d["overall_score"]))))
        summary = _optional_str(d.get("summary")) or ""
        return cls(
            overall_score=score,
            summary=summary if summary.strip() else _DEFAULT_SUMMARY,
            issues=[Issue.from_dict(i) for i in d["issues"] if isinstance(i, dict)],
            strengths=_str_list(d.get("strengths")),
            recommendations=_str_list(d.get("recommendations")),
        )

    def to_dict(self) -> dict:
        return {
            "overall_score": self.overall_score,
            "summary": self.summary,
            "issues": [i.to_dict() for i in self.issues],
            "strengths": list(self.strengths),
            "recommendations": list(self.recommendations),
        }


@dataclass
class ConnectionResult:
    success: bool
    message: str
