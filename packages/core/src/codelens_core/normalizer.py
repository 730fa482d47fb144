"""Turn free-form model output into a Review.

Models are asked for bare JSON but routinely wrap it in a markdown fence,
add a sentence of preamble, or ignore the instruction altogether. normalize()
never raises: anything it cannot turn into a valid Review becomes the
fallback Review, and the raw text goes to the diagnostic error log so the
failure can be inspected later.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import TYPE_CHECKING

from codelens_core.models import Issue, Review

if TYPE_CHECKING:
    from codelens_core.diagnostics import DiagnosticsLog

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")

FALLBACK_SCORE = 50


class ReviewParseError(ValueError):
    """The candidate text is not JSON, or not shaped like a review."""


def extract_json_candidate(text: str) -> str:
    """Pick the substring most likely to hold the review JSON.

    First match wins: the interior of a ```json fence, then everything from
    the first '{' to the last '}', then the whole text.
    """
    fenced = _JSON_FENCE.search(text)
    if fenced:
        return fenced.group(1).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1].strip()
    return text.strip()


def _reject_constant(name: str):
    # NaN and Infinity are not JSON, though json.loads accepts them by default.
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_review(text: str) -> Review:
    """Strict path: extract, parse and validate, raising ReviewParseError."""
    candidate = extract_json_candidate(text)
    try:
        payload = json.loads(candidate, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise ReviewParseError(str(e) or type(e).__name__) from e

    if not isinstance(payload, dict):
        raise ReviewParseError("Invalid response format - expected a JSON object")
    score = payload.get("overall_score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ReviewParseError("Invalid response format - missing required fields (overall_score)")
    if isinstance(score, float) and not math.isfinite(score):
        raise ReviewParseError("Invalid response format - overall_score is not a finite number")
    if not isinstance(payload.get("issues"), list):
        raise ReviewParseError("Invalid response format - missing required fields (issues)")
    try:
        return Review.from_dict(payload)
    except (ValueError, TypeError, OverflowError, RecursionError) as e:
        raise ReviewParseError(f"Invalid response format - {e}") from e


def fallback_review(reason: str) -> Review:
    return Review(
        overall_score=FALLBACK_SCORE,
        summary=f"Failed to parse AI response: {reason}. Raw response stored in the diagnostic log.",
        issues=[
            Issue(
                type="error",
                category="parsing",
                line=1,
                message=f"Could not parse AI response: {reason}",
                suggestion="Check the diagnostic error log for the full response content",
            )
        ],
        strengths=[],
        recommendations=[
            "Check the diagnostic error log for raw response details",
            "The AI response may contain malformed JSON - this is logged for debugging",
        ],
    )


def normalize(raw_text: str, diagnostics: DiagnosticsLog | None = None) -> Review:
    """Return a Review for any input; never raises.

    On success a preview of raw_text goes to the success log; on failure
    the full raw text (capped) and the reason go to the error log.
    """
    try:
        review = parse_review(raw_text)
    except ReviewParseError as e:
        logger.warning("Failed to parse AI response (%d chars): %s", len(raw_text), e)
        if diagnostics is not None:
            diagnostics.record_parse_failure(raw_text, str(e))
        return fallback_review(str(e))

    if diagnostics is not None:
        diagnostics.record_success(raw_text)
    return review
