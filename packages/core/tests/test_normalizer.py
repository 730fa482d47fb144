"""Tests for turning raw model output into a Review."""

import json

import pytest

from codelens_core.diagnostics import DiagnosticsLog
from codelens_core.normalizer import (
    FALLBACK_SCORE,
    ReviewParseError,
    extract_json_candidate,
    normalize,
    parse_review,
)
from codelens_store.memory import MemoryStore

REVIEW = {
    "overall_score": 85,
    "summary": "Tidy code with one unchecked input.",
    "issues": [
        {
            "type": "warning",
            "category": "bugs",
            "line": 4,
            "message": "No null check",
            "suggestion": "Guard the input",
            "code_example": "if x is None: return",
        },
        {
            "type": "error",
            "category": "security",
            "line": 12,
            "message": "SQL built by string concatenation",
            "suggestion": "Use a parameterized query",
            "code_example": "cur.execute(\"SELECT * FROM t WHERE id = ?\", (user_id,))",
        },
    ],
    "strengths": ["Clear names", "Small functions"],
    "recommendations": ["Add tests", "Validate inputs at the boundary"],
}


@pytest.fixture
def diagnostics():
    return DiagnosticsLog(MemoryStore())


class TestExtractJsonCandidate:
    def test_prefers_json_fence(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nand {"b": 2}'
        assert extract_json_candidate(text) == '{"a": 1}'

    def test_falls_back_to_outer_braces(self):
        text = 'Sure! {"a": {"b": 1}} Hope that helps.'
        assert extract_json_candidate(text) == '{"a": {"b": 1}}'

    def test_returns_trimmed_text_without_braces(self):
        assert extract_json_candidate("  no json here  ") == "no json here"

    def test_closing_brace_before_opening_is_ignored(self):
        assert extract_json_candidate("} nothing {") == "} nothing {"


class TestParseReview:
    def test_bare_json(self):
        review = parse_review(json.dumps(REVIEW))
        assert review.overall_score == 85
        assert review.issues[0].line == 4
        assert review.issues[0].code_example == "if x is None: return"

    def test_rejects_non_object(self):
        with pytest.raises(ReviewParseError):
            parse_review("[1, 2, 3]")

    def test_rejects_missing_score(self):
        payload = {**REVIEW}
        del payload["overall_score"]
        with pytest.raises(ReviewParseError, match="overall_score"):
            parse_review(json.dumps(payload))

    @pytest.mark.parametrize("score", ["85", True, None])
    def test_rejects_non_numeric_score(self, score):
        with pytest.raises(ReviewParseError):
            parse_review(json.dumps({**REVIEW, "overall_score": score}))

    def test_rejects_missing_issues(self):
        with pytest.raises(ReviewParseError, match="issues"):
            parse_review(json.dumps({"overall_score": 80, "summary": "ok"}))

    def test_rejects_issues_not_a_list(self):
        with pytest.raises(ReviewParseError):
            parse_review(json.dumps({**REVIEW, "issues": {"type": "error"}}))

    def test_invalid_json_raises(self):
        with pytest.raises(ReviewParseError):
            parse_review("{not json}")


class TestCoercion:
    def test_score_clamped_high(self):
        assert parse_review(json.dumps({**REVIEW, "overall_score": 140})).overall_score == 100

    def test_score_clamped_low(self):
        assert parse_review(json.dumps({**REVIEW, "overall_score": -5})).overall_score == 0

    def test_fractional_score_rounded(self):
        assert parse_review(json.dumps({**REVIEW, "overall_score": 72.6})).overall_score == 73

    def test_unknown_type_and_category_defaulted(self):
        issue = {"type": "nitpick", "category": "vibes", "message": "meh"}
        review = parse_review(json.dumps({**REVIEW, "issues": [issue]}))
        assert review.issues[0].type == "suggestion"
        assert review.issues[0].category == "style"

    def test_non_dict_issues_dropped(self):
        review = parse_review(json.dumps({**REVIEW, "issues": ["oops", REVIEW["issues"][0], 3]}))
        assert len(review.issues) == 1

    def test_blank_summary_replaced(self):
        review = parse_review(json.dumps({**REVIEW, "summary": "   "}))
        assert review.summary == "No summary provided."

    def test_missing_optional_lists_default_empty(self):
        review = parse_review(json.dumps({"overall_score": 60, "summary": "s", "issues": []}))
        assert review.strengths == []
        assert review.recommendations == []

    @pytest.mark.parametrize("line, expected", [(5, 5), ("7", 7), (0, None), ("n/a", None), (None, None)])
    def test_line_coercion(self, line, expected):
        issue = {**REVIEW["issues"][0], "line": line}
        review = parse_review(json.dumps({**REVIEW, "issues": [issue]}))
        assert review.issues[0].line == expected


class TestNormalize:
    def test_fenced_review_round_trips(self, diagnostics):
        raw = f"```json\n{json.dumps(REVIEW, indent=2)}\n```"
        review = normalize(raw, diagnostics)
        assert review.to_dict() == REVIEW

    def test_prose_wrapped_review(self, diagnostics):
        raw = 'Here is my review: {"overall_score": 90, "summary": "Good", "issues": []} Thanks!'
        review = normalize(raw, diagnostics)
        assert review.overall_score == 90
        assert review.issues == []

    def test_success_recorded(self, diagnostics):
        raw = json.dumps(REVIEW)
        normalize(raw, diagnostics)
        successes = diagnostics.get_success_log()
        assert len(successes) == 1
        assert successes[0].content_length == len(raw)
        assert diagnostics.get_error_log() == []

    def test_refusal_returns_fallback(self, diagnostics):
        review = normalize("I cannot comply.", diagnostics)
        assert review.overall_score == FALLBACK_SCORE
        assert len(review.issues) == 1
        issue = review.issues[0]
        assert issue.type == "error"
        assert issue.category == "parsing"
        assert issue.line == 1
        assert review.summary.startswith("Failed to parse AI response:")
        assert review.strengths == []
        assert review.recommendations

    def test_refusal_logged_with_raw_text(self, diagnostics):
        normalize("I cannot comply.", diagnostics)
        errors = diagnostics.get_error_log()
        assert len(errors) == 1
        assert errors[0].provider == "parsing"
        assert errors[0].raw_body == "I cannot comply."
        assert errors[0].request_meta["content_length"] == len("I cannot comply.")
        assert diagnostics.get_success_log() == []

    def test_invalid_shape_logged(self, diagnostics):
        review = normalize('{"summary": "no score"}', diagnostics)
        assert review.overall_score == FALLBACK_SCORE
        assert "overall_score" in diagnostics.get_error_log()[0].message

    def test_never_raises_without_diagnostics(self):
        assert normalize("", None).overall_score == FALLBACK_SCORE


def _with_line(line_literal: str) -> str:
    """Review JSON whose only issue has the given raw line literal."""
    return (
        '{"overall_score": 70, "summary": "s", "issues": '
        f'[{{"type": "warning", "category": "bugs", "message": "m", "line": {line_literal}}}]}}'
    )


class TestHostileOutput:
    """Valid-looking model output that must still come back as a Review."""

    @pytest.mark.parametrize(
        "raw",
        [
            _with_line("NaN"),
            _with_line("Infinity"),
            '{"overall_score": NaN, "summary": "s", "issues": []}',
            "[" * 100_000 + "]" * 100_000,
            '{"overall_score": 70, "summary": "s", "issues": ' + "[" * 100_000 + "]" * 100_000 + "}",
        ],
        ids=["nan-line", "infinity-line", "nan-score", "deep-array", "deep-issues"],
    )
    def test_rejected_as_parse_failure(self, diagnostics, raw):
        review = normalize(raw, diagnostics)
        assert review.overall_score == FALLBACK_SCORE
        assert review.issues[0].category == "parsing"
        assert diagnostics.get_error_log()[0].provider == "parsing"

    @pytest.mark.parametrize(
        "line_literal",
        ["1e400", '"²"', "-3.5", '"12abc"'],
        ids=["overflow", "superscript-digit", "negative", "mixed"],
    )
    def test_unusable_line_becomes_none(self, diagnostics, line_literal):
        review = normalize(_with_line(line_literal), diagnostics)
        assert review.overall_score == 70
        assert review.issues[0].line is None
        assert diagnostics.get_error_log() == []

    def test_huge_integer_score_clamped(self):
        raw = '{"overall_score": ' + "9" * 400 + ', "summary": "s", "issues": []}'
        assert normalize(raw).overall_score == 100

    def test_unicode_decimal_line_accepted(self):
        review = normalize(_with_line('"٣"'))
        assert review.issues[0].line == 3
