"""End-to-end tests for ReviewClient with the HTTP layer mocked."""

import json
from unittest.mock import MagicMock

import pytest

from codelens_core.client import PROVIDERS, ReviewClient
from codelens_core.errors import (
    ErrorKind,
    ProviderRateLimited,
    RateLimited,
    ServiceUnavailable,
    UnsupportedProvider,
)
from codelens_core.normalizer import FALLBACK_SCORE
from codelens_store.memory import MemoryStore

GEMINI_KEY = "AIzaSyClientTest00000000000000000"
RULES = {"security": True, "style": False}
REVIEW = {
    "overall_score": 88,
    "summary": "Solid.",
    "issues": [{"type": "suggestion", "category": "security", "line": 2, "message": "Validate input"}],
    "strengths": ["Small functions"],
    "recommendations": [],
}


class FakeClock:
    def __init__(self, now: float = 10_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _response(status=200, body=None, reason="OK"):
    response = MagicMock()
    response.ok = status < 400
    response.status_code = status
    response.reason = reason
    response.headers = {}
    response.text = json.dumps(body)
    response.json.return_value = body
    return response


def _envelope(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(clock):
    return ReviewClient(MemoryStore(), clock=clock)


@pytest.fixture
def mock_post(mocker):
    return mocker.patch("codelens_core.providers.gemini.requests.post")


def test_registered_providers():
    assert sorted(PROVIDERS) == ["gemini", "openai"]


def test_review_success(client, mock_post):
    mock_post.return_value = _response(body=_envelope(f"```json\n{json.dumps(REVIEW)}\n```"))
    review = client.review_code("x = input()", "app.py", "gemini", GEMINI_KEY, RULES)
    assert review.overall_score == 88
    assert review.issues[0].message == "Validate input"
    assert len(client.get_success_log()) == 1
    assert client.get_error_log() == []


def test_prompt_reflects_file_and_rules(client, mock_post):
    mock_post.return_value = _response(body=_envelope(json.dumps(REVIEW)))
    client.review_code("x = input()", "app.py", "gemini", GEMINI_KEY, RULES)
    prompt = mock_post.call_args.kwargs["json"]["contents"][0]["parts"][0]["text"]
    assert "File: app.py" in prompt
    assert "```python\nx = input()\n```" in prompt
    assert "Focus areas: security\n" in prompt


def test_provider_429_logged_once(client, mock_post):
    body = {"error": {"code": 429, "message": "Resource has been exhausted", "status": "RESOURCE_EXHAUSTED"}}
    mock_post.return_value = _response(429, body, reason="Too Many Requests")
    with pytest.raises(ProviderRateLimited) as exc_info:
        client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    assert "wait" in exc_info.value.message
    [entry] = client.get_error_log()
    assert entry.provider == "gemini"
    assert entry.http_status == 429
    assert GEMINI_KEY not in json.dumps(entry.to_dict())


def test_second_call_inside_cooldown_never_dispatches(client, mock_post, clock):
    mock_post.return_value = _response(body=_envelope(json.dumps(REVIEW)))
    client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    clock.now += 1
    with pytest.raises(RateLimited) as exc_info:
        client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    assert exc_info.value.kind == ErrorKind.RATE_LIMITED
    assert exc_info.value.retry_after_seconds == 14
    assert mock_post.call_count == 1


def test_failed_call_still_consumes_cooldown(client, mock_post, clock):
    mock_post.return_value = _response(503, {"error": {"message": "overloaded"}}, reason="Service Unavailable")
    with pytest.raises(ServiceUnavailable):
        client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    clock.now += 1
    with pytest.raises(RateLimited):
        client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    assert mock_post.call_count == 1


def test_allowed_again_after_cooldown(client, mock_post, clock):
    mock_post.return_value = _response(body=_envelope(json.dumps(REVIEW)))
    client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    clock.now += 15
    client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    assert mock_post.call_count == 2


def test_cooldown_remaining(client, mock_post, clock):
    assert client.cooldown_remaining("gemini", GEMINI_KEY) == 0
    mock_post.return_value = _response(body=_envelope(json.dumps(REVIEW)))
    client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    clock.now += 5
    assert client.cooldown_remaining("gemini", GEMINI_KEY) == 10
    assert client.cooldown_remaining("claude", GEMINI_KEY) == 0


def test_unparseable_reply_returns_fallback(client, mock_post):
    mock_post.return_value = _response(body=_envelope("I cannot comply."))
    review = client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    assert review.overall_score == FALLBACK_SCORE
    assert review.issues[0].category == "parsing"
    assert client.get_error_log()[0].provider == "parsing"


def test_non_finite_line_returns_fallback(client, mock_post):
    reply = '{"overall_score": 80, "summary": "s", "issues": [{"message": "m", "line": NaN}]}'
    mock_post.return_value = _response(body=_envelope(reply))
    review = client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    assert review.overall_score == FALLBACK_SCORE
    assert client.get_error_log()[0].provider == "parsing"


def test_unsupported_provider(client, mock_post):
    with pytest.raises(UnsupportedProvider, match="claude"):
        client.review_code("code", "a.py", "claude", "key", RULES)
    mock_post.assert_not_called()


def test_unsupported_provider_does_not_touch_cooldown(client):
    with pytest.raises(UnsupportedProvider):
        client.review_code("code", "a.py", "claude", "key-12345678", RULES)
    assert client.rate_limiter.remaining_seconds("claude", "key-12345678", 60) == 0


def test_model_override(clock, mock_post):
    client = ReviewClient(MemoryStore(), models={"gemini": "gemini-2.5-pro"}, clock=clock)
    mock_post.return_value = _response(body=_envelope(json.dumps(REVIEW)))
    client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    assert "/models/gemini-2.5-pro:" in mock_post.call_args.args[0]


def test_connection_test_success(client, mock_post):
    mock_post.return_value = _response(body={"candidates": []})
    result = client.test_connection("gemini", GEMINI_KEY)
    assert result.success is True


def test_connection_test_ignores_cooldown(client, mock_post):
    mock_post.return_value = _response(body=_envelope(json.dumps(REVIEW)))
    client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    assert client.test_connection("gemini", GEMINI_KEY).success is True


def test_connection_test_unsupported_provider(client):
    result = client.test_connection("claude", "key")
    assert result.success is False
    assert "claude" in result.message


def test_clear_error_log(client, mock_post):
    mock_post.return_value = _response(body=_envelope("nope"))
    client.review_code("code", "a.py", "gemini", GEMINI_KEY, RULES)
    assert client.get_error_log()
    client.clear_error_log()
    assert client.get_error_log() == []
    assert client.get_success_log() == []
