"""Review prompt construction.

The prompt is the entire model input: one instruction string with the code
fenced inside it and the JSON shape the normalizer expects spelled out,
including one worked example issue. No conversation state is kept between
calls.
"""

from __future__ import annotations

from codelens_core.utils.language import get_file_language

TRUNCATION_MARKER = "[content truncated]"

_RULE_PREFIX = "check"


def normalize_rule_name(rule: str) -> str:
    """Canonical rule name: "checkSecurity", "Security" and "security" are all "security"."""
    name = rule.strip()
    if name.lower().startswith(_RULE_PREFIX) and len(name) > len(_RULE_PREFIX):
        name = name[len(_RULE_PREFIX) :]
    return name.lower()


def enabled_rule_names(rules: dict[str, bool]) -> list[str]:
    """Return the enabled rule names in settings order.

    Settings may use either bare names ("security") or the prefixed form the
    settings form stores ("checkSecurity"); both render as "security".
    """
    return [normalize_rule_name(rule) for rule, enabled in rules.items() if enabled]


def build_prompt(code: str, file_name: str, rules: dict[str, bool]) -> str:
    language = get_file_language(file_name)
    focus_areas = ", ".join(enabled_rule_names(rules))
    return f"""You are an expert code reviewer. Please analyze the following {language} code and provide a comprehensive review.

File: {file_name}
Focus areas: {focus_areas}

Code to review:
```{language}
{code}
```

Please provide your review in the following JSON format:
{{
  "overall_score": 85,
  "summary": "Brief summary of code quality",
  "issues": [
    {{
      "type": "error|warning|suggestion",
      "category": "performance|security|style|bugs|complexity|documentation",
      "line": 5,
      "message": "Description of the issue",
      "suggestion": "How to fix it",
      "code_example": "Example of improved code"
    }}
  ],
  "strengths": ["List of good practices found"],
  "recommendations": ["General recommendations for improvement"]
}}

Focus on practical, actionable feedback. Be specific about line numbers when possible.
Respond with only the JSON object."""  # noqa: E501


def truncate_prompt(prompt: str, max_chars: int | None) -> str:
    """Cut prompt to max_chars and append a visible marker.

    A character ceiling, not a token count: it only lowers the odds of a
    provider rejecting an oversized request. None disables truncation.
    """
    if max_chars is None or len(prompt) <= max_chars:
        return prompt
    return prompt[:max_chars] + "\n\n" + TRUNCATION_MARKER
