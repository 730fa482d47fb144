"""Fixed sample review for trying the tool without an API key.

The demo path never touches the network or the rate limiter.
"""

from __future__ import annotations

from codelens_core.models import Issue, Review

SAMPLE_FILE_NAME = "example.js"

SAMPLE_CODE = """\
function calculateTotal(items) {
  var total = 0;
  for (var i = 0; i < items.length; i++) {
    total += items[i].price * items[i].quantity;
  }
  return total;
}

console.log(calculateTotal([{ price: 10, quantity: 2 }]));
"""


def sample_review() -> Review:
    return Review(
        overall_score=72,
        summary=(
            "The code shows good structure but has several areas for improvement including "
            "performance optimization, error handling, and modern syntax usage."
        ),
        issues=[
            Issue(
                type="warning",
                category="performance",
                line=3,
                message="Using var instead of const/let in modern JavaScript",
                suggestion="Replace 'var' with 'const' or 'let' for better scoping and performance",
                code_example="for (let i = 0; i < items.length; i++) {",
            ),
            Issue(
                type="suggestion",
                category="style",
                line=2,
                message="Consider using array methods like reduce() for cleaner code",
                suggestion="Use functional programming approach with reduce()",
                code_example="return items.reduce((total, item) => total + (item.price * item.quantity), 0);",
            ),
            Issue(
                type="error",
                category="bugs",
                line=1,
                message="No input validation for the items parameter",
                suggestion="Add validation to check if items is an array and handle edge cases",
                code_example="if (!Array.isArray(items) || items.length === 0) return 0;",
            ),
            Issue(
                type="warning",
                category="performance",
                line=4,
                message="Accessing array length in loop condition is inefficient",
                suggestion="Cache the array length in a variable",
                code_example="for (let i = 0, len = items.length; i < len; i++) {",
            ),
        ],
        strengths=[
            "Function has a clear, descriptive name",
            "Logic is straightforward and easy to understand",
            "Proper return statement",
            "Good example usage provided",
        ],
        recommendations=[
            "Add input validation and error handling",
            "Use modern JavaScript features (const/let, arrow functions)",
            "Consider using array methods for functional programming style",
            "Add JSDoc comments for better documentation",
            "Consider edge cases like empty arrays or invalid data types",
        ],
    )
