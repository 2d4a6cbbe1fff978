"""
Content Validator - spam and garbage filter for issue submissions.

Runs before any upload, AI call or database write so that content which is
guaranteed to be rejected never costs an external call. The first failing
rule determines the rejection reason.
"""

import re
from typing import Optional

MIN_TITLE_LENGTH = 5
MAX_TITLE_LENGTH = 200
MIN_DESCRIPTION_LENGTH = 10
MAX_DESCRIPTION_LENGTH = 1000

MIN_TITLE_WORDS = 2
MIN_DESCRIPTION_WORDS = 3

SPAM_PATTERNS = [
    re.compile(r"(.)\1{4,}", re.IGNORECASE),  # aaaaa, 11111
    re.compile(r"^[^a-zA-Z0-9\s]+$"),  # symbols only
    re.compile(r"\b(buy|sell|cheap|free|click|visit|website|link|promo|discount|offer)\b", re.IGNORECASE),
    re.compile(r"\b(viagra|casino|lottery|prize|winner|congratulations)\b", re.IGNORECASE),
    re.compile(r"https?://", re.IGNORECASE),
    re.compile(r"\b\d{10,}\b"),  # phone numbers and similar
]


class ValidationResult:
    """Outcome of content validation: valid, or a single rejection reason."""

    def __init__(self, is_valid: bool, error: Optional[str] = None):
        self.is_valid = is_valid
        self.error = error

    def __bool__(self) -> bool:
        return self.is_valid

    def __repr__(self) -> str:
        return f"ValidationResult(is_valid={self.is_valid!r}, error={self.error!r})"


def contains_spam(text: str) -> bool:
    if not text or not isinstance(text, str):
        return True
    trimmed = text.strip()
    if len(trimmed) < 3:
        return True
    return any(pattern.search(trimmed) for pattern in SPAM_PATTERNS)


def _meaningful_word_count(text: str) -> int:
    return len([word for word in text.split() if len(word) > 2])


def _validate_field(
    value,
    label: str,
    min_length: int,
    max_length: int,
    min_words: int,
) -> ValidationResult:
    if not value or not isinstance(value, str):
        return ValidationResult(False, f"{label} is required")

    trimmed = value.strip()

    if len(trimmed) < min_length:
        return ValidationResult(False, f"{label} must be at least {min_length} characters long")
    if len(trimmed) > max_length:
        return ValidationResult(False, f"{label} must not exceed {max_length} characters")

    if contains_spam(trimmed):
        return ValidationResult(
            False,
            f"{label} contains inappropriate or spam content. "
            f"Please provide a genuine issue {label.lower()}.",
        )

    if _meaningful_word_count(trimmed) < min_words:
        return ValidationResult(False, f"{label} must contain at least {min_words} meaningful words")

    return ValidationResult(True)


def validate_title(title) -> ValidationResult:
    return _validate_field(title, "Title", MIN_TITLE_LENGTH, MAX_TITLE_LENGTH, MIN_TITLE_WORDS)


def validate_description(description) -> ValidationResult:
    return _validate_field(
        description, "Description", MIN_DESCRIPTION_LENGTH, MAX_DESCRIPTION_LENGTH, MIN_DESCRIPTION_WORDS
    )


def validate_issue_content(title, description) -> ValidationResult:
    """
    Validate both title and description, title first.

    Returns:
        ValidationResult with is_valid=True, or the first failing rule's error
    """
    title_result = validate_title(title)
    if not title_result.is_valid:
        return title_result
    return validate_description(description)
