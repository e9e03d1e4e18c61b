"""Input validation for translation requests."""

from typing import Iterable

from transgate.core.translation.interface import ValidationError
from transgate.utils.language import is_mostly_source_language, looks_like_source_language

MAX_TEXT_LENGTH = 10_000

# Control characters that may appear in text: tab, line feed, carriage return
_ALLOWED_CONTROL = frozenset({0x09, 0x0A, 0x0D})


def contains_invalid_characters(text: str) -> bool:
    """Return True if the text holds a disallowed control character.

    Disallowed are C0 controls other than tab/LF/CR, DEL and the C1 range
    (U+007F to U+009F).
    """
    for char in text:
        code = ord(char)
        if code < 0x20 and code not in _ALLOWED_CONTROL:
            return True
        if 0x7F <= code <= 0x9F:
            return True
    return False


def validate_text(text: str) -> None:
    """Validate the text of a translation request.

    Args:
        text: Raw text as submitted by the caller

    Raises:
        ValidationError: If the text is empty, too long, whitespace-only,
            contains control characters or does not look like English
    """
    if not text.strip():
        raise ValidationError("Text input cannot be empty")

    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(
            f"Text input is too long (maximum {MAX_TEXT_LENGTH} characters)"
        )

    if not text.split():
        raise ValidationError("Text input cannot contain only whitespace")

    if contains_invalid_characters(text):
        raise ValidationError("Text contains invalid characters")

    if not looks_like_source_language(text):
        raise ValidationError("Text must contain English characters")

    if not is_mostly_source_language(text):
        raise ValidationError("Text must be primarily in English")


def validate_model(model: str, supported_models: Iterable[str]) -> None:
    """Validate a model identifier against the supported set.

    Matching is exact and case-sensitive.

    Args:
        model: Model identifier from the request
        supported_models: Identifiers currently served by the gateway

    Raises:
        ValidationError: If the model is empty or not supported
    """
    if not model.strip():
        raise ValidationError("Model selection cannot be empty")

    if model not in set(supported_models):
        raise ValidationError(f"Unsupported model: {model}")
