"""Source language heuristics for Transgate.

The gateway only accepts English source text. There is no real language
detection here: a text passes when it contains an ASCII letter, or when it is
overwhelmingly made of ASCII characters (digits, punctuation, symbols).
"""

import re

# Share of ASCII characters required when a text holds no ASCII letter
ASCII_RATIO_THRESHOLD = 0.8

_ASCII_LETTER = re.compile(r"[A-Za-z]")
_WHITESPACE_RUN = re.compile(r"\s+")


def has_ascii_letters(text: str) -> bool:
    """Return True if the text contains at least one of A-Z or a-z."""
    return _ASCII_LETTER.search(text) is not None


def ascii_ratio(text: str) -> float:
    """Return the fraction of characters with a code point of 127 or less.

    Args:
        text: Text to inspect

    Returns:
        A value between 0.0 and 1.0; 0.0 for the empty string
    """
    if not text:
        return 0.0
    ascii_count = sum(1 for char in text if ord(char) <= 127)
    return ascii_count / len(text)


def looks_like_source_language(text: str) -> bool:
    """Check whether the text can be read as English source text.

    Whitespace runs are collapsed to a single space before the ASCII ratio is
    computed, so indentation does not inflate it.

    Args:
        text: Text to inspect

    Returns:
        True if the text has an ASCII letter or is more than 80% ASCII
    """
    collapsed = _WHITESPACE_RUN.sub(" ", text)
    if has_ascii_letters(collapsed):
        return True
    return ascii_ratio(collapsed) > ASCII_RATIO_THRESHOLD


def is_mostly_source_language(text: str) -> bool:
    """Check whether the text is primarily English.

    This is the same ASCII heuristic as ``looks_like_source_language``. A
    language detection library would be needed for anything stronger.
    """
    return looks_like_source_language(text)
