"""Buffer normalization run once before tokenizing."""

from __future__ import annotations

import unicodedata

from .constants import BINARY_CATEGORIES, TEXT_CONTROL_CHARACTERS


def normalize_line_endings(text: str) -> str:
    """Convert `text` to Unix line endings and drop form feeds.

    ``\\r\\n`` and lone ``\\r`` both become ``\\n``; every ``\\f`` is removed.
    The result is never longer than the input, so callers must use the
    returned string (and its length) rather than the original.

    Args:
        text: Text to convert.

    Returns:
        str: Converted text.

    Examples:
        normalize_line_endings("a\\r\\nb\\rc\\fd")  # "a\\nb\\ncd"
    """
    return text.replace("\r\n", "\n").replace("\r", "\n").replace("\f", "")


def is_valid_text(text: str) -> bool:
    """Determine whether `text` is text rather than binary data.

    Control characters and lone surrogates are rejected, except for tabs,
    form feeds and both kinds of line breaks. Format and separator characters
    such as a byte order mark or a no-break space are accepted.

    Examples:
        is_valid_text("a,b\\r\\n")  # True
        is_valid_text("1\\u00a0000")  # True
        is_valid_text("a\\x00b")  # False
    """
    return all(
        char in TEXT_CONTROL_CHARACTERS or unicodedata.category(char) not in BINARY_CATEGORIES
        for char in text
    )
