"""Constants used across the stf-parse package."""

from __future__ import annotations

# Sheet ceilings
MAX_COLUMNS = 256
MAX_ROWS = 65536

SPACE = " "
DEFAULT_LINE_TERMINATOR = "\n"
DEFAULT_QUOTE_CHAR = '"'

# Unlimited line count for `max_lines`
ALL_LINES = -1

# Fixed-width boundary meaning "to end of line"
END_OF_LINE = -1

# Signatures are kept to 31 bits and wrap to 0
SIGNATURE_LIMIT = 2**31 - 1

# Control characters accepted by `is_valid_text`
TEXT_CONTROL_CHARACTERS = frozenset("\n\r\t\f")

# Unicode categories `is_valid_text` rejects: controls and lone surrogates
BINARY_CATEGORIES = frozenset(("Cc", "Cs"))

# Names accepted in configuration files and on the command line
SEPARATOR_NAMES = (
    "tab",
    "colon",
    "comma",
    "space",
    "semicolon",
    "pipe",
    "slash",
    "hyphen",
    "bang",
    "custom",
)
TRIM_NAMES = ("left", "right")
MODE_NAMES = ("delimited", "fixed")

# Largest file the command line reads
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
