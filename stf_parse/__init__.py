"""
stf-parse: Structured Text Format parsing engine.

Splits delimited (CSV style) or fixed-width text into a grid of tokens, and
re-tokenizes only the changed lines of a preview window through a line cache.
Empty fields are returned as None.

CLI Usage:
    stf-parse data.csv --separator comma

Library Usage:
    from stf_parse import ParseOptions, Separator, parse, normalize_line_endings

    text = normalize_line_endings(raw_text)
    grid = parse(ParseOptions(separators=Separator.COMMA), text)

    index = build_line_index(text)
    window = parse_ranged(options, index, 0, 20)
"""

from .cache import LineIndex, build_line_index, invalidate, parse_ranged, resolve_placeholders
from .config import ParseOptions, SplitPositionEditor, build_options, validate_options
from .exceptions import (
    ConfigError,
    ConfigurationChangedDuringBuildError,
    InvalidOptionsError,
    ParseError,
    TooManyColumnsError,
    TooManyRowsError,
)
from .introspect import (
    autodiscover_split_positions,
    column_count,
    column_width,
    longest_row_width,
    row_count,
)
from .models import Grid, ParseMode, Row, Separator, Token, TrimType
from .normalize import is_valid_text, normalize_line_endings
from .tokenizer import parse

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "parse",
    "build_line_index",
    "parse_ranged",
    "invalidate",
    "resolve_placeholders",
    "normalize_line_endings",
    "is_valid_text",
    # Introspection
    "row_count",
    "column_count",
    "longest_row_width",
    "column_width",
    "autodiscover_split_positions",
    # Options and data models
    "ParseOptions",
    "SplitPositionEditor",
    "build_options",
    "validate_options",
    "ParseMode",
    "Separator",
    "TrimType",
    "LineIndex",
    "Token",
    "Row",
    "Grid",
    # Exceptions
    "ParseError",
    "TooManyColumnsError",
    "TooManyRowsError",
    "ConfigError",
    "InvalidOptionsError",
    "ConfigurationChangedDuringBuildError",
    # Version
    "__version__",
]
