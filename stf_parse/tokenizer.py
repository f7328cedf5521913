"""Structured text tokenizing: delimited and fixed-width parsing."""

from __future__ import annotations

import logging

from .config import ParseOptions, normalize_options, validate_options
from .constants import END_OF_LINE, SPACE
from .exceptions import TooManyColumnsError, TooManyRowsError
from .models import Grid, ParseMode, ParserContext, QuoteState, Row, Token, TrimType

logger = logging.getLogger(__name__)


def _strip_spaces(text: str, trim: TrimType) -> Token:
    """Apply trimming and map a zero-length field to None.

    Only the plain space character is trimmed; tabs are kept.

    Args:
        text: Raw field text.
        trim: Sides to trim.

    Returns:
        Token: The trimmed text, or None when nothing is left.

    Examples:
        _strip_spaces("  a b  ", TrimType.BOTH)  # "a b"
        _strip_spaces("   ", TrimType.RIGHT)  # None
    """
    if TrimType.LEFT in trim:
        text = text.lstrip(SPACE)
    if TrimType.RIGHT in trim:
        text = text.rstrip(SPACE)
    return text or None


def _parse_delimited_cell(
    buffer: str, ctx: ParserContext, options: ParseOptions, separator_chars: frozenset[str]
) -> Token:
    """Extract one delimited field starting at the cursor.

    Leading spaces are skipped first when left trimming is enabled; a quote
    character found after that opens a quoted field. Inside quotes separators
    are literal; a doubled quote stands for one quote when
    `quote_doubling_is_literal` is set. Text after the closing quote is kept,
    so ``"abc"def`` reads as ``abcdef``. The cursor ends past the separator
    that closed the field, but never past the line terminator.

    Args:
        buffer: Text being parsed.
        ctx: Cursor to read from and advance.
        options: Parsing rules.
        separator_chars: Characters that end a field.

    Returns:
        Token: Field text, or None for an empty field.

    Examples:
        ctx = ParserContext()
        _parse_delimited_cell('"a,b",c', ctx, ParseOptions(), frozenset(","))  # "a,b"
    """
    terminator = options.line_terminator
    quote = options.quote_char
    end = len(buffer)
    cur = ctx.position

    if TrimType.LEFT in options.trim:
        while cur < end and buffer[cur] == SPACE and buffer[cur] != terminator:
            cur += 1

    state = QuoteState.OUTSIDE
    if cur < end and buffer[cur] == quote:
        cur += 1
        state = QuoteState.INSIDE

    field: list[str] = []
    while cur < end and buffer[cur] != terminator:
        char = buffer[cur]

        if state is QuoteState.INSIDE:
            if char == quote:
                cur += 1
                if (
                    options.quote_doubling_is_literal
                    and cur < end
                    and buffer[cur] == quote
                ):
                    field.append(quote)
                    cur += 1
                    continue
                state = QuoteState.OUTSIDE
                continue
        elif char in separator_chars:
            # A run of separators ends the field only once
            if (
                options.collapse_repeated_separators
                and cur + 1 < end
                and buffer[cur + 1] in separator_chars
            ):
                cur += 1
                continue
            break

        field.append(char)
        cur += 1

    # Step over the separator, never over the line terminator
    if cur < end and buffer[cur] != terminator:
        cur += 1
    ctx.position = cur

    return _strip_spaces("".join(field), options.trim & TrimType.RIGHT)


def _parse_fixed_cell(buffer: str, ctx: ParserContext, options: ParseOptions) -> Token:
    """Extract one fixed-width field starting at the cursor.

    Consumes characters until the position within the line reaches the
    boundary of the current column, or until the line ends. A boundary of -1,
    or a column past the last split position, runs to the end of the line.

    Args:
        buffer: Text being parsed.
        ctx: Cursor to read from and advance; `split_index` moves to the next
            column.
        options: Parsing rules.

    Returns:
        Token: Field text, or None for an empty field.
    """
    terminator = options.line_terminator
    end = len(buffer)

    if ctx.split_index < len(options.split_positions):
        boundary = options.split_positions[ctx.split_index]
    else:
        boundary = END_OF_LINE

    start = cur = ctx.position
    line_position = ctx.line_position
    while cur < end and buffer[cur] != terminator and line_position != boundary:
        cur += 1
        line_position += 1

    ctx.position = cur
    ctx.line_position = line_position
    ctx.split_index += 1

    return _strip_spaces(buffer[start:cur], options.trim)


def parse_line(
    buffer: str,
    ctx: ParserContext,
    options: ParseOptions,
    line_index: int = 0,
    separator_chars: frozenset[str] | None = None,
) -> Row:
    """Tokenize the line at the cursor up to its terminator.

    The cursor is left on the line terminator (or at the end of the buffer).
    An empty line yields the single-token row ``[None]``.

    Args:
        buffer: Text being parsed.
        ctx: Cursor positioned at the start of a line.
        options: Normalized, validated parsing rules.
        line_index: Zero-based index of the line, used in error reports.
        separator_chars: Precomputed separator set; derived from `options`
            when omitted.

    Returns:
        Row: Tokens of the line in column order.

    Raises:
        TooManyColumnsError: If the line yields more than `options.max_columns`
            tokens.
    """
    if separator_chars is None:
        separator_chars = options.separator_chars

    terminator = options.line_terminator
    end = len(buffer)
    ctx.line_position = 0
    ctx.split_index = 0

    row: Row = []
    while ctx.position < end and buffer[ctx.position] != terminator:
        if options.mode is ParseMode.DELIMITED:
            token = _parse_delimited_cell(buffer, ctx, options, separator_chars)
        else:
            token = _parse_fixed_cell(buffer, ctx, options)
        row.append(token)

        if len(row) > options.max_columns:
            logger.warning("Too many columns in data to parse at line %d", line_index + 1)
            raise TooManyColumnsError(line_index, options.max_columns)

    if not row:
        row.append(None)
    return row


def parse(options: ParseOptions, buffer: str) -> Grid:
    """Tokenize a whole buffer into a grid.

    Every line becomes exactly one row, including empty lines and the empty
    line after a trailing terminator. Parsing stops after `options.max_lines`
    lines when that limit is set.

    Args:
        options: Parsing rules.
        buffer: Text to parse.

    Returns:
        Grid: One row per line, in order.

    Raises:
        InvalidOptionsError: If `options` fail validation.
        TooManyColumnsError: If a line has more than `options.max_columns` tokens.
        TooManyRowsError: If the buffer has more than `options.max_rows` lines.

    Examples:
        parse(ParseOptions(), "a,b\\nc,d")  # [["a", "b"], ["c", "d"]]
    """
    options = normalize_options(options)
    validate_options(options)

    separator_chars = options.separator_chars
    last_row_index = options.last_row_index
    end = len(buffer)

    ctx = ParserContext()
    grid: Grid = []
    while True:
        row_index = len(grid)
        if row_index >= options.max_rows:
            logger.warning("Too many rows in data to parse: %d", row_index + 1)
            raise TooManyRowsError(row_index, options.max_rows)

        grid.append(parse_line(buffer, ctx, options, row_index, separator_chars))

        if last_row_index is not None and row_index >= last_row_index:
            break
        if ctx.position >= end:
            break

        # Step over the line terminator
        ctx.position += 1

    logger.debug("Parsed %d rows", len(grid))
    return grid
