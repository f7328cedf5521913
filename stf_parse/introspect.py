"""Single-pass measurements of a buffer, used to size previews.

These scans work on the raw buffer and never build a token grid. The
delimited scans honour separators and separator collapsing but, unlike the
tokenizer, do not treat quote characters specially.
"""

from __future__ import annotations

from collections.abc import Iterator

from .config import ParseOptions, normalize_options, validate_options
from .constants import END_OF_LINE, SPACE
from .models import ParseMode


def _line_limit(options: ParseOptions) -> int:
    if options.last_row_index is None:
        return options.max_rows
    return min(options.max_lines, options.max_rows)


def _line_spans(options: ParseOptions, buffer: str) -> Iterator[tuple[int, int]]:
    """Yield the start (inclusive) and end (exclusive) offset of each line."""
    terminator = options.line_terminator
    limit = _line_limit(options)
    start = 0
    for _ in range(limit):
        end = buffer.find(terminator, start)
        if end == -1:
            yield start, len(buffer)
            return
        yield start, end
        start = end + 1


def _field_widths(
    buffer: str, start: int, end: int, separator_chars: frozenset[str], collapse: bool
) -> list[int]:
    """Measure the width of every separator-delimited field of one line.

    Examples:
        _field_widths("ab,,c", 0, 5, frozenset(","), False)  # [2, 0, 1]
        _field_widths("ab,,c", 0, 5, frozenset(","), True)  # [2, 1]
    """
    widths = []
    width = 0
    cur = start
    while cur < end:
        if buffer[cur] in separator_chars:
            if collapse and cur + 1 < end and buffer[cur + 1] in separator_chars:
                cur += 1
                continue
            widths.append(width)
            width = 0
        else:
            width += 1
        cur += 1
    widths.append(width)
    return widths


def row_count(options: ParseOptions, buffer: str) -> int:
    """Count the rows `parse` would produce, capped at the row ceilings.

    Args:
        options: Parsing rules; only the terminator and line limits matter.
        buffer: Text to measure.

    Returns:
        int: Number of terminators plus one, capped at `max_lines` and
            `max_rows`.

    Examples:
        row_count(ParseOptions(), "a\\nb\\n")  # 3
    """
    options = normalize_options(options)
    validate_options(options)
    return min(buffer.count(options.line_terminator) + 1, _line_limit(options))


def column_count(options: ParseOptions, buffer: str) -> int:
    """Estimate the number of columns in `buffer`.

    Args:
        options: Parsing rules.
        buffer: Text to measure.

    Returns:
        int: In delimited mode, the largest number of separators on a line
            plus one. In fixed-width mode, the number of split positions.
    """
    options = normalize_options(options)
    validate_options(options)

    if options.mode is ParseMode.FIXED_WIDTH:
        return len(options.split_positions)

    separator_chars = options.separator_chars
    return max(
        len(_field_widths(buffer, start, end, separator_chars, options.collapse_repeated_separators))
        for start, end in _line_spans(options, buffer)
    )


def longest_row_width(options: ParseOptions, buffer: str) -> int:
    """Return the largest number of characters found on one line."""
    options = normalize_options(options)
    validate_options(options)
    return max(end - start for start, end in _line_spans(options, buffer))


def column_width(options: ParseOptions, buffer: str, index: int) -> int:
    """Return the width, in characters, of column `index`.

    In delimited mode this is the widest field found at `index` on any line.
    In fixed-width mode it is the distance between the column's boundary and
    the previous one; a -1 boundary extends to the longest line.

    Args:
        options: Parsing rules.
        buffer: Text to measure.
        index: Zero-based column index.

    Returns:
        int: Column width, or 0 when no line has such a column.

    Raises:
        ValueError: If `index` is negative.

    Examples:
        column_width(ParseOptions(), "a,bbb\\ncc,d", 1)  # 3
    """
    if index < 0:
        raise ValueError("`index` must be >= 0")

    options = normalize_options(options)
    validate_options(options)

    if options.mode is ParseMode.FIXED_WIDTH:
        positions = options.split_positions
        if index >= len(positions):
            return 0
        column_start = 0 if index == 0 else positions[index - 1]
        column_end = positions[index]
        if column_end == END_OF_LINE:
            column_end = longest_row_width(options, buffer)
        return max(column_end - column_start, 0)

    separator_chars = options.separator_chars
    width = 0
    for start, end in _line_spans(options, buffer):
        widths = _field_widths(
            buffer, start, end, separator_chars, options.collapse_repeated_separators
        )
        if index < len(widths):
            width = max(width, widths[index])
    return width


def autodiscover_split_positions(options: ParseOptions, buffer: str) -> tuple[int, ...]:
    """Propose fixed-width split positions for `buffer`.

    A character column is blank when every line has a space there or ends
    before it. A new field starts wherever a blank column is followed by a
    non-blank one; that position becomes the end boundary of the previous
    field.

    Args:
        options: Parsing rules; only the terminator and line limits matter.
        buffer: Text to inspect.

    Returns:
        tuple[int, ...]: Split positions ending with the -1 sentinel.

    Raises:
        InvalidOptionsError: If `options` fail validation.

    Examples:
        autodiscover_split_positions(ParseOptions(), "ab  cd\\nx   yz")  # (4, -1)
    """
    options = normalize_options(options)
    validate_options(options)

    spans = list(_line_spans(options, buffer))
    width = max(end - start for start, end in spans)

    blank = [True] * width
    for start, end in spans:
        for offset in range(end - start):
            if buffer[start + offset] != SPACE:
                blank[offset] = False

    positions = [
        position for position in range(1, width) if blank[position - 1] and not blank[position]
    ]
    positions.append(END_OF_LINE)
    return tuple(positions)
