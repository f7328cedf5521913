"""Line index and signature cache for re-tokenizing a window of lines."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .config import ParseOptions, normalize_options, validate_options
from .constants import ALL_LINES, DEFAULT_LINE_TERMINATOR, SIGNATURE_LIMIT
from .exceptions import InvalidOptionsError, TooManyRowsError
from .models import LineRecord, ParserContext, Row
from .tokenizer import parse_line

logger = logging.getLogger(__name__)


@dataclass
class LineIndex:
    """Start offsets of every line in a buffer, with per-line signatures.

    A line's cached row is current while its signature equals
    `valid_signature`. Bumping `valid_signature` through `invalidate` makes
    every line stale without rescanning the buffer. The index must be rebuilt
    whenever the buffer itself changes.

    Attributes:
        buffer: Text the offsets point into.
        terminator: Line terminator used while indexing.
        lines: One record per line, in order.
        valid_signature: Current version stamp.
        from_line: First line of the stored preview window.
        to_line: Last line of the stored preview window; -1 means the last line.
    """

    buffer: str
    terminator: str = DEFAULT_LINE_TERMINATOR
    lines: list[LineRecord] = field(default_factory=list)
    valid_signature: int = 0
    from_line: int = 0
    to_line: int = -1

    def __len__(self) -> int:
        return len(self.lines)

    def line_text(self, line: int) -> str:
        """Return the raw text of `line`, without its terminator."""
        start = self.lines[line].start
        end = self.buffer.find(self.terminator, start)
        if end == -1:
            end = len(self.buffer)
        return self.buffer[start:end]

    def set_range(self, from_line: int, to_line: int) -> None:
        """Store the window used by `parse_ranged` when no bounds are given."""
        self.from_line = from_line
        self.to_line = to_line

    def line_range(self, from_line: int | None = None, to_line: int | None = None) -> range:
        """Clamp a window to the indexed lines.

        Args:
            from_line: First line; defaults to the stored window. Negative
                values start at line 0.
            to_line: Last line, inclusive; defaults to the stored window. -1 or
                a value past the end means the last line.

        Returns:
            range: Line numbers inside the window.
        """
        from_line = self.from_line if from_line is None else from_line
        to_line = self.to_line if to_line is None else to_line

        last_line = len(self.lines) - 1
        if to_line == -1 or to_line > last_line:
            to_line = last_line
        return range(max(from_line, 0), to_line + 1)

    def invalidate(self) -> None:
        """Mark every cached line as stale.

        The signature is a 31-bit counter; when it wraps, every record is
        re-stamped so that no old signature can match the new one.
        """
        self.valid_signature += 1
        if self.valid_signature > SIGNATURE_LIMIT:
            logger.debug("Line cache signature wrapped; re-stamping %d lines", len(self.lines))
            self.valid_signature = 0
            for record in self.lines:
                record.signature = -1


def build_line_index(
    buffer: str, terminator: str = DEFAULT_LINE_TERMINATOR, row_limit: int = ALL_LINES
) -> LineIndex:
    """Record where every line of `buffer` starts.

    A line starts at offset 0 and right after every terminator, so the index
    holds exactly as many lines as `parse` produces rows, empty lines included.

    Args:
        buffer: Text to index.
        terminator: Single line terminator character.
        row_limit: Maximum number of lines to index, or -1 for all of them.

    Returns:
        LineIndex: Index with every signature stale.

    Raises:
        InvalidOptionsError: If `terminator` is not a single character or
            `row_limit` is neither -1 nor positive.

    Examples:
        index = build_line_index("a,b\\nc,d\\n")
        len(index)  # 3
    """
    if not isinstance(terminator, str) or len(terminator) != 1:
        raise InvalidOptionsError("`terminator` must be a single character")
    if row_limit != ALL_LINES and row_limit <= 0:
        raise InvalidOptionsError("`row_limit` must be -1 or a positive integer")

    lines = [LineRecord(start=0)]
    offset = buffer.find(terminator)
    while offset != -1 and (row_limit == ALL_LINES or len(lines) < row_limit):
        lines.append(LineRecord(start=offset + 1))
        offset = buffer.find(terminator, offset + 1)

    return LineIndex(buffer=buffer, terminator=terminator, lines=lines, valid_signature=1)


def parse_ranged(
    options: ParseOptions,
    line_index: LineIndex,
    from_line: int | None = None,
    to_line: int | None = None,
) -> list[Row | None]:
    """Tokenize the lines of a window that are not already current.

    Lines whose signature matches the index's `valid_signature` yield None,
    meaning the caller should keep the row it already holds. Other lines are
    tokenized and stamped. Signatures are only stamped once the whole window
    has been tokenized without error.

    Args:
        options: Parsing rules.
        line_index: Index built from the buffer being previewed.
        from_line: First line of the window; defaults to the stored window.
        to_line: Last line of the window, inclusive; defaults to the stored
            window. -1 means the last line.

    Returns:
        list[Row | None]: One entry per line of the window.

    Raises:
        InvalidOptionsError: If `options` fail validation or use a different
            line terminator than the index.
        TooManyColumnsError: If a line has more than `options.max_columns` tokens.
        TooManyRowsError: If the index holds more than `options.max_rows` lines.

    Examples:
        index = build_line_index(text)
        rows = parse_ranged(options, index, 0, 20)
    """
    options = normalize_options(options)
    validate_options(options)

    if options.line_terminator != line_index.terminator:
        raise InvalidOptionsError("`line_terminator` differs from the line index terminator")

    if len(line_index.lines) > options.max_rows:
        logger.warning("Too many rows in data to parse: %d", len(line_index.lines))
        raise TooManyRowsError(options.max_rows, options.max_rows)

    separator_chars = options.separator_chars
    valid_signature = line_index.valid_signature

    rows: list[Row | None] = []
    refreshed: list[LineRecord] = []
    for line in line_index.line_range(from_line, to_line):
        record = line_index.lines[line]
        if record.signature == valid_signature:
            rows.append(None)
            continue

        ctx = ParserContext(position=record.start)
        rows.append(parse_line(line_index.buffer, ctx, options, line, separator_chars))
        refreshed.append(record)

    for record in refreshed:
        record.signature = valid_signature

    logger.debug("Re-tokenized %d of %d lines", len(refreshed), len(rows))
    return rows


def invalidate(line_index: LineIndex) -> None:
    """Force the next `parse_ranged` call to re-tokenize every line."""
    line_index.invalidate()


def resolve_placeholders(
    ranged: Sequence[Row | None],
    cached: Sequence[Row] | Mapping[int, Row],
    from_line: int = 0,
) -> list[Row]:
    """Replace the "unchanged" placeholders of a ranged parse with cached rows.

    Args:
        ranged: Result of `parse_ranged` for a window starting at `from_line`.
        cached: Rows the caller already holds, indexed by line number.
        from_line: Line number of the first entry of `ranged`.

    Returns:
        list[Row]: Fully resolved rows of the window.

    Raises:
        KeyError: If a placeholder refers to a line missing from a mapping.
        IndexError: If a placeholder refers to a line missing from a sequence.
    """
    return [
        row if row is not None else cached[from_line + offset]
        for offset, row in enumerate(ranged)
    ]
