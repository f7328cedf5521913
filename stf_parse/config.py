"""Parse options: construction, loading and validation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

from .constants import (
    ALL_LINES,
    DEFAULT_LINE_TERMINATOR,
    DEFAULT_QUOTE_CHAR,
    END_OF_LINE,
    MAX_COLUMNS,
    MAX_ROWS,
    MODE_NAMES,
    SEPARATOR_NAMES,
    TRIM_NAMES,
)
from .exceptions import ConfigError, ConfigurationChangedDuringBuildError, InvalidOptionsError
from .models import SEPARATOR_CHARACTERS, ParseMode, Separator, TrimType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseOptions:
    """Rules for splitting a text buffer into a grid of tokens.

    Options are an immutable value: derive variants with `apply_overrides` or
    `dataclasses.replace` and compare them with ``==`` to decide whether a
    preview needs re-tokenizing.

    Attributes:
        mode: Delimited (CSV style) or fixed-width splitting.
        line_terminator: Single character that ends a row.
        max_lines: Number of lines to parse, or -1 for all of them.
        trim: Sides of each field that lose plain space characters.
        separators: Separator characters used in delimited mode.
        custom_separator: Extra separator used when `Separator.CUSTOM` is set.
        quote_char: Character that opens and closes a quoted field.
        quote_doubling_is_literal: Whether two adjacent quote characters inside a
            quoted field stand for one literal quote.
        collapse_repeated_separators: Whether a run of separators ends a field
            only once.
        split_positions: End boundary of each fixed-width column, measured from
            the start of the line; -1 means "to end of line".
        max_rows: Maximum number of rows a parse may produce.
        max_columns: Maximum number of tokens a single line may produce.

    Examples:
        ParseOptions(separators=Separator.COMMA | Separator.SEMICOLON)
        ParseOptions(mode=ParseMode.FIXED_WIDTH, split_positions=(3, 7, -1))
    """

    mode: ParseMode = ParseMode.DELIMITED
    line_terminator: str = DEFAULT_LINE_TERMINATOR
    max_lines: int = ALL_LINES
    trim: TrimType = TrimType.BOTH

    # Delimited mode
    separators: Separator = Separator.COMMA
    custom_separator: str | None = None
    quote_char: str = DEFAULT_QUOTE_CHAR
    quote_doubling_is_literal: bool = True
    collapse_repeated_separators: bool = False

    # Fixed-width mode
    split_positions: tuple[int, ...] = ()

    # Limits
    max_rows: int = MAX_ROWS
    max_columns: int = MAX_COLUMNS

    @property
    def last_row_index(self) -> int | None:
        """Inclusive index of the last row to parse, or None when unlimited."""
        if self.max_lines == ALL_LINES:
            return None
        return self.max_lines - 1

    @property
    def separator_chars(self) -> frozenset[str]:
        """Characters that end a field in delimited mode."""
        chars = {char for flag, char in SEPARATOR_CHARACTERS.items() if flag in self.separators}
        if Separator.CUSTOM in self.separators and self.custom_separator:
            chars.add(self.custom_separator)
        return frozenset(chars)


def normalize_options(options: ParseOptions) -> ParseOptions:
    """Bring an options value into canonical form.

    Split positions become a tuple and, in fixed-width mode, a non-empty
    sequence gains the trailing -1 sentinel when it lacks one, so the number of
    fixed columns always equals ``len(split_positions)``.

    Args:
        options: Options to normalize.

    Returns:
        ParseOptions: Equivalent options in canonical form.
    """
    split_positions = tuple(options.split_positions)
    if (
        options.mode is ParseMode.FIXED_WIDTH
        and split_positions
        and split_positions[-1] != END_OF_LINE
    ):
        split_positions += (END_OF_LINE,)

    if split_positions == options.split_positions:
        return options
    return replace(options, split_positions=split_positions)


def validate_options(options: ParseOptions) -> None:
    """Validate a `ParseOptions` instance before any tokenizing starts.

    Args:
        options: Options to validate.

    Returns:
        None.

    Raises:
        InvalidOptionsError: If a field has the wrong type, the quote character
            is missing or clashes with the line terminator, fixed-width mode has
            no split positions, or split positions are out of order.

    Examples:
        validate_options(ParseOptions(quote_char="'"))
    """
    try:
        _validate(options)
    except InvalidOptionsError as error:
        logger.warning("STF: %s", error.reason)
        raise


def _validate(options: ParseOptions) -> None:
    if not isinstance(options.mode, ParseMode):
        raise InvalidOptionsError("`mode` must be a ParseMode")
    if not isinstance(options.trim, TrimType):
        raise InvalidOptionsError("`trim` must be a TrimType")
    if not isinstance(options.separators, Separator):
        raise InvalidOptionsError("`separators` must be a Separator")

    _ensure_character("line_terminator", options.line_terminator)

    _ensure_integers(
        {
            "max_lines": options.max_lines,
            "max_rows": options.max_rows,
            "max_columns": options.max_columns,
        }
    )
    if options.max_lines != ALL_LINES and options.max_lines <= 0:
        raise InvalidOptionsError("`max_lines` must be -1 or a positive integer")
    _ensure_positive({"max_rows": options.max_rows, "max_columns": options.max_columns})

    for key in ("quote_doubling_is_literal", "collapse_repeated_separators"):
        if not isinstance(getattr(options, key), bool):
            raise InvalidOptionsError(f"`{key}` must be a boolean")

    if options.mode is ParseMode.DELIMITED:
        _ensure_character("quote_char", options.quote_char)
        if options.quote_char == options.line_terminator:
            raise InvalidOptionsError("`quote_char` must differ from `line_terminator`")
        if Separator.CUSTOM in options.separators:
            _ensure_character("custom_separator", options.custom_separator)
            if options.custom_separator == options.line_terminator:
                raise InvalidOptionsError("`custom_separator` must differ from `line_terminator`")
    else:
        _validate_split_positions(options.split_positions)


def _validate_split_positions(split_positions: tuple[int, ...]) -> None:
    if not split_positions:
        raise InvalidOptionsError("Fixed-width mode requires at least one split position")

    previous = 0
    for index, position in enumerate(split_positions):
        if isinstance(position, bool) or not isinstance(position, int):
            raise InvalidOptionsError("split positions must be integers")
        if position == END_OF_LINE:
            if index != len(split_positions) - 1:
                raise InvalidOptionsError("-1 is only allowed as the last split position")
            continue
        if position < 0:
            raise InvalidOptionsError("split positions must be >= 0 or -1")
        if position < previous:
            raise InvalidOptionsError("split positions must be non-decreasing")
        previous = position


class SplitPositionEditor:
    """Edit the split positions of an options value and report real changes.

    The editor is a context manager: entering it snapshots the current
    positions, leaving it compares the edited positions with the snapshot and
    sets `changed`. Opening an editor that is already open, or building
    options while it is open, raises `ConfigurationChangedDuringBuildError`.

    Args:
        options: Options whose split positions are edited.

    Examples:
        editor = SplitPositionEditor(options)
        with editor:
            editor.clear()
            editor.add(4)
            editor.add(-1)
        if editor.changed:
            options = editor.build()
    """

    def __init__(self, options: ParseOptions):
        self._options = options
        self._positions = list(options.split_positions)
        self._snapshot: tuple[int, ...] | None = None
        self.changed = False

    @property
    def positions(self) -> tuple[int, ...]:
        return tuple(self._positions)

    def __enter__(self) -> SplitPositionEditor:
        if self._snapshot is not None:
            raise ConfigurationChangedDuringBuildError()
        self._snapshot = tuple(self._positions)
        self.changed = False
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.changed = tuple(self._positions) != self._snapshot
        self._snapshot = None

    def clear(self) -> None:
        self._positions.clear()

    def add(self, position: int) -> None:
        """Append a boundary; it must be >= 0, or -1 for "to end of line"."""
        if position < 0 and position != END_OF_LINE:
            raise InvalidOptionsError("split positions must be >= 0 or -1")
        self._positions.append(position)

    def build(self) -> ParseOptions:
        """Return the edited options.

        Raises:
            ConfigurationChangedDuringBuildError: If the editor is still open.
        """
        if self._snapshot is not None:
            raise ConfigurationChangedDuringBuildError()
        return replace(self._options, split_positions=tuple(self._positions))


def load_options(search_path: Path) -> ParseOptions:
    """Load parse options from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.stf-parse]`` table from `pyproject.toml` and the
    ``[stf-parse]`` or ``[tool.stf-parse]`` table from `.stf-parse.toml` when
    present. Returns default values when no configuration is found. TOML files
    that cannot be read or decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        ParseOptions: Loaded options with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but is not a mapping, contains
            unsupported keys, or uses unknown names.

    Examples:
        load_options(Path("data"))
    """
    current = search_path.resolve()

    while True:
        pyproject_options = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "stf-parse")]
        )
        if pyproject_options is not None:
            return normalize_options(pyproject_options)

        dotfile_options = _load_from_file(
            current / ".stf-parse.toml",
            table_paths=[("stf-parse",), ("tool", "stf-parse")],
        )
        if dotfile_options is not None:
            return normalize_options(dotfile_options)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return ParseOptions()


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> ParseOptions | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError) as error:
        logger.debug("Skipping unreadable config file %s: %s", config_file, error)
        return None

    for table_path in table_paths:
        raw_options = _extract_table(data, table_path)
        if raw_options is _MISSING:
            continue
        return _build_options_from_raw(raw_options, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_options_from_raw(
    raw_options: object, config_file: Path, table_path: tuple[str, ...]
) -> ParseOptions:
    table_display = ".".join(table_path)

    if raw_options is None:
        return ParseOptions()

    if not isinstance(raw_options, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    try:
        return options_from_mapping(raw_options)
    except (TypeError, ConfigError) as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}: {error}") from error


def options_from_mapping(raw: dict[str, object]) -> ParseOptions:
    """Build options from plain names and values, as found in TOML files.

    Args:
        raw: Mapping of option names to values. ``mode`` takes ``"delimited"``
            or ``"fixed"``; ``separators`` and ``trim`` take lists of names.

    Returns:
        ParseOptions: Options built from `raw`.

    Raises:
        ConfigError: If a name is not recognised.
        TypeError: If `raw` contains unsupported keys.

    Examples:
        options_from_mapping({"separators": ["comma", "tab"], "trim": ["right"]})
    """
    values = dict(raw)
    if "mode" in values:
        values["mode"] = parse_mode_name(values["mode"])
    if "separators" in values:
        values["separators"] = parse_separator_names(values["separators"])
    if "trim" in values:
        values["trim"] = parse_trim_names(values["trim"])
    if "split_positions" in values:
        if not isinstance(values["split_positions"], (list, tuple)):
            raise ConfigError("`split_positions` must be a list of integers")
        values["split_positions"] = tuple(values["split_positions"])
    return ParseOptions(**values)


def parse_mode_name(name: object) -> ParseMode:
    if name == "delimited":
        return ParseMode.DELIMITED
    if name == "fixed":
        return ParseMode.FIXED_WIDTH
    raise ConfigError(f"`mode` must be one of: {', '.join(MODE_NAMES)}")


def parse_separator_names(names: object) -> Separator:
    if isinstance(names, str):
        names = [names]
    separators = Separator.NONE
    for name in names:
        if name not in SEPARATOR_NAMES:
            raise ConfigError(f"Unknown separator {name!r}; expected one of: {', '.join(SEPARATOR_NAMES)}")
        separators |= Separator[name.upper()]
    return separators


def parse_trim_names(names: object) -> TrimType:
    if names == "both":
        return TrimType.BOTH
    if names == "none":
        return TrimType.NEVER
    if isinstance(names, str):
        names = [names]
    trim = TrimType.NEVER
    for name in names:
        if name not in TRIM_NAMES:
            raise ConfigError(f"Unknown trim side {name!r}; expected one of: {', '.join(TRIM_NAMES)}")
        trim |= TrimType[name.upper()]
    return trim


def apply_overrides(options: ParseOptions, **overrides: object) -> ParseOptions:
    """Apply override values to a `ParseOptions`.

    Args:
        options: Base options to update.
        overrides: Override values keyed by field name; values set to None are
            ignored.

    Returns:
        ParseOptions: New options with the overrides applied. The original value
        is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `ParseOptions`.

    Examples:
        updated = apply_overrides(options, quote_char="'", max_lines=10)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return options
    return replace(options, **changes)


def build_options(search_path: Path, **overrides: object) -> ParseOptions:
    """Load, override, normalize and validate parse options.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by field name; None values are ignored.

    Returns:
        ParseOptions: Validated options ready for parsing.

    Raises:
        ConfigError: If loading or validation fails.

    Examples:
        options = build_options(Path.cwd(), separators=Separator.TAB)
    """
    options = load_options(search_path)
    options = apply_overrides(options, **overrides)
    options = normalize_options(options)
    validate_options(options)
    return options


def _ensure_character(key: str, value: object) -> None:
    if not isinstance(value, str) or len(value) != 1 or value == "\0":
        raise InvalidOptionsError(f"`{key}` must be a single non-null character")


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise InvalidOptionsError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidOptionsError(f"`{key}` must be an integer")
