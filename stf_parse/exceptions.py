"""Package-specific exception types."""

from __future__ import annotations


class ParseError(ValueError):
    """Base class for parsing-related errors.

    Raised when tokenizing a buffer would exceed one of the configured
    ceilings. No partial grid is ever returned alongside it.
    """


class TooManyColumnsError(ParseError):
    """Raised when a line yields more tokens than allowed.

    Args:
        line_index: Zero-based index of the offending line.
        max_columns: Maximum number of tokens permitted on one line.
    """

    def __init__(self, line_index: int, max_columns: int):
        self.line_index = line_index
        self.max_columns = max_columns
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return (
            f"Line {self.line_index + 1} has too many columns to parse "
            f"(limit: {self.max_columns})"
        )


class TooManyRowsError(ParseError):
    """Raised when a buffer contains more rows than allowed.

    Args:
        row_index: Zero-based index of the first row past the ceiling.
        max_rows: Maximum number of rows permitted.
    """

    def __init__(self, row_index: int, max_rows: int):
        self.row_index = row_index
        self.max_rows = max_rows
        super().__init__(f"Too many rows in data to parse (limit: {self.max_rows})")


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("Invalid `[tool.stf-parse]` settings in pyproject.toml")
    """


class InvalidOptionsError(ConfigError):
    """Raised when a `ParseOptions` value cannot be used for parsing.

    Args:
        reason: Human readable description of the problem.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ConfigurationChangedDuringBuildError(ConfigError):
    """Raised when split positions are edited re-entrantly.

    An editor session must be closed before another one is opened or before
    the edited options are used.
    """

    def __init__(self):
        super().__init__("Split positions are still being modified")
