"""Reading input files for the stf-parse command line."""

from __future__ import annotations

import os
import stat
from pathlib import Path

from .constants import DEFAULT_MAX_FILE_SIZE

MAX_FILE_SIZE_ENV_VAR = "STF_PARSE_MAX_FILE_SIZE"


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Return the largest input file accepted, in bytes.

    `STF_PARSE_MAX_FILE_SIZE` overrides `default` when set.

    Raises:
        ValueError: If the variable holds anything but a positive integer.
    """
    raw_limit = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if raw_limit is None:
        return default

    try:
        limit = int(raw_limit)
    except ValueError:
        limit = 0
    if limit <= 0:
        raise ValueError(
            f"{MAX_FILE_SIZE_ENV_VAR} must be a positive number of bytes, got {raw_limit!r}"
        )
    return limit


def read_text(filepath: Path, max_size: int) -> str:
    """Read a whole input file as UTF-8 text.

    Symlinks are followed. Only regular files are read, so a FIFO or device
    never blocks the command. A leading byte order mark is dropped and line
    endings are left untouched for `normalize_line_endings`.

    Args:
        filepath: Path to the file.
        max_size: Largest accepted size in bytes.

    Returns:
        str: File content.

    Raises:
        IOError: If the file cannot be opened, is not a regular file, is
            larger than `max_size`, or is not valid UTF-8.

    Examples:
        text = read_text(Path("export.csv"), get_max_file_size())
    """
    try:
        file_stat = os.stat(filepath)
    except OSError as error:
        raise IOError(f"Cannot read {filepath}: {error.strerror}") from error

    if not stat.S_ISREG(file_stat.st_mode):
        raise IOError(f"{filepath} is not a regular file.")
    if file_stat.st_size > max_size:
        raise IOError(f"{filepath} is larger than the {max_size} byte limit.")

    try:
        with open(filepath, "r", encoding="utf-8-sig", newline="") as handle:
            return handle.read()
    except UnicodeDecodeError as error:
        raise IOError(
            f"{filepath} is not valid UTF-8 (byte offset {error.start})"
        ) from error
    except OSError as error:
        raise IOError(f"Cannot read {filepath}: {error.strerror}") from error
