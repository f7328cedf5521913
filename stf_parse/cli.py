"""
Splits a delimited or fixed-width text file into columns.
Prints the resulting grid as tab separated values or JSON.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from .config import (
    build_options,
    load_options,
    parse_mode_name,
    parse_separator_names,
    parse_trim_names,
)
from .constants import MODE_NAMES, SEPARATOR_NAMES
from .exceptions import ConfigError, ParseError
from .filesystem import get_max_file_size, read_text
from .introspect import autodiscover_split_positions, column_count, longest_row_width, row_count
from .models import Grid, ParseMode, Separator
from .normalize import is_valid_text, normalize_line_endings
from .tokenizer import parse

__all__ = ["cli"]


def _parse_split_positions(raw: str) -> tuple[int, ...]:
    try:
        return tuple(int(part) for part in raw.split(",") if part.strip())
    except ValueError as error:
        raise click.BadParameter(
            f"split positions must be comma separated integers, got {raw!r}"
        ) from error


def _render_grid(grid: Grid, output_format: str) -> str:
    if output_format == "json":
        return json.dumps(grid, ensure_ascii=False) + "\n"
    return "".join(
        "\t".join(token if token is not None else "" for token in row) + "\n" for row in grid
    )


@click.command()
@click.version_option()
@click.option("--mode", type=click.Choice(MODE_NAMES), help="Delimited or fixed-width parsing")
@click.option(
    "--separator",
    "separators",
    multiple=True,
    type=click.Choice(SEPARATOR_NAMES),
    help="Field separator (repeatable)",
)
@click.option(
    "--custom-separator", help="Extra separator character, added to the other separators"
)
@click.option("--quote-char", help="Quote character")
@click.option(
    "--quote-doubling/--no-quote-doubling",
    default=None,
    help="Read two adjacent quotes inside a quoted field as one literal quote",
)
@click.option("--collapse/--no-collapse", default=None, help="Collapse runs of separators")
@click.option("--trim", type=click.Choice(["left", "right", "both", "none"]), help="Trim spaces")
@click.option("--split-positions", help="Fixed-width column boundaries, e.g. 3,7,-1")
@click.option("--autodiscover", is_flag=True, help="Guess fixed-width column boundaries")
@click.option("--max-lines", type=int, help="Number of lines to parse")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["tsv", "json"]),
    default="tsv",
    show_default=True,
    help="Output format",
)
@click.option("--stats", is_flag=True, help="Print row and column counts instead of the grid")
@click.option("--verbose", "-v", is_flag=True, help="Log parser diagnostics to stderr")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def cli(
    filepath: str,
    mode: str | None = None,
    separators: tuple[str, ...] = (),
    custom_separator: str | None = None,
    quote_char: str | None = None,
    quote_doubling: bool | None = None,
    collapse: bool | None = None,
    trim: str | None = None,
    split_positions: str | None = None,
    autodiscover: bool = False,
    max_lines: int | None = None,
    output_format: str = "tsv",
    stats: bool = False,
    verbose: bool = False,
):
    """
    Entry point for splitting a structured text file into a grid.

    Args:
        filepath: Path to the text file to parse.
        mode: ``delimited`` or ``fixed``.
        separators: Names of the separators to split on.
        custom_separator: Extra separator character; enables the custom separator.
        quote_char: Character that quotes a field.
        quote_doubling: Whether a doubled quote is a literal quote.
        collapse: Whether runs of separators count once.
        trim: Sides of each field to trim.
        split_positions: Comma separated fixed-width boundaries.
        autodiscover: Derive fixed-width boundaries from the file content.
        max_lines: Number of lines to parse.
        output_format: ``tsv`` or ``json``.
        stats: Print row and column counts instead of the grid.
        verbose: Enable diagnostic logging.

    Returns:
        None.

    Raises:
        click.BadParameter: If options are malformed or fail validation.
        click.ClickException: If the file cannot be read, is not text, or
            exceeds the parsing limits.

    Examples:
        stf-parse data.csv --separator semicolon --format json
        stf-parse report.txt --mode fixed --split-positions 10,24,-1
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    path = Path(filepath)

    try:
        max_file_size = get_max_file_size()
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        text = read_text(path, max_file_size)
    except IOError as error:
        raise click.ClickException(str(error)) from error

    text = normalize_line_endings(text)
    if not is_valid_text(text):
        raise click.ClickException(f"{path} does not contain plain text.")

    try:
        separator_flags = parse_separator_names(separators) if separators else None
        if custom_separator is not None:
            # Adds to the configured separators rather than replacing them
            if separator_flags is None:
                separator_flags = load_options(path.parent).separators
            separator_flags |= Separator.CUSTOM
        overrides = {
            "mode": parse_mode_name(mode) if mode else None,
            "separators": separator_flags,
            "custom_separator": custom_separator,
            "quote_char": quote_char,
            "quote_doubling_is_literal": quote_doubling,
            "collapse_repeated_separators": collapse,
            "trim": parse_trim_names(trim) if trim else None,
            "split_positions": _parse_split_positions(split_positions) if split_positions else None,
            "max_lines": max_lines,
        }
        if autodiscover:
            overrides["mode"] = ParseMode.FIXED_WIDTH
            overrides["split_positions"] = autodiscover_split_positions(
                build_options(path.parent, mode=ParseMode.DELIMITED, max_lines=max_lines), text
            )
        options = build_options(path.parent, **overrides)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        if stats:
            click.echo(f"rows: {row_count(options, text)}")
            click.echo(f"columns: {column_count(options, text)}")
            click.echo(f"longest row: {longest_row_width(options, text)}")
            return
        grid = parse(options, text)
    except ParseError as error:
        raise click.ClickException(str(error)) from error

    click.echo(_render_grid(grid, output_format), nl=False)


if __name__ == "__main__":
    cli()
