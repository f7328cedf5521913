"""Data models for stf-parse."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, Flag, auto
from typing import Optional


class ParseMode(Enum):
    """Strategy used to split a line into tokens.

    Attributes:
        DELIMITED: Fields end at separator characters (CSV style).
        FIXED_WIDTH: Fields end at configured character positions.
    """

    DELIMITED = auto()
    FIXED_WIDTH = auto()


class TrimType(Flag):
    """Which sides of a field lose their plain space characters."""

    NEVER = 0
    LEFT = 1
    RIGHT = 2
    BOTH = 3


class Separator(Flag):
    """Characters that end a field in delimited mode."""

    NONE = 0
    TAB = auto()
    COLON = auto()
    COMMA = auto()
    SPACE = auto()
    SEMICOLON = auto()
    PIPE = auto()
    SLASH = auto()
    HYPHEN = auto()
    BANG = auto()
    CUSTOM = auto()


SEPARATOR_CHARACTERS = {
    Separator.TAB: "\t",
    Separator.COLON: ":",
    Separator.COMMA: ",",
    Separator.SPACE: " ",
    Separator.SEMICOLON: ";",
    Separator.PIPE: "|",
    Separator.SLASH: "/",
    Separator.HYPHEN: "-",
    Separator.BANG: "!",
}


class QuoteState(Enum):
    """Quote states used while scanning a delimited field.

    Attributes:
        INSIDE: Between an opening quote and its closing quote.
        OUTSIDE: Unquoted text, or text after the closing quote.
    """

    INSIDE = auto()
    OUTSIDE = auto()


@dataclass
class ParserContext:
    """Cursor shared by the cell and line tokenizers.

    Attributes:
        position: Offset of the next unread character in the buffer.
        split_index: Index of the next fixed-width boundary to match.
        line_position: Offset of `position` from the start of the line.
    """

    position: int = 0
    split_index: int = 0
    line_position: int = 0


@dataclass
class LineRecord:
    """One indexed line of a buffer.

    Attributes:
        start: Offset of the first character of the line.
        signature: Version stamp of the last tokenization of this line.
    """

    start: int
    signature: int = 0


# A token is the text of a field, or None for an empty field.
Token = Optional[str]
Row = list[Token]
Grid = list[Row]
