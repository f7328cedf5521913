from stf_parse.models import (
    SEPARATOR_CHARACTERS,
    LineRecord,
    ParseMode,
    ParserContext,
    QuoteState,
    Separator,
    TrimType,
)


def test_parse_mode_members():
    assert list(ParseMode) == [ParseMode.DELIMITED, ParseMode.FIXED_WIDTH]


def test_quote_state_members():
    assert list(QuoteState) == [QuoteState.INSIDE, QuoteState.OUTSIDE]


def test_trim_type_combinations():
    assert TrimType.LEFT | TrimType.RIGHT == TrimType.BOTH
    assert TrimType.LEFT in TrimType.BOTH
    assert TrimType.RIGHT not in TrimType.LEFT
    assert TrimType.LEFT not in TrimType.NEVER


def test_every_builtin_separator_has_a_character():
    builtin = [flag for flag in Separator if flag not in (Separator.NONE, Separator.CUSTOM)]

    assert sorted(SEPARATOR_CHARACTERS, key=lambda flag: flag.value) == builtin
    assert not any(char.isalnum() for char in SEPARATOR_CHARACTERS.values())


def test_parser_context_defaults():
    ctx = ParserContext()

    assert ctx.position == 0
    assert ctx.split_index == 0
    assert ctx.line_position == 0


def test_line_record_starts_stale():
    record = LineRecord(start=12)

    assert record.start == 12
    assert record.signature == 0
