from __future__ import annotations

import pytest

from stf_parse.cache import (
    LineIndex,
    build_line_index,
    invalidate,
    parse_ranged,
    resolve_placeholders,
)
from stf_parse.config import ParseOptions
from stf_parse.constants import SIGNATURE_LIMIT
from stf_parse.exceptions import InvalidOptionsError, TooManyColumnsError, TooManyRowsError
from stf_parse.models import Separator
from stf_parse.tokenizer import parse

TEXT = "a,b\n\nc,d,e\nf\n"


def test_build_line_index_records_every_line_start():
    index = build_line_index(TEXT)

    assert [record.start for record in index.lines] == [0, 4, 5, 11, 13]
    assert all(record.signature == 0 for record in index.lines)
    assert index.valid_signature == 1
    assert len(index) == len(parse(ParseOptions(), TEXT))


def test_build_line_index_empty_buffer_has_one_line():
    index = build_line_index("")

    assert len(index) == 1
    assert index.line_text(0) == ""


def test_build_line_index_respects_row_limit():
    index = build_line_index(TEXT, row_limit=2)

    assert [record.start for record in index.lines] == [0, 4]


def test_build_line_index_custom_terminator():
    index = build_line_index("a|b|c", terminator="|")

    assert [index.line_text(line) for line in range(len(index))] == ["a", "b", "c"]


@pytest.mark.parametrize("terminator,row_limit", [("", -1), ("\r\n", -1), ("\n", 0), ("\n", -3)])
def test_build_line_index_rejects_bad_arguments(terminator: str, row_limit: int):
    with pytest.raises(InvalidOptionsError):
        build_line_index(TEXT, terminator=terminator, row_limit=row_limit)


def test_line_text_excludes_terminator():
    index = build_line_index(TEXT)

    assert index.line_text(2) == "c,d,e"
    assert index.line_text(4) == ""


def test_fresh_index_parses_every_line_like_parse():
    options = ParseOptions()
    index = build_line_index(TEXT)

    assert parse_ranged(options, index) == parse(options, TEXT)


def test_second_ranged_parse_returns_placeholders():
    options = ParseOptions()
    index = build_line_index(TEXT)
    parse_ranged(options, index)

    assert parse_ranged(options, index) == [None] * len(index)


def test_invalidate_forces_full_reparse():
    options = ParseOptions()
    index = build_line_index(TEXT)
    parse_ranged(options, index)

    invalidate(index)
    rows = parse_ranged(options, index)

    assert None not in rows
    assert rows == parse(options, TEXT)


def test_changed_rules_after_invalidate():
    index = build_line_index("a;b,c")
    assert parse_ranged(ParseOptions(), index) == [["a;b", "c"]]

    invalidate(index)
    options = ParseOptions(separators=Separator.SEMICOLON)

    assert parse_ranged(options, index) == [["a", "b,c"]]


def test_ranged_parse_only_touches_window():
    options = ParseOptions()
    index = build_line_index(TEXT)

    assert parse_ranged(options, index, 2, 3) == [["c", "d", "e"], ["f"]]
    assert parse_ranged(options, index) == [["a", "b"], [None], None, None, [None]]


@pytest.mark.parametrize("to_line", [-1, 4, 99])
def test_ranged_parse_clamps_to_last_line(to_line: int):
    index = build_line_index(TEXT)

    rows = parse_ranged(ParseOptions(), index, 3, to_line)

    assert rows == [["f"], [None]]


def test_ranged_parse_clamps_negative_start():
    index = build_line_index(TEXT)

    assert parse_ranged(ParseOptions(), index, -5, 0) == [["a", "b"]]


def test_ranged_parse_empty_window():
    index = build_line_index(TEXT)

    assert parse_ranged(ParseOptions(), index, 3, 1) == []


def test_ranged_parse_uses_stored_window():
    index = build_line_index(TEXT)
    index.set_range(1, 2)

    assert parse_ranged(ParseOptions(), index) == [[None], ["c", "d", "e"]]
    assert (index.from_line, index.to_line) == (1, 2)


def test_line_range_defaults():
    index = LineIndex(buffer="", lines=[])

    assert list(build_line_index(TEXT).line_range()) == [0, 1, 2, 3, 4]
    assert list(index.line_range()) == []


def test_signature_wrap_restamps_every_line():
    options = ParseOptions()
    index = build_line_index(TEXT)
    index.valid_signature = SIGNATURE_LIMIT
    parse_ranged(options, index)

    invalidate(index)

    assert index.valid_signature == 0
    assert all(record.signature == -1 for record in index.lines)
    assert parse_ranged(options, index) == parse(options, TEXT)
    assert parse_ranged(options, index) == [None] * len(index)


def test_failed_ranged_parse_stamps_nothing():
    index = build_line_index("a\nb,c")

    with pytest.raises(TooManyColumnsError) as error:
        parse_ranged(ParseOptions(max_columns=1), index)

    assert error.value.line_index == 1
    assert parse_ranged(ParseOptions(), index) == [["a"], ["b", "c"]]


def test_ranged_parse_rejects_terminator_mismatch():
    index = build_line_index("a|b", terminator="|")

    with pytest.raises(InvalidOptionsError):
        parse_ranged(ParseOptions(), index)


def test_ranged_parse_rejects_too_many_rows():
    index = build_line_index("a\nb\nc")

    with pytest.raises(TooManyRowsError):
        parse_ranged(ParseOptions(max_rows=2), index)


def test_resolve_placeholders_against_full_parse():
    options = ParseOptions()
    full = parse(options, TEXT)
    index = build_line_index(TEXT)
    parse_ranged(options, index, 0, 1)

    rows = parse_ranged(options, index)

    assert rows[:2] == [None, None]
    assert resolve_placeholders(rows, full) == full


def test_resolve_placeholders_with_window_mapping():
    options = ParseOptions()
    index = build_line_index(TEXT)
    cached = {2: ["c", "d", "e"]}
    parse_ranged(options, index, 2, 2)

    rows = parse_ranged(options, index, 2, 3)

    assert resolve_placeholders(rows, cached, from_line=2) == [["c", "d", "e"], ["f"]]


def test_resolve_placeholders_missing_cached_row():
    with pytest.raises(KeyError):
        resolve_placeholders([None], {}, from_line=3)
