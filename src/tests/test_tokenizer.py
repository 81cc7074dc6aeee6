from __future__ import annotations

import pytest

from dsa_tui.sheet.tokenizer import parse_csv, serialize_csv


def test_quoted_comma_stays_in_field():
    assert parse_csv('a,"b,c",d') == [["a", "b,c", "d"]]


def test_doubled_quote_is_literal():
    assert parse_csv('a,"b""c",d') == [["a", 'b"c', "d"]]


def test_whitespace_only_line_is_skipped():
    assert parse_csv("a,b\n   \n\nc,d") == [["a", "b"], ["c", "d"]]


def test_fields_are_trimmed_and_trailing_empty_field_kept():
    assert parse_csv(" a , b ,") == [["a", "b", ""]]


def test_quoted_whitespace_is_kept():
    assert parse_csv(' "  a  " ,"b\n"') == [["  a  ", "b\n"]]


def test_quoted_empty_field_is_a_row():
    assert parse_csv('a\n""\nb') == [["a"], [""], ["b"]]


def test_crlf_line_endings():
    assert parse_csv("name,platform\r\nTwo Sum,LeetCode\r\n") == [
        ["name", "platform"],
        ["Two Sum", "LeetCode"],
    ]


def test_unbalanced_quote_does_not_swallow_following_rows():
    rows = parse_csv('a,"b\nc,d\ne,f')
    assert rows == [["a", "b"], ["c", "d"], ["e", "f"]]


def test_unbalanced_quote_on_last_line():
    assert parse_csv('x,y\na,"b') == [["x", "y"], ["a", "b"]]


@pytest.mark.parametrize(
    "rows",
    [
        [["Two Sum", 'He said "hi"', "a,b"]],
        [["multi\nline", "x"], ["plain", ""]],
        [["name", "platform", "link"], ['"quoted"', "Leet,Code", "https://x.y/?a=1,2"]],
        [["line one\n", "x"]],
        [["\nlead", "y"], ["  padded  ", "z"]],
        [["a"], [""], ["b"]],
    ],
)
def test_serialize_then_parse_round_trips(rows):
    assert parse_csv(serialize_csv(rows)) == rows
