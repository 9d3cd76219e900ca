"""Tests for identifier token extraction and normalization."""

import pytest

from fastboot.errors import MalformedResponse
from unlock.errors import IdentifierOverflow
from unlock.identifier import (
    IDENTIFIER_HEX_DIGITS,
    TOKEN_LINE_INDEX,
    Identifier,
    extract_token,
    normalize_identifier,
)


def test_token_line_index_is_pinned():
    """The token sits on the third line of the command output."""
    assert TOKEN_LINE_INDEX == 2
    assert extract_token(["first", "second", "third", "fourth"]) == "third"


def test_scenario_padding():
    """'ABCDEF' on line 2 becomes 'abcdef' followed by 122 zeros."""
    identifier = normalize_identifier("...\n...\nABCDEF\n".split("\n"))
    assert identifier.hex == "abcdef" + "0" * 122
    assert len(identifier.hex) == IDENTIFIER_HEX_DIGITS


def test_empty_token_is_all_zeros():
    identifier = normalize_identifier(["", "Identifier token:", ""])
    assert identifier.hex == "0" * 128


def test_full_length_token_unchanged():
    token = "0123456789abcdef" * 8
    assert normalize_identifier(["", "", token]).hex == token


def test_overflow_129_digits():
    with pytest.raises(IdentifierOverflow) as exc_info:
        normalize_identifier(["", "", "a" * 129])
    assert exc_info.value.actual == 129
    assert exc_info.value.max == 128


def test_fewer_than_three_lines():
    with pytest.raises(MalformedResponse):
        normalize_identifier(["only", "two"])


def test_non_hex_token():
    with pytest.raises(MalformedResponse):
        normalize_identifier(["", "", "not-a-token"])


def test_surrounding_whitespace_is_stripped():
    assert normalize_identifier(["", "", " 0A1B\r"]).hex.startswith("0a1b00")


def test_to_bytes_is_64_bytes_zero_extended():
    raw = normalize_identifier(["", "", "ABCDEF"]).to_bytes()
    assert len(raw) == 64
    assert raw[:3] == b"\xab\xcd\xef"
    assert raw[3:] == bytes(61)


def test_identifier_rejects_wrong_width():
    with pytest.raises(ValueError):
        Identifier("abcdef")
