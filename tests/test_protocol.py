"""Tests for fastboot response parsing and size header encoding."""

import pytest

from fastboot.errors import MalformedResponse, ProtocolFail, TransferSizeOverflow
from fastboot.protocol import (
    Data,
    Fail,
    Info,
    Okay,
    Unknown,
    download_command,
    encode_size,
    expect_okay,
    parse_response,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("OKAY", Okay("")),
        ("OKAYdone", Okay("done")),
        ("FAILtoken mismatch", Fail("token mismatch")),
        ("INFOIdentifier token:", Info("Identifier token:")),
        ("INFO  spaced  ", Info("  spaced  ")),
        ("DATA00000100", Data("00000100")),
    ],
)
def test_parse_known_prefixes(raw, expected):
    """Known prefixes map to their variant with the remainder kept verbatim."""
    assert parse_response(raw) == expected


@pytest.mark.parametrize("raw", ["", "O", "OKA", "okay", "XXXXpayload", "Okay"])
def test_parse_unknown(raw):
    """Short input and unknown prefixes are Unknown, never an exception."""
    assert parse_response(raw) == Unknown(raw)


@pytest.mark.parametrize("raw", ["DATA", "DATA0000010", "DATA000001000", "DATA0000010g", "DATAxyz"])
def test_parse_malformed_data_is_unknown(raw):
    """DATA must carry exactly 8 hex digits."""
    assert parse_response(raw) == Unknown(raw)


def test_data_size_decodes_hex():
    assert parse_response("DATA00000100").size == 256
    assert parse_response("DATAFFFFFFFF").size == 2**32 - 1


def test_parse_is_idempotent():
    """Parsing the same line twice gives identical results."""
    for raw in ("OKAY", "DATA00000080", "FAILx", "junk"):
        assert parse_response(raw) == parse_response(raw)


def test_encode_size_256():
    assert encode_size(256) == "00000100"


def test_encode_size_bounds():
    """Zero and the largest 32-bit value both fit in 8 lowercase digits."""
    assert encode_size(0) == "00000000"
    assert encode_size(2**32 - 1) == "ffffffff"
    assert encode_size(0xABCDEF) == "00abcdef"


def test_encode_size_round_trip():
    for length in (1, 64, 4096, 123456789):
        header = encode_size(length)
        assert len(header) == 8
        assert int(header, 16) == length


def test_encode_size_overflow():
    with pytest.raises(TransferSizeOverflow) as exc_info:
        encode_size(2**32)
    assert exc_info.value.encoded == "100000000"
    assert exc_info.value.max_digits == 8


def test_encode_size_negative():
    with pytest.raises(ValueError):
        encode_size(-1)


def test_download_command():
    assert download_command("00000100") == "download:00000100"


def test_expect_okay():
    assert expect_okay("OKAYready", "test") == "ready"

    with pytest.raises(ProtocolFail) as exc_info:
        expect_okay("FAILnope", "test")
    assert exc_info.value.message == "nope"

    with pytest.raises(MalformedResponse) as exc_info:
        expect_okay("DATA00000010", "test")
    assert exc_info.value.raw == "DATA00000010"
