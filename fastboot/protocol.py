"""Fastboot wire protocol definitions.

This module defines the textual status responses a fastboot device sends back
to the host, the command strings used by the unlock handshake, and the size
header encoding used to negotiate binary downloads.

Every device reply starts with a 4-character status code:

    - ``OKAY<message>``: command completed
    - ``DATA<8 hex digits>``: device is ready to receive that many bytes
    - ``FAIL<message>``: command failed
    - ``INFO<message>``: informational line, more replies follow

All numeric fields are lowercase hexadecimal; size headers are always 8 digits.

Copyright (c) 2025 fbunlock contributors
SPDX-License-Identifier: MIT
"""

import string
from dataclasses import dataclass
from typing import Union

from fastboot.errors import MalformedResponse, ProtocolFail, TransferSizeOverflow

# Status prefixes (device -> host)
STATUS_OKAY = "OKAY"
STATUS_DATA = "DATA"
STATUS_FAIL = "FAIL"
STATUS_INFO = "INFO"
STATUS_LENGTH = 4

# Commands (host -> device)
GET_IDENTIFIER_TOKEN_COMMAND = "oem get_identifier_token"
UNLOCK_BOOTLOADER_COMMAND = "flashing unlock_bootloader"
LOCK_BOOTLOADER_COMMAND = "flashing lock_bootloader"
DOWNLOAD_COMMAND_PREFIX = "download:"

SIZE_HEADER_DIGITS = 8
MAX_COMMAND_LENGTH = 64
MAX_RESPONSE_LENGTH = 64

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class Okay:
    """Command completed; ``message`` is whatever followed ``OKAY``."""

    message: str


@dataclass(frozen=True)
class Data:
    """Device is ready to receive ``size_hex`` bytes."""

    size_hex: str

    @property
    def size(self) -> int:
        """Pending byte count decoded from the hex field."""
        return int(self.size_hex, 16)


@dataclass(frozen=True)
class Fail:
    """Command failed with ``message``."""

    message: str


@dataclass(frozen=True)
class Info:
    """Informational line; the command is still running."""

    message: str


@dataclass(frozen=True)
class Unknown:
    """Line that does not match any known status; ``raw`` is the full line."""

    raw: str


ProtocolResponse = Union[Okay, Data, Fail, Info, Unknown]


def is_hex(text: str) -> bool:
    """Return True if every character of ``text`` is a hex digit (empty is hex)."""
    return all(ch in _HEX_DIGITS for ch in text)


def parse_response(raw: str) -> ProtocolResponse:
    """Parse one device reply line into a tagged response.

    The first 4 characters select the variant, the remainder is kept verbatim
    as the payload. A ``DATA`` line must carry exactly 8 hex digits, otherwise
    it is treated as malformed and returned as ``Unknown``.

    Never raises: an unmatched line is returned as ``Unknown`` and the caller
    decides whether that is fatal.

    Args:
        raw: Reply line as received from the transport

    Returns:
        Parsed response variant
    """
    if len(raw) < STATUS_LENGTH:
        return Unknown(raw)

    status, rest = raw[:STATUS_LENGTH], raw[STATUS_LENGTH:]

    if status == STATUS_OKAY:
        return Okay(rest)
    if status == STATUS_DATA:
        if len(rest) == SIZE_HEADER_DIGITS and is_hex(rest):
            return Data(rest)
        return Unknown(raw)
    if status == STATUS_FAIL:
        return Fail(rest)
    if status == STATUS_INFO:
        return Info(rest)
    return Unknown(raw)


def encode_size(length: int) -> str:
    """Encode a byte length as an 8-digit lowercase hex size header.

    Args:
        length: Number of bytes about to be transferred

    Returns:
        Zero-padded 8-character lowercase hex string

    Raises:
        TransferSizeOverflow: If the encoding needs more than 8 digits (length >= 2**32)
        ValueError: If length is negative
    """
    if length < 0:
        raise ValueError(f"Transfer size cannot be negative: {length}")

    encoded = f"{length:0{SIZE_HEADER_DIGITS}x}"
    if len(encoded) != SIZE_HEADER_DIGITS:
        raise TransferSizeOverflow(encoded, SIZE_HEADER_DIGITS)
    return encoded


def download_command(size_header: str) -> str:
    """Build the ``download:<size>`` command for an encoded size header."""
    return f"{DOWNLOAD_COMMAND_PREFIX}{size_header}"


def expect_okay(raw: str, context: str) -> str:
    """Require an OKAY reply and return its message.

    Args:
        raw: Final status line received from the device
        context: What the reply answers (used in error messages)

    Returns:
        Message that followed OKAY

    Raises:
        ProtocolFail: If the device answered FAIL
        MalformedResponse: For any other reply
    """
    parsed = parse_response(raw)
    if isinstance(parsed, Okay):
        return parsed.message
    if isinstance(parsed, Fail):
        raise ProtocolFail(parsed.message)
    raise MalformedResponse(raw, f"expected OKAY or FAIL for {context}")
