# SPDX-License-Identifier: MIT
# Copyright (c) 2025 fbunlock contributors
"""
Identifier token helpers for the unlock handshake.

The bootloader answers ``oem get_identifier_token`` with several INFO lines;
the token itself sits on a fixed line. It is normalized into a 64-byte
identifier (128 hex digits) by zero-padding on the right before signing.

Functions:
- extract_token: pick the raw token line from the command output.
- normalize_identifier: validate and pad the token into an Identifier.
"""

from dataclasses import dataclass
from typing import Sequence

from fastboot.errors import MalformedResponse
from fastboot.protocol import is_hex

from .errors import IdentifierOverflow

IDENTIFIER_BYTES = 64
IDENTIFIER_HEX_DIGITS = IDENTIFIER_BYTES * 2

# Line of the ``oem get_identifier_token`` output holding the token.
# Device output shape: ["", "Identifier token:", "<hex token>", ...]
TOKEN_LINE_INDEX = 2


@dataclass(frozen=True)
class Identifier:
    """Normalized device identifier: exactly 128 lowercase hex digits."""

    hex: str

    def __post_init__(self) -> None:
        if len(self.hex) != IDENTIFIER_HEX_DIGITS or not is_hex(self.hex):
            raise ValueError(f"Identifier must be {IDENTIFIER_HEX_DIGITS} hex digits, got {self.hex!r}")

    def to_bytes(self) -> bytes:
        """
        Return the 64 raw identifier bytes.
        """
        return bytes.fromhex(self.hex)


def extract_token(lines: Sequence[str]) -> str:
    """
    Pick the identifier token from the command output lines.

    Args:
        lines: Output of ``oem get_identifier_token`` split on newlines.

    Returns:
        The token line with surrounding whitespace removed.

    Raises:
        MalformedResponse: If the output has fewer than 3 lines.
    """
    if len(lines) <= TOKEN_LINE_INDEX:
        raise MalformedResponse(
            "\n".join(lines),
            f"identifier token response has {len(lines)} line(s), expected at least {TOKEN_LINE_INDEX + 1}",
        )
    return lines[TOKEN_LINE_INDEX].strip()


def normalize_identifier(lines: Sequence[str]) -> Identifier:
    """
    Extract the token and right-pad it with zeros to 128 hex digits.

    Padding, never truncation: a token longer than the buffer is an error.

    Args:
        lines: Output of ``oem get_identifier_token`` split on newlines.

    Returns:
        The normalized Identifier.

    Raises:
        MalformedResponse: If the token line is missing or not hexadecimal.
        IdentifierOverflow: If the token is longer than 128 hex digits.
    """
    token = extract_token(lines)
    if not is_hex(token):
        raise MalformedResponse(token, "identifier token is not hexadecimal")

    if len(token) > IDENTIFIER_HEX_DIGITS:
        raise IdentifierOverflow(len(token), IDENTIFIER_HEX_DIGITS)

    return Identifier(token.lower().ljust(IDENTIFIER_HEX_DIGITS, "0"))
