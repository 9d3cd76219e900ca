# SPDX-License-Identifier: MIT
# Copyright (c) 2025 fbunlock contributors
"""
Unlock package error definitions.

Errors specific to the bootloader unlock handshake. Wire-level failures
(transport, malformed replies, download negotiation) live in fastboot.errors;
every class here derives from FastbootError so a caller can catch the whole
family at once.

Exceptions:
    UnlockError: Base class for unlock-related errors.
    IdentifierOverflow: Identifier token longer than 128 hex digits.
    SignatureDecodeError: Signing primitive returned an undecodable hex string.
    SigningError: Signing primitive raised (e.g. a public key was supplied).
    KeyLoadError: Private key file missing or not an RSA private key.
"""

from fastboot.errors import FastbootError


class UnlockError(FastbootError):
    """Base class for unlock-related errors."""


class IdentifierOverflow(UnlockError):
    """Identifier token does not fit the 64-byte identifier buffer."""

    def __init__(self, actual: int, max: int = 128):  # pylint: disable=redefined-builtin
        self.actual = actual
        self.max = max
        super().__init__(f"Identifier token size overflow: {actual} is more than {max} digits")


class SignatureDecodeError(UnlockError):
    """Hex signature could not be decoded into raw bytes."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Cannot decode signature: {reason}")


class SigningError(UnlockError):
    """Signing primitive rejected the key or the message."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Cannot sign identifier: {reason}")


class KeyLoadError(UnlockError):
    """Private key could not be loaded."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        msg = f"Cannot load private key from {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
