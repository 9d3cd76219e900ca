"""Exception types for fastboot operations.

Every error keeps a human-readable message (``str(error)``) and exposes the
structured fields that caused it as attributes, so callers can inspect the
failure kind without parsing text.

Copyright (c) 2025 fbunlock contributors
SPDX-License-Identifier: MIT
"""


class FastbootError(Exception):
    """Base exception for fastboot-related errors."""


class DeviceNotFoundError(FastbootError):
    """Raised when no device exposing a fastboot interface is detected."""


class TransportError(FastbootError):
    """Raised for USB communication failures with a fastboot device.

    Covers errors related to the transport path including:
    - Interface claim/release failures
    - Write errors when sending commands or payload chunks
    - Read errors and timeouts
    - Permission/driver issues
    """


class DisconnectedError(TransportError):
    """Raised when the device went away or the session was abandoned mid-flight."""


class MalformedResponse(FastbootError):
    """Raised when a device reply does not have the expected shape."""

    def __init__(self, raw: str, reason: str = ""):
        self.raw = raw
        self.reason = reason
        msg = "Malformed response"
        if reason:
            msg += f": {reason}"
        msg += f" ({raw!r})"
        super().__init__(msg)


class TransferSizeOverflow(FastbootError):
    """Raised when a byte length does not fit the 8-digit size header."""

    def __init__(self, encoded: str, max_digits: int = 8):
        self.encoded = encoded
        self.max_digits = max_digits
        super().__init__(f"Transfer size overflow: {encoded} is more than {max_digits} digits")


class UnexpectedDownloadResponse(FastbootError):
    """Raised when a download command is answered with anything but DATA."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Unexpected response to download command: {raw!r}")


class SizeMismatch(FastbootError):
    """Raised when the device acknowledges a different transfer size than requested."""

    def __init__(self, requested: int, offered: int):
        self.requested = requested
        self.offered = offered
        super().__init__(f"Bootloader wants {offered} bytes, requested to send {requested} bytes")


class ProtocolFail(FastbootError):
    """Raised when the device explicitly answers FAIL."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
