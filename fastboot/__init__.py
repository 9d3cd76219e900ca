"""Fastboot protocol and USB transport.

This package implements the parts of the fastboot protocol needed to send
commands and binary payloads to an Android bootloader: response parsing,
size-header encoding, the download sub-protocol and a pyusb transport.

**Platform Requirements:**
- Cross-platform support (Windows, Linux, macOS)
- Python package: pyusb (with libusb installed)
- WinUSB driver bound to the fastboot interface (Windows)
- udev rule granting access to the device (Linux)
- Device must be in bootloader (fastboot) mode

**Usage:**

.. code-block:: python

    import asyncio

    from fastboot import UsbFastbootTransport, download

    async def main():
        async with UsbFastbootTransport() as transport:
            response = await transport.run_command("oem get_identifier_token")
            print(response.text)
            await download(transport, b"payload bytes")

    asyncio.run(main())

List attached devices:

.. code-block:: python

    from fastboot import detect_fastboot_devices

    for device in detect_fastboot_devices():
        print(f"{device.vid}:{device.pid} serial={device.serial}")

Copyright (c) 2025 fbunlock contributors
SPDX-License-Identifier: MIT
"""

from fastboot.client import CommandResponse, FastbootTransport, ProgressCallback, UsbFastbootTransport
from fastboot.detector import DetectedDevice, detect_fastboot_devices, get_first_device
from fastboot.download import confirm_download, download, negotiate_download, send_payload
from fastboot.errors import (
    DeviceNotFoundError,
    DisconnectedError,
    FastbootError,
    MalformedResponse,
    ProtocolFail,
    SizeMismatch,
    TransferSizeOverflow,
    TransportError,
    UnexpectedDownloadResponse,
)
from fastboot.protocol import (
    GET_IDENTIFIER_TOKEN_COMMAND,
    LOCK_BOOTLOADER_COMMAND,
    UNLOCK_BOOTLOADER_COMMAND,
    Data,
    Fail,
    Info,
    Okay,
    ProtocolResponse,
    Unknown,
    download_command,
    encode_size,
    expect_okay,
    parse_response,
)

__all__ = [
    # Transport
    "UsbFastbootTransport",
    "FastbootTransport",
    "CommandResponse",
    "ProgressCallback",
    # Detection
    "detect_fastboot_devices",
    "get_first_device",
    "DetectedDevice",
    # Download sub-protocol
    "download",
    "negotiate_download",
    "send_payload",
    "confirm_download",
    # Protocol
    "parse_response",
    "encode_size",
    "expect_okay",
    "download_command",
    "ProtocolResponse",
    "Okay",
    "Data",
    "Fail",
    "Info",
    "Unknown",
    "GET_IDENTIFIER_TOKEN_COMMAND",
    "UNLOCK_BOOTLOADER_COMMAND",
    "LOCK_BOOTLOADER_COMMAND",
    # Errors
    "FastbootError",
    "DeviceNotFoundError",
    "TransportError",
    "DisconnectedError",
    "MalformedResponse",
    "TransferSizeOverflow",
    "UnexpectedDownloadResponse",
    "SizeMismatch",
    "ProtocolFail",
]
