"""Fastboot client for USB communication with devices in bootloader mode.

This module provides the transport interface consumed by the unlock handshake
and a concrete implementation over USB bulk endpoints using pyusb.

**Protocol**: fastboot (textual commands, 4-character status replies, raw
binary payloads after a ``download:`` negotiation)
**Requires**: pyusb with a libusb backend, device in bootloader (fastboot) mode

Blocking pyusb calls run in worker threads via ``asyncio.to_thread`` so each
transport call is a suspension point for the caller. At most one
command/response cycle is in flight per transport; ``session_lock`` lets a
caller hold the device for a whole multi-command exchange.

Copyright (c) 2025 fbunlock contributors
SPDX-License-Identifier: MIT
"""

import asyncio
import errno
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

import usb.core
import usb.util

from fastboot.detector import get_first_device, is_fastboot_interface
from fastboot.errors import DisconnectedError, TransportError
from fastboot.protocol import MAX_COMMAND_LENGTH, MAX_RESPONSE_LENGTH, Data, Info, Okay, parse_response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_CHUNK_SIZE = 16 * 1024

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class CommandResponse:
    """Result of one fastboot command.

    Attributes:
        text: INFO messages (each followed by a newline) and the OKAY message
        raw: Final non-INFO status line as received (e.g. ``OKAY``, ``DATA00000100``)
        data_size: Hex size from a DATA reply, None otherwise
    """

    text: str
    raw: str
    data_size: Optional[str] = None


class FastbootTransport(Protocol):
    """Transport interface consumed by the unlock handshake."""

    async def connect(self) -> None: ...

    async def run_command(self, command: str) -> CommandResponse: ...

    async def send_raw_payload(self, data: bytes, progress_callback: Optional[ProgressCallback] = None) -> None: ...

    async def read_response(self) -> str: ...

    async def close(self) -> None: ...


def _translate_usb_error(ex: usb.core.USBError, action: str) -> TransportError:
    """Map a pyusb error to the transport error hierarchy."""
    if isinstance(ex, usb.core.USBTimeoutError):
        return TransportError(f"USB timeout while trying to {action}: {ex}")
    if ex.errno == errno.ENODEV:
        return DisconnectedError(f"Device disconnected while trying to {action}: {ex}")
    return TransportError(f"USB error while trying to {action}: {ex}")


def _release_interface(dev: Any, number: int) -> None:
    try:
        usb.util.release_interface(dev, number)
    except usb.core.USBError as ex:
        logger.warning("Error releasing interface %d: %s", number, ex)


def _is_endpoint(direction: int) -> Callable[[Any], bool]:
    def match(endpoint: Any) -> bool:
        return usb.util.endpoint_direction(endpoint.bEndpointAddress) == direction

    return match


class UsbFastbootTransport:
    """Fastboot transport over USB bulk endpoints.

    Usage::

        transport = UsbFastbootTransport()
        await transport.connect()
        response = await transport.run_command("oem get_identifier_token")
        await transport.close()

    Or as an async context manager::

        async with UsbFastbootTransport(serial="ABC123") as transport:
            ...
    """

    def __init__(
        self,
        serial: Optional[str] = None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self._serial = serial
        self._timeout_ms = timeout_ms
        self._chunk_size = chunk_size
        self._device: Any = None
        self._interface_number: Optional[int] = None
        self._ep_in: Any = None
        self._ep_out: Any = None
        self._io_lock = asyncio.Lock()
        self.session_lock = asyncio.Lock()

    @classmethod
    def from_endpoints(cls, ep_in: Any, ep_out: Any, **kwargs: Any) -> "UsbFastbootTransport":
        """Build a transport around already-resolved bulk endpoints.

        Args:
            ep_in: Bulk IN endpoint (``read(size, timeout)``)
            ep_out: Bulk OUT endpoint (``write(data, timeout)``)
            **kwargs: Forwarded to the constructor

        Returns:
            Connected transport that does not own a USB interface
        """
        transport = cls(**kwargs)
        transport._ep_in = ep_in
        transport._ep_out = ep_out
        return transport

    @property
    def connected(self) -> bool:
        return self._ep_in is not None and self._ep_out is not None

    async def __aenter__(self) -> "UsbFastbootTransport":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def connect(self) -> None:
        """Find the fastboot device, claim its interface and resolve endpoints.

        Raises:
            DeviceNotFoundError: If no matching device is connected
            TransportError: If the interface cannot be claimed
        """
        if self.connected:
            return
        await asyncio.to_thread(self._open)

    def _open(self) -> None:
        detected = get_first_device(self._serial)
        dev = detected.usb_device

        claimed = False
        try:
            try:
                cfg = dev.get_active_configuration()
            except usb.core.USBError:
                dev.set_configuration()
                cfg = dev.get_active_configuration()

            intf = usb.util.find_descriptor(cfg, custom_match=is_fastboot_interface)
            if intf is None:
                raise TransportError(f"No fastboot interface on device {detected.vid}:{detected.pid}")

            number = intf.bInterfaceNumber
            try:
                if dev.is_kernel_driver_active(number):
                    dev.detach_kernel_driver(number)
            except NotImplementedError:
                # Not supported by the backend (Windows)
                pass

            usb.util.claim_interface(dev, number)
            claimed = True

            ep_out = usb.util.find_descriptor(intf, custom_match=_is_endpoint(usb.util.ENDPOINT_OUT))
            ep_in = usb.util.find_descriptor(intf, custom_match=_is_endpoint(usb.util.ENDPOINT_IN))
            if ep_in is None or ep_out is None:
                _release_interface(dev, number)
                raise TransportError("Fastboot interface is missing a bulk endpoint")

        except usb.core.USBError as ex:
            if claimed:
                _release_interface(dev, number)
            raise _translate_usb_error(ex, "open device") from ex

        self._device = dev
        self._interface_number = number
        self._ep_in = ep_in
        self._ep_out = ep_out

        logger.info(
            "Connected to fastboot device %s:%s (serial=%s, bus=%d, address=%d)",
            detected.vid,
            detected.pid,
            detected.serial,
            detected.bus,
            detected.address,
        )

    async def close(self) -> None:
        """Release the USB interface. Safe to call when not connected."""
        if self._device is not None and self._interface_number is not None:
            await asyncio.to_thread(self._release)
        self._device = None
        self._interface_number = None
        self._ep_in = None
        self._ep_out = None

    def _release(self) -> None:
        try:
            usb.util.release_interface(self._device, self._interface_number)
            usb.util.dispose_resources(self._device)
        except usb.core.USBError as ex:
            logger.warning("Error closing device: %s", ex)
        else:
            logger.info("Disconnected")

    async def run_command(self, command: str) -> CommandResponse:
        """Send a textual command and collect the device's reply.

        INFO lines are accumulated into ``text`` until a non-INFO status arrives.

        Args:
            command: Command string (at most 64 bytes)

        Returns:
            Collected response

        Raises:
            ValueError: If the command is too long
            TransportError: On USB write/read failures
        """
        encoded = command.encode("utf-8")
        if len(encoded) > MAX_COMMAND_LENGTH:
            raise ValueError(f"Command too long: {len(encoded)} bytes (max {MAX_COMMAND_LENGTH})")

        async with self._io_lock:
            logger.debug("Sending command: %s", command)
            await self._write(encoded, "send command")
            return await self._collect_response()

    async def send_raw_payload(self, data: bytes, progress_callback: Optional[ProgressCallback] = None) -> None:
        """Write a binary payload in chunks after a download negotiation.

        ``progress_callback(sent, total)`` is invoked after each chunk, always
        before this coroutine returns.

        Args:
            data: Payload bytes
            progress_callback: Optional progress observer

        Raises:
            TransportError: On USB write failures
        """
        total = len(data)
        sent = 0
        async with self._io_lock:
            for offset in range(0, total, self._chunk_size):
                chunk = data[offset : offset + self._chunk_size]
                await self._write(chunk, "send payload")
                sent += len(chunk)
                if progress_callback is not None:
                    progress_callback(sent, total)
        logger.debug("Sent raw payload: %d bytes", sent)

    async def read_response(self) -> str:
        """Read replies until a non-INFO status line and return that line.

        Raises:
            TransportError: On USB read failures
        """
        async with self._io_lock:
            response = await self._collect_response()
        return response.raw

    async def _collect_response(self) -> CommandResponse:
        text_parts: list[str] = []
        while True:
            raw = await self._read_packet()
            response = parse_response(raw)

            if isinstance(response, Info):
                logger.info("(device) %s", response.message)
                text_parts.append(response.message + "\n")
                continue

            data_size = None
            if isinstance(response, Okay):
                text_parts.append(response.message)
            elif isinstance(response, Data):
                data_size = response.size_hex

            logger.debug("Received status: %s", raw)
            return CommandResponse(text="".join(text_parts), raw=raw, data_size=data_size)

    async def _write(self, data: bytes, action: str) -> None:
        if not self.connected:
            raise TransportError("Not connected to device")
        try:
            written = await asyncio.to_thread(self._ep_out.write, data, self._timeout_ms)
        except usb.core.USBError as ex:
            raise _translate_usb_error(ex, action) from ex
        if written != len(data):
            raise TransportError(f"Short write while trying to {action}: {written} of {len(data)} bytes")

    async def _read_packet(self) -> str:
        if not self.connected:
            raise TransportError("Not connected to device")
        try:
            data = await asyncio.to_thread(self._ep_in.read, MAX_RESPONSE_LENGTH, self._timeout_ms)
        except usb.core.USBError as ex:
            raise _translate_usb_error(ex, "read response") from ex
        return bytes(data).decode("utf-8", errors="replace")
