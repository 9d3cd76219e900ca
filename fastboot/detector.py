"""Fastboot device detection via USB enumeration.

Detects devices that expose a fastboot interface (vendor class 0xFF,
subclass 0x42, protocol 0x03) using ``usb.core.find``. No assumption about
the bootloader vendor is made here; any device speaking fastboot matches.

Requires pyusb with a libusb backend (and WinUSB drivers on Windows).

Copyright (c) 2025 fbunlock contributors
SPDX-License-Identifier: MIT
"""

import logging
from typing import Any, NamedTuple, Optional

import usb.core
import usb.util

from fastboot.errors import DeviceNotFoundError, TransportError

logger = logging.getLogger(__name__)

FASTBOOT_INTERFACE_CLASS = 0xFF
FASTBOOT_INTERFACE_SUBCLASS = 0x42
FASTBOOT_INTERFACE_PROTOCOL = 0x03


class DetectedDevice(NamedTuple):
    """Information about a detected device in fastboot mode.

    Attributes:
        usb_device: Underlying ``usb.core.Device`` handle
        bus: USB bus number
        address: USB device address on the bus
        vid: USB Vendor ID (4-char hex string)
        pid: USB Product ID (4-char hex string)
        serial: Device serial number (if readable)
        manufacturer: Manufacturer string (if readable)
        product: Product string (if readable)
    """

    usb_device: Any
    bus: int
    address: int
    vid: str
    pid: str
    serial: Optional[str] = None
    manufacturer: Optional[str] = None
    product: Optional[str] = None


def is_fastboot_interface(interface: Any) -> bool:
    """Return True if a USB interface descriptor is a fastboot interface."""
    return (
        interface.bInterfaceClass == FASTBOOT_INTERFACE_CLASS
        and interface.bInterfaceSubClass == FASTBOOT_INTERFACE_SUBCLASS
        and interface.bInterfaceProtocol == FASTBOOT_INTERFACE_PROTOCOL
    )


def _has_fastboot_interface(dev: Any) -> bool:
    for cfg in dev:
        if usb.util.find_descriptor(cfg, custom_match=is_fastboot_interface) is not None:
            return True
    return False


def _read_string(dev: Any, index: int) -> Optional[str]:
    """Read a USB string descriptor, returning None when it is not accessible.

    String descriptors need the device to be opened, which fails without
    permissions (udev rules on Linux); detection should still list the device.
    """
    if not index:
        return None
    try:
        return usb.util.get_string(dev, index)
    except (usb.core.USBError, ValueError, NotImplementedError) as ex:
        logger.debug("Cannot read string descriptor %d: %s", index, ex)
        return None


def detect_fastboot_devices() -> list[DetectedDevice]:
    """Detect USB devices exposing a fastboot interface.

    Returns:
        List of detected devices. Empty if no devices found.

    Raises:
        TransportError: If pyusb has no libusb backend to enumerate with
    """
    devices = []

    try:
        found = list(usb.core.find(find_all=True, custom_match=_has_fastboot_interface))
    except usb.core.NoBackendError as ex:
        raise TransportError(f"No USB backend available (is libusb installed?): {ex}") from ex

    for dev in found:
        devices.append(
            DetectedDevice(
                usb_device=dev,
                bus=dev.bus,
                address=dev.address,
                vid=f"{dev.idVendor:04X}",
                pid=f"{dev.idProduct:04X}",
                serial=_read_string(dev, dev.iSerialNumber),
                manufacturer=_read_string(dev, dev.iManufacturer),
                product=_read_string(dev, dev.iProduct),
            )
        )

    logger.debug("Detected %d fastboot device(s)", len(devices))
    return devices


def get_first_device(serial: Optional[str] = None) -> DetectedDevice:
    """Get the first detected fastboot device.

    Convenience function for single-device scenarios.

    Args:
        serial: If given, only a device with this serial number matches

    Returns:
        First matching device

    Raises:
        DeviceNotFoundError: If no matching fastboot device is connected
    """
    devices = detect_fastboot_devices()
    if serial is not None:
        devices = [device for device in devices if device.serial == serial]

    if not devices:
        target = f" with serial {serial}" if serial is not None else ""
        raise DeviceNotFoundError(
            f"No fastboot device{target} detected. "
            "Ensure the device is in bootloader mode and USB permissions are set."
        )
    return devices[0]
