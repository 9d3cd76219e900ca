"""Tests for fastboot device detection with a mocked USB bus."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import usb.core

from fastboot.detector import detect_fastboot_devices, get_first_device, is_fastboot_interface
from fastboot.errors import DeviceNotFoundError, TransportError


def _usb_device(serial):
    dev = MagicMock()
    dev.bus, dev.address = 1, 7
    dev.idVendor, dev.idProduct = 0x18D1, 0x4EE0
    dev.iSerialNumber, dev.iManufacturer, dev.iProduct = 3, 1, 2
    dev.serial = serial
    return dev


def _strings(dev, index):
    return {1: "Google", 2: "Android", 3: dev.serial}[index]


def test_is_fastboot_interface():
    assert is_fastboot_interface(SimpleNamespace(bInterfaceClass=0xFF, bInterfaceSubClass=0x42, bInterfaceProtocol=0x03))
    assert not is_fastboot_interface(SimpleNamespace(bInterfaceClass=0xFF, bInterfaceSubClass=0x42, bInterfaceProtocol=0x01))


def test_detect_fastboot_devices():
    devices = [_usb_device("AAA"), _usb_device("BBB")]
    with patch("fastboot.detector.usb.core.find", return_value=iter(devices)), patch(
        "fastboot.detector.usb.util.get_string", side_effect=_strings
    ):
        detected = detect_fastboot_devices()

    assert [d.serial for d in detected] == ["AAA", "BBB"]
    assert detected[0].vid == "18D1"
    assert detected[0].pid == "4EE0"
    assert detected[0].product == "Android"


def test_get_first_device_by_serial():
    devices = [_usb_device("AAA"), _usb_device("BBB")]
    with patch("fastboot.detector.usb.core.find", return_value=iter(devices)), patch(
        "fastboot.detector.usb.util.get_string", side_effect=_strings
    ):
        assert get_first_device("BBB").serial == "BBB"


def test_get_first_device_none_found():
    with patch("fastboot.detector.usb.core.find", return_value=iter([])):
        with pytest.raises(DeviceNotFoundError):
            get_first_device()


def test_unreadable_strings_still_listed():
    """Permission errors on string descriptors do not hide the device."""
    with patch("fastboot.detector.usb.core.find", return_value=iter([_usb_device("AAA")])), patch(
        "fastboot.detector.usb.util.get_string", side_effect=ValueError("The device has no langid")
    ):
        detected = detect_fastboot_devices()

    assert len(detected) == 1
    assert detected[0].serial is None


def test_missing_usb_backend_is_transport_error():
    """A missing libusb backend surfaces as a TransportError, not a bare ValueError."""
    with patch("fastboot.detector.usb.core.find", side_effect=usb.core.NoBackendError("No backend available")):
        with pytest.raises(TransportError) as exc_info:
            detect_fastboot_devices()

    assert isinstance(exc_info.value.__cause__, usb.core.NoBackendError)
    assert "libusb" in str(exc_info.value)
