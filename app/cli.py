# SPDX-License-Identifier: MIT
# Copyright (c) 2025 fbunlock contributors

"""Command-line front end for the bootloader unlock tool.

Subcommands:
    devices  List attached fastboot devices
    unlock   Run the signed unlock handshake
    lock     Relock the bootloader
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from app.config import AppConfig, load_config
from fastboot import FastbootError, UsbFastbootTransport, detect_fastboot_devices
from unlock import UnlockSession, load_private_key, lock_bootloader

logger = logging.getLogger(__name__)


def setup_logging(config: AppConfig) -> None:
    """Setup logging to stderr and, if configured, to a file in the data directory."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.log_file:
        config.data_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.data_dir / config.log_file, mode="a", encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=handlers,
        force=True,
    )


def _make_transport(config: AppConfig) -> UsbFastbootTransport:
    return UsbFastbootTransport(config.serial, timeout_ms=config.timeout_ms, chunk_size=config.chunk_size)


def cmd_devices(_config: AppConfig) -> int:
    """Print attached fastboot devices."""
    devices = detect_fastboot_devices()
    if not devices:
        print("No fastboot devices found.")
        return 1
    for device in devices:
        print(
            f"{device.serial or '(unknown serial)'}\t{device.vid}:{device.pid}\t"
            f"bus {device.bus} addr {device.address}\t{device.product or ''}"
        )
    return 0


async def cmd_unlock(config: AppConfig) -> int:
    """Run one unlock session against the configured device."""
    if config.private_key is None:
        print("No private key configured (use --key or FBUNLOCK_PRIVATE_KEY).")
        return 1

    try:
        key = load_private_key(config.private_key)
    except FastbootError as ex:
        print(f"❌ {ex}")
        return 1

    transport = _make_transport(config)
    try:
        await transport.connect()
    except FastbootError as ex:
        print(f"❌ Connect failed: {ex}")
        return 1

    print("Unlocking...")
    try:
        with tqdm(unit="B", unit_scale=True, desc="Signature", leave=False) as pbar:

            def _progress_cb(sent: int, total: int) -> None:
                if pbar.total != total:
                    pbar.total = total
                pbar.update(sent - pbar.n)

            session = UnlockSession(transport, key, progress_callback=_progress_cb, lock=transport.session_lock)
            outcome = await session.run()
    finally:
        await transport.close()

    if outcome.succeeded:
        print("✅ Unlocked!")
        return 0
    print(f"❌ Unlock failed ({type(outcome.error).__name__}): {outcome.message}")
    return 1


async def cmd_lock(config: AppConfig) -> int:
    """Relock the bootloader of the configured device."""
    print("Locking...")
    try:
        async with _make_transport(config) as transport:
            async with transport.session_lock:
                await lock_bootloader(transport)
    except FastbootError as ex:
        print(f"❌ Lock failed: {ex}")
        return 1
    print("✅ Locked!")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fbunlock", description="Fastboot bootloader unlock tool")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml")
    parser.add_argument("--serial", default=None, help="Serial number of the device to use")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    # SUPPRESS keeps a serial given before the subcommand from being reset
    device_parser = argparse.ArgumentParser(add_help=False)
    device_parser.add_argument(
        "--serial", default=argparse.SUPPRESS, help="Serial number of the device to use"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("devices", help="List attached fastboot devices")
    unlock_parser = subparsers.add_parser("unlock", parents=[device_parser], help="Unlock the bootloader")
    unlock_parser.add_argument("--key", type=Path, default=None, help="RSA private key (PEM/DER)")
    subparsers.add_parser("lock", parents=[device_parser], help="Lock the bootloader")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, load configuration and run the selected subcommand.

    Returns:
        Process exit code (0 on success, 1 on failure).
    """
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    if args.serial:
        config.serial = args.serial
    if getattr(args, "key", None):
        config.private_key = args.key
    if args.verbose:
        config.log_level = "DEBUG"
    setup_logging(config)

    if args.command == "devices":
        return cmd_devices(config)
    if args.command == "unlock":
        return asyncio.run(cmd_unlock(config))
    return asyncio.run(cmd_lock(config))
