# SPDX-License-Identifier: MIT
# Copyright (c) 2025 fbunlock contributors

"""Fastboot bootloader unlock command-line application.

This package wires configuration, logging and progress display around the
fastboot and unlock libraries.

Example:
    Run the tool::

        python -m app unlock --key unlock_key.pem

    Or programmatically::

        from app import main

        exit_code = main(["devices"])
"""

from app.cli import main

__all__ = ["main"]
