# SPDX-License-Identifier: MIT
# Copyright (c) 2025 fbunlock contributors

"""Entry point for running the command-line tool as a module.

Usage:
    python -m app devices
    python -m app unlock --key unlock_key.pem
    python -m app lock
"""

import sys

from app.cli import main

if __name__ == "__main__":
    sys.exit(main())
