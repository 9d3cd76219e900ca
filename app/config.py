# SPDX-License-Identifier: MIT
# Copyright (c) 2025 fbunlock contributors

"""Configuration management for the command-line application.

This module handles loading of configuration settings from the config.toml
file, with environment variable overrides for the data directory and the
unlock key.
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastboot.client import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT_MS

DATA_DIR_ENV = "FBUNLOCK_DATA_DIR"
PRIVATE_KEY_ENV = "FBUNLOCK_PRIVATE_KEY"


@dataclass
class AppConfig:
    """Application configuration settings.

    Attributes:
        serial: Serial number of the device to use (None selects the first one).
        timeout_ms: USB transfer timeout in milliseconds.
        chunk_size: Raw payload chunk size in bytes.
        private_key: Path to the RSA private key used to sign the identifier.
        log_level: Logging level name.
        log_file: Log file name inside data_dir (None disables file logging).
        data_dir: Root directory for application data (logs).
    """

    serial: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    private_key: Optional[Path] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None
    data_dir: Path = Path("./data")


def _apply_env(config: AppConfig) -> AppConfig:
    data_dir = os.environ.get(DATA_DIR_ENV)
    if data_dir:
        config.data_dir = Path(data_dir)
    private_key = os.environ.get(PRIVATE_KEY_ENV)
    if private_key:
        config.private_key = Path(private_key)
    config.data_dir = config.data_dir.resolve()
    return config


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from config.toml file.

    Args:
        config_path: Path to config.toml file. If None, uses app/config.toml.

    Returns:
        AppConfig instance with loaded or default settings.
    """
    if config_path is None:
        config_path = Path(__file__).parent / "config.toml"

    logger = logging.getLogger(__name__)

    try:
        with open(config_path, "rb") as f:
            config = tomllib.load(f)
    except (FileNotFoundError, OSError) as ex:
        # Use defaults if config file not found
        logger.warning("Config file not found or error reading: %s. Using defaults.", ex)
        return _apply_env(AppConfig())

    # Device settings
    device_config = config.get("device", {})
    serial = device_config.get("serial", "").strip() or None
    timeout_ms = int(device_config.get("timeout_ms", DEFAULT_TIMEOUT_MS))
    chunk_size = int(device_config.get("chunk_size", DEFAULT_CHUNK_SIZE))

    # Unlock settings
    unlock_config = config.get("unlock", {})
    private_key = unlock_config.get("private_key", "").strip()

    # Logging settings
    logging_config = config.get("logging", {})
    log_level = logging_config.get("level", "INFO").upper()
    log_file = logging_config.get("file", "").strip() or None

    app_config = _apply_env(
        AppConfig(
            serial=serial,
            timeout_ms=timeout_ms,
            chunk_size=chunk_size,
            private_key=Path(private_key) if private_key else None,
            log_level=log_level,
            log_file=log_file,
            data_dir=Path(config.get("data_dir", "./data")),
        )
    )

    logger.info(
        "Config loaded: serial=%s, timeout_ms=%s, chunk_size=%s, private_key=%s, log_level=%s",
        app_config.serial,
        app_config.timeout_ms,
        app_config.chunk_size,
        app_config.private_key,
        app_config.log_level,
    )
    return app_config
