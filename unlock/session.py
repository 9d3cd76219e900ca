# SPDX-License-Identifier: MIT
# Copyright (c) 2025 fbunlock contributors

"""Bootloader unlock handshake.

This module drives one complete unlock attempt against a fastboot transport:
identifier token retrieval, signing, payload download and the final unlock
command. Each attempt is an explicitly constructed UnlockSession; a failed
attempt is retried by building a new session.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from fastboot.client import FastbootTransport, ProgressCallback
from fastboot.download import confirm_download, negotiate_download, send_payload
from fastboot.errors import DisconnectedError, FastbootError
from fastboot.protocol import (
    GET_IDENTIFIER_TOKEN_COMMAND,
    LOCK_BOOTLOADER_COMMAND,
    UNLOCK_BOOTLOADER_COMMAND,
    expect_okay,
)

from .crypto import SignHex, rsa_sha256_sign_hex, sign_identifier
from .identifier import Identifier, normalize_identifier

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """States of one unlock attempt, in handshake order."""

    IDLE = "idle"
    TOKEN_REQUESTED = "token_requested"
    TOKEN_RECEIVED = "token_received"
    SIGNED = "signed"
    DOWNLOAD_NEGOTIATED = "download_negotiated"
    PAYLOAD_SENT = "payload_sent"
    RESPONSE_CONFIRMED = "response_confirmed"
    UNLOCK_ISSUED = "unlock_issued"
    UNLOCKED = "unlocked"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.UNLOCKED, SessionState.FAILED)


# FAILED is reachable from any non-terminal state and is not part of the sequence
_SEQUENCE = [state for state in SessionState if state is not SessionState.FAILED]


@dataclass(frozen=True)
class SessionOutcome:
    """Terminal result of an unlock attempt.

    Attributes:
        state: UNLOCKED or FAILED
        error: Originating error when FAILED, None otherwise
    """

    state: SessionState
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.state is SessionState.UNLOCKED

    @property
    def message(self) -> str:
        """Human-readable summary (the error message for failures)."""
        if self.error is not None:
            return str(self.error)
        return "Unlocked" if self.succeeded else self.state.value


class UnlockSession:
    """One bootloader unlock attempt.

    The handshake is strictly sequential; each step runs only when the
    previous one succeeded and any failure moves the session straight to
    FAILED with the error that caused it. Nothing is retried.

    Example:
        >>> session = UnlockSession(transport, private_key, lock=transport.session_lock)
        >>> outcome = await session.run()
        >>> print(outcome.state, outcome.message)
    """

    def __init__(
        self,
        transport: FastbootTransport,
        private_key: Any,
        *,
        sign_hex: SignHex = rsa_sha256_sign_hex,
        progress_callback: Optional[ProgressCallback] = None,
        lock: Optional[asyncio.Lock] = None,
    ) -> None:
        """Create a session for a single attempt.

        Args:
            transport: Connected fastboot transport.
            private_key: Key material passed to ``sign_hex``.
            sign_hex: Signing primitive ``(private_key, hex_message) -> hex_signature``.
            progress_callback: Optional ``(sent, total)`` observer for the payload transfer.
            lock: Optional lock held for the whole handshake, so no other
                exchange can interleave commands on the same device.
        """
        self._transport = transport
        self._private_key = private_key
        self._sign_hex = sign_hex
        self._progress_callback = progress_callback
        self._lock = lock

        self._state = SessionState.IDLE
        self._history: list[SessionState] = [SessionState.IDLE]
        self._error: Optional[BaseException] = None
        self._started = False
        self._identifier: Optional[Identifier] = None
        self._signature: Optional[bytes] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def history(self) -> list[SessionState]:
        """States visited so far, in order."""
        return list(self._history)

    @property
    def identifier(self) -> Optional[Identifier]:
        return self._identifier

    @property
    def outcome(self) -> SessionOutcome:
        return SessionOutcome(self._state, self._error)

    async def run(self) -> SessionOutcome:
        """Run the handshake to completion.

        Protocol, transport and crypto failures never raise; they end the
        session in FAILED and are available on the returned outcome.

        Returns:
            Terminal outcome (UNLOCKED or FAILED)

        Raises:
            RuntimeError: If the session was already run
            asyncio.CancelledError: If the caller abandons the session; the
                session is left FAILED with a DisconnectedError first
        """
        if self._started:
            raise RuntimeError("Unlock session already used; start a new session to retry")
        self._started = True

        try:
            if self._lock is not None:
                async with self._lock:
                    await self._handshake()
            else:
                await self._handshake()
        except asyncio.CancelledError:
            self._fail(DisconnectedError("Unlock session abandoned before completion"))
            raise
        except FastbootError as ex:
            self._fail(ex)
        except Exception as ex:
            self._fail(ex)
            raise

        return self.outcome

    async def _handshake(self) -> None:
        transport = self._transport

        self._advance(SessionState.TOKEN_REQUESTED)
        response = await transport.run_command(GET_IDENTIFIER_TOKEN_COMMAND)
        expect_okay(response.raw, GET_IDENTIFIER_TOKEN_COMMAND)
        self._identifier = normalize_identifier(response.text.split("\n"))
        logger.debug("Identifier: %s", self._identifier.hex)
        self._advance(SessionState.TOKEN_RECEIVED)

        self._signature = sign_identifier(self._identifier, self._private_key, sign_hex=self._sign_hex)
        logger.info("Signature: %d bytes", len(self._signature))
        self._advance(SessionState.SIGNED)

        await negotiate_download(transport, len(self._signature))
        self._advance(SessionState.DOWNLOAD_NEGOTIATED)

        await send_payload(transport, self._signature, self._progress_callback)
        self._advance(SessionState.PAYLOAD_SENT)

        await confirm_download(transport)
        self._signature = None
        self._advance(SessionState.RESPONSE_CONFIRMED)

        self._advance(SessionState.UNLOCK_ISSUED)
        response = await transport.run_command(UNLOCK_BOOTLOADER_COMMAND)
        expect_okay(response.raw, UNLOCK_BOOTLOADER_COMMAND)
        self._advance(SessionState.UNLOCKED)

    def _advance(self, state: SessionState) -> None:
        expected = _SEQUENCE[_SEQUENCE.index(self._state) + 1]
        if state is not expected:
            raise RuntimeError(f"Invalid unlock transition {self._state.value} -> {state.value}")
        logger.info("Unlock session: %s -> %s", self._state.value, state.value)
        self._state = state
        self._history.append(state)

    def _fail(self, error: BaseException) -> None:
        if self._state.is_terminal:
            return
        logger.error("Unlock failed in state %s: %s", self._state.value, error)
        self._signature = None
        self._error = error
        self._state = SessionState.FAILED
        self._history.append(SessionState.FAILED)


async def lock_bootloader(transport: FastbootTransport) -> str:
    """Relock the bootloader.

    Args:
        transport: Connected fastboot transport

    Returns:
        Message that followed OKAY

    Raises:
        ProtocolFail: If the device answered FAIL
        MalformedResponse: For any other reply
        TransportError: On transport failures
    """
    logger.info("Locking bootloader")
    response = await transport.run_command(LOCK_BOOTLOADER_COMMAND)
    return expect_okay(response.raw, LOCK_BOOTLOADER_COMMAND)
