# SPDX-License-Identifier: MIT
# Copyright (c) 2025 fbunlock contributors

"""Vendor bootloader unlock handshake over fastboot.

This package obtains the device identifier token, signs it with an RSA key,
downloads the signature to the bootloader and issues the unlock command.

Main Components:
    - UnlockSession: Linear state machine for one unlock attempt
    - Identifier helpers: Token extraction and 64-byte normalization
    - Crypto helpers: Key loading, SHA256withRSA signing, signature decoding
    - lock_bootloader: Relock command

Example:
    Unlock the first attached device::

        import asyncio

        from fastboot import UsbFastbootTransport
        from unlock import UnlockSession, load_private_key

        async def main():
            key = load_private_key("unlock_key.pem")
            async with UsbFastbootTransport() as transport:
                session = UnlockSession(transport, key, lock=transport.session_lock)
                outcome = await session.run()
                print(outcome.state.value, outcome.message)

        asyncio.run(main())
"""

from .crypto import decode_signature, load_private_key, rsa_sha256_sign_hex, sign_identifier
from .errors import IdentifierOverflow, KeyLoadError, SignatureDecodeError, SigningError, UnlockError
from .identifier import IDENTIFIER_HEX_DIGITS, TOKEN_LINE_INDEX, Identifier, extract_token, normalize_identifier
from .session import SessionOutcome, SessionState, UnlockSession, lock_bootloader
