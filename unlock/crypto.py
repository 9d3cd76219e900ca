# SPDX-License-Identifier: MIT
# Copyright (c) 2025 fbunlock contributors
"""
Unlock crypto helpers: RSA key loading, identifier signing and signature decoding.

The signing primitive takes a private key and a hex message and returns a hex
signature; the default one computes SHA256withRSA (PKCS#1 v1.5) over the
bytes the hex message encodes. Any primitive with the same shape can be
passed to sign_identifier instead.
"""

import re
from pathlib import Path
from typing import Any, Callable, Optional, Union

from Crypto.Hash import SHA256
from Crypto.PublicKey import RSA
from Crypto.Signature import pkcs1_15

from .errors import KeyLoadError, SignatureDecodeError, SigningError
from .identifier import Identifier

SignHex = Callable[[Any, str], str]

_HEX_PAIRS = re.compile(r"(?:[0-9a-fA-F]{2})*")


def load_private_key(path: Union[str, Path], passphrase: Optional[str] = None) -> RSA.RsaKey:
    """
    Load an RSA private key from a PEM or DER file.

    Args:
        path: Key file path.
        passphrase: Optional passphrase for encrypted keys.

    Returns:
        The RSA private key.

    Raises:
        KeyLoadError: If the file cannot be read, parsed, or holds a public key only.
    """
    try:
        data = Path(path).read_bytes()
    except OSError as ex:
        raise KeyLoadError(str(path), str(ex)) from ex

    try:
        key = RSA.import_key(data, passphrase=passphrase)
    except (ValueError, IndexError, TypeError) as ex:
        raise KeyLoadError(str(path), str(ex)) from ex

    if not key.has_private():
        raise KeyLoadError(str(path), "not a private key")
    return key


def rsa_sha256_sign_hex(private_key: RSA.RsaKey, hex_message: str) -> str:
    """
    Sign the bytes encoded by a hex message with SHA256withRSA.

    Args:
        private_key: RSA private key.
        hex_message: Message as a hex string.

    Returns:
        Lowercase hex signature (key-size bytes long).
    """
    digest = SHA256.new(bytes.fromhex(hex_message))
    return pkcs1_15.new(private_key).sign(digest).hex()


def decode_signature(hex_signature: str) -> bytes:
    """
    Decode a hex signature into raw bytes, two digits per byte (case-insensitive).

    Args:
        hex_signature: Signature as returned by the signing primitive.

    Returns:
        Raw signature bytes.

    Raises:
        SignatureDecodeError: If the length is odd or a non-hex character is present.
    """
    if len(hex_signature) % 2:
        raise SignatureDecodeError(f"odd number of hex digits ({len(hex_signature)})")
    if not _HEX_PAIRS.fullmatch(hex_signature):
        raise SignatureDecodeError("non-hexadecimal characters in signature")
    return bytes.fromhex(hex_signature)


def sign_identifier(identifier: Identifier, private_key: Any, *, sign_hex: SignHex = rsa_sha256_sign_hex) -> bytes:
    """
    Sign a normalized identifier and return the raw signature payload.

    Args:
        identifier: Normalized 128-digit identifier.
        private_key: Key material understood by ``sign_hex``.
        sign_hex: Signing primitive ``(private_key, hex_message) -> hex_signature``.

    Returns:
        Raw signature bytes ready for download.

    Raises:
        SigningError: If the primitive rejects the key or the message.
        SignatureDecodeError: If the primitive's output cannot be decoded.
    """
    try:
        hex_signature = sign_hex(private_key, identifier.hex)
    except (TypeError, ValueError) as ex:
        raise SigningError(str(ex) or type(ex).__name__) from ex
    return decode_signature(hex_signature)
