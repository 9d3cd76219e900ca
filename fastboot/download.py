"""Binary payload download sub-protocol.

Any fastboot command that needs a binary payload goes through the same three
phases:

1. Negotiate: send ``download:<8 hex digits>`` and expect ``DATA<8 hex digits>``
   echoing the exact same size.
2. Transfer: write the payload verbatim.
3. Confirm: expect ``OKAY`` once the device has received everything.

The phases are exposed separately so a caller can observe progress between
them, and composed in :func:`download`.

Copyright (c) 2025 fbunlock contributors
SPDX-License-Identifier: MIT
"""

import logging
from typing import Optional

from fastboot.client import FastbootTransport, ProgressCallback
from fastboot.errors import SizeMismatch, UnexpectedDownloadResponse
from fastboot.protocol import Data, download_command, encode_size, expect_okay, parse_response

logger = logging.getLogger(__name__)


async def negotiate_download(transport: FastbootTransport, length: int) -> int:
    """Announce an upcoming payload and check the size the device acknowledges.

    Args:
        transport: Connected fastboot transport
        length: Payload length in bytes

    Returns:
        Size accepted by the device (always equal to ``length``)

    Raises:
        TransferSizeOverflow: If length does not fit the 8-digit size header
        UnexpectedDownloadResponse: If the reply is not DATA
        SizeMismatch: If the device offers a different size
        TransportError: On transport failures
    """
    size_header = encode_size(length)
    response = await transport.run_command(download_command(size_header))

    parsed = parse_response(response.raw)
    if not isinstance(parsed, Data):
        raise UnexpectedDownloadResponse(response.raw)

    offered = parsed.size
    if offered != length:
        raise SizeMismatch(requested=length, offered=offered)

    logger.debug("Download negotiated: %s (%d bytes)", size_header, length)
    return offered


async def send_payload(
    transport: FastbootTransport,
    payload: bytes,
    progress_callback: Optional[ProgressCallback] = None,
) -> None:
    """Write the negotiated payload as a single raw transfer."""
    logger.info("Sending payload: %d bytes", len(payload))
    await transport.send_raw_payload(payload, progress_callback)


async def confirm_download(transport: FastbootTransport) -> str:
    """Read the post-transfer reply; only OKAY is accepted.

    Returns:
        Message that followed OKAY

    Raises:
        ProtocolFail: If the device answered FAIL
        MalformedResponse: For any other reply
        TransportError: On transport failures
    """
    raw = await transport.read_response()
    return expect_okay(raw, "payload transfer")


async def download(
    transport: FastbootTransport,
    payload: bytes,
    progress_callback: Optional[ProgressCallback] = None,
) -> str:
    """Negotiate, transfer and confirm a binary payload.

    Args:
        transport: Connected fastboot transport
        payload: Bytes to download to the device
        progress_callback: Optional ``(sent, total)`` observer

    Returns:
        Message that followed the confirming OKAY
    """
    await negotiate_download(transport, len(payload))
    await send_payload(transport, payload, progress_callback)
    return await confirm_download(transport)
