"""Scripted in-memory fastboot transport and helpers shared by the tests."""

from __future__ import annotations

import asyncio

from fastboot.client import CommandResponse
from fastboot.protocol import Data, Okay, parse_response


def reply(raw: str, text: str = "") -> CommandResponse:
    """Build the CommandResponse a real transport would return for ``raw``."""
    parsed = parse_response(raw)
    data_size = parsed.size_hex if isinstance(parsed, Data) else None
    if isinstance(parsed, Okay):
        text += parsed.message
    return CommandResponse(text=text, raw=raw, data_size=data_size)


class ScriptedTransport:
    """Fake transport answering commands and reads from scripted queues.

    Each queued item is either a reply (CommandResponse / raw str) or an
    exception instance to raise. Every call is recorded in ``calls``.
    """

    def __init__(self, command_replies=(), read_replies=()):
        self.command_replies = list(command_replies)
        self.read_replies = list(read_replies)
        self.calls: list[tuple[str, object]] = []
        self.payloads: list[bytes] = []
        self.session_lock = asyncio.Lock()

    async def connect(self) -> None:
        self.calls.append(("connect", None))

    async def run_command(self, command: str) -> CommandResponse:
        self.calls.append(("command", command))
        item = self.command_replies.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def send_raw_payload(self, data: bytes, progress_callback=None) -> None:
        self.calls.append(("payload", len(data)))
        self.payloads.append(bytes(data))
        if progress_callback is not None:
            progress_callback(len(data), len(data))

    async def read_response(self) -> str:
        self.calls.append(("read", None))
        item = self.read_replies.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.calls.append(("close", None))

    async def __aenter__(self) -> ScriptedTransport:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def commands(self) -> list[str]:
        return [value for kind, value in self.calls if kind == "command"]


TOKEN_TEXT = "\nIdentifier token:\nABCDEF\n"


def unlock_script(
    *,
    token_reply: CommandResponse | None = None,
    download_raw: str = "DATA00000100",
    confirm_raw: str = "OKAY",
    unlock_raw: str = "OKAY",
) -> ScriptedTransport:
    """Transport scripted for a full handshake with a 256-byte signature."""
    return ScriptedTransport(
        command_replies=[
            token_reply if token_reply is not None else reply("OKAY", TOKEN_TEXT),
            reply(download_raw),
            reply(unlock_raw),
        ],
        read_replies=[confirm_raw],
    )


def fake_sign_hex(_key, hex_message: str) -> str:
    """Deterministic stand-in for the RSA primitive: 256-byte signature."""
    assert len(hex_message) == 128
    return "A5" * 256
