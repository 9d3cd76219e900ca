"""Shared fixtures."""

import pytest

from fakes import ScriptedTransport, unlock_script


@pytest.fixture
def transport() -> ScriptedTransport:
    """Transport scripted for a successful handshake."""
    return unlock_script()
