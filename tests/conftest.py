# -*- coding: utf-8 -*-
"""
Shared fixtures: inbound message factory, a fake chat gateway and a virtual clock
"""
from unittest.mock import AsyncMock, Mock

import pytest

from mybot.events import ConfirmationChoice, InboundMessage


class VirtualClock:
    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def make_message():
    def _make(**overrides) -> InboundMessage:
        fields = dict(
            id="1001",
            channel_id="C1",
            guild_id="G1",
            author_id="42",
            author_name="Olha Kyrylenko",
            display_name="olha (Olya)",
            author_avatar_url="https://cdn.example/avatar.png",
            content="Привіт, як справи?",
            is_public_channel=True,
            channel_name="general",
            created_at_ms=1_700_000_000_000,
        )
        fields.update(overrides)
        return InboundMessage(**fields)

    return _make


@pytest.fixture
def gateway():
    """AsyncMock implementation of the MessageGateway protocol"""
    gw = AsyncMock()
    gw.download_attachment = AsyncMock(return_value=b"file-bytes")
    gw.delete_message = AsyncMock(return_value=True)
    gw.reply = AsyncMock(return_value=Mock(name="thinking_message"))
    gw.confirm = AsyncMock(return_value=(Mock(name="confirm_message"), ConfirmationChoice.CONFIRM))
    return gw
