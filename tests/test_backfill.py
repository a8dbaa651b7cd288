# -*- coding: utf-8 -*-
"""
Tests for the startup history backfill
"""
from typing import Dict, List
from unittest.mock import AsyncMock

import pytest

from models import ServerPolicy
from mybot.events import InboundMessage
from mybot.services.backfill_service import BackfillService, HistoryChannel
from mybot.services.message_cache import MessageCache

PUBLIC = HistoryChannel(guild_id="G1", channel_id="C1", name="general", is_public=True)
PRIVATE = HistoryChannel(guild_id="G1", channel_id="C2", name="leads", is_public=False)


def history_message(index: int, channel_id: str = "C1", **overrides) -> InboundMessage:
    fields = dict(
        id=str(index),
        channel_id=channel_id,
        guild_id="G1",
        author_id="42",
        author_name="Erik Sytnyk",
        content=f"message {index}",
        created_at_ms=1_700_000_000_000 + index,
    )
    fields.update(overrides)
    return InboundMessage(**fields)


class FakeHistorySource:
    """Serves pages of a fixed, newest-first history"""

    def __init__(self, channels: List[HistoryChannel], histories: Dict[str, List[InboundMessage]]):
        self.channels = channels
        self.histories = histories
        self.requests = []

    async def list_text_channels(self, guild_id: str) -> List[HistoryChannel]:
        return [c for c in self.channels if c.guild_id == guild_id]

    async def fetch_history(self, channel, *, limit, before=None):
        self.requests.append((channel.channel_id, limit, before))
        history = self.histories.get(channel.channel_id, [])
        start = 0
        if before is not None:
            start = next(i for i, m in enumerate(history) if m.id == before) + 1
        return history[start : start + limit]


@pytest.fixture
def backend():
    backend = AsyncMock()
    backend.save_discord_message = AsyncMock(return_value=True)
    return backend


@pytest.fixture
def sleep():
    return AsyncMock()


def newest_first(count: int, channel_id: str = "C1") -> List[InboundMessage]:
    return [history_message(i, channel_id) for i in range(count, 0, -1)]


class TestBackfillService:
    """Backfill pages through history, persists it and seeds the cache"""

    @pytest.mark.asyncio
    async def test_pages_until_history_is_exhausted(self, backend, sleep):
        source = FakeHistorySource([PUBLIC], {"C1": newest_first(5)})
        service = BackfillService(
            source, backend, MessageCache(), is_dev_local=False, batch_size=2, sleep=sleep
        )

        total = await service.run([ServerPolicy(id="G1")])

        assert total == 5
        assert source.requests == [("C1", 2, None), ("C1", 2, "4"), ("C1", 2, "2"), ("C1", 2, "1")]
        assert sleep.await_count == 3

    @pytest.mark.asyncio
    async def test_records_are_stored_verbatim(self, backend, sleep):
        source = FakeHistorySource([PUBLIC], {"C1": newest_first(1)})
        service = BackfillService(source, backend, MessageCache(), sleep=sleep)

        await service.run([ServerPolicy(id="G1")])

        record = backend.save_discord_message.await_args.args[0]
        assert record.detected_language == "original"
        assert record.english_content == "message 1"
        assert record.message_id == "1"
        assert record.server_id == "G1"

    @pytest.mark.asyncio
    async def test_bots_and_empty_messages_are_skipped(self, backend, sleep):
        history = [
            history_message(3, author_is_bot=True),
            history_message(2, content=""),
            history_message(1),
        ]
        source = FakeHistorySource([PUBLIC], {"C1": history})
        cache = MessageCache()
        service = BackfillService(source, backend, cache, sleep=sleep)

        assert await service.run([ServerPolicy(id="G1")]) == 1
        assert [m.content for m in cache.history("C1")] == ["message 1"]

    @pytest.mark.asyncio
    async def test_cache_is_seeded_oldest_first(self, backend, sleep):
        source = FakeHistorySource([PUBLIC], {"C1": newest_first(8)})
        cache = MessageCache(history_count=3)
        service = BackfillService(source, backend, cache, sleep=sleep)

        await service.run([ServerPolicy(id="G1")])

        history = cache.history("C1")
        assert [m.content for m in history] == ["message 6", "message 7", "message 8"]
        assert history[-1].timestamp_ms == 1_700_000_000_008

    @pytest.mark.asyncio
    async def test_limit_bounds_the_fetch(self, backend, sleep):
        source = FakeHistorySource([PUBLIC], {"C1": newest_first(10)})
        service = BackfillService(
            source, backend, MessageCache(), limit=4, batch_size=2, sleep=sleep
        )

        assert await service.run([ServerPolicy(id="G1")]) == 4
        assert len(source.requests) == 2

    @pytest.mark.asyncio
    async def test_private_channels_in_production(self, backend, sleep):
        histories = {"C1": newest_first(1), "C2": newest_first(1, "C2")}
        source = FakeHistorySource([PUBLIC, PRIVATE], histories)
        service = BackfillService(source, backend, MessageCache(), is_dev_local=False, sleep=sleep)

        assert await service.run([ServerPolicy(id="G1")]) == 1
        assert await service.run([ServerPolicy(id="G1", sync_private_channels=True)]) == 2

    @pytest.mark.asyncio
    async def test_private_channels_in_development(self, backend, sleep):
        histories = {"C1": newest_first(1), "C2": newest_first(1, "C2")}
        source = FakeHistorySource([PUBLIC, PRIVATE], histories)
        service = BackfillService(source, backend, MessageCache(), is_dev_local=True, sleep=sleep)

        assert await service.run([ServerPolicy(id="G1")]) == 2

    @pytest.mark.asyncio
    async def test_disabled_and_unsaved_guilds_are_skipped(self, backend, sleep):
        source = FakeHistorySource([PUBLIC], {"C1": newest_first(3)})
        service = BackfillService(source, backend, MessageCache(), sleep=sleep)

        servers = [ServerPolicy(id="G1", enabled=False), ServerPolicy(id="G1", save_to_database=False)]

        assert await service.run(servers) == 0
        assert source.requests == []

    @pytest.mark.asyncio
    async def test_fetch_errors_stop_the_channel(self, backend, sleep):
        source = FakeHistorySource([PUBLIC], {})
        source.fetch_history = AsyncMock(side_effect=RuntimeError("Missing Access"))
        service = BackfillService(source, backend, MessageCache(), sleep=sleep)

        assert await service.run([ServerPolicy(id="G1")]) == 0
        backend.save_discord_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_saves_are_not_counted(self, backend, sleep):
        backend.save_discord_message.return_value = False
        source = FakeHistorySource([PUBLIC], {"C1": newest_first(2)})
        service = BackfillService(source, backend, MessageCache(), sleep=sleep)

        assert await service.run([ServerPolicy(id="G1")]) == 0
        assert backend.save_discord_message.await_count == 2
