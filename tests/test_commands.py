# -*- coding: utf-8 -*-
"""
Tests for the slash commands
"""
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

from models import AskQuestionResponse, CacheStats
from mybot.errors import BackendRequestError
from mybot.handlers.command_handler.ask_command import ASK_ERROR_MESSAGE, ask_command, format_answer
from mybot.handlers.command_handler.cache_stats_command import (
    cache_stats_command,
    format_cache_stats,
)
from mybot.handlers.command_handler.call_command import call_command
from mybot.handlers.command_handler.setup_command import (
    SETUP_DONE_MESSAGE,
    ensure_project_channels,
    find_text_channel,
    setup_command,
)
from mybot.services.maintenance import CacheMaintenance
from mybot.services.message_cache import MessageCache


def named(name: str, **attributes):
    # Mock(name=...) names the mock itself, so assign afterwards
    mock = Mock(**attributes)
    mock.name = name
    return mock


@pytest_asyncio.fixture
async def interaction():
    interaction = Mock()
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.edit_original_response = AsyncMock()
    interaction.user.name = "erik_sytnyk"
    interaction.channel_id = 777
    return interaction


class TestAskCommand:
    """/ask forwards questions to the Q&A backend"""

    @pytest.mark.asyncio
    async def test_answer_is_shown(self, interaction):
        backend = AsyncMock()
        backend.ask_question = AsyncMock(return_value=AskQuestionResponse(answer="Friday"))

        await ask_command(interaction, "When is the release?", backend)

        interaction.response.defer.assert_awaited_once()
        backend.ask_question.assert_awaited_once_with("When is the release?", "erik_sytnyk", "777")
        interaction.edit_original_response.assert_awaited_once_with(
            content="**Question:** When is the release?\n\n**Answer:** Friday"
        )

    @pytest.mark.asyncio
    async def test_backend_error(self, interaction):
        backend = AsyncMock()
        backend.ask_question = AsyncMock(side_effect=BackendRequestError("down"))

        await ask_command(interaction, "When is the release?", backend)

        interaction.edit_original_response.assert_awaited_once_with(content=ASK_ERROR_MESSAGE)

    def test_long_answers_are_truncated(self):
        assert len(format_answer("q", "a" * 5000)) == 2000


class TestCacheStatsCommand:
    @pytest.mark.asyncio
    async def test_stats_after_cleanup(self, interaction, clock):
        cache = MessageCache(clock=clock)
        cache.add("C1", "alice", "stale")
        clock.advance(25 * 60 * 60 * 1000)
        cache.add("C2", "bob", "fresh")
        maintenance = CacheMaintenance(cache, cleanup_interval_minutes=30, scheduler=Mock())

        await cache_stats_command(interaction, maintenance)

        interaction.response.defer.assert_awaited_once_with(ephemeral=True)
        content = interaction.edit_original_response.await_args.kwargs["content"]
        assert "**Channels:** 1\n" in content
        assert "**Total Messages:** 1\n" in content
        assert "every 30 minutes" in content

    def test_format(self):
        stats = CacheStats(channel_count=3, total_message_count=12, approx_memory_kb=2)

        text = format_cache_stats(stats, history_count=5, cleanup_interval_minutes=30)

        assert text.startswith("📊 **Message Cache Statistics**\n")
        assert "**Memory Usage:** ~2KB" in text
        assert "**History Count:** 5 messages" in text


@pytest.mark.asyncio
async def test_call_command_is_silent(interaction):
    await call_command(interaction, "https://meet.google.com/abc-defg-hij")

    interaction.response.send_message.assert_awaited_once()
    args, kwargs = interaction.response.send_message.await_args
    assert "https://meet.google.com/abc-defg-hij" in args[0]
    assert kwargs == {"silent": True}


class TestSetupCommand:
    def test_channel_lookup_is_scoped_to_the_category(self):
        inputs = Mock(id=1)
        guild = Mock()
        guild.text_channels = [named("orbios", category_id=2), named("orbios", category_id=1)]

        assert find_text_channel(guild, "orbios", inputs) is guild.text_channels[1]
        assert find_text_channel(guild, "team-fusion", inputs) is None

    @pytest.mark.asyncio
    async def test_existing_channels_are_skipped(self):
        category = Mock(id=1)
        guild = Mock()
        guild.text_channels = [named("orbios", category_id=1)]
        guild.create_text_channel = AsyncMock()

        created = await ensure_project_channels(guild, category)

        assert created == 2
        created_names = [c.args[0] for c in guild.create_text_channel.await_args_list]
        assert created_names == ["orbios-camp", "team-fusion"]

    @pytest.mark.asyncio
    async def test_setup_creates_missing_categories(self, interaction):
        guild = Mock()
        guild.categories = []
        guild.text_channels = []
        guild.create_category = AsyncMock(side_effect=lambda name, **kwargs: named(name, id=name))
        guild.create_text_channel = AsyncMock()
        interaction.guild = guild

        await setup_command(interaction)

        category_names = [c.args[0] for c in guild.create_category.await_args_list]
        assert category_names == ["🧠 Inputs", "📢 Updates", "💬 Chats"]
        assert guild.create_text_channel.await_count == 6
        interaction.edit_original_response.assert_awaited_once_with(content=SETUP_DONE_MESSAGE)
