# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/4 18:00
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Discord client: pushes inbound messages, owns the lifecycle of the runtime
"""
import asyncio

import discord
from discord.ext import commands
from loguru import logger

from mybot.discord_gateway import DiscordGateway, to_inbound
from mybot.handlers.command_handler import register_commands
from mybot.handlers.message_handler import MessageRouter
from mybot.runtime import BotRuntime
from mybot.services.backfill_service import BackfillService
from mybot.task_manager import dispatch_events, spawn


def build_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.message_content = True
    intents.members = True
    intents.dm_messages = True
    return intents


class TranslatorBot(commands.Bot):
    def __init__(self, runtime: BotRuntime):
        super().__init__(command_prefix=commands.when_mentioned, intents=build_intents())
        self.runtime = runtime
        self.gateway = DiscordGateway(self)
        self.router = MessageRouter(
            gateway=self.gateway,
            orchestrator=runtime.orchestrator,
            cache=runtime.cache,
            backend=runtime.backend,
            transcription=runtime.transcription,
            config=runtime.settings,
        )
        self.backfill = BackfillService(
            self.gateway,
            runtime.backend,
            runtime.cache,
            is_dev_local=runtime.settings.is_dev_local,
            limit=runtime.settings.BACKFILL_LIMIT,
            batch_size=runtime.settings.BACKFILL_BATCH_SIZE,
        )
        self._dispatcher: asyncio.Task | None = None
        self._backfill_started = False

    async def setup_hook(self) -> None:
        register_commands(self.tree, self.runtime)
        synced = await self.tree.sync()
        logger.success(f"Registered {len(synced)} slash commands")

        self.runtime.maintenance.start()
        self._dispatcher = asyncio.create_task(
            dispatch_events(self.runtime.events, self.router.dispatch), name="event-dispatcher"
        )

    async def on_ready(self):
        logger.success(f"Ready! Logged in as {self.user}")

        # on_ready fires again after every reconnect
        if self._backfill_started:
            return
        self._backfill_started = True
        spawn(self.backfill.run(self.runtime.settings.DISCORD_SERVERS), task_name="backfill")

    async def on_message(self, message: discord.Message):
        if message.author.bot:
            return
        self.runtime.events.push(to_inbound(message))

    async def close(self) -> None:
        logger.info("Shutting down translator bot")
        await self.runtime.aclose(self._dispatcher)
        await self.gateway.aclose()
        await super().close()
