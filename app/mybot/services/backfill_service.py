# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/4 10:15
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Startup backfill of channel history into the message database
"""
import asyncio
from typing import Awaitable, Callable, List, NamedTuple, Protocol, Sequence

from loguru import logger

from models import DiscordMessageRecord, ServerPolicy, TranslationResult
from mybot.events import InboundMessage
from mybot.services.api_service import BackendClient
from mybot.services.message_cache import MessageCache

DEFAULT_BACKFILL_LIMIT = 1000
DEFAULT_BATCH_SIZE = 100
DEFAULT_BATCH_DELAY_SECONDS = 1.0

# Backfilled messages are stored verbatim, without detection or translation
BACKFILL_DETECTED_LANGUAGE = "original"


class HistoryChannel(NamedTuple):
    guild_id: str
    channel_id: str
    name: str
    is_public: bool


class HistorySource(Protocol):
    async def list_text_channels(self, guild_id: str) -> List[HistoryChannel]: ...

    async def fetch_history(
        self, channel: HistoryChannel, *, limit: int, before: str | None = None
    ) -> List[InboundMessage]:
        """One page of messages, newest first."""
        ...


class BackfillService:
    def __init__(
        self,
        source: HistorySource,
        backend: BackendClient,
        cache: MessageCache,
        *,
        is_dev_local: bool = True,
        limit: int = DEFAULT_BACKFILL_LIMIT,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.source = source
        self.backend = backend
        self.cache = cache
        self.is_dev_local = is_dev_local
        self.limit = limit
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self._sleep = sleep

    async def run(self, servers: Sequence[ServerPolicy]) -> int:
        """Backfill every enabled guild that keeps a database. Returns persisted messages."""
        logger.info("Starting background backfill process...")
        total = 0

        for policy in servers:
            if not policy.enabled or not policy.save_to_database:
                continue

            try:
                channels = await self.source.list_text_channels(policy.id)
            except Exception as e:
                logger.error(f"Error processing guild {policy.id}: {e}")
                continue

            for channel in channels:
                if not self.is_dev_local and not channel.is_public and not policy.sync_private_channels:
                    continue
                total += await self.backfill_channel(channel)

        logger.success(f"Backfill process completed - persisted={total}")
        return total

    async def backfill_channel(self, channel: HistoryChannel) -> int:
        logger.debug(f"Backfilling channel: {channel.name}")

        before = None
        fetched = 0
        persisted = 0

        while fetched < self.limit:
            try:
                page = await self.source.fetch_history(channel, limit=self.batch_size, before=before)
            except Exception as e:
                logger.error(f"Error fetching messages of channel {channel.channel_id}: {e}")
                break

            if not page:
                break

            if before is None:
                self.seed_cache(channel, page)

            for message in page:
                if not message.content or message.author_is_bot:
                    continue
                if await self.backend.save_discord_message(self.to_record(message)):
                    persisted += 1

            before = page[-1].id
            fetched += len(page)
            logger.debug(f"Fetched {len(page)} messages (Total: {fetched})")

            # Rate limit protection
            await self._sleep(self.batch_delay)

        return persisted

    def seed_cache(self, channel: HistoryChannel, page: Sequence[InboundMessage]) -> None:
        """Prime the conversational context with the most recent page, oldest first"""
        recent = [m for m in page if m.content and not m.author_is_bot][: self.cache.history_count]
        for message in reversed(recent):
            self.cache.add(
                channel.channel_id,
                message.author_name,
                message.content,
                now=message.created_at_ms or None,
            )

    @staticmethod
    def to_record(message: InboundMessage) -> DiscordMessageRecord:
        result = TranslationResult(
            detected_language=BACKFILL_DETECTED_LANGUAGE,
            original_text=message.content,
            english=message.content,
        )
        return DiscordMessageRecord.from_translation(
            message_id=message.id,
            server_id=message.guild_id,
            channel_id=message.channel_id,
            user_id=message.author_id,
            username=message.author_name,
            result=result,
        )
