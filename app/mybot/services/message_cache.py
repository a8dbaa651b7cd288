# -*- coding: utf-8 -*-
"""
Per-channel history of recent messages, used as conversational context for translation.

The cache is bounded twice: every channel keeps at most ``history_count`` messages and at
most ``max_channels`` channels are tracked. When the channel bound is exceeded the least
recently used 20% are evicted in one pass. Entries older than ``max_age_ms`` are dropped
by ``cleanup``.
"""
from collections import OrderedDict
from typing import Callable, List

from loguru import logger

from models import CachedMessage, CacheStats
from utils import now_ms

DEFAULT_HISTORY_COUNT = 5
DEFAULT_MAX_CHANNELS = 100
DEFAULT_MAX_AGE_MS = 24 * 60 * 60 * 1000

# Share of max_channels evicted when the bound is exceeded
EVICTION_RATIO = 0.2

# Rough per-message footprint used for the memory estimate
APPROX_MESSAGE_BYTES = 200


class MessageCache:
    def __init__(
        self,
        history_count: int = DEFAULT_HISTORY_COUNT,
        max_channels: int = DEFAULT_MAX_CHANNELS,
        max_age_ms: int = DEFAULT_MAX_AGE_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self.history_count = history_count
        self.max_channels = max_channels
        self.max_age_ms = max_age_ms
        self._clock = clock
        # Iteration order is the access order, most recently used last
        self._channels: "OrderedDict[str, List[CachedMessage]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, channel_id: str) -> bool:
        return channel_id in self._channels

    def add(self, channel_id: str, author: str, content: str, now: int | None = None) -> None:
        if not content or not content.strip():
            return

        timestamp = self._clock() if now is None else now
        messages = self._channels.get(channel_id, [])
        messages.append(CachedMessage(author=author, content=content, timestamp_ms=timestamp))
        if len(messages) > self.history_count:
            messages = messages[-self.history_count :]

        self._channels[channel_id] = messages
        self._channels.move_to_end(channel_id)

        self._evict_if_needed()

    def history(self, channel_id: str, count: int | None = None) -> List[CachedMessage]:
        """Up to ``count`` most recent messages, oldest first. Counts as an access."""
        count = self.history_count if count is None else count
        messages = self._channels.get(channel_id)
        if not messages or count <= 0:
            if messages is not None:
                self._channels.move_to_end(channel_id)
            return []

        self._channels.move_to_end(channel_id)
        return list(messages[-count:])

    def _evict_if_needed(self) -> None:
        if len(self._channels) <= self.max_channels:
            return

        to_remove = int(self.max_channels * EVICTION_RATIO)
        evicted = []
        for _ in range(min(to_remove, len(self._channels))):
            channel_id, _messages = self._channels.popitem(last=False)
            evicted.append(channel_id)

        logger.debug(f"MessageCache evicted {len(evicted)} least recently used channels")

    def stats(self) -> CacheStats:
        total_messages = sum(len(messages) for messages in self._channels.values())
        return CacheStats(
            channel_count=len(self._channels),
            total_message_count=total_messages,
            approx_memory_kb=round(total_messages * APPROX_MESSAGE_BYTES / 1024),
        )

    def cleanup(self, now: int | None = None) -> int:
        """Drop entries older than max_age_ms and channels left empty. Returns removed entries."""
        now = self._clock() if now is None else now
        removed = 0

        for channel_id in list(self._channels):
            messages = self._channels[channel_id]
            recent = [m for m in messages if now - m.timestamp_ms < self.max_age_ms]
            removed += len(messages) - len(recent)

            if not recent:
                del self._channels[channel_id]
            elif len(recent) != len(messages):
                # Replace in place so the access order is untouched
                self._channels[channel_id] = recent

        if removed:
            logger.debug(f"MessageCache cleanup removed {removed} expired messages")
        return removed
