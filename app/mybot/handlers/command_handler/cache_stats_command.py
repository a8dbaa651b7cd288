# -*- coding: utf-8 -*-
"""
/cache-stats, admin-only view of the message cache
"""
import discord
from loguru import logger

from models import CacheStats
from mybot.services.maintenance import CacheMaintenance

CACHE_STATS_ERROR_MESSAGE = "❌ Sorry, there was an error getting cache statistics."


def format_cache_stats(stats: CacheStats, history_count: int, cleanup_interval_minutes: int) -> str:
    return (
        "📊 **Message Cache Statistics**\n"
        f"**Channels:** {stats.channel_count}\n"
        f"**Total Messages:** {stats.total_message_count}\n"
        f"**Memory Usage:** ~{stats.approx_memory_kb}KB\n"
        f"**History Count:** {history_count} messages\n\n"
        f"*Cache stores last {history_count} messages per channel for translation context.*\n"
        f"*Automatic cleanup removes old channels every {cleanup_interval_minutes} minutes.*"
    )


async def cache_stats_command(interaction: discord.Interaction, maintenance: CacheMaintenance):
    await interaction.response.defer(ephemeral=True)

    try:
        # Expired entries should not count
        await maintenance.run_cleanup()
        cache = maintenance.cache
        content = format_cache_stats(
            cache.stats(), cache.history_count, maintenance.cleanup_interval_minutes
        )
    except Exception as e:
        logger.error(f"Cache stats error: {e}")
        content = CACHE_STATS_ERROR_MESSAGE

    await interaction.edit_original_response(content=content)
