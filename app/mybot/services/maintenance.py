# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/3 10:40
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Periodic message cache maintenance
"""
import asyncio

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from mybot.services.message_cache import MessageCache

CLEANUP_JOB_ID = "message_cache_cleanup"
STATS_JOB_ID = "message_cache_stats"


class CacheMaintenance:
    """Owns the cleanup and stats timers of a MessageCache. Nothing runs until start()."""

    def __init__(
        self,
        cache: MessageCache,
        *,
        cleanup_interval_minutes: int = 30,
        stats_interval_minutes: int = 10,
        report_stats: bool = True,
        scheduler: AsyncIOScheduler | None = None,
    ):
        self.cache = cache
        self.cleanup_interval_minutes = cleanup_interval_minutes
        self.stats_interval_minutes = stats_interval_minutes
        self.report_stats = report_stats
        self._scheduler = scheduler or AsyncIOScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return self._scheduler.running

    async def run_cleanup(self) -> int:
        try:
            removed = self.cache.cleanup()
        except Exception as e:
            logger.error(f"Message cache cleanup failed: {e}")
            return 0
        return removed

    async def report(self) -> None:
        stats = self.cache.stats()
        logger.info(
            f"MessageCache Stats: {stats.channel_count} channels, "
            f"{stats.total_message_count} messages, ~{stats.approx_memory_kb}KB memory"
        )

    def start(self) -> None:
        """Register the jobs and start the scheduler. Must be called inside a running loop."""
        if self.running:
            return

        self._scheduler.add_job(
            self.run_cleanup,
            trigger=IntervalTrigger(minutes=self.cleanup_interval_minutes),
            id=CLEANUP_JOB_ID,
            name="Message cache cleanup",
            max_instances=1,
            replace_existing=True,
        )
        if self.report_stats:
            self._scheduler.add_job(
                self.report,
                trigger=IntervalTrigger(minutes=self.stats_interval_minutes),
                id=STATS_JOB_ID,
                name="Message cache stats",
                max_instances=1,
                replace_existing=True,
            )

        self._scheduler.start()
        logger.success(
            f"Cache maintenance started, cleanup every {self.cleanup_interval_minutes} minutes"
        )

    async def stop(self) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        # AsyncIOScheduler shuts down on the next loop iteration
        await asyncio.sleep(0)
        logger.info("Cache maintenance stopped")
