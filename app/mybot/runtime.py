# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/4 17:20
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Explicitly constructed services shared by the client, router and commands
"""
import asyncio
from dataclasses import dataclass, field

from mybot.events import QueueEventSource
from mybot.services.api_service import BackendClient
from mybot.services.language_detector import LanguageDetector
from mybot.services.llm_service import OpenAICompletionProvider
from mybot.services.maintenance import CacheMaintenance
from mybot.services.message_cache import MessageCache
from mybot.services.transcription_service import TranscriptionService
from mybot.services.translation_service import TranslationOrchestrator
from mybot.task_manager import cancel_all_tasks, wait_for_all_tasks
from settings import Settings


@dataclass
class BotRuntime:
    settings: Settings
    cache: MessageCache
    orchestrator: TranslationOrchestrator
    backend: BackendClient
    transcription: TranscriptionService
    maintenance: CacheMaintenance
    events: QueueEventSource = field(default_factory=QueueEventSource)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BotRuntime":
        cache = MessageCache(
            history_count=settings.TRANSLATION_HISTORY_COUNT,
            max_channels=settings.MESSAGE_CACHE_MAX_CHANNELS,
        )
        orchestrator = TranslationOrchestrator(
            OpenAICompletionProvider.from_settings(settings),
            cache,
            LanguageDetector(),
            history_count=settings.TRANSLATION_HISTORY_COUNT,
            max_attempts=settings.TRANSLATION_MAX_ATTEMPTS,
            backoff_seconds=settings.TRANSLATION_RETRY_DELAY,
        )
        maintenance = CacheMaintenance(
            cache,
            cleanup_interval_minutes=settings.CACHE_CLEANUP_INTERVAL_MINUTES,
            stats_interval_minutes=settings.CACHE_STATS_INTERVAL_MINUTES,
            # Stats are only reported in production
            report_stats=not settings.is_dev_local,
        )
        return cls(
            settings=settings,
            cache=cache,
            orchestrator=orchestrator,
            backend=BackendClient.from_settings(settings),
            transcription=TranscriptionService.from_settings(settings),
            maintenance=maintenance,
        )

    async def aclose(self, dispatcher: asyncio.Task | None = None):
        """Stop intake, let in-flight messages finish, then release the shared clients"""
        self.events.close()
        if dispatcher:
            await dispatcher

        if not await wait_for_all_tasks():
            cancel_all_tasks()

        await self.maintenance.stop()
        await self.backend.aclose()
