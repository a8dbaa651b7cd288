# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/2 18:10
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Translation orchestration: detect, prompt, complete, validate, retry
"""
import asyncio
import json
from typing import Awaitable, Callable, Sequence

import httpx
import openai
from loguru import logger
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from models import SupportedLanguage, TranslationMode, TranslationResult
from mybot.errors import InvalidTranslation, ProviderError, TranslationFailed
from mybot.services.language_detector import LanguageDetector
from mybot.services.llm_service import CompletionProvider
from mybot.services.message_cache import MessageCache
from mybot.services.prompt_builder import build_translation_prompt
from mybot.users_context import find_user_context

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0

# Provider I/O failures and rejected completions are retried, anything else is a bug
RETRYABLE_ERRORS = (
    ProviderError,
    InvalidTranslation,
    ValidationError,
    openai.APIError,
    httpx.HTTPError,
    asyncio.TimeoutError,
)


def is_valid_translation(
    result: TranslationResult | None, target_languages: Sequence[SupportedLanguage]
) -> bool:
    if result is None:
        return False
    if not result.detected_language.strip() or not result.original_text.strip():
        return False

    source = result.language
    if source is None:
        return False

    for language in target_languages:
        if language == SupportedLanguage.ORIGINAL:
            if not result.original_text.strip():
                return False
            continue
        # The source language is exempt, its field aliases originalText
        if language != source and not getattr(result, language.value).strip():
            return False

    return True


def parse_completion(content: str | None) -> TranslationResult:
    if not content or not content.strip():
        raise InvalidTranslation("Empty completion")
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidTranslation(f"Completion is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise InvalidTranslation(f"Completion is not a JSON object: {type(payload).__name__}")
    return TranslationResult.model_validate(payload)


def _log_retry(retry_state: RetryCallState):
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"Translation attempt {retry_state.attempt_number} failed, retrying - {error!r}"
    )


class TranslationOrchestrator:
    def __init__(
        self,
        provider: CompletionProvider,
        cache: MessageCache,
        detector: LanguageDetector | None = None,
        *,
        history_count: int | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.cache = cache
        self.detector = detector or LanguageDetector()
        self.history_count = cache.history_count if history_count is None else history_count
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    async def translate(
        self, text: str, sender: str, target_languages: Sequence[SupportedLanguage]
    ) -> TranslationResult:
        return await self._run(TranslationMode.BASIC, text, sender, target_languages)

    async def translate_with_history(
        self,
        text: str,
        sender: str,
        channel_id: str,
        target_languages: Sequence[SupportedLanguage],
    ) -> TranslationResult:
        return await self._run(
            TranslationMode.WITH_HISTORY, text, sender, target_languages, channel_id=channel_id
        )

    async def _run(
        self,
        mode: TranslationMode,
        text: str,
        sender: str,
        target_languages: Sequence[SupportedLanguage],
        channel_id: str | None = None,
    ) -> TranslationResult:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.backoff_seconds),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            sleep=self._sleep,
            before_sleep=_log_retry,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._attempt(text, sender, target_languages, channel_id)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            logger.error(f"Translation ({mode.value}) exhausted {self.max_attempts} attempts")
            raise TranslationFailed(mode, last_error) from last_error

    async def _attempt(
        self,
        text: str,
        sender: str,
        target_languages: Sequence[SupportedLanguage],
        channel_id: str | None,
    ) -> TranslationResult:
        # langdetect is CPU bound and loads its profiles on first use
        detection = await asyncio.to_thread(self.detector.detect, text)
        pre_detected = detection.language if detection.is_reliable else None

        history = None
        if channel_id is not None:
            history = self.cache.history(channel_id, self.history_count)

        prompt = build_translation_prompt(
            text,
            sender,
            find_user_context(sender),
            target_languages,
            pre_detected=pre_detected,
            history=history,
        )

        result = parse_completion(await self.provider.complete(prompt))
        if not is_valid_translation(result, target_languages):
            raise InvalidTranslation(
                f"Rejected translation, detectedLanguage={result.detected_language!r}"
            )

        logger.debug(
            f"Translated message from {sender}: detected={result.detected_language} "
            f"local={detection.language.value}/{detection.confidence.value}"
        )
        return result.anchored_to(text)
