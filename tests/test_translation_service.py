# -*- coding: utf-8 -*-
"""
Tests for translation validation and the retrying orchestrator
"""
import json
import threading
from unittest.mock import AsyncMock

import pytest

from models import SupportedLanguage, TranslationMode, TranslationResult
from mybot.errors import InvalidTranslation, ProviderRateLimited, TranslationFailed
from mybot.services.language_detector import LanguageDetector
from mybot.services.message_cache import MessageCache
from mybot.services.translation_service import (
    TranslationOrchestrator,
    is_valid_translation,
    parse_completion,
)

EN = SupportedLanguage.EN
TH = SupportedLanguage.TH
RU = SupportedLanguage.RU
UA = SupportedLanguage.UA
ORIGINAL = SupportedLanguage.ORIGINAL


def completion(**fields) -> str:
    return json.dumps(fields, ensure_ascii=False)


VALID_UKRAINIAN = completion(
    detectedLanguage="ukrainian",
    originalText="Привіт, як справи?",
    english="Hi, how are you?",
    thai="สวัสดี สบายดีไหม",
    russian="Привет, как дела?",
    ukrainian="",
)


class FakeProvider:
    """Returns scripted completions in order; exceptions in the script are raised"""

    def __init__(self, *script):
        self.script = list(script)
        self.prompts = []

    async def complete(self, prompt: str):
        self.prompts.append(prompt)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def cache():
    return MessageCache(history_count=5)


@pytest.fixture
def sleep():
    return AsyncMock()


def make_orchestrator(provider, cache, sleep, **kwargs) -> TranslationOrchestrator:
    return TranslationOrchestrator(
        provider,
        cache,
        LanguageDetector(statistical_detector=lambda text: "und"),
        sleep=sleep,
        **kwargs,
    )


class TestValidation:
    def test_source_language_field_is_exempt(self):
        result = TranslationResult.model_validate(
            {
                "detectedLanguage": "russian",
                "originalText": "привет",
                "english": "hello",
                "russian": "",
            }
        )
        assert is_valid_translation(result, [EN, RU])

    def test_missing_target_is_rejected(self):
        result = TranslationResult(
            detected_language="russian", original_text="привет", english="  "
        )
        assert not is_valid_translation(result, [EN])

    def test_blank_detected_language_is_rejected(self):
        result = TranslationResult(detected_language="", original_text="hi", english="hi")
        assert not is_valid_translation(result, [EN])

    def test_unknown_detected_language_is_rejected(self):
        result = TranslationResult(detected_language="klingon", original_text="nuqneH")
        assert not is_valid_translation(result, [ORIGINAL])

    def test_original_requires_original_text(self):
        result = TranslationResult(detected_language="english", original_text=" ")
        assert not is_valid_translation(result, [ORIGINAL])

    def test_none_is_rejected(self):
        assert not is_valid_translation(None, [EN])


class TestParseCompletion:
    @pytest.mark.parametrize("content", [None, "", "   ", "not json", "[1, 2]"])
    def test_unusable_content(self, content):
        with pytest.raises(InvalidTranslation):
            parse_completion(content)

    def test_nulls_become_blank(self):
        result = parse_completion('{"detectedLanguage": "english", "originalText": "hi", "thai": null}')
        assert result.thai == ""
        assert result.language == EN


class TestTranslationOrchestrator:
    """Retry, validation and prompt assembly of a translation request"""

    @pytest.mark.asyncio
    async def test_first_valid_completion_is_returned(self, cache, sleep):
        provider = FakeProvider(VALID_UKRAINIAN)
        orchestrator = make_orchestrator(provider, cache, sleep)

        result = await orchestrator.translate("Привіт, як справи?", "Olha Kyrylenko", [EN, TH, RU])

        assert result.language == UA
        assert result.english == "Hi, how are you?"
        assert len(provider.prompts) == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_result_is_anchored_to_the_input(self, cache, sleep):
        altered = completion(
            detectedLanguage="Ukrainian",
            originalText="Привіт як справи",
            english="Hi, how are you?",
            ukrainian="Привіт як справи",
        )
        orchestrator = make_orchestrator(FakeProvider(altered), cache, sleep)

        result = await orchestrator.translate("Привіт, як справи?", "Olha Kyrylenko", [EN])

        assert result.original_text == "Привіт, як справи?"
        assert result.ukrainian == "Привіт, як справи?"
        assert result.detected_language == "ukrainian"

    @pytest.mark.asyncio
    async def test_invalid_completion_is_retried_after_backoff(self, cache, sleep):
        invalid = completion(detectedLanguage="ukrainian", originalText="Привіт", english="")
        provider = FakeProvider(invalid, VALID_UKRAINIAN)
        orchestrator = make_orchestrator(provider, cache, sleep)

        result = await orchestrator.translate("Привіт, як справи?", "Olha Kyrylenko", [EN])

        assert result.english == "Hi, how are you?"
        assert len(provider.prompts) == 2
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_exhausted_attempts_raise_translation_failed(self, cache, sleep):
        provider = FakeProvider("not json")
        orchestrator = make_orchestrator(provider, cache, sleep)

        with pytest.raises(TranslationFailed) as exc_info:
            await orchestrator.translate("Hello team, how are you?", "Erik", [EN, TH])

        assert exc_info.value.mode == TranslationMode.BASIC
        assert isinstance(exc_info.value.last_error, InvalidTranslation)
        assert len(provider.prompts) == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_provider_errors_are_retried_and_keep_status(self, cache, sleep):
        provider = FakeProvider(ProviderRateLimited("slow down"))
        orchestrator = make_orchestrator(provider, cache, sleep, max_attempts=2)

        with pytest.raises(TranslationFailed) as exc_info:
            await orchestrator.translate("Hello team, how are you?", "Erik", [EN])

        assert exc_info.value.status_code == 429
        assert len(provider.prompts) == 2

    @pytest.mark.asyncio
    async def test_programming_errors_propagate_without_retry(self, cache, sleep):
        provider = FakeProvider(TypeError("bad call"))
        orchestrator = make_orchestrator(provider, cache, sleep)

        with pytest.raises(TypeError):
            await orchestrator.translate("Hello team, how are you?", "Erik", [EN])

        assert len(provider.prompts) == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_history_is_embedded_in_the_prompt(self, cache, sleep):
        cache.add("C1", "Erik Sytnyk", "Where is the build?")
        cache.add("C1", "Nana Thailand", "It is on staging")
        provider = FakeProvider(VALID_UKRAINIAN)
        orchestrator = make_orchestrator(provider, cache, sleep)

        await orchestrator.translate_with_history(
            "Привіт, як справи?", "Olha Kyrylenko", "C1", [EN]
        )

        prompt = provider.prompts[0]
        assert "CONVERSATION HISTORY (for context only):" in prompt
        assert "Erik Sytnyk: Where is the build?\nNana Thailand: It is on staging" in prompt
        assert "CURRENT MESSAGE TO TRANSLATE:" in prompt

    @pytest.mark.asyncio
    async def test_history_mode_failure_reports_mode(self, cache, sleep):
        orchestrator = make_orchestrator(FakeProvider(""), cache, sleep)

        with pytest.raises(TranslationFailed) as exc_info:
            await orchestrator.translate_with_history("Hello there team", "Erik", "C1", [EN])

        assert exc_info.value.mode == TranslationMode.WITH_HISTORY
        assert "with history" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_reliable_detection_is_passed_as_hint(self, cache, sleep):
        provider = FakeProvider(VALID_UKRAINIAN)
        orchestrator = make_orchestrator(provider, cache, sleep)

        await orchestrator.translate("Привіт, як справи?", "Olha Kyrylenko", [EN])

        prompt = provider.prompts[0]
        assert "PRE-DETECTED SOURCE LANGUAGE: UKRAINIAN" in prompt
        assert "- Gender: female" in prompt

    @pytest.mark.asyncio
    async def test_unreliable_detection_asks_the_model_to_detect(self, cache, sleep):
        english = completion(
            detectedLanguage="english", originalText="ok", thai="โอเค", ukrainian="Добре"
        )
        provider = FakeProvider(english)
        orchestrator = make_orchestrator(provider, cache, sleep)

        await orchestrator.translate("ok", "someone", [TH])

        prompt = provider.prompts[0]
        assert "PRE-DETECTED SOURCE LANGUAGE" not in prompt
        assert "DETECT the source language" in prompt

    @pytest.mark.asyncio
    async def test_statistical_detection_runs_off_the_event_loop(self, cache, sleep):
        threads = []

        def statistical_detector(text):
            threads.append(threading.get_ident())
            return "en"

        english = completion(
            detectedLanguage="english",
            originalText="see you tomorrow at the office",
            thai="เจอกันพรุ่งนี้ที่ออฟฟิศ",
            ukrainian="До зустрічі завтра в офісі",
        )
        orchestrator = TranslationOrchestrator(
            FakeProvider(english),
            cache,
            LanguageDetector(statistical_detector=statistical_detector),
            sleep=sleep,
        )

        await orchestrator.translate("see you tomorrow at the office", "someone", [TH])

        assert threads and threads[0] != threading.get_ident()
