# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/2 11:20
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Shared data shapes for the translation pipeline
"""
from enum import Enum
from typing import Dict, List, Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SupportedLanguage(str, Enum):
    EN = "english"
    TH = "thai"
    RU = "russian"
    UA = "ukrainian"

    ORIGINAL = "original"
    """
    Pseudo-target: show the untranslated source text, never a translation field
    """


# Languages that can be detected and carry a translation field, in render order
TRANSLATABLE_LANGUAGES: Tuple[SupportedLanguage, ...] = (
    SupportedLanguage.EN,
    SupportedLanguage.TH,
    SupportedLanguage.UA,
    SupportedLanguage.RU,
)

LANGUAGE_LABELS: Dict[str, str] = {
    SupportedLanguage.EN.value: "EN",
    SupportedLanguage.TH.value: "TH",
    SupportedLanguage.RU.value: "RU",
    SupportedLanguage.UA.value: "UA",
    SupportedLanguage.ORIGINAL.value: "ORIGINAL",
}


def language_label(language: str) -> str:
    return LANGUAGE_LABELS.get(language, language)


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DetectionMethod(str, Enum):
    HEURISTIC = "cyrillic-analysis"
    STATISTICAL = "statistical"
    FALLBACK = "fallback"


class DetectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: SupportedLanguage
    confidence: Confidence
    method: DetectionMethod

    @property
    def is_reliable(self) -> bool:
        """Only reliable detections are allowed to pre-seed the model's detectedLanguage."""
        if self.confidence == Confidence.HIGH:
            return True
        return self.confidence == Confidence.MEDIUM and self.method == DetectionMethod.HEURISTIC


class TranslationMode(str, Enum):
    BASIC = "basic"
    WITH_HISTORY = "with_history"


class TranslationResult(BaseModel):
    """Structured completion returned by the model, one per processed message."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    detected_language: str = Field(default="", alias="detectedLanguage")
    original_text: str = Field(default="", alias="originalText")
    english: str = Field(default="")
    thai: str = Field(default="")
    russian: str = Field(default="")
    ukrainian: str = Field(default="")

    @field_validator("*", mode="before")
    @classmethod
    def _none_as_blank(cls, value):
        if value is None:
            return ""
        return value

    @property
    def language(self) -> SupportedLanguage | None:
        """The detected language as an enum member, None for anything outside the closed set."""
        try:
            language = SupportedLanguage(self.detected_language.strip().lower())
        except ValueError:
            return None
        if language == SupportedLanguage.ORIGINAL:
            return None
        return language

    def text_for(self, language: SupportedLanguage) -> str:
        if language == SupportedLanguage.ORIGINAL or language == self.language:
            return self.original_text
        return getattr(self, language.value)

    def anchored_to(self, source_text: str) -> "TranslationResult":
        """
        Pin originalText to the exact input and alias the detected language's field to it.
        """
        update = {"original_text": source_text}
        if language := self.language:
            update["detected_language"] = language.value
            update[language.value] = source_text
        return self.model_copy(update=update)


class CachedMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    author: str
    content: str
    timestamp_ms: int


class CacheStats(BaseModel):
    channel_count: int
    total_message_count: int
    approx_memory_kb: int


class ServerPolicy(BaseModel):
    """Per-guild flags. A flag that is not configured keeps the feature on."""

    model_config = ConfigDict(frozen=True)

    id: str
    enabled: bool = True
    target_languages: List[SupportedLanguage] = Field(default_factory=list)
    translate_text: bool = True
    transcribe_voice: bool = True
    translate_voice: bool = True
    save_to_database: bool = True
    sync_private_channels: bool = False


class NameTranslations(BaseModel):
    model_config = ConfigDict(frozen=True)

    english: str
    thai: str
    russian: str
    ukrainian: str


class UserContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    gender: Literal["male", "female"]
    native_language: Literal["thai", "russian", "english", "ukrainian"]
    english_level: Literal["basic", "intermediate", "advanced"]
    name_translations: NameTranslations
    aliases: Tuple[str, ...] = ()


class RequestType(str, Enum):
    GENERAL_QUESTION = "general_question"
    UPDATE_CONTEXT = "update_context"
    PLANNING = "planning"


class AskQuestionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question: str = ""
    context_included: str | None = None
    discord_channel_used: bool = False
    project_specific: bool = False
    request_type: RequestType | str = RequestType.GENERAL_QUESTION
    answer: str = ""


class DiscordMessageRecord(BaseModel):
    """Body of the message persistence endpoint."""

    message_id: str
    server_id: str
    channel_id: str
    user_id: str
    username: str
    detected_language: str
    english_content: str
    thai_content: str = ""
    russian_content: str = ""
    ukrainian_content: str = ""

    @classmethod
    def from_translation(
        cls,
        *,
        message_id: str,
        server_id: str | None,
        channel_id: str,
        user_id: str,
        username: str,
        result: TranslationResult,
    ) -> "DiscordMessageRecord":
        source = result.language

        def _content(language: SupportedLanguage) -> str:
            if source == language:
                return result.original_text
            return getattr(result, language.value) or ""

        return cls(
            message_id=message_id,
            server_id=server_id or "",
            channel_id=channel_id,
            user_id=user_id,
            username=username,
            detected_language=result.detected_language or "unknown",
            english_content=_content(SupportedLanguage.EN),
            thai_content=_content(SupportedLanguage.TH),
            russian_content=_content(SupportedLanguage.RU),
            ukrainian_content=_content(SupportedLanguage.UA),
        )
