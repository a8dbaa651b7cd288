# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/2 15:12
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Language detection: Cyrillic heuristics first, statistical model second
"""
import re
from typing import Callable, Optional

from langdetect import DetectorFactory, detect
from langdetect.lang_detect_exception import LangDetectException
from loguru import logger

from models import Confidence, DetectionMethod, DetectionResult, SupportedLanguage

# Seed langdetect so repeated runs agree
DetectorFactory.seed = 0

UNDETERMINED = "und"

# Minimum text length handed to the statistical detector
STATISTICAL_MIN_LENGTH = 10

# Statistical results for longer texts are reported with high confidence
STATISTICAL_HIGH_CONFIDENCE_LENGTH = 50

CYRILLIC_PATTERN = re.compile(r"[\u0400-\u04FF]")
THAI_PATTERN = re.compile(r"[\u0E00-\u0E7F]")

UKRAINIAN_ONLY_CHARS = re.compile(r"[іїєґІЇЄҐ]")
RUSSIAN_ONLY_CHARS = re.compile(r"[ыэёъЫЭЁЪ]")

UKRAINIAN_WORDS = (
    "також",
    "будь ласка",
    "дякую",
    "привіт",
    "ласкаво просимо",
    "дуже",
    "немає",
    "є",
    "що",
    "який",
    "яка",
    "яке",
    "які",
    "цей",
    "ця",
    "це",
    "ці",
    "мій",
    "моя",
    "моє",
    "мої",
    "твій",
    "твоя",
    "твоє",
    "твої",
    "добрий",
    "добра",
    "добре",
    "день",
    "працює",
    "працюють",
)

RUSSIAN_WORDS = (
    "также",
    "пожалуйста",
    "спасибо",
    "привет",
    "очень",
    "нет",
    "этот",
    "эта",
    "это",
    "эти",
    "мой",
    "моя",
    "мое",
    "мои",
    "твой",
    "твоя",
    "твое",
    "твои",
    "который",
    "которая",
    "которое",
    "которые",
    "добрый",
    "добрая",
    "доброе",
    "день",
    "работает",
    "работают",
    "программа",
)

# ISO-639-3 codes (and the ISO-639-1 codes langdetect emits) mapped to supported languages.
# Russian maps to Russian; an earlier revision mapped it to Thai.
STATISTICAL_CODE_MAPPING = {
    "eng": SupportedLanguage.EN,
    "en": SupportedLanguage.EN,
    "tha": SupportedLanguage.TH,
    "th": SupportedLanguage.TH,
    "rus": SupportedLanguage.RU,
    "ru": SupportedLanguage.RU,
    "ukr": SupportedLanguage.UA,
    "uk": SupportedLanguage.UA,
}

StatisticalDetector = Callable[[str], str]


def _word_pattern(word: str) -> re.Pattern:
    return re.compile(rf"(?<!\w){re.escape(word)}(?!\w)")


_UKRAINIAN_WORD_PATTERNS = tuple(_word_pattern(w) for w in UKRAINIAN_WORDS)
_RUSSIAN_WORD_PATTERNS = tuple(_word_pattern(w) for w in RUSSIAN_WORDS)


def clean_text_for_detection(text: str) -> str:
    """Strip links, mentions and custom emoji before statistical detection"""
    if not text:
        return ""

    text = re.sub(r'https?://[^\s]+', '', text)
    text = re.sub(r'\S+@\S+', '', text)
    # Discord mentions and custom emoji: <@123>, <#123>, <:name:123>
    text = re.sub(r'<[@#:a]?[^>\s]*>', '', text)
    text = re.sub(r'\s+', ' ', text).strip()

    return text


def langdetect_code(text: str) -> str:
    """Default statistical detector backed by langdetect."""
    cleaned = clean_text_for_detection(text)
    if not cleaned:
        return UNDETERMINED
    try:
        return detect(cleaned)
    except LangDetectException as e:
        logger.debug(f"Statistical language detection failed: {e}")
        return UNDETERMINED


def has_cyrillic(text: str) -> bool:
    return bool(CYRILLIC_PATTERN.search(text))


def analyze_cyrillic_text(text: str) -> Optional[DetectionResult]:
    """
    Distinguish Ukrainian from Russian by script and vocabulary.

    Returns None when the text has no Cyrillic or the analysis is inconclusive.
    """
    if not has_cyrillic(text):
        return None

    has_ukrainian_chars = bool(UKRAINIAN_ONLY_CHARS.search(text))
    has_russian_chars = bool(RUSSIAN_ONLY_CHARS.search(text))

    if has_ukrainian_chars and not has_russian_chars:
        return DetectionResult(
            language=SupportedLanguage.UA,
            confidence=Confidence.HIGH,
            method=DetectionMethod.HEURISTIC,
        )

    if has_russian_chars and not has_ukrainian_chars:
        return DetectionResult(
            language=SupportedLanguage.RU,
            confidence=Confidence.HIGH,
            method=DetectionMethod.HEURISTIC,
        )

    lower_text = text.lower()
    ukrainian_count = sum(1 for p in _UKRAINIAN_WORD_PATTERNS if p.search(lower_text))
    russian_count = sum(1 for p in _RUSSIAN_WORD_PATTERNS if p.search(lower_text))

    if ukrainian_count > russian_count:
        return DetectionResult(
            language=SupportedLanguage.UA,
            confidence=Confidence.HIGH if ukrainian_count >= 2 else Confidence.MEDIUM,
            method=DetectionMethod.HEURISTIC,
        )

    if russian_count > ukrainian_count:
        return DetectionResult(
            language=SupportedLanguage.RU,
            confidence=Confidence.HIGH if russian_count >= 2 else Confidence.MEDIUM,
            method=DetectionMethod.HEURISTIC,
        )

    return None


def fallback_detection(text: str) -> DetectionResult:
    if THAI_PATTERN.search(text):
        return DetectionResult(
            language=SupportedLanguage.TH,
            confidence=Confidence.HIGH,
            method=DetectionMethod.FALLBACK,
        )

    # Cyrillic that could not be told apart defaults to Ukrainian
    if has_cyrillic(text):
        return DetectionResult(
            language=SupportedLanguage.UA,
            confidence=Confidence.LOW,
            method=DetectionMethod.FALLBACK,
        )

    return DetectionResult(
        language=SupportedLanguage.EN, confidence=Confidence.LOW, method=DetectionMethod.FALLBACK
    )


class LanguageDetector:
    def __init__(self, statistical_detector: StatisticalDetector = langdetect_code):
        self._statistical_detector = statistical_detector

    def detect_statistically(self, text: str) -> Optional[DetectionResult]:
        if len(text) < STATISTICAL_MIN_LENGTH:
            return None

        code = self._statistical_detector(text)
        language = STATISTICAL_CODE_MAPPING.get((code or UNDETERMINED).lower())
        if language is None:
            return None

        confidence = (
            Confidence.HIGH if len(text) > STATISTICAL_HIGH_CONFIDENCE_LENGTH else Confidence.MEDIUM
        )
        return DetectionResult(
            language=language, confidence=confidence, method=DetectionMethod.STATISTICAL
        )

    def detect(self, text: str) -> DetectionResult:
        """Never raises; the worst case is a low-confidence English fallback."""
        trimmed = (text or "").strip()
        if not trimmed:
            return fallback_detection(trimmed)

        heuristic = analyze_cyrillic_text(trimmed)
        if heuristic and heuristic.confidence == Confidence.HIGH:
            return heuristic

        try:
            statistical = self.detect_statistically(trimmed)
        except Exception as e:
            logger.warning(f"Statistical language detector raised: {e}")
            statistical = None

        if statistical:
            # The heuristic is trusted over the model for Slavic disambiguation
            if heuristic and statistical.language in (SupportedLanguage.RU, SupportedLanguage.UA):
                return heuristic
            return statistical

        if heuristic:
            return heuristic

        return fallback_detection(trimmed)


def is_reliable_detection(result: DetectionResult) -> bool:
    return result.is_reliable
