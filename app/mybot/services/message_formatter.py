# -*- coding: utf-8 -*-
"""
Message formatting service for translated Discord messages
"""
import re
from typing import List, Sequence

from pydantic import BaseModel

from models import SupportedLanguage, TranslationResult, language_label

# Discord text limit
MAX_MESSAGE_LENGTH = 2000

SPOILER = "||"
SPOILER_PATTERN = re.compile(re.escape(SPOILER))

EMBED_COLOR = 0x2F3136

HEADER_TEMPLATE = "# **{sender}** ({label})"
ENGLISH_ORIGINAL_BLOCK = "## **English (original):**\n{text}\n\n"
ENGLISH_BLOCK = "## **English:**\n{text}\n\n"
ORIGINAL_BLOCK = "## **Original ({label}):**\n|| {text} ||\n\n"

# Localised labels of the spoiler-wrapped translation blocks, in render order
TRANSLATION_BLOCKS = (
    (SupportedLanguage.TH, "## **การแปลเป็นภาษาไทย:**\n|| {text} ||\n\n"),
    (SupportedLanguage.UA, "## **Український переклад:**\n|| {text} ||\n\n"),
    (SupportedLanguage.RU, "## **Русский перевод:**\n|| {text} ||\n\n"),
)


class LanguageBlock(BaseModel):
    language: SupportedLanguage
    text: str


class FormattedTranslation(BaseModel):
    header: str
    blocks: List[LanguageBlock]
    messages: List[str]


class MessageFormatter:
    """Service for turning translation results into Discord-sized messages"""

    @staticmethod
    def upgrade_target_languages(
        result: TranslationResult, target_languages: Sequence[SupportedLanguage]
    ) -> List[SupportedLanguage]:
        """English sources shown with their original always get a Ukrainian translation too"""
        languages = list(target_languages)
        if (
            result.language == SupportedLanguage.EN
            and SupportedLanguage.EN in languages
            and SupportedLanguage.ORIGINAL in languages
            and SupportedLanguage.UA not in languages
        ):
            languages.append(SupportedLanguage.UA)
        return languages

    @staticmethod
    def build_blocks(
        result: TranslationResult, target_languages: Sequence[SupportedLanguage]
    ) -> List[LanguageBlock]:
        source = result.language
        label = language_label(result.detected_language)
        blocks: List[LanguageBlock] = []

        if source == SupportedLanguage.EN:
            if SupportedLanguage.EN in target_languages:
                blocks.append(
                    LanguageBlock(
                        language=SupportedLanguage.EN,
                        text=ENGLISH_ORIGINAL_BLOCK.format(text=result.original_text),
                    )
                )
        else:
            if SupportedLanguage.EN in target_languages:
                blocks.append(
                    LanguageBlock(
                        language=SupportedLanguage.EN,
                        text=ENGLISH_BLOCK.format(text=result.english),
                    )
                )
            if SupportedLanguage.ORIGINAL in target_languages:
                blocks.append(
                    LanguageBlock(
                        language=SupportedLanguage.ORIGINAL,
                        text=ORIGINAL_BLOCK.format(label=label, text=result.original_text),
                    )
                )

        for language, template in TRANSLATION_BLOCKS:
            if language in target_languages and language != source:
                blocks.append(
                    LanguageBlock(
                        language=language, text=template.format(text=result.text_for(language))
                    )
                )

        return blocks

    @staticmethod
    def format_translations(
        result: TranslationResult,
        sender: str,
        target_languages: Sequence[SupportedLanguage],
        max_length: int = MAX_MESSAGE_LENGTH,
    ) -> FormattedTranslation:
        """
        Header plus one combined message when everything fits, otherwise one or more
        messages per language block.
        """
        languages = MessageFormatter.upgrade_target_languages(result, target_languages)
        blocks = MessageFormatter.build_blocks(result, languages)
        header = HEADER_TEMPLATE.format(
            sender=sender, label=language_label(result.detected_language)
        )

        full_text = "".join(block.text for block in blocks)
        if len(full_text) <= max_length:
            messages = [full_text.strip()] if full_text.strip() else []
        else:
            messages = []
            for block in blocks:
                has_spoiler = SPOILER in block.text
                messages.extend(MessageFormatter.split_text_safe(block.text, has_spoiler, max_length))

        return FormattedTranslation(header=header, blocks=blocks, messages=messages)

    @staticmethod
    def split_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> List[str]:
        """Split at the last newline before the limit, or at the limit when there is none"""
        parts: List[str] = []
        remaining = text

        while remaining:
            chunk = remaining[:max_length]
            if len(remaining) > max_length:
                last_newline = chunk.rfind("\n")
                if last_newline > 0:
                    chunk = chunk[:last_newline]
            parts.append(chunk)
            remaining = remaining[len(chunk) :]

        return parts

    @staticmethod
    def split_text_safe(
        text: str, has_spoiler: bool, max_length: int = MAX_MESSAGE_LENGTH
    ) -> List[str]:
        """
        Split text so that no chunk exceeds max_length and every chunk has balanced
        spoiler markers. An open spoiler is closed at the chunk boundary and reopened
        at the start of the next chunk.
        """
        if not has_spoiler:
            return MessageFormatter.split_message(text, max_length)

        # Room for the closing marker
        limit = max_length - len(SPOILER)
        messages: List[str] = []
        remaining = text

        while len(remaining) > max_length:
            cut = limit
            markers = list(SPOILER_PATTERN.finditer(remaining))

            # Never cut between the two characters of a marker
            for marker in markers:
                if marker.start() < cut < marker.end():
                    cut = marker.start() or marker.end()
                    break

            open_markers = sum(1 for marker in markers if marker.end() <= cut)
            if open_markers % 2 and remaining.startswith(SPOILER, cut):
                # A closing marker right at the cut stays with its chunk
                cut += len(SPOILER)
                open_markers += 1

            chunk = remaining[:cut]
            if open_markers % 2:
                chunk += SPOILER
                remaining = SPOILER + remaining[cut:]
            else:
                remaining = remaining[cut:]

            if chunk.strip():
                messages.append(chunk)

        if remaining.strip():
            messages.append(remaining)

        return messages

