# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/2 17:05
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Assemble the translation instruction sent to the completion provider
"""
from typing import Iterable, List, Mapping, Sequence

from models import CachedMessage, SupportedLanguage, UserContext
from mybot.prompts import (
    DETECT_REQUIREMENT,
    DETECTED_LANGUAGE_FIELD,
    DETECTED_REQUIREMENT_TEMPLATE,
    HISTORY_BLOCK_TEMPLATE,
    HISTORY_LINE_TEMPLATE,
    JSON_FIELD_SEPARATOR,
    LANGUAGE_HINT_TEMPLATE,
    NAME_TABLE_ROW_TEMPLATE,
    NO_GUIDANCE,
    ORIGINAL_TEXT_FIELD,
    TRANSLATION_FIELD_TEMPLATE,
    TRANSLATION_PROMPT_TEMPLATE,
    UKRAINIAN_RUSSIAN_GUIDANCE,
)
from mybot.users_context import USERS_CONTEXT


def ensure_languages(target_languages: Iterable[SupportedLanguage]) -> List[SupportedLanguage]:
    """Requested languages in order, deduplicated, with Ukrainian always present."""
    ensured: List[SupportedLanguage] = []
    for language in [*target_languages, SupportedLanguage.UA]:
        if language not in ensured:
            ensured.append(language)
    return ensured


def render_name_table(users: Mapping[str, UserContext] = USERS_CONTEXT) -> str:
    return "\n".join(
        NAME_TABLE_ROW_TEMPLATE.format(**context.name_translations.model_dump())
        for context in users.values()
    )


def render_author_context(sender: str, user_context: UserContext | None) -> str:
    lines = [f"- Name: {sender}"]
    if user_context:
        lines.append(f"- Gender: {user_context.gender}")
        lines.append(f"- Native Language: {user_context.native_language}")
        lines.append(f"- English Level: {user_context.english_level}")
    return "\n".join(lines)


def render_history(history: Sequence[CachedMessage] | None) -> str:
    if not history:
        return ""
    history_lines = "\n".join(
        HISTORY_LINE_TEMPLATE.format(author=m.author, content=m.content) for m in history
    )
    return HISTORY_BLOCK_TEMPLATE.format(history_lines=history_lines)


def render_json_fields(languages: Sequence[SupportedLanguage]) -> str:
    fields = [DETECTED_LANGUAGE_FIELD, ORIGINAL_TEXT_FIELD]
    # "original" is a rendering instruction, not a translation field
    fields.extend(
        TRANSLATION_FIELD_TEMPLATE.format(language=language.value)
        for language in languages
        if language != SupportedLanguage.ORIGINAL
    )
    return JSON_FIELD_SEPARATOR.join(fields)


def build_translation_prompt(
    text: str,
    sender: str,
    user_context: UserContext | None,
    target_languages: Sequence[SupportedLanguage],
    pre_detected: SupportedLanguage | None = None,
    history: Sequence[CachedMessage] | None = None,
) -> str:
    """
    Build the instruction payload for one translation attempt.

    Args:
        text: message content, embedded verbatim
        sender: display name of the author
        user_context: profile of the author, when known
        target_languages: requested targets, Ukrainian is added if missing
        pre_detected: a reliable local detection the model must keep
        history: prior channel messages, oldest first. Omitted when empty.

    Returns:
        The prompt for a single user-role message
    """
    languages = ensure_languages(target_languages)
    languages_list = ", ".join(language.value for language in languages).upper()

    if pre_detected:
        language_hint = LANGUAGE_HINT_TEMPLATE.format(
            upper=pre_detected.value.upper(), language=pre_detected.value
        )
        detection_requirement = DETECTED_REQUIREMENT_TEMPLATE.format(
            upper=pre_detected.value.upper()
        )
        disambiguation_guidance = NO_GUIDANCE
    else:
        language_hint = ""
        detection_requirement = DETECT_REQUIREMENT
        disambiguation_guidance = UKRAINIAN_RUSSIAN_GUIDANCE

    return TRANSLATION_PROMPT_TEMPLATE.format(
        languages_list=languages_list,
        name_table=render_name_table(),
        author_context=render_author_context(sender, user_context),
        language_hint=language_hint,
        history_block=render_history(history),
        text=text,
        detection_requirement=detection_requirement,
        disambiguation_guidance=disambiguation_guidance,
        json_fields=render_json_fields(languages),
    )
