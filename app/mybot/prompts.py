# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/2 16:45
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Prompt templates for the translation model
"""

TRANSLATION_PROMPT_TEMPLATE = """
You are a precise translation system.
You MUST ONLY provide translations for the following target languages: {languages_list}.
CRITICAL REQUIREMENT: Never return empty or missing translations.
You MUST fill ALL requested languages: {languages_list}.
Empty strings are FORBIDDEN. If unsure, output the best possible translation.
Never omit or leave fields blank.

Team Members (ALWAYS use these exact name variants):
{name_table}

Current Message Author Context:
{author_context}
{language_hint}{history_block}
Message to process: "{text}"

Translation Requirements:
1. {detection_requirement}
2. {disambiguation_guidance}
3. TRANSLATE according to these rules:
   - If source is English: preserve English, translate only into requested target languages.
     **Special Rule:** If source is English, you MUST ALSO provide a Ukrainian translation.
   - If source is Thai: preserve Thai, translate only into requested target languages
   - If source is Russian: preserve Russian, translate only into requested target languages
   - If source is Ukrainian: preserve Ukrainian, translate only into requested target languages
4. ENSURE:
   - Use the exact name spellings above
   - Gender-appropriate pronouns
   - Cultural nuances, idioms, technical terminology consistency
5. JSON Response must include ONLY these fields:
{{
  {json_fields}
}}

IMPORTANT:
- NEVER include languages not listed in the target languages
- ALWAYS preserve the original text exactly
- NEVER leave required fields empty
- DO NOT include any other fields such as "original", "text", "source", etc.
"""

NAME_TABLE_ROW_TEMPLATE = (
    "- {english}: English ({english}), Thai ({thai}), Russian ({russian}), Ukrainian ({ukrainian})"
)

LANGUAGE_HINT_TEMPLATE = """
PRE-DETECTED SOURCE LANGUAGE: {upper}
This language was detected by advanced local analysis. Trust this detection and use "{language}" as the detectedLanguage in your response.
"""

HISTORY_BLOCK_TEMPLATE = """
CONVERSATION HISTORY (for context only):
{history_lines}

CURRENT MESSAGE TO TRANSLATE:
"""

HISTORY_LINE_TEMPLATE = "{author}: {content}"

DETECTED_REQUIREMENT_TEMPLATE = (
    "The source language has been reliably detected as {upper}. Use this in your response."
)

DETECT_REQUIREMENT = "DETECT the source language (English, Thai, Russian, or Ukrainian)"

UKRAINIAN_RUSSIAN_GUIDANCE = """Pay special attention to distinguishing Ukrainian from Russian:
   - If the text contains "і", "ї", "є", "ґ" → it is Ukrainian.
   - If the text uses "ы", "э", "ё" → it is Russian.
   - If the text has common Ukrainian words ("також", "будь ласка", "дякую", "привіт") → it is Ukrainian.
   - Do NOT misclassify Ukrainian as Russian."""

# A reliable pre-detection makes the Slavic guidance redundant
NO_GUIDANCE = "Keep the detected source language as given."

DETECTED_LANGUAGE_FIELD = '"detectedLanguage": "english/thai/russian/ukrainian"'
ORIGINAL_TEXT_FIELD = '"originalText": "the original input text"'
TRANSLATION_FIELD_TEMPLATE = (
    '"{language}": "translation or preserved original if {language} is the source"'
)

JSON_FIELD_SEPARATOR = ",\n  "
