# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/2 17:30
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Chat completion provider used by the translation orchestrator
"""
from typing import Protocol

import openai
from loguru import logger
from openai import AsyncOpenAI

from mybot.errors import ProviderError, classify_provider_error
from settings import Settings


class CompletionProvider(Protocol):
    async def complete(self, prompt: str) -> str | None:
        """Send one user-role prompt, return the raw JSON text of the reply."""
        ...


class OpenAICompletionProvider:
    """OpenAI-compatible chat completions in JSON mode. Also serves DeepSeek via base_url."""

    def __init__(
        self, client: AsyncOpenAI, model: str = "gpt-4o-mini", temperature: float = 0.2
    ):
        self.client = client
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAICompletionProvider":
        client = AsyncOpenAI(
            api_key=settings.llm_api_key or None,
            base_url=settings.llm_base_url,
            timeout=settings.HTTP_REQUEST_TIMEOUT,
            max_retries=0,
        )
        return cls(client, model=settings.LLM_MODEL, temperature=settings.LLM_TEMPERATURE)

    async def complete(self, prompt: str) -> str | None:
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=self.temperature,
            )
        except openai.APIStatusError as e:
            classified = classify_provider_error(e) or ProviderError(str(e))
            logger.opt(exception=classified.log_level == "ERROR").log(
                classified.log_level,
                f"Completion request failed with status {e.status_code}: {classified.category}",
            )
            raise classified from e

        if not completion.choices:
            return None
        return completion.choices[0].message.content
