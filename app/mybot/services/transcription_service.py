# -*- coding: utf-8 -*-
"""
Voice message transcription via the Whisper API
"""
import openai
from loguru import logger
from openai import AsyncOpenAI

from mybot.errors import AttachmentTooLarge, TranscriptionFailed
from mybot.events import Attachment
from settings import Settings

DEFAULT_AUDIO_FILENAME = "audio.ogg"
DEFAULT_AUDIO_CONTENT_TYPE = "audio/ogg"


class TranscriptionService:
    def __init__(self, client: AsyncOpenAI, model: str = "whisper-1", max_file_size_mb: int = 25):
        self.client = client
        self.model = model
        self.max_file_size_mb = max_file_size_mb

    @classmethod
    def from_settings(cls, settings: Settings) -> "TranscriptionService":
        # Whisper is only served by OpenAI, regardless of the completion provider
        client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY.get_secret_value() or None,
            timeout=settings.HTTP_REQUEST_TIMEOUT,
        )
        return cls(client, model=settings.WHISPER_MODEL, max_file_size_mb=settings.WHISPER_MAX_FILE_SIZE_MB)

    @property
    def max_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def ensure_size(self, attachment: Attachment) -> None:
        """Reject oversized audio before anything is downloaded"""
        if attachment.size > self.max_size_bytes:
            raise AttachmentTooLarge(attachment.size, self.max_file_size_mb)

    async def transcribe(
        self,
        audio: bytes,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> str:
        if len(audio) > self.max_size_bytes:
            raise AttachmentTooLarge(len(audio), self.max_file_size_mb)

        file = (
            filename or DEFAULT_AUDIO_FILENAME,
            audio,
            content_type or DEFAULT_AUDIO_CONTENT_TYPE,
        )
        try:
            transcription = await self.client.audio.transcriptions.create(
                model=self.model, file=file
            )
        except openai.OpenAIError as e:
            logger.error(f"Whisper transcription error: {e}")
            raise TranscriptionFailed("Failed to transcribe audio.") from e

        return transcription.text
