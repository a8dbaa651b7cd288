# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/3 16:00
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Route inbound messages to Q&A, silent sync or translation
"""
from typing import List, NamedTuple, Sequence

from loguru import logger

from models import (
    DiscordMessageRecord,
    RequestType,
    ServerPolicy,
    SupportedLanguage,
    TranslationResult,
)
from mybot.errors import BackendRequestError, DeliveryFailed, TranslationFailed
from mybot.events import (
    Attachment,
    ConfirmationChoice,
    InboundMessage,
    MessageGateway,
    OutboundFile,
)
from mybot.handlers.error_handler import collect_files, log_error_details, notify_user_about_error
from mybot.services.api_service import BackendClient
from mybot.services.message_cache import MessageCache
from mybot.services.message_formatter import MessageFormatter
from mybot.services.transcription_service import TranscriptionService
from mybot.services.translation_service import TranslationOrchestrator
from settings import Settings

THINKING_QUESTION = "🤔 Thinking about your question..."
THINKING_REQUEST = "🤔 Processing your request..."
QA_ERROR_MESSAGE = "Sorry, there was an error processing your message."

CONTEXT_UPDATE_QUESTION = "\n\n**Would you like to update the project context?**"
CONTEXT_UPDATE_SUCCESS = (
    "✅ **Context successfully updated!**\n\n*The project context has been saved to the database.*"
)
CONTEXT_UPDATE_FAILED = (
    "❌ **Failed to update context.**\n\n"
    "*An error occurred while updating the project context. Please try again later.*"
)
CONTEXT_UPDATE_CANCELLED = "❌ **Context update cancelled.**\n\n*The project context was not updated.*"
CONTEXT_UPDATE_TIMEOUT = (
    "⏰ **Context update timed out.**\n\n"
    "*Please use the command again if you want to update the context.*"
)
CONTEXT_UPDATE_TIMEOUT_SECONDS = 60.0

TRANSCRIPTION_FAILED_MESSAGE = "❌ Sorry, I could not transcribe the voice message."
VOICE_MESSAGE_HEADER = "## **Original voice message:**"
VOICE_TRANSCRIPTION_TEMPLATE = "## **Original voice message transcription:**\n{transcription}"
DEFAULT_VOICE_FILENAME = "voice_message.ogg"


class VoiceNote(NamedTuple):
    transcription: str
    file: OutboundFile


class TranslationOutcome(NamedTuple):
    result: TranslationResult
    files: List[OutboundFile]
    keep_original: bool = False


class MessageRouter:
    def __init__(
        self,
        gateway: MessageGateway,
        orchestrator: TranslationOrchestrator,
        cache: MessageCache,
        backend: BackendClient,
        transcription: TranscriptionService,
        config: Settings,
    ):
        self.gateway = gateway
        self.orchestrator = orchestrator
        self.cache = cache
        self.backend = backend
        self.transcription = transcription
        self.config = config

    async def dispatch(self, message: InboundMessage) -> None:
        """Entry point for every inbound message. Nothing a user wrote is silently dropped."""
        resolved = self.config.resolve_server(message.guild_id)
        if resolved is None:
            return

        languages, policy = resolved
        try:
            await self.process_message(message, languages, policy)
        except DeliveryFailed as e:
            logger.error(f"Error delivering message {message.id}: {e}")
            await notify_user_about_error(
                message,
                e.cause,
                self.gateway,
                files=e.pending_files,
                original_deleted=e.original_deleted,
            )
            log_error_details(e.cause)
        except Exception as e:
            logger.error(f"Error processing message {message.id}: {e}")
            await notify_user_about_error(message, e, self.gateway)
            log_error_details(e)

    async def process_message(
        self,
        message: InboundMessage,
        languages: Sequence[SupportedLanguage],
        policy: ServerPolicy | None = None,
    ) -> None:
        if message.author_is_bot:
            return

        transcribe_voice = policy.transcribe_voice if policy else True
        translate_text = policy.translate_text if policy else True

        voice = None
        if message.has_audio and transcribe_voice:
            voice = await self.transcribe_voice_message(message)
            if voice:
                message = message.model_copy(update={"content": voice.transcription})

        if message.has_audio and not transcribe_voice:
            return
        if not message.has_audio and not translate_text:
            return

        if message.is_direct_message:
            await self.handle_direct_message(message)
            return

        if not message.content.strip():
            return

        if message.input_project:
            await self.handle_input_channel_message(message, message.input_project)
            return

        outcome = await self.handle_translation_message(message, languages, policy, voice)
        if outcome is None:
            return

        await self.deliver(message, outcome, languages, policy, voice)

    async def transcribe_voice_message(self, message: InboundMessage) -> VoiceNote | None:
        """Transcribe the first audio attachment that succeeds. Failures are told to the user."""
        for attachment in message.audio_attachments:
            try:
                self.transcription.ensure_size(attachment)
                audio = await self.gateway.download_attachment(attachment)
                transcription = await self.transcription.transcribe(
                    audio, attachment.filename, attachment.content_type
                )
            except Exception as e:
                logger.error(f"Voice message processing error: {e}")
                await self.gateway.reply(message, TRANSCRIPTION_FAILED_MESSAGE)
                continue

            file = OutboundFile(filename=attachment.filename or DEFAULT_VOICE_FILENAME, data=audio)
            return VoiceNote(transcription=transcription, file=file)

        return None

    def remember(self, message: InboundMessage) -> None:
        self.cache.add(
            message.channel_id, message.author_name, message.content, now=message.created_at_ms or None
        )

    async def _answer(
        self, message: InboundMessage, thinking_text: str, channel_name: str | None = None
    ):
        """Ask the backend and post the answer into the thinking message. Returns (handle, response)."""
        thinking = None
        try:
            await self.gateway.trigger_typing(message)
            thinking = await self.gateway.reply(message, thinking_text)
            response = await self.backend.ask_question(
                message.content, message.author_name, message.channel_id, channel_name
            )
        except Exception as e:
            logger.error(f"Q&A request failed for message {message.id}: {e}")
            if thinking is None:
                await self.gateway.reply(message, QA_ERROR_MESSAGE)
            else:
                await self.gateway.edit(thinking, QA_ERROR_MESSAGE)
            return thinking, None
        return thinking, response

    async def handle_direct_message(self, message: InboundMessage) -> None:
        self.remember(message)

        thinking, response = await self._answer(message, THINKING_QUESTION)
        if response is None:
            return

        parts = MessageFormatter.split_message(response.answer) or [QA_ERROR_MESSAGE]
        await self.gateway.edit(thinking, parts[0])
        for part in parts[1:]:
            await self.gateway.reply(message, part)

    async def handle_input_channel_message(self, message: InboundMessage, project: str) -> None:
        self.remember(message)

        thinking, response = await self._answer(message, THINKING_REQUEST, channel_name=project)
        if response is None:
            return

        parts = MessageFormatter.split_message(response.answer) or [QA_ERROR_MESSAGE]
        if response.request_type != RequestType.UPDATE_CONTEXT:
            await self.gateway.edit(thinking, parts[0])
            for part in parts[1:]:
                await self.gateway.reply(message, part)
            return

        # The last part carries the confirm / cancel buttons
        edit = thinking
        if len(parts) > 1:
            await self.gateway.edit(thinking, parts[0])
            for part in parts[1:-1]:
                await self.gateway.reply(message, part)
            edit = None

        handle, choice = await self.gateway.confirm(
            message,
            parts[-1] + CONTEXT_UPDATE_QUESTION,
            edit=edit,
            timeout=CONTEXT_UPDATE_TIMEOUT_SECONDS,
        )
        await self.gateway.edit(handle, await self.apply_context_choice(project, response.answer, choice))

    async def apply_context_choice(self, project: str, context: str, choice: ConfirmationChoice) -> str:
        if choice == ConfirmationChoice.CANCEL:
            return CONTEXT_UPDATE_CANCELLED
        if choice == ConfirmationChoice.TIMEOUT:
            return CONTEXT_UPDATE_TIMEOUT

        try:
            await self.backend.update_project_context(project, context)
        except BackendRequestError as e:
            logger.error(f"Failed to update project context: {e}")
            return CONTEXT_UPDATE_FAILED

        logger.info(f"Project context updated - project={project}")
        return CONTEXT_UPDATE_SUCCESS

    async def translate(
        self, message: InboundMessage, languages: Sequence[SupportedLanguage]
    ) -> TranslationResult:
        try:
            return await self.orchestrator.translate_with_history(
                message.content, message.author_name, message.channel_id, languages
            )
        except TranslationFailed as e:
            logger.warning(f"History translation failed, falling back to basic translation: {e}")
        return await self.orchestrator.translate(message.content, message.author_name, languages)

    def relayable(self, attachments: Sequence[Attachment]) -> bool:
        limit = self.config.ATTACHMENT_RELAY_MAX_SIZE_MB * 1024 * 1024
        return all(a.size <= limit for a in attachments)

    async def handle_translation_message(
        self,
        message: InboundMessage,
        languages: Sequence[SupportedLanguage],
        policy: ServerPolicy | None,
        voice: VoiceNote | None = None,
    ) -> TranslationOutcome | None:
        """
        Translate, cache and persist a channel message.

        Returns None for a silent sync, where the message stays untouched in the channel.
        """
        sync_private = policy.sync_private_channels if policy else False
        save_to_database = policy.save_to_database if policy else True
        silent = not message.is_public_channel and sync_private

        # A transcribed voice note is reposted on its own, untranscribed audio goes with the files
        attachments = message.file_attachments if voice else message.attachments
        keep_original = not self.relayable(attachments)

        files: List[OutboundFile] = []
        try:
            if silent:
                logger.debug(f"Silent syncing private message from channel {message.channel_id}")
                result = TranslationResult(
                    detected_language=SupportedLanguage.EN.value,
                    original_text=message.content,
                    english=message.content,
                )
            else:
                if keep_original:
                    logger.info(f"Message {message.id} has attachments too large to repost, keeping it")
                else:
                    # Attachments must be fetched before the original disappears
                    files = await collect_files(attachments, self.gateway)
                result = await self.translate(message, languages)
        finally:
            self.remember(message)

        if (
            not self.config.is_dev_local
            and (message.is_public_channel or sync_private)
            and save_to_database
        ):
            record = DiscordMessageRecord.from_translation(
                message_id=message.id,
                server_id=message.guild_id,
                channel_id=message.channel_id,
                user_id=message.author_id,
                username=message.author_name,
                result=result,
            )
            await self.backend.save_discord_message(record)

        if silent:
            return None
        return TranslationOutcome(result=result, files=files, keep_original=keep_original)

    async def deliver(
        self,
        message: InboundMessage,
        outcome: TranslationOutcome,
        languages: Sequence[SupportedLanguage],
        policy: ServerPolicy | None,
        voice: VoiceNote | None = None,
    ) -> None:
        """Repost the translation. Failures carry the files that have not been reposted yet."""
        formatted = MessageFormatter.format_translations(
            outcome.result, message.author_name, languages
        )
        keep_reference = message.reference_message_id is not None

        pending = list(outcome.files)
        if voice and not outcome.keep_original:
            pending.append(voice.file)

        deleted = False
        if not outcome.keep_original:
            deleted = await self.gateway.delete_message(message)

        try:
            if outcome.files:
                await self.gateway.send(message, files=outcome.files)
                pending = pending[len(outcome.files) :]

            await self.gateway.send_embed(
                message,
                formatted.header,
                thumbnail_url=message.author_avatar_url,
                keep_reference=keep_reference,
            )

            if voice and not outcome.keep_original:
                await self.gateway.send(
                    message, VOICE_MESSAGE_HEADER, files=[voice.file], keep_reference=keep_reference
                )
                pending = []

            translate_voice = policy.translate_voice if policy else True
            if voice and not translate_voice:
                await self.gateway.send(
                    message,
                    VOICE_TRANSCRIPTION_TEMPLATE.format(transcription=voice.transcription),
                    keep_reference=keep_reference,
                )
                return

            for chunk in formatted.messages:
                await self.gateway.send(message, chunk, keep_reference=keep_reference)
        except Exception as e:
            raise DeliveryFailed(e, pending, original_deleted=bool(deleted)) from e
