# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/4 14:30
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : discord.py implementation of the message gateway and history source
"""
import io
from typing import Any, List, Sequence

import discord
from httpx import AsyncClient
from loguru import logger

from mybot.events import (
    Attachment,
    ConfirmationChoice,
    InboundMessage,
    OutboundFile,
)
from mybot.projects import INPUTS_CATEGORY_NAME, get_project_by_code
from mybot.services.backfill_service import HistoryChannel
from mybot.services.message_formatter import EMBED_COLOR

AVATAR_SIZE = 128


def is_public_channel(channel: Any) -> bool:
    """A text channel is public when @everyone can view it"""
    if not isinstance(channel, discord.TextChannel):
        return False
    return channel.permissions_for(channel.guild.default_role).view_channel


def resolve_input_project(channel: Any) -> str | None:
    """Label of the project whose input channel this is, if any"""
    if not isinstance(channel, discord.TextChannel) or channel.category is None:
        return None
    if channel.category.name != INPUTS_CATEGORY_NAME:
        return None
    if project := get_project_by_code(channel.name):
        return project.label
    return None


def build_display_name(author: discord.User | discord.Member) -> str:
    """Username with the server nickname when one is set"""
    nick = getattr(author, "nick", None)
    if nick:
        return f"{author.name} ({nick})"
    if author.display_name and author.display_name != author.name:
        return author.display_name
    return author.name


def to_attachment(attachment: discord.Attachment) -> Attachment:
    return Attachment(
        id=str(attachment.id),
        filename=attachment.filename,
        url=attachment.url,
        size=attachment.size,
        content_type=attachment.content_type,
    )


def to_inbound(message: discord.Message) -> InboundMessage:
    author = message.author
    reference_id = None
    if message.reference and message.reference.message_id and message.reference.channel_id:
        reference_id = str(message.reference.message_id)

    return InboundMessage(
        id=str(message.id),
        channel_id=str(message.channel.id),
        guild_id=str(message.guild.id) if message.guild else None,
        author_id=str(author.id),
        author_name=author.global_name or author.name,
        display_name=build_display_name(author),
        author_avatar_url=author.display_avatar.with_format("png").with_size(AVATAR_SIZE).url,
        author_is_bot=author.bot,
        content=message.content or "",
        attachments=[to_attachment(a) for a in message.attachments],
        is_direct_message=message.guild is None and isinstance(message.channel, discord.DMChannel),
        is_public_channel=is_public_channel(message.channel),
        channel_name=getattr(message.channel, "name", "") or "",
        input_project=resolve_input_project(message.channel),
        reference_message_id=reference_id,
        created_at_ms=int(message.created_at.timestamp() * 1000),
        raw=message,
    )


class ContextUpdateView(discord.ui.View):
    """Update / Cancel buttons, answerable only by the author of the request"""

    def __init__(self, author_id: int, timeout: float = 60.0):
        super().__init__(timeout=timeout)
        self.author_id = author_id
        self.choice = ConfirmationChoice.TIMEOUT

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return interaction.user.id == self.author_id

    async def _choose(self, interaction: discord.Interaction, choice: ConfirmationChoice):
        self.choice = choice
        await interaction.response.defer()
        self.stop()

    @discord.ui.button(label="Update Context", style=discord.ButtonStyle.success, emoji="✅")
    async def update_context(self, interaction: discord.Interaction, _button: discord.ui.Button):
        await self._choose(interaction, ConfirmationChoice.CONFIRM)

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.danger, emoji="❌")
    async def cancel(self, interaction: discord.Interaction, _button: discord.ui.Button):
        await self._choose(interaction, ConfirmationChoice.CANCEL)


class DiscordGateway:
    def __init__(self, client: discord.Client, http_client: AsyncClient | None = None):
        self.client = client
        self._http = http_client or AsyncClient(timeout=60, follow_redirects=True)

    async def aclose(self):
        await self._http.aclose()

    @staticmethod
    def _reference(message: InboundMessage, keep_reference: bool):
        if not keep_reference or not message.reference_message_id:
            return None
        return discord.MessageReference(
            message_id=int(message.reference_message_id),
            channel_id=int(message.channel_id),
            fail_if_not_exists=False,
        )

    @staticmethod
    def _files(files: Sequence[OutboundFile]) -> List[discord.File]:
        return [discord.File(io.BytesIO(f.data), filename=f.filename) for f in files]

    async def download_attachment(self, attachment: Attachment) -> bytes:
        response = await self._http.get(attachment.url)
        response.raise_for_status()
        return response.content

    async def delete_message(self, message: InboundMessage) -> bool:
        try:
            await message.raw.delete()
        except discord.HTTPException as e:
            logger.error(f"Failed to delete message {message.id}: {e}")
            return False
        return True

    async def send(
        self,
        message: InboundMessage,
        content: str | None = None,
        *,
        files: Sequence[OutboundFile] = (),
        keep_reference: bool = False,
    ) -> discord.Message:
        kwargs = {}
        if reference := self._reference(message, keep_reference):
            kwargs["reference"] = reference
        if files:
            kwargs["files"] = self._files(files)
        return await message.raw.channel.send(content=content, **kwargs)

    async def send_embed(
        self,
        message: InboundMessage,
        description: str,
        *,
        thumbnail_url: str | None = None,
        keep_reference: bool = False,
    ) -> discord.Message:
        embed = discord.Embed(description=description, color=EMBED_COLOR)
        if thumbnail_url:
            embed.set_thumbnail(url=thumbnail_url)

        kwargs = {}
        if reference := self._reference(message, keep_reference):
            kwargs["reference"] = reference
        return await message.raw.channel.send(embed=embed, **kwargs)

    async def reply(self, message: InboundMessage, content: str) -> discord.Message:
        return await message.raw.reply(content)

    async def edit(self, handle: discord.Message, content: str) -> None:
        await handle.edit(content=content, view=None)

    async def trigger_typing(self, message: InboundMessage) -> None:
        await message.raw.channel.typing()

    async def send_direct_message(self, user_id: str, content: str) -> None:
        user = self.client.get_user(int(user_id)) or await self.client.fetch_user(int(user_id))
        await user.send(content)

    async def confirm(
        self, message: InboundMessage, content: str, *, edit: Any = None, timeout: float = 60.0
    ) -> tuple[Any, ConfirmationChoice]:
        view = ContextUpdateView(int(message.author_id), timeout=timeout)
        if edit is not None:
            handle = await edit.edit(content=content, view=view)
        else:
            handle = await message.raw.reply(content, view=view)

        await view.wait()
        return handle, view.choice

    async def list_text_channels(self, guild_id: str) -> List[HistoryChannel]:
        guild = self.client.get_guild(int(guild_id)) or await self.client.fetch_guild(int(guild_id))
        logger.debug(f"Checking guild: {guild.name} ({guild.id})")

        channels = []
        for channel in await guild.fetch_channels():
            if not isinstance(channel, discord.TextChannel):
                continue
            channels.append(
                HistoryChannel(
                    guild_id=str(guild.id),
                    channel_id=str(channel.id),
                    name=channel.name,
                    is_public=is_public_channel(channel),
                )
            )
        return channels

    async def fetch_history(
        self, channel: HistoryChannel, *, limit: int, before: str | None = None
    ) -> List[InboundMessage]:
        text_channel = self.client.get_channel(int(channel.channel_id))
        if text_channel is None:
            text_channel = await self.client.fetch_channel(int(channel.channel_id))

        before_marker = discord.Object(id=int(before)) if before else None
        return [
            to_inbound(message)
            async for message in text_channel.history(limit=limit, before=before_marker)
        ]
