# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/4 16:40
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : /setup provisions the private project categories and channels of a guild
"""
import discord
from loguru import logger

from mybot.projects import (
    CHATS_CATEGORY_NAME,
    INPUTS_CATEGORY_NAME,
    SUPPORTED_PROJECTS,
    UPDATES_CATEGORY_NAME,
)

SETUP_DONE_MESSAGE = (
    "✅ Setup complete. Private channels created with bot permissions (skipped existing ones)."
)
BOT_MEMBER_MISSING_MESSAGE = "❌ Bot member not found in guild."

BOT_PERMISSIONS = discord.PermissionOverwrite(
    view_channel=True,
    send_messages=True,
    read_message_history=True,
    manage_messages=True,
    embed_links=True,
    attach_files=True,
)


def find_category(guild: discord.Guild, name: str) -> discord.CategoryChannel | None:
    return discord.utils.get(guild.categories, name=name)


def find_text_channel(
    guild: discord.Guild, name: str, category: discord.CategoryChannel
) -> discord.TextChannel | None:
    for channel in guild.text_channels:
        if channel.name == name and channel.category_id == category.id:
            return channel
    return None


async def ensure_private_category(
    guild: discord.Guild, name: str, bot_member: discord.Member
) -> discord.CategoryChannel:
    if category := find_category(guild, name):
        return category

    overwrites = {
        guild.default_role: discord.PermissionOverwrite(view_channel=False),
        bot_member: BOT_PERMISSIONS,
    }
    logger.info(f"Creating category {name} in guild {guild.id}")
    return await guild.create_category(name, overwrites=overwrites)


async def ensure_project_channels(guild: discord.Guild, category: discord.CategoryChannel) -> int:
    """Create one channel per project, inheriting the category permissions. Returns created count."""
    created = 0
    for project in SUPPORTED_PROJECTS:
        if find_text_channel(guild, project.code, category):
            continue
        await guild.create_text_channel(project.code, category=category)
        created += 1
    return created


async def setup_command(interaction: discord.Interaction):
    guild = interaction.guild
    if guild is None:
        return

    bot_member = guild.me
    if bot_member is None:
        await interaction.response.send_message(BOT_MEMBER_MISSING_MESSAGE)
        return

    await interaction.response.defer()

    inputs = await ensure_private_category(guild, INPUTS_CATEGORY_NAME, bot_member)
    updates = await ensure_private_category(guild, UPDATES_CATEGORY_NAME, bot_member)
    await ensure_private_category(guild, CHATS_CATEGORY_NAME, bot_member)

    created = await ensure_project_channels(guild, inputs)
    created += await ensure_project_channels(guild, updates)
    logger.success(f"Setup finished for guild {guild.id} - created_channels={created}")

    await interaction.edit_original_response(content=SETUP_DONE_MESSAGE)
