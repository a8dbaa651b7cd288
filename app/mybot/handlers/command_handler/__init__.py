# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/4 17:00
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Slash command registration
"""
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from loguru import logger

from .ask_command import ask_command
from .cache_stats_command import cache_stats_command
from .call_command import call_command
from .setup_command import setup_command

if TYPE_CHECKING:
    from mybot.runtime import BotRuntime

COMMAND_ERROR_MESSAGE = "There was an error executing this command!"


def register_commands(tree: app_commands.CommandTree, runtime: "BotRuntime"):
    @tree.command(name="ask", description="Ask a question to the AI agent")
    @app_commands.describe(question="Your question")
    async def ask(interaction: discord.Interaction, question: str):
        await ask_command(interaction, question, runtime.backend)

    @tree.command(name="cache-stats", description="Show message cache statistics (Admin only)")
    @app_commands.default_permissions(administrator=True)
    async def cache_stats(interaction: discord.Interaction):
        await cache_stats_command(interaction, runtime.maintenance)

    @tree.command(name="call", description="Create a video call link")
    async def call(interaction: discord.Interaction):
        await call_command(interaction, runtime.settings.GOOGLE_MEET_LINK)

    @tree.command(name="setup", description="Setup the server")
    async def setup(interaction: discord.Interaction):
        await setup_command(interaction)

    @tree.error
    async def on_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
        logger.opt(exception=error).error(f"Slash command failed: {error}")
        if interaction.response.is_done():
            await interaction.followup.send(COMMAND_ERROR_MESSAGE, ephemeral=True)
        else:
            await interaction.response.send_message(COMMAND_ERROR_MESSAGE, ephemeral=True)

    return [ask, cache_stats, call, setup]


__all__ = [
    "ask_command",
    "cache_stats_command",
    "call_command",
    "setup_command",
    "register_commands",
]
