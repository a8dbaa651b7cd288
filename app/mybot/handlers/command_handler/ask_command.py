# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/4 16:00
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : /ask forwards a question to the Q&A backend
"""
import discord
from loguru import logger

from mybot.services.api_service import BackendClient
from mybot.services.message_formatter import MAX_MESSAGE_LENGTH

ASK_ERROR_MESSAGE = "Sorry, there was an error processing your question. Please try again later."


def format_answer(question: str, answer: str) -> str:
    content = f"**Question:** {question}\n\n**Answer:** {answer}"
    # An interaction reply is a single message
    return content[:MAX_MESSAGE_LENGTH]


async def ask_command(interaction: discord.Interaction, question: str, backend: BackendClient):
    await interaction.response.defer()

    channel_id = str(interaction.channel_id) if interaction.channel_id else "unknown"
    try:
        response = await backend.ask_question(question, interaction.user.name, channel_id)
    except Exception as e:
        logger.error(f"Ask command error: {e}")
        await interaction.edit_original_response(content=ASK_ERROR_MESSAGE)
        return

    await interaction.edit_original_response(content=format_answer(question, response.answer))
