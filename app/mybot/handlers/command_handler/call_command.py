# -*- coding: utf-8 -*-
import discord


def format_call_message(meet_link: str) -> str:
    return (
        f"🎥 Open video call link available to all server members:\n{meet_link}\n\n"
        "Feel free to join anytime!"
    )


async def call_command(interaction: discord.Interaction, meet_link: str):
    await interaction.response.send_message(format_call_message(meet_link), silent=True)
