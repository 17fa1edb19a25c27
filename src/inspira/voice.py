import logging
from typing import Optional

import discord
from discord import Interaction, VoiceClient


def member_voice_channel(interaction: Interaction) -> Optional[discord.abc.Connectable]:
    """The voice channel the invoking member sits in, if any."""
    voice_state = getattr(interaction.user, "voice", None)
    if not voice_state or not voice_state.channel:
        return None
    return voice_state.channel


async def connect(guild: discord.Guild, channel: discord.abc.Connectable) -> VoiceClient:
    """Connects to ``channel``, reusing a voice client the guild already has."""
    voice_client: VoiceClient | None = guild.voice_client
    if voice_client is None:
        voice_client = await channel.connect(self_deaf=True)
        logging.info("Voice: connected to %s in guild %s", channel, guild.id)
        return voice_client

    if voice_client.channel.id != channel.id:
        await voice_client.move_to(channel)
        logging.info("Voice: moved to %s in guild %s", channel, guild.id)
    return voice_client


async def move_to(voice_client: VoiceClient, channel: discord.abc.Connectable) -> str:
    """Moves an existing connection. Returns the message key describing what happened."""
    if voice_client.channel.id == channel.id:
        return "voice.already_connected"
    await voice_client.move_to(channel)
    logging.info("Voice: moved to %s", channel)
    return "voice.moved"
