import logging
from typing import Awaitable, Callable, Optional

import discord

from . import audio, embeds, inspire, voice, youtube
from .embeds import Reply
from .i18n import t
from .session import SessionFactory, SessionStore, VoiceSession
from .track_queue import SourceFactory
from .tracks import Track

Resolver = Callable[[str, str], Awaitable[Track]]


async def send_message(interaction: discord.Interaction, reply: Reply) -> None:
    """Responds to an interaction, falling back to a followup once responded/deferred."""
    try:
        if interaction.response.is_done():
            await interaction.followup.send(**reply.as_kwargs())
        else:
            await interaction.response.send_message(**reply.as_kwargs())
    except discord.DiscordException as e:
        logging.error("Error sending message: %s", e)


async def require_voice_channel(interaction: discord.Interaction) -> Optional[discord.abc.Connectable]:
    """Replies with an error and returns None unless the member is in a guild voice channel."""
    if interaction.guild is None:
        await send_message(interaction, embeds.notice(t("errors.guild_only"), ephemeral=True))
        return None

    channel = voice.member_voice_channel(interaction)
    if channel is None:
        await send_message(interaction, embeds.notice(t("errors.user_not_in_voice"), ephemeral=True))
    return channel


async def do_inspireme(interaction: discord.Interaction) -> None:
    if not interaction.response.is_done():
        await interaction.response.defer()
    try:
        image_url = await inspire.generate_image_url()
    except inspire.InspireError as e:
        logging.error("Error getting image: %s", e)
        await send_message(interaction, embeds.notice(t("inspire.failed")))
        return
    await send_message(interaction, embeds.inspiration(image_url))


class MusicCommands:
    """Handlers behind the music slash commands."""

    def __init__(
        self,
        sessions: SessionStore,
        *,
        resolver: Resolver = youtube.resolve,
        source_factory: SourceFactory = audio.create_stream_source,
    ) -> None:
        self.sessions = sessions
        self.resolver = resolver
        self.source_factory = source_factory

    def _session_factory(
        self, interaction: discord.Interaction, channel: discord.abc.Connectable
    ) -> SessionFactory:
        async def create() -> VoiceSession:
            voice_client = await voice.connect(interaction.guild, channel)
            return VoiceSession(
                interaction.guild.id,
                voice_client,
                interaction.channel,
                source_factory=self.source_factory,
            )

        return create

    async def _open_session(
        self, interaction: discord.Interaction, channel: discord.abc.Connectable
    ) -> tuple[Optional[VoiceSession], bool]:
        try:
            session, created = await self.sessions.get_or_create(
                interaction.guild.id, self._session_factory(interaction, channel)
            )
        except Exception as e:
            logging.error("Voice connection failed in guild %s: %s", interaction.guild.id, e)
            await send_message(interaction, embeds.notice(t("errors.connect_failed", error=e)))
            return None, False
        # Track-end updates go where the music was last controlled from
        session.text_channel = interaction.channel
        return session, created

    async def _existing_session(self, interaction: discord.Interaction) -> Optional[VoiceSession]:
        session = self.sessions.get(interaction.guild.id)
        if session is None:
            await send_message(interaction, embeds.notice(t("errors.not_in_voice")))
            return None
        session.text_channel = interaction.channel
        return session

    async def join(self, interaction: discord.Interaction) -> None:
        channel = await require_voice_channel(interaction)
        if channel is None:
            return
        await interaction.response.defer()

        session, created = await self._open_session(interaction, channel)
        if session is None:
            return

        key = "voice.connected"
        if not created:
            try:
                key = await voice.move_to(session.voice_client, channel)
            except Exception as e:
                logging.error("Voice move failed in guild %s: %s", interaction.guild.id, e)
                await send_message(interaction, embeds.notice(t("errors.connect_failed", error=e)))
                return
        await send_message(interaction, embeds.notice(t(key, channel=channel.mention)))

    async def play(self, interaction: discord.Interaction, query: str) -> None:
        channel = await require_voice_channel(interaction)
        if channel is None:
            return
        # Resolving can take longer than the 3 second response window
        await interaction.response.defer()

        session, _ = await self._open_session(interaction, channel)
        if session is None:
            return

        try:
            track = await self.resolver(query, interaction.user.display_name)
        except youtube.YouTubeError as e:
            logging.warning("Err starting source for %r: %s", query, e)
            await send_message(interaction, embeds.notice(t("errors.source_failed", error=e)))
            return

        async with session.lock:
            if session.queue.stopped:
                # /leave won the race while the track was resolving
                position = None
            else:
                position = session.queue.enqueue(track)
                seconds_until = session.queue.time_until(position)
                playing_now = session.queue.current() is track
                elapsed = session.queue.elapsed()

        if position is None:
            await send_message(interaction, embeds.notice(t("errors.not_in_voice")))
            return

        await send_message(interaction, embeds.queued_up(track, position, seconds_until))
        if playing_now:
            await send_message(interaction, embeds.now_playing(track, elapsed))

    async def current(self, interaction: discord.Interaction) -> None:
        if await require_voice_channel(interaction) is None:
            return
        session = await self._existing_session(interaction)
        if session is None:
            return

        async with session.lock:
            head = session.queue.current()
            elapsed = session.queue.elapsed()

        if head is None:
            await send_message(interaction, embeds.empty_queue())
        else:
            await send_message(interaction, embeds.now_playing(head, elapsed))

    async def skip(self, interaction: discord.Interaction) -> None:
        if await require_voice_channel(interaction) is None:
            return
        session = await self._existing_session(interaction)
        if session is None:
            return

        async with session.lock:
            skipped = session.queue.skip()

        if skipped is None:
            await send_message(interaction, embeds.empty_queue())
        else:
            await send_message(
                interaction, embeds.notice(t("playback.skipped", title=embeds.bold(skipped.title)))
            )

    async def leave(self, interaction: discord.Interaction) -> None:
        if await require_voice_channel(interaction) is None:
            return
        session = await self.sessions.remove(interaction.guild.id)
        if session is None:
            await send_message(interaction, embeds.notice(t("errors.not_in_voice")))
            return

        try:
            await session.close()
        except Exception as e:
            logging.error("Voice disconnect failed in guild %s: %s", interaction.guild.id, e)
            await send_message(interaction, embeds.notice(t("errors.leave_failed", error=e)))
        await send_message(interaction, embeds.notice(t("voice.disconnected")))

    async def queue(self, interaction: discord.Interaction) -> None:
        if await require_voice_channel(interaction) is None:
            return
        session = self.sessions.get(interaction.guild.id)
        if session is None:
            await send_message(interaction, embeds.empty_queue())
            return

        async with session.lock:
            tracks = session.queue.snapshot()
            elapsed = session.queue.elapsed()
        await send_message(interaction, embeds.queue_listing(tracks, elapsed))
