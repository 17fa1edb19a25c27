import logging
from typing import TYPE_CHECKING

import discord

from . import embeds
from .i18n import t
from .tracks import TrackEvent

if TYPE_CHECKING:
    from .session import VoiceSession

logger = logging.getLogger(__name__)


async def send_to_channel(channel: discord.abc.Messageable, reply: embeds.Reply) -> bool:
    """Sends a reply to a text channel, logging instead of raising on failure."""
    try:
        await channel.send(**reply.as_channel_kwargs())
        return True
    except discord.DiscordException as e:
        logger.warning("Error sending message to %s: %s", getattr(channel, "id", channel), e)
        return False


class TrackEndNotifier:
    """Consumes a session's TrackEvents and posts the new playback state."""

    def __init__(self, session: "VoiceSession") -> None:
        self.session = session

    async def run(self) -> None:
        events = self.session.events
        while True:
            event = await events.get()
            if event is None:
                break
            try:
                await self.notify(event)
            except Exception:
                logger.exception("Track-end notification failed in guild %s", self.session.guild_id)
        logger.debug("Notifier for guild %s stopped", self.session.guild_id)

    async def notify(self, event: TrackEvent) -> None:
        # Read state under the lock, send after releasing it
        async with self.session.lock:
            head = self.session.queue.current()
            elapsed = self.session.queue.elapsed()
            channel = self.session.text_channel

        if channel is None:
            logger.debug("No text channel for guild %s, dropping update", self.session.guild_id)
            return

        if event.error is not None:
            await send_to_channel(
                channel,
                embeds.notice(t("playback.failed", title=event.track.title, error=event.error)),
            )

        if head is not None:
            await send_to_channel(channel, embeds.now_playing(head, elapsed))
        else:
            await send_to_channel(channel, embeds.empty_queue())
