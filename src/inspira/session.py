import asyncio
import logging
from typing import Awaitable, Callable, Iterator, Optional

import discord
from discord import VoiceClient

from . import audio
from .notifier import TrackEndNotifier
from .track_queue import SourceFactory, TrackQueue
from .tracks import TrackEvent


class VoiceSession:
    """Voice connection, playback queue and track-end notifier of one guild."""

    def __init__(
        self,
        guild_id: int,
        voice_client: VoiceClient,
        text_channel: Optional[discord.abc.Messageable] = None,
        *,
        source_factory: SourceFactory = audio.create_stream_source,
    ) -> None:
        self.guild_id = guild_id
        self.voice_client = voice_client
        self.text_channel = text_channel
        self.lock = asyncio.Lock()
        self.events: asyncio.Queue[Optional[TrackEvent]] = asyncio.Queue()
        self.queue = TrackQueue(voice_client, self.lock, self.events, source_factory=source_factory)
        self.notifier_task: Optional[asyncio.Task] = None

    def start_notifier(self) -> None:
        if self.notifier_task is None or self.notifier_task.done():
            self.notifier_task = asyncio.create_task(
                TrackEndNotifier(self).run(), name=f"track-notifier-{self.guild_id}"
            )

    async def close(self, *, disconnect: bool = True) -> None:
        """Stops playback and the notifier; disconnect errors propagate to the caller."""
        async with self.lock:
            dropped = self.queue.stop()
        self.events.put_nowait(None)
        logging.info("Closed voice session for guild %s (%d track(s) dropped)", self.guild_id, dropped)

        if disconnect and self.voice_client.is_connected():
            await self.voice_client.disconnect()


SessionFactory = Callable[[], Awaitable[VoiceSession]]


class SessionStore:
    """
    Guild id -> VoiceSession map holding at most one session per guild.

    Creation and removal for a guild are serialised by a per-guild lock, so
    concurrent commands never connect twice.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, VoiceSession] = {}
        self._guild_locks: dict[int, asyncio.Lock] = {}

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[VoiceSession]:
        return iter(list(self._sessions.values()))

    def get(self, guild_id: int) -> Optional[VoiceSession]:
        return self._sessions.get(guild_id)

    def _guild_lock(self, guild_id: int) -> asyncio.Lock:
        lock = self._guild_locks.get(guild_id)
        if lock is None:
            lock = self._guild_locks[guild_id] = asyncio.Lock()
        return lock

    async def get_or_create(self, guild_id: int, factory: SessionFactory) -> tuple[VoiceSession, bool]:
        """Returns (session, created). ``factory`` runs only when no session exists."""
        session = self._sessions.get(guild_id)
        if session is not None:
            return session, False

        async with self._guild_lock(guild_id):
            session = self._sessions.get(guild_id)
            if session is not None:
                return session, False
            session = await factory()
            self._sessions[guild_id] = session
            session.start_notifier()
            logging.info("Created voice session for guild %s", guild_id)
            return session, True

    async def remove(self, guild_id: int) -> Optional[VoiceSession]:
        """Detaches the guild's session without closing it."""
        async with self._guild_lock(guild_id):
            return self._sessions.pop(guild_id, None)

    async def discard(self, guild_id: int, *, disconnect: bool = True) -> bool:
        """Removes and closes the guild's session, logging close failures."""
        session = await self.remove(guild_id)
        if session is None:
            return False
        try:
            await session.close(disconnect=disconnect)
        except Exception as e:
            logging.error("Failed to close voice session for guild %s: %s", guild_id, e)
        return True

    async def close_all(self) -> None:
        for session in self:
            await self.discard(session.guild_id)
