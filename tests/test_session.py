"""
Unit tests for voice sessions and the session store.
"""

import asyncio
import logging

import pytest

from inspira.session import SessionStore, VoiceSession
from fakes import FakeGuild, FakeTextChannel, FakeVoiceChannel, fake_source_factory, make_track, settle


def session_factory(channel: FakeVoiceChannel, calls: list):
    async def create() -> VoiceSession:
        calls.append(channel.guild.id)
        voice_client = await channel.connect()
        return VoiceSession(
            channel.guild.id, voice_client, FakeTextChannel(), source_factory=fake_source_factory
        )

    return create


@pytest.mark.asyncio
class TestSessionStore:
    """Test the guild -> session map."""

    async def test_creates_once(self):
        """A second lookup returns the existing session."""
        store = SessionStore()
        channel = FakeVoiceChannel(FakeGuild(7))
        calls: list = []

        session, created = await store.get_or_create(7, session_factory(channel, calls))
        again, created_again = await store.get_or_create(7, session_factory(channel, calls))

        assert created and not created_again
        assert again is session
        assert calls == [7]
        assert 7 in store and len(store) == 1
        await store.close_all()

    async def test_concurrent_creation_yields_one_session(self):
        """Two commands racing for the same guild share one connection."""
        store = SessionStore()
        channel = FakeVoiceChannel(FakeGuild(7))
        calls: list = []

        results = await asyncio.gather(
            store.get_or_create(7, session_factory(channel, calls)),
            store.get_or_create(7, session_factory(channel, calls)),
        )

        assert results[0][0] is results[1][0]
        assert sorted(created for _, created in results) == [False, True]
        assert channel.connect_calls == 1
        await store.close_all()

    async def test_sessions_are_per_guild(self):
        """Each guild gets its own session."""
        store = SessionStore()
        calls: list = []
        first, _ = await store.get_or_create(1, session_factory(FakeVoiceChannel(FakeGuild(1)), calls))
        second, _ = await store.get_or_create(2, session_factory(FakeVoiceChannel(FakeGuild(2)), calls))

        assert first is not second
        assert {s.guild_id for s in store} == {1, 2}
        await store.close_all()

    async def test_failed_factory_leaves_no_session(self):
        """A failed connect stores nothing."""
        store = SessionStore()
        channel = FakeVoiceChannel(FakeGuild(7))
        channel.connect_error = asyncio.TimeoutError()

        with pytest.raises(asyncio.TimeoutError):
            await store.get_or_create(7, session_factory(channel, []))
        assert store.get(7) is None

    async def test_remove_detaches(self):
        """Remove hands back the session without closing it."""
        store = SessionStore()
        session, _ = await store.get_or_create(7, session_factory(FakeVoiceChannel(FakeGuild(7)), []))

        assert await store.remove(7) is session
        assert await store.remove(7) is None
        assert store.get(7) is None
        await session.close()

    async def test_discard_closes_session(self):
        """Discard disconnects and stops the queue."""
        store = SessionStore()
        session, _ = await store.get_or_create(7, session_factory(FakeVoiceChannel(FakeGuild(7)), []))

        assert await store.discard(7)
        await asyncio.wait_for(session.notifier_task, timeout=1)

        assert not session.voice_client.is_connected()
        assert session.queue.stopped
        assert not await store.discard(7)

    async def test_discard_logs_disconnect_failure(self, caplog):
        """Discard logs close errors instead of raising."""
        store = SessionStore()
        session, _ = await store.get_or_create(7, session_factory(FakeVoiceChannel(FakeGuild(7)), []))
        session.voice_client.disconnect_error = RuntimeError("gateway gone")

        with caplog.at_level(logging.ERROR):
            assert await store.discard(7)

        assert "gateway gone" in caplog.text
        assert store.get(7) is None


@pytest.mark.asyncio
class TestVoiceSession:
    """Test closing a session."""

    async def test_close_stops_playback_and_disconnects(self):
        """Close silences audio, disconnects and ends the notifier."""
        guild = FakeGuild(3)
        voice_client = await FakeVoiceChannel(guild).connect()
        session = VoiceSession(3, voice_client, FakeTextChannel(), source_factory=fake_source_factory)
        session.start_notifier()
        session.queue.enqueue(make_track())

        await session.close()
        await settle()

        assert not voice_client.is_playing()
        assert not voice_client.is_connected()
        assert guild.voice_client is None
        assert session.notifier_task.done()

    async def test_close_without_disconnect(self):
        """Close can leave the voice client connected."""
        voice_client = await FakeVoiceChannel(FakeGuild(3)).connect()
        session = VoiceSession(3, voice_client, source_factory=fake_source_factory)

        await session.close(disconnect=False)
        assert voice_client.is_connected()

    async def test_close_propagates_disconnect_error(self):
        """Disconnect errors reach the caller."""
        voice_client = await FakeVoiceChannel(FakeGuild(3)).connect()
        voice_client.disconnect_error = RuntimeError("nope")
        session = VoiceSession(3, voice_client, source_factory=fake_source_factory)

        with pytest.raises(RuntimeError):
            await session.close()
