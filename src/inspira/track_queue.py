import asyncio
import functools
import logging
import time
from collections import deque
from typing import Callable, Optional

import discord
from discord import VoiceClient

from . import audio
from .tracks import Track, TrackEvent

SourceFactory = Callable[[Track], discord.AudioSource]


class TrackQueue:
    """
    FIFO of tracks for one voice client. The head is the track being played.

    Mutating methods expect the caller to hold ``lock``. Track-end callbacks
    arrive on discord.py's audio thread and are scheduled back onto the event
    loop, where they take the same lock before advancing the queue. Every
    finished (or failed) head is published on ``events`` as a TrackEvent.
    """

    def __init__(
        self,
        voice_client: VoiceClient,
        lock: asyncio.Lock,
        events: "asyncio.Queue[Optional[TrackEvent]]",
        *,
        source_factory: SourceFactory = audio.create_stream_source,
        clock: Callable[[], float] = time.monotonic,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.voice_client = voice_client
        self.lock = lock
        self.events = events
        self._tracks: deque[Track] = deque()
        self._source_factory = source_factory
        self._clock = clock
        self._loop = loop or asyncio.get_running_loop()
        self._started_at: Optional[float] = None
        # Bumped on every play/stop so stale after-callbacks are ignored
        self._generation = 0
        self._stopped = False

    def __len__(self) -> int:
        return len(self._tracks)

    def is_empty(self) -> bool:
        return not self._tracks

    @property
    def stopped(self) -> bool:
        return self._stopped

    def current(self) -> Optional[Track]:
        return self._tracks[0] if self._tracks else None

    def snapshot(self) -> list[Track]:
        return list(self._tracks)

    def elapsed(self) -> float:
        """Seconds the head has been playing."""
        if self._started_at is None:
            return 0.0
        return max(self._clock() - self._started_at, 0.0)

    def time_until(self, position: int) -> Optional[float]:
        """Seconds until the track at 1-based ``position`` starts, None if unknown."""
        if position <= 1 or not self._tracks:
            return 0.0
        head = self._tracks[0]
        if head.duration is None:
            return None
        total = max(head.duration - self.elapsed(), 0.0)
        for index in range(1, min(position - 1, len(self._tracks))):
            duration = self._tracks[index].duration
            if duration is None:
                return None
            total += duration
        return total

    def enqueue(self, track: Track) -> int:
        """Appends a track, starting playback if the queue was empty. Returns its position."""
        if self._stopped:
            raise RuntimeError("Queue has been stopped")
        self._tracks.append(track)
        position = len(self._tracks)
        if position == 1:
            self._start_head()
        return position

    def skip(self) -> Optional[Track]:
        """Stops the head; the end callback advances the queue. No-op when empty."""
        head = self.current()
        if head is None:
            return None

        vc = self.voice_client
        if vc.is_playing() or vc.is_paused():
            vc.stop()
        else:
            # Nothing is audible, so no end callback will come
            self._generation += 1
            self._finish_head(None)
            self._start_head()
        logging.info("Skipped: %s", head.title)
        return head

    def stop(self) -> int:
        """Clears the queue and silences the voice client. Returns the number of tracks dropped."""
        dropped = len(self._tracks)
        self._stopped = True
        self._generation += 1
        self._tracks.clear()
        self._started_at = None
        vc = self.voice_client
        if vc.is_playing() or vc.is_paused():
            vc.stop()
        return dropped

    def _start_head(self) -> None:
        while self._tracks:
            head = self._tracks[0]
            try:
                source = self._source_factory(head)
                self._generation += 1
                self.voice_client.play(
                    source, after=functools.partial(self._after_playback, self._generation)
                )
            except (audio.AudioError, discord.ClientException) as e:
                logging.error("Could not start %s: %s", head.title, e)
                self._finish_head(e)
                continue
            self._started_at = self._clock()
            logging.info("Starting playback: %s", head.title)
            return

    def _finish_head(self, error: Optional[Exception]) -> None:
        finished = self._tracks.popleft()
        self._started_at = None
        self.events.put_nowait(TrackEvent(finished, error))

    def _after_playback(self, generation: int, error: Optional[Exception]) -> None:
        """Called by discord.py from the audio thread when a source ends."""
        asyncio.run_coroutine_threadsafe(self._handle_track_end(generation, error), self._loop)

    async def _handle_track_end(self, generation: int, error: Optional[Exception]) -> None:
        try:
            async with self.lock:
                if self._stopped or generation != self._generation or not self._tracks:
                    return
                if error:
                    logging.error("Playback error for %s: %s", self._tracks[0].title, error)
                else:
                    logging.info("Playback finished normally: %s", self._tracks[0].title)
                self._finish_head(error)
                self._start_head()
        except Exception:
            logging.exception("Error advancing track queue")
