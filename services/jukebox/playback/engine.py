"""Playback state machine: one session, one item at a time."""

import asyncio
import enum
import logging
from dataclasses import dataclass, field

from ..errors import EmptyQueueError, NoCurrentSongError, NotConnectedError, NotPlayingError
from .models import CachedFile
from .position import PositionTracker

log = logging.getLogger('jukebox.engine')


class Status(enum.Enum):
    DISCONNECTED = 'disconnected'
    PLAYING = 'playing'
    PAUSED = 'paused'


@dataclass
class PlaybackSession:
    """Everything the engine mutates, in one place."""
    status: Status = Status.DISCONNECTED
    connection: object = None
    dispatcher: object = None
    source: object = None
    tracker: PositionTracker = field(default_factory=PositionTracker)


class PlaybackEngine:
    """Plays the head of an external queue through a transport.

    Sources come from the SourceAcquirer, so an uncached item streams while
    it is written to the ContentCache and plays from disk next time.  Seeking
    needs the cached file and waits for it.  State transitions run one at a
    time under ``_lock``.
    """

    def __init__(self, queue, transport, acquirer, cache, session=None,
                 wait_attempts=50, wait_interval=0.5):
        self.queue = queue
        self.transport = transport
        self.acquirer = acquirer
        self.cache = cache
        self.session = session or PlaybackSession()
        self.wait_attempts = wait_attempts
        self.wait_interval = wait_interval
        self._lock = asyncio.Lock()

    @property
    def status(self):
        return self.session.status

    @property
    def tracker(self):
        return self.session.tracker

    def get_position(self):
        return self.session.tracker.get()

    def _current_item(self):
        items = self.queue.get()
        return items[0] if items else None

    # -- Connection lifecycle --

    async def connect(self, channel):
        conn = await self.transport.connect(channel)
        conn.on_disconnect(lambda: self.handle_disconnect(conn))
        self.session.connection = conn
        log.info("Connected to %s", channel)

    async def disconnect(self):
        async with self._lock:
            session = self.session
            if session.connection is None:
                return
            if session.status == Status.PLAYING:
                await self._pause()
            conn = session.connection
            session.connection = None
            session.dispatcher = None
            await conn.disconnect()
            if session.status != Status.PAUSED:
                session.status = Status.DISCONNECTED
            log.info("Disconnected (status %s, position %ds)",
                     session.status.value, session.tracker.get())

    async def handle_disconnect(self, conn):
        """Transport dropped the connection on its own."""
        if conn is not self.session.connection:
            return
        async with self._lock:
            session = self.session
            if conn is not session.connection:
                return
            if session.status == Status.PLAYING:
                await self._pause()
            session.connection = None
            session.dispatcher = None
            log.info("Connection lost, paused at %ds", session.tracker.get())

    # -- Playback --
    # Public transitions hold self._lock; the underscored variants assume it.

    async def play(self):
        async with self._lock:
            await self._play()

    async def pause(self):
        async with self._lock:
            await self._pause()

    async def seek(self, position):
        async with self._lock:
            await self._seek(position)

    async def forward_seek(self, delta):
        """Seek relative to the current position.  Never goes below zero."""
        async with self._lock:
            await self._seek(max(0, self.get_position() + delta))

    async def _play(self):
        session = self.session

        if session.status == Status.PAUSED:
            if session.dispatcher is not None:
                await session.dispatcher.resume()
                session.tracker.start()
                session.status = Status.PLAYING
                log.info("Resumed at %ds", session.tracker.get())
            else:
                await self._seek(session.tracker.get())
            return

        if session.connection is None:
            raise NotConnectedError("Not connected to a voice channel.")
        item = self._current_item()
        if item is None:
            raise EmptyQueueError("Queue empty.")

        source = await self.acquirer.acquire(item.identifier)
        await self._start(source, 0)
        log.info("Playing %s", item.identifier)

    async def _pause(self):
        session = self.session
        if session.status != Status.PLAYING:
            raise NotPlayingError("Not currently playing.")
        session.status = Status.PAUSED
        if session.dispatcher is not None:
            await session.dispatcher.pause()
        session.tracker.stop()
        log.info("Paused at %ds", session.tracker.get())

    async def _seek(self, position):
        session = self.session
        if session.connection is None:
            raise NotConnectedError("Not connected to a voice channel.")
        item = self._current_item()
        if item is None:
            raise NoCurrentSongError("No song currently playing")

        path = await self.cache.await_available(
            item.identifier, self.wait_attempts, self.wait_interval)
        await self._start(CachedFile(path), position)
        log.info("Seeked %s to %ds", item.identifier, position)

    async def _start(self, source, position):
        """Prime the tracker, then hand ``source`` to the transport."""
        session = self.session
        previous = session.tracker.get()
        session.tracker.start(position)
        try:
            if position:
                dispatcher = await session.connection.play(source, seek=position)
            else:
                dispatcher = await session.connection.play(source)
        except Exception:
            session.tracker.stop()
            session.tracker.position = previous
            raise
        dispatcher.on_speaking(lambda speaking: self.handle_speaking(dispatcher, speaking))
        session.dispatcher = dispatcher
        session.source = source
        session.status = Status.PLAYING

    async def handle_speaking(self, dispatcher, speaking):
        """Transport event: the dispatcher started or stopped emitting audio."""
        if speaking:
            return
        async with self._lock:
            session = self.session
            if dispatcher is not session.dispatcher or session.status != Status.PLAYING:
                return
            await self._track_ended()

    async def _track_ended(self):
        if not self.queue.get():
            return
        self.queue.forward()
        item = self._current_item()
        if item is None:
            self._go_idle()
            log.info("Queue finished")
            return
        try:
            await self._play()
        except Exception as e:
            log.error("Could not advance to %s: %s", item.identifier, e)
            self._go_idle()

    def _go_idle(self):
        session = self.session
        session.tracker.stop()
        session.tracker.position = 0
        session.dispatcher = None
        session.source = None
        session.status = Status.DISCONNECTED

    def get_status(self):
        item = self._current_item()
        return {
            'state': self.session.status.value,
            'position': self.get_position(),
            'identifier': item.identifier if item else None,
            'connected': self.session.connection is not None,
            'cached': self.cache.exists(item.identifier) if item else False,
        }
