"""Coarse elapsed-time tracking for the current track."""

import asyncio
import logging

log = logging.getLogger('jukebox.position')


class PositionTracker:
    """Counts whole seconds while playing.

    An approximation driven by a periodic tick, not by the media clock;
    good enough for seek and position display.
    """

    def __init__(self, tick=1.0):
        self.tick = tick
        self.position = 0
        self._tick_task = None

    @property
    def running(self):
        return self._tick_task is not None and not self._tick_task.done()

    def start(self, initial=None):
        """(Re)start ticking, optionally from ``initial`` seconds."""
        if initial is not None:
            self.position = int(initial)
        self.stop()
        self._tick_task = asyncio.create_task(self._run())

    def stop(self):
        if self._tick_task and not self._tick_task.done():
            self._tick_task.cancel()
        self._tick_task = None

    def get(self):
        return self.position

    async def _run(self):
        try:
            while True:
                await asyncio.sleep(self.tick)
                self.position += 1
        except asyncio.CancelledError:
            pass
