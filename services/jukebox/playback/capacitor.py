"""Single-producer, multi-reader byte buffer spooled to a temp file.

The producer appends without ever waiting on readers, and each reader keeps
its own offset, so a stalled transport cannot stall the cache writer and a
slow cache writer cannot stall the transport.
"""

import asyncio
import logging
import tempfile

log = logging.getLogger('jukebox.capacitor')


class Capacitor:

    def __init__(self, name=''):
        self.name = name
        self._file = tempfile.TemporaryFile(prefix='jukebox-')
        self._size = 0
        self._closed = False
        self._error = None
        self._changed = asyncio.Condition()
        self._readers = set()

    @property
    def size(self):
        return self._size

    @property
    def finished(self):
        return self._closed

    @property
    def error(self):
        return self._error

    async def write(self, data):
        if self._closed:
            raise ValueError("write to closed capacitor")
        if not data:
            return
        self._file.seek(0, 2)
        self._file.write(data)
        self._size += len(data)
        await self._notify()

    async def close(self):
        """Mark the producer done.  Readers drain what's left, then see EOF."""
        if self._closed:
            return
        self._closed = True
        await self._notify()
        self._maybe_release()

    async def fail(self, exc):
        """Mark the producer failed.  Readers raise ``exc`` once they catch up."""
        if self._closed:
            return
        self._error = exc
        self._closed = True
        log.warning("Capacitor %s failed after %d bytes: %s", self.name, self._size, exc)
        await self._notify()
        self._maybe_release()

    def create_reader(self):
        if self._file.closed:
            raise ValueError("capacitor already released")
        reader = CapacitorReader(self)
        self._readers.add(reader)
        return reader

    async def _notify(self):
        async with self._changed:
            self._changed.notify_all()

    def _read_at(self, offset, n):
        self._file.seek(offset)
        return self._file.read(n)

    def _detach(self, reader):
        self._readers.discard(reader)
        self._maybe_release()

    def _maybe_release(self):
        if self._closed and not self._readers and not self._file.closed:
            self._file.close()
            log.debug("Capacitor %s released (%d bytes)", self.name, self._size)


class CapacitorReader:
    """Independent view over a capacitor, starting at byte 0."""

    def __init__(self, capacitor):
        self._cap = capacitor
        self._offset = 0
        self.closed = False

    async def read(self, n=-1):
        """Return up to ``n`` bytes (all available if ``n`` < 0), ``b""`` at end."""
        if self.closed:
            return b''
        cap = self._cap
        async with cap._changed:
            await cap._changed.wait_for(
                lambda: cap._size > self._offset or cap._closed)
        if cap._size > self._offset:
            want = cap._size - self._offset
            if n >= 0:
                want = min(want, n)
            data = cap._read_at(self._offset, want)
            self._offset += len(data)
            return data
        if cap._error is not None:
            raise cap._error
        return b''

    def close(self):
        if not self.closed:
            self.closed = True
            self._cap._detach(self)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            data = await self.read(65536)
        except BaseException:
            self.close()
            raise
        if not data:
            self.close()
            raise StopAsyncIteration
        return data
