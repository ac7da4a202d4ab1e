"""Content-addressed on-disk cache of fully downloaded audio."""

import asyncio
import hashlib
import logging
import os
from pathlib import Path

from ..errors import CacheTimeoutError
from .constants import PART_SUFFIX

log = logging.getLogger('jukebox.cache')


class ContentCache:
    """Maps an item identifier to a file named by the identifier's hash.

    An entry is either absent, in progress (``<hash>.part`` being written) or
    complete (``<hash>``).  The step from in progress to complete is a single
    ``os.replace``, so readers never see a partial final file.  Nothing here
    ever deletes a complete entry.
    """

    def __init__(self, cache_dir):
        self.cache_dir = Path(cache_dir)
        self._published = {}  # identifier -> asyncio.Event (wakes waiters on publish)
        self._waiters = {}  # identifier -> number of await_available calls

    def init(self):
        """Set up the cache directory.  Existing entries are kept."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        log.info("Content cache: %s", self.cache_dir)

    def _cache_key(self, identifier):
        return hashlib.sha256(identifier.encode()).hexdigest()

    def path(self, identifier) -> Path:
        return self.cache_dir / self._cache_key(identifier)

    def temp_path(self, identifier) -> Path:
        return self.cache_dir / f"{self._cache_key(identifier)}{PART_SUFFIX}"

    def exists(self, identifier) -> bool:
        try:
            return self.path(identifier).is_file()
        except OSError:
            return False

    async def await_available(self, identifier, max_attempts=50, interval=0.5) -> Path:
        """Wait until another acquisition has published ``identifier``.

        Checks once up front, then up to ``max_attempts`` times, ``interval``
        seconds apart.  A publish in this process wakes the waiter early; the
        poll covers writers elsewhere.
        """
        if self.exists(identifier):
            return self.path(identifier)

        event = self._published.setdefault(identifier, asyncio.Event())
        self._waiters[identifier] = self._waiters.get(identifier, 0) + 1
        try:
            for _ in range(max_attempts):
                try:
                    await asyncio.wait_for(event.wait(), interval)
                except asyncio.TimeoutError:
                    pass
                if self.exists(identifier):
                    return self.path(identifier)
        finally:
            self._waiters[identifier] -= 1
            if not self._waiters[identifier]:
                del self._waiters[identifier]
                if self._published.get(identifier) is event:
                    del self._published[identifier]

        log.warning("Timed out waiting for %s to become cached", identifier)
        raise CacheTimeoutError(f"Timed out waiting for {identifier} to become cached")

    async def publish(self, identifier, stream, live=False) -> Path | None:
        """Write ``stream`` to the temp path, then move it into place.

        ``stream`` is an async iterator of bytes.  Live streams are never
        cached.  On failure the temp file is removed and the error re-raised.
        """
        if live:
            log.info("Not caching live stream %s", identifier)
            return None

        final = self.path(identifier)
        temp = self.temp_path(identifier)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        size = 0
        try:
            with open(temp, 'wb') as f:
                async for chunk in stream:
                    f.write(chunk)
                    size += len(chunk)
            os.replace(temp, final)
        except BaseException:
            temp.unlink(missing_ok=True)
            raise

        log.info("Cached %s (%.1fMB) -> %s", identifier, size / (1024 * 1024), final.name)
        event = self._published.pop(identifier, None)
        if event:
            event.set()
        return final
