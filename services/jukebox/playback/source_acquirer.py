"""Resolve an identifier to something the transport can play."""

import asyncio
import logging

from ..errors import NoSuitableFormatError
from .capacitor import Capacitor
from .constants import LIVE_FORMAT_IDS, TARGET_CODEC, TARGET_CONTAINER, TARGET_SAMPLE_RATE
from .models import CachedFile, LiveStream

log = logging.getLogger('jukebox.source')


def is_direct_playable(encoding):
    return (encoding.codec == TARGET_CODEC
            and encoding.container == TARGET_CONTAINER
            and encoding.sample_rate == TARGET_SAMPLE_RATE)


def _format_id(encoding):
    try:
        return int(encoding.format_id)
    except (TypeError, ValueError):
        return None


def next_best_encoding(info):
    """Pick a rendition to transcode when nothing plays directly."""
    if info.is_live:
        ranked = sorted(info.encodings, key=lambda e: e.audio_bitrate or 0, reverse=True)
        return next((e for e in ranked if _format_id(e) in LIVE_FORMAT_IDS), None)

    ranked = sorted((e for e in info.encodings if e.average_bitrate),
                    key=lambda e: e.average_bitrate, reverse=True)
    if not ranked:
        return None
    return next((e for e in ranked if not e.bitrate), ranked[0])


def select_encoding(info):
    """Return ``(encoding, direct)``.  Raises NoSuitableFormatError."""
    encoding = next((e for e in info.encodings if is_direct_playable(e)), None)
    if encoding:
        return encoding, True
    encoding = next_best_encoding(info)
    if encoding is None:
        raise NoSuitableFormatError(f"Can't find suitable format for {info.identifier}")
    return encoding, False


class SourceAcquirer:
    """Turns identifiers into CachedFile or LiveStream sources.

    Live streams are pumped into a Capacitor in the background.  One reader
    goes to the transport, another to ContentCache.publish unless the content
    is live.  While a download is in flight, further acquisitions of the
    same identifier fork a reader from the same capacitor instead of
    downloading again, so each identifier has at most one cache writer.
    """

    def __init__(self, cache, remote, transcoder):
        self.cache = cache
        self.remote = remote
        self.transcoder = transcoder
        self._in_flight = {}  # identifier -> (Capacitor, caching, direct)
        self._tasks = set()

    async def acquire(self, identifier):
        if self.cache.exists(identifier):
            log.info("Cache hit: %s", identifier)
            return CachedFile(self.cache.path(identifier))

        shared = self._in_flight.get(identifier)
        if shared:
            capacitor, caching, direct = shared
            if capacitor.error is None:
                log.info("Joining in-flight download: %s", identifier)
                return LiveStream(capacitor.create_reader(), also_caching=caching,
                                  direct=direct)

        info = await self.remote.get_info(identifier)
        encoding, direct = select_encoding(info)

        if direct:
            log.info("Direct play %s (format %s)", identifier, encoding.format_id)
            stream = self.remote.stream(info, encoding)
        else:
            log.info("Transcoding %s from format %s (%s/%s)", identifier,
                     encoding.format_id, encoding.codec, encoding.container)
            stream = self.transcoder.stream(encoding.url)

        capacitor = Capacitor(name=self.cache.path(identifier).name[:12])
        caching = not info.is_live_content
        # Readers are created before the pump starts so none misses a byte.
        reader = capacitor.create_reader()
        cache_reader = capacitor.create_reader() if caching else None

        self._in_flight[identifier] = (capacitor, caching, direct)
        self._spawn(self._pump(identifier, stream, capacitor, release=not caching))
        if caching:
            self._spawn(self._cache(identifier, capacitor, cache_reader))
        else:
            log.info("Live content, not caching: %s", identifier)

        return LiveStream(reader, also_caching=caching, direct=direct)

    def _release(self, identifier, capacitor):
        if self._in_flight.get(identifier, (None,))[0] is capacitor:
            del self._in_flight[identifier]

    def _spawn(self, coro):
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _pump(self, identifier, stream, capacitor, release):
        try:
            async for chunk in stream:
                await capacitor.write(chunk)
        except asyncio.CancelledError:
            await capacitor.fail(ConnectionAbortedError("download cancelled"))
            raise
        except Exception as e:
            log.error("Stream for %s failed: %s", identifier, e)
            await capacitor.fail(e)
        else:
            await capacitor.close()
        finally:
            if release:
                self._release(identifier, capacitor)

    async def _cache(self, identifier, capacitor, reader):
        # Stays registered until the entry is published, so a late joiner
        # never starts a second writer for the same identifier.
        try:
            await self.cache.publish(identifier, reader)
        except Exception as e:
            log.warning("Caching %s failed: %s", identifier, e)
        finally:
            reader.close()
            self._release(identifier, capacitor)

    async def join(self):
        """Wait for every background download and cache write to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self):
        """Cancel background downloads and cache writes."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
