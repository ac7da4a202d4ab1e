"""
Playback components: content cache, source acquisition, position tracking
and the playback engine.

The factory ``create_engine`` reads config.json and wires the pieces
together for a given queue and transport.

Config keys used:
  - ``cache.dir``                    – cache directory (default /var/cache/jukebox)
  - ``cache.wait_attempts``          – seek wait attempts (default 50)
  - ``cache.wait_interval_ms``       – seek wait interval (default 500)
  - ``transcode.ffmpeg``             – ffmpeg binary (default "ffmpeg")
  - ``transcode.reconnect_delay_max`` – ffmpeg reconnect cap in seconds (default 5)
  - ``position.tick_seconds``        – tracker tick (default 1.0)
  - ``remote.chunk_size``            – download chunk size (default 65536)
"""

import logging

from ..config import cfg
from .capacitor import Capacitor, CapacitorReader
from .content_cache import ContentCache
from .engine import PlaybackEngine, PlaybackSession, Status
from .models import CachedFile, Encoding, Item, LiveStream, SourceInfo
from .position import PositionTracker
from .remote_source import RemoteSource, YtDlpSource
from .source_acquirer import SourceAcquirer, select_encoding
from .transcoder import FFmpegTranscoder
from .transport import Connection, Dispatcher, Transport

logger = logging.getLogger('jukebox.playback')

__all__ = [
    "Capacitor",
    "CapacitorReader",
    "CachedFile",
    "Connection",
    "ContentCache",
    "Dispatcher",
    "Encoding",
    "FFmpegTranscoder",
    "Item",
    "LiveStream",
    "PlaybackEngine",
    "PlaybackSession",
    "PositionTracker",
    "RemoteSource",
    "SourceAcquirer",
    "SourceInfo",
    "Status",
    "Transport",
    "YtDlpSource",
    "create_engine",
    "select_encoding",
]


def create_engine(queue, transport, remote=None) -> PlaybackEngine:
    """Build a PlaybackEngine from config.json for ``queue`` and ``transport``.

    ``remote`` defaults to a YtDlpSource.
    """
    cache_dir = cfg("cache", "dir", default="/var/cache/jukebox")
    attempts = int(cfg("cache", "wait_attempts", default=50))
    interval_ms = int(cfg("cache", "wait_interval_ms", default=500))
    ffmpeg = cfg("transcode", "ffmpeg", default="ffmpeg")
    reconnect_max = int(cfg("transcode", "reconnect_delay_max", default=5))
    tick = float(cfg("position", "tick_seconds", default=1.0))
    chunk_size = int(cfg("remote", "chunk_size", default=65536))

    cache = ContentCache(cache_dir)
    cache.init()
    if remote is None:
        remote = YtDlpSource(chunk_size=chunk_size)
    transcoder = FFmpegTranscoder(ffmpeg, reconnect_delay_max=reconnect_max,
                                  chunk_size=chunk_size)
    acquirer = SourceAcquirer(cache, remote, transcoder)
    session = PlaybackSession(tracker=PositionTracker(tick=tick))

    logger.info("Engine: cache %s, seek wait %d x %dms, ffmpeg %s",
                cache_dir, attempts, interval_ms, ffmpeg)
    return PlaybackEngine(queue, transport, acquirer, cache, session=session,
                          wait_attempts=attempts, wait_interval=interval_ms / 1000)
