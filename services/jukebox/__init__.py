"""Streaming playback core with an opportunistic on-disk audio cache."""

from .errors import (
    CacheTimeoutError,
    EmptyQueueError,
    JukeboxError,
    NoCurrentSongError,
    NoSuitableFormatError,
    NotConnectedError,
    NotPlayingError,
    SourceUnavailableError,
    TranscodeError,
)
from .playback import PlaybackEngine, Status, create_engine
