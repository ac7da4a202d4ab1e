"""
Exceptions raised by the playback core, so callers can tell a missing
connection from an empty queue from a cache that never filled.
"""


class JukeboxError(Exception):
    """Base exception for all playback-core errors."""


class NotConnectedError(JukeboxError):
    """Raised when playback is requested without a transport connection."""


class NotPlayingError(JukeboxError):
    """Raised when pausing while nothing is playing."""


class EmptyQueueError(JukeboxError):
    """Raised when play() finds nothing at the head of the queue."""


class NoCurrentSongError(EmptyQueueError):
    """Raised when seeking with no current item."""


class NoSuitableFormatError(JukeboxError):
    """Raised when the remote source offers no playable or transcodable encoding."""


class SourceUnavailableError(JukeboxError):
    """Raised when the remote source cannot be reached or resolved."""


class TranscodeError(JukeboxError):
    """
    Raised to stream readers when the transcoding stage exits with an error,
    e.g. after exhausting its reconnect attempts.
    """


class CacheTimeoutError(JukeboxError, TimeoutError):
    """Raised when an item does not appear in the cache within the retry budget."""
