"""Plain data carried between the cache, the acquirer and the engine."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Item:
    """A queued playable item.  Two items with the same identifier share a cache entry."""
    identifier: str
    metadata: dict = field(default_factory=dict)


@dataclass
class Encoding:
    """One rendition offered by the remote source."""
    format_id: str
    url: str = ''
    codec: str | None = None
    container: str | None = None
    sample_rate: int | None = None
    bitrate: float | None = None
    average_bitrate: float | None = None
    audio_bitrate: float | None = None
    headers: dict = field(default_factory=dict, repr=False)


@dataclass
class SourceInfo:
    identifier: str
    encodings: list[Encoding]
    is_live: bool = False
    is_live_content: bool = False
    raw: dict = field(default_factory=dict, repr=False)


@dataclass
class CachedFile:
    path: Path


@dataclass
class LiveStream:
    """A capacitor reader handed to the transport.

    ``direct`` is True when the remote bytes already match the transport
    format, False when they pass through the transcoder.
    """
    reader: object
    also_caching: bool
    direct: bool = True
