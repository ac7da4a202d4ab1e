"""
Remote sources: where encodings and raw bytes come from.

Every remote source must implement get_info and stream.  ``YtDlpSource``
resolves identifiers with yt-dlp and downloads direct-play renditions over
aiohttp.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import aiohttp
import yt_dlp

from ..errors import SourceUnavailableError
from .constants import CHUNK_SIZE
from .models import Encoding, SourceInfo

log = logging.getLogger('jukebox.remote')

LIVE_CONTENT_STATES = ('is_live', 'was_live', 'is_upcoming', 'post_live')


class RemoteSource(ABC):
    """Interface every remote source must implement."""

    @abstractmethod
    async def get_info(self, identifier) -> SourceInfo:
        """List available encodings.  Raises SourceUnavailableError."""
        ...

    @abstractmethod
    def stream(self, info: SourceInfo, encoding: Encoding):
        """Return an async iterator over the encoding's raw bytes."""
        ...


def _to_int(val):
    try:
        return int(val) if val is not None else None
    except (TypeError, ValueError):
        return None


def encoding_from_format(fmt: dict) -> Encoding:
    """Map a yt-dlp format dict onto an Encoding."""
    acodec = fmt.get('acodec')
    return Encoding(
        format_id=str(fmt.get('format_id', '')),
        url=fmt.get('url', ''),
        codec=None if acodec in (None, 'none') else acodec,
        container=fmt.get('ext'),
        sample_rate=_to_int(fmt.get('asr')),
        bitrate=fmt.get('tbr'),
        average_bitrate=fmt.get('abr'),
        audio_bitrate=fmt.get('abr'),
        headers=fmt.get('http_headers') or {},
    )


def info_from_ytdl(identifier, raw: dict) -> SourceInfo:
    is_live = bool(raw.get('is_live'))
    return SourceInfo(
        identifier=identifier,
        encodings=[encoding_from_format(f) for f in raw.get('formats') or []],
        is_live=is_live,
        is_live_content=is_live or raw.get('live_status') in LIVE_CONTENT_STATES,
        raw=raw,
    )


class YtDlpSource(RemoteSource):
    """Resolves identifiers (URLs) with yt-dlp."""

    YDL_OPTS = {
        'quiet': True,
        'no_warnings': True,
        'noplaylist': True,
        'skip_download': True,
    }

    def __init__(self, session: aiohttp.ClientSession | None = None, chunk_size=CHUNK_SIZE):
        self._session = session
        self._own_session = session is None
        self.chunk_size = chunk_size

    async def get_info(self, identifier) -> SourceInfo:
        def _extract():
            with yt_dlp.YoutubeDL(self.YDL_OPTS) as ydl:
                return ydl.extract_info(identifier, download=False)

        try:
            raw = await asyncio.to_thread(_extract)
        except yt_dlp.utils.DownloadError as e:
            log.error("Cannot resolve %s: %s", identifier, e)
            raise SourceUnavailableError(str(e)) from e
        if not raw:
            raise SourceUnavailableError(f"No info for {identifier}")
        info = info_from_ytdl(identifier, raw)
        log.info("Resolved %s: %d encodings%s", identifier, len(info.encodings),
                 " (live)" if info.is_live else "")
        return info

    async def stream(self, info, encoding):
        if self._session is None:
            self._session = aiohttp.ClientSession()
        timeout = aiohttp.ClientTimeout(total=None, sock_read=30)
        async with self._session.get(encoding.url, headers=encoding.headers,
                                     timeout=timeout) as resp:
            resp.raise_for_status()
            async for chunk in resp.content.iter_chunked(self.chunk_size):
                yield chunk

    async def close(self):
        if self._own_session and self._session:
            await self._session.close()
            self._session = None
