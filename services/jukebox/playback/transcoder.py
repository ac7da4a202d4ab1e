"""On-the-fly transcoding of remote audio to the transport format via ffmpeg."""

import asyncio
import logging
import time

from ..errors import TranscodeError
from .constants import CHUNK_SIZE, RECONNECT_ARGS, TARGET_CODEC, TRANSCODE_CODECS

log = logging.getLogger('jukebox.transcode')


class FFmpegTranscoder:
    """Pipes a remote URL through ffmpeg: no video, libopus audio, webm out.

    ffmpeg reconnects on its own when the input drops, up to
    ``reconnect_delay_max`` seconds between attempts.  If it gives up the
    stream ends with a TranscodeError.
    """

    def __init__(self, ffmpeg='ffmpeg', reconnect_delay_max=5, target_codec=TARGET_CODEC,
                 chunk_size=CHUNK_SIZE):
        self.ffmpeg = ffmpeg
        self.reconnect_delay_max = reconnect_delay_max
        self.target_codec = target_codec
        self.chunk_size = chunk_size

    def build_args(self, url):
        codec_args = TRANSCODE_CODECS.get(self.target_codec, TRANSCODE_CODECS[TARGET_CODEC])
        return [
            self.ffmpeg, '-hide_banner', '-loglevel', 'error',
            *RECONNECT_ARGS, '-reconnect_delay_max', str(self.reconnect_delay_max),
            '-i', url,
            *codec_args, 'pipe:1',
        ]

    async def stream(self, url):
        """Yield transcoded chunks as ffmpeg produces them."""
        log.info("Transcoding -> %s: %s", self.target_codec, url[:80])
        start = time.monotonic()
        proc = await asyncio.create_subprocess_exec(
            *self.build_args(url),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        total = 0
        try:
            while True:
                chunk = await proc.stdout.read(self.chunk_size)
                if not chunk:
                    break
                total += len(chunk)
                yield chunk
            stderr = await proc.stderr.read()
            await proc.wait()
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        elapsed = time.monotonic() - start
        if proc.returncode != 0:
            log.error("Transcode failed (%d): %s", proc.returncode, stderr.decode()[-200:])
            raise TranscodeError(f"ffmpeg exited with {proc.returncode}: {stderr.decode()[-200:]}")
        log.info("Transcoded in %.1fs (%.1fMB)", elapsed, total / (1024 * 1024))
