"""Format constants shared by the acquisition components."""

# What the transport plays without re-encoding.
TARGET_CODEC = 'opus'
TARGET_CONTAINER = 'webm'
TARGET_SAMPLE_RATE = 48000

# Acceptable quality tiers (format ids) for live streams, in no particular order.
LIVE_FORMAT_IDS = {128, 127, 120, 96, 95, 94, 93}

# ffmpeg arguments per stage
RECONNECT_ARGS = ['-reconnect', '1', '-reconnect_streamed', '1']
TRANSCODE_CODECS = {
    'opus': ['-vn', '-c:a', 'libopus', '-f', 'webm'],
}

CHUNK_SIZE = 64 * 1024
PART_SUFFIX = '.part'
