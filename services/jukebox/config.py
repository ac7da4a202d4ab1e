"""
Shared configuration loader for the jukebox playback core.

Loads a single JSON config file.  Search order:
  1. /etc/jukebox/config.json    (system install)
  2. config.json                 (CWD — handy for local dev)
  3. ../../config/default.json   (repo fallback)

Usage:
    from jukebox.config import cfg

    cache_dir = cfg("cache", "dir", default="/var/cache/jukebox")
    attempts  = cfg("cache", "wait_attempts", default=50)
    transcode = cfg("transcode")  # returns the whole dict
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

_config: dict | None = None

_SEARCH_PATHS = [
    "/etc/jukebox/config.json",
    "config.json",
    os.path.join(os.path.dirname(__file__), "..", "..", "config", "default.json"),
]

KNOWN_TARGETS = ("opus",)


def _validate(config: dict, path: str):
    """Log warnings for missing or suspicious settings.  Never raises."""
    cache = config.get("cache") or {}
    if not cache.get("dir"):
        logger.error("Config %s: missing cache.dir — using the default cache location", path)
    for key in ("wait_attempts", "wait_interval_ms"):
        val = cache.get(key)
        if val is not None and (not isinstance(val, (int, float)) or val <= 0):
            logger.warning("Config %s: cache.%s must be positive, got %r", path, key, val)
    playback = config.get("playback") or {}
    target = playback.get("target", "opus")
    if target not in KNOWN_TARGETS:
        logger.warning("Config %s: unknown playback.target '%s'", path, target)


def load_config() -> dict:
    """Load config from the first JSON file found. Cached after first call."""
    global _config
    if _config is not None:
        return _config

    for path in _SEARCH_PATHS:
        try:
            with open(path) as f:
                _config = json.load(f)
                logger.info("Config loaded from %s", path)
                _validate(_config, path)
                return _config
        except FileNotFoundError:
            continue
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in %s: %s", path, e)
            continue

    logger.warning("No config.json found — using empty config")
    _config = {}
    return _config


def cfg(section: str, key: str | None = None, *, default=None):
    """Read a config value.

    cfg("cache")                       → config["cache"]
    cfg("cache", "dir")                → config["cache"]["dir"]
    cfg("cache", "wait_attempts", default=50)  → config["cache"]["wait_attempts"] or 50
    """
    config = load_config()
    val = config.get(section)
    if key is None:
        return val if val is not None else default
    if isinstance(val, dict):
        return val.get(key, default)
    return default


def reload_config():
    """Force re-read from disk (for testing or hot-reload)."""
    global _config
    _config = None
    return load_config()
