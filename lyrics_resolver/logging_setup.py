from __future__ import annotations

import logging
import os

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# HTTP stacks under the providers; at DEBUG they log every connection
QUIET_LOGGERS = ("urllib3", "requests", "ytmusicapi")


def _env_level(default: int) -> int:
    name = os.getenv("LYRICS_RESOLVER_LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(debug: bool) -> int:
    """
    Lookup chatter is hidden unless --debug (or LYRICS_RESOLVER_LOG_LEVEL) asks
    for it; LYRICS_RESOLVER_LOG_FORMAT replaces the record format.
    Returns the level in effect.
    """
    level = _env_level(logging.DEBUG if debug else logging.WARNING)
    logging.basicConfig(
        level=level,
        format=os.getenv("LYRICS_RESOLVER_LOG_FORMAT") or DEFAULT_FORMAT,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    return level
