from __future__ import annotations

import logging
from pathlib import Path

from lyrics_resolver.lrc.model import LyricResult, LyricsConsumer
from lyrics_resolver.lrc.parse import EmptyLyricsError, looks_timed, parse_lrc, parse_plain_lyrics

logger = logging.getLogger(__name__)

LOCAL_SOURCE = "Local .lrc"


def read_local_file(path: Path) -> str:
    # utf-8-sig: lrc editors often write a BOM
    return path.read_text(encoding="utf-8-sig")


def inject_local_lrc(
    lrc_text: str,
    consumer: LyricsConsumer,
    *,
    duration: float = 0,
    song: str = "",
    artist: str = "",
    album: str = "",
    video_id: str = "",
) -> LyricResult:
    """
    Parse user supplied .lrc or plain text and hand it straight to `consumer`.

    Raises EmptyLyricsError when nothing could be parsed: the user picked this
    file, so an empty result is reported instead of silently ignored.
    """
    timed = looks_timed(lrc_text)
    lines = parse_lrc(lrc_text, duration) if timed else parse_plain_lyrics(lrc_text)
    if not lines:
        raise EmptyLyricsError()

    result = LyricResult(
        lyrics=lines,
        source=LOCAL_SOURCE,
        source_href="",
        music_video_synced=any(line.start_time_ms > 0 for line in lines),
        cache_allowed=False,
        song=song,
        artist=artist,
        album=album,
        duration=duration or None,
        video_id=video_id,
    )
    logger.info("Injecting %d local lines (%s)", len(lines), "timed" if timed else "plain")
    consumer(result)
    return result
