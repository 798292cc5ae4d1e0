from __future__ import annotations

import logging
from typing import Any

from ytmusicapi import YTMusic
from ytmusicapi.exceptions import YTMusicError

from lyrics_resolver.lrc.model import LyricResult, TimedLyricLine
from lyrics_resolver.lrc.parse import EmptyLyricsError, parse_plain_lyrics

from .base import LyricsSource, NotFound
from .types import ProviderParameters, SourceId

logger = logging.getLogger(__name__)


def _timed_lines(items: list[Any]) -> tuple[TimedLyricLine, ...]:
    out: list[TimedLyricLine] = []
    for item in items:
        try:
            start = int(item.start_time)
            end = int(item.end_time)
            text = str(item.text)
        except AttributeError as e:
            raise ValueError(f"malformed timed lyric line: {item!r}") from e
        out.append(TimedLyricLine(start_time_ms=max(start, 0), duration_ms=max(end - start, 0), words=text))
    if not any(line.words for line in out):
        raise EmptyLyricsError()
    return tuple(sorted(out, key=lambda line: line.start_time_ms))


class YoutubeMusicLyricsSource(LyricsSource):
    """Lyrics tab of Youtube Music, looked up by video id."""

    source_id = SourceId.YT_LYRICS
    name = "Youtube Music"
    absorbed_errors = LyricsSource.absorbed_errors + (YTMusicError,)

    def __init__(self, *, client: YTMusic | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self._client = client

    @property
    def client(self) -> YTMusic:
        if self._client is None:
            self._client = YTMusic()
        return self._client

    def _lookup(self, video_id: str) -> dict[str, Any]:
        watch = self.client.get_watch_playlist(videoId=video_id, limit=1)
        browse_id = (watch or {}).get("lyrics")
        if not browse_id:
            raise NotFound(f"no lyrics tab for {video_id}")
        data = self.client.get_lyrics(browse_id, timestamps=True)
        if not data or not data.get("lyrics"):
            raise NotFound(f"empty lyrics tab for {video_id}")
        return data

    async def fetch(self, params: ProviderParameters) -> LyricResult | None:
        if not params.video_id:
            return None
        data = await params.signal.call(self._lookup, params.video_id, timeout=self.timeout_s)

        if data.get("hasTimestamps") and isinstance(data["lyrics"], list):
            lines = _timed_lines(data["lyrics"])
        else:
            lines = parse_plain_lyrics(str(data["lyrics"]))

        source = self.name
        credit = str(data.get("source") or "").removeprefix("Source:").strip()
        if credit:
            source = f"{self.name} ({credit})"

        return LyricResult(
            lyrics=lines,
            source=source,
            source_href="",
            song=params.song,
            artist=params.artist,
            album=params.album,
            duration=params.duration,
            video_id=params.video_id,
        )
