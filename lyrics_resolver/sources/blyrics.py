from __future__ import annotations

import logging
from typing import Any

from lyrics_resolver.lrc.model import LyricPart, LyricResult, TimedLyricLine
from lyrics_resolver.lrc.parse import parse_lrc

from .base import LyricsSource
from .types import ProviderParameters, SourceId

logger = logging.getLogger(__name__)

LYRICS_API_URL = "https://lyrics-api.boidu.dev/getLyrics"


def _require_dict(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} is not an object: {value!r}")
    return value


def _line_from_dict(item: Any) -> TimedLyricLine:
    item = _require_dict(item, "lyric line")
    raw_parts = item.get("parts") or ()
    if not isinstance(raw_parts, list):
        raise ValueError("'parts' is not a list")
    parts = tuple(
        LyricPart(
            start_time_ms=int(p["startTimeMs"]),
            duration_ms=int(p.get("durationMs") or 0),
            words=str(p.get("words", "")),
        )
        for p in (_require_dict(raw, "word part") for raw in raw_parts)
    )
    return TimedLyricLine(
        start_time_ms=max(int(item["startTimeMs"]), 0),
        duration_ms=max(int(item.get("durationMs") or 0), 0),
        words=str(item.get("words", "")),
        parts=parts,
    )


def _lines_from_payload(data: Any, duration: float | None) -> tuple[TimedLyricLine, ...]:
    if not isinstance(data, dict):
        raise ValueError("unexpected response shape")
    if isinstance(data.get("lyrics"), list):
        return tuple(_line_from_dict(item) for item in data["lyrics"])
    if data.get("syncedLyrics"):
        return parse_lrc(str(data["syncedLyrics"]), duration)
    raise ValueError("response has neither 'lyrics' nor 'syncedLyrics'")


class BLyricsSource(LyricsSource):
    """boidu.dev lyrics API. The rich variant only accepts word-timed lyrics."""

    name = "boidu.dev"
    href = "https://better-lyrics.boidu.dev"

    def __init__(self, *, rich: bool, api_url: str = LYRICS_API_URL, **kwargs: Any):
        super().__init__(**kwargs)
        self.rich = rich
        self.api_url = api_url
        self.source_id = SourceId.BLYRICS_RICHSYNCED if rich else SourceId.BLYRICS_SYNCED

    async def _request(self, params: ProviderParameters) -> Any:
        query = {"s": params.song, "a": params.artist, "d": str(int(params.duration or 0))}
        if params.album:
            query["al"] = params.album
        return await self._get_json(self.api_url, params.signal, params=query)

    async def fetch(self, params: ProviderParameters) -> LyricResult | None:
        if not params.song or not params.artist:
            return None
        data = await self._shared(params, "bLyrics", lambda: self._request(params))
        lines = _lines_from_payload(data, params.duration)

        if self.rich:
            if not any(line.parts for line in lines):
                logger.debug("bLyrics: no word timing for %s - %s", params.artist, params.song)
                return None
        else:
            lines = tuple(
                TimedLyricLine(line.start_time_ms, line.duration_ms, line.words) for line in lines
            )

        return LyricResult(
            lyrics=lines,
            source=self.name,
            source_href=self.href,
            music_video_synced=bool(data.get("musicVideoSynced", False)),
            language=data.get("language"),
            cache_allowed=bool(data.get("cacheAllowed", True)),
            segment_map=data.get("segmentMap") if self.rich else None,
            song=params.song,
            artist=params.artist,
            album=params.album,
            duration=params.duration,
            video_id=params.video_id,
        )
