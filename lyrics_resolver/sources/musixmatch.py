from __future__ import annotations

from typing import Any

from lyrics_resolver.lrc.model import LyricResult
from lyrics_resolver.lrc.parse import parse_lrc

from .base import LyricsSource
from .types import ProviderParameters, SourceId

# Musixmatch proxy; answers with LRC text per lyric flavour
CUBEY_API_URL = "https://lyrics.api.dacubeking.com/lyrics"


class MusixmatchSource(LyricsSource):
    name = "Musixmatch"
    href = "https://www.musixmatch.com"

    def __init__(self, *, rich: bool, api_url: str = CUBEY_API_URL, **kwargs: Any):
        super().__init__(**kwargs)
        self.rich = rich
        self.api_url = api_url
        if rich:
            self.source_id = SourceId.MUSIXMATCH_RICHSYNC
            self.field = "musixmatchWordByWordLyrics"
        else:
            self.source_id = SourceId.MUSIXMATCH_SYNCED
            self.field = "musixmatchSyncedLyrics"

    async def _request(self, params: ProviderParameters) -> Any:
        query = {
            "song": params.song,
            "artist": params.artist,
            "duration": str(int(params.duration or 0)),
            "videoId": params.video_id,
            "alwaysFetchMetadata": "true" if params.always_fetch_metadata else "false",
        }
        if params.album:
            query["album"] = params.album
        return await self._get_json(self.api_url, params.signal, params=query)

    async def fetch(self, params: ProviderParameters) -> LyricResult | None:
        if not params.song or not params.artist:
            return None
        data = await self._shared(params, "musixmatch", lambda: self._request(params))
        if not isinstance(data, dict):
            raise ValueError("unexpected response shape")
        lrc = data.get(self.field)
        if not lrc:
            return None

        lines = parse_lrc(str(lrc), params.duration)
        if self.rich and not any(line.parts for line in lines):
            return None

        return LyricResult(
            lyrics=lines,
            source=self.name,
            source_href=self.href,
            song=params.song,
            artist=params.artist,
            album=params.album,
            duration=params.duration,
            video_id=params.video_id,
        )
