from __future__ import annotations

import logging
from typing import Any

from lyrics_resolver.lrc.model import LyricResult
from lyrics_resolver.lrc.parse import parse_lrc, parse_plain_lyrics

from .base import LyricsSource
from .types import ProviderParameters, SourceId

logger = logging.getLogger(__name__)

LRCLIB_API_URL = "https://lrclib.net/api/get"


class LrcLibSource(LyricsSource):
    name = "LRCLib"
    href = "https://lrclib.net"

    def __init__(self, *, synced: bool, api_url: str = LRCLIB_API_URL, **kwargs: Any):
        super().__init__(**kwargs)
        self.synced = synced
        self.api_url = api_url
        self.source_id = SourceId.LRCLIB_SYNCED if synced else SourceId.LRCLIB_PLAIN

    async def _request(self, params: ProviderParameters) -> Any:
        query = {
            "artist_name": params.artist,
            "track_name": params.song,
        }
        if params.album:
            query["album_name"] = params.album
        if params.duration:
            query["duration"] = str(int(params.duration))
        return await self._get_json(self.api_url, params.signal, params=query)

    async def fetch(self, params: ProviderParameters) -> LyricResult | None:
        if not params.song or not params.artist:
            return None
        data = await self._shared(params, "lrclib", lambda: self._request(params))
        if not isinstance(data, dict):
            raise ValueError("unexpected response shape")
        if data.get("instrumental"):
            logger.debug("lrclib: %s - %s is instrumental", params.artist, params.song)
            return None

        if self.synced:
            text = data.get("syncedLyrics")
            if not text:
                return None
            lines = parse_lrc(str(text), params.duration)
        else:
            text = data.get("plainLyrics")
            if not text:
                return None
            lines = parse_plain_lyrics(str(text))

        return LyricResult(
            lyrics=lines,
            source=self.name,
            source_href=self.href,
            song=str(data.get("trackName") or params.song),
            artist=str(data.get("artistName") or params.artist),
            album=str(data.get("albumName") or params.album),
            duration=params.duration,
            video_id=params.video_id,
        )
