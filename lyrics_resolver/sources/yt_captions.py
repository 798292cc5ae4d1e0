from __future__ import annotations

import logging
from typing import Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from lyrics_resolver.lrc.model import LyricResult
from lyrics_resolver.lrc.parse import parse_caption_events

from .base import LyricsSource
from .types import CaptionTrack, ProviderParameters, SourceId

logger = logging.getLogger(__name__)


def pick_caption_track(tracks: Sequence[CaptionTrack]) -> CaptionTrack | None:
    """
    Auto-generated captions are never used. When one exists it tells the sung
    language, so a manual track in that language wins; otherwise the first
    manual track.
    """
    manual = [t for t in tracks if not t.is_auto_generated]
    if not manual:
        return None
    auto_langs = {t.language_code for t in tracks if t.is_auto_generated}
    for t in manual:
        if t.language_code in auto_langs:
            return t
    return manual[0]


def json3_url(url: str) -> str:
    """Caption url asking for the json3 format; any other `fmt` is dropped."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "fmt"]
    base = urlunsplit(parts._replace(query=urlencode(query)))
    return requests.Request("GET", base, params={"fmt": "json3"}).prepare().url


class YoutubeCaptionsSource(LyricsSource):
    source_id = SourceId.YT_CAPTIONS
    name = "Youtube Captions"

    async def fetch(self, params: ProviderParameters) -> LyricResult | None:
        tracks = params.audio_track_data.caption_tracks
        if not tracks:
            return None
        track = pick_caption_track(tracks)
        if track is None:
            logger.debug("yt-captions: only auto-generated tracks for %s", params.video_id or params.song)
            return None

        data = await self._get_json(json3_url(track.url), params.signal)
        if not isinstance(data, dict) or not isinstance(data.get("events"), list):
            raise ValueError("caption payload has no events")

        return LyricResult(
            lyrics=parse_caption_events(data["events"]),
            source=self.name,
            source_href="",
            music_video_synced=True,
            language=track.language_code,
            song=params.song,
            artist=params.artist,
            album=params.album,
            duration=params.duration,
            video_id=params.video_id,
        )
