from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from lyrics_resolver.lrc.model import LyricResult

from .cancel import CancelToken


class SourceId(str, Enum):
    BLYRICS_RICHSYNCED = "bLyrics-richsynced"
    BLYRICS_SYNCED = "bLyrics-synced"
    MUSIXMATCH_RICHSYNC = "musixmatch-richsync"
    MUSIXMATCH_SYNCED = "musixmatch-synced"
    LRCLIB_SYNCED = "lrclib-synced"
    LRCLIB_PLAIN = "lrclib-plain"
    YT_CAPTIONS = "yt-captions"
    YT_LYRICS = "yt-lyrics"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class TrackKey:
    artist: str
    title: str
    album: str = ""
    duration: float | None = None  # seconds
    video_id: str = ""

    @property
    def display(self) -> str:
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        return self.title or self.artist or self.video_id or "Unknown track"


@dataclass(frozen=True, slots=True)
class CaptionTrack:
    language_code: str
    display_name: str
    url: str
    kind: str = ""  # "asr" for speech recognition tracks

    @property
    def is_auto_generated(self) -> bool:
        # display names are localized, so this is only a heuristic
        return self.kind == "asr" or "auto-generated" in self.display_name.lower()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CaptionTrack":
        name = data.get("displayName")
        if name is None:
            name = (data.get("name") or {}).get("simpleText", "")
        return cls(
            language_code=str(data.get("languageCode", "")),
            display_name=str(name),
            url=str(data.get("url") or data.get("baseUrl") or ""),
            kind=str(data.get("kind", "")),
        )


@dataclass(frozen=True, slots=True)
class AudioTrackData:
    caption_tracks: tuple[CaptionTrack, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "AudioTrackData":
        tracks = (data or {}).get("captionTracks") or ()
        return cls(caption_tracks=tuple(CaptionTrack.from_dict(t) for t in tracks))


SourceFiller = Callable[["ProviderParameters"], Awaitable[None]]


@dataclass(slots=True)
class SourceSlot:
    lyric_source_filler: SourceFiller
    filled: bool = False
    lyric_source_result: LyricResult | None = None
    # in-flight fill, shared by concurrent resolve() calls
    pending: asyncio.Future[None] | None = field(default=None, repr=False)


SourceMap = dict[SourceId, SourceSlot]


@dataclass(frozen=True, slots=True)
class ProviderParameters:
    song: str
    artist: str
    album: str
    duration: float | None
    video_id: str
    audio_track_data: AudioTrackData
    source_map: SourceMap
    signal: CancelToken
    always_fetch_metadata: bool = False
    # per-session memo of provider responses, keyed by provider name
    shared: dict[str, asyncio.Future[Any]] = field(default_factory=dict, repr=False)
