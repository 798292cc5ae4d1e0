from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass(frozen=True, slots=True)
class LyricPart:
    start_time_ms: int
    duration_ms: int
    words: str


@dataclass(frozen=True, slots=True)
class TimedLyricLine:
    start_time_ms: int
    duration_ms: int
    words: str
    parts: tuple[LyricPart, ...] = ()


@dataclass(frozen=True, slots=True)
class LyricResult:
    lyrics: tuple[TimedLyricLine, ...]
    source: str
    source_href: str = ""
    music_video_synced: bool = False
    language: str | None = None
    cache_allowed: bool = True
    segment_map: dict[str, Any] | None = None

    # Track metadata, filled when the producer knows it
    song: str = ""
    artist: str = ""
    album: str = ""
    duration: float | None = None
    video_id: str = ""

    tags: dict[str, str] = field(default_factory=dict)

    @property
    def has_lyrics(self) -> bool:
        return bool(self.lyrics)

    @property
    def is_rich(self) -> bool:
        return any(line.parts for line in self.lyrics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lyrics": [
                {
                    "startTimeMs": line.start_time_ms,
                    "durationMs": line.duration_ms,
                    "words": line.words,
                    "parts": [
                        {"startTimeMs": p.start_time_ms, "durationMs": p.duration_ms, "words": p.words}
                        for p in line.parts
                    ],
                }
                for line in self.lyrics
            ],
            "source": self.source,
            "sourceHref": self.source_href,
            "musicVideoSynced": self.music_video_synced,
            "language": self.language,
            "cacheAllowed": self.cache_allowed,
            "segmentMap": self.segment_map,
            "song": self.song,
            "artist": self.artist,
            "album": self.album,
            "duration": self.duration,
            "videoId": self.video_id,
            "tags": dict(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LyricResult":
        lines = tuple(
            TimedLyricLine(
                start_time_ms=int(item.get("startTimeMs", 0)),
                duration_ms=int(item.get("durationMs", 0)),
                words=str(item.get("words", "")),
                parts=tuple(
                    LyricPart(int(p["startTimeMs"]), int(p["durationMs"]), str(p["words"]))
                    for p in item.get("parts") or ()
                ),
            )
            for item in data.get("lyrics") or ()
        )
        return cls(
            lyrics=lines,
            source=str(data.get("source", "")),
            source_href=str(data.get("sourceHref", "")),
            music_video_synced=bool(data.get("musicVideoSynced", False)),
            language=data.get("language"),
            cache_allowed=bool(data.get("cacheAllowed", True)),
            segment_map=data.get("segmentMap"),
            song=str(data.get("song", "")),
            artist=str(data.get("artist", "")),
            album=str(data.get("album", "")),
            duration=data.get("duration"),
            video_id=str(data.get("videoId", "")),
            tags=dict(data.get("tags") or {}),
        )


# Receives the final lyric object (renderer, exporter, ...)
LyricsConsumer = Callable[[LyricResult], None]
