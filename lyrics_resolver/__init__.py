from lyrics_resolver.lrc.model import LyricPart, LyricResult, TimedLyricLine
from lyrics_resolver.lrc.parse import EmptyLyricsError, LrcParseError
from lyrics_resolver.sources.local import inject_local_lrc
from lyrics_resolver.sources.registry import ProviderPriority, new_source_map
from lyrics_resolver.sources.service import LyricsService, get_best_lyrics, resolve
from lyrics_resolver.sources.types import ProviderParameters, SourceId, TrackKey

__all__ = [
    "EmptyLyricsError",
    "LrcParseError",
    "LyricPart",
    "LyricResult",
    "LyricsService",
    "ProviderParameters",
    "ProviderPriority",
    "SourceId",
    "TimedLyricLine",
    "TrackKey",
    "get_best_lyrics",
    "inject_local_lrc",
    "new_source_map",
    "resolve",
]
