from __future__ import annotations

import asyncio
from types import SimpleNamespace

from ytmusicapi.exceptions import YTMusicError

from lyrics_resolver.sources.types import SourceId
from lyrics_resolver.sources.yt_lyrics import YoutubeMusicLyricsSource
from tests.mocks.http_mock import make_params


class FakeClient:
    def __init__(self, lyrics=None, browse_id="MPLYt_x", error=None):
        self.lyrics = lyrics
        self.browse_id = browse_id
        self.error = error
        self.calls = []

    def get_watch_playlist(self, videoId, limit):
        self.calls.append(("watch", videoId))
        if self.error:
            raise self.error
        return {"tracks": [], "lyrics": self.browse_id}

    def get_lyrics(self, browseId, timestamps=False):
        self.calls.append(("lyrics", browseId))
        return self.lyrics


def _line(start, end, text):
    return SimpleNamespace(start_time=start, end_time=end, text=text, id=1)


def _fill(client, **overrides):
    params = make_params(**overrides)
    asyncio.run(YoutubeMusicLyricsSource(client=client).fill(params))
    return params.source_map[SourceId.YT_LYRICS]


def test_timed_lyrics():
    client = FakeClient({
        "lyrics": [_line(3000, 4000, "second"), _line(1000, 3000, "first")],
        "source": "Source: LyricFind",
        "hasTimestamps": True,
    })
    result = _fill(client).lyric_source_result
    assert [line.words for line in result.lyrics] == ["first", "second"]
    assert (result.lyrics[0].start_time_ms, result.lyrics[0].duration_ms) == (1000, 2000)
    assert result.source == "Youtube Music (LyricFind)"
    assert client.calls == [("watch", "test-id"), ("lyrics", "MPLYt_x")]


def test_plain_lyrics():
    client = FakeClient({"lyrics": "one\n\ntwo", "source": None, "hasTimestamps": False})
    result = _fill(client).lyric_source_result
    assert [line.words for line in result.lyrics] == ["one", "two"]
    assert result.source == "Youtube Music"


def test_no_video_id_skips_lookup():
    client = FakeClient()
    slot = _fill(client, video_id="")
    assert slot.filled is True
    assert slot.lyric_source_result is None
    assert client.calls == []


def test_no_lyrics_tab():
    slot = _fill(FakeClient(browse_id=None))
    assert slot.filled is True
    assert slot.lyric_source_result is None


def test_empty_lyrics_tab():
    client = FakeClient({"lyrics": None, "hasTimestamps": False})
    assert _fill(client).lyric_source_result is None


def test_client_error_gives_none():
    slot = _fill(FakeClient(error=YTMusicError("server said no")))
    assert slot.filled is True
    assert slot.lyric_source_result is None


def test_malformed_timed_line_gives_none():
    client = FakeClient({"lyrics": [None, "x"], "hasTimestamps": True})
    slot = _fill(client)
    assert slot.filled is True
    assert slot.lyric_source_result is None
