import pytest

from lyrics_resolver.lrc.parse import (
    EmptyLyricsError,
    LrcParseError,
    looks_timed,
    parse_caption_events,
    parse_lrc,
    parse_lrc_with_stats,
    parse_lyrics_text,
    parse_plain_lyrics,
)


def test_parse_multiple_timestamps():
    lines = parse_lrc("[00:01.00][00:02.5]hey\n")
    assert [line.start_time_ms for line in lines] == [1000, 2500]
    assert [line.words for line in lines] == ["hey", "hey"]


def test_parse_offset_clamped():
    lines, stats = parse_lrc_with_stats("[offset:-1500]\n[00:01.00]x\n")
    assert stats.offset_ms == -1500
    assert lines[0].start_time_ms == 0


def test_parse_durations_from_next_line_and_track_length():
    lines = parse_lrc("[00:01.00]Hello\n[00:03.00]World", duration=5)
    assert [(line.start_time_ms, line.duration_ms) for line in lines] == [(1000, 2000), (3000, 2000)]


def test_last_line_duration_zero_without_track_length():
    lines = parse_lrc("[00:01.00]Hello\n[00:03.00]World")
    assert lines[-1].duration_ms == 0


def test_last_line_duration_floored_at_zero():
    lines = parse_lrc("[00:10.00]late", duration=5)
    assert lines[0].duration_ms == 0


def test_lines_sorted_and_duplicates_kept():
    lines = parse_lrc("[00:05.00]b\n[00:01.00]a\n[00:05.00]c\n")
    assert [line.words for line in lines] == ["a", "b", "c"]
    assert [line.start_time_ms for line in lines] == [1000, 5000, 5000]
    assert lines[1].duration_ms == 0


@pytest.mark.parametrize(
    "text, expected_ms",
    [
        ("[01:02.5]x", 62_500),
        ("[01:02.25]x", 62_250),
        ("[01:02.250]x", 62_250),
        ("[01:02:50]x", 62_500),
        ("<00:03.00>x", 3_000),
        ("00:04 x", 4_000),
    ],
)
def test_timestamp_dialects(text, expected_ms):
    assert parse_lrc(text)[0].start_time_ms == expected_ms


def test_tags_and_untimed_lines_are_skipped():
    text = "[ar:Artist]\n[ti:Title]\nno stamp here\n[00:01.00]sung\n"
    lines, stats = parse_lrc_with_stats(text)
    assert [line.words for line in lines] == ["sung"]
    assert stats.tags == {"ar": "Artist", "ti": "Title"}
    assert stats.lines_ignored == 1


def test_invalid_seconds_raise():
    with pytest.raises(LrcParseError):
        parse_lrc("[00:75.00]x")


def test_word_timed_lines():
    lines = parse_lrc("[00:01.00]<00:01.00>Hello <00:01.50>world<00:02.00>\n[00:03.00]next", duration=4)
    first = lines[0]
    assert first.words == "Hello world"
    assert [(p.start_time_ms, p.duration_ms, p.words) for p in first.parts] == [
        (1000, 500, "Hello "),
        (1500, 500, "world"),
    ]
    assert lines[1].parts == ()


def test_word_timed_last_part_runs_to_line_end():
    lines = parse_lrc("[00:01.00]<00:01.00>a <00:01.20>b\n[00:02.00]c")
    assert lines[0].parts[-1].duration_ms == 800


def test_parse_lrc_empty_raises():
    with pytest.raises(EmptyLyricsError):
        parse_lrc("")
    with pytest.raises(EmptyLyricsError):
        parse_lrc("[ar:Someone]\n[00:01.00]\n")


def test_plain_lyrics():
    lines = parse_plain_lyrics("This is plain text\n\nno timestamps\n")
    assert [line.words for line in lines] == ["This is plain text", "no timestamps"]
    assert all(line.start_time_ms == 0 and line.duration_ms == 0 for line in lines)


def test_plain_lyrics_empty_raises():
    with pytest.raises(EmptyLyricsError):
        parse_plain_lyrics("  \n\n")


def test_looks_timed():
    assert looks_timed("intro\n[00:01.00]x")
    assert looks_timed("  <01:02>x")
    assert not looks_timed("This is plain text\nno timestamps")


def test_parse_lyrics_text_dispatch():
    assert parse_lyrics_text("[00:02.00]x")[0].start_time_ms == 2000
    assert parse_lyrics_text("x\ny")[1].words == "y"


def test_caption_events():
    events = [
        {"tStartMs": 0, "dDurationMs": 100},
        {"tStartMs": 1000, "dDurationMs": 2000, "segs": [{"utf8": "♪ Test lyrics ♪"}]},
        {"tStartMs": 3000, "dDurationMs": 2000, "segs": [{"utf8": "First "}, {"utf8": "part "}, {"utf8": "combined"}]},
        {"tStartMs": 5000, "dDurationMs": 1000, "segs": [{"utf8": "♪"}]},
    ]
    lines = parse_caption_events(events)
    assert [line.words for line in lines] == ["Test lyrics", "First part combined", ""]
    assert (lines[0].start_time_ms, lines[0].duration_ms) == (1000, 2000)


def test_caption_events_without_text_raise():
    with pytest.raises(EmptyLyricsError):
        parse_caption_events([{"tStartMs": 0, "segs": [{"utf8": "♪"}]}])
