import pytest

from lyrics_resolver.lrc.normalize import (
    collapse_newlines,
    fix_shouting,
    join_segments,
    normalize_caption_text,
    strip_note_markers,
)


def test_strip_note_markers():
    assert strip_note_markers("♪ Test lyrics ♪") == "Test lyrics"
    assert strip_note_markers("one ♫ two") == "one two"
    assert strip_note_markers("♪♪") == ""


def test_strip_note_markers_idempotent():
    once = strip_note_markers("♪ la ♪ la ♪")
    assert strip_note_markers(once) == once


def test_join_segments_keeps_spacing():
    assert join_segments(["First ", "part ", "combined"]) == "First part combined"


def test_collapse_newlines():
    assert collapse_newlines("First\nSecond") == "First Second"
    assert collapse_newlines("a \r\n\n b") == "a b"


@pytest.mark.parametrize(
    "line, expected",
    [
        ("ALL CAPS LINE", "All caps line"),
        ("ANOTHER ALL CAPS", "Another all caps"),
        ("(OH, YEAH!)", "(Oh, yeah!)"),
        ("ÉCOUTE-MOI", "Écoute-moi"),
        ("Mixed Case Line", "Mixed Case Line"),
        ("123 ...", "123 ..."),
        ("", ""),
    ],
)
def test_fix_shouting(line, expected):
    assert fix_shouting(line) == expected


def test_fix_shouting_ignores_caseless_scripts():
    assert fix_shouting("君の名は") == "君の名は"


def test_normalize_caption_text_applies_case_fix_after_join():
    assert normalize_caption_text(["♪ LOUD ", "\nWORDS ♪"]) == "Loud words"
