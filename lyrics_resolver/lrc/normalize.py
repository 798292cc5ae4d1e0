"""Cleanup rules for noisy caption text."""

from __future__ import annotations

from typing import Iterable

import regex

_NOTES_RE = regex.compile(r"\s*[♪♫♬♩]+\s*")
_NEWLINES_RE = regex.compile(r"[ \t]*(?:\r\n|\r|\n)+[ \t]*")
_LOWER_RE = regex.compile(r"\p{Ll}")
_UPPER_RE = regex.compile(r"\p{Lu}")
_FIRST_LETTER_RE = regex.compile(r"\p{L}")


def strip_note_markers(text: str) -> str:
    return _NOTES_RE.sub(" ", text).strip()


def join_segments(segments: Iterable[str]) -> str:
    return "".join(segments)


def collapse_newlines(text: str) -> str:
    return _NEWLINES_RE.sub(" ", text)


def fix_shouting(line: str) -> str:
    """
    "ALL CAPS LINE" -> "All caps line". Lines with any lowercase letter,
    or without letters at all, are returned unchanged.
    """
    if _LOWER_RE.search(line) or not _UPPER_RE.search(line):
        return line
    lowered = line.lower()
    m = _FIRST_LETTER_RE.search(lowered)
    if m is None:
        return lowered
    i = m.start()
    return lowered[:i] + lowered[i].upper() + lowered[i + 1 :]


def normalize_caption_text(segments: Iterable[str]) -> str:
    text = collapse_newlines(join_segments(segments))
    return fix_shouting(strip_note_markers(text).strip())
