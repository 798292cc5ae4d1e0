from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Any, Iterable, Sequence

from .model import LyricPart, TimedLyricLine
from .normalize import normalize_caption_text

# Whole-text heuristic: a leading mm:ss stamp anywhere means timed lyrics
TIMED_LINE_RE = re.compile(r"^\s*[\[<]?\d{1,2}:\d{2}(?:[.:]\d+)?", re.MULTILINE)

_STAMP_RE = re.compile(r"\s*([\[<])?(\d{1,2}):(\d{2})(?:[.:](\d+))?([\]>])?")  # [mm:ss] / <mm:ss.xx> / mm:ss:xx
_WORD_STAMP_RE = re.compile(r"<(\d{1,2}):(\d{2})(?:[.:](\d+))?>")
_OFFSET_RE = re.compile(r"^\[offset:([+-]?\d+)\]\s*$", re.IGNORECASE)
_TAG_RE = re.compile(r"^\[([a-zA-Z]{1,8}):(.*)\]\s*$")


class LrcParseError(ValueError):
    pass


class EmptyLyricsError(LrcParseError):
    """Parsing produced no usable lines."""

    def __init__(self, message: str = "Parsed lyrics are empty"):
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class LrcParseStats:
    lines_total: int
    events_total: int
    lines_with_timestamps: int
    lines_ignored: int
    offset_ms: int = 0
    tags: dict[str, str] = field(default_factory=dict)


def looks_timed(text: str) -> bool:
    return TIMED_LINE_RE.search(text) is not None


def _parse_ts_to_ms(m: str, s: str, frac: str | None) -> int:
    seconds = int(s)
    if not (0 <= seconds <= 59):
        raise LrcParseError(f"Invalid seconds: {seconds}")
    if frac is None:
        ms = 0
    else:
        # "5" -> 500ms, "23" -> 230ms, "234" -> 234ms
        ms = int(frac.ljust(3, "0")[:3])
    return (int(m) * 60 + seconds) * 1000 + ms


def _require_lines(lines: Sequence[TimedLyricLine]) -> tuple[TimedLyricLine, ...]:
    if not any(line.words for line in lines):
        raise EmptyLyricsError()
    return tuple(lines)


def _leading_stamps(line: str) -> tuple[list[int], str]:
    """Consume the stamps at the start of a line, return (stamps_ms, rest)."""
    stamps: list[int] = []
    first_open: str | None = None
    pos = 0
    while True:
        m = _STAMP_RE.match(line, pos)
        if m is None:
            break
        opened, closed = m.group(1), m.group(5)
        if not stamps:
            first_open = opened
        # "[00:01][00:02]" repeats a line; "00:01 12:30" and "[00:01]<00:01>" do not
        elif not opened or opened != first_open:
            break
        if opened and closed and "[<".index(opened) != "]>".index(closed):
            break
        stamps.append(_parse_ts_to_ms(m.group(2), m.group(3), m.group(4)))
        pos = m.end()
    return stamps, line[pos:]


def _word_parts(body: str, line_start_ms: int, offset_ms: int) -> tuple[str, list[tuple[int, str]]]:
    """
    Enhanced LRC: "<00:01.00>Hello <00:01.50>world<00:02.00>".
    Returns plain words and (start_ms, text) pairs; a trailing empty pair marks the end.
    """
    stamps = list(_WORD_STAMP_RE.finditer(body))
    if not stamps:
        return body.strip(), []

    raw: list[tuple[int, str]] = []
    head = body[: stamps[0].start()]
    if head.strip():
        raw.append((line_start_ms, head))
    for i, m in enumerate(stamps):
        end = stamps[i + 1].start() if i + 1 < len(stamps) else len(body)
        t_ms = max(_parse_ts_to_ms(m.group(1), m.group(2), m.group(3)) + offset_ms, 0)
        raw.append((t_ms, body[m.end() : end]))

    words = " ".join("".join(text for _, text in raw).split())
    return words, raw


def _build_parts(raw: list[tuple[int, str]], line_end_ms: int) -> tuple[LyricPart, ...]:
    parts: list[LyricPart] = []
    for i, (start, text) in enumerate(raw):
        if not text.strip():
            continue
        if i + 1 < len(raw):
            end = raw[i + 1][0]
        else:
            end = line_end_ms
        parts.append(LyricPart(start_time_ms=start, duration_ms=max(end - start, 0), words=text))
    return tuple(parts)


def _parse_lrc(text: str, duration: float | None) -> tuple[tuple[TimedLyricLine, ...], LrcParseStats]:
    offset_ms = 0
    tags: dict[str, str] = {}
    entries: list[tuple[int, str, list[tuple[int, str]]]] = []

    total = 0
    lines_with_ts = 0
    ignored = 0

    for raw_line in text.splitlines():
        total += 1
        line = raw_line.rstrip()
        if not line.strip():
            ignored += 1
            continue

        off = _OFFSET_RE.match(line.strip())
        if off:
            offset_ms = int(off.group(1))
            continue

        tag = _TAG_RE.match(line.strip())
        if tag:
            k = tag.group(1).strip().lower()
            v = tag.group(2).strip()
            if k and v:
                tags[k] = v
            continue

        stamps, body = _leading_stamps(line)
        if not stamps:
            # untimed text inside a timed file is skipped, never merged
            ignored += 1
            continue

        lines_with_ts += 1
        for stamp in stamps:
            start = max(stamp + offset_ms, 0)
            words, raw_parts = _word_parts(body, start, offset_ms)
            entries.append((start, words, raw_parts))

    # stable: equal timestamps keep file order
    entries.sort(key=lambda e: e[0])

    total_ms = int(round(duration * 1000)) if duration else None
    out: list[TimedLyricLine] = []
    for i, (start, words, raw_parts) in enumerate(entries):
        if i + 1 < len(entries):
            line_duration = entries[i + 1][0] - start
        elif total_ms is not None:
            line_duration = max(total_ms - start, 0)
        else:
            line_duration = 0
        out.append(
            TimedLyricLine(
                start_time_ms=start,
                duration_ms=line_duration,
                words=words,
                parts=_build_parts(raw_parts, start + line_duration),
            )
        )

    stats = LrcParseStats(
        lines_total=total,
        events_total=len(out),
        lines_with_timestamps=lines_with_ts,
        lines_ignored=ignored,
        offset_ms=offset_ms,
        tags=tags,
    )
    return tuple(out), stats


def parse_lrc(text: str, duration: float | None = None) -> tuple[TimedLyricLine, ...]:
    """
    Supported:
    - [mm:ss], [mm:ss.xx], [mm:ss:xx], <mm:ss.xx>, bare mm:ss at line start
    - multiple leading timestamps per line
    - inline <mm:ss.xx> word stamps (word-by-word lyrics)
    - [offset:+/-ms] and basic tags: [ar:], [ti:], [al:], ...

    Each line lasts until the next one; the last line lasts until `duration`
    (seconds) when known, otherwise 0.
    """
    lines, _stats = _parse_lrc(text, duration)
    return _require_lines(lines)


def parse_lrc_with_stats(text: str, duration: float | None = None) -> tuple[tuple[TimedLyricLine, ...], LrcParseStats]:
    # diagnostics for the CLI, does not raise on empty input
    return _parse_lrc(text, duration)


def parse_plain_lyrics(text: str) -> tuple[TimedLyricLine, ...]:
    out: list[TimedLyricLine] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or _TAG_RE.match(line):
            continue
        out.append(TimedLyricLine(start_time_ms=0, duration_ms=0, words=line))
    return _require_lines(out)


def parse_lyrics_text(text: str, duration: float | None = None) -> tuple[TimedLyricLine, ...]:
    if looks_timed(text):
        return parse_lrc(text, duration)
    return parse_plain_lyrics(text)


def parse_caption_events(events: Iterable[dict[str, Any]]) -> tuple[TimedLyricLine, ...]:
    """
    Youtube timedtext JSON3 events: {"tStartMs", "dDurationMs", "segs": [{"utf8"}]}.
    Events without "segs" only set up caption windows and are skipped; events whose
    text normalizes to "" are kept as empty lines.
    """
    out: list[TimedLyricLine] = []
    for event in events:
        if not isinstance(event, dict):
            raise LrcParseError(f"caption event is not an object: {event!r}")
        segs = event.get("segs")
        if not segs:
            continue
        if not isinstance(segs, list) or not all(isinstance(seg, dict) for seg in segs):
            raise LrcParseError("caption event has malformed 'segs'")
        words = normalize_caption_text(str(seg.get("utf8", "")) for seg in segs)
        out.append(
            TimedLyricLine(
                start_time_ms=max(int(event.get("tStartMs", 0)), 0),
                duration_ms=max(int(event.get("dDurationMs", 0)), 0),
                words=words,
            )
        )
    return _require_lines(out)
