from __future__ import annotations

import json

from .model import LyricResult


def export_json(result: LyricResult) -> str:
    return json.dumps(result.to_dict(), ensure_ascii=False, indent=2)


def export_text(result: LyricResult) -> str:
    out = [line.words for line in result.lyrics]
    return "\n".join(out) + ("\n" if out else "")


def _fmt_lrc_time(ms: int) -> str:
    m, rem = divmod(ms, 60_000)
    s, ms2 = divmod(rem, 1_000)
    # keep 2 decimals for compatibility
    return f"{m:02d}:{s:02d}.{ms2 // 10:02d}"


def export_lrc(result: LyricResult, include_tags: bool = True, word_stamps: bool = True) -> str:
    """Plain (untimed) results are written without timestamps."""
    out: list[str] = []
    if include_tags:
        tags = dict(result.tags)
        for k, v in (("ti", result.song), ("ar", result.artist), ("al", result.album)):
            if v:
                tags.setdefault(k, v)
        for k in sorted(tags.keys()):
            out.append(f"[{k}:{tags[k]}]")

    timed = any(line.start_time_ms or line.duration_ms for line in result.lyrics)
    for line in result.lyrics:
        if not timed:
            out.append(line.words)
        elif word_stamps and line.parts:
            body = "".join(f"<{_fmt_lrc_time(p.start_time_ms)}>{p.words}" for p in line.parts)
            last = line.parts[-1]
            body += f"<{_fmt_lrc_time(last.start_time_ms + last.duration_ms)}>"
            out.append(f"[{_fmt_lrc_time(line.start_time_ms)}]{body}")
        else:
            out.append(f"[{_fmt_lrc_time(line.start_time_ms)}]{line.words}")
    return "\n".join(out) + ("\n" if out else "")


def _fmt_srt_time(ms: int) -> str:
    # HH:MM:SS,mmm
    h, rem = divmod(ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms2:03d}"


def export_srt(result: LyricResult, last_line_duration_ms: int = 2000) -> str:
    """
    End time is start + duration; lines without a duration end at the next
    start, the last one at +last_line_duration_ms.
    """
    lines = result.lyrics
    if not lines:
        return ""
    out: list[str] = []
    for i, line in enumerate(lines, start=1):
        start = line.start_time_ms
        if line.duration_ms:
            end = start + line.duration_ms
        elif i < len(lines):
            end = max(lines[i].start_time_ms, start + 1)
        else:
            end = start + last_line_duration_ms
        out.append(str(i))
        out.append(f"{_fmt_srt_time(start)} --> {_fmt_srt_time(end)}")
        out.append(line.words or "")
        out.append("")
    return "\n".join(out)


EXPORTERS = {
    "json": export_json,
    "lrc": export_lrc,
    "srt": export_srt,
    "text": export_text,
}
