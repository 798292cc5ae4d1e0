from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer

from lyrics_resolver.cache.sqlite import LyricsCache
from lyrics_resolver.config import AppConfig, load_config
from lyrics_resolver.logging_setup import setup_logging
from lyrics_resolver.lrc.export import EXPORTERS
from lyrics_resolver.lrc.model import LyricResult
from lyrics_resolver.lrc.parse import EmptyLyricsError, parse_lrc_with_stats, parse_lyrics_text
from lyrics_resolver.settings import JsonSettingsStore
from lyrics_resolver.sources.local import inject_local_lrc, read_local_file
from lyrics_resolver.sources.registry import ProviderPriority
from lyrics_resolver.sources.service import LyricsService
from lyrics_resolver.sources.types import AudioTrackData, SourceId, TrackKey


app = typer.Typer(no_args_is_help=True, add_completion=False)


def _settings_store(cfg: AppConfig) -> JsonSettingsStore:
    return JsonSettingsStore(cfg.settings_path, area=cfg.settings_area)


def _exporter(fmt: str):
    fn = EXPORTERS.get(fmt.lower())
    if fn is None:
        raise typer.BadParameter(f"format must be one of: {', '.join(sorted(EXPORTERS))}")
    return fn


def _emit(result: LyricResult, fmt: str, out: Path | None) -> None:
    data = _exporter(fmt)(result)
    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data, nl=False)


def _source_id(name: str) -> SourceId:
    try:
        return SourceId(name)
    except ValueError:
        raise typer.BadParameter(f"unknown provider '{name}', known: {', '.join(s.value for s in SourceId)}")


@app.command()
def lookup(
    song: str = typer.Option("", "--song", "-s", help="Song title"),
    artist: str = typer.Option("", "--artist", "-a", help="Artist name"),
    album: str = typer.Option("", "--album", help="Album name"),
    duration: float | None = typer.Option(None, "--duration", "-d", help="Track duration in seconds"),
    video_id: str = typer.Option("", "--video-id", help="Youtube video id"),
    captions: Path | None = typer.Option(None, "--captions", help="JSON file with {captionTracks: [...]}"),
    fmt: str = typer.Option("text", "--format", case_sensitive=False, help="text|lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Skip the lyrics cache"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Find the best lyrics for a track across all enabled providers.
    """
    setup_logging(debug)
    _exporter(fmt)
    if not (song and artist) and not video_id:
        typer.echo("Error: give --song and --artist, or --video-id", err=True)
        raise typer.Exit(code=1)

    cfg = load_config()
    audio_track_data = None
    if captions:
        audio_track_data = AudioTrackData.from_dict(json.loads(captions.read_text(encoding="utf-8")))
    track = TrackKey(artist=artist, title=song, album=album, duration=duration, video_id=video_id)

    async def _run() -> LyricResult | None:
        priority = ProviderPriority()
        await priority.load(_settings_store(cfg))
        service = LyricsService(cfg, priority=priority)
        return await service.get_lyrics(track, audio_track_data, use_cache=not no_cache)

    result = asyncio.run(_run())
    if result is None:
        typer.echo(f"No lyrics found for {track.display}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Source: {result.source}", err=True)
    _emit(result, fmt, out)


@app.command()
def inject(
    lrc_path: Path,
    duration: float = typer.Option(0, "--duration", "-d", help="Track duration in seconds"),
    fmt: str = typer.Option("lrc", "--format", case_sensitive=False, help="text|lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Load a local .lrc or plain text file as the lyrics of the current track."""
    _exporter(fmt)
    text = read_local_file(lrc_path)
    try:
        inject_local_lrc(text, lambda result: _emit(result, fmt, out), duration=duration)
    except EmptyLyricsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.command()
def parse(lrc_path: Path):
    """Parse LRC and print stats."""
    text = read_local_file(lrc_path)
    lines, stats = parse_lrc_with_stats(text)
    typer.echo(f"lines_total={stats.lines_total}")
    typer.echo(f"lines_with_timestamps={stats.lines_with_timestamps}")
    typer.echo(f"lines_ignored={stats.lines_ignored}")
    typer.echo(f"events_total={stats.events_total}")
    typer.echo(f"word_timed_lines={sum(1 for line in lines if line.parts)}")
    typer.echo(f"offset_ms={stats.offset_ms}")
    typer.echo(f"tags={stats.tags}")


@app.command()
def export(
    lrc_path: Path,
    fmt: str = typer.Option("srt", "--format", case_sensitive=False, help="lrc|srt|json|text"),
    duration: float | None = typer.Option(None, "--duration", "-d", help="Track duration in seconds"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Export LRC or plain text to SRT/JSON/LRC (normalized)."""
    _exporter(fmt)
    try:
        lines = parse_lyrics_text(read_local_file(lrc_path), duration)
    except EmptyLyricsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    _emit(LyricResult(lyrics=lines, source=lrc_path.name, cache_allowed=False), fmt, out)


@app.command()
def providers(
    enable: list[str] = typer.Option([], "--enable", help="Enable a provider"),
    disable: list[str] = typer.Option([], "--disable", help="Disable a provider (kept in the list)"),
    first: str | None = typer.Option(None, "--first", help="Move a provider to the top"),
    reset: bool = typer.Option(False, "--reset", help="Restore the default order"),
):
    """Show or change the provider priority order."""
    cfg = load_config()
    store = _settings_store(cfg)

    async def _run() -> ProviderPriority:
        priority = ProviderPriority()
        await priority.load(store)
        if reset:
            await priority.reset(store)
        for name in enable:
            await priority.set_enabled(store, _source_id(name), True)
        for name in disable:
            await priority.set_enabled(store, _source_id(name), False)
        if first:
            await priority.move(store, _source_id(first), 0)
        return priority

    priority = asyncio.run(_run())
    for i, sid in enumerate(priority.order, 1):
        typer.echo(f"{i}. {sid}")
    for sid in priority.disabled:
        typer.echo(f"-  {sid} (disabled)")


@app.command()
def cache(
    clear: bool = typer.Option(False, "--clear", help="Clear lyrics cache"),
):
    """Manage lyrics cache."""
    cfg = load_config()
    cache_db = LyricsCache(cfg.cache_db_path)

    if clear:
        cache_db.clear()
        typer.echo(f"Cache cleared: {cfg.cache_db_path}")
    else:
        typer.echo("Use --clear to clear the cache")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
