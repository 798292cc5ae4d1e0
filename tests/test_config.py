from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from lyrics_resolver.cache.sqlite import CacheKey, LyricsCache
from lyrics_resolver.config import load_config
from lyrics_resolver.logging_setup import QUIET_LOGGERS, setup_logging
from lyrics_resolver.lrc.model import LyricPart, LyricResult, TimedLyricLine
from lyrics_resolver.settings import LOCAL_AREA, ChangeNotifier, JsonSettingsStore, watch_key
from lyrics_resolver.sources.lrclib import LRCLIB_API_URL


class TestLoadConfig:
    def test_xdg_dirs(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
        monkeypatch.delenv("LYRICS_RESOLVER_SETTINGS", raising=False)

        cfg = load_config()
        assert cfg.cache_db_path == tmp_path / "cache" / "lyrics-resolver" / "cache.sqlite3"
        assert cfg.settings_path == tmp_path / "config" / "lyrics-resolver" / "settings.json"

    def test_defaults(self, monkeypatch):
        for name in ("TIMEOUT", "LOOKAHEAD", "CACHE", "LRCLIB_URL", "SETTINGS_AREA"):
            monkeypatch.delenv(f"LYRICS_RESOLVER_{name}", raising=False)
        cfg = load_config()
        assert cfg.request_timeout_s == 10.0
        assert cfg.lookahead == 0
        assert cfg.cache_enabled is True
        assert cfg.lrclib_api_url == LRCLIB_API_URL
        assert cfg.settings_area == "sync"

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LYRICS_RESOLVER_TIMEOUT", "2.5")
        monkeypatch.setenv("LYRICS_RESOLVER_LOOKAHEAD", "-3")
        monkeypatch.setenv("LYRICS_RESOLVER_CACHE", "0")
        monkeypatch.setenv("LYRICS_RESOLVER_SETTINGS", str(tmp_path / "s.json"))
        monkeypatch.setenv("LYRICS_RESOLVER_LRCLIB_URL", "http://localhost:3000/api/get")

        cfg = load_config()
        assert cfg.request_timeout_s == 2.5
        assert cfg.lookahead == 0
        assert cfg.cache_enabled is False
        assert cfg.settings_path == Path(tmp_path / "s.json")
        assert cfg.lrclib_api_url == "http://localhost:3000/api/get"


class TestSettingsStore:
    def test_get_set_remove(self, tmp_path):
        store = JsonSettingsStore(tmp_path / "nested" / "settings.json")

        async def _run():
            assert await store.get("k", "dflt") == "dflt"
            await store.set("k", [1, 2])
            value = await store.get("k")
            await store.remove("k")
            return value, await store.get("k")

        assert asyncio.run(_run()) == ([1, 2], None)

    def test_writes_notify_watchers_of_their_area(self, tmp_path):
        notifier = ChangeNotifier()
        store = JsonSettingsStore(tmp_path / "settings.json", area=LOCAL_AREA, notifier=notifier)
        seen_local, seen_sync = [], []
        watch_key(notifier, area=LOCAL_AREA, key="k", callback=seen_local.append)
        watch_key(notifier, area="sync", key="k", callback=seen_sync.append)

        async def _run():
            await store.set("k", "a")
            await store.set("other", "b")
            await store.remove("k")
            await store.remove("missing")

        asyncio.run(_run())
        assert seen_local == ["a", None]
        assert seen_sync == []

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert asyncio.run(JsonSettingsStore(path).get("k")) is None


class TestLyricsCache:
    def _result(self) -> LyricResult:
        line = TimedLyricLine(1000, 500, "Hi you", parts=(LyricPart(1000, 200, "Hi "), LyricPart(1200, 300, "you")))
        return LyricResult(lyrics=(line,), source="LRCLib", song="T", artist="A", language="en")

    def test_round_trip(self, tmp_path):
        cache = LyricsCache(tmp_path / "db" / "cache.sqlite3")
        key = CacheKey(artist="A", title="T", album="")
        assert cache.get(key) is None

        cache.set(key, self._result())
        assert cache.get(key) == self._result()
        assert cache.get(CacheKey(artist="A", title="T", album="Other")) is None

    def test_filter_by_source_id(self, tmp_path):
        cache = LyricsCache(tmp_path / "cache.sqlite3")
        key = CacheKey(artist="A", title="T", album="")
        cache.set(key, self._result(), source_id="lrclib-synced")
        assert cache.get(key, sources={"lrclib-synced", "yt-lyrics"}) == self._result()
        assert cache.get(key, sources={"bLyrics-synced"}) is None
        assert cache.get(key, sources=set()) is None

    def test_delete_and_clear(self, tmp_path):
        cache = LyricsCache(tmp_path / "cache.sqlite3")
        a = CacheKey(artist="A", title="T", album="")
        b = CacheKey(artist="B", title="T", album="", video_id="vid")
        cache.set(a, self._result())
        cache.set(b, self._result())

        cache.delete(a)
        assert cache.get(a) is None
        assert cache.get(b) is not None

        cache.clear()
        assert cache.get(b) is None


class TestLogging:
    def test_default_levels(self, monkeypatch):
        monkeypatch.delenv("LYRICS_RESOLVER_LOG_LEVEL", raising=False)
        assert setup_logging(False) == logging.WARNING
        assert setup_logging(True) == logging.DEBUG
        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.INFO

    def test_env_level(self, monkeypatch):
        monkeypatch.setenv("LYRICS_RESOLVER_LOG_LEVEL", "error")
        assert setup_logging(True) == logging.ERROR
        assert logging.getLogger("urllib3").level == logging.ERROR

    def test_unknown_env_level_ignored(self, monkeypatch):
        monkeypatch.setenv("LYRICS_RESOLVER_LOG_LEVEL", "basicConfig")
        assert setup_logging(False) == logging.WARNING
