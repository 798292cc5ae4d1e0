from __future__ import annotations

import json
import logging
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Collection

from lyrics_resolver.lrc.model import LyricResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheKey:
    artist: str
    title: str
    album: str
    video_id: str = ""


class LyricsCache:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.db_path)
        con.row_factory = sqlite3.Row
        return con

    def _init_db(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS lyrics_cache (
                    artist TEXT NOT NULL,
                    title  TEXT NOT NULL,
                    album  TEXT NOT NULL DEFAULT '',
                    video_id TEXT NOT NULL DEFAULT '',
                    source TEXT NOT NULL,
                    result_json TEXT NOT NULL,
                    updated_at INTEGER NOT NULL,
                    PRIMARY KEY (artist, title, album, video_id)
                );
                """
            )
            con.execute(
                "CREATE INDEX IF NOT EXISTS idx_lyrics_cache_updated_at ON lyrics_cache(updated_at);"
            )

    def get(self, key: CacheKey, *, sources: Collection[str] | None = None) -> LyricResult | None:
        """
        Cached result for `key`. With `sources`, a row written by any other
        source id counts as a miss.
        """
        with self._connect() as con:
            row = con.execute(
                "SELECT source, result_json FROM lyrics_cache WHERE artist=? AND title=? AND album=? AND video_id=?",
                (key.artist, key.title, key.album, key.video_id),
            ).fetchone()
        if row is None:
            return None
        if sources is not None and row["source"] not in sources:
            logger.debug("Ignoring cache entry from %s for %s - %s", row["source"], key.artist, key.title)
            return None
        try:
            return LyricResult.from_dict(json.loads(row["result_json"]))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Dropping unreadable cache entry for %s - %s: %s", key.artist, key.title, e)
            self.delete(key)
            return None

    def set(self, key: CacheKey, result: LyricResult, source_id: str = "") -> None:
        # source column holds the producing source id; falls back to the display name
        if not result.cache_allowed:
            return
        now = int(time.time())
        payload = json.dumps(result.to_dict(), ensure_ascii=False)
        with self._connect() as con:
            con.execute(
                """
                INSERT INTO lyrics_cache(artist, title, album, video_id, source, result_json, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(artist, title, album, video_id) DO UPDATE SET
                    source=excluded.source,
                    result_json=excluded.result_json,
                    updated_at=excluded.updated_at
                """,
                (key.artist, key.title, key.album, key.video_id, source_id or result.source, payload, now),
            )

    def delete(self, key: CacheKey) -> None:
        with self._connect() as con:
            con.execute(
                "DELETE FROM lyrics_cache WHERE artist=? AND title=? AND album=? AND video_id=?",
                (key.artist, key.title, key.album, key.video_id),
            )

    def clear(self) -> None:
        with self._connect() as con:
            con.execute("DELETE FROM lyrics_cache")
