from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from lyrics_resolver.settings import SYNC_AREA
from lyrics_resolver.sources.blyrics import LYRICS_API_URL
from lyrics_resolver.sources.lrclib import LRCLIB_API_URL
from lyrics_resolver.sources.musixmatch import CUBEY_API_URL


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "lyrics-resolver"
    return Path.home() / ".config" / "lyrics-resolver"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default) not in ("0", "false", "False", "no")


@dataclass(frozen=True)
class AppConfig:
    # Storage
    data_dir: Path
    cache_db_path: Path
    config_dir: Path
    settings_path: Path
    settings_area: str

    # Lookup
    request_timeout_s: float
    lookahead: int  # sources fetched ahead of the one being evaluated
    cache_enabled: bool

    # Providers
    lyrics_api_url: str
    cubey_api_url: str
    lrclib_api_url: str


def load_config() -> AppConfig:
    # XDG base dir fallback
    xdg = os.getenv("XDG_CACHE_HOME")
    data_dir = Path(xdg) if xdg else Path.home() / ".cache"
    data_dir = data_dir / "lyrics-resolver"

    config_dir = _config_dir()

    return AppConfig(
        data_dir=data_dir,
        cache_db_path=data_dir / "cache.sqlite3",
        config_dir=config_dir,
        settings_path=Path(os.getenv("LYRICS_RESOLVER_SETTINGS") or config_dir / "settings.json"),
        settings_area=os.getenv("LYRICS_RESOLVER_SETTINGS_AREA", SYNC_AREA),
        request_timeout_s=float(os.getenv("LYRICS_RESOLVER_TIMEOUT", "10.0")),
        lookahead=max(int(os.getenv("LYRICS_RESOLVER_LOOKAHEAD", "0")), 0),
        cache_enabled=_env_flag("LYRICS_RESOLVER_CACHE", "1"),
        lyrics_api_url=os.getenv("LYRICS_RESOLVER_BLYRICS_URL", LYRICS_API_URL),
        cubey_api_url=os.getenv("LYRICS_RESOLVER_CUBEY_URL", CUBEY_API_URL),
        lrclib_api_url=os.getenv("LYRICS_RESOLVER_LRCLIB_URL", LRCLIB_API_URL),
    )
