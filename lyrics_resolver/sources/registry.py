from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable

from lyrics_resolver.settings import SYNC_AREA, ChangeNotifier, JsonSettingsStore, watch_key

from .base import LyricsSource
from .blyrics import BLyricsSource
from .lrclib import LrcLibSource
from .musixmatch import MusixmatchSource
from .types import SourceId, SourceMap, SourceSlot
from .yt_captions import YoutubeCaptionsSource
from .yt_lyrics import YoutubeMusicLyricsSource

if TYPE_CHECKING:
    from lyrics_resolver.config import AppConfig

logger = logging.getLogger(__name__)

PREFERRED_PROVIDER_LIST_KEY = "preferredProviderList"
DISABLED_PREFIX = "d_"

DEFAULT_PRIORITY: tuple[SourceId, ...] = (
    SourceId.BLYRICS_RICHSYNCED,
    SourceId.MUSIXMATCH_RICHSYNC,
    SourceId.YT_CAPTIONS,
    SourceId.BLYRICS_SYNCED,
    SourceId.LRCLIB_SYNCED,
    SourceId.MUSIXMATCH_SYNCED,
    SourceId.YT_LYRICS,
    SourceId.LRCLIB_PLAIN,
)


def build_sources(cfg: AppConfig | None = None) -> dict[SourceId, LyricsSource]:
    kw: dict[str, Any] = {}
    bl: dict[str, Any] = {}
    mx: dict[str, Any] = {}
    lr: dict[str, Any] = {}
    if cfg is not None:
        kw["timeout_s"] = cfg.request_timeout_s
        bl["api_url"] = cfg.lyrics_api_url
        mx["api_url"] = cfg.cubey_api_url
        lr["api_url"] = cfg.lrclib_api_url

    sources: list[LyricsSource] = [
        BLyricsSource(rich=True, **bl, **kw),
        BLyricsSource(rich=False, **bl, **kw),
        MusixmatchSource(rich=True, **mx, **kw),
        MusixmatchSource(rich=False, **mx, **kw),
        LrcLibSource(synced=True, **lr, **kw),
        LrcLibSource(synced=False, **lr, **kw),
        YoutubeCaptionsSource(**kw),
        YoutubeMusicLyricsSource(**kw),
    ]
    return {s.source_id: s for s in sources}


def new_source_map(cfg: AppConfig | None = None, sources: dict[SourceId, LyricsSource] | None = None) -> SourceMap:
    """Fresh, unfilled slots for one lookup session: one per known source."""
    sources = sources if sources is not None else build_sources(cfg)
    return {sid: SourceSlot(lyric_source_filler=sources[sid].fill) for sid in SourceId}


def _parse_token(token: Any) -> tuple[SourceId, bool] | None:
    """'lrclib-synced' -> (LRCLIB_SYNCED, True); 'd_lrclib-synced' -> (..., False)."""
    if not isinstance(token, str):
        return None
    enabled = True
    name = token.strip()
    if name.startswith(DISABLED_PREFIX):
        enabled = False
        name = name[len(DISABLED_PREFIX) :]
    try:
        return SourceId(name), enabled
    except ValueError:
        return None


def _token(source_id: SourceId, enabled: bool) -> str:
    return source_id.value if enabled else DISABLED_PREFIX + source_id.value


def validate_priority(raw: Any) -> tuple[str, ...]:
    """
    Drop unknown tokens and repeats, keep disabled markers. Falls back to the
    default order when no known source is left.
    """
    out: list[str] = []
    seen: set[SourceId] = set()
    if isinstance(raw, (list, tuple)):
        for token in raw:
            parsed = _parse_token(token)
            if parsed is None:
                logger.info("Unknown provider '%s' in priority list, skipping", token)
                continue
            sid, enabled = parsed
            if sid in seen:
                continue
            seen.add(sid)
            out.append(_token(sid, enabled))
    if not out:
        return tuple(sid.value for sid in DEFAULT_PRIORITY)
    return tuple(out)


class ProviderPriority:
    """
    Resolution order of the sources. `replace` is the only way to change it;
    the Selector reads `order`, which never contains disabled sources.
    """

    def __init__(self, raw: Iterable[str] | None = None):
        self._tokens = validate_priority(list(raw) if raw is not None else None)

    @property
    def tokens(self) -> tuple[str, ...]:
        return self._tokens

    @property
    def order(self) -> tuple[SourceId, ...]:
        out: list[SourceId] = []
        for token in self._tokens:
            parsed = _parse_token(token)
            if parsed is not None and parsed[1]:
                out.append(parsed[0])
        return tuple(out)

    @property
    def disabled(self) -> tuple[SourceId, ...]:
        out: list[SourceId] = []
        for token in self._tokens:
            parsed = _parse_token(token)
            if parsed is not None and not parsed[1]:
                out.append(parsed[0])
        return tuple(out)

    def replace(self, raw: Any) -> tuple[SourceId, ...]:
        self._tokens = validate_priority(raw)
        logger.debug("Provider priority: %s", ", ".join(self._tokens))
        return self.order

    async def load(self, store: JsonSettingsStore) -> tuple[SourceId, ...]:
        return self.replace(await store.get(PREFERRED_PROVIDER_LIST_KEY))

    def watch(self, notifier: ChangeNotifier, *, area: str = SYNC_AREA) -> Callable[[], None]:
        return watch_key(notifier, area=area, key=PREFERRED_PROVIDER_LIST_KEY, callback=self.replace)

    async def init(self, store: JsonSettingsStore) -> Callable[[], None]:
        await self.load(store)
        return self.watch(store.notifier, area=store.area)

    async def _save(self, store: JsonSettingsStore, tokens: list[str]) -> None:
        await store.set(PREFERRED_PROVIDER_LIST_KEY, tokens)
        self.replace(tokens)

    async def set_enabled(self, store: JsonSettingsStore, source_id: SourceId, enabled: bool) -> None:
        tokens = list(self._tokens)
        present = False
        for i, token in enumerate(tokens):
            parsed = _parse_token(token)
            if parsed is not None and parsed[0] == source_id:
                tokens[i] = _token(source_id, enabled)
                present = True
        if not present:
            tokens.append(_token(source_id, enabled))
        await self._save(store, tokens)

    async def move(self, store: JsonSettingsStore, source_id: SourceId, position: int) -> None:
        tokens = list(self._tokens)
        current = source_id.value
        for token in tokens:
            parsed = _parse_token(token)
            if parsed is not None and parsed[0] == source_id:
                current = token
                tokens.remove(token)
                break
        tokens.insert(max(position, 0), current)
        await self._save(store, tokens)

    async def reset(self, store: JsonSettingsStore) -> None:
        await self._save(store, [sid.value for sid in DEFAULT_PRIORITY])
