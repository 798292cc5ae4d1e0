from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from lyrics_resolver.cache.sqlite import CacheKey, LyricsCache
from lyrics_resolver.config import AppConfig
from lyrics_resolver.lrc.model import LyricResult

from .base import LyricsSource
from .cancel import CancelToken
from .registry import ProviderPriority, build_sources, new_source_map
from .types import AudioTrackData, ProviderParameters, SourceId, SourceSlot, TrackKey

logger = logging.getLogger(__name__)


def _start_fill(params: ProviderParameters, slot: SourceSlot) -> asyncio.Future[None]:
    if slot.pending is None:
        slot.pending = asyncio.ensure_future(slot.lyric_source_filler(params))
    return slot.pending


async def resolve(params: ProviderParameters, source_id: SourceId) -> LyricResult | None:
    """
    Result of one source, fetching it on first use. Later and concurrent calls
    for the same source reuse that single fetch.
    """
    slot = params.source_map[source_id]
    if not slot.filled:
        # shielded: a caller giving up must not cancel the fetch other callers await
        await asyncio.shield(_start_fill(params, slot))
        slot.filled = True
    return slot.lyric_source_result


async def get_best_lyrics(
    params: ProviderParameters, order: Sequence[SourceId], *, lookahead: int = 0
) -> LyricResult | None:
    """
    First source in `order` with non-empty lyrics, or None.

    With lookahead > 0 the next sources start fetching while the current one is
    awaited; the choice still follows `order`, never completion order. Prefetches
    still running once a source wins are cancelled and their slots left filled
    with no result.
    """
    prefetched: list[SourceSlot] = []
    try:
        for index, source_id in enumerate(order):
            for ahead in order[index + 1 : index + 1 + lookahead]:
                slot = params.source_map[ahead]
                if not slot.filled and slot.pending is None:
                    _start_fill(params, slot)
                    prefetched.append(slot)

            result = await resolve(params, source_id)
            if result is not None and result.has_lyrics:
                logger.info("Lyrics from %s (%s)", source_id, result.source)
                return result
            logger.debug("%s: nothing usable", source_id)
        return None
    finally:
        await _drop_prefetches(prefetched)


async def _drop_prefetches(slots: list[SourceSlot]) -> None:
    running = [slot for slot in slots if slot.pending is not None and not slot.pending.done()]
    for slot in running:
        slot.pending.cancel()
    if running:
        await asyncio.gather(*(slot.pending for slot in running), return_exceptions=True)
    for slot in slots:
        fut = slot.pending
        if fut is None:
            continue
        if fut.cancelled():
            slot.filled = True
        elif fut.exception() is not None:
            logger.warning("Prefetch failed: %s", fut.exception())
            slot.filled = True


class LyricsService:
    def __init__(
        self,
        cfg: AppConfig,
        *,
        priority: ProviderPriority | None = None,
        cache: LyricsCache | None = None,
        sources: dict[SourceId, LyricsSource] | None = None,
    ):
        self.cfg = cfg
        self.priority = priority or ProviderPriority()
        if cache is None and cfg.cache_enabled:
            cache = LyricsCache(cfg.cache_db_path)
        self.cache = cache
        self.sources = sources if sources is not None else build_sources(cfg)
        self._session: ProviderParameters | None = None

    def new_session(
        self,
        track: TrackKey,
        audio_track_data: AudioTrackData | None = None,
        *,
        always_fetch_metadata: bool = False,
    ) -> ProviderParameters:
        """Start a lookup for a new track; the previous lookup is cancelled."""
        self.cancel()
        self._session = ProviderParameters(
            song=track.title,
            artist=track.artist,
            album=track.album,
            duration=track.duration,
            video_id=track.video_id,
            audio_track_data=audio_track_data or AudioTrackData(),
            source_map=new_source_map(sources=self.sources),
            signal=CancelToken(),
            always_fetch_metadata=always_fetch_metadata,
        )
        return self._session

    def cancel(self) -> None:
        if self._session is not None:
            self._session.signal.cancel()

    async def get_lyrics(
        self,
        track: TrackKey,
        audio_track_data: AudioTrackData | None = None,
        *,
        use_cache: bool = True,
    ) -> LyricResult | None:
        """
        Cached lyrics when the source that produced them is still enabled,
        otherwise a fresh lookup in the current priority order.
        """
        order = self.priority.order
        key = CacheKey(artist=track.artist, title=track.title, album=track.album, video_id=track.video_id)
        if use_cache and self.cache is not None:
            cached = self.cache.get(key, sources={sid.value for sid in order})
            if cached is not None and cached.has_lyrics:
                logger.debug("Cache hit for %s", track.display)
                return cached

        params = self.new_session(track, audio_track_data)
        result = await get_best_lyrics(params, order, lookahead=self.cfg.lookahead)
        if result is None:
            logger.info("No lyrics found for %s", track.display)
            return None

        if self.cache is not None and result.cache_allowed and not params.signal.cancelled:
            winner = next(sid for sid in order if params.source_map[sid].lyric_source_result is result)
            self.cache.set(key, result, source_id=winner.value)
        return result
