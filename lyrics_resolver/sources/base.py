from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import requests

from lyrics_resolver.lrc.model import LyricResult
from lyrics_resolver.lrc.parse import LrcParseError

from .cancel import Cancelled, CancelToken
from .types import ProviderParameters, SourceId

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_S = 10.0
USER_AGENT = "lyrics-resolver/0.1"


class NotFound(Exception):
    """The provider answered, but has nothing for this track."""


def _retrieve(fut: asyncio.Future[Any]) -> None:
    if not fut.cancelled():
        fut.exception()


class LyricsSource:
    """
    One adapter per source id. `fill` is the slot filler: it runs the fetch at
    most once per session and always leaves the slot filled, with either a
    non-empty result or None.
    """

    source_id: SourceId
    name: str

    # ordinary failures: logged and turned into a None result
    absorbed_errors: tuple[type[BaseException], ...] = (
        requests.RequestException,
        LrcParseError,
        TimeoutError,
        ValueError,
        KeyError,
        TypeError,
    )

    def __init__(self, *, timeout_s: float = REQUEST_TIMEOUT_S):
        self.timeout_s = timeout_s

    async def fetch(self, params: ProviderParameters) -> LyricResult | None:
        raise NotImplementedError

    async def fill(self, params: ProviderParameters) -> None:
        slot = params.source_map[self.source_id]
        if slot.filled:
            return

        result: LyricResult | None = None
        try:
            params.signal.raise_if_cancelled()
            result = await self.fetch(params)
        except Cancelled:
            logger.debug("%s: session cancelled", self.source_id)
        except NotFound as e:
            logger.debug("%s: not found (%s)", self.source_id, e)
        except self.absorbed_errors as e:
            logger.warning("%s error: %s", self.source_id, e)
        finally:
            if params.signal.cancelled or result is None or not result.has_lyrics:
                result = None
            slot.lyric_source_result = result
            slot.filled = True

    async def _shared(
        self, params: ProviderParameters, key: str, factory: Callable[[], Awaitable[Any]]
    ) -> Any:
        """One request per provider per session, even for sibling source ids."""
        fut = params.shared.get(key)
        if fut is None:
            fut = asyncio.ensure_future(factory())
            # consumers may all be gone (cancelled prefetch); keep failures from going unretrieved
            fut.add_done_callback(_retrieve)
            params.shared[key] = fut
        return await asyncio.shield(fut)

    async def _get_json(
        self,
        url: str,
        token: CancelToken,
        *,
        params: dict[str, Any] | None = None,
        not_found_ok: bool = True,
    ) -> Any:
        def _do() -> Any:
            r = requests.get(url, params=params, timeout=self.timeout_s, headers={"User-Agent": USER_AGENT})
            if not_found_ok and r.status_code == 404:
                raise NotFound(f"{url} answered 404")
            r.raise_for_status()
            return r.json()

        return await token.call(_do, timeout=self.timeout_s)
