from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class Cancelled(Exception):
    """The lookup session was cancelled."""


class CancelToken:
    """
    Session-wide cancellation signal. Every blocking provider call is raced
    against it and against its own deadline; whichever fires first wins.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise Cancelled()

    async def wait(self) -> None:
        await self._event.wait()

    async def call(self, func: Callable[..., T], *args: Any, timeout: float) -> T:
        """
        Run a blocking `func` in a worker thread.

        Raises Cancelled when the token fires first, TimeoutError when the
        deadline does. The worker thread is abandoned, not interrupted.
        """
        self.raise_if_cancelled()
        work = asyncio.ensure_future(asyncio.to_thread(func, *args))
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _pending = await asyncio.wait(
                {work, waiter}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()
        if work in done:
            return work.result()
        if self.cancelled:
            raise Cancelled()
        raise TimeoutError(f"request timed out after {timeout}s")
