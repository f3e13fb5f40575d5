"""
Cooperative cancellation for a running crawl.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from webcrawler.crawler.errors import CrawlCancelledError

T = TypeVar("T")


class CancelToken:
    """
    A one-shot cancellation signal observed by every branch of a crawl.

    ``cancel()`` is safe to call from a signal handler registered with
    ``loop.add_signal_handler``; it is idempotent.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, aw: Awaitable[T]) -> T:
        """
        Await ``aw`` unless the token fires first.

        When the token fires, the pending operation is cancelled (aiohttp drops
        the connection) and :class:`CrawlCancelledError` is raised.
        """
        if self.cancelled:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise CrawlCancelledError("crawl cancelled")
        work = asyncio.ensure_future(aw)
        stop = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
            if not work.done():
                work.cancel()
                await asyncio.gather(work, return_exceptions=True)
            elif not work.cancelled():
                # mark a failure as retrieved even when we are being cancelled
                work.exception()
        if work in done:
            return work.result()
        raise CrawlCancelledError("crawl cancelled")
