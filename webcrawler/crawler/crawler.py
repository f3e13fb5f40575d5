"""
Recursive, depth-bounded crawl over same-host links.
"""
from __future__ import annotations

import asyncio
import io
import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from aiohttp import ClientSession, ClientTimeout, TCPConnector

from webcrawler.config import CrawlerConfig
from webcrawler.crawler.cancellation import CancelToken
from webcrawler.crawler.errors import CrawlCancelledError, CrawlerError, PageNotFoundError
from webcrawler.crawler.link_extractor import extract_links
from webcrawler.crawler.store import PageStore, Transport
from webcrawler.crawler.urls import canonical_url
from webcrawler.crawler.visited import VisitedTracker

__all__ = ("Crawler",)


@dataclass(slots=True)
class _Run:
    """State shared by every branch of one ``start`` call."""
    visited: VisitedTracker
    cancel: CancelToken


class Crawler:
    """
    Concurrent crawler that downloads pages, caches them on disk and follows
    same-host links down to a given depth.

    Either inject a transport (anything with aiohttp's ``session.get`` shape)
    or use the crawler as an async context manager to get an owned
    :class:`aiohttp.ClientSession`. One instance runs one crawl at a time.
    """

    def __init__(self, config: CrawlerConfig, transport: Optional[Transport] = None) -> None:
        self.config = config
        self.max_concurrency: int = config.max_concurrency
        self.store = PageStore(transport, config.destination_dir)  # type: ignore[arg-type]
        self.session: Optional[ClientSession] = None
        self.interrupted = False
        self.logger = logging.getLogger("webcrawler.crawler")
        self._running = False

    async def __aenter__(self) -> Crawler:
        if self.store.transport is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                connector=TCPConnector(limit=self.max_concurrency),
                raise_for_status=False,
            )
            self.store.transport = self.session
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session is not None:
            if not self.session.closed:
                await self.session.close()
            self.store.transport = None  # type: ignore[assignment]
            self.session = None

    async def start(
        self,
        url: str,
        depth: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> List[str]:
        """
        Crawl from ``url`` and return every URL admitted during the run.

        ``depth`` defaults to ``config.max_depth``; 0 visits nothing. When
        ``cancel`` fires, branches stop at their next admission, in-flight
        requests are aborted and the URLs admitted so far are returned
        (``self.interrupted`` is then True).
        """
        if self._running:
            raise RuntimeError("a crawl is already running on this Crawler")
        if self.store.transport is None:
            raise RuntimeError("Session not initialized; use 'async with Crawler(config)'")
        root = canonical_url(url)
        source = url.strip()
        depth = self.config.max_depth if depth is None else depth
        run = _Run(visited=VisitedTracker(), cancel=cancel or CancelToken())

        self._running = True
        self.interrupted = False
        self.logger.info("Start crawl: %s (depth %d)", root, depth)
        started = time.monotonic()
        hits, downloads = self.store.hits, self.store.downloads
        try:
            await self._crawl(run, root, depth, source)
        finally:
            self._running = False
            self.interrupted = run.cancel.cancelled
        visited = run.visited.snapshot()
        self.logger.info(
            "Crawl %s: visited %d page(s) in %.2f s (%d from cache, %d downloaded)",
            "interrupted" if self.interrupted else "complete",
            len(visited),
            time.monotonic() - started,
            self.store.hits - hits,
            self.store.downloads - downloads,
        )
        return visited

    async def _crawl(self, run: _Run, url: str, depth: int, source: Optional[str] = None) -> None:
        # url is the crawl target; source, when given, is what gets fetched
        source = source or url
        if depth <= 0 or run.cancel.cancelled:
            return
        if not run.visited.try_admit(url):
            return

        try:
            content = await run.cancel.guard(self.store.get(source))
        except CrawlCancelledError:
            return
        except PageNotFoundError as exc:
            self.logger.info("failed to fetch url: %s %s", url, exc)
            return
        except CrawlerError as exc:
            self.logger.warning("failed to fetch url: %s %s", url, exc)
            return

        links = extract_links(source, io.BytesIO(content))
        self.logger.info("-- %s, found %d link(s)", url, len(links))
        if depth <= 1 or not links:
            return

        gate = asyncio.Semaphore(self.max_concurrency)
        async with asyncio.TaskGroup() as tg:
            for link in links:
                if run.cancel.cancelled:
                    break
                await gate.acquire()
                tg.create_task(self._branch(run, gate, link, depth - 1))

    async def _branch(self, run: _Run, gate: asyncio.Semaphore, url: str, depth: int) -> None:
        try:
            await self._crawl(run, url, depth)
        except Exception:
            self.logger.exception("branch %s failed", url)
        finally:
            gate.release()
