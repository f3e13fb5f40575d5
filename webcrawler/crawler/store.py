"""
Page store: serves page bodies from the on-disk cache or downloads them.

A successful download leaves ``<destination_dir>/<cache_filename(url)>``
behind; the next run finds it and skips the network, which is how an
interrupted crawl resumes.
"""
from __future__ import annotations

import asyncio
import io
import logging
import re
from pathlib import Path
from typing import Any, AsyncContextManager, Protocol, Union

from aiohttp import ClientError

from webcrawler.crawler.errors import (
    CacheIOError,
    PageNotFoundError,
    RequestError,
    UnexpectedStatusError,
)

__all__ = ("Transport", "PageStore", "cache_filename")

logger = logging.getLogger("webcrawler.store")

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]+")


class Transport(Protocol):
    """The slice of :class:`aiohttp.ClientSession` the store relies on."""

    def get(self, url: str) -> AsyncContextManager[Any]:
        ...


def cache_filename(url: str) -> str:
    """Collapse each run of non-alphanumeric characters of ``url`` into ``_``."""
    return _NON_ALNUM_RE.sub("_", url)


class PageStore:
    """Resolves URLs to page bodies, caching every successful download."""

    def __init__(
        self,
        transport: Transport,
        destination_dir: Union[str, Path],
        chunk_size: int = 64 * 1024,
    ) -> None:
        self.transport = transport
        self.destination_dir = Path(destination_dir)
        self.chunk_size = chunk_size
        self.hits = 0
        self.downloads = 0
        try:
            self.destination_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheIOError(f"mkdir {self.destination_dir}: {exc}") from exc

    def path_for(self, url: str) -> Path:
        return self.destination_dir / cache_filename(url)

    async def get(self, url: str) -> bytes:
        """
        Return the body of ``url``, from the cache when a previous run saved it.

        Raises PageNotFoundError, UnexpectedStatusError, RequestError or
        CacheIOError; asyncio cancellation propagates unchanged.
        """
        path = self.path_for(url)
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return await self.download(url, path)
        except OSError as exc:
            raise CacheIOError(f"read file {path}: {exc}") from exc
        self.hits += 1
        logger.debug("cache hit %s (%s)", url, path.name)
        return content

    async def download(self, url: str, path: Path) -> bytes:
        """GET ``url`` and stream a 200 body to ``path`` and to memory at once."""
        try:
            async with self.transport.get(url) as resp:
                if resp.status == 404:
                    raise PageNotFoundError(url)
                if resp.status != 200:
                    raise UnexpectedStatusError(url, resp.status)
                content = await self._save(resp, path)
        except (ClientError, asyncio.TimeoutError) as exc:
            raise RequestError(f"do request {url}: {exc!r}") from exc
        self.downloads += 1
        logger.debug("downloaded %s (%d bytes)", url, len(content))
        return content

    async def _save(self, resp: Any, path: Path) -> bytes:
        buffer = io.BytesIO()
        # opened inline: a cancelled threaded open would leave an empty file behind
        try:
            fh = path.open("wb")
        except OSError as exc:
            raise CacheIOError(f"create file {path}: {exc}") from exc
        try:
            try:
                async for chunk in resp.content.iter_chunked(self.chunk_size):
                    buffer.write(chunk)
                    try:
                        fh.write(chunk)
                    except OSError as exc:
                        raise CacheIOError(f"write file {path}: {exc}") from exc
            finally:
                await asyncio.to_thread(fh.close)
        except BaseException:
            # a half-written file would be taken for a cache hit next run
            path.unlink(missing_ok=True)
            raise
        return buffer.getvalue()
