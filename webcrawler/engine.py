"""webcrawler.engine: runs one crawl for the CLI and wires OS signals to cancellation."""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from webcrawler.config import CrawlerConfig
from webcrawler.crawler import CancelToken, Crawler
from webcrawler.logger import logger

__all__ = ["CrawlReport", "start_crawl"]

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass(slots=True)
class CrawlReport:
    """Outcome of a crawl run as shown to the user."""

    start_url: str
    visited: List[str]
    interrupted: bool
    destination_dir: Path


def _on_signal(sig: signal.Signals, token: CancelToken) -> None:
    logger.warning("Received signal %s, shutting down gracefully...", sig.name)
    token.cancel()


async def start_crawl(
    config: CrawlerConfig,
    cancel: Optional[CancelToken] = None,
    *,
    handle_signals: bool = False,
) -> CrawlReport:
    """Crawl ``config.start_url``; with ``handle_signals`` SIGINT/SIGTERM cancel the run."""
    if config.start_url is None:
        raise ValueError("start_url is required")
    token = cancel or CancelToken()
    loop = asyncio.get_running_loop()
    installed: List[signal.Signals] = []
    if handle_signals:
        for sig in _STOP_SIGNALS:
            try:
                loop.add_signal_handler(sig, _on_signal, sig, token)
            except (NotImplementedError, RuntimeError, ValueError):
                # no loop signal support (Windows, non-main thread)
                logger.debug("Cannot install handler for %s", sig.name)
            else:
                installed.append(sig)

    try:
        async with Crawler(config) as crawler:
            visited = await crawler.start(str(config.start_url), cancel=token)
            interrupted = crawler.interrupted
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)

    return CrawlReport(
        start_url=str(config.start_url),
        visited=visited,
        interrupted=interrupted,
        destination_dir=config.destination_dir,
    )
