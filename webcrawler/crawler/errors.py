"""
Exception hierarchy for the crawl engine.
"""
from __future__ import annotations


class CrawlerError(Exception):
    """Base class for every error raised by the crawl engine."""


class InvalidURLError(CrawlerError, ValueError):
    """A link or start URL could not be parsed into an absolute http(s) URL."""


class RequestError(CrawlerError):
    """Transport-level failure while sending a request or reading its body."""


class PageNotFoundError(CrawlerError):
    """The server answered 404 Not Found."""

    def __init__(self, url: str) -> None:
        super().__init__(f"page not found: {url}")
        self.url = url


class UnexpectedStatusError(CrawlerError):
    """The server answered with a status other than 200 or 404."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"request failed with status: {status} ({url})")
        self.url = url
        self.status = status


class CacheIOError(CrawlerError, OSError):
    """Reading or writing a cached page failed."""


class CrawlCancelledError(CrawlerError):
    """The operation was aborted because the crawl was cancelled."""
