"""
Crawl engine: URL normalization, link extraction, page cache and traversal.
"""
from webcrawler.crawler.cancellation import CancelToken
from webcrawler.crawler.crawler import Crawler
from webcrawler.crawler.errors import (
    CacheIOError,
    CrawlCancelledError,
    CrawlerError,
    InvalidURLError,
    PageNotFoundError,
    RequestError,
    UnexpectedStatusError,
)
from webcrawler.crawler.link_extractor import extract_links
from webcrawler.crawler.store import PageStore, cache_filename
from webcrawler.crawler.urls import canonical_url, normalize_link
from webcrawler.crawler.visited import VisitedTracker

__all__ = [
    "CancelToken",
    "Crawler",
    "CacheIOError",
    "CrawlCancelledError",
    "CrawlerError",
    "InvalidURLError",
    "PageNotFoundError",
    "RequestError",
    "UnexpectedStatusError",
    "extract_links",
    "PageStore",
    "cache_filename",
    "canonical_url",
    "normalize_link",
    "VisitedTracker",
]
