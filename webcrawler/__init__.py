"""
webcrawler package initializer.
Defines package version and exposes the crawler facade.
"""
__version__ = "0.1.0"

from webcrawler.crawler import Crawler, CrawlerError  # noqa: E402

__all__ = ["__version__", "Crawler", "CrawlerError"]
