"""
URL normalization and same-host filtering for crawl targets.
"""
from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from webcrawler.crawler.errors import InvalidURLError

__all__ = ("normalize_link", "canonical_url")

logger = logging.getLogger("webcrawler.urls")

_WEB_SCHEMES = ("http", "https")


def _host(parts: SplitResult) -> str:
    # host[:port] without user-info
    return parts.netloc.rpartition("@")[2].lower()


def normalize_link(base_url: str, href: str) -> Optional[str]:
    """
    Turn the raw ``href`` found on ``base_url`` into a crawl target.

    Returns the absolute URL with a lowercase host and no user-info, query,
    fragment or trailing slashes. Returns None when the link is empty, a
    ``mailto:`` or same-page fragment, unparsable, or points to another host.
    """
    raw = href.strip()
    if not raw or raw.startswith(("mailto:", "#")):
        return None
    try:
        base = urlsplit(base_url)
        parts = urlsplit(raw)._replace(query="", fragment="")
        if parts.scheme:
            if parts.scheme not in _WEB_SCHEMES or _host(parts) != _host(base):
                return None
            absolute = urlunsplit(parts._replace(netloc=_host(parts)))
        else:
            base_path = urlunsplit(base._replace(query="", fragment=""))
            resolved = urlsplit(urljoin(base_path, urlunsplit(parts)))
            if _host(resolved) != _host(base):
                return None
            absolute = urlunsplit(resolved._replace(netloc=_host(resolved)))
    except ValueError as exc:
        logger.warning("invalid URL %r: %s", raw, exc)
        return None
    return absolute.rstrip("/")


def canonical_url(url: str) -> str:
    """Normalize an absolute http(s) URL against itself, e.g. a crawl's start URL."""
    try:
        parts = urlsplit(url.strip())
    except ValueError as exc:
        raise InvalidURLError(f"invalid URL {url!r}: {exc}") from exc
    if parts.scheme not in _WEB_SCHEMES or not parts.netloc:
        raise InvalidURLError(
            f"URL must include scheme and host (e.g., https://example.com): {url!r}"
        )
    normalized = normalize_link(url, url)
    if normalized is None:
        raise InvalidURLError(f"invalid URL {url!r}")
    return normalized
