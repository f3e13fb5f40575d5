"""
Link extraction for fetched pages.
"""
from __future__ import annotations

import logging
from typing import BinaryIO, Iterator, List, Set, Union

from bs4 import BeautifulSoup, ParserRejectedMarkup, SoupStrainer
from bs4.element import Tag

from webcrawler.crawler.urls import normalize_link

__all__ = ("extract_links", "iter_hrefs")

logger = logging.getLogger("webcrawler.links")

_ANCHORS = SoupStrainer("a")


def iter_hrefs(stream: Union[BinaryIO, bytes, str]) -> Iterator[str]:
    """
    Yield the raw ``href`` of every anchor in the document, in document order.

    Only ``<a>`` elements are built into the tree; truncated or malformed
    markup simply ends the sequence early. Markup the parser rejects
    outright yields nothing.
    """
    try:
        soup = BeautifulSoup(stream, "html.parser", parse_only=_ANCHORS)
    except ParserRejectedMarkup as exc:
        logger.warning("unparsable HTML, no links taken: %s", exc)
        return
    for tag in soup.find_all("a"):
        if not isinstance(tag, Tag):
            continue
        href = tag.get("href")
        if isinstance(href, str):
            yield href


def extract_links(base_url: str, stream: Union[BinaryIO, bytes, str]) -> List[str]:
    """
    Return the distinct same-host links of the page at ``base_url``.

    Links are normalized with :func:`normalize_link`; the page's own URL is
    never part of the result. Order is unspecified.
    """
    found: Set[str] = set()
    for href in iter_hrefs(stream):
        link = normalize_link(base_url, href)
        if link is not None:
            found.add(link)
    found.discard(normalize_link(base_url, base_url))
    return list(found)
