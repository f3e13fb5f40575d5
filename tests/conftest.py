# File: tests/conftest.py
from __future__ import annotations

import asyncio
import logging
import socket
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Tuple

import pytest
from aiohttp import ClientPayloadError

from webcrawler.config import CrawlerConfig

ROOT = "http://localhost.com"

#: landing page with one self link, three same-host
#: links, one of them with a query, and three links that must be dropped
LANDING_PAGE = """
<ul>
    <a href="/">Home</a>
    <a href="/advanced-features">Advance features</a>
    <a href="/pricing">Pricing</a>
    <a href="/demo?url=staging">Demo</a>
    <a href="https://google.com"> External </a>
    <a href="mailto:someone@example.com">Send email</a>
    <a href="#">Go Home</a>
</ul>
"""


class FakeStream:
    """Mimics ``aiohttp.StreamReader.iter_chunked``."""

    def __init__(self, body: bytes, broken: bool = False) -> None:
        self._body = body
        self._broken = broken

    async def iter_chunked(self, n: int):
        for i in range(0, len(self._body), n):
            yield self._body[i:i + n]
            if self._broken:
                raise ClientPayloadError("connection reset mid-body")


class FakeResponse:
    def __init__(self, status: int, body: bytes, broken: bool = False) -> None:
        self.status = status
        self.content = FakeStream(body, broken)


class FakeTransport:
    """
    In-memory stand-in for ``aiohttp.ClientSession``.

    Unregistered URLs answer 404. ``requests`` records every URL asked for
    and ``max_in_flight`` the highest number of simultaneous requests.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Tuple[int, bytes, float, Optional[BaseException], bool]] = {}
        self.requests: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def route(
        self,
        url: str,
        body: str | bytes = b"",
        status: int = 200,
        delay: float = 0.0,
        error: Optional[BaseException] = None,
        broken: bool = False,
    ) -> None:
        data = body.encode("utf-8") if isinstance(body, str) else body
        self.routes[url] = (status, data, delay, error, broken)

    @asynccontextmanager
    async def get(self, url: str) -> AsyncIterator[FakeResponse]:
        self.requests.append(url)
        status, body, delay, error, broken = self.routes.get(url, (404, b"", 0.0, None, False))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if delay:
                await asyncio.sleep(delay)
            if error is not None:
                raise error
            yield FakeResponse(status, body, broken)
        finally:
            self.in_flight -= 1


@pytest.fixture(autouse=True)
def _propagate_logs():
    """Let caplog see project logs even after the CLI configured its handlers."""
    lg = logging.getLogger("webcrawler")
    yield
    lg.handlers.clear()
    lg.propagate = True
    lg.setLevel(logging.NOTSET)


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def storage(tmp_path: Path) -> Path:
    return tmp_path / "storage"


@pytest.fixture()
def basic_config(storage: Path) -> CrawlerConfig:
    """A valid CrawlerConfig writing into a temporary directory."""
    return CrawlerConfig(
        destination_dir=storage,
        max_depth=10,
        max_concurrency=4,
        timeout=2.0,
        user_agent="TestAgent/1.0",
    )


@pytest.fixture()
def landing_page() -> str:
    return LANDING_PAGE


@pytest.fixture()
def unused_port() -> int:
    """A TCP port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("localhost", 0))
        return sock.getsockname()[1]
