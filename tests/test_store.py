# File: tests/test_store.py
import asyncio

import pytest
from aiohttp import ClientConnectionError

from webcrawler.crawler.errors import (
    CacheIOError,
    PageNotFoundError,
    RequestError,
    UnexpectedStatusError,
)
import webcrawler.crawler.store as store_module
from webcrawler.crawler.store import PageStore, cache_filename

PAGE = """
<!DOCTYPE html>
<html>
    <head><title>Page Title</title></head>
    <body>
        <h1>This is a Heading</h1>
        <p>This is a paragraph.</p>
    </body>
</html>"""


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://localhost.com", "http_localhost_com"),
        ("https://example.com/a/b?c=1&d=2", "https_example_com_a_b_c_1_d_2"),
        ("http://localhost.com/", "http_localhost_com_"),
        ("http://localhost.com/naïve", "http_localhost_com_na_ve"),
    ],
)
def test_cache_filename(url, expected):
    assert cache_filename(url) == expected


def test_store_creates_destination_dir(transport, storage):
    PageStore(transport, storage / "nested")
    assert (storage / "nested").is_dir()


def test_store_rejects_file_as_destination(transport, tmp_path):
    target = tmp_path / "occupied"
    target.write_text("not a directory")
    with pytest.raises(CacheIOError):
        PageStore(transport, target)


@pytest.mark.asyncio()
async def test_download_saves_file_identical_to_buffer(transport, storage):
    transport.route("http://localhost.com", PAGE)
    store = PageStore(transport, storage, chunk_size=16)

    content = await store.get("http://localhost.com")

    path = storage / "http_localhost_com"
    assert path.is_file()
    assert path.read_bytes() == content == PAGE.encode()
    assert store.downloads == 1
    assert store.hits == 0


@pytest.mark.asyncio()
async def test_second_get_is_served_from_cache(transport, storage):
    transport.route("http://localhost.com/pricing", b"<p>plans</p>")
    store = PageStore(transport, storage)

    first = await store.get("http://localhost.com/pricing")
    second = await store.get("http://localhost.com/pricing")

    assert first == second == b"<p>plans</p>"
    assert transport.requests == ["http://localhost.com/pricing"]
    assert store.hits == 1


@pytest.mark.asyncio()
async def test_existing_cache_file_skips_network(transport, storage):
    storage.mkdir(parents=True)
    (storage / "http_localhost_com_old").write_bytes(b"from a previous run")
    store = PageStore(transport, storage)

    assert await store.get("http://localhost.com/old") == b"from a previous run"
    assert transport.requests == []


@pytest.mark.asyncio()
async def test_not_found(transport, storage):
    store = PageStore(transport, storage)
    with pytest.raises(PageNotFoundError):
        await store.get("http://localghost.com")
    assert not (storage / "http_localghost_com").exists()


@pytest.mark.asyncio()
async def test_unexpected_status(transport, storage):
    transport.route("http://localhost.com", status=500)
    store = PageStore(transport, storage)
    with pytest.raises(UnexpectedStatusError) as exc_info:
        await store.get("http://localhost.com")
    assert exc_info.value.status == 500
    assert not (storage / "http_localhost_com").exists()


@pytest.mark.asyncio()
async def test_transport_failure_is_request_error(transport, storage):
    transport.route("http://localhost.com", error=ClientConnectionError("refused"))
    store = PageStore(transport, storage)
    with pytest.raises(RequestError):
        await store.get("http://localhost.com")
    assert list(storage.iterdir()) == []


@pytest.mark.asyncio()
async def test_broken_body_leaves_no_partial_file(transport, storage):
    transport.route("http://localhost.com", PAGE, broken=True)
    store = PageStore(transport, storage, chunk_size=8)
    with pytest.raises(RequestError):
        await store.get("http://localhost.com")
    assert not (storage / "http_localhost_com").exists()
    assert store.downloads == 0


@pytest.mark.asyncio()
async def test_unreadable_cache_entry_is_io_error(transport, storage):
    store = PageStore(transport, storage)
    store.path_for("http://localhost.com").mkdir()
    with pytest.raises(CacheIOError):
        await store.get("http://localhost.com")
    assert transport.requests == []


@pytest.mark.asyncio()
async def test_cache_read_and_close_run_off_the_event_loop(transport, storage, monkeypatch):
    offloaded = []
    real_to_thread = asyncio.to_thread

    async def to_thread(func, *args, **kwargs):
        offloaded.append(getattr(func, "__name__", repr(func)))
        return await real_to_thread(func, *args, **kwargs)

    monkeypatch.setattr(store_module.asyncio, "to_thread", to_thread)
    transport.route("http://localhost.com", PAGE)
    store = PageStore(transport, storage)

    await store.get("http://localhost.com")
    await store.get("http://localhost.com")

    assert offloaded.count("read_bytes") == 2
    assert offloaded.count("close") == 1
