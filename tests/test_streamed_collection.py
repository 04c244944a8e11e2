"""Tests for paged streams and remote key/entry/value views."""

import asyncio
from typing import Any

import pytest
from fake_server import FakeCacheServer
from fake_server import ScriptedTransport
from fake_server import encode

from namerec.ncache import CacheEntry
from namerec.ncache import Comparators
from namerec.ncache import CursorState
from namerec.ncache import DecodeError
from namerec.ncache import Extractors
from namerec.ncache import Filters
from namerec.ncache import JsonSerializer
from namerec.ncache import NamedCacheClient
from namerec.ncache import PagedStream
from namerec.ncache import Session
from namerec.ncache import TransportError
from namerec.ncache.messages import EntryResult
from namerec.ncache.messages import EntrySetPageRequest
from namerec.ncache.messages import KeySetPageRequest
from namerec.ncache.messages import KeySetRequest
from namerec.ncache.streamed_collection import RemoteSet


async def fill(session: Session, count: int) -> NamedCacheClient:
    """Create cache 'numbers' holding keys 0..count-1 mapped to their squares."""
    cache = session.get_cache('numbers')
    await cache.put_all({i: i * i for i in range(count)})
    return cache


async def settle() -> None:
    """Let the event loop finalize abandoned async generators."""
    for _ in range(3):
        await asyncio.sleep(0)


class HangingStream:
    """Stream that delivers its messages and then waits forever."""

    def __init__(self, *messages: bytes) -> None:
        self.messages = list(messages)
        self.closed = False

    def __aiter__(self) -> 'HangingStream':
        return self

    async def __anext__(self) -> Any:  # noqa: ANN401
        if self.messages:
            return self.messages.pop(0)
        await asyncio.Event().wait()
        return None

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
@pytest.mark.parametrize('count', [0, 1, 2, 5, 6])
async def test_key_set_pages_without_duplicates(session: Session, server: FakeCacheServer, count: int) -> None:
    """Test that a paged key scan yields every key exactly once."""
    cache = await fill(session, count)
    server.requests.clear()

    keys = await cache.key_set().to_list()

    assert sorted(keys) == list(range(count))
    pages = [r for r in server.requests if isinstance(r, KeySetPageRequest)]
    assert len(pages) == max(1, -(-count // server.page_size))
    assert pages[0].cookie == b''
    assert all(page.cookie for page in pages[1:])


@pytest.mark.asyncio
async def test_entry_and_value_pages(session: Session, server: FakeCacheServer) -> None:
    """Test paged entry and value scans."""
    cache = await fill(session, 5)

    entries = await cache.entry_set().to_list()
    assert sorted(entries, key=lambda e: e.key) == [CacheEntry(i, i * i) for i in range(5)]

    values = await cache.values().to_list()
    assert sorted(values) == [0, 1, 4, 9, 16]
    assert sum(isinstance(r, EntrySetPageRequest) for r in server.requests) == 6


@pytest.mark.asyncio
async def test_iteration_restarts(session: Session, server: FakeCacheServer) -> None:
    """Test that every iteration starts from the first page."""
    cache = await fill(session, 3)
    view = cache.key_set()

    first = [key async for key in view]
    server.requests.clear()
    second = [key async for key in view]

    assert first == second
    assert server.requests[0].cookie == b''


@pytest.mark.asyncio
async def test_view_reflects_later_writes(session: Session) -> None:
    """Test that a view is not a snapshot."""
    cache = await fill(session, 2)
    view = cache.key_set()
    assert len(await view.to_list()) == 2

    await cache.put(10, 100)
    assert len(await view.to_list()) == 3


@pytest.mark.asyncio
async def test_cursor_states(session: Session, server: FakeCacheServer) -> None:
    """Test the cursor life cycle across pages."""
    cache = await fill(session, 3)
    cursor = cache.key_set().iterate()
    assert cursor.state == CursorState.NOT_STARTED
    assert cursor.paged

    await anext(cursor)
    assert cursor.state == CursorState.YIELDING
    assert cursor.pages == 1

    await anext(cursor)
    await anext(cursor)
    assert cursor.pages == 2

    with pytest.raises(StopAsyncIteration):
        await anext(cursor)
    assert cursor.state == CursorState.EXHAUSTED
    assert server.opened_streams == server.closed_streams

    with pytest.raises(StopAsyncIteration):
        await anext(cursor)


@pytest.mark.asyncio
async def test_abandoned_iteration_releases_stream(session: Session, server: FakeCacheServer) -> None:
    """Test that closing a cursor early closes the open page stream."""
    cache = await fill(session, 4)
    cursor = cache.values().iterate()

    async with cursor:
        await anext(cursor)
        assert server.opened_streams - server.closed_streams == 1

    assert server.opened_streams == server.closed_streams
    assert cursor.state == CursorState.EXHAUSTED


@pytest.mark.asyncio
async def test_break_releases_stream(session: Session, server: FakeCacheServer) -> None:
    """Test that leaving a loop over a view closes the open page stream."""
    cache = await fill(session, 6)

    async for _ in cache.key_set():
        break
    await settle()

    assert server.opened_streams == server.closed_streams == 1


@pytest.mark.asyncio
async def test_cancelled_iteration_releases_stream(serializer: JsonSerializer) -> None:
    """Test that cancelling the consuming task closes the stream."""
    stream = HangingStream(b'next', serializer.serialize(1))
    cursor = PagedStream(lambda _: stream, serializer.deserialize, cookie_of=lambda message: message or None)
    received = asyncio.Event()

    async def consume() -> None:
        async for _ in cursor:
            received.set()

    task = asyncio.create_task(consume())
    await received.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert stream.closed
    assert cursor.state == CursorState.FAILED


@pytest.mark.asyncio
async def test_closed_cursor_yields_nothing(session: Session, server: FakeCacheServer) -> None:
    """Test that a cursor closed before its first read never opens a stream."""
    cache = await fill(session, 3)
    cursor = cache.key_set().iterate()

    await cursor.aclose()

    assert cursor.state == CursorState.EXHAUSTED
    assert [key async for key in cursor] == []
    assert server.opened_streams == 0


def test_remote_set_is_abstract(server: FakeCacheServer) -> None:
    """Test that the view base cannot be instantiated."""
    with pytest.raises(TypeError):
        RemoteSet(NamedCacheClient('numbers', server))  # type: ignore[abstract]


@pytest.mark.asyncio
async def test_filtered_views_are_one_shot(session: Session, server: FakeCacheServer) -> None:
    """Test that filtered views use a single stream without paging."""
    cache = await fill(session, 6)
    server.requests.clear()

    view = cache.key_set(Filters.greater(Extractors.identity(), 10))
    cursor = view.iterate()
    assert not cursor.paged

    keys = [key async for key in cursor]
    assert sorted(keys) == [4, 5]
    assert len(server.requests) == 1
    assert isinstance(server.requests[0], KeySetRequest)


@pytest.mark.asyncio
async def test_sorted_views(session: Session) -> None:
    """Test ordered entry and value views."""
    cache = await fill(session, 4)
    ascending = Comparators.extract(Extractors.identity())

    values = await cache.values(comparator=ascending.reversed()).to_list()
    assert values == [9, 4, 1, 0]

    entries = await cache.entry_set(Filters.less(Extractors.identity(), 5), ascending).to_list()
    assert [e.key for e in entries] == [0, 1, 2]


@pytest.mark.asyncio
async def test_view_queries(session: Session) -> None:
    """Test size, emptiness, membership and clearing through views."""
    cache = await fill(session, 5)
    big = cache.values(Filters.greater_equals(Extractors.identity(), 4))

    assert await cache.key_set().size() == 5
    assert await big.size() == 3
    assert not await big.is_empty()
    assert await big.contains(16)
    assert not await big.contains(1)
    assert await cache.key_set().contains(3)
    assert await cache.entry_set().contains(CacheEntry(2, 4))
    assert not await cache.entry_set().contains(CacheEntry(2, 5))

    await big.clear()
    assert sorted(await cache.key_set().to_list()) == [0, 1]
    assert await big.is_empty()

    await cache.key_set().clear()
    assert await cache.is_empty()


@pytest.mark.asyncio
async def test_stream_failure_mid_page() -> None:
    """Test that a stream error fails the cursor and closes the stream."""
    error = TransportError('connection reset', 'numbers')
    transport = ScriptedTransport(streams=[[encode('next'), encode(1), error]])
    cache = NamedCacheClient('numbers', transport)
    cursor = cache.key_set().iterate()

    assert await anext(cursor) == 1
    with pytest.raises(TransportError, match='connection reset'):
        await anext(cursor)

    assert cursor.state == CursorState.FAILED
    assert transport.closed_streams == transport.opened_streams == 1
    with pytest.raises(StopAsyncIteration):
        await anext(cursor)


@pytest.mark.asyncio
async def test_decode_failure_stops_iteration() -> None:
    """Test that an undecodable element fails the cursor."""
    transport = ScriptedTransport(streams=[[b'', encode(1), b'garbage', encode(3)]])
    cache = NamedCacheClient('numbers', transport)
    cursor = cache.key_set().iterate()

    assert await anext(cursor) == 1
    with pytest.raises(DecodeError):
        await anext(cursor)
    assert cursor.state == CursorState.FAILED
    assert transport.closed_streams == 1


@pytest.mark.asyncio
async def test_cookie_is_passed_to_next_page() -> None:
    """Test that the cookie of a page is sent with the next page request."""
    transport = ScriptedTransport(streams=[
        [EntryResult(cookie=b'page-2'), EntryResult(encode('a'), encode(1))],
        [EntryResult(cookie=b''), EntryResult(encode('b'), encode(2))],
    ])
    cache = NamedCacheClient('letters', transport)

    entries = await cache.entry_set().to_list()

    assert entries == [CacheEntry('a', 1), CacheEntry('b', 2)]
    assert [r.cookie for r in transport.requests] == [b'', b'page-2']


@pytest.mark.asyncio
async def test_empty_page_with_cookie_continues() -> None:
    """Test that a page without elements but with a cookie is not the end."""
    transport = ScriptedTransport(streams=[
        [b'more'],
        [b'', encode('x')],
    ])
    stream = PagedStream(
        lambda cookie: transport.send_stream(cookie),  # type: ignore[arg-type]
        NamedCacheClient('c', transport).decode,
        cookie_of=lambda message: message or None,
    )

    assert [item async for item in stream] == ['x']
    assert transport.requests == [None, b'more']
    assert stream.pages == 2
