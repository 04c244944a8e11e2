"""
Lazily consumed views over server-streamed keys, entries and values.

A whole-cache view pages through the cache: each page is one server stream
whose first message carries the cookie for the next page. A filtered view is
a single one-shot stream. Either way elements are decoded one at a time, as
they arrive, and every new iteration issues a fresh first request.
"""

from abc import ABC
from abc import abstractmethod
from collections.abc import AsyncIterator
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
from typing import Any
from typing import Generic
from typing import TypeVar

import structlog

from namerec.ncache.expression.aggregators import Aggregators
from namerec.ncache.expression.comparators import Comparator
from namerec.ncache.expression.filters import AlwaysFilter
from namerec.ncache.expression.filters import Filter
from namerec.ncache.expression.processors import Processors
from namerec.ncache.messages import Entry
from namerec.ncache.messages import EntryResult

if TYPE_CHECKING:
    from namerec.ncache.client import NamedCacheClient

logger = structlog.get_logger(__name__)

T = TypeVar('T')


class CursorState(str, Enum):
    """State of a PagedStream cursor."""

    NOT_STARTED = 'not_started'
    AWAITING_PAGE = 'awaiting_page'
    YIELDING = 'yielding'
    EXHAUSTED = 'exhausted'
    FAILED = 'failed'


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Decoded cache entry."""

    key: Any
    value: Any


class PagedStream(Generic[T]):
    """
    Pull cursor over one or more server streams.

    The cursor requests a page, yields its decoded elements, and only after
    the page's stream completes requests the next page with the cookie the
    page started with. An absent or empty cookie ends the enumeration. A
    stream or decode error, or cancellation of the consuming task, closes the
    current stream, moves the cursor to FAILED and is re-raised; nothing more
    is produced afterwards.

    Not safe for concurrent consumption.
    """

    def __init__(
        self,
        open_page: Callable[[bytes | None], AsyncIterator[Any]],
        decode: Callable[[Any], T],
        cookie_of: Callable[[Any], bytes | None] | None = None,
        name: str = '',
    ) -> None:
        """
        Initialize paged stream.

        Args:
            open_page: Opens the stream for a page; receives the cookie (None for the first page)
            decode: Decodes one element message
            cookie_of: Extracts the cookie from a page's first message; None for a
                one-shot stream without cookies
            name: Label used in log events
        """
        self._open_page = open_page
        self._decode = decode
        self._cookie_of = cookie_of
        self._name = name
        self._state = CursorState.NOT_STARTED
        self._stream: AsyncIterator[Any] | None = None
        self._cookie: bytes | None = None
        self._pages = 0

    @property
    def state(self) -> CursorState:
        """Current cursor state."""
        return self._state

    @property
    def paged(self) -> bool:
        """Whether the stream continues across pages with cookies."""
        return self._cookie_of is not None

    @property
    def pages(self) -> int:
        """Number of pages requested so far."""
        return self._pages

    def __aiter__(self) -> 'PagedStream[T]':
        return self

    async def __anext__(self) -> T:
        while True:
            match self._state:
                case CursorState.EXHAUSTED | CursorState.FAILED:
                    raise StopAsyncIteration
                case CursorState.NOT_STARTED | CursorState.AWAITING_PAGE:
                    await self._open()
                case CursorState.YIELDING:
                    element = await self._next_element()
                    if element is not _PAGE_END:
                        return element

    async def _open(self) -> None:
        cookie = self._cookie if self._state == CursorState.AWAITING_PAGE else None
        self._state = CursorState.AWAITING_PAGE
        self._pages += 1
        logger.debug('Requesting page', stream=self._name, page=self._pages, cookie=cookie)
        try:
            self._stream = self._open_page(cookie)
            if self.paged:
                header = await self._read()
                if header is _PAGE_END:
                    # Empty page without a cookie: nothing more to read
                    self._cookie = None
                    await self._finish_page()
                    return
                self._cookie = self._cookie_of(header)  # type: ignore[misc]
        except BaseException as e:
            await self._fail(e)
            raise
        self._state = CursorState.YIELDING

    async def _next_element(self) -> Any:  # noqa: ANN401
        try:
            message = await self._read()
            if message is _PAGE_END:
                await self._finish_page()
                return _PAGE_END
            return self._decode(message)
        except BaseException as e:
            await self._fail(e)
            raise

    async def _read(self) -> Any:  # noqa: ANN401
        try:
            return await anext(self._stream)  # type: ignore[arg-type]
        except StopAsyncIteration:
            return _PAGE_END

    async def _finish_page(self) -> None:
        await self._close_stream()
        if self.paged and self._cookie:
            self._state = CursorState.AWAITING_PAGE
        else:
            self._state = CursorState.EXHAUSTED
            logger.debug('Stream exhausted', stream=self._name, pages=self._pages)

    async def _fail(self, error: BaseException) -> None:
        self._state = CursorState.FAILED
        logger.debug('Stream failed', stream=self._name, page=self._pages, error=repr(error))
        await self._close_stream()

    async def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        aclose: Callable[[], Awaitable[None]] | None = getattr(stream, 'aclose', None)
        if aclose is not None:
            await aclose()

    async def aclose(self) -> None:
        """Abandon the iteration and release the underlying stream."""
        if self._state in (CursorState.AWAITING_PAGE, CursorState.YIELDING):
            logger.debug('Abandoning stream', stream=self._name, page=self._pages)
        if self._state != CursorState.FAILED:
            self._state = CursorState.EXHAUSTED
        await self._close_stream()

    async def __aenter__(self) -> 'PagedStream[T]':
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


# Marks the end of a page's stream
_PAGE_END: Any = object()


class RemoteSet(ABC, Generic[T]):
    """
    Base of the key, entry and value views of a cache.

    A view, not a snapshot: every iteration and query goes to the server.
    """

    def __init__(
        self,
        client: 'NamedCacheClient',
        filter: Filter | None = None,  # noqa: A002
        comparator: Comparator | None = None,
    ) -> None:
        """
        Initialize remote set.

        Args:
            client: Cache client used to issue requests (not owned)
            filter: Filter scoping the view; None for the whole cache
            comparator: Ordering for entry and value views
        """
        self.client = client
        self.filter = filter
        self.comparator = comparator

    @property
    def filtered(self) -> bool:
        """Whether the view is a one-shot query rather than a paged scan."""
        return self.filter is not None or self.comparator is not None

    @abstractmethod
    def iterate(self) -> PagedStream[T]:
        """
        Start a new iteration.

        Returns:
            Fresh cursor; it does not resume any earlier iteration
        """

    async def __aiter__(self) -> AsyncIterator[T]:
        # Leaving the loop early closes the cursor and its open stream
        async with self.iterate() as cursor:
            async for item in cursor:
                yield item

    async def to_list(self) -> list[T]:
        """Materialize the view."""
        async with self.iterate() as cursor:
            return [item async for item in cursor]

    async def size(self) -> int:
        """Number of entries in the view."""
        if self.filter is None:
            return await self.client.size()
        return await self.client.aggregate(Aggregators.count(), self.filter)

    async def is_empty(self) -> bool:
        """Whether the view holds no entry."""
        if self.filter is None:
            return await self.client.is_empty()
        return await self.size() == 0

    async def clear(self) -> None:
        """Remove every entry of the view from the cache."""
        if self.filter is None:
            await self.client.clear()
            return
        await self.client.invoke_all(Processors.remove(), self.filter)

    async def contains(self, item: T) -> bool:
        """Whether ``item`` belongs to the view."""
        async with self.iterate() as cursor:
            async for element in cursor:
                if element == item:
                    return True
        return False

    def _one_shot_filter(self) -> Filter:
        return self.filter if self.filter is not None else AlwaysFilter()


class KeySet(RemoteSet[Any]):
    """Keys of the cache, or of the entries matching a filter."""

    def iterate(self) -> PagedStream[Any]:
        """Start a new iteration over the keys."""
        client = self.client
        if self.filter is None:
            return PagedStream(
                client.next_key_set_page,
                client.decode_key,
                cookie_of=_bytes_cookie,
                name=f'{client.cache_name}:keys',
            )
        request = client.requests.key_set(self.filter)
        return PagedStream(
            lambda _: client.open_stream(request),
            client.decode_key,
            name=f'{client.cache_name}:keys(filter)',
        )

    async def contains(self, item: Any) -> bool:  # noqa: ANN401
        """Whether ``item`` is a key of the view."""
        if self.filter is None:
            return await self.client.contains_key(item)
        return await super().contains(item)


class EntrySet(RemoteSet[CacheEntry]):
    """Entries of the cache, or the entries matching a filter (optionally ordered)."""

    def iterate(self) -> PagedStream[CacheEntry]:
        """Start a new iteration over the entries."""
        client = self.client
        if not self.filtered:
            return PagedStream(
                client.next_entry_set_page,
                client.decode_entry,
                cookie_of=_entry_cookie,
                name=f'{client.cache_name}:entries',
            )
        request = client.requests.entry_set(self._one_shot_filter(), self.comparator)
        return PagedStream(
            lambda _: client.open_stream(request),
            client.decode_entry,
            name=f'{client.cache_name}:entries(filter)',
        )

    async def contains(self, item: CacheEntry) -> bool:
        """Whether the view holds an entry equal to ``item``."""
        if self.filter is None:
            return await self.client.contains_entry(item.key, item.value)
        return await super().contains(item)


class ValueSet(RemoteSet[Any]):
    """Values of the cache, or of the entries matching a filter (optionally ordered)."""

    def iterate(self) -> PagedStream[Any]:
        """Start a new iteration over the values."""
        client = self.client
        if not self.filtered:
            return PagedStream(
                client.next_entry_set_page,
                lambda message: client.decode(message.value),
                cookie_of=_entry_cookie,
                name=f'{client.cache_name}:values',
            )
        request = client.requests.values(self._one_shot_filter(), self.comparator)
        return PagedStream(
            lambda _: client.open_stream(request),
            client.decode,
            name=f'{client.cache_name}:values(filter)',
        )

    async def contains(self, item: Any) -> bool:  # noqa: ANN401
        """Whether any entry of the view holds ``item``."""
        if self.filter is None:
            return await self.client.contains_value(item)
        return await super().contains(item)


def _bytes_cookie(message: bytes) -> bytes | None:
    return message or None


def _entry_cookie(message: EntryResult | Entry) -> bytes | None:
    return getattr(message, 'cookie', b'') or None
