"""Named cache client: the asynchronous face of one remote cache."""

from collections.abc import AsyncIterator
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any

import structlog

from namerec.ncache.core.exceptions import CacheReleasedError
from namerec.ncache.expression.aggregators import EntryAggregator
from namerec.ncache.expression.base import hashable_key
from namerec.ncache.expression.comparators import Comparator
from namerec.ncache.expression.extractors import ExtractorLike
from namerec.ncache.expression.extractors import Extractors
from namerec.ncache.expression.filters import Filter
from namerec.ncache.expression.processors import EntryProcessor
from namerec.ncache.messages import CacheRequest
from namerec.ncache.messages import Entry
from namerec.ncache.messages import EntryResult
from namerec.ncache.messages import OptionalValue
from namerec.ncache.request_factory import RequestFactory
from namerec.ncache.request_factory import Scope
from namerec.ncache.request_factory import ScopeKind
from namerec.ncache.serialization import JsonSerializer
from namerec.ncache.serialization import Serializer
from namerec.ncache.streamed_collection import CacheEntry
from namerec.ncache.streamed_collection import EntrySet
from namerec.ncache.streamed_collection import KeySet
from namerec.ncache.streamed_collection import PagedStream
from namerec.ncache.streamed_collection import ValueSet
from namerec.ncache.transport import Transport

logger = structlog.get_logger(__name__)


class NamedCacheClient:
    """
    Client for one named cache.

    Every operation is a single awaited wire call; nothing is queued,
    coalesced or retried, and transport, server and decode errors reach the
    caller unchanged. A client may be shared by concurrent tasks.

    Usually obtained from Session.get_cache().
    """

    def __init__(
        self,
        cache_name: str,
        transport: Transport,
        serializer: Serializer | None = None,
        on_release: Callable[['NamedCacheClient'], None] | None = None,
    ) -> None:
        """
        Initialize cache client.

        Args:
            cache_name: Name of the remote cache
            transport: Transport carrying the requests
            serializer: Codec for keys, values and expressions (JsonSerializer by default)
            on_release: Called once when the client is released
        """
        self.cache_name = cache_name
        self.transport = transport
        self.serializer: Serializer = serializer or JsonSerializer()
        self._requests = RequestFactory(cache_name, self.serializer)
        self._on_release = on_release
        self._released = False

    def __repr__(self) -> str:
        state = 'released' if self._released else 'active'
        return f'NamedCacheClient({self.cache_name!r}, {state})'

    @property
    def requests(self) -> RequestFactory:
        """Request factory bound to this cache."""
        return self._requests

    @property
    def format(self) -> str:
        """Serializer format sent with every request."""
        return self.serializer.format

    @property
    def released(self) -> bool:
        """Whether the client has been released."""
        return self._released

    # =====================================================================
    # Plumbing
    # =====================================================================

    def _check_active(self) -> None:
        if self._released:
            logger.warning('Cache used after release', cache=self.cache_name)
            raise CacheReleasedError(self.cache_name)

    async def _send(self, request: CacheRequest) -> Any:  # noqa: ANN401
        self._check_active()
        logger.debug('Sending request', cache=self.cache_name, request=type(request).__name__)
        return await self.transport.send_unary(request)

    def open_stream(self, request: CacheRequest) -> AsyncIterator[Any]:
        """
        Send a streaming request.

        Args:
            request: Request answered with a stream

        Returns:
            Transport stream of result messages

        Raises:
            CacheReleasedError: If the client has been released
        """
        self._check_active()
        logger.debug('Opening stream', cache=self.cache_name, request=type(request).__name__)
        return self.transport.send_stream(request)

    def decode(self, data: bytes) -> Any:  # noqa: ANN401
        """Decode a value; empty bytes decode to None."""
        return self.serializer.deserialize(data)

    def decode_key(self, data: bytes) -> Any:  # noqa: ANN401
        """Decode a key; keys sent as tuples come back as tuples so they stay hashable."""
        return hashable_key(self.decode(data))

    def decode_entry(self, message: Entry | EntryResult) -> CacheEntry:
        """Decode an entry message."""
        return CacheEntry(self.decode_key(message.key), self.decode(message.value))

    async def _collect(self, request: CacheRequest) -> dict[Any, Any]:
        stream = PagedStream(lambda _: self.open_stream(request), self.decode_entry, name=self.cache_name)
        async with stream:
            return {entry.key: entry.value async for entry in stream}

    # =====================================================================
    # Map operations
    # =====================================================================

    async def get(self, key: Any) -> Any:  # noqa: ANN401
        """
        Get the value mapped to ``key``.

        Args:
            key: Key

        Returns:
            Value, or None when there is no mapping
        """
        result: OptionalValue = await self._send(self._requests.get(key))
        return self.decode(result.value) if result.present else None

    async def get_or_default(self, key: Any, default: Any = None) -> Any:  # noqa: ANN401
        """
        Get the value mapped to ``key``, or ``default`` when there is no mapping.

        A key explicitly mapped to null yields None, not ``default``.
        """
        result: OptionalValue = await self._send(self._requests.get(key))
        return self.decode(result.value) if result.present else default

    async def get_all(self, keys: Iterable[Any]) -> dict[Any, Any]:
        """
        Get the values mapped to ``keys``.

        Args:
            keys: Keys to look up

        Returns:
            Values by key for the keys that have a mapping, in arrival order
        """
        keys = list(keys)
        if not keys:
            return {}
        return await self._collect(self._requests.get_all(keys))

    async def put(self, key: Any, value: Any, ttl: int = 0) -> Any:  # noqa: ANN401
        """
        Map ``key`` to ``value``.

        Args:
            key: Key
            value: Value
            ttl: Time-to-live in milliseconds (0 = cache default)

        Returns:
            Previous value, or None
        """
        return self.decode(await self._send(self._requests.put(key, value, ttl)))

    async def put_all(self, entries: Mapping[Any, Any], ttl: int = 0) -> None:
        """
        Store all ``entries``.

        Args:
            entries: Values by key
            ttl: Time-to-live in milliseconds (0 = cache default)
        """
        if not entries:
            return
        await self._send(self._requests.put_all(entries, ttl))

    async def put_if_absent(self, key: Any, value: Any, ttl: int = 0) -> Any:  # noqa: ANN401
        """
        Map ``key`` to ``value`` unless a mapping exists.

        Returns:
            Existing value (left in place), or None if ``value`` was stored
        """
        return self.decode(await self._send(self._requests.put_if_absent(key, value, ttl)))

    async def remove(self, key: Any) -> Any:  # noqa: ANN401
        """
        Remove the mapping for ``key``.

        Returns:
            Removed value, or None
        """
        return self.decode(await self._send(self._requests.remove(key)))

    async def remove_mapping(self, key: Any, value: Any) -> bool:  # noqa: ANN401
        """Remove the mapping for ``key`` only if it maps to ``value``."""
        return bool(await self._send(self._requests.remove_mapping(key, value)))

    async def replace(self, key: Any, value: Any) -> Any:  # noqa: ANN401
        """
        Replace the mapping for ``key`` only if one exists.

        Returns:
            Previous value, or None (nothing stored)
        """
        return self.decode(await self._send(self._requests.replace(key, value)))

    async def replace_mapping(self, key: Any, previous_value: Any, new_value: Any) -> bool:  # noqa: ANN401
        """Replace the mapping for ``key`` only if it maps to ``previous_value``."""
        return bool(await self._send(self._requests.replace_mapping(key, previous_value, new_value)))

    async def contains_key(self, key: Any) -> bool:  # noqa: ANN401
        """Whether ``key`` has a mapping."""
        return bool(await self._send(self._requests.contains_key(key)))

    async def contains_value(self, value: Any) -> bool:  # noqa: ANN401
        """Whether any key maps to ``value``."""
        return bool(await self._send(self._requests.contains_value(value)))

    async def contains_entry(self, key: Any, value: Any) -> bool:  # noqa: ANN401
        """Whether ``key`` maps to ``value``."""
        return bool(await self._send(self._requests.contains_entry(key, value)))

    async def clear(self) -> None:
        """Remove every mapping."""
        await self._send(self._requests.clear())

    async def truncate(self) -> None:
        """Remove every mapping without raising per-entry events."""
        await self._send(self._requests.truncate())

    async def size(self) -> int:
        """Number of mappings."""
        return int(await self._send(self._requests.size()))

    async def is_empty(self) -> bool:
        """Whether the cache holds no mapping."""
        return bool(await self._send(self._requests.is_empty()))

    # =====================================================================
    # Indexes
    # =====================================================================

    async def add_index(
        self,
        extractor: ExtractorLike,
        sorted: bool = False,  # noqa: A002
        comparator: Comparator | None = None,
    ) -> None:
        """
        Create an index on the values produced by ``extractor``.

        Args:
            extractor: Extractor or property path
            sorted: Keep the index ordered
            comparator: Ordering of a sorted index (natural order when omitted)
        """
        await self._send(self._requests.add_index(Extractors.extract(extractor), sorted, comparator))

    async def remove_index(self, extractor: ExtractorLike) -> None:
        """Drop the index on ``extractor``."""
        await self._send(self._requests.remove_index(Extractors.extract(extractor)))

    # =====================================================================
    # Processing and aggregation
    # =====================================================================

    async def invoke(self, key: Any, processor: EntryProcessor) -> Any:  # noqa: ANN401
        """
        Run ``processor`` against the entry for ``key``.

        Args:
            key: Key of the entry
            processor: Entry processor

        Returns:
            Processor result; a list in leaf order for a composite processor
        """
        return self.decode(await self._send(self._requests.invoke(key, processor)))

    async def invoke_all(self, processor: EntryProcessor, keys_or_filter: Any = None) -> dict[Any, Any]:  # noqa: ANN401
        """
        Run ``processor`` against many entries.

        Args:
            processor: Entry processor
            keys_or_filter: Keys, a filter, or None for every entry

        Returns:
            Results by key, in arrival order
        """
        scope = Scope.from_target(keys_or_filter)
        if scope.kind == ScopeKind.KEYS and not scope.keys:
            return {}
        return await self._collect(self._requests.invoke_all(processor, scope))

    async def aggregate(self, aggregator: EntryAggregator, keys_or_filter: Any = None) -> Any:  # noqa: ANN401
        """
        Run ``aggregator`` over many entries.

        Args:
            aggregator: Aggregator
            keys_or_filter: Keys, a filter, or None for every entry

        Returns:
            Aggregation result (min/max/sum/average over nothing give None)
        """
        scope = Scope.from_target(keys_or_filter)
        if scope.kind == ScopeKind.KEYS and not scope.keys:
            return aggregator.finish(None)
        raw = self.decode(await self._send(self._requests.aggregate(aggregator, scope)))
        return aggregator.finish(raw)

    # =====================================================================
    # Views and paging
    # =====================================================================

    def key_set(self, filter: Filter | None = None) -> KeySet:  # noqa: A002
        """
        View of the keys.

        Args:
            filter: Scope the view to matching entries (one-shot stream);
                None pages through the whole cache

        Returns:
            KeySet
        """
        return KeySet(self, filter)

    def entry_set(self, filter: Filter | None = None, comparator: Comparator | None = None) -> EntrySet:  # noqa: A002
        """
        View of the entries.

        Args:
            filter: Scope the view to matching entries (one-shot stream)
            comparator: Order the entries (one-shot stream)

        Returns:
            EntrySet
        """
        return EntrySet(self, filter, comparator)

    def values(self, filter: Filter | None = None, comparator: Comparator | None = None) -> ValueSet:  # noqa: A002
        """
        View of the values.

        Args:
            filter: Scope the view to matching entries (one-shot stream)
            comparator: Order the values (one-shot stream)

        Returns:
            ValueSet
        """
        return ValueSet(self, filter, comparator)

    def next_key_set_page(self, cookie: bytes | None = None) -> AsyncIterator[bytes]:
        """
        Open the stream of one key page.

        The first message is the cookie of the next page (empty on the last
        page); the following messages are encoded keys.
        """
        return self.open_stream(self._requests.key_set_page(cookie))

    def next_entry_set_page(self, cookie: bytes | None = None) -> AsyncIterator[EntryResult]:
        """
        Open the stream of one entry page.

        The first EntryResult carries the cookie of the next page (empty on
        the last page); the following ones carry encoded entries.
        """
        return self.open_stream(self._requests.entry_set_page(cookie))

    # =====================================================================
    # Lifecycle
    # =====================================================================

    def release(self) -> None:
        """
        Release the client; later operations raise CacheReleasedError.

        Releasing twice is a no-op.
        """
        if self._released:
            return
        self._released = True
        logger.debug('Cache released', cache=self.cache_name)
        if self._on_release is not None:
            self._on_release(self)
