"""Translation of cache operations into wire requests."""

from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from namerec.ncache.core.exceptions import ExpressionError
from namerec.ncache.expression.aggregators import EntryAggregator
from namerec.ncache.expression.comparators import Comparator
from namerec.ncache.expression.extractors import ValueExtractor
from namerec.ncache.expression.filters import Filter
from namerec.ncache.expression.processors import EntryProcessor
from namerec.ncache.messages import AddIndexRequest
from namerec.ncache.messages import AggregateRequest
from namerec.ncache.messages import ClearRequest
from namerec.ncache.messages import ContainsEntryRequest
from namerec.ncache.messages import ContainsKeyRequest
from namerec.ncache.messages import ContainsValueRequest
from namerec.ncache.messages import Entry
from namerec.ncache.messages import EntrySetPageRequest
from namerec.ncache.messages import EntrySetRequest
from namerec.ncache.messages import GetAllRequest
from namerec.ncache.messages import GetRequest
from namerec.ncache.messages import InvokeAllRequest
from namerec.ncache.messages import InvokeRequest
from namerec.ncache.messages import IsEmptyRequest
from namerec.ncache.messages import KeySetPageRequest
from namerec.ncache.messages import KeySetRequest
from namerec.ncache.messages import PutAllRequest
from namerec.ncache.messages import PutIfAbsentRequest
from namerec.ncache.messages import PutRequest
from namerec.ncache.messages import RemoveIndexRequest
from namerec.ncache.messages import RemoveMappingRequest
from namerec.ncache.messages import RemoveRequest
from namerec.ncache.messages import ReplaceMappingRequest
from namerec.ncache.messages import ReplaceRequest
from namerec.ncache.messages import SizeRequest
from namerec.ncache.messages import TruncateRequest
from namerec.ncache.messages import ValuesRequest
from namerec.ncache.serialization import Serializer


class ScopeKind(str, Enum):
    """Which entries a multi-entry operation targets."""

    KEY = 'key'
    KEYS = 'keys'
    FILTER = 'filter'
    ALL = 'all'


@dataclass(frozen=True)
class Scope:
    """
    Resolved target of an operation.

    Exactly one of ``key``, ``keys`` and ``filter`` is meaningful, as given
    by ``kind``; an ALL scope carries none.
    """

    kind: ScopeKind
    key: Any = None
    keys: tuple[Any, ...] = ()
    filter: Filter | None = None

    @classmethod
    def of(
        cls,
        key: Any = None,  # noqa: ANN401
        keys: Iterable[Any] | None = None,
        filter: Filter | None = None,  # noqa: A002
    ) -> 'Scope':
        """
        Resolve scope precedence: single key > key collection > filter > whole cache.

        Args:
            key: Single key
            keys: Key collection
            filter: Filter selecting the entries

        Returns:
            Scope of the highest-precedence argument given

        Examples:
            >>> Scope.of(key=1, keys=[2, 3]).kind
            <ScopeKind.KEY: 'key'>
            >>> Scope.of().kind
            <ScopeKind.ALL: 'all'>
        """
        if key is not None:
            return cls(ScopeKind.KEY, key=key)
        if keys is not None:
            return cls(ScopeKind.KEYS, keys=tuple(keys))
        if filter is not None:
            return cls(ScopeKind.FILTER, filter=filter)
        return cls(ScopeKind.ALL)

    @classmethod
    def from_target(cls, target: Any) -> 'Scope':  # noqa: ANN401
        """
        Classify a single keys-or-filter argument.

        Args:
            target: None, a filter, a collection of keys or a single key

        Returns:
            Resolved scope
        """
        match target:
            case None:
                return cls.of()
            case Filter():
                return cls.of(filter=target)
            case str() | bytes():
                return cls.of(key=target)
            case Iterable():
                return cls.of(keys=target)
            case _:
                return cls.of(key=target)


class RequestFactory:
    """
    Builds wire requests for one named cache.

    Every request carries the cache name and the serializer format; keys,
    values and expressions are encoded with the serializer.
    """

    def __init__(self, cache_name: str, serializer: Serializer) -> None:
        """
        Initialize request factory.

        Args:
            cache_name: Name of the target cache
            serializer: Codec used for keys, values and expressions
        """
        self.cache_name = cache_name
        self.serializer = serializer

    @property
    def format(self) -> str:
        """Format name sent with every request."""
        return self.serializer.format

    def _encode(self, value: Any) -> bytes:  # noqa: ANN401
        return self.serializer.serialize(value)

    def _encode_optional(self, value: Any) -> bytes:  # noqa: ANN401
        # Absent optional expressions travel as empty bytes
        return b'' if value is None else self._encode(value)

    def _scoped(self, scope: Scope) -> dict[str, Any]:
        match scope.kind:
            case ScopeKind.KEY:
                return {'keys': (self._encode(scope.key),)}
            case ScopeKind.KEYS:
                return {'keys': tuple(self._encode(k) for k in scope.keys)}
            case ScopeKind.FILTER:
                return {'filter': self._encode(scope.filter)}
            case _:
                return {}

    def get(self, key: Any) -> GetRequest:  # noqa: ANN401
        """Build a get request."""
        return GetRequest(self.cache_name, self.format, self._encode(key))

    def get_all(self, keys: Iterable[Any]) -> GetAllRequest:
        """Build a multi-key get request."""
        return GetAllRequest(self.cache_name, self.format, tuple(self._encode(k) for k in keys))

    def put(self, key: Any, value: Any, ttl: int = 0) -> PutRequest:  # noqa: ANN401
        """Build a put request; ttl in milliseconds."""
        return PutRequest(self.cache_name, self.format, self._encode(key), self._encode(value), ttl)

    def put_all(self, entries: Mapping[Any, Any], ttl: int = 0) -> PutAllRequest:
        """Build a multi-entry put request."""
        encoded = tuple(Entry(self._encode(k), self._encode(v)) for k, v in entries.items())
        return PutAllRequest(self.cache_name, self.format, encoded, ttl)

    def put_if_absent(self, key: Any, value: Any, ttl: int = 0) -> PutIfAbsentRequest:  # noqa: ANN401
        """Build a put-if-absent request."""
        return PutIfAbsentRequest(self.cache_name, self.format, self._encode(key), self._encode(value), ttl)

    def remove(self, key: Any) -> RemoveRequest:  # noqa: ANN401
        """Build a remove request."""
        return RemoveRequest(self.cache_name, self.format, self._encode(key))

    def remove_mapping(self, key: Any, value: Any) -> RemoveMappingRequest:  # noqa: ANN401
        """Build a conditional remove request."""
        return RemoveMappingRequest(self.cache_name, self.format, self._encode(key), self._encode(value))

    def replace(self, key: Any, value: Any) -> ReplaceRequest:  # noqa: ANN401
        """Build a replace request."""
        return ReplaceRequest(self.cache_name, self.format, self._encode(key), self._encode(value))

    def replace_mapping(self, key: Any, previous_value: Any, new_value: Any) -> ReplaceMappingRequest:  # noqa: ANN401
        """Build a conditional replace request."""
        return ReplaceMappingRequest(
            self.cache_name,
            self.format,
            self._encode(key),
            self._encode(previous_value),
            self._encode(new_value),
        )

    def contains_key(self, key: Any) -> ContainsKeyRequest:  # noqa: ANN401
        """Build a key lookup request."""
        return ContainsKeyRequest(self.cache_name, self.format, self._encode(key))

    def contains_value(self, value: Any) -> ContainsValueRequest:  # noqa: ANN401
        """Build a value lookup request."""
        return ContainsValueRequest(self.cache_name, self.format, self._encode(value))

    def contains_entry(self, key: Any, value: Any) -> ContainsEntryRequest:  # noqa: ANN401
        """Build an entry lookup request."""
        return ContainsEntryRequest(self.cache_name, self.format, self._encode(key), self._encode(value))

    def clear(self) -> ClearRequest:
        """Build a clear request."""
        return ClearRequest(self.cache_name, self.format)

    def truncate(self) -> TruncateRequest:
        """Build a truncate request."""
        return TruncateRequest(self.cache_name, self.format)

    def size(self) -> SizeRequest:
        """Build a size request."""
        return SizeRequest(self.cache_name, self.format)

    def is_empty(self) -> IsEmptyRequest:
        """Build an emptiness check request."""
        return IsEmptyRequest(self.cache_name, self.format)

    def add_index(
        self,
        extractor: ValueExtractor,
        sorted: bool = False,  # noqa: A002
        comparator: Comparator | None = None,
    ) -> AddIndexRequest:
        """
        Build an index creation request.

        Args:
            extractor: Extractor producing the indexed value
            sorted: Keep the index ordered
            comparator: Ordering for a sorted index (omitted when not given)

        Returns:
            AddIndexRequest
        """
        return AddIndexRequest(
            self.cache_name,
            self.format,
            self._encode(extractor),
            sorted,
            self._encode_optional(comparator),
        )

    def remove_index(self, extractor: ValueExtractor) -> RemoveIndexRequest:
        """Build an index removal request."""
        return RemoveIndexRequest(self.cache_name, self.format, self._encode(extractor))

    def invoke(self, key: Any, processor: EntryProcessor) -> InvokeRequest:  # noqa: ANN401
        """Build a single-entry processor request."""
        return InvokeRequest(self.cache_name, self.format, self._encode(key), self._encode(processor))

    def invoke_all(self, processor: EntryProcessor, scope: Scope) -> InvokeAllRequest:
        """
        Build a multi-entry processor request.

        Args:
            processor: Processor to run
            scope: Entries to run it against

        Returns:
            InvokeAllRequest
        """
        return InvokeAllRequest(self.cache_name, self.format, self._encode(processor), **self._scoped(scope))

    def aggregate(self, aggregator: EntryAggregator, scope: Scope) -> AggregateRequest:
        """
        Build an aggregation request.

        Args:
            aggregator: Aggregator to run
            scope: Entries to aggregate over

        Returns:
            AggregateRequest
        """
        return AggregateRequest(self.cache_name, self.format, self._encode(aggregator), **self._scoped(scope))

    def key_set(self, filter: Filter) -> KeySetRequest:  # noqa: A002
        """Build a one-shot filtered key stream request."""
        return KeySetRequest(self.cache_name, self.format, self._encode(_require_filter(filter)))

    def entry_set(self, filter: Filter, comparator: Comparator | None = None) -> EntrySetRequest:  # noqa: A002
        """Build a one-shot filtered entry stream request."""
        return EntrySetRequest(
            self.cache_name,
            self.format,
            self._encode(_require_filter(filter)),
            self._encode_optional(comparator),
        )

    def values(self, filter: Filter, comparator: Comparator | None = None) -> ValuesRequest:  # noqa: A002
        """Build a one-shot filtered value stream request."""
        return ValuesRequest(
            self.cache_name,
            self.format,
            self._encode(_require_filter(filter)),
            self._encode_optional(comparator),
        )

    def key_set_page(self, cookie: bytes | None = None) -> KeySetPageRequest:
        """
        Build a key page request.

        Args:
            cookie: Cookie of the previous page, None or empty for the first page

        Returns:
            KeySetPageRequest
        """
        return KeySetPageRequest(self.cache_name, self.format, cookie or b'')

    def entry_set_page(self, cookie: bytes | None = None) -> EntrySetPageRequest:
        """
        Build an entry page request.

        Args:
            cookie: Cookie of the previous page, None or empty for the first page

        Returns:
            EntrySetPageRequest
        """
        return EntrySetPageRequest(self.cache_name, self.format, cookie or b'')


def _require_filter(filter: Filter | None) -> Filter:  # noqa: A002
    if not isinstance(filter, Filter):
        msg = f'A filter is required for one-shot streamed queries, got {type(filter).__name__}'
        raise ExpressionError(msg)
    return filter
