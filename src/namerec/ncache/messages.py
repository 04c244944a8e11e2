"""
Wire messages exchanged with the cache server.

Requests are immutable and built fresh for every call. Keys, values and
expressions are carried already encoded by the session serializer; the
``format`` field names that serializer so the server can decode them.
"""

from dataclasses import dataclass


# =========================================================================
# Requests
# =========================================================================


@dataclass(frozen=True, slots=True)
class CacheRequest:
    """Base of every request: the target cache and the payload format."""

    cache: str
    format: str


@dataclass(frozen=True, slots=True)
class GetRequest(CacheRequest):
    """Read the value mapped to ``key``."""

    key: bytes


@dataclass(frozen=True, slots=True)
class GetAllRequest(CacheRequest):
    """Read the entries for ``keys``; answered with a stream of entries."""

    keys: tuple[bytes, ...] = ()


@dataclass(frozen=True, slots=True)
class PutRequest(CacheRequest):
    """Map ``key`` to ``value``; ttl in milliseconds (0 = cache default)."""

    key: bytes
    value: bytes
    ttl: int = 0


@dataclass(frozen=True, slots=True)
class PutAllRequest(CacheRequest):
    """Store several entries at once."""

    entries: tuple['Entry', ...] = ()
    ttl: int = 0


@dataclass(frozen=True, slots=True)
class PutIfAbsentRequest(CacheRequest):
    """Map ``key`` to ``value`` only if no mapping exists."""

    key: bytes
    value: bytes
    ttl: int = 0


@dataclass(frozen=True, slots=True)
class RemoveRequest(CacheRequest):
    """Remove the mapping for ``key``."""

    key: bytes


@dataclass(frozen=True, slots=True)
class RemoveMappingRequest(CacheRequest):
    """Remove the mapping for ``key`` only if it is mapped to ``value``."""

    key: bytes
    value: bytes


@dataclass(frozen=True, slots=True)
class ReplaceRequest(CacheRequest):
    """Replace the mapping for ``key`` only if one exists."""

    key: bytes
    value: bytes


@dataclass(frozen=True, slots=True)
class ReplaceMappingRequest(CacheRequest):
    """Replace the mapping for ``key`` only if it is mapped to ``previous_value``."""

    key: bytes
    previous_value: bytes
    new_value: bytes


@dataclass(frozen=True, slots=True)
class ContainsKeyRequest(CacheRequest):
    """Check for a mapping for ``key``."""

    key: bytes


@dataclass(frozen=True, slots=True)
class ContainsValueRequest(CacheRequest):
    """Check whether any key maps to ``value``."""

    value: bytes


@dataclass(frozen=True, slots=True)
class ContainsEntryRequest(CacheRequest):
    """Check whether ``key`` maps to ``value``."""

    key: bytes
    value: bytes


@dataclass(frozen=True, slots=True)
class ClearRequest(CacheRequest):
    """Remove every mapping (listeners are notified)."""


@dataclass(frozen=True, slots=True)
class TruncateRequest(CacheRequest):
    """Remove every mapping without per-entry events."""


@dataclass(frozen=True, slots=True)
class SizeRequest(CacheRequest):
    """Count the mappings."""


@dataclass(frozen=True, slots=True)
class IsEmptyRequest(CacheRequest):
    """Check whether the cache holds no mapping."""


@dataclass(frozen=True, slots=True)
class AddIndexRequest(CacheRequest):
    """Create an index on ``extractor``; ``comparator`` is empty when not given."""

    extractor: bytes
    sorted: bool = False
    comparator: bytes = b''


@dataclass(frozen=True, slots=True)
class RemoveIndexRequest(CacheRequest):
    """Drop the index on ``extractor``."""

    extractor: bytes


@dataclass(frozen=True, slots=True)
class InvokeRequest(CacheRequest):
    """Run ``processor`` against the entry for ``key``."""

    key: bytes
    processor: bytes


@dataclass(frozen=True, slots=True)
class InvokeAllRequest(CacheRequest):
    """
    Run ``processor`` against many entries; answered with a stream of entries.

    Scope: ``keys`` when not empty, else ``filter`` when not empty, else the
    whole cache.
    """

    processor: bytes
    keys: tuple[bytes, ...] = ()
    filter: bytes = b''


@dataclass(frozen=True, slots=True)
class AggregateRequest(CacheRequest):
    """Run ``aggregator`` over many entries; scoped like InvokeAllRequest."""

    aggregator: bytes
    keys: tuple[bytes, ...] = ()
    filter: bytes = b''


@dataclass(frozen=True, slots=True)
class KeySetRequest(CacheRequest):
    """Stream the keys matching ``filter`` in one call."""

    filter: bytes


@dataclass(frozen=True, slots=True)
class EntrySetRequest(CacheRequest):
    """Stream the entries matching ``filter`` in one call, optionally ordered."""

    filter: bytes
    comparator: bytes = b''


@dataclass(frozen=True, slots=True)
class ValuesRequest(CacheRequest):
    """Stream the values matching ``filter`` in one call, optionally ordered."""

    filter: bytes
    comparator: bytes = b''


@dataclass(frozen=True, slots=True)
class PageRequest(CacheRequest):
    """
    Request one page of a whole-cache enumeration.

    An empty cookie asks for the first page; otherwise it is the cookie
    returned with the previous page.
    """

    cookie: bytes = b''


@dataclass(frozen=True, slots=True)
class KeySetPageRequest(PageRequest):
    """One page of keys: the cookie arrives first, then the keys."""


@dataclass(frozen=True, slots=True)
class EntrySetPageRequest(PageRequest):
    """One page of entries: the first EntryResult carries the cookie."""


# =========================================================================
# Responses
# =========================================================================


@dataclass(frozen=True, slots=True)
class OptionalValue:
    """Result of a get: ``present`` tells an absent mapping from a stored null."""

    present: bool = False
    value: bytes = b''


@dataclass(frozen=True, slots=True)
class Entry:
    """Encoded key/value pair."""

    key: bytes
    value: bytes = b''


@dataclass(frozen=True, slots=True)
class EntryResult:
    """Element of an entry page stream; only the first element of a page carries a cookie."""

    key: bytes = b''
    value: bytes = b''
    cookie: bytes = b''
