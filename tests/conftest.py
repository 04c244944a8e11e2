"""Pytest configuration and fixtures."""

from typing import Any

import pytest
import pytest_asyncio
from fake_server import FakeCacheServer

from namerec.ncache import JsonSerializer
from namerec.ncache import NamedCacheClient
from namerec.ncache import Session
from namerec.ncache import SessionSettings

VAL123: dict[str, Any] = {'id': 123, 'str': '123', 'ival': 123, 'fval': 12.3, 'iarr': [1, 2, 3], 'group': 1}
VAL234: dict[str, Any] = {
    'id': 234, 'str': '234', 'ival': 234, 'fval': 23.4, 'iarr': [2, 3, 4], 'group': 2, 'nullIfOdd': 'non-null',
}
VAL345: dict[str, Any] = {'id': 345, 'str': '345', 'ival': 345, 'fval': 34.5, 'iarr': [3, 4, 5], 'group': 1}
VAL456: dict[str, Any] = {
    'id': 456, 'str': '456', 'ival': 456, 'fval': 45.6, 'iarr': [4, 5, 6], 'group': 2, 'nullIfOdd': 'non-null',
}

NESTED: dict[str, Any] = {
    'To': {'t': {'o': {'word': 'To'}}},
    'TypeScript': {'t': {'y': {'word': 'TypeScript'}}},
    'Trie': {'t': {'r': {'word': 'Trie'}}},
    'Jade': {'j': {'a': {'d': {'word': 'Jade'}}}},
    'JavaScript': {'j': {'a': {'v': {'word': 'JavaScript'}}}},
}


def versioned(value: dict[str, Any], version: int) -> dict[str, Any]:
    """Copy of ``value`` carrying a '@version' field."""
    return {**value, '@version': version}


@pytest.fixture
def server() -> FakeCacheServer:
    """In-memory cache server with two entries per page."""
    return FakeCacheServer(page_size=2)


@pytest.fixture
def serializer() -> JsonSerializer:
    """JSON serializer."""
    return JsonSerializer()


@pytest_asyncio.fixture
async def session(server: FakeCacheServer):  # noqa: ANN201
    """Session over the in-memory server."""
    async with Session(server, settings=SessionSettings(format='json')) as session:
        yield session


@pytest_asyncio.fixture
async def cache(session: Session) -> NamedCacheClient:
    """Cache holding val123..val456 keyed by their ids as strings."""
    cache = session.get_cache('values')
    await cache.put_all({'123': VAL123, '234': VAL234, '345': VAL345, '456': VAL456})
    return cache


@pytest_asyncio.fixture
async def versioned_cache(session: Session) -> NamedCacheClient:
    """Cache holding versioned values (versions 1..4)."""
    cache = session.get_cache('versioned')
    await cache.put_all({
        '123': versioned(VAL123, 1),
        '234': versioned(VAL234, 2),
        '345': versioned(VAL345, 3),
        '456': versioned(VAL456, 4),
    })
    return cache


@pytest_asyncio.fixture
async def nested_cache(session: Session) -> NamedCacheClient:
    """Cache holding nested objects keyed by the word they contain."""
    cache = session.get_cache('nested')
    await cache.put_all(NESTED)
    return cache
