"""Tests for sessions, settings and logging setup."""

import logging

import pytest
import structlog
from structlog.testing import capture_logs
from fake_server import FakeCacheServer

from namerec.ncache import CacheReleasedError
from namerec.ncache import JsonSerializer
from namerec.ncache import NCacheError
from namerec.ncache import Session
from namerec.ncache import SessionSettings
from namerec.ncache import Transport
from namerec.ncache import configure_logging


@pytest.fixture
def restore_logging():  # noqa: ANN201
    """Undo logging configuration made by a test."""
    yield
    structlog.reset_defaults()
    package_logger = logging.getLogger('namerec.ncache')
    package_logger.handlers = []
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


def test_fake_server_is_a_transport(server: FakeCacheServer) -> None:
    """Test that the in-memory server satisfies the transport protocol."""
    assert isinstance(server, Transport)


@pytest.mark.asyncio
async def test_get_cache_returns_same_client(session: Session) -> None:
    """Test that a cache name maps to one active client."""
    first = session.get_cache('people')
    assert session.get_cache('people') is first
    assert session.get_cache('orders') is not first
    assert set(session.caches) == {'people', 'orders'}
    assert first.format == 'json'


@pytest.mark.asyncio
async def test_release_forgets_client(session: Session) -> None:
    """Test that a released name yields a new client."""
    first = session.get_cache('people')
    session.release(first)

    assert first.released
    assert 'people' not in session.caches
    second = session.get_cache('people')
    assert second is not first
    assert not second.released

    # Releasing a stale handle leaves the new registration alone
    first.release()
    assert session.caches['people'] is second


@pytest.mark.asyncio
async def test_session_shares_serializer(server: FakeCacheServer) -> None:
    """Test that an explicit serializer is used by every client."""
    serializer = JsonSerializer()
    session = Session(server, serializer=serializer)
    assert session.get_cache('a').serializer is serializer
    await session.close()


@pytest.mark.asyncio
async def test_invalid_cache_name(session: Session) -> None:
    """Test that an empty cache name is rejected."""
    with pytest.raises(NCacheError, match='empty'):
        session.get_cache('')


@pytest.mark.asyncio
async def test_close_releases_everything(server: FakeCacheServer) -> None:
    """Test that closing a session releases its clients."""
    async with Session(server) as session:
        cache = session.get_cache('people')
        await cache.put('k', 'v')

    assert session.closed
    assert cache.released
    assert session.caches == {}
    with pytest.raises(CacheReleasedError):
        await cache.get('k')
    with pytest.raises(NCacheError, match='closed'):
        session.get_cache('people')

    # Closing twice is harmless
    await session.close()


@pytest.mark.asyncio
async def test_data_survives_release(session: Session) -> None:
    """Test that releasing a client does not touch the remote cache."""
    cache = session.get_cache('people')
    await cache.put('k', 'v')
    cache.release()

    assert await session.get_cache('people').get('k') == 'v'


@pytest.mark.asyncio
async def test_released_use_is_logged(session: Session) -> None:
    """Test that using a released client logs a warning."""
    cache = session.get_cache('people')
    cache.release()

    with capture_logs() as logs:
        with pytest.raises(CacheReleasedError):
            await cache.size()

    assert {'event': 'Cache used after release', 'cache': 'people', 'log_level': 'warning'} in logs


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that settings are read from NCACHE_* variables."""
    monkeypatch.setenv('NCACHE_FORMAT', 'JSON')
    monkeypatch.setenv('NCACHE_LOG_LEVEL', 'DEBUG')

    settings = SessionSettings()
    assert settings.format == 'JSON'
    assert settings.log_level == 'DEBUG'
    assert settings.configure_logging is False


def test_unsupported_format(server: FakeCacheServer) -> None:
    """Test that a format without a serializer is rejected."""
    with pytest.raises(NCacheError, match='Unsupported serializer format: pof'):
        Session(server, settings=SessionSettings(format='pof'))

    assert Session(server, settings=SessionSettings(format='JSON')).serializer.format == 'json'


@pytest.mark.usefixtures('restore_logging')
def test_configure_logging() -> None:
    """Test that the package logger gets a single stdout handler."""
    configure_logging('debug')
    configure_logging('DEBUG')

    package_logger = logging.getLogger('namerec.ncache')
    assert package_logger.level == logging.DEBUG
    assert len(package_logger.handlers) == 1
    assert not package_logger.propagate


@pytest.mark.usefixtures('restore_logging')
def test_session_configures_logging(server: FakeCacheServer) -> None:
    """Test that a session configures logging when asked to."""
    Session(server, settings=SessionSettings(configure_logging=True, log_level='WARNING'))
    assert logging.getLogger('namerec.ncache').level == logging.WARNING
