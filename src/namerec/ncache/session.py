"""Session: registry of named cache clients sharing one transport."""

from types import TracebackType

import structlog

from namerec.ncache.client import NamedCacheClient
from namerec.ncache.core.exceptions import NCacheError
from namerec.ncache.core.logging_config import configure_logging
from namerec.ncache.core.settings import SessionSettings
from namerec.ncache.serialization import JsonSerializer
from namerec.ncache.serialization import Serializer
from namerec.ncache.transport import Transport

logger = structlog.get_logger(__name__)

# Serializers available by format name
SERIALIZERS: dict[str, type[JsonSerializer]] = {
    'json': JsonSerializer,
}


class Session:
    """
    Registry of named cache clients.

    Maps cache names to active clients: acquiring a name twice returns the
    same client until it is released.
    """

    def __init__(
        self,
        transport: Transport,
        serializer: Serializer | None = None,
        settings: SessionSettings | None = None,
    ) -> None:
        """
        Initialize session.

        Args:
            transport: Transport shared by every cache of the session
            serializer: Codec for keys, values and expressions; chosen by
                ``settings.format`` when omitted
            settings: Session settings (loaded from NCACHE_* environment variables when omitted)

        Raises:
            NCacheError: If the configured format has no serializer
        """
        self.settings = settings or SessionSettings()
        if self.settings.configure_logging:
            configure_logging(self.settings.log_level)
        self.transport = transport
        self.serializer = serializer or _serializer_for(self.settings.format)
        self._caches: dict[str, NamedCacheClient] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the session has been closed."""
        return self._closed

    @property
    def caches(self) -> dict[str, NamedCacheClient]:
        """Snapshot of the active clients by cache name."""
        return dict(self._caches)

    def get_cache(self, name: str) -> NamedCacheClient:
        """
        Acquire the client for cache ``name``.

        Args:
            name: Cache name

        Returns:
            Active client (the same instance until released)

        Raises:
            NCacheError: If the session is closed or the name is empty
        """
        if self._closed:
            msg = 'Session is closed'
            raise NCacheError(msg, name)
        if not name:
            msg = 'Cache name must not be empty'
            raise NCacheError(msg)

        cache = self._caches.get(name)
        if cache is None:
            cache = NamedCacheClient(name, self.transport, self.serializer, on_release=self._forget)
            self._caches[name] = cache
            logger.debug('Cache acquired', cache=name, format=self.serializer.format)
        return cache

    def release(self, cache: NamedCacheClient) -> None:
        """
        Release ``cache``; the next get_cache() for its name creates a new client.

        Args:
            cache: Client obtained from this session
        """
        cache.release()

    def _forget(self, cache: NamedCacheClient) -> None:
        # Only drop the registration if it still points to this client
        if self._caches.get(cache.cache_name) is cache:
            del self._caches[cache.cache_name]

    async def close(self) -> None:
        """Release every active client and refuse new ones."""
        if self._closed:
            return
        for cache in list(self._caches.values()):
            cache.release()
        self._closed = True
        logger.debug('Session closed')

    async def __aenter__(self) -> 'Session':
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


def _serializer_for(format: str) -> Serializer:  # noqa: A002
    serializer_class = SERIALIZERS.get(format.lower())
    if serializer_class is None:
        msg = f'Unsupported serializer format: {format}'
        raise NCacheError(msg)
    return serializer_class()
