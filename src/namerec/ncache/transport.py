"""Transport protocol consumed by the cache client."""

from collections.abc import AsyncIterator
from typing import Any
from typing import Protocol
from typing import runtime_checkable

from namerec.ncache.messages import CacheRequest


@runtime_checkable
class Transport(Protocol):
    """
    Protocol for request transports.

    Allows structural subtyping - any class implementing these methods can
    carry requests for a session. Connection management, authentication,
    retries and timeouts belong to the implementation; failures are raised
    as TransportError or ServerError and reach the caller unchanged.
    """

    async def send_unary(self, request: CacheRequest) -> Any:  # noqa: ANN401
        """
        Send a request answered with a single result.

        Args:
            request: Request message

        Returns:
            Result message: OptionalValue, bytes, bool, int or None
        """
        ...

    def send_stream(self, request: CacheRequest) -> AsyncIterator[Any]:
        """
        Send a request answered with a stream of results.

        The returned iterator should support ``aclose()`` so an abandoned
        iteration releases the underlying stream.

        Args:
            request: Request message

        Returns:
            Async iterator over result messages
        """
        ...
