"""NCache exception hierarchy."""

from typing import Any


class NCacheError(Exception):
    """Base exception for named cache client errors."""

    def __init__(self, message: str, cache_name: str | None = None) -> None:
        """
        Initialize NCache exception.

        Args:
            message: Error message
            cache_name: Optional cache name context
        """
        self.cache_name = cache_name
        super().__init__(message)


class ExpressionError(NCacheError, ValueError):
    """Raised when an expression tree is built with invalid arguments."""

    def __init__(self, message: str, path: str | None = None) -> None:
        """
        Initialize ExpressionError.

        Args:
            message: Error message
            path: Path in the expression tree where the error occurred (e.g., 'filters[1].extractor')
        """
        self.path = path
        if path:
            super().__init__(f'{message} (at {path})')
        else:
            super().__init__(message)


class TransportError(NCacheError):
    """Connection or stream failure reported by a transport."""

    def __init__(
        self,
        message: str,
        cache_name: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize transport error.

        Args:
            message: Error message
            cache_name: Optional cache name context
            original_error: Underlying exception raised by the channel
        """
        self.original_error = original_error
        super().__init__(message, cache_name)


class ServerError(NCacheError):
    """Failure reported by the cache server, carried verbatim."""

    def __init__(
        self,
        message: str,
        cache_name: str | None = None,
        code: str | None = None,
    ) -> None:
        """
        Initialize server error.

        Args:
            message: Message as reported by the server
            cache_name: Optional cache name context
            code: Optional server status code
        """
        self.code = code
        super().__init__(message, cache_name)


class DecodeError(NCacheError):
    """A payload returned by the server could not be decoded."""

    def __init__(self, message: str, payload: Any = None) -> None:
        """
        Initialize decode error.

        Args:
            message: Error message
            payload: Offending payload
        """
        self.payload = payload
        super().__init__(message)


class CacheReleasedError(NCacheError):
    """Operation attempted on a released cache handle."""

    def __init__(self, cache_name: str, message: str | None = None) -> None:
        """
        Initialize released cache error.

        Args:
            cache_name: Cache name
            message: Optional custom message
        """
        msg = message or f'Cache {cache_name} has been released'
        super().__init__(msg, cache_name)
