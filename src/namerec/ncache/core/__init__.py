"""Core NCache components."""

from namerec.ncache.core.exceptions import (
    CacheReleasedError,
    DecodeError,
    ExpressionError,
    NCacheError,
    ServerError,
    TransportError,
)
from namerec.ncache.core.settings import SessionSettings

__all__ = [
    'NCacheError',
    'ExpressionError',
    'TransportError',
    'ServerError',
    'DecodeError',
    'CacheReleasedError',
    'SessionSettings',
]
