"""
NCache - Named Cache client

A Python package for querying and processing remote named caches with
wire-serializable filters, entry processors and aggregators.
"""

from namerec.ncache.client import NamedCacheClient
from namerec.ncache.core.exceptions import CacheReleasedError
from namerec.ncache.core.exceptions import DecodeError
from namerec.ncache.core.exceptions import ExpressionError
from namerec.ncache.core.exceptions import NCacheError
from namerec.ncache.core.exceptions import ServerError
from namerec.ncache.core.exceptions import TransportError
from namerec.ncache.core.logging_config import configure_logging
from namerec.ncache.core.settings import SessionSettings
from namerec.ncache.expression import Aggregators
from namerec.ncache.expression import Comparators
from namerec.ncache.expression import Expression
from namerec.ncache.expression import Extractors
from namerec.ncache.expression import Filters
from namerec.ncache.expression import Processors
from namerec.ncache.messages import Entry
from namerec.ncache.messages import EntryResult
from namerec.ncache.messages import OptionalValue
from namerec.ncache.request_factory import RequestFactory
from namerec.ncache.request_factory import Scope
from namerec.ncache.request_factory import ScopeKind
from namerec.ncache.serialization import JsonSerializer
from namerec.ncache.serialization import Serializer
from namerec.ncache.session import Session
from namerec.ncache.streamed_collection import CacheEntry
from namerec.ncache.streamed_collection import CursorState
from namerec.ncache.streamed_collection import EntrySet
from namerec.ncache.streamed_collection import KeySet
from namerec.ncache.streamed_collection import PagedStream
from namerec.ncache.streamed_collection import ValueSet
from namerec.ncache.transport import Transport

__version__ = '1.0'

__all__ = [
    # Client
    'Session',
    'NamedCacheClient',
    'Transport',
    'SessionSettings',
    'configure_logging',
    # Exceptions
    'NCacheError',
    'ExpressionError',
    'TransportError',
    'ServerError',
    'DecodeError',
    'CacheReleasedError',
    # Expressions
    'Expression',
    'Filters',
    'Extractors',
    'Processors',
    'Aggregators',
    'Comparators',
    # Wire
    'Serializer',
    'JsonSerializer',
    'RequestFactory',
    'Scope',
    'ScopeKind',
    'OptionalValue',
    'Entry',
    'EntryResult',
    # Streamed collections
    'CursorState',
    'PagedStream',
    'CacheEntry',
    'KeySet',
    'EntrySet',
    'ValueSet',
]
