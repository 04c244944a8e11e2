"""Value codecs used to encode keys, values and expressions on the wire."""

import json
from typing import Any
from typing import Protocol
from typing import runtime_checkable

from namerec.ncache.core.constants import CLASS_FIELD
from namerec.ncache.core.constants import JSON_MARKER
from namerec.ncache.core.exceptions import DecodeError
from namerec.ncache.core.exceptions import ExpressionError
from namerec.ncache.expression.base import Expression
from namerec.ncache.expression.base import registered_tags


@runtime_checkable
class Serializer(Protocol):
    """
    Protocol for value codecs.

    Allows structural subtyping - any class with these members can be used
    by a session or cache client without explicit inheritance.
    """

    @property
    def format(self) -> str:
        """Format name sent with every request (e.g. 'json')."""
        ...

    def serialize(self, value: Any) -> bytes:  # noqa: ANN401
        """
        Encode a value.

        Args:
            value: Key, value or expression

        Returns:
            Encoded bytes
        """
        ...

    def deserialize(self, data: bytes) -> Any:  # noqa: ANN401
        """
        Decode a value.

        Args:
            data: Encoded bytes; empty bytes mean "absent"

        Returns:
            Decoded value, None for empty input

        Raises:
            DecodeError: If data cannot be decoded
        """
        ...


class JsonSerializer:
    """
    JSON codec: a marker byte followed by UTF-8 JSON.

    Expressions are written in their wire form; objects carrying a known
    '@class' tag are rebuilt into expressions when read back. Objects with an
    unknown tag (e.g. typed user values) are returned as plain dicts.
    """

    def __init__(self, marker: bytes = JSON_MARKER) -> None:
        """
        Initialize JSON serializer.

        Args:
            marker: Prefix written before every payload
        """
        self._marker = marker

    @property
    def format(self) -> str:
        """Format name."""
        return 'json'

    def serialize(self, value: Any) -> bytes:  # noqa: ANN401
        """Encode ``value`` as marker + JSON."""
        try:
            text = json.dumps(value, default=_to_json, ensure_ascii=False, separators=(',', ':'))
        except (TypeError, ValueError) as e:
            msg = f'Cannot serialize {type(value).__name__}: {e}'
            raise TypeError(msg) from e
        return self._marker + text.encode('utf-8')

    def deserialize(self, data: bytes) -> Any:  # noqa: ANN401
        """Decode marker + JSON; empty input is absent (None)."""
        if not data:
            return None
        if not data.startswith(self._marker):
            msg = f'Payload does not start with the JSON marker {self._marker!r}'
            raise DecodeError(msg, payload=data)
        try:
            return json.loads(data[len(self._marker):].decode('utf-8'), object_hook=_from_json)
        except (UnicodeDecodeError, json.JSONDecodeError, ExpressionError) as e:
            msg = f'Cannot decode payload: {e}'
            raise DecodeError(msg, payload=data) from e


def _to_json(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, Expression):
        return value.to_dict()
    if isinstance(value, (set, frozenset)):
        return list(value)
    msg = f'Object of type {type(value).__name__} is not JSON serializable'
    raise TypeError(msg)


def _from_json(obj: dict[str, Any]) -> Any:  # noqa: ANN401
    tag = obj.get(CLASS_FIELD)
    if isinstance(tag, str) and tag in registered_tags():
        return Expression.from_dict(obj)
    return obj
