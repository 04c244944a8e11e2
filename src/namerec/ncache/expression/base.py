"""Base class and wire codec shared by all expression trees."""

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from dataclasses import fields
from typing import Any
from typing import ClassVar

from namerec.ncache.core.constants import CLASS_FIELD
from namerec.ncache.core.constants import WireField
from namerec.ncache.core.exceptions import ExpressionError

# Field metadata keys
WIRE_NAME = 'wire_name'
OMIT_EMPTY = 'omit_empty'
MAP_HOLDER = 'map_holder'
SEQUENCE = 'sequence'

# Closed set of concrete expression types, keyed by type tag
_registry: dict[str, type['Expression']] = {}


def wire_field(
    name: WireField | str | None = None,
    *,
    omit_empty: bool = False,
    map_holder: bool = False,
    sequence: bool = False,
    **kwargs: Any,
) -> Any:  # noqa: ANN401
    """
    Declare a dataclass field together with its wire representation.

    Args:
        name: Wire name of the field (defaults to the attribute name)
        omit_empty: Leave the field out of the wire form when None or empty
        map_holder: Encode the mapping as {"entries": [{"key": k, "value": v}, ...]}
        sequence: Store the field as a tuple regardless of the iterable passed in
        **kwargs: Passed through to dataclasses.field()

    Returns:
        Dataclass field
    """
    wire_name = name.value if isinstance(name, WireField) else name
    metadata = {
        WIRE_NAME: wire_name,
        OMIT_EMPTY: omit_empty,
        MAP_HOLDER: map_holder,
        SEQUENCE: sequence,
    }
    return field(metadata=metadata, **kwargs)


def registered_tags() -> frozenset[str]:
    """
    Get the vocabulary of type tags known to this client.

    Returns:
        Frozen set of registered type tags
    """
    return frozenset(_registry)


@dataclass(frozen=True)
class Expression:
    """
    Common base of filters, extractors, processors, aggregators and comparators.

    A concrete expression declares its wire tag in ``type_tag`` and its wire
    fields as dataclass fields. Instances are immutable and may be shared
    between concurrent calls.
    """

    type_tag: ClassVar[str] = ''

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Register concrete subclasses by their type tag."""
        super().__init_subclass__(**kwargs)
        tag = cls.__dict__.get('type_tag')
        if not tag:
            return
        existing = _registry.get(tag)
        if existing is not None and existing.__qualname__ != cls.__qualname__:
            msg = f'Type tag {tag} already registered by {existing.__name__}'
            raise TypeError(msg)
        _registry[tag] = cls

    def __post_init__(self) -> None:
        """Normalize sequence fields to tuples."""
        for f in fields(self):
            if f.metadata.get(SEQUENCE):
                value = getattr(self, f.name)
                if value is not None and not isinstance(value, tuple):
                    object.__setattr__(self, f.name, tuple(value))

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the wire representation expected by the remote evaluator.

        Returns:
            Dictionary with the type tag under '@class' plus the declared fields
        """
        result: dict[str, Any] = {CLASS_FIELD: self.type_tag}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.metadata.get(OMIT_EMPTY) and _is_empty(value):
                continue
            if f.metadata.get(MAP_HOLDER):
                result[_wire_name(f)] = _encode_map_holder(value)
            else:
                result[_wire_name(f)] = encode_value(value)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Expression':
        """
        Rebuild an expression from its wire representation.

        Args:
            data: Wire representation (as produced by to_dict())

        Returns:
            Expression of the concrete type named by the '@class' tag

        Raises:
            ExpressionError: If the tag is missing, unknown or not a subtype of cls
        """
        tag = data.get(CLASS_FIELD) if isinstance(data, Mapping) else None
        if not tag:
            msg = f'Expression must have "{CLASS_FIELD}" field'
            raise ExpressionError(msg)

        target = _registry.get(tag)
        if target is None:
            msg = f'Unknown expression type: {tag}'
            raise ExpressionError(msg)
        if not issubclass(target, cls):
            msg = f'{tag} is not a {cls.__name__}'
            raise ExpressionError(msg)

        kwargs: dict[str, Any] = {}
        for f in fields(target):
            if not f.init:
                continue
            name = _wire_name(f)
            if name not in data:
                continue
            raw = data[name]
            kwargs[f.name] = decode_map_holder(raw) if f.metadata.get(MAP_HOLDER) else decode_value(raw)

        try:
            return target(**kwargs)
        except TypeError as e:
            msg = f'Invalid fields for {tag}: {e}'
            raise ExpressionError(msg) from e


def encode_value(value: Any) -> Any:  # noqa: ANN401
    """
    Encode a field value into its wire form.

    Args:
        value: Field value (expression, container or plain value)

    Returns:
        JSON-compatible structure
    """
    if isinstance(value, Expression):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:  # noqa: ANN401
    """
    Decode a wire value, rebuilding nested expressions.

    Args:
        value: Wire value

    Returns:
        Decoded value
    """
    if isinstance(value, Expression):
        return value
    if isinstance(value, Mapping):
        if CLASS_FIELD in value:
            return Expression.from_dict(value)
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def require(value: Any, name: str, owner: str) -> None:  # noqa: ANN401
    """
    Check that a required constructor argument was provided.

    Args:
        value: Argument value
        name: Argument name
        owner: Name of the expression being built

    Raises:
        ExpressionError: If value is None
    """
    if value is None:
        msg = f'{owner} requires "{name}"'
        raise ExpressionError(msg, path=name)


def _wire_name(f: Any) -> str:  # noqa: ANN401
    return f.metadata.get(WIRE_NAME) or f.name


def _is_empty(value: Any) -> bool:  # noqa: ANN401
    if value is None:
        return True
    if isinstance(value, (str, bytes, tuple, list, dict, set, frozenset)):
        return len(value) == 0
    return False


def _encode_map_holder(value: Mapping[Any, Any]) -> dict[str, Any]:
    return {
        WireField.ENTRIES.value: [
            {WireField.KEY.value: encode_value(k), WireField.VALUE.value: encode_value(v)}
            for k, v in value.items()
        ],
    }


def decode_map_holder(value: Any) -> dict[Any, Any]:  # noqa: ANN401
    """
    Rebuild a mapping from its {"entries": [{"key": k, "value": v}, ...]} form.

    Args:
        value: Wire map holder

    Returns:
        Mapping with keys made hashable

    Raises:
        ExpressionError: If value is not a map holder
    """
    if not isinstance(value, Mapping) or WireField.ENTRIES.value not in value:
        msg = f'Map holder must have "{WireField.ENTRIES.value}" field'
        raise ExpressionError(msg)
    result: dict[Any, Any] = {}
    for entry in value[WireField.ENTRIES.value]:
        key = decode_value(entry[WireField.KEY.value])
        result[hashable_key(key)] = decode_value(entry[WireField.VALUE.value])
    return result


def hashable_key(key: Any) -> Any:  # noqa: ANN401
    """Turn a decoded key back into a hashable one; JSON decodes tuple keys as lists."""
    if isinstance(key, list):
        return tuple(hashable_key(k) for k in key)
    return key
