"""Entry processors: read and/or write recipes applied server-side to entries."""

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from namerec.ncache.core.constants import ProcessorTag
from namerec.ncache.core.constants import WireField
from namerec.ncache.core.exceptions import ExpressionError
from namerec.ncache.expression.base import Expression
from namerec.ncache.expression.base import require
from namerec.ncache.expression.base import wire_field
from namerec.ncache.expression.extractors import CompositeUpdater
from namerec.ncache.expression.extractors import ExtractorLike
from namerec.ncache.expression.extractors import Extractors
from namerec.ncache.expression.extractors import ValueExtractor
from namerec.ncache.expression.extractors import ValueUpdater
from namerec.ncache.expression.filters import AlwaysFilter
from namerec.ncache.expression.filters import Filter
from namerec.ncache.expression.filters import KeyAssociatedFilter


@dataclass(frozen=True)
class EntryProcessor(Expression):
    """Base of all entry processors; provides sequencing and guarding."""

    def and_then(self, processor: 'EntryProcessor') -> 'CompositeProcessor':
        """
        Run ``processor`` after this one against the same entry.

        Chains are always flat: the result holds the leaf processors of both
        sides in order, so the invocation result has one element per leaf.

        Args:
            processor: Processor to run next

        Returns:
            CompositeProcessor of the leaf processors
        """
        _check_processor(processor, CompositeProcessor.__name__, WireField.PROCESSORS.value)
        return CompositeProcessor(_leaves(self) + _leaves(processor))

    def when(self, filter: Filter) -> 'ConditionalProcessor':  # noqa: A002
        """
        Guard this processor with ``filter``.

        Guarding an already guarded processor replaces the previous guard.

        Args:
            filter: Guard evaluated against the entry before processing

        Returns:
            ConditionalProcessor
        """
        return ConditionalProcessor(filter, self)


def _check_processor(processor: Any, owner: str, path: str) -> None:  # noqa: ANN401
    require(processor, path, owner)
    if not isinstance(processor, EntryProcessor):
        msg = f'{owner} accepts entry processors only, got {type(processor).__name__}'
        raise ExpressionError(msg, path=path)


def _check_guard(filter: Any, owner: str) -> None:  # noqa: A002, ANN401
    require(filter, WireField.FILTER.value, owner)
    if not isinstance(filter, Filter):
        msg = f'{owner} guard must be a filter, got {type(filter).__name__}'
        raise ExpressionError(msg, path=WireField.FILTER.value)
    if isinstance(filter, KeyAssociatedFilter):
        msg = f'KeyAssociatedFilter cannot be used as a {owner} guard'
        raise ExpressionError(msg, path=WireField.FILTER.value)


def _leaves(processor: EntryProcessor) -> tuple[EntryProcessor, ...]:
    if isinstance(processor, CompositeProcessor):
        return processor.processors
    return (processor,)


@dataclass(frozen=True)
class ReturningProcessor(EntryProcessor):
    """Processor that may report the entry's value prior to processing."""

    return_value: bool = wire_field(WireField.RETURN, default=False, kw_only=True)

    def return_current(self, value: bool = True) -> 'ReturningProcessor':
        """
        Get a copy that reports the current value.

        Args:
            value: Whether the current value is returned

        Returns:
            New processor; the receiver is left unchanged
        """
        return replace(self, return_value=value)


# =========================================================================
# Composition
# =========================================================================


@dataclass(frozen=True)
class CompositeProcessor(EntryProcessor):
    """Flat ordered sequence of processors applied to the same entry."""

    type_tag = ProcessorTag.COMPOSITE.value

    processors: tuple[EntryProcessor, ...] = wire_field(WireField.PROCESSORS, sequence=True)

    def __post_init__(self) -> None:
        """Validate and flatten the processor list."""
        super().__post_init__()
        owner = type(self).__name__
        require(self.processors, WireField.PROCESSORS.value, owner)
        leaves: list[EntryProcessor] = []
        for i, processor in enumerate(self.processors):
            _check_processor(processor, owner, f'{WireField.PROCESSORS.value}[{i}]')
            leaves.extend(_leaves(processor))
        if not leaves:
            msg = f'{owner} requires at least one processor'
            raise ExpressionError(msg, path=WireField.PROCESSORS.value)
        object.__setattr__(self, 'processors', tuple(leaves))


@dataclass(frozen=True)
class ConditionalProcessor(EntryProcessor):
    """Applies ``processor`` only to entries matching ``filter``."""

    type_tag = ProcessorTag.CONDITIONAL.value

    filter: Filter
    processor: EntryProcessor

    def __post_init__(self) -> None:
        """Validate parts and collapse nested guards."""
        super().__post_init__()
        owner = type(self).__name__
        _check_guard(self.filter, owner)
        _check_processor(self.processor, owner, WireField.PROCESSOR.value)
        # Outermost guard wins
        if isinstance(self.processor, ConditionalProcessor):
            object.__setattr__(self, 'processor', self.processor.processor)

    def when(self, filter: Filter) -> 'ConditionalProcessor':  # noqa: A002
        """Replace the guard of this processor."""
        return ConditionalProcessor(filter, self.processor)


# =========================================================================
# Reading
# =========================================================================


@dataclass(frozen=True)
class ExtractorProcessor(EntryProcessor):
    """Returns the value extracted from the entry."""

    type_tag = ProcessorTag.EXTRACTOR.value

    extractor: ValueExtractor = field(default_factory=Extractors.identity)

    def __post_init__(self) -> None:
        """Resolve the extractor (a property path is accepted)."""
        super().__post_init__()
        object.__setattr__(self, 'extractor', Extractors.extract(self.extractor))


@dataclass(frozen=True)
class GetProcessor(EntryProcessor):
    """Returns the entry value."""

    type_tag = ProcessorTag.GET.value


@dataclass(frozen=True)
class MethodInvocationProcessor(EntryProcessor):
    """
    Invokes a named method on the stored value.

    The method name and arguments are passed through as-is; the server decides
    whether they fit the stored value.
    """

    type_tag = ProcessorTag.METHOD_INVOCATION.value

    method_name: str = wire_field(WireField.METHOD_NAME)
    mutator: bool = wire_field(WireField.MUTATOR, default=False)
    args: tuple[Any, ...] = wire_field(WireField.ARGS, sequence=True, default=())

    def __post_init__(self) -> None:
        """Validate the method name."""
        super().__post_init__()
        if not self.method_name:
            msg = 'MethodInvocationProcessor requires a method name'
            raise ExpressionError(msg, path=WireField.METHOD_NAME.value)


# =========================================================================
# Writing
# =========================================================================


@dataclass(frozen=True)
class PutProcessor(EntryProcessor):
    """Stores ``value`` with an optional time-to-live in milliseconds (0 = cache default)."""

    type_tag = ProcessorTag.PUT.value

    value: Any
    ttl: int = wire_field(WireField.TTL, default=0)


@dataclass(frozen=True)
class ConditionalPut(ReturningProcessor):
    """Stores ``value`` if the entry matches ``filter``."""

    type_tag = ProcessorTag.CONDITIONAL_PUT.value

    filter: Filter
    value: Any

    def __post_init__(self) -> None:
        """Validate the guard."""
        super().__post_init__()
        _check_guard(self.filter, type(self).__name__)


@dataclass(frozen=True)
class ConditionalPutAll(EntryProcessor):
    """Stores the mapped value for every invoked key matching ``filter``."""

    type_tag = ProcessorTag.CONDITIONAL_PUT_ALL.value

    filter: Filter
    entries: Mapping[Any, Any] = wire_field(WireField.ENTRIES, map_holder=True, hash=False)

    def __post_init__(self) -> None:
        """Validate the guard and the mapping."""
        super().__post_init__()
        _check_guard(self.filter, type(self).__name__)
        _check_mapping(self.entries, type(self).__name__)
        object.__setattr__(self, 'entries', MappingProxyType(dict(self.entries)))


@dataclass(frozen=True)
class ConditionalRemove(ReturningProcessor):
    """Removes the entry if it matches ``filter``."""

    type_tag = ProcessorTag.CONDITIONAL_REMOVE.value

    filter: Filter = field(default_factory=AlwaysFilter)

    def __post_init__(self) -> None:
        """Validate the guard."""
        super().__post_init__()
        _check_guard(self.filter, type(self).__name__)


@dataclass(frozen=True)
class VersionedPut(ReturningProcessor):
    """
    Optimistic write of ``value``.

    The server stores ``value`` only if its '@version' matches the stored
    entry's version; a stale write is skipped without error. With ``insert``
    set, the value is also stored when no entry exists.
    """

    type_tag = ProcessorTag.VERSIONED_PUT.value

    value: Any
    insert: bool = wire_field(WireField.INSERT, default=False)


@dataclass(frozen=True)
class VersionedPutAll(ReturningProcessor):
    """Batch form of VersionedPut; each invoked key takes its value from ``entries``."""

    type_tag = ProcessorTag.VERSIONED_PUT_ALL.value

    entries: Mapping[Any, Any] = wire_field(WireField.ENTRIES, map_holder=True, hash=False)
    insert: bool = wire_field(WireField.INSERT, default=False)

    def __post_init__(self) -> None:
        """Validate the mapping."""
        super().__post_init__()
        _check_mapping(self.entries, type(self).__name__)
        object.__setattr__(self, 'entries', MappingProxyType(dict(self.entries)))


@dataclass(frozen=True)
class UpdaterProcessor(EntryProcessor):
    """Writes ``value`` through ``updater``."""

    type_tag = ProcessorTag.UPDATER.value

    updater: ValueUpdater
    value: Any

    def __post_init__(self) -> None:
        """Resolve the updater (a property path is accepted)."""
        super().__post_init__()
        require(self.updater, WireField.UPDATER.value, type(self).__name__)
        if isinstance(self.updater, str):
            object.__setattr__(self, 'updater', Extractors.updater(self.updater))


@dataclass(frozen=True)
class NumberMultiplier(EntryProcessor):
    """
    Multiplies a numeric property in place.

    Reports the value prior to the update unless ``post_multiplication`` is
    cleared through ``return_new_value()``.
    """

    type_tag = ProcessorTag.NUMBER_MULTIPLIER.value

    manipulator: CompositeUpdater
    multiplier: Any
    post_multiplication: bool = wire_field(WireField.POST_MULTIPLICATION, default=True)

    def __post_init__(self) -> None:
        """Resolve the manipulator (a property path is accepted)."""
        super().__post_init__()
        object.__setattr__(self, 'manipulator', _resolve_manipulator(self.manipulator, type(self).__name__))

    def return_new_value(self) -> 'NumberMultiplier':
        """Get a copy reporting the value after the update."""
        return replace(self, post_multiplication=False)


@dataclass(frozen=True)
class NumberIncrementor(EntryProcessor):
    """
    Adds to a numeric property in place.

    Reports the value prior to the update unless ``post_increment`` is
    cleared through ``return_new_value()``.
    """

    type_tag = ProcessorTag.NUMBER_INCREMENTOR.value

    manipulator: CompositeUpdater
    increment: Any
    post_increment: bool = wire_field(WireField.POST_INCREMENT, default=True)

    def __post_init__(self) -> None:
        """Resolve the manipulator (a property path is accepted)."""
        super().__post_init__()
        object.__setattr__(self, 'manipulator', _resolve_manipulator(self.manipulator, type(self).__name__))

    def return_new_value(self) -> 'NumberIncrementor':
        """Get a copy reporting the value after the update."""
        return replace(self, post_increment=False)


def _resolve_manipulator(value: CompositeUpdater | str, owner: str) -> CompositeUpdater:
    require(value, WireField.MANIPULATOR.value, owner)
    if isinstance(value, str):
        return Extractors.manipulator(value)
    if not isinstance(value, CompositeUpdater):
        msg = f'{owner} requires a CompositeUpdater manipulator, got {type(value).__name__}'
        raise ExpressionError(msg, path=WireField.MANIPULATOR.value)
    return value


def _check_mapping(value: Any, owner: str) -> None:  # noqa: ANN401
    require(value, WireField.ENTRIES.value, owner)
    if not isinstance(value, Mapping):
        msg = f'{owner} requires a mapping of entries, got {type(value).__name__}'
        raise ExpressionError(msg, path=WireField.ENTRIES.value)


class Processors:
    """Factory helpers for entry processors."""

    @staticmethod
    def extract(path: ExtractorLike = None) -> ExtractorProcessor:
        """
        Return the value extracted from the entry.

        Args:
            path: Property path or extractor; None returns the whole value

        Returns:
            ExtractorProcessor
        """
        return ExtractorProcessor(Extractors.extract(path))

    @staticmethod
    def get() -> GetProcessor:
        """Return the entry value."""
        return GetProcessor()

    @staticmethod
    def put(value: Any, ttl: int = 0) -> PutProcessor:  # noqa: ANN401
        """
        Store ``value`` in the entry.

        Args:
            value: Value to store
            ttl: Time-to-live in milliseconds (0 = cache default)

        Returns:
            PutProcessor
        """
        return PutProcessor(value, ttl)

    @staticmethod
    def remove() -> ConditionalRemove:
        """Remove the entry unconditionally."""
        return ConditionalRemove(AlwaysFilter())

    @staticmethod
    def conditional_put(filter: Filter, value: Any, return_value: bool = False) -> ConditionalPut:  # noqa: A002, ANN401
        """
        Store ``value`` if the entry matches ``filter``.

        Args:
            filter: Guard evaluated against the current entry
            value: Value to store
            return_value: Report the current value (not reported by default)

        Returns:
            ConditionalPut
        """
        return ConditionalPut(filter, value, return_value=return_value)

    @staticmethod
    def conditional_put_all(filter: Filter, entries: Mapping[Any, Any]) -> ConditionalPutAll:  # noqa: A002
        """
        Store the mapped value for each invoked key matching ``filter``.

        Keys failing the guard are left untouched.

        Args:
            filter: Guard evaluated per entry
            entries: Values by key

        Returns:
            ConditionalPutAll
        """
        return ConditionalPutAll(filter, dict(entries))

    @staticmethod
    def conditional_remove(filter: Filter, return_value: bool = False) -> ConditionalRemove:  # noqa: A002
        """Remove the entry if it matches ``filter``."""
        return ConditionalRemove(filter, return_value=return_value)

    @staticmethod
    def versioned_put(value: Any, insert: bool = False, return_value: bool = False) -> VersionedPut:  # noqa: ANN401
        """
        Store ``value`` if its version matches the stored one.

        Args:
            value: Value carrying an '@version' field
            insert: Also store the value when the entry is absent
            return_value: Report the current value

        Returns:
            VersionedPut
        """
        return VersionedPut(value, insert, return_value=return_value)

    @staticmethod
    def versioned_put_all(
        entries: Mapping[Any, Any],
        insert: bool = False,
        return_value: bool = False,
    ) -> VersionedPutAll:
        """Batch form of versioned_put()."""
        return VersionedPutAll(dict(entries), insert, return_value=return_value)

    @staticmethod
    def update(path: ValueUpdater | str, value: Any) -> UpdaterProcessor:  # noqa: ANN401
        """
        Write ``value`` at ``path``.

        Args:
            path: Dotted property path or updater
            value: Value to write

        Returns:
            UpdaterProcessor
        """
        updater = Extractors.updater(path) if isinstance(path, str) else path
        return UpdaterProcessor(updater, value)

    @staticmethod
    def invoke_accessor(method_name: str, *args: Any) -> MethodInvocationProcessor:
        """Invoke a read-only method on the stored value."""
        return MethodInvocationProcessor(method_name, False, args)

    @staticmethod
    def invoke_mutator(method_name: str, *args: Any) -> MethodInvocationProcessor:
        """Invoke a method that modifies the stored value."""
        return MethodInvocationProcessor(method_name, True, args)

    @staticmethod
    def multiply(path: str, multiplier: Any = 1) -> NumberMultiplier:  # noqa: ANN401
        """
        Multiply the numeric property at ``path``.

        Args:
            path: Dotted property path
            multiplier: Factor

        Returns:
            NumberMultiplier reporting the previous value
        """
        return NumberMultiplier(Extractors.manipulator(path), multiplier)

    @staticmethod
    def increment(path: str, increment: Any = 1) -> NumberIncrementor:  # noqa: ANN401
        """
        Add ``increment`` to the numeric property at ``path``.

        Args:
            path: Dotted property path
            increment: Amount to add

        Returns:
            NumberIncrementor reporting the previous value
        """
        return NumberIncrementor(Extractors.manipulator(path), increment)
