"""Value extractors and updaters (read and write paths into cached values)."""

from dataclasses import dataclass
from typing import Any
from typing import Union

from namerec.ncache.core.constants import ExtractorTag
from namerec.ncache.core.constants import WireField
from namerec.ncache.core.exceptions import ExpressionError
from namerec.ncache.expression.base import Expression
from namerec.ncache.expression.base import require
from namerec.ncache.expression.base import wire_field

PATH_SEPARATOR = '.'


@dataclass(frozen=True)
class ValueExtractor(Expression):
    """Base of expressions deriving a value from an entry's stored value."""

    def and_then(self, after: 'ValueExtractor | str') -> 'ChainedExtractor':
        """
        Compose this extractor with another one applied to its result.

        Args:
            after: Extractor (or property path) applied to this extractor's result

        Returns:
            Flat chain running this extractor first
        """
        return ChainedExtractor(_steps(self) + _steps(Extractors.extract(after)))

    def compose(self, before: 'ValueExtractor | str') -> 'ChainedExtractor':
        """
        Compose this extractor with another one applied before it.

        Args:
            before: Extractor (or property path) whose result this extractor consumes

        Returns:
            Flat chain running ``before`` first
        """
        return ChainedExtractor(_steps(Extractors.extract(before)) + _steps(self))


@dataclass(frozen=True)
class UniversalExtractor(ValueExtractor):
    """Single-step extractor: a property name or a method call such as 'length()'."""

    type_tag = ExtractorTag.UNIVERSAL.value

    name: str
    params: tuple[Any, ...] = wire_field(WireField.PARAMS, omit_empty=True, sequence=True, default=())

    def __post_init__(self) -> None:
        """Validate the property name."""
        super().__post_init__()
        if not self.name or PATH_SEPARATOR in self.name:
            msg = f'UniversalExtractor requires a single-step name, got {self.name!r}'
            raise ExpressionError(msg, path=WireField.NAME.value)


@dataclass(frozen=True)
class ChainedExtractor(ValueExtractor):
    """Multi-step extraction; each step consumes the result of the previous one."""

    type_tag = ExtractorTag.CHAINED.value

    extractors: tuple[ValueExtractor, ...] = wire_field(WireField.EXTRACTORS, sequence=True)

    def __post_init__(self) -> None:
        """Validate the chain."""
        super().__post_init__()
        if not self.extractors:
            msg = 'ChainedExtractor requires at least one extractor'
            raise ExpressionError(msg, path=WireField.EXTRACTORS.value)


@dataclass(frozen=True)
class IdentityExtractor(ValueExtractor):
    """Extracts the whole entry value."""

    type_tag = ExtractorTag.IDENTITY.value


@dataclass(frozen=True)
class MultiExtractor(ValueExtractor):
    """Runs several extractors against the same value and returns their results as a list."""

    type_tag = ExtractorTag.MULTI.value

    extractors: tuple[ValueExtractor, ...] = wire_field(WireField.EXTRACTORS, sequence=True)

    def __post_init__(self) -> None:
        """Validate the extractor list."""
        super().__post_init__()
        if not self.extractors:
            msg = 'MultiExtractor requires at least one extractor'
            raise ExpressionError(msg, path=WireField.EXTRACTORS.value)


@dataclass(frozen=True)
class ValueUpdater(Expression):
    """Base of expressions writing a value into an entry's stored value."""


@dataclass(frozen=True)
class UniversalUpdater(ValueUpdater):
    """Single-step updater: sets a property (or calls a setter) on the target."""

    type_tag = ExtractorTag.UNIVERSAL_UPDATER.value

    name: str

    def __post_init__(self) -> None:
        """Validate the property name."""
        super().__post_init__()
        if not self.name or PATH_SEPARATOR in self.name:
            msg = f'UniversalUpdater requires a single-step name, got {self.name!r}'
            raise ExpressionError(msg, path=WireField.NAME.value)


@dataclass(frozen=True)
class CompositeUpdater(ValueUpdater):
    """Binds a read path to a write path: extract the target, then update it."""

    type_tag = ExtractorTag.COMPOSITE_UPDATER.value

    extractor: ValueExtractor
    updater: ValueUpdater

    def __post_init__(self) -> None:
        """Validate required parts."""
        super().__post_init__()
        require(self.extractor, WireField.EXTRACTOR.value, type(self).__name__)
        require(self.updater, WireField.UPDATER.value, type(self).__name__)


ExtractorLike = Union[ValueExtractor, str, None]


class Extractors:
    """Factory helpers for extractors and updaters."""

    @staticmethod
    def extract(path: ExtractorLike = None, *params: Any) -> ValueExtractor:
        """
        Resolve a property path into an extractor.

        Args:
            path: Dotted property path, an existing extractor, or None for the whole value
            *params: Method parameters for a single-step method extractor

        Returns:
            IdentityExtractor for no path, UniversalExtractor for a single step,
            ChainedExtractor for a dotted path

        Examples:
            >>> Extractors.extract('ival')
            UniversalExtractor(name='ival', params=())
            >>> Extractors.extract('a.b').extractors[1]
            UniversalExtractor(name='b', params=())
        """
        if path is None:
            return IdentityExtractor()
        if isinstance(path, ValueExtractor):
            return path
        if not isinstance(path, str) or not path:
            msg = f'Property path must be a non-empty string, got {path!r}'
            raise ExpressionError(msg)
        if PATH_SEPARATOR in path:
            if params:
                msg = 'Method parameters are only supported for single-step paths'
                raise ExpressionError(msg)
            return Extractors.chained(path)
        return UniversalExtractor(path, params)

    @staticmethod
    def chained(*steps: ValueExtractor | str) -> ChainedExtractor:
        """
        Build a multi-step extraction pipeline.

        Args:
            *steps: Dotted paths and/or extractors, applied left to right

        Returns:
            ChainedExtractor
        """
        extractors: list[ValueExtractor] = []
        for step in steps:
            if isinstance(step, str):
                extractors.extend(UniversalExtractor(part) for part in _split_path(step))
            else:
                require(step, WireField.EXTRACTORS.value, ChainedExtractor.__name__)
                extractors.extend(_steps(step))
        return ChainedExtractor(tuple(extractors))

    @staticmethod
    def multi(*paths: ValueExtractor | str) -> MultiExtractor:
        """
        Build an extractor that returns several values at once.

        Args:
            *paths: Property paths or extractors

        Returns:
            MultiExtractor
        """
        return MultiExtractor(tuple(Extractors.extract(p) for p in paths))

    @staticmethod
    def identity() -> IdentityExtractor:
        """Extractor returning the entry value itself."""
        return IdentityExtractor()

    @staticmethod
    def updater(path: str) -> ValueUpdater:
        """
        Resolve a property path into an updater.

        Args:
            path: Dotted property path to write to

        Returns:
            UniversalUpdater for a single step, otherwise a CompositeUpdater that
            extracts the parent object and updates its last property
        """
        parts = _split_path(path)
        if len(parts) == 1:
            return UniversalUpdater(parts[0])
        return CompositeUpdater(
            Extractors.chained(PATH_SEPARATOR.join(parts[:-1])),
            UniversalUpdater(parts[-1]),
        )

    @staticmethod
    def manipulator(path: str) -> CompositeUpdater:
        """
        Bind the read and write paths of a property (used by numeric fold processors).

        Args:
            path: Dotted property path

        Returns:
            CompositeUpdater reading and writing the same property
        """
        return CompositeUpdater(Extractors.extract(path), Extractors.updater(path))


def _split_path(path: str) -> list[str]:
    if not isinstance(path, str) or not path:
        msg = f'Property path must be a non-empty string, got {path!r}'
        raise ExpressionError(msg)
    parts = path.split(PATH_SEPARATOR)
    if any(not part for part in parts):
        msg = f'Invalid property path: {path!r}'
        raise ExpressionError(msg)
    return parts


def _steps(extractor: ValueExtractor) -> tuple[ValueExtractor, ...]:
    if isinstance(extractor, ChainedExtractor):
        return extractor.extractors
    return (extractor,)


def resolve_extractor(value: ExtractorLike, owner: str) -> ValueExtractor:
    """
    Resolve an extractor argument given as a node or a property path.

    Args:
        value: Extractor, property path, or None
        owner: Name of the expression being built

    Returns:
        Resolved extractor

    Raises:
        ExpressionError: If value is None
    """
    require(value, WireField.EXTRACTOR.value, owner)
    return Extractors.extract(value)


__all__ = [
    'ValueExtractor',
    'UniversalExtractor',
    'ChainedExtractor',
    'IdentityExtractor',
    'MultiExtractor',
    'ValueUpdater',
    'UniversalUpdater',
    'CompositeUpdater',
    'Extractors',
    'ExtractorLike',
    'resolve_extractor',
]
