"""Comparators used for sorted indexes and ordered entry queries."""

from dataclasses import dataclass
from typing import Any

from namerec.ncache.core.constants import ComparatorTag
from namerec.ncache.core.constants import WireField
from namerec.ncache.core.exceptions import ExpressionError
from namerec.ncache.expression.base import Expression
from namerec.ncache.expression.base import require
from namerec.ncache.expression.extractors import ExtractorLike
from namerec.ncache.expression.extractors import ValueExtractor
from namerec.ncache.expression.extractors import resolve_extractor


@dataclass(frozen=True)
class Comparator(Expression):
    """Base of all comparators."""

    def reversed(self) -> 'Comparator':
        """Get a comparator producing the opposite order."""
        return InverseComparator(self)

    def null_safe(self) -> 'SafeComparator':
        """Get a comparator that tolerates absent values (absent sorts first)."""
        return SafeComparator(self)


def _check_comparator(value: Any, owner: str) -> None:  # noqa: ANN401
    require(value, WireField.COMPARATOR.value, owner)
    if not isinstance(value, Comparator):
        msg = f'{owner} wraps comparators only, got {type(value).__name__}'
        raise ExpressionError(msg, path=WireField.COMPARATOR.value)


@dataclass(frozen=True)
class ExtractorComparator(Comparator):
    """Orders values by the natural order of an extracted value."""

    type_tag = ComparatorTag.EXTRACTOR.value

    extractor: ValueExtractor

    def __post_init__(self) -> None:
        """Resolve the extractor (a property path is accepted)."""
        super().__post_init__()
        object.__setattr__(self, 'extractor', resolve_extractor(self.extractor, type(self).__name__))


@dataclass(frozen=True)
class SafeComparator(Comparator):
    """Null-tolerant wrapper around another comparator."""

    type_tag = ComparatorTag.SAFE.value

    comparator: Comparator

    def __post_init__(self) -> None:
        """Validate the wrapped comparator."""
        super().__post_init__()
        _check_comparator(self.comparator, type(self).__name__)


@dataclass(frozen=True)
class InverseComparator(Comparator):
    """Reverses the order of another comparator."""

    type_tag = ComparatorTag.INVERSE.value

    comparator: Comparator

    def __post_init__(self) -> None:
        """Validate the wrapped comparator."""
        super().__post_init__()
        _check_comparator(self.comparator, type(self).__name__)

    def reversed(self) -> Comparator:
        """Unwrap instead of double inversion."""
        return self.comparator


class Comparators:
    """Factory helpers for comparators."""

    @staticmethod
    def extract(path: ExtractorLike) -> ExtractorComparator:
        """Order by the value at ``path``."""
        return ExtractorComparator(path)

    @staticmethod
    def safe(comparator: Comparator) -> SafeComparator:
        """Null-tolerant form of ``comparator``."""
        return SafeComparator(comparator)

    @staticmethod
    def inverse(comparator: Comparator) -> InverseComparator:
        """Reverse order of ``comparator``."""
        return InverseComparator(comparator)
