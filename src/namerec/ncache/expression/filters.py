"""Filter expressions: predicates evaluated by the server to select entries."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any
from typing import ClassVar

from namerec.ncache.core.constants import FilterTag
from namerec.ncache.core.constants import WireField
from namerec.ncache.core.exceptions import ExpressionError
from namerec.ncache.expression.base import Expression
from namerec.ncache.expression.base import require
from namerec.ncache.expression.base import wire_field
from namerec.ncache.expression.extractors import ExtractorLike
from namerec.ncache.expression.extractors import ValueExtractor
from namerec.ncache.expression.extractors import resolve_extractor


@dataclass(frozen=True)
class Filter(Expression):
    """Base of all filters; provides fluent composition."""

    def and_(self, other: 'Filter') -> 'AndFilter':
        """Both this filter and ``other`` must match."""
        return AndFilter((self, other))

    def or_(self, other: 'Filter') -> 'OrFilter':
        """Either this filter or ``other`` must match."""
        return OrFilter((self, other))

    def xor(self, other: 'Filter') -> 'XorFilter':
        """Exactly one of this filter and ``other`` must match."""
        return XorFilter((self, other))

    def negate(self) -> 'NotFilter':
        """Logical negation of this filter."""
        return NotFilter(self)

    def associated_with(self, host_key: Any) -> 'KeyAssociatedFilter':  # noqa: ANN401
        """
        Limit this filter to the partition owning ``host_key``.

        The result is a scope restriction and must stay the outermost filter.

        Args:
            host_key: Key whose owning partition the filter is applied to

        Returns:
            KeyAssociatedFilter wrapping this filter
        """
        return KeyAssociatedFilter(self, host_key)

    def __and__(self, other: 'Filter') -> 'AndFilter':
        return self.and_(other)

    def __or__(self, other: 'Filter') -> 'OrFilter':
        return self.or_(other)

    def __xor__(self, other: 'Filter') -> 'XorFilter':
        return self.xor(other)

    def __invert__(self) -> 'NotFilter':
        return self.negate()


# =========================================================================
# Extractor-based filters
# =========================================================================


@dataclass(frozen=True)
class ExtractorFilter(Filter):
    """Filter comparing an extracted value against ``value``."""

    extractor: ValueExtractor
    value: Any

    def __post_init__(self) -> None:
        """Resolve the extractor (a property path is accepted)."""
        super().__post_init__()
        object.__setattr__(self, 'extractor', resolve_extractor(self.extractor, type(self).__name__))


@dataclass(frozen=True)
class EqualsFilter(ExtractorFilter):
    """Extracted value equals ``value``."""

    type_tag = FilterTag.EQUALS.value


@dataclass(frozen=True)
class NotEqualsFilter(ExtractorFilter):
    """Extracted value differs from ``value``."""

    type_tag = FilterTag.NOT_EQUALS.value


@dataclass(frozen=True)
class LessFilter(ExtractorFilter):
    """Extracted value is less than ``value``."""

    type_tag = FilterTag.LESS.value


@dataclass(frozen=True)
class LessEqualsFilter(ExtractorFilter):
    """Extracted value is less than or equal to ``value``."""

    type_tag = FilterTag.LESS_EQUALS.value


@dataclass(frozen=True)
class GreaterFilter(ExtractorFilter):
    """Extracted value is greater than ``value``."""

    type_tag = FilterTag.GREATER.value


@dataclass(frozen=True)
class GreaterEqualsFilter(ExtractorFilter):
    """Extracted value is greater than or equal to ``value``."""

    type_tag = FilterTag.GREATER_EQUALS.value


@dataclass(frozen=True)
class IsNullFilter(ExtractorFilter):
    """Extracted value is null."""

    type_tag = FilterTag.IS_NULL.value

    value: Any = None


@dataclass(frozen=True)
class IsNotNullFilter(ExtractorFilter):
    """Extracted value is not null."""

    type_tag = FilterTag.IS_NOT_NULL.value

    value: Any = None


@dataclass(frozen=True)
class InFilter(ExtractorFilter):
    """Extracted value is one of ``value``."""

    type_tag = FilterTag.IN.value


@dataclass(frozen=True)
class LikeFilter(ExtractorFilter):
    """
    Extracted value matches a SQL-style pattern ('%' any run, '_' any character).

    ``escape`` is left out of the wire form when empty.
    """

    type_tag = FilterTag.LIKE.value

    escape: str = wire_field(WireField.ESCAPE, omit_empty=True, default='')
    ignore_case: bool = wire_field(WireField.IGNORE_CASE, default=False)

    def __post_init__(self) -> None:
        """Validate pattern and escape character."""
        super().__post_init__()
        if not isinstance(self.value, str):
            msg = f'LikeFilter pattern must be a string, got {self.value!r}'
            raise ExpressionError(msg, path=WireField.VALUE.value)
        if self.escape is None:
            object.__setattr__(self, 'escape', '')
        if len(self.escape) > 1:
            msg = f'LikeFilter escape must be a single character, got {self.escape!r}'
            raise ExpressionError(msg, path=WireField.ESCAPE.value)


@dataclass(frozen=True)
class ContainsFilter(ExtractorFilter):
    """Extracted collection contains ``value``."""

    type_tag = FilterTag.CONTAINS.value


@dataclass(frozen=True)
class ContainsAllFilter(ExtractorFilter):
    """Extracted collection contains every element of ``value``."""

    type_tag = FilterTag.CONTAINS_ALL.value


@dataclass(frozen=True)
class ContainsAnyFilter(ExtractorFilter):
    """Extracted collection contains at least one element of ``value``."""

    type_tag = FilterTag.CONTAINS_ANY.value


# =========================================================================
# Composite filters
# =========================================================================


def _check_child(child: Any, owner: str, path: str) -> None:  # noqa: ANN401
    require(child, path, owner)
    if not isinstance(child, Filter):
        msg = f'{owner} accepts filters only, got {type(child).__name__}'
        raise ExpressionError(msg, path=path)
    if isinstance(child, KeyAssociatedFilter):
        msg = f'KeyAssociatedFilter must be the outermost filter and cannot be nested in {owner}'
        raise ExpressionError(msg, path=path)


@dataclass(frozen=True)
class ArrayFilter(Filter):
    """Filter combining an ordered sequence of child filters."""

    # Exact number of children required, None for n-ary filters (at least one)
    arity: ClassVar[int | None] = None

    filters: tuple[Filter, ...] = wire_field(WireField.FILTERS, sequence=True)

    def __post_init__(self) -> None:
        """Validate children and arity."""
        super().__post_init__()
        owner = type(self).__name__
        require(self.filters, WireField.FILTERS.value, owner)
        if self.arity is not None and len(self.filters) != self.arity:
            msg = f'{owner} requires exactly {self.arity} filters, got {len(self.filters)}'
            raise ExpressionError(msg, path=WireField.FILTERS.value)
        if not self.filters:
            msg = f'{owner} requires at least one filter'
            raise ExpressionError(msg, path=WireField.FILTERS.value)
        for i, child in enumerate(self.filters):
            _check_child(child, owner, f'{WireField.FILTERS.value}[{i}]')


@dataclass(frozen=True)
class AllFilter(ArrayFilter):
    """All child filters must match."""

    type_tag = FilterTag.ALL.value


@dataclass(frozen=True)
class AnyFilter(ArrayFilter):
    """At least one child filter must match."""

    type_tag = FilterTag.ANY.value


@dataclass(frozen=True)
class AndFilter(ArrayFilter):
    """Both child filters must match."""

    type_tag = FilterTag.AND.value
    arity = 2


@dataclass(frozen=True)
class OrFilter(ArrayFilter):
    """Either child filter must match."""

    type_tag = FilterTag.OR.value
    arity = 2


@dataclass(frozen=True)
class XorFilter(ArrayFilter):
    """Exactly one child filter must match."""

    type_tag = FilterTag.XOR.value
    arity = 2


@dataclass(frozen=True)
class BetweenFilter(AndFilter):
    """
    Range filter: an AndFilter of a lower and an upper bound comparison.

    ``filters`` holds exactly the two bound comparisons, ``lower``/``upper``
    are carried alongside as 'from'/'to'.
    """

    type_tag = FilterTag.BETWEEN.value

    lower: Any = wire_field(WireField.FROM, default=None)
    upper: Any = wire_field(WireField.TO, default=None)

    @classmethod
    def create(
        cls,
        extractor: ExtractorLike,
        lower: Any,  # noqa: ANN401
        upper: Any,  # noqa: ANN401
        include_lower: bool = False,
        include_upper: bool = False,
    ) -> 'BetweenFilter':
        """
        Build a range filter.

        Args:
            extractor: Extractor or property path
            lower: Lower bound
            upper: Upper bound
            include_lower: Make the lower bound inclusive (exclusive by default)
            include_upper: Make the upper bound inclusive (exclusive by default)

        Returns:
            BetweenFilter
        """
        resolved = resolve_extractor(extractor, cls.__name__)
        low: Filter = GreaterEqualsFilter(resolved, lower) if include_lower else GreaterFilter(resolved, lower)
        high: Filter = LessEqualsFilter(resolved, upper) if include_upper else LessFilter(resolved, upper)
        return cls((low, high), lower, upper)


@dataclass(frozen=True)
class NotFilter(Filter):
    """Negation of a child filter."""

    type_tag = FilterTag.NOT.value

    filter: Filter

    def __post_init__(self) -> None:
        """Validate the child filter."""
        super().__post_init__()
        _check_child(self.filter, type(self).__name__, WireField.FILTER.value)


@dataclass(frozen=True)
class KeyAssociatedFilter(Filter):
    """
    Limits the scope of another filter to the partition owning ``host_key``.

    Must be the outermost filter: composite filters reject it as a child and
    it cannot wrap another key-associated filter.
    """

    type_tag = FilterTag.KEY_ASSOCIATED.value

    filter: Filter
    host_key: Any = wire_field(WireField.HOST_KEY)

    def __post_init__(self) -> None:
        """Validate the wrapped filter."""
        super().__post_init__()
        _check_child(self.filter, type(self).__name__, WireField.FILTER.value)
        require(self.host_key, WireField.HOST_KEY.value, type(self).__name__)


# =========================================================================
# Constant filters
# =========================================================================


@dataclass(frozen=True)
class AlwaysFilter(Filter):
    """Matches every entry."""

    type_tag = FilterTag.ALWAYS.value


@dataclass(frozen=True)
class NeverFilter(Filter):
    """Matches no entry."""

    type_tag = FilterTag.NEVER.value


@dataclass(frozen=True)
class PresentFilter(Filter):
    """Matches entries that exist in the cache."""

    type_tag = FilterTag.PRESENT.value


class Filters:
    """Factory helpers for filters."""

    @staticmethod
    def equal(extractor: ExtractorLike, value: Any) -> EqualsFilter:  # noqa: ANN401
        """Extracted value equals ``value``."""
        return EqualsFilter(extractor, value)

    @staticmethod
    def not_equal(extractor: ExtractorLike, value: Any) -> NotEqualsFilter:  # noqa: ANN401
        """Extracted value differs from ``value``."""
        return NotEqualsFilter(extractor, value)

    @staticmethod
    def less(extractor: ExtractorLike, value: Any) -> LessFilter:  # noqa: ANN401
        """Extracted value is less than ``value``."""
        return LessFilter(extractor, value)

    @staticmethod
    def less_equals(extractor: ExtractorLike, value: Any) -> LessEqualsFilter:  # noqa: ANN401
        """Extracted value is less than or equal to ``value``."""
        return LessEqualsFilter(extractor, value)

    @staticmethod
    def greater(extractor: ExtractorLike, value: Any) -> GreaterFilter:  # noqa: ANN401
        """Extracted value is greater than ``value``."""
        return GreaterFilter(extractor, value)

    @staticmethod
    def greater_equals(extractor: ExtractorLike, value: Any) -> GreaterEqualsFilter:  # noqa: ANN401
        """Extracted value is greater than or equal to ``value``."""
        return GreaterEqualsFilter(extractor, value)

    @staticmethod
    def like(
        extractor: ExtractorLike,
        pattern: str,
        escape: str = '',
        ignore_case: bool = False,
    ) -> LikeFilter:
        """
        Pattern match on the extracted value.

        Args:
            extractor: Extractor or property path
            pattern: Pattern using '%' and '_' wildcards
            escape: Optional escape character (omitted from the wire form when empty)
            ignore_case: Case-insensitive match (case-sensitive by default)

        Returns:
            LikeFilter
        """
        return LikeFilter(extractor, pattern, escape or '', ignore_case)

    @staticmethod
    def between(
        extractor: ExtractorLike,
        lower: Any,  # noqa: ANN401
        upper: Any,  # noqa: ANN401
        include_lower: bool = False,
        include_upper: bool = False,
    ) -> BetweenFilter:
        """
        Range filter; both bounds are exclusive unless requested inclusive.

        Examples:
            >>> f = Filters.between('ival', 1, 9)
            >>> [type(c).__name__ for c in f.filters]
            ['GreaterFilter', 'LessFilter']
        """
        return BetweenFilter.create(extractor, lower, upper, include_lower, include_upper)

    @staticmethod
    def is_null(extractor: ExtractorLike) -> IsNullFilter:
        """Extracted value is null."""
        return IsNullFilter(extractor)

    @staticmethod
    def is_not_null(extractor: ExtractorLike) -> IsNotNullFilter:
        """Extracted value is not null."""
        return IsNotNullFilter(extractor)

    @staticmethod
    def in_(extractor: ExtractorLike, values: Iterable[Any]) -> InFilter:
        """Extracted value is one of ``values``."""
        return InFilter(extractor, tuple(values))

    @staticmethod
    def and_(left: Filter, right: Filter) -> AndFilter:
        """Both filters must match."""
        return AndFilter((left, right))

    @staticmethod
    def or_(left: Filter, right: Filter) -> OrFilter:
        """Either filter must match."""
        return OrFilter((left, right))

    @staticmethod
    def xor(left: Filter, right: Filter) -> XorFilter:
        """Exactly one of the filters must match."""
        return XorFilter((left, right))

    @staticmethod
    def not_(filter: Filter) -> NotFilter:  # noqa: A002
        """Negation of ``filter``."""
        return NotFilter(filter)

    @staticmethod
    def all_(*filters: Filter) -> AllFilter:
        """All filters must match."""
        return AllFilter(filters)

    @staticmethod
    def any_(*filters: Filter) -> AnyFilter:
        """At least one filter must match."""
        return AnyFilter(filters)

    @staticmethod
    def array_contains(extractor: ExtractorLike, value: Any) -> ContainsFilter:  # noqa: ANN401
        """Extracted collection contains ``value``."""
        return ContainsFilter(extractor, value)

    @staticmethod
    def array_contains_all(extractor: ExtractorLike, values: Iterable[Any]) -> ContainsAllFilter:
        """Extracted collection contains every element of ``values``."""
        return ContainsAllFilter(extractor, tuple(values))

    @staticmethod
    def array_contains_any(extractor: ExtractorLike, values: Iterable[Any]) -> ContainsAnyFilter:
        """Extracted collection contains at least one element of ``values``."""
        return ContainsAnyFilter(extractor, tuple(values))

    @staticmethod
    def always() -> AlwaysFilter:
        """Matches every entry."""
        return AlwaysFilter()

    @staticmethod
    def never() -> NeverFilter:
        """Matches no entry."""
        return NeverFilter()

    @staticmethod
    def present() -> PresentFilter:
        """Matches entries that exist in the cache."""
        return PresentFilter()

    @staticmethod
    def key_associated(filter: Filter, host_key: Any) -> KeyAssociatedFilter:  # noqa: A002, ANN401
        """
        Limit ``filter`` to the partition owning ``host_key``.

        The result must be used as the outermost filter.
        """
        return KeyAssociatedFilter(filter, host_key)
