"""Aggregators: fold expressions evaluated server-side across selected entries."""

from dataclasses import dataclass
from typing import Any

from namerec.ncache.core.constants import AggregatorTag
from namerec.ncache.core.constants import WireField
from namerec.ncache.core.exceptions import ExpressionError
from namerec.ncache.expression.base import Expression
from namerec.ncache.expression.base import decode_map_holder
from namerec.ncache.expression.base import require
from namerec.ncache.expression.base import wire_field
from namerec.ncache.expression.extractors import ExtractorLike
from namerec.ncache.expression.extractors import Extractors
from namerec.ncache.expression.extractors import ValueExtractor
from namerec.ncache.expression.extractors import resolve_extractor
from namerec.ncache.expression.filters import Filter


@dataclass(frozen=True)
class EntryAggregator(Expression):
    """Base of all aggregators. Aggregators hold no state between invocations."""

    def and_then(self, aggregator: 'EntryAggregator') -> 'CompositeAggregator':
        """
        Run ``aggregator`` alongside this one over the same entries.

        Args:
            aggregator: Aggregator to add

        Returns:
            CompositeAggregator producing one result per leaf aggregator
        """
        return CompositeAggregator(_leaves(self) + _leaves(aggregator))

    def finish(self, raw: Any) -> Any:  # noqa: ANN401
        """
        Post-process the decoded server result.

        Args:
            raw: Decoded result, None when the server returned nothing

        Returns:
            Aggregation result
        """
        return raw


def _leaves(aggregator: EntryAggregator) -> tuple[EntryAggregator, ...]:
    if isinstance(aggregator, CompositeAggregator):
        return aggregator.aggregators
    return (aggregator,)


@dataclass(frozen=True)
class ExtractorAggregator(EntryAggregator):
    """Aggregator folding the values produced by ``extractor``."""

    extractor: ValueExtractor

    def __post_init__(self) -> None:
        """Resolve the extractor (a property path is accepted)."""
        super().__post_init__()
        object.__setattr__(self, 'extractor', resolve_extractor(self.extractor, type(self).__name__))


@dataclass(frozen=True)
class MinAggregator(ExtractorAggregator):
    """Smallest extracted value; absent over an empty entry set."""

    type_tag = AggregatorTag.MIN.value


@dataclass(frozen=True)
class MaxAggregator(ExtractorAggregator):
    """Largest extracted value; absent over an empty entry set."""

    type_tag = AggregatorTag.MAX.value


@dataclass(frozen=True)
class SumAggregator(ExtractorAggregator):
    """Sum of extracted numbers; absent over an empty entry set."""

    type_tag = AggregatorTag.SUM.value


@dataclass(frozen=True)
class AverageAggregator(ExtractorAggregator):
    """Average of extracted numbers; absent over an empty entry set."""

    type_tag = AggregatorTag.AVERAGE.value


@dataclass(frozen=True)
class DistinctValuesAggregator(ExtractorAggregator):
    """Unique extracted values; empty (never absent) over an empty entry set."""

    type_tag = AggregatorTag.DISTINCT_VALUES.value

    def finish(self, raw: Any) -> list[Any]:  # noqa: ANN401
        """Turn an absent result into an empty list."""
        if raw is None:
            return []
        return list(raw)


@dataclass(frozen=True)
class CountAggregator(EntryAggregator):
    """Number of selected entries."""

    type_tag = AggregatorTag.COUNT.value

    def finish(self, raw: Any) -> int:  # noqa: ANN401
        """Turn an absent result into zero."""
        if raw is None:
            return 0
        return int(raw)


@dataclass(frozen=True)
class GroupAggregator(EntryAggregator):
    """
    Splits the entries by extracted value and runs ``aggregator`` per group.

    The result maps each group value to the group's aggregation result;
    ``filter`` (when set) limits the groups reported. The server returns the
    groups as a map holder so that group values keep their type.
    """

    type_tag = AggregatorTag.GROUP.value

    extractor: ValueExtractor
    aggregator: EntryAggregator
    filter: Filter | None = wire_field(WireField.FILTER, omit_empty=True, default=None)

    def __post_init__(self) -> None:
        """Validate parts."""
        super().__post_init__()
        owner = type(self).__name__
        object.__setattr__(self, 'extractor', resolve_extractor(self.extractor, owner))
        require(self.aggregator, WireField.AGGREGATOR.value, owner)
        if not isinstance(self.aggregator, EntryAggregator):
            msg = f'{owner} requires an aggregator, got {type(self.aggregator).__name__}'
            raise ExpressionError(msg, path=WireField.AGGREGATOR.value)
        if self.filter is not None and not isinstance(self.filter, Filter):
            msg = f'{owner} filter must be a filter, got {type(self.filter).__name__}'
            raise ExpressionError(msg, path=WireField.FILTER.value)

    def finish(self, raw: Any) -> dict[Any, Any]:  # noqa: ANN401
        """Apply the inner aggregator's post-processing to every group."""
        if raw is None:
            return {}
        groups = decode_map_holder(raw)
        return {key: self.aggregator.finish(value) for key, value in groups.items()}


@dataclass(frozen=True)
class CompositeAggregator(EntryAggregator):
    """Runs several aggregators over the same entries; the result is a list in order."""

    type_tag = AggregatorTag.COMPOSITE.value

    aggregators: tuple[EntryAggregator, ...] = wire_field(WireField.AGGREGATORS, sequence=True)

    def __post_init__(self) -> None:
        """Validate and flatten the aggregator list."""
        super().__post_init__()
        owner = type(self).__name__
        require(self.aggregators, WireField.AGGREGATORS.value, owner)
        leaves: list[EntryAggregator] = []
        for i, aggregator in enumerate(self.aggregators):
            if not isinstance(aggregator, EntryAggregator):
                msg = f'{owner} accepts aggregators only, got {type(aggregator).__name__}'
                raise ExpressionError(msg, path=f'{WireField.AGGREGATORS.value}[{i}]')
            leaves.extend(_leaves(aggregator))
        if not leaves:
            msg = f'{owner} requires at least one aggregator'
            raise ExpressionError(msg, path=WireField.AGGREGATORS.value)
        object.__setattr__(self, 'aggregators', tuple(leaves))

    def finish(self, raw: Any) -> list[Any]:  # noqa: ANN401
        """Apply every aggregator's post-processing to its own result."""
        results = list(raw) if raw is not None else [None] * len(self.aggregators)
        return [aggregator.finish(value) for aggregator, value in zip(self.aggregators, results)]


class Aggregators:
    """Factory helpers for aggregators."""

    @staticmethod
    def min(path: ExtractorLike) -> MinAggregator:
        """Smallest extracted value."""
        return MinAggregator(Extractors.extract(path))

    @staticmethod
    def max(path: ExtractorLike) -> MaxAggregator:
        """Largest extracted value."""
        return MaxAggregator(Extractors.extract(path))

    @staticmethod
    def sum(path: ExtractorLike) -> SumAggregator:
        """Sum of extracted numbers."""
        return SumAggregator(Extractors.extract(path))

    @staticmethod
    def average(path: ExtractorLike) -> AverageAggregator:
        """Average of extracted numbers."""
        return AverageAggregator(Extractors.extract(path))

    @staticmethod
    def count() -> CountAggregator:
        """Number of selected entries."""
        return CountAggregator()

    @staticmethod
    def distinct_values(path: ExtractorLike = None) -> DistinctValuesAggregator:
        """
        Unique extracted values.

        Args:
            path: Property path or extractor; a MultiExtractor yields unique tuples

        Returns:
            DistinctValuesAggregator
        """
        return DistinctValuesAggregator(Extractors.extract(path))

    @staticmethod
    def group_by(
        path: ExtractorLike,
        aggregator: EntryAggregator,
        filter: Filter | None = None,  # noqa: A002
    ) -> GroupAggregator:
        """
        Aggregate per group of entries sharing an extracted value.

        Args:
            path: Property path or extractor used as the group key
            aggregator: Aggregator run within each group
            filter: Optional filter limiting the reported groups

        Returns:
            GroupAggregator
        """
        return GroupAggregator(Extractors.extract(path), aggregator, filter)
