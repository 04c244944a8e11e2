"""Wire-serializable expression trees: filters, extractors, processors, aggregators, comparators."""

from namerec.ncache.expression.aggregators import Aggregators
from namerec.ncache.expression.aggregators import AverageAggregator
from namerec.ncache.expression.aggregators import CompositeAggregator
from namerec.ncache.expression.aggregators import CountAggregator
from namerec.ncache.expression.aggregators import DistinctValuesAggregator
from namerec.ncache.expression.aggregators import EntryAggregator
from namerec.ncache.expression.aggregators import GroupAggregator
from namerec.ncache.expression.aggregators import MaxAggregator
from namerec.ncache.expression.aggregators import MinAggregator
from namerec.ncache.expression.aggregators import SumAggregator
from namerec.ncache.expression.base import Expression
from namerec.ncache.expression.base import registered_tags
from namerec.ncache.expression.comparators import Comparator
from namerec.ncache.expression.comparators import Comparators
from namerec.ncache.expression.comparators import ExtractorComparator
from namerec.ncache.expression.comparators import InverseComparator
from namerec.ncache.expression.comparators import SafeComparator
from namerec.ncache.expression.extractors import ChainedExtractor
from namerec.ncache.expression.extractors import CompositeUpdater
from namerec.ncache.expression.extractors import Extractors
from namerec.ncache.expression.extractors import IdentityExtractor
from namerec.ncache.expression.extractors import MultiExtractor
from namerec.ncache.expression.extractors import UniversalExtractor
from namerec.ncache.expression.extractors import UniversalUpdater
from namerec.ncache.expression.extractors import ValueExtractor
from namerec.ncache.expression.extractors import ValueUpdater
from namerec.ncache.expression.filters import AllFilter
from namerec.ncache.expression.filters import AlwaysFilter
from namerec.ncache.expression.filters import AndFilter
from namerec.ncache.expression.filters import AnyFilter
from namerec.ncache.expression.filters import BetweenFilter
from namerec.ncache.expression.filters import ContainsAllFilter
from namerec.ncache.expression.filters import ContainsAnyFilter
from namerec.ncache.expression.filters import ContainsFilter
from namerec.ncache.expression.filters import EqualsFilter
from namerec.ncache.expression.filters import Filter
from namerec.ncache.expression.filters import Filters
from namerec.ncache.expression.filters import GreaterEqualsFilter
from namerec.ncache.expression.filters import GreaterFilter
from namerec.ncache.expression.filters import InFilter
from namerec.ncache.expression.filters import IsNotNullFilter
from namerec.ncache.expression.filters import IsNullFilter
from namerec.ncache.expression.filters import KeyAssociatedFilter
from namerec.ncache.expression.filters import LessEqualsFilter
from namerec.ncache.expression.filters import LessFilter
from namerec.ncache.expression.filters import LikeFilter
from namerec.ncache.expression.filters import NeverFilter
from namerec.ncache.expression.filters import NotEqualsFilter
from namerec.ncache.expression.filters import NotFilter
from namerec.ncache.expression.filters import OrFilter
from namerec.ncache.expression.filters import PresentFilter
from namerec.ncache.expression.filters import XorFilter
from namerec.ncache.expression.processors import CompositeProcessor
from namerec.ncache.expression.processors import ConditionalProcessor
from namerec.ncache.expression.processors import ConditionalPut
from namerec.ncache.expression.processors import ConditionalPutAll
from namerec.ncache.expression.processors import ConditionalRemove
from namerec.ncache.expression.processors import EntryProcessor
from namerec.ncache.expression.processors import ExtractorProcessor
from namerec.ncache.expression.processors import GetProcessor
from namerec.ncache.expression.processors import MethodInvocationProcessor
from namerec.ncache.expression.processors import NumberIncrementor
from namerec.ncache.expression.processors import NumberMultiplier
from namerec.ncache.expression.processors import Processors
from namerec.ncache.expression.processors import PutProcessor
from namerec.ncache.expression.processors import UpdaterProcessor
from namerec.ncache.expression.processors import VersionedPut
from namerec.ncache.expression.processors import VersionedPutAll

__all__ = [
    # Base
    'Expression',
    'registered_tags',
    # Extractors
    'ValueExtractor',
    'UniversalExtractor',
    'ChainedExtractor',
    'IdentityExtractor',
    'MultiExtractor',
    'ValueUpdater',
    'UniversalUpdater',
    'CompositeUpdater',
    'Extractors',
    # Filters
    'Filter',
    'EqualsFilter',
    'NotEqualsFilter',
    'LessFilter',
    'LessEqualsFilter',
    'GreaterFilter',
    'GreaterEqualsFilter',
    'LikeFilter',
    'BetweenFilter',
    'IsNullFilter',
    'IsNotNullFilter',
    'InFilter',
    'AndFilter',
    'OrFilter',
    'XorFilter',
    'NotFilter',
    'AllFilter',
    'AnyFilter',
    'ContainsFilter',
    'ContainsAllFilter',
    'ContainsAnyFilter',
    'AlwaysFilter',
    'NeverFilter',
    'PresentFilter',
    'KeyAssociatedFilter',
    'Filters',
    # Processors
    'EntryProcessor',
    'ExtractorProcessor',
    'GetProcessor',
    'PutProcessor',
    'CompositeProcessor',
    'ConditionalProcessor',
    'ConditionalPut',
    'ConditionalPutAll',
    'ConditionalRemove',
    'VersionedPut',
    'VersionedPutAll',
    'UpdaterProcessor',
    'MethodInvocationProcessor',
    'NumberMultiplier',
    'NumberIncrementor',
    'Processors',
    # Aggregators
    'EntryAggregator',
    'MinAggregator',
    'MaxAggregator',
    'SumAggregator',
    'AverageAggregator',
    'CountAggregator',
    'DistinctValuesAggregator',
    'GroupAggregator',
    'CompositeAggregator',
    'Aggregators',
    # Comparators
    'Comparator',
    'ExtractorComparator',
    'SafeComparator',
    'InverseComparator',
    'Comparators',
]
