"""Constants for the expression wire format to avoid magic strings."""

from enum import Enum

# Reserved field carrying the type tag of a serialized expression
CLASS_FIELD = '@class'

# Field embedded in cached values by versioned writes
VERSION_FIELD = '@version'

# Marker byte that prefixes every payload produced by the JSON serializer
JSON_MARKER = b'\x15'


class WireField(str, Enum):
    """Field names used in serialized expressions."""

    # Common fields
    EXTRACTOR = 'extractor'
    VALUE = 'value'
    FILTER = 'filter'
    FILTERS = 'filters'

    # Extractors and updaters
    NAME = 'name'
    PARAMS = 'params'
    EXTRACTORS = 'extractors'
    UPDATER = 'updater'

    # Filters
    ESCAPE = 'escape'
    IGNORE_CASE = 'ignoreCase'
    FROM = 'from'
    TO = 'to'
    HOST_KEY = 'hostKey'

    # Processors
    PROCESSOR = 'processor'
    PROCESSORS = 'processors'
    RETURN = 'return'
    ENTRIES = 'entries'
    INSERT = 'insert'
    TTL = 'ttl'
    METHOD_NAME = 'methodName'
    MUTATOR = 'mutator'
    ARGS = 'args'
    MANIPULATOR = 'manipulator'
    MULTIPLIER = 'multiplier'
    POST_MULTIPLICATION = 'postMultiplication'
    INCREMENT = 'increment'
    POST_INCREMENT = 'postIncrement'

    # Aggregators
    AGGREGATOR = 'aggregator'
    AGGREGATORS = 'aggregators'

    # Comparators
    COMPARATOR = 'comparator'

    # Map holder entries
    KEY = 'key'


class FilterTag(str, Enum):
    """Type tags of filter expressions."""

    EQUALS = 'filter.EqualsFilter'
    NOT_EQUALS = 'filter.NotEqualsFilter'
    LESS = 'filter.LessFilter'
    LESS_EQUALS = 'filter.LessEqualsFilter'
    GREATER = 'filter.GreaterFilter'
    GREATER_EQUALS = 'filter.GreaterEqualsFilter'
    LIKE = 'filter.LikeFilter'
    BETWEEN = 'filter.BetweenFilter'
    IS_NULL = 'filter.IsNullFilter'
    IS_NOT_NULL = 'filter.IsNotNullFilter'
    IN = 'filter.InFilter'

    AND = 'filter.AndFilter'
    OR = 'filter.OrFilter'
    XOR = 'filter.XorFilter'
    NOT = 'filter.NotFilter'
    ALL = 'filter.AllFilter'
    ANY = 'filter.AnyFilter'

    CONTAINS = 'filter.ContainsFilter'
    CONTAINS_ALL = 'filter.ContainsAllFilter'
    CONTAINS_ANY = 'filter.ContainsAnyFilter'

    ALWAYS = 'filter.AlwaysFilter'
    NEVER = 'filter.NeverFilter'
    PRESENT = 'filter.PresentFilter'

    KEY_ASSOCIATED = 'filter.KeyAssociatedFilter'


class ExtractorTag(str, Enum):
    """Type tags of extractor and updater expressions."""

    UNIVERSAL = 'extractor.UniversalExtractor'
    CHAINED = 'extractor.ChainedExtractor'
    IDENTITY = 'extractor.IdentityExtractor'
    MULTI = 'extractor.MultiExtractor'
    UNIVERSAL_UPDATER = 'extractor.UniversalUpdater'
    COMPOSITE_UPDATER = 'extractor.CompositeUpdater'


class ProcessorTag(str, Enum):
    """Type tags of entry processor expressions."""

    EXTRACTOR = 'processor.ExtractorProcessor'
    COMPOSITE = 'processor.CompositeProcessor'
    CONDITIONAL = 'processor.ConditionalProcessor'
    GET = 'processor.Get'
    PUT = 'processor.PutProcessor'
    CONDITIONAL_PUT = 'processor.ConditionalPut'
    CONDITIONAL_PUT_ALL = 'processor.ConditionalPutAll'
    CONDITIONAL_REMOVE = 'processor.ConditionalRemove'
    VERSIONED_PUT = 'processor.VersionedPut'
    VERSIONED_PUT_ALL = 'processor.VersionedPutAll'
    UPDATER = 'processor.UpdaterProcessor'
    METHOD_INVOCATION = 'processor.MethodInvocationProcessor'
    NUMBER_MULTIPLIER = 'processor.NumberMultiplier'
    NUMBER_INCREMENTOR = 'processor.NumberIncrementor'


class AggregatorTag(str, Enum):
    """Type tags of aggregator expressions."""

    MIN = 'aggregator.ComparableMin'
    MAX = 'aggregator.ComparableMax'
    SUM = 'aggregator.BigDecimalSum'
    AVERAGE = 'aggregator.BigDecimalAverage'
    COUNT = 'aggregator.Count'
    DISTINCT_VALUES = 'aggregator.DistinctValues'
    GROUP = 'aggregator.GroupAggregator'
    COMPOSITE = 'aggregator.CompositeAggregator'


class ComparatorTag(str, Enum):
    """Type tags of comparator expressions."""

    EXTRACTOR = 'comparator.ExtractorComparator'
    SAFE = 'comparator.SafeComparator'
    INVERSE = 'comparator.InverseComparator'
