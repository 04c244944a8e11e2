"""Tests for expression trees and their wire form."""

import pytest

from namerec.ncache import Aggregators
from namerec.ncache import Comparators
from namerec.ncache import ExpressionError
from namerec.ncache import Extractors
from namerec.ncache import Filters
from namerec.ncache import Processors
from namerec.ncache.expression import AlwaysFilter
from namerec.ncache.expression import AndFilter
from namerec.ncache.expression import BetweenFilter
from namerec.ncache.expression import ChainedExtractor
from namerec.ncache.expression import CompositeProcessor
from namerec.ncache.expression import ConditionalProcessor
from namerec.ncache.expression import ConditionalPut
from namerec.ncache.expression import EntryProcessor
from namerec.ncache.expression import Expression
from namerec.ncache.expression import Filter
from namerec.ncache.expression import IdentityExtractor
from namerec.ncache.expression import UniversalExtractor
from namerec.ncache.expression import registered_tags


def test_extractor_paths() -> None:
    """Test property path resolution."""
    assert Extractors.extract('ival') == UniversalExtractor('ival')
    assert Extractors.extract(None) == IdentityExtractor()

    chained = Extractors.extract('j.a.v.word')
    assert isinstance(chained, ChainedExtractor)
    assert [step.name for step in chained.extractors] == ['j', 'a', 'v', 'word']
    assert chained.to_dict() == {
        '@class': 'extractor.ChainedExtractor',
        'extractors': [
            {'@class': 'extractor.UniversalExtractor', 'name': 'j'},
            {'@class': 'extractor.UniversalExtractor', 'name': 'a'},
            {'@class': 'extractor.UniversalExtractor', 'name': 'v'},
            {'@class': 'extractor.UniversalExtractor', 'name': 'word'},
        ],
    }


def test_extractor_method_params() -> None:
    """Test that method parameters travel only when given."""
    assert Extractors.extract('get()', 'ival').to_dict() == {
        '@class': 'extractor.UniversalExtractor',
        'name': 'get()',
        'params': ['ival'],
    }
    with pytest.raises(ExpressionError):
        Extractors.extract('a.b', 1)


@pytest.mark.parametrize('path', ['', 'a..b', '.a'])
def test_invalid_paths(path: str) -> None:
    """Test that malformed property paths are rejected."""
    with pytest.raises(ExpressionError):
        Extractors.chained(path)


def test_extractor_chaining_is_flat() -> None:
    """Test that chaining keeps a single flat step list."""
    chain = Extractors.extract('a.b').and_then('c').and_then(Extractors.extract('d.e'))
    assert [step.name for step in chain.extractors] == ['a', 'b', 'c', 'd', 'e']

    composed = Extractors.extract('c').compose('a.b')
    assert [step.name for step in composed.extractors] == ['a', 'b', 'c']


def test_updater_paths() -> None:
    """Test updater resolution for single and nested paths."""
    assert Extractors.updater('ival').to_dict() == {'@class': 'extractor.UniversalUpdater', 'name': 'ival'}

    nested = Extractors.updater('a.b.c').to_dict()
    assert nested['@class'] == 'extractor.CompositeUpdater'
    assert nested['updater'] == {'@class': 'extractor.UniversalUpdater', 'name': 'c'}
    assert [step['name'] for step in nested['extractor']['extractors']] == ['a', 'b']


def test_comparison_filter_shape() -> None:
    """Test wire form of a comparison filter."""
    assert Filters.greater('ival', 200).to_dict() == {
        '@class': 'filter.GreaterFilter',
        'extractor': {'@class': 'extractor.UniversalExtractor', 'name': 'ival'},
        'value': 200,
    }


def test_filter_requires_extractor() -> None:
    """Test that a missing extractor is reported with its path."""
    with pytest.raises(ExpressionError) as exc_info:
        Filters.equal(None, 1)
    assert exc_info.value.path == 'extractor'


def test_between_is_exclusive_by_default() -> None:
    """Test bound inclusiveness of range filters."""
    exclusive = Filters.between('ival', 100, 300)
    assert isinstance(exclusive, AndFilter)
    assert [type(f).__name__ for f in exclusive.filters] == ['GreaterFilter', 'LessFilter']

    inclusive = Filters.between('ival', 100, 300, include_lower=True, include_upper=True)
    assert [type(f).__name__ for f in inclusive.filters] == ['GreaterEqualsFilter', 'LessEqualsFilter']

    wire = exclusive.to_dict()
    assert wire['@class'] == 'filter.BetweenFilter'
    assert wire['from'] == 100
    assert wire['to'] == 300
    assert len(wire['filters']) == 2


def test_binary_filters_take_two_children() -> None:
    """Test arity of and/or/xor filters."""
    a = Filters.equal('ival', 1)
    b = Filters.equal('ival', 2)
    c = Filters.equal('ival', 3)

    assert len((a & b).filters) == 2
    assert len((a | b).filters) == 2
    assert len((a ^ b).filters) == 2
    with pytest.raises(ExpressionError):
        AndFilter((a, b, c))
    with pytest.raises(ExpressionError):
        Filters.all_()

    assert len(Filters.all_(a, b, c).filters) == 3
    assert len(Filters.any_(a).filters) == 1


def test_composite_rejects_non_filters() -> None:
    """Test child validation of composite filters."""
    with pytest.raises(ExpressionError) as exc_info:
        AndFilter((Filters.always(), 'ival'))  # type: ignore[arg-type]
    assert exc_info.value.path == 'filters[1]'


def test_key_associated_must_be_outermost() -> None:
    """Test that key-associated filters cannot be nested or used as guards."""
    associated = Filters.equal('ival', 1).associated_with('123')
    assert associated.to_dict()['hostKey'] == '123'

    with pytest.raises(ExpressionError):
        associated & Filters.always()
    with pytest.raises(ExpressionError):
        Filters.not_(associated)
    with pytest.raises(ExpressionError):
        Filters.key_associated(associated, '456')
    with pytest.raises(ExpressionError):
        Processors.put(1).when(associated)
    with pytest.raises(ExpressionError):
        Processors.conditional_remove(associated)


def test_like_filter() -> None:
    """Test pattern filter options and validation."""
    plain = Filters.like('str', '1%').to_dict()
    assert 'escape' not in plain
    assert plain['ignoreCase'] is False

    escaped = Filters.like('str', '1\\%', escape='\\', ignore_case=True).to_dict()
    assert escaped['escape'] == '\\'
    assert escaped['ignoreCase'] is True

    with pytest.raises(ExpressionError):
        Filters.like('str', 123)  # type: ignore[arg-type]
    with pytest.raises(ExpressionError):
        Filters.like('str', 'x', escape='ab')


def test_in_and_contains_filters() -> None:
    """Test that collection arguments are sent as arrays."""
    assert Filters.in_('ival', {123}).to_dict()['value'] == [123]
    assert Filters.array_contains_any('iarr', [1, 9]).to_dict()['value'] == [1, 9]
    assert Filters.is_null('nullIfOdd').to_dict()['value'] is None


def test_processor_chaining_is_associative() -> None:
    """Test that and_then always produces a flat composite."""
    p1 = Processors.get()
    p2 = Processors.put(1)
    p3 = Processors.remove()

    left = p1.and_then(p2).and_then(p3)
    right = p1.and_then(p2.and_then(p3))
    assert isinstance(left, CompositeProcessor)
    assert left == right
    assert left.processors == (p1, p2, p3)

    nested = CompositeProcessor((CompositeProcessor((p1, p2)), p3))
    assert nested.processors == (p1, p2, p3)


def test_when_replaces_guard() -> None:
    """Test that guarding a guarded processor keeps only the last guard."""
    put = Processors.put(1)
    guarded = put.when(Filters.never()).when(Filters.present())

    assert isinstance(guarded, ConditionalProcessor)
    assert guarded.filter == Filters.present()
    assert guarded.processor == put

    collapsed = ConditionalProcessor(Filters.always(), put.when(Filters.never()))
    assert collapsed.processor == put


def test_returning_processors() -> None:
    """Test return flags of conditional processors."""
    cond = Processors.conditional_put(Filters.always(), {'a': 1})
    assert cond.to_dict()['return'] is False

    returning = cond.return_current()
    assert isinstance(returning, ConditionalPut)
    assert returning.to_dict()['return'] is True
    assert cond.return_value is False

    remove = Processors.remove()
    assert remove.to_dict() == {
        '@class': 'processor.ConditionalRemove',
        'filter': {'@class': 'filter.AlwaysFilter'},
        'return': False,
    }


def test_map_holder_shape() -> None:
    """Test the wire form of processors carrying a mapping."""
    wire = Processors.conditional_put_all(Filters.present(), {'123': 1, '234': 2}).to_dict()
    assert wire['entries'] == {'entries': [{'key': '123', 'value': 1}, {'key': '234', 'value': 2}]}

    versioned = Processors.versioned_put_all({'456': {'@version': 4}}, insert=True).to_dict()
    assert versioned['insert'] is True
    assert versioned['entries']['entries'][0]['key'] == '456'


def test_numeric_fold_processors() -> None:
    """Test defaults and refinements of multiply/increment."""
    multiply = Processors.multiply('ival', 2)
    wire = multiply.to_dict()
    assert wire['multiplier'] == 2
    assert wire['postMultiplication'] is True
    assert wire['manipulator']['@class'] == 'extractor.CompositeUpdater'
    assert multiply.return_new_value().to_dict()['postMultiplication'] is False

    increment = Processors.increment('ival', -25).return_new_value()
    assert increment.to_dict()['postIncrement'] is False
    assert increment.to_dict()['increment'] == -25


def test_method_invocation() -> None:
    """Test accessor and mutator method invocations."""
    assert Processors.invoke_accessor('get', 'ival').to_dict() == {
        '@class': 'processor.MethodInvocationProcessor',
        'methodName': 'get',
        'mutator': False,
        'args': ['ival'],
    }
    assert Processors.invoke_mutator('remove', 'ival').to_dict()['mutator'] is True
    with pytest.raises(ExpressionError):
        Processors.invoke_accessor('')


def test_aggregator_finish() -> None:
    """Test post-processing of aggregation results over empty sets."""
    assert Aggregators.count().finish(None) == 0
    assert Aggregators.distinct_values('ival').finish(None) == []
    assert Aggregators.min('ival').finish(None) is None
    assert Aggregators.average('ival').finish(None) is None
    assert Aggregators.group_by('group', Aggregators.count()).finish(None) == {}
    group = Aggregators.group_by('group', Aggregators.count())
    assert group.finish({'entries': [{'key': 1, 'value': None}, {'key': [1, 'a'], 'value': 3}]}) == {1: 0, (1, 'a'): 3}
    with pytest.raises(ExpressionError, match='Map holder'):
        group.finish({'1': 2})

    composite = Aggregators.count().and_then(Aggregators.distinct_values('ival')).and_then(Aggregators.max('ival'))
    assert composite.finish(None) == [0, [], None]
    assert len(composite.to_dict()['aggregators']) == 3


def test_group_aggregator_shape() -> None:
    """Test that the optional group filter is omitted when absent."""
    assert 'filter' not in Aggregators.group_by('group', Aggregators.count()).to_dict()
    filtered = Aggregators.group_by('group', Aggregators.count(), Filters.always()).to_dict()
    assert filtered['filter'] == {'@class': 'filter.AlwaysFilter'}


def test_comparators() -> None:
    """Test comparator wrapping."""
    comparator = Comparators.extract('ival')
    inverse = comparator.reversed()
    assert inverse.to_dict() == {
        '@class': 'comparator.InverseComparator',
        'comparator': {
            '@class': 'comparator.ExtractorComparator',
            'extractor': {'@class': 'extractor.UniversalExtractor', 'name': 'ival'},
        },
    }
    assert inverse.reversed() == comparator
    assert comparator.null_safe().to_dict()['@class'] == 'comparator.SafeComparator'


def test_expressions_are_immutable_and_hashable() -> None:
    """Test that expressions can be shared and used as keys."""
    f = Filters.equal('ival', 1)
    with pytest.raises(AttributeError):
        f.value = 2  # type: ignore[misc]
    assert {f: 1}[Filters.equal('ival', 1)] == 1

    put_all = Processors.conditional_put_all(Filters.present(), {'123': {'id': 123}})
    assert put_all in {Processors.conditional_put_all(Filters.present(), {'123': {'id': 123}})}
    assert put_all != Processors.conditional_put_all(Filters.present(), {'123': {'id': 0}})
    with pytest.raises(TypeError):
        put_all.entries['456'] = {'id': 456}  # type: ignore[index]

    versioned = Processors.versioned_put_all({'123': {'@version': 1}}, insert=True)
    assert hash(versioned) == hash(Processors.versioned_put_all({'123': {'@version': 1}}, insert=True))
    assert versioned.entries == {'123': {'@version': 1}}


def test_from_dict_rebuilds_tree() -> None:
    """Test rebuilding expressions from their wire form."""
    original = Processors.conditional_put(
        Filters.between('ival', 1, 9) | Filters.like('str', '1%'),
        {'id': 1},
    ).return_current()
    rebuilt = Expression.from_dict(original.to_dict())
    assert rebuilt == original

    assert isinstance(Filter.from_dict({'@class': 'filter.AlwaysFilter'}), AlwaysFilter)
    assert isinstance(Expression.from_dict(Filters.between('ival', 1, 9).to_dict()), BetweenFilter)


def test_from_dict_errors() -> None:
    """Test rejection of malformed wire forms."""
    with pytest.raises(ExpressionError, match='@class'):
        Expression.from_dict({'name': 'ival'})
    with pytest.raises(ExpressionError, match='Unknown expression type'):
        Expression.from_dict({'@class': 'filter.NoSuchFilter'})
    with pytest.raises(ExpressionError, match='is not a'):
        EntryProcessor.from_dict({'@class': 'filter.AlwaysFilter'})
    with pytest.raises(ExpressionError, match='Invalid fields'):
        Expression.from_dict({'@class': 'filter.EqualsFilter', 'extractor': {'@class': 'extractor.IdentityExtractor'}})


def test_registered_tags() -> None:
    """Test that every concrete expression kind is registered."""
    tags = registered_tags()
    assert 'filter.BetweenFilter' in tags
    assert 'processor.Get' in tags
    assert 'aggregator.GroupAggregator' in tags
    assert 'comparator.SafeComparator' in tags
    assert 'extractor.CompositeUpdater' in tags
    assert all(tag.split('.')[0] in {'filter', 'extractor', 'processor', 'aggregator', 'comparator'} for tag in tags)
