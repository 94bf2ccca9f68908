"""Tests for `sklearn_canc.concepts`."""

import pytest

from sklearn_canc.closure import ClosureOperator
from sklearn_canc.common import AttributeEvaluation, Concept, Record, \
    ValueEvaluation, Variant
from sklearn_canc.concepts import make_concept_generator, \
    AllAttributesAllValues, AllAttributesRelevantValue, \
    PertinentAttributeAllValues, PertinentAttributeRelevantValue
from sklearn_canc.context import NominalContext
from sklearn_canc.tests.datasets import Dataset

REJECTED_RECORD = Record({'sky': 'rainy', 'wind': 'yes'}, 'yes')


def generate(context, variant, rejected=None, **kwargs):
    closure = ClosureOperator(context, **kwargs)
    return make_concept_generator(variant).generate(context, closure, rejected)


@pytest.mark.parametrize('attribute_evaluation', list(AttributeEvaluation))
@pytest.mark.parametrize('value_evaluation', list(ValueEvaluation))
def test_concept_validity(blackbox_dataset: Dataset, variant,
                          attribute_evaluation, value_evaluation):
    """Every generated concept is closed, non-empty and distinct."""
    context = blackbox_dataset.context()
    closure = ClosureOperator(context, attribute_evaluation, value_evaluation)
    concepts = make_concept_generator(variant).generate(context, closure)
    assert concepts
    for concept in concepts:
        assert concept.extent
        assert closure.closure(concept.extent) == concept.extent
        assert closure.description_of(concept.extent) == concept.intent
    extents = [frozenset(concept.extent) for concept in concepts]
    assert len(set(extents)) == len(extents)


def test_pertinent_attribute_all_values(wind_context):
    """Only the values of the most informative attribute are anchors."""
    concepts = generate(wind_context, Variant.PERTINENT_ATTRIBUTE_ALL_VALUES,
                        attribute_evaluation='information_gain')
    assert concepts == [Concept({0, 1}, [('wind', 'no')]),
                        Concept({2, 3}, [('wind', 'yes')])]


def test_pertinent_attribute_relevant_value(wind_context):
    concepts = generate(wind_context, 'CpNC_CORV')
    # equal support for 'no' and 'yes'
    assert concepts == [Concept({0, 1}, [('wind', 'no')])]
    concepts = generate(wind_context, 'CpNC_CORV',
                        value_evaluation='entropy')
    assert concepts == [Concept({0, 1}, [('wind', 'no')])]


def test_all_attributes_all_values(weather_context):
    concepts = generate(weather_context, Variant.ALL_ATTRIBUTES_ALL_VALUES)
    assert concepts == [
        Concept({0, 2}, [('sky', 'sunny')]),
        Concept({0, 1}, [('wind', 'no')]),
        Concept({1}, [('sky', 'rainy'), ('wind', 'no')]),
        Concept({2}, [('sky', 'sunny'), ('wind', 'yes')]),
    ]


def test_all_attributes_relevant_value(weather_context):
    concepts = generate(weather_context, 'CaNC_CORV')
    assert concepts == [Concept({0, 2}, [('sky', 'sunny')]),
                        Concept({0, 1}, [('wind', 'no')])]
    concepts = generate(weather_context, 'CaNC_CORV',
                        value_evaluation='entropy')
    assert concepts == [Concept({1}, [('sky', 'rainy'), ('wind', 'no')]),
                        Concept({2}, [('sky', 'sunny'), ('wind', 'yes')])]


def test_deduplication_by_extent():
    """Perfectly correlated attributes yield the same extents."""
    context = NominalContext()
    for a, b in [('x', 'u'), ('y', 'v'), ('x', 'u')]:
        context.add(Record({'a': a, 'b': b}, 'c'))
    expected = [Concept({0, 2}, [('a', 'x'), ('b', 'u')])]
    assert generate(context, 'CaNC_CORV') == expected
    assert generate(context, 'CaNC_COMV') == expected + [
        Concept({1}, [('a', 'y'), ('b', 'v')])]


def test_restricted_mode(weather_context):
    """After a rejection, only the rejected record's value is tried."""
    concepts = generate(weather_context, 'CpNC_COMV', REJECTED_RECORD,
                        attribute_evaluation='information_gain')
    assert concepts == [Concept({1}, [('sky', 'rainy'), ('wind', 'no')])]
    unrestricted = generate(weather_context, 'CpNC_COMV',
                            attribute_evaluation='information_gain')
    assert len(unrestricted) == 2


@pytest.mark.parametrize('variant_name', ['CpNC_CORV', 'CaNC_COMV',
                                          'CaNC_CORV'])
def test_restricted_mode_ignored(weather_context, variant_name):
    assert generate(weather_context, variant_name, REJECTED_RECORD) \
        == generate(weather_context, variant_name)


def test_restricted_mode_unknown_value(weather_context):
    rejected = Record({'sky': 'cloudy', 'wind': 'no'}, 'no')
    assert generate(weather_context, 'CpNC_COMV', rejected,
                    attribute_evaluation='information_gain') == []


def test_empty_context(variant):
    assert generate(NominalContext(), variant) == []
    assert generate(NominalContext(['sky']), variant) == []


@pytest.mark.parametrize('variant_id, generator', [
    (Variant.PERTINENT_ATTRIBUTE_ALL_VALUES, PertinentAttributeAllValues),
    ('CpNC_CORV', PertinentAttributeRelevantValue),
    ('ALL_ATTRIBUTES_ALL_VALUES', AllAttributesAllValues),
    ('CaNC_CORV', AllAttributesRelevantValue),
])
def test_make_concept_generator(variant_id, generator):
    assert make_concept_generator(variant_id) is generator


def test_make_concept_generator_invalid():
    with pytest.raises(ValueError):
        make_concept_generator('CpNC_ALL')
