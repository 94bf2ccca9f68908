"""Tests for `sklearn_canc.closure`."""

import pytest
from sklearn.utils import check_random_state

from sklearn_canc.closure import ClosureOperator, information_gain, \
    gain_ratio
from sklearn_canc.common import AttributeEvaluation, ValueEvaluation
from sklearn_canc.context import NominalContext

from .conftest import all_subsets


def test_description_of(weather_context):
    closure = ClosureOperator(weather_context)
    assert closure.description_of({0, 2}) == {('sky', 'sunny')}
    assert closure.description_of({0}) == {('sky', 'sunny'), ('wind', 'no')}
    assert closure.description_of({1, 2}) == frozenset()
    assert closure.description_of(set()) == frozenset()


def test_extension_of(weather_context):
    closure = ClosureOperator(weather_context)
    assert closure.extension_of('wind', 'no') == {0, 1}
    assert closure.extension_of('wind', 'maybe') == set()


def test_closure(weather_context):
    closure = ClosureOperator(weather_context)
    assert closure.closure({0}) == {0}
    assert closure.closure({0, 1}) == {0, 1}
    # no common pair: everything
    assert closure.closure({1, 2}) == {0, 1, 2}
    assert closure.closure(set()) == {0, 1, 2}
    assert closure.is_closed({0, 2})
    assert not closure.is_closed(set())


def test_closure_properties_exhaustive(weather_context):
    closure = ClosureOperator(weather_context)
    subsets = list(all_subsets(range(len(weather_context))))
    for s in subsets:
        assert closure.closure(closure.closure(s)) == closure.closure(s)
        assert s <= closure.closure(s)
    for s1 in subsets:
        for s2 in subsets:
            if s1 and s1 <= s2:
                assert closure.closure(s1) <= closure.closure(s2)


def test_closure_properties_sampled(tennis_context):
    """Idempotence and monotonicity on random (non-empty) record sets."""
    random = check_random_state(42)
    closure = ClosureOperator(tennis_context)
    n = len(tennis_context)
    for _ in range(200):
        s2 = {p for p in range(n) if random.random_sample() < .5} or {0}
        s1 = {p for p in s2 if random.random_sample() < .5} or {min(s2)}
        c1, c2 = closure.closure(s1), closure.closure(s2)
        assert closure.closure(c2) == c2
        assert c1 <= c2
        assert closure.is_closed(c2)


@pytest.mark.parametrize('values, labels, weights, ig, gr', [
    pytest.param(['a', 'a', 'b', 'b'], ['x', 'x', 'y', 'y'], [1, 1, 1, 1],
                 1.0, 1.0, id='perfect'),
    pytest.param(['a', 'b', 'a', 'b'], ['x', 'x', 'y', 'y'], [1, 1, 1, 1],
                 0.0, 0.0, id='independent'),
    pytest.param(['a', 'b', 'c', 'd'], ['x', 'x', 'y', 'y'], [1, 1, 1, 1],
                 1.0, 0.5, id='high-arity'),
    pytest.param(['a', 'a', 'a'], ['x', 'y', 'y'], [1, 1, 1],
                 0.0, 0.0, id='single-value'),
    pytest.param([], [], [], 0.0, 0.0, id='empty'),
])
def test_attribute_evaluators(values, labels, weights, ig, gr):
    assert information_gain(values, labels, weights) == pytest.approx(ig)
    assert gain_ratio(values, labels, weights) == pytest.approx(gr)


def test_attribute_evaluators_use_weights():
    values = ['a', 'a', 'b']
    labels = ['x', 'y', 'y']
    # record 0 weightless: 'a' is pure, a perfect split
    assert information_gain(values, labels, [0, 1, 1]) == pytest.approx(0.0)
    assert information_gain(values, labels, [1, 0, 1]) == pytest.approx(1.0)
    assert information_gain(values, labels, [1, 1, 1]) \
        == pytest.approx(0.2516291673878229)


@pytest.mark.parametrize('method', list(AttributeEvaluation))
def test_most_informative_attribute(wind_context, method):
    closure = ClosureOperator(wind_context, method)
    scores = closure.attribute_scores()
    assert scores['wind'] == pytest.approx(1.0)
    assert scores['sky'] == pytest.approx(0.0)
    assert closure.most_informative_attribute() == 'wind'


def test_most_informative_attribute_tie(weather_context):
    """Equally informative attributes: the lexically first one wins."""
    closure = ClosureOperator(weather_context, 'information_gain')
    assert closure.attribute_score('sky') \
        == pytest.approx(closure.attribute_score('wind'))
    assert closure.most_informative_attribute() == 'sky'


def test_custom_attribute_evaluator(weather_context):
    def prefer_wind(values, labels, weights):
        return float(values[0] == 'no')
    closure = ClosureOperator(weather_context, prefer_wind)
    assert closure.most_informative_attribute() == 'wind'
    assert closure.attribute_score('wind', 'information_gain') \
        == pytest.approx(0.2516291673878229)


def test_value_score(weather_context):
    closure = ClosureOperator(weather_context)
    assert closure.value_score('sky', 'sunny') == pytest.approx(2 / 3)
    assert closure.value_score('sky', 'sunny', 'entropy') == pytest.approx(1)
    assert closure.value_score('sky', 'rainy', ValueEvaluation.ENTROPY) == 0
    assert closure.value_score('sky', 'cloudy') == 0
    assert closure.value_score('sky', 'cloudy', 'entropy') == 0


def test_value_score_entropy_uses_weights(weather_context):
    weather_context.set_weight(0, 3.0)
    closure = ClosureOperator(weather_context, value_evaluation='entropy')
    assert closure.value_score('sky', 'sunny') \
        == pytest.approx(0.8112781244591328)


def test_most_relevant_value(weather_context):
    by_support = ClosureOperator(weather_context, value_evaluation='support')
    assert by_support.most_relevant_value('sky') == 'sunny'
    assert by_support.most_relevant_value('wind') == 'no'
    by_entropy = ClosureOperator(weather_context, value_evaluation='entropy')
    assert by_entropy.most_relevant_value('sky') == 'rainy'
    assert by_entropy.most_relevant_value('wind') == 'yes'
    assert by_entropy.most_relevant_value('temperature') is None


def test_empty_context():
    closure = ClosureOperator(NominalContext(['sky', 'wind']))
    assert closure.most_informative_attribute() is None
    assert closure.most_relevant_value('sky') is None
    assert closure.description_of([]) == frozenset()
    assert closure.closure([]) == set()


@pytest.mark.parametrize('kwargs', [
    dict(attribute_evaluation='chi_square'),
    dict(value_evaluation='purity'),
])
def test_invalid_evaluation(weather_context, kwargs):
    with pytest.raises(ValueError):
        ClosureOperator(weather_context, **kwargs)
