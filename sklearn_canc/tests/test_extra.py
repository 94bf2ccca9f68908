"""Tests for `sklearn_canc.extra`."""

import io

import matplotlib.pyplot as plt
import numpy as np
import pytest
from matplotlib.figure import Figure

from sklearn_canc.common import Outcome
from sklearn_canc.extra import Trace, plot_trace, trace_learning
from sklearn_canc.online import OnlineCANCLearner
from sklearn_canc.tests.datasets import play_tennis


@pytest.fixture
def tennis_trace(variant) -> Trace:
    traces = []
    TracedLearner = trace_learning(OnlineCANCLearner, traces.append)
    learner = TracedLearner(grace_period=5, variant=variant, resampling=4)
    outcomes = [learner.learn_one(record)
                for record in play_tennis().records()]
    assert len(traces) == 1
    trace = traces[0]
    assert trace is learner.trace
    assert [step.outcome for step in trace.steps] \
        == [outcome.value for outcome in outcomes]
    assert trace.steps[-1].n_rules == len(learner.rules)

    learner.reset()
    assert learner.trace is None
    learner.learn_one(play_tennis().records()[0])
    assert len(traces) == 2
    return trace


def test_learning_trace(tennis_trace):
    assert len(tennis_trace.steps) == 14
    outcomes = tennis_trace.outcomes()
    assert list(outcomes[:5]) == [Outcome.ACCUMULATING.value] * 5
    assert Outcome.ACCUMULATING.value not in outcomes[5:]
    assert tennis_trace.steps[3].n_rules == 0
    assert tennis_trace.steps[4].n_rules > 0
    # model is append-only
    n_rules = [step.n_rules for step in tennis_trace.steps]
    assert n_rules == sorted(n_rules)

    accuracy = tennis_trace.prequential_accuracy()
    rejections = tennis_trace.rejection_rate()
    assert len(accuracy) == len(rejections) == 9
    assert np.all((0 <= accuracy) & (accuracy <= 1))
    assert np.all(accuracy + rejections <= 1 + 1e-12)


def test_trace_json(tennis_trace):
    json_str = tennis_trace.to_json()
    assert Trace.from_json(json_str) == tennis_trace
    assert Trace.from_json(io.StringIO(json_str)) == tennis_trace

    with pytest.raises(ValueError):
        Trace.from_json('{"description": "something else", "version": 1}')
    with pytest.raises(ValueError):
        Trace.from_json(json_str.replace('"version": 1', '"version": 2'))


def test_plot_trace(tennis_trace):
    figure = plot_trace(tennis_trace, title="play tennis")
    assert isinstance(figure, Figure)
    assert len(figure.axes) == 2
    plt.close(figure)
    figure = tennis_trace.plot_trace()
    plt.close(figure)


def test_plot_empty_trace():
    with pytest.warns(UserWarning):
        figure = plot_trace(Trace())
    plt.close(figure)
