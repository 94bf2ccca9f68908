"""
Helpers in addition to the learner in `online.py`: tracing a learning run and
plotting the trace.
"""

import json
import warnings
from typing import IO, Callable, Dict, MutableSequence, Optional, Type, \
    Union

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure  # needed only for type hints

from sklearn_canc.common import Outcome, Record
from sklearn_canc.online import OnlineCANCLearner


class Trace:
    """Trace of an `OnlineCANCLearner` run over a stream.

    Attributes
    -----
    - `steps`: MutableSequence[Trace.Step]
      One item for each record passed to `learn_one`, in stream order.
    """

    _JSON_DUMP_DESCRIPTION = "sklearn_canc.extra.trace_learning dump"
    _JSON_DUMP_VERSION = 1

    steps: MutableSequence['Trace.Step']

    def __init__(self):
        self.steps = []

    class Step:
        """State of the learner after processing one record.

        Attributes
        -----
        outcome: str
          Value of the `Outcome` of the record.

        n_concepts: int
          Number of concepts of the learner.

        n_rules: int
          Number of rules of the learner.

        total_weight: float
          Sum of all record weights in the store.
        """

        def __init__(self, outcome: str, n_concepts: int, n_rules: int,
                     total_weight: float):
            self.outcome = outcome
            self.n_concepts = n_concepts
            self.n_rules = n_rules
            self.total_weight = total_weight

        @staticmethod
        def from_learner(outcome: Outcome,
                         learner: OnlineCANCLearner) -> 'Trace.Step':
            return Trace.Step(outcome.value, len(learner.concepts),
                              len(learner.rules),
                              learner.context.total_weight())

        def __eq__(self, other):
            if type(other) is type(self):
                return self.__dict__ == other.__dict__
            return NotImplemented

        @staticmethod
        def from_json(dec: Dict) -> 'Trace.Step':
            return Trace.Step(dec['outcome'], dec['n_concepts'],
                              dec['n_rules'], dec['total_weight'])

    def append_step(self, outcome: Outcome, learner: OnlineCANCLearner):
        self.steps.append(Trace.Step.from_learner(outcome, learner))

    def outcomes(self) -> np.ndarray:
        return np.array([step.outcome for step in self.steps], dtype=object)

    def prequential_accuracy(self) -> np.ndarray:
        """:return: For each step after the grace period, the share of
          correctly classified records so far. Rejections count as errors.
        """
        outcomes = self.outcomes()
        classified = outcomes != Outcome.ACCUMULATING.value
        correct = np.cumsum(outcomes[classified] == Outcome.CORRECT.value)
        return correct / np.arange(1, len(correct) + 1)

    def rejection_rate(self) -> np.ndarray:
        """:return: Like `prequential_accuracy`, for rejections."""
        outcomes = self.outcomes()
        classified = outcomes != Outcome.ACCUMULATING.value
        rejected = np.cumsum(outcomes[classified] == Outcome.REJECTED.value)
        return rejected / np.arange(1, len(rejected) + 1)

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return NotImplemented

    def plot_trace(self, **kwargs):
        """Plot the trace, see :func:`plot_trace`."""
        return plot_trace(self, **kwargs)

    @staticmethod
    def _json_encoder(obj):
        """Serialize `obj` when used as `json.JSONEncoder.default` method."""
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, Trace.Step):
            return obj.__dict__
        raise TypeError

    def to_json(self):
        """:return: A string containing a JSON representation of the trace."""
        return json.dumps({
            "description": Trace._JSON_DUMP_DESCRIPTION,
            "version": Trace._JSON_DUMP_VERSION,
            "steps": self.steps,
        }, allow_nan=False, default=Trace._json_encoder)

    @staticmethod
    def from_json(dump: Union[str, IO]) -> 'Trace':
        """
        :param dump: A file-like object or string containing JSON.
        :return : The trace dumped previously with `to_json`.
        """
        loader = json.loads if isinstance(dump, str) else json.load
        dec = loader(dump)

        if dec.get("description") != Trace._JSON_DUMP_DESCRIPTION:
            raise ValueError("No/invalid learning trace json: %s" % repr(dec))
        if dec["version"] != Trace._JSON_DUMP_VERSION:
            raise ValueError("Unsupported learning trace version: %s"
                             % dec["version"])
        trace = Trace()
        trace.steps = [Trace.Step.from_json(step) for step in dec['steps']]
        return trace


LogTraceCallback = Callable[[Trace], None]


def trace_learning(learner_cls: Type[OnlineCANCLearner],
                   log_trace_callback: LogTraceCallback,
                   ) -> Type[OnlineCANCLearner]:
    """Decorator for `OnlineCANCLearner` that traces the state of the learner
    after each record.

    A new `Trace` is started with the first record after construction or
    `reset`, and submitted to `log_trace_callback` right away. It keeps being
    filled as long as the learner is used.

    Usage
    =====
    >>> traces = []
    >>> TracedLearner = trace_learning(OnlineCANCLearner, traces.append)
    >>> learner = TracedLearner(grace_period=100)
    >>> for record in stream:
    ...     learner.learn_one(record)
    >>> plot_trace(traces[-1]).show()
    """

    class TracedLearner(learner_cls):
        def reset(self):
            super().reset()
            self.trace: Optional[Trace] = None

        def learn_one(self, record: Record) -> Outcome:
            if self.trace is None:
                self.trace = Trace()
                log_trace_callback(self.trace)
            outcome = super().learn_one(record)
            self.trace.append_step(outcome, self)
            return outcome

    return TracedLearner


def plot_trace(trace: Trace,
               *,
               title: Optional[str] = None,
               figure: Optional[Figure] = None,
               ) -> Figure:
    """Plot prequential accuracy and rejection rate, and the number of rules,
    over the traced stream.

    :param trace: collected `Trace`, see also `trace_learning`.
    :param title: string or None. If not None, set as figure title.
    :param figure: If None, use `plt.figure()` to create a figure, otherwise
      draw into this one.
    :return: The figure.
    """
    if not trace.steps:
        # issue a warning, user can decide handling. See module `warnings`
        warnings.warn("Empty trace collected, useless plot.")
    if figure is None:
        figure = plt.figure()
    rates_axes, rules_axes = figure.subplots(2, 1, sharex=True)

    outcomes = trace.outcomes()
    n_accumulating = int(np.count_nonzero(
        outcomes == Outcome.ACCUMULATING.value))
    steps = np.arange(n_accumulating, len(outcomes))
    rates_axes.plot(steps, trace.prequential_accuracy(), label='accuracy')
    rates_axes.plot(steps, trace.rejection_rate(), label='rejection rate')
    rates_axes.set_ylim(0, 1)
    rates_axes.set_ylabel('rate')
    rates_axes.legend()
    rates_axes.grid(True)

    rules_axes.plot(np.arange(len(outcomes)),
                    [step.n_rules for step in trace.steps], label='rules')
    rules_axes.plot(np.arange(len(outcomes)),
                    [step.n_concepts for step in trace.steps],
                    label='concepts')
    if n_accumulating:
        rules_axes.axvline(n_accumulating, color='grey', linestyle='dotted')
    rules_axes.set_xlabel('record')
    rules_axes.set_ylabel('count')
    rules_axes.legend()
    rules_axes.grid(True)

    if title is not None:
        figure.suptitle(title)
    return figure
