"""
The Galois connection on a `NominalContext` and the scores used to pick the
attributes and values concepts are generated from.

- `ClosureOperator.extension_of` (delta): records having an (attribute, value).
- `ClosureOperator.description_of` (phi): pairs shared by a set of records.
- `ClosureOperator.closure`: delta(phi(positions)).
"""

from typing import Callable, Dict, FrozenSet, Iterable, Optional, Set, Union

import numpy as np

from sklearn_canc.common import AttributeEvaluation, Pair, ValueEvaluation
from sklearn_canc.context import NominalContext
from sklearn_canc.util import argbest, entropy

MISSING = '?'
"""Value token used for scoring records which lack an attribute."""

AttributeEvaluator = Callable[[np.ndarray, np.ndarray, np.ndarray], float]
"""Signature of an attribute score: `(values, labels, weights) -> float`,
all arrays of the same length, higher meaning more informative."""


def _class_distributions(values, labels, weights):
    """:return: (overall class weights, list of (value weight, class weights
      of the records with that value))
    """
    _, label_index = np.unique(labels, return_inverse=True)
    _, value_index = np.unique(values, return_inverse=True)
    label_index = label_index.ravel()
    value_index = value_index.ravel()
    n_labels = label_index.max() + 1
    overall = np.bincount(label_index, weights=weights, minlength=n_labels)
    by_value = []
    for v in range(value_index.max() + 1):
        mask = value_index == v
        by_value.append((weights[mask].sum(),
                         np.bincount(label_index[mask], weights=weights[mask],
                                     minlength=n_labels)))
    return overall, by_value


def information_gain(values, labels, weights) -> float:
    """Weighted information gain of splitting the records by `values`:
    the class entropy minus the weighted mean class entropy per value.
    """
    weights = np.asarray(weights, dtype=float)
    if not len(weights) or weights.sum() <= 0:
        return 0.0
    overall, by_value = _class_distributions(np.asarray(values, dtype=object),
                                             np.asarray(labels, dtype=object),
                                             weights)
    total = overall.sum()
    conditional = 0.0
    for value_weight, class_weights in by_value:
        conditional += value_weight / total * entropy(class_weights)
    return max(0.0, entropy(overall) - conditional)


def gain_ratio(values, labels, weights) -> float:
    """`information_gain` divided by the (weighted) entropy of `values`
    themselves; 0 if all records share one value.
    """
    weights = np.asarray(weights, dtype=float)
    if not len(weights) or weights.sum() <= 0:
        return 0.0
    _, value_index = np.unique(np.asarray(values, dtype=object),
                               return_inverse=True)
    split_info = entropy(np.bincount(value_index.ravel(), weights=weights))
    if split_info <= 0:
        return 0.0
    return information_gain(values, labels, weights) / split_info


ATTRIBUTE_EVALUATORS: Dict[AttributeEvaluation, AttributeEvaluator] = {
    AttributeEvaluation.INFORMATION_GAIN: information_gain,
    AttributeEvaluation.GAIN_RATIO: gain_ratio,
}


def _attribute_evaluator(method) -> AttributeEvaluator:
    if callable(method) and not isinstance(method, AttributeEvaluation):
        return method
    return ATTRIBUTE_EVALUATORS[AttributeEvaluation.resolve(method)]


class ClosureOperator:
    """Closure operator and attribute/value scoring on a `NominalContext`.

    Parameters
    -----
    context : NominalContext
        The records to work on. Positions returned and accepted by all methods
        refer to this store.

    attribute_evaluation : AttributeEvaluation or str or callable
        Default method for `attribute_score`. A callable has to follow the
        `AttributeEvaluator` signature.

    value_evaluation : ValueEvaluation or str
        Default method for `value_score`.

    Ties in `most_informative_attribute` and `most_relevant_value` are broken
    in favor of the lexically smallest name.
    """

    def __init__(self,
                 context: NominalContext,
                 attribute_evaluation: Union[AttributeEvaluation, str,
                                             AttributeEvaluator]
                 = AttributeEvaluation.GAIN_RATIO,
                 value_evaluation: Union[ValueEvaluation, str]
                 = ValueEvaluation.SUPPORT):
        self.context = context
        self.attribute_evaluator = _attribute_evaluator(attribute_evaluation)
        self.value_evaluation = ValueEvaluation.resolve(value_evaluation)

    @property
    def attributes(self):
        return self.context.attributes or []

    def extension_of(self, attribute: str, value: str) -> Set[int]:
        return self.context.lookup(attribute, value)

    def description_of(self, positions: Iterable[int]) -> FrozenSet[Pair]:
        """:return: The (attribute, value) pairs all records at `positions`
          have in common; the empty set for no positions.
        """
        description = None
        for position in positions:
            pairs = self.context[position].pairs(self.context.attributes)
            description = pairs if description is None \
                else description & pairs
            if not description:
                break
        return description or frozenset()

    def closure(self, positions: Iterable[int]) -> Set[int]:
        """:return: All records sharing the common description of the records
          at `positions`. That is every record if the description is empty.
        """
        return self.context.extension(self.description_of(positions))

    def is_closed(self, extent: Iterable[int]) -> bool:
        extent = set(extent)
        return bool(extent) and self.closure(extent) == extent

    def _column(self, attribute: str) -> np.ndarray:
        return np.array([record.values.get(attribute, MISSING)
                         for record in self.context.records], dtype=object)

    def attribute_score(self, attribute: str, method=None) -> float:
        """:return: The information gain or gain ratio of `attribute` over
          the weighted records, by `method` or the configured evaluation.
        """
        evaluator = self.attribute_evaluator if method is None \
            else _attribute_evaluator(method)
        if not len(self.context):
            return 0.0
        return evaluator(self._column(attribute), self.context.labels,
                         self.context.weights)

    def attribute_scores(self, method=None) -> Dict[str, float]:
        return {attribute: self.attribute_score(attribute, method)
                for attribute in self.attributes}

    def value_score(self, attribute: str, value: str, method=None) -> float:
        """:return: For ENTROPY, the weighted class entropy of the records
          with `attribute == value` (lower is more relevant). For SUPPORT,
          their share of all records (higher is more relevant). 0 if no
          record has that value.
        """
        method = self.value_evaluation if method is None \
            else ValueEvaluation.resolve(method)
        extent = self.extension_of(attribute, value)
        if not extent:
            return 0.0
        if method is ValueEvaluation.SUPPORT:
            return len(extent) / len(self.context)
        class_weights: Dict[str, float] = {}
        for position in sorted(extent):
            label = self.context.class_label(position)
            class_weights[label] = class_weights.get(label, 0.0) \
                + self.context.weight(position)
        return entropy(list(class_weights.values()))

    def most_informative_attribute(self, method=None) -> Optional[str]:
        """:return: The attribute with the highest `attribute_score`, None if
          the store is empty or there are no attributes.
        """
        if not len(self.context):
            return None
        scores = self.attribute_scores(method)
        return argbest(sorted(scores), scores.__getitem__)

    def most_relevant_value(self, attribute: str, method=None
                            ) -> Optional[str]:
        """:return: The value of `attribute` with the best `value_score`, None
          if `attribute` has no observed values.
        """
        method = self.value_evaluation if method is None \
            else ValueEvaluation.resolve(method)
        return argbest(self.context.attribute_values(attribute),
                       lambda value: self.value_score(attribute, value,
                                                      method),
                       minimize=method is ValueEvaluation.ENTROPY)
