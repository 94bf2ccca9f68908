"""Types shared by all parts of the CANC implementation."""

from collections import Counter
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, \
    NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

Pair = Tuple[str, str]
"""An (attribute, value) pair, the only kind of condition used here."""

REJECTED = -1.0
"""Score assigned to every class when no rule matches a record."""


class _ConfigEnum(Enum):
    @classmethod
    def resolve(cls, value) -> '_ConfigEnum':
        """:return: The member `value` refers to, by member, value or name.
        :raise ValueError: if `value` is none of these.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value]
        except (KeyError, TypeError):
            raise ValueError("Unknown %s %r, expected one of %s"
                             % (cls.__name__, value,
                                [m.value for m in cls])) from None


class Variant(_ConfigEnum):
    """Concept generation strategy: attribute scope x value scope.

    - `CpNC`: only the most informative ("pertinent") attribute,
      `CaNC`: all attributes.
    - `COMV`: every value of an attribute,
      `CORV`: only its most relevant value.
    """
    PERTINENT_ATTRIBUTE_ALL_VALUES = 'CpNC_COMV'
    PERTINENT_ATTRIBUTE_RELEVANT_VALUE = 'CpNC_CORV'
    ALL_ATTRIBUTES_ALL_VALUES = 'CaNC_COMV'
    ALL_ATTRIBUTES_RELEVANT_VALUE = 'CaNC_CORV'


class AttributeEvaluation(_ConfigEnum):
    INFORMATION_GAIN = 'information_gain'
    GAIN_RATIO = 'gain_ratio'


class ValueEvaluation(_ConfigEnum):
    ENTROPY = 'entropy'  # lower is better
    SUPPORT = 'support'  # higher is better


class LearnerState(Enum):
    ACCUMULATING = 'accumulating'
    READY = 'ready'


class Outcome(Enum):
    """What happened to a record passed to `OnlineCANCLearner.learn_one`."""
    ACCUMULATING = 'accumulating'  # no model yet, only stored
    CORRECT = 'correct'
    INCORRECT = 'incorrect'
    REJECTED = 'rejected'


class Record(NamedTuple):
    """A labeled record with nominal attribute values.

    `values` maps attribute name to value token. The weight of a record is
    kept by the `NominalContext` storing it.
    """
    values: Mapping[str, str]
    label: str

    @classmethod
    def from_mapping(cls, mapping: Mapping, class_attribute: str) -> 'Record':
        """Split `mapping` into attribute values and the `class_attribute`
        label, converting all of them to `str`.
        """
        values = {str(attribute): str(value)
                  for attribute, value in mapping.items()
                  if attribute != class_attribute}
        return cls(values, str(mapping[class_attribute]))

    def pairs(self, attributes: Optional[Iterable[str]] = None
              ) -> FrozenSet[Pair]:
        """:return: The (attribute, value) pairs of this record, restricted to
          `attributes` if given.
        """
        if attributes is None:
            return frozenset(self.values.items())
        return frozenset((attribute, self.values[attribute])
                         for attribute in attributes
                         if attribute in self.values)

    def satisfies(self, pairs: Iterable[Pair]) -> bool:
        """:return: True iff the record has each of the (attribute, value)
          `pairs`.
        """
        values = self.values
        return all(attribute in values and values[attribute] == value
                   for attribute, value in pairs)


class Concept:
    """A formal concept: `extent` is the set of record positions sharing
    exactly the (attribute, value) pairs in `intent`.

    The extent may grow when new records arrive (`add`) and is rewritten when
    record positions change (`remap`, `shift`). The intent never changes.

    `class_counts` counts the class labels of the extent, in the order the
    labels entered the concept. It is None until set by `count_classes`, and
    kept up to date by `add` and `shift` when they are given the labels.
    """

    def __init__(self, extent: Iterable[int], intent: Iterable[Pair]):
        self.extent = set(extent)
        self.intent: FrozenSet[Pair] = frozenset(intent)
        self.class_counts: Optional[Counter] = None

    def count_classes(self, class_label: Callable[[int], str]):
        """(Re)count `class_counts`, in ascending position order.

        :param class_label: Maps a position to the label of its record.
        """
        self.class_counts = Counter(class_label(position)
                                    for position in sorted(self.extent))

    def add(self, position: int, label: Optional[str] = None):
        self.extent.add(position)
        if label is not None and self.class_counts is not None:
            self.class_counts[label] += 1

    def remap(self, translation: Sequence[int]):
        """Translate positions in the extent through `translation`, a table
        mapping each local position (its index) to a global position.
        """
        self.extent = {translation[position] for position in self.extent}

    def shift(self, n_evicted: int,
              evicted_labels: Optional[Sequence[str]] = None):
        """Adjust the extent to the eviction of the `n_evicted` oldest
        records from the store, whose labels are `evicted_labels`.
        """
        if self.class_counts is not None:
            if evicted_labels is None:
                self.class_counts = None
            else:
                for position in self.extent:
                    if position < n_evicted:
                        label = evicted_labels[position]
                        self.class_counts[label] -= 1
                        if not self.class_counts[label]:
                            del self.class_counts[label]
        self.extent = {position - n_evicted for position in self.extent
                       if position >= n_evicted}

    def satisfied_by(self, record: Record) -> bool:
        return record.satisfies(self.intent)

    def __len__(self):
        return len(self.extent)

    def __eq__(self, other):
        if type(other) is type(self):
            return self.extent == other.extent and self.intent == other.intent
        return NotImplemented

    def __repr__(self):
        return 'Concept(extent=%s, intent=%s)' \
               % (sorted(self.extent), sorted(self.intent))

    def to_dict(self) -> Dict:
        return {'extent': sorted(self.extent),
                'intent': [list(pair) for pair in sorted(self.intent)]}

    @staticmethod
    def from_dict(dec: Dict) -> 'Concept':
        return Concept(dec['extent'], (tuple(pair) for pair in dec['intent']))


class Rule:
    """A classification rule `IF conditions THEN head`.

    Attributes
    -----
    conditions : Dict[str, str]
        Conjunction of `attribute == value` tests, taken from a concept intent.

    head : str
        The predicted class label.

    concept : Concept or None
        The concept this rule was extracted from. The incremental update keeps
        both in sync.

    premise_occurrence : int
        Number of stored records satisfying `conditions`.

    true_positives : int
        Number of those whose label equals `head`.

    support : float
        `premise_occurrence` relative to the number of stored records.

    confidence : float
        `true_positives / premise_occurrence`, 0 if the premise never occurs.

    weight : float
        `confidence * support`, the vote of this rule in prediction.
    """

    def __init__(self,
                 conditions: Union[Mapping[str, str], Iterable[Pair]],
                 head: str,
                 concept: Optional[Concept] = None):
        self.conditions: Dict[str, str] = dict(sorted(dict(conditions).items()))
        self.head = head
        self.concept = concept
        self.premise_occurrence = 0
        self.true_positives = 0
        self.support = 0.0
        self.confidence = 0.0
        self.weight = 0.0

    @property
    def pairs(self) -> FrozenSet[Pair]:
        return frozenset(self.conditions.items())

    def applies_to(self, record: Record) -> bool:
        return record.satisfies(self.conditions.items())

    def set_metrics(self, premise_occurrence: int, true_positives: int,
                    n_records: int):
        """Store the counts and derive `support`, `confidence` and `weight`."""
        assert 0 <= true_positives <= premise_occurrence
        self.premise_occurrence = premise_occurrence
        self.true_positives = true_positives
        self.confidence = (true_positives / premise_occurrence
                           if premise_occurrence else 0.0)
        self.support = premise_occurrence / n_records if n_records else 0.0
        self.weight = self.confidence * self.support

    def to_string(self) -> str:
        body = ' AND '.join("%s = '%s'" % (attribute, value)
                            for attribute, value in self.conditions.items())
        return ("IF %s THEN class = '%s' [premise_occurrence=%d, "
                "true_positives=%d, support=%.4f, confidence=%.4f, "
                "weight=%.4f]"
                % (body or 'true', self.head, self.premise_occurrence,
                   self.true_positives, self.support, self.confidence,
                   self.weight))

    def __str__(self):
        return self.to_string()

    def __repr__(self):
        return 'Rule(%r, %r)' % (self.conditions, self.head)

    def to_dict(self) -> Dict:
        """:return: The rule as plain data, without its concept reference."""
        return {'conditions': dict(self.conditions),
                'head': self.head,
                'premise_occurrence': self.premise_occurrence,
                'true_positives': self.true_positives,
                'support': self.support,
                'confidence': self.confidence,
                'weight': self.weight}

    @staticmethod
    def from_dict(dec: Dict, concept: Optional[Concept] = None) -> 'Rule':
        rule = Rule(dec['conditions'], dec['head'], concept)
        rule.premise_occurrence = dec['premise_occurrence']
        rule.true_positives = dec['true_positives']
        rule.support = dec['support']
        rule.confidence = dec['confidence']
        rule.weight = dec['weight']
        return rule


Theory = List[Rule]


class Prediction(NamedTuple):
    """Result of rule voting for one record.

    `votes` holds a score per entry of `classes`. If no rule matched,
    `matching_rules` is empty and every vote is `REJECTED`.
    """
    votes: np.ndarray
    classes: Sequence[str]
    matching_rules: Sequence[Rule]

    @property
    def rejected(self) -> bool:
        return not self.matching_rules

    @property
    def label(self) -> Optional[str]:
        """:return: The class with the highest vote (first one on ties), or
          None if rejected.
        """
        if self.rejected or not len(self.classes):
            return None
        return self.classes[int(np.argmax(self.votes))]
