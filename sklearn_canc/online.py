"""
Online learning of a CANC model from a stream of labeled nominal records.

Processing is test-then-train: each record is first classified by the current
rules, then stored, then used to update the model. The first `grace_period`
records are only stored; after them the first model is built.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from sklearn_canc.closure import AttributeEvaluator, ClosureOperator
from sklearn_canc.common import REJECTED, AttributeEvaluation, Concept, \
    LearnerState, Outcome, Prediction, Record, Theory, \
    ValueEvaluation, Variant
from sklearn_canc.concepts import make_concept_generator
from sklearn_canc.context import NominalContext
from sklearn_canc.resampling import ResamplingPolicy, make_resampling_policy
from sklearn_canc.rules import RuleExtractor

logger = logging.getLogger(__name__)


# noinspection PyAttributeOutsideInit
class OnlineCANCLearner:
    """Incremental classifier based on nominal concepts.

    Parameters
    -----
    grace_period : int
        Number of records stored, each with weight `1 / grace_period`, before
        the first model is built.

    variant : Variant or str
        Concept generation strategy, see `sklearn_canc.concepts`.

    attribute_evaluation : AttributeEvaluation or str or callable
        Score used to find the most informative attribute.

    value_evaluation : ValueEvaluation or str
        Score used to find the most relevant value of an attribute.

    disjoint_rules : bool
        If True, extract one single-condition rule per intent pair instead of
        one rule per concept.

    resampling : ResamplingPolicy or int or 'random'
        How many of the highest-weighted records a rebuild after a rejection
        works on, see `make_resampling_policy`.

    max_window : int or None
        If set, only the latest `max_window` records are kept.

    reward_factor : float in (0, 1]
        Weight multiplier for correctly classified records.

    penalty_factor : float >= 1
        Weight multiplier for misclassified or rejected records when all
        records are re-evaluated after a (re)build.

    resampling_decay : float in (0, 1]
        Weight multiplier for the records a rebuild after a rejection was
        computed from.

    attributes : sequence of str, optional
        The nominal attributes of the records. If None, the attributes of the
        first record are used.

    random_state : None | int | instance of np.random.RandomState
        RNG for the 'random' resampling policy.

    Attributes
    -----
    context : NominalContext
        All stored records and their weights.

    state : LearnerState
        `ACCUMULATING` until the first model is built, `READY` afterwards.

    concepts : List[Concept]
        All concepts generated so far. Append-only.

    rules : Theory
        All rules extracted so far, used for voting. Append-only.

    classes : List[str]
        The class labels in order of first appearance. Index into the votes of
        a `Prediction`.
    """

    def __init__(self,
                 grace_period: int = 1750,
                 variant: Union[Variant, str]
                 = Variant.PERTINENT_ATTRIBUTE_ALL_VALUES,
                 attribute_evaluation: Union[AttributeEvaluation, str,
                                             AttributeEvaluator]
                 = AttributeEvaluation.GAIN_RATIO,
                 value_evaluation: Union[ValueEvaluation, str]
                 = ValueEvaluation.SUPPORT,
                 disjoint_rules: bool = False,
                 resampling: Union[ResamplingPolicy, int, str] = 50,
                 max_window: Optional[int] = None,
                 reward_factor: float = 0.5,
                 penalty_factor: float = 1.5,
                 resampling_decay: float = 1.0,
                 attributes: Optional[Sequence[str]] = None,
                 random_state=None):
        if isinstance(grace_period, bool) \
                or not isinstance(grace_period, (int, np.integer)) \
                or grace_period < 1:
            raise ValueError("grace_period must be a positive integer, got %r"
                             % (grace_period,))
        if max_window is not None \
                and (isinstance(max_window, bool)
                     or not isinstance(max_window, (int, np.integer))
                     or max_window < 1):
            raise ValueError("max_window must be a positive integer or None, "
                             "got %r" % (max_window,))
        if not 0 < reward_factor <= 1:
            raise ValueError("reward_factor must be in (0, 1], got %r"
                             % (reward_factor,))
        if penalty_factor < 1:
            raise ValueError("penalty_factor must be >= 1, got %r"
                             % (penalty_factor,))
        if not 0 < resampling_decay <= 1:
            raise ValueError("resampling_decay must be in (0, 1], got %r"
                             % (resampling_decay,))
        self.grace_period = int(grace_period)
        self.generator = make_concept_generator(variant)
        self.attribute_evaluation = attribute_evaluation \
            if callable(attribute_evaluation) \
            and not isinstance(attribute_evaluation, AttributeEvaluation) \
            else AttributeEvaluation.resolve(attribute_evaluation)
        self.value_evaluation = ValueEvaluation.resolve(value_evaluation)
        self.extractor = RuleExtractor(disjoint_rules)
        self.resampling = make_resampling_policy(resampling, random_state)
        self.max_window = max_window
        self.reward_factor = reward_factor
        self.penalty_factor = penalty_factor
        self.resampling_decay = resampling_decay
        self.attributes = attributes
        self.reset()

    def reset(self):
        """Forget all records and the model."""
        self.context = NominalContext(self.attributes, self.max_window)
        self.state = LearnerState.ACCUMULATING
        self.concepts: List[Concept] = []
        self.rules: Theory = []
        self.classes: List[str] = []
        self._class_index: Dict[str, int] = {}
        self.n_records_seen = 0
        self.n_concepts_generated = 0
        self.n_rules_generated = 0
        self.n_rejections = 0

    def learn_one(self, record: Record) -> Outcome:
        """Process the next record of the stream.

        :return: `Outcome.ACCUMULATING` while no model was built before this
          record arrived, otherwise the outcome of classifying `record`.
        """
        self.n_records_seen += 1
        if self.state is LearnerState.ACCUMULATING:
            self._store(record, 1.0 / self.grace_period)
            if self.n_records_seen >= self.grace_period:
                self.build()
            return Outcome.ACCUMULATING

        prediction = self.predict_one(record)
        position = self._store(record, 1.0)
        if prediction.rejected:
            self.n_rejections += 1
            logger.debug("record %d %s rejected, rebuilding",
                         self.n_records_seen, record)
            self.rebuild(record)
            return Outcome.REJECTED
        if prediction.label == record.label:
            self.context.set_weight(
                position, self.context.weight(position) * self.reward_factor)
            self.extend(record, position)
            return Outcome.CORRECT
        self.extend(record, position)
        return Outcome.INCORRECT

    def predict_one(self, record: Record) -> Prediction:
        """Vote on the class of `record`: each matching rule adds its weight
        to its class. Votes are normalized to sum to 1 if positive. If no rule
        matches, the prediction is rejected.
        """
        classes = tuple(self.classes)
        matching = [rule for rule in self.rules if rule.applies_to(record)]
        if not matching:
            return Prediction(np.full(len(classes), REJECTED), classes, [])
        votes = np.zeros(len(classes))
        for rule in matching:
            votes[self._class_index[rule.head]] += rule.weight
        total = votes.sum()
        if total > 0:
            votes /= total
        return Prediction(votes, classes, matching)

    def build(self):
        """Build the model from all stored records and start classifying."""
        concepts, rules = self._generate(self.context)
        self._merge(concepts, rules)
        self.extractor.calculate_rule_metrics(self.rules, self.context)
        self._reevaluate()
        self.state = LearnerState.READY
        logger.debug("built model from %d records: %d concepts, %d rules",
                     len(self.context), len(concepts), len(rules))

    def rebuild(self, rejected: Optional[Record] = None):
        """Generate additional concepts and rules from the highest-weighted
        records, selected by the resampling policy.

        :param rejected: The record whose rejection triggered this rebuild.
          Restricts the generation for variants supporting it.
        """
        selected = self.resampling.select(self.context.weights)
        if not len(selected):
            return
        arena = self.context.subset(selected)
        concepts, rules = self._generate(arena, rejected)
        translation = selected.tolist()
        for concept in concepts:
            concept.remap(translation)
            assert max(concept.extent) < len(self.context)
        self._merge(concepts, rules)
        for local, position in enumerate(translation):
            self.context.set_weight(
                position, arena.weight(local) * self.resampling_decay)
        self.extractor.calculate_rule_metrics(self.rules, self.context)
        self._reevaluate()
        logger.debug("rebuilt from %d of %d records: %d new concepts, "
                     "%d new rules, %d rules total", len(arena),
                     len(self.context), len(concepts), len(rules),
                     len(self.rules))

    def extend(self, record: Record, position: int) -> int:
        """Add the stored `record` to the matching concepts and their rules.

        :return: The number of concepts extended.
        """
        return self.extractor.update_concepts_with_new_record(
            self.concepts, record, position, self.rules, self.context)

    def _generate(self, context: NominalContext,
                  rejected: Optional[Record] = None
                  ) -> Tuple[List[Concept], Theory]:
        closure = ClosureOperator(context, self.attribute_evaluation,
                                  self.value_evaluation)
        concepts = self.generator.generate(context, closure, rejected)
        assert all(closure.is_closed(concept.extent) for concept in concepts)
        return concepts, self.extractor.extract_rules(concepts, context)

    def _merge(self, concepts: List[Concept], rules: Theory):
        self.concepts.extend(concepts)
        self.rules.extend(rules)
        self.n_concepts_generated += len(concepts)
        self.n_rules_generated += len(rules)

    def _reevaluate(self):
        """Reward correctly classified records, penalize all others, then
        normalize the weights.
        """
        for position, record in enumerate(self.context.records):
            correct = self.predict_one(record).label == record.label
            factor = self.reward_factor if correct else self.penalty_factor
            self.context.set_weight(position,
                                    self.context.weight(position) * factor)
        self.context.normalize_weights()

    def _store(self, record: Record, weight: float) -> int:
        if record.label not in self._class_index:
            self._class_index[record.label] = len(self.classes)
            self.classes.append(record.label)
        evicted = None
        if self.max_window is not None \
                and len(self.context) >= self.max_window:
            evicted = self.context[0]
        position = self.context.add(record, weight)
        if evicted is not None:
            for concept in self.concepts:
                concept.shift(1, [evicted.label])
            self._recount_without(
                [rule for rule in self.rules if rule.applies_to(evicted)],
                record)
        return position

    def _recount_without(self, rules: Theory, record: Record):
        """Recount `rules` over the store, leaving out the just stored
        `record`, which `extend` accounts for.
        """
        n_records = len(self.context)
        for rule in rules:
            premise, true_positives = self.extractor.count_matches(
                rule, self.context)
            if rule.applies_to(record):
                premise -= 1
                true_positives -= record.label == rule.head
            rule.set_metrics(premise, true_positives, n_records)

    def model_measurements(self) -> Dict[str, int]:
        return {'instances seen': self.n_records_seen,
                'concepts generated': self.n_concepts_generated,
                'rules generated': self.n_rules_generated,
                'rejections': self.n_rejections}

    def export_text(self) -> str:
        """Build a text report showing all rules, one per line."""
        return '\n'.join(rule.to_string() for rule in self.rules)

    def to_dict(self) -> Dict:
        """:return: The model, i.e. concepts, rules and classes, as plain
          data. Rules refer to their concept by its index in `concepts`.
        """
        concept_index = {id(concept): i
                         for i, concept in enumerate(self.concepts)}
        rules = []
        for rule in self.rules:
            dec = rule.to_dict()
            dec['concept'] = concept_index.get(id(rule.concept))
            rules.append(dec)
        return {'classes': list(self.classes),
                'concepts': [concept.to_dict() for concept in self.concepts],
                'rules': rules}
