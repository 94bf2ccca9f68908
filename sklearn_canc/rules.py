"""Derivation of classification rules from concepts, and their metrics."""

from typing import Dict, Iterable, List, MutableSequence, Optional, Sequence, \
    Tuple

from sklearn_canc.common import Concept, Record, Rule, Theory
from sklearn_canc.context import NominalContext
from sklearn_canc.util import argbest


class RuleExtractor:
    """Turns concepts into rules and keeps rule metrics up to date.

    Parameters
    -----
    disjoint : bool
        If False (the default), a concept yields one rule whose conditions are
        its whole intent. If True, it yields one single-condition rule per
        pair of its intent, all predicting the same class.
    """

    def __init__(self, disjoint: bool = False):
        self.disjoint = disjoint

    @staticmethod
    def concept_label(concept: Concept, context: NominalContext
                      ) -> Optional[str]:
        """:return: The most frequent class of `concept`, ties going to the
          class which entered the concept first. Counts the classes of the
          extent first if the concept has no `class_counts` yet.
        """
        if concept.class_counts is None:
            concept.count_classes(context.class_label)
        counts = concept.class_counts
        return argbest(counts, counts.__getitem__)

    def extract_rules(self,
                      concepts: Sequence[Concept],
                      context: NominalContext,
                      disjoint: Optional[bool] = None) -> Theory:
        """:return: The rules for `concepts`, heads being the majority class
          of each extent in `context`. Metrics are not computed yet, see
          `calculate_rule_metrics`.
        """
        if disjoint is None:
            disjoint = self.disjoint
        rules = []
        for concept in concepts:
            concept.count_classes(context.class_label)
            head = self.concept_label(concept, context)
            if head is None:
                continue
            if disjoint:
                rules.extend(Rule([pair], head, concept)
                             for pair in sorted(concept.intent))
            else:
                rules.append(Rule(concept.intent, head, concept))
        return rules

    @staticmethod
    def count_matches(rule: Rule, context: NominalContext) -> Tuple[int, int]:
        """:return: (premise occurrences, true positives) of `rule` among all
          records in `context`.
        """
        covered = context.extension(rule.conditions.items())
        true_positives = sum(1 for position in covered
                             if context.class_label(position) == rule.head)
        return len(covered), true_positives

    def calculate_rule_metrics(self, rules: Iterable[Rule],
                               context: NominalContext):
        """Recount the metrics of each of `rules` over all of `context`."""
        n_records = len(context)
        for rule in rules:
            rule.set_metrics(*self.count_matches(rule, context), n_records)

    def update_concepts_with_new_record(
            self,
            concepts: Iterable[Concept],
            record: Record,
            position: int,
            rules: Iterable[Rule],
            context: NominalContext,
            modified_concepts: Optional[MutableSequence[Concept]] = None,
            modified_rules: Optional[MutableSequence[Rule]] = None) -> int:
        """Add the newly stored `record` to every concept whose intent it
        satisfies, and update the rules `record` matches.

        Counts of such a rule are incremented, unless the majority class of
        its concept changed: then the rule predicts the new majority and is
        recounted. Rules with only part of their concept's intent (see
        `disjoint`) may match `record` without their concept growing; they
        are incremented as well. Call this once per stored record.

        :param position: Position of `record` in `context`.
        :param modified_concepts: If given, touched concepts are appended.
        :param modified_rules: If given, updated rules are appended.
        :return: The number of touched concepts.
        """
        touched: List[Concept] = []
        for concept in concepts:
            if position not in concept.extent \
                    and concept.satisfied_by(record):
                concept.add(position, record.label)
                touched.append(concept)
        if modified_concepts is not None:
            modified_concepts.extend(touched)

        touched_ids = {id(concept) for concept in touched}
        heads: Dict[int, Optional[str]] = {}
        n_records = len(context)
        for rule in rules:
            if rule.concept is not None and id(rule.concept) in touched_ids:
                if id(rule.concept) not in heads:
                    heads[id(rule.concept)] = self.concept_label(
                        rule.concept, context)
                head = heads[id(rule.concept)]
            elif rule.concept is not None \
                    and rule.pairs < rule.concept.intent \
                    and rule.applies_to(record):
                head = rule.head
            else:
                continue
            if head != rule.head:
                rule.head = head
                rule.set_metrics(*self.count_matches(rule, context),
                                 n_records)
            else:
                rule.set_metrics(rule.premise_occurrence + 1,
                                 rule.true_positives
                                 + (record.label == rule.head),
                                 n_records)
            if modified_rules is not None:
                modified_rules.append(rule)
        return len(touched)
