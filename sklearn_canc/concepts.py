"""
Concept generation strategies.

A strategy is composed of an attribute scope mixin (`PertinentAttribute` or
`AllAttributes`) and a value scope mixin (`AllValues` or `RelevantValue`),
which together decide the (attribute, value) anchors to try.
`AbstractConceptGenerator.generate` turns each anchor into its extent and
keeps the closed, non-empty, distinct ones as `Concept`s.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Set, FrozenSet, Type, \
    Union

from sklearn_canc.closure import ClosureOperator
from sklearn_canc.common import Concept, Pair, Record, Variant
from sklearn_canc.context import NominalContext


class AbstractConceptGenerator(ABC):
    """Interface of a concept generation strategy.

    All methods are classmethods, a strategy has no state.

    Fields
    -----
    - `restrict_to_rejected`: If True and `generate` gets a `rejected` record,
      only the value of that record is tried for each candidate attribute.
    """

    restrict_to_rejected: bool = False

    @classmethod
    @abstractmethod
    def candidate_attributes(cls, closure: ClosureOperator) -> List[str]:
        """:return: The attributes whose values are tried."""
        raise NotImplementedError

    @classmethod
    @abstractmethod
    def candidate_values(cls, attribute: str, closure: ClosureOperator,
                         rejected: Optional[Record]) -> List[str]:
        """:return: The values of `attribute` to try."""
        raise NotImplementedError

    @classmethod
    def candidate_pairs(cls, closure: ClosureOperator,
                        rejected: Optional[Record]) -> Iterator[Pair]:
        for attribute in cls.candidate_attributes(closure):
            for value in cls.candidate_values(attribute, closure, rejected):
                yield attribute, value

    @classmethod
    def generate(cls,
                 context: NominalContext,
                 closure: ClosureOperator,
                 rejected: Optional[Record] = None) -> List[Concept]:
        """Generate the concepts anchored on `candidate_pairs`.

        :param context: The store `closure` operates on. Concept extents are
          positions in this store.
        :param rejected: The record whose rejection triggered this generation,
          if any. See `restrict_to_rejected`.
        :return: The distinct closed concepts, possibly none.
        """
        assert closure.context is context
        concepts = []
        seen: Set[FrozenSet[int]] = set()
        for attribute, value in cls.candidate_pairs(closure, rejected):
            extent = closure.extension_of(attribute, value)
            key = frozenset(extent)
            if not extent or key in seen:
                continue
            seen.add(key)
            intent = closure.description_of(extent)
            if context.extension(intent) != extent:
                continue  # not closed
            concepts.append(Concept(extent, intent))
        return concepts


class PertinentAttribute(AbstractConceptGenerator, ABC):
    """Only try the most informative attribute."""

    @classmethod
    def candidate_attributes(cls, closure: ClosureOperator) -> List[str]:
        attribute = closure.most_informative_attribute()
        return [] if attribute is None else [attribute]


class AllAttributes(AbstractConceptGenerator, ABC):
    """Try every attribute, in lexical order."""

    @classmethod
    def candidate_attributes(cls, closure: ClosureOperator) -> List[str]:
        return sorted(closure.attributes)


class AllValues(AbstractConceptGenerator, ABC):
    """Try every observed value of an attribute, in lexical order."""

    @classmethod
    def candidate_values(cls, attribute: str, closure: ClosureOperator,
                         rejected: Optional[Record]) -> List[str]:
        if cls.restrict_to_rejected and rejected is not None:
            value = rejected.values.get(attribute)
            return [] if value is None else [value]
        return closure.context.attribute_values(attribute)


class RelevantValue(AbstractConceptGenerator, ABC):
    """Try only the most relevant value of an attribute."""

    @classmethod
    def candidate_values(cls, attribute: str, closure: ClosureOperator,
                         rejected: Optional[Record]) -> List[str]:
        value = closure.most_relevant_value(attribute)
        return [] if value is None else [value]


class PertinentAttributeAllValues(PertinentAttribute, AllValues):
    """CpNC_COMV: one concept per value of the most informative attribute.

    After a rejection only the value of the rejected record is used.
    """
    restrict_to_rejected = True


class PertinentAttributeRelevantValue(PertinentAttribute, RelevantValue):
    """CpNC_CORV: at most one concept, for the most relevant value of the
    most informative attribute.
    """


class AllAttributesAllValues(AllAttributes, AllValues):
    """CaNC_COMV: one concept per (attribute, value) pair of any record."""

    @classmethod
    def candidate_pairs(cls, closure: ClosureOperator,
                        rejected: Optional[Record]) -> Iterator[Pair]:
        attributes = closure.context.attributes or []
        for record in closure.context.records:
            yield from sorted(record.pairs(attributes))


class AllAttributesRelevantValue(AllAttributes, RelevantValue):
    """CaNC_CORV: one concept per attribute, for its most relevant value."""


VARIANT_GENERATORS: Dict[Variant, Type[AbstractConceptGenerator]] = {
    Variant.PERTINENT_ATTRIBUTE_ALL_VALUES: PertinentAttributeAllValues,
    Variant.PERTINENT_ATTRIBUTE_RELEVANT_VALUE: PertinentAttributeRelevantValue,
    Variant.ALL_ATTRIBUTES_ALL_VALUES: AllAttributesAllValues,
    Variant.ALL_ATTRIBUTES_RELEVANT_VALUE: AllAttributesRelevantValue,
}


def make_concept_generator(variant: Union[Variant, str]
                           ) -> Type[AbstractConceptGenerator]:
    """:return: The generator class implementing `variant`.
    :raise ValueError: for an unknown variant.
    """
    return VARIANT_GENERATORS[Variant.resolve(variant)]
