"""The record store: labeled nominal records, their weights, and an inverted
index from (attribute, value) to record positions.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set

import numpy as np

from sklearn_canc.common import Pair, Record

logger = logging.getLogger(__name__)


class NominalContext:
    """Ordered store of `Record`s with per-record weights and an index
    `attribute -> value -> {positions}`.

    A record is identified by its position, i.e. its 0-based insertion index.
    If `max_size` is set, adding a record beyond it evicts the oldest one and
    every position decreases by one; positions held elsewhere have to be
    adjusted by the caller (see `Concept.shift`).

    Parameters
    -----
    attributes : sequence of str, optional
        The nominal attributes to index. If None, the attributes of the first
        added record are used. Other attributes of a record are kept but
        ignored by the index and by `Record.pairs`.

    max_size : int, optional
        Window size. If None (the default), the store grows unboundedly.
    """

    def __init__(self,
                 attributes: Optional[Sequence[str]] = None,
                 max_size: Optional[int] = None):
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be a positive integer or None, "
                             "got %r" % (max_size,))
        self.attributes: Optional[List[str]] = \
            list(attributes) if attributes is not None else None
        self.max_size = max_size
        self._records: List[Record] = []
        self._weights: List[float] = []
        self._index: Dict[str, Dict[str, Set[int]]] = {}

    def __len__(self):
        return len(self._records)

    def __getitem__(self, position: int) -> Record:
        return self._records[position]

    @property
    def records(self) -> Sequence[Record]:
        return self._records

    @property
    def labels(self) -> np.ndarray:
        return np.array([record.label for record in self._records],
                        dtype=object)

    @property
    def weights(self) -> np.ndarray:
        """:return: A copy of all weights, indexed by position."""
        return np.array(self._weights, dtype=float)

    def positions(self) -> Set[int]:
        return set(range(len(self._records)))

    def add(self, record: Record, weight: float = 1.0) -> int:
        """Append `record` with `weight`, evicting the oldest record if the
        store is full.

        :return: The position of `record`.
        """
        if self.attributes is None:
            self.attributes = list(record.values)
        position = len(self._records)
        self._records.append(record)
        self._weights.append(float(weight))
        for attribute, value in record.pairs(self.attributes):
            self._index.setdefault(attribute, {}) \
                .setdefault(value, set()).add(position)
        if self.max_size is not None and len(self._records) > self.max_size:
            self._evict_oldest()
            position -= 1
        return position

    def _evict_oldest(self):
        evicted = self._records.pop(0)
        self._weights.pop(0)
        for attribute, buckets in list(self._index.items()):
            for value, positions in list(buckets.items()):
                shifted = {p - 1 for p in positions if p > 0}
                if shifted:
                    buckets[value] = shifted
                else:
                    del buckets[value]
            if not buckets:
                del self._index[attribute]
        logger.debug("evicted oldest record %s, %d records left",
                     evicted, len(self._records))
        assert self.index_consistent()

    def lookup(self, attribute: str, value: str) -> Set[int]:
        """:return: The positions of the records with `attribute == value`,
          the empty set if there are none.
        """
        return set(self._index.get(attribute, {}).get(value, ()))

    def extension(self, pairs: Iterable[Pair]) -> Set[int]:
        """:return: The positions of the records having all `pairs`; every
          position for an empty conjunction.
        """
        result = None
        for attribute, value in pairs:
            bucket = self._index.get(attribute, {}).get(value, set())
            result = set(bucket) if result is None else result & bucket
            if not result:
                return set()
        return self.positions() if result is None else result

    def attribute_values(self, attribute: str) -> List[str]:
        """:return: The values observed for `attribute`, sorted."""
        return sorted(self._index.get(attribute, {}))

    def class_label(self, position: int) -> str:
        return self._records[position].label

    def weight(self, position: int) -> float:
        return self._weights[position]

    def set_weight(self, position: int, weight: float):
        if not weight >= 0:
            raise ValueError("weight must be non-negative, got %r" % (weight,))
        self._weights[position] = float(weight)

    def total_weight(self) -> float:
        return float(np.sum(self._weights))

    def normalize_weights(self):
        """Rescale the weights to sum to 1. A store with zero total weight gets
        uniform weights.
        """
        n = len(self._weights)
        if not n:
            return
        total = self.total_weight()
        if total > 0:
            self._weights = [w / total for w in self._weights]
        else:
            self._weights = [1.0 / n] * n

    def subset(self, positions: Sequence[int]) -> 'NominalContext':
        """:return: A new, unbounded store holding the records at `positions`
          with their current weights. The record at `positions[i]` gets the
          local position `i`.
        """
        arena = NominalContext(self.attributes)
        for position in positions:
            arena.add(self._records[position], self._weights[position])
        return arena

    def index_consistent(self) -> bool:
        """:return: True iff the index contains exactly the (attribute, value)
          pairs of the current records.
        """
        expected: Dict[str, Dict[str, Set[int]]] = {}
        for position, record in enumerate(self._records):
            for attribute, value in record.pairs(self.attributes):
                expected.setdefault(attribute, {}) \
                    .setdefault(value, set()).add(position)
        return expected == self._index
