"""Policies choosing the records a partial rebuild works on."""

from abc import ABC, abstractmethod
from typing import Union

import numpy as np
from sklearn.utils import check_random_state


class ResamplingPolicy(ABC):
    """Chooses how many of the highest-weighted records to resample."""

    @abstractmethod
    def n_samples(self, n_records: int) -> int:
        """:return: How many records, out of `n_records` > 0, to select."""
        raise NotImplementedError

    def select(self, weights: np.ndarray) -> np.ndarray:
        """:return: The positions of the `n_samples` records with the highest
          `weights`, in descending order of weight. Of records with equal
          weight, the newest (highest position) comes first.
        """
        weights = np.asarray(weights, dtype=float)
        if not len(weights):
            return np.array([], dtype=int)
        order = np.lexsort((-np.arange(len(weights)), -weights))
        n = self.n_samples(len(weights))
        assert 1 <= n <= len(weights)
        return order[:n]


class FixedCountResampling(ResamplingPolicy):
    """Select the top `k` records (all of them if there are fewer)."""

    def __init__(self, k: int = 50):
        if int(k) != k or k < 1:
            raise ValueError("k must be a positive integer, got %r" % (k,))
        self.k = int(k)

    def n_samples(self, n_records: int) -> int:
        return min(self.k, n_records)

    def __repr__(self):
        return 'FixedCountResampling(k=%d)' % self.k


class RandomFractionResampling(ResamplingPolicy):
    """Select a random fraction, drawn uniformly for each resampling, of
    the records; at least one.

    :param random_state: None | int | instance of np.random.RandomState,
      passed through `sklearn.utils.check_random_state`.
    """

    def __init__(self, random_state=None):
        self.random_state = random_state
        self.rng = check_random_state(random_state)

    def n_samples(self, n_records: int) -> int:
        return max(1, int(n_records * self.rng.random_sample()))

    def __repr__(self):
        return 'RandomFractionResampling(random_state=%r)' % self.random_state


def make_resampling_policy(resampling: Union[ResamplingPolicy, int, str],
                           random_state=None) -> ResamplingPolicy:
    """Build a policy from its configuration value.

    :param resampling:
      - a `ResamplingPolicy`: used as is.
      - an int `k`: `FixedCountResampling(k)`.
      - 'random': `RandomFractionResampling(random_state)`.
    :raise ValueError: for anything else.
    """
    if isinstance(resampling, ResamplingPolicy):
        return resampling
    if isinstance(resampling, str):
        if resampling == 'random':
            return RandomFractionResampling(random_state)
        raise ValueError("Unknown resampling policy %r" % resampling)
    if isinstance(resampling, (int, np.integer)) \
            and not isinstance(resampling, bool):
        return FixedCountResampling(resampling)
    raise ValueError("Unknown resampling policy %r" % (resampling,))
