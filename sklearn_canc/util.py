"""
Miscellaneous things not depending on anything else from sklearn_canc.
"""

import math
from typing import Callable, Iterable, Optional, TypeVar

import numpy as np
from scipy.special import xlogy

T = TypeVar('T')


def entropy(weights) -> float:
    """:return: The entropy (base 2) of the distribution given by the
      non-negative, not necessarily normalized `weights`. 0 for an empty or
      all-zero distribution.
    """
    weights = np.asarray(weights, dtype=float)
    total = weights.sum()
    if total <= 0:
        return 0.0
    p = weights / total
    # xlogy(0, 0) == 0, so empty classes contribute nothing
    return float(-np.sum(xlogy(p, p)) / math.log(2))


def build_categorical_mask(which_features, n_features: int
                           ) -> np.ndarray or None:
    """:return: A mask array of length `n_features` based on `which_features`.
        For its contents, see `CANCEstimator` docs.
        Returns None if `which_features` cannot be recognized.
    """
    # which_features modeled like sklearn.preprocessing.OneHotEncoder
    categorical_mask_ = np.zeros(n_features, dtype=bool)  # default "all False"
    if which_features is None or not len(which_features):
        pass  # keep default
    elif isinstance(which_features, np.ndarray):
        if which_features.dtype == bool \
                and len(which_features) != n_features:
            return None
        categorical_mask_[which_features] = True
    elif which_features == 'all':
        return np.ones(n_features, dtype=bool)
    else:
        return None
    return categorical_mask_


def argbest(candidates: Iterable[T],
            score: Callable[[T], float],
            minimize: bool = False) -> Optional[T]:
    """:return: The candidate with maximal (or, if `minimize`, minimal)
      `score`. Ties are resolved in favor of the candidate coming first in
      `candidates`. None if there are no candidates.
    """
    best, best_score = None, None
    for candidate in candidates:
        candidate_score = score(candidate)
        if best_score is None \
                or (candidate_score < best_score if minimize
                    else candidate_score > best_score):
            best, best_score = candidate, candidate_score
    return best
