"""
scikit-learn interface to the online CANC learner.
"""

import warnings
from typing import Iterator, List, Optional, Sequence, Union

import numpy as np

from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils import check_X_y, check_array
from sklearn.utils.multiclass import unique_labels, check_classification_targets
from sklearn.utils.validation import check_is_fitted, check_random_state

from sklearn_canc.common import REJECTED, LearnerState, Record
from sklearn_canc.online import OnlineCANCLearner
from sklearn_canc.util import build_categorical_mask


# noinspection PyAttributeOutsideInit
class CANCEstimator(ClassifierMixin, BaseEstimator):
    """Classifier based on nominal concepts, learned online.

    Samples are processed as a stream in the order given, see
    `OnlineCANCLearner`: each one is classified by the rules learned so far,
    and then learned from. `fit` starts a new stream, `partial_fit` continues
    it.

    Parameters
    -----
    grace_period : int
        Number of samples collected before the first model is built.

    variant : Variant or str
        Concept generation strategy, one of 'CpNC_COMV' (default),
        'CpNC_CORV', 'CaNC_COMV', 'CaNC_CORV'.

    attribute_evaluation : str or callable
        'gain_ratio' (default) or 'information_gain'.

    value_evaluation : str
        'support' (default) or 'entropy'.

    disjoint_rules : bool
        If True, learn one single-condition rule per concept condition.

    resampling : int or 'random' or ResamplingPolicy
        Number of highest-weighted samples a rebuild after a rejection uses,
        or 'random' for a random fraction of them.

    max_window : int or None
        If set, only the latest `max_window` samples are kept.

    reward_factor, penalty_factor, resampling_decay : float
        Sample weight multipliers, see `OnlineCANCLearner`.

    categorical_features : None or "all" or array of indices or mask.

        Specify what features are treated as nominal. All other features are
        ignored, so discretize numerical features beforehand, using e.g.
        :class:`sklearn.preprocessing.KBinsDiscretizer`.

        - 'all' (default): All features are nominal.
        - None: No feature is used, every prediction is rejected.
        - array of indices: Array of nominal feature indices.
        - mask: Array of length n_features and with dtype=bool.

    random_state : None | int | instance of np.random.RandomState
        RNG, used by random resampling. Value passed through
        `sklearn.utils.check_random_state`.

    Attributes
    -----
    learner_ : OnlineCANCLearner
        The learner holding samples and model.

    classes_ : np.ndarray
        Class labels known to the classifier. `decision_function` columns are
        ordered like this.

    n_classes_ : int
        Number of classes.

    n_features_ : int
        The number of features in (training) data `X`.

    categorical_mask_ : np.ndarray of shape (n_features_,) and dtype bool
        A mask array calculated from `categorical_features`.

    feature_names_ : List[str]
        Attribute names used in rules.
    """

    def __init__(self,
                 grace_period: int = 1750,
                 variant='CpNC_COMV',
                 attribute_evaluation='gain_ratio',
                 value_evaluation='support',
                 disjoint_rules: bool = False,
                 resampling=50,
                 max_window: Optional[int] = None,
                 reward_factor: float = 0.5,
                 penalty_factor: float = 1.5,
                 resampling_decay: float = 1.0,
                 categorical_features: Union[None, str, np.ndarray] = 'all',
                 random_state=1,
                 ):
        super().__init__()
        self.grace_period = grace_period
        self.variant = variant
        self.attribute_evaluation = attribute_evaluation
        self.value_evaluation = value_evaluation
        self.disjoint_rules = disjoint_rules
        self.resampling = resampling
        self.max_window = max_window
        self.reward_factor = reward_factor
        self.penalty_factor = penalty_factor
        self.resampling_decay = resampling_decay
        self.categorical_features = categorical_features
        self.random_state = random_state

    def fit(self, X, y, feature_names: Optional[Sequence[str]] = None):
        """Learn from the stream of samples `X` with labels `y`, forgetting
        everything learned before.

        :param feature_names: Names for the features, used in rules. Defaults
          to `feature_1`, `feature_2`, ...
        """
        X, y = check_X_y(X, y, dtype=None)
        check_classification_targets(y)
        self.classes_ = unique_labels(y)
        self.n_classes_ = len(self.classes_)
        self._init_learner(X.shape[1], feature_names)
        self._learn(X, y)
        if self.learner_.state is LearnerState.ACCUMULATING:
            warnings.warn("Only %d samples seen, less than grace_period=%d. "
                          "No model was built, all predictions are rejected."
                          % (len(X), self.learner_.grace_period))
        return self

    def partial_fit(self, X, y, classes=None,
                    feature_names: Optional[Sequence[str]] = None):
        """Continue learning from the stream with samples `X`, labels `y`.

        :param classes: All class labels which will ever occur. Required on the
          first call, ignored later.
        """
        X, y = check_X_y(X, y, dtype=None)
        check_classification_targets(y)
        if not hasattr(self, 'learner_'):
            if classes is None:
                raise ValueError("classes must be passed on the first call "
                                 "to partial_fit.")
            self.classes_ = unique_labels(np.asarray(classes))
            self.n_classes_ = len(self.classes_)
            self._init_learner(X.shape[1], feature_names)
        elif X.shape[1] != self.n_features_:
            raise ValueError("Number of features of the model must "
                             "match the input. Model n_features is %s and "
                             "input n_features is %s "
                             % (self.n_features_, X.shape[1]))
        unknown = np.setdiff1d(unique_labels(y), self.classes_)
        if len(unknown):
            raise ValueError("y contains labels %s not in classes %s"
                             % (unknown, self.classes_))
        self._learn(X, y)
        return self

    def _init_learner(self, n_features: int,
                      feature_names: Optional[Sequence[str]]):
        self.n_features_ = n_features
        self.categorical_mask_ = build_categorical_mask(
            self.categorical_features, n_features)
        if self.categorical_mask_ is None:
            raise ValueError("categorical_features must be 'all', None, "
                             "an array of indices or a mask of length %d, "
                             "got %r"
                             % (n_features, self.categorical_features))
        if feature_names is None:
            feature_names = ["feature_{}".format(i + 1)
                             for i in range(n_features)]
        elif len(feature_names) != n_features:
            raise ValueError("feature_names must contain %d elements, got %d"
                             % (n_features, len(feature_names)))
        self.feature_names_: List[str] = [str(name) for name in feature_names]
        self._label_index = {str(label): i
                             for i, label in enumerate(self.classes_)}
        self.learner_ = OnlineCANCLearner(
            grace_period=self.grace_period,
            variant=self.variant,
            attribute_evaluation=self.attribute_evaluation,
            value_evaluation=self.value_evaluation,
            disjoint_rules=self.disjoint_rules,
            resampling=self.resampling,
            max_window=self.max_window,
            reward_factor=self.reward_factor,
            penalty_factor=self.penalty_factor,
            resampling_decay=self.resampling_decay,
            attributes=[self.feature_names_[i]
                        for i in np.flatnonzero(self.categorical_mask_)],
            random_state=check_random_state(self.random_state))

    def _records(self, X, y=None) -> Iterator[Record]:
        columns = np.flatnonzero(self.categorical_mask_)
        for i, row in enumerate(X):
            values = {self.feature_names_[c]: str(row[c]) for c in columns}
            yield Record(values, '' if y is None else str(y[i]))

    def _learn(self, X, y):
        for record in self._records(X, y):
            self.learner_.learn_one(record)

    def predict(self, X) -> np.ndarray:
        """
        Make a prediction for each sample in `X`, based on `decision_function`.
        Rejected samples get the first class.

        See <https://scikit-learn.org/dev/glossary.html#term-predict>
        """
        check_is_fitted(self, ['classes_'])
        return self.classes_[np.argmax(self.decision_function(X), axis=1)]

    def decision_function(self, X) -> np.ndarray:
        """Vote of the rules for each sample.

        :return: np.ndarray of shape `(n_samples, n_classes_)`.
          Each row sums to 1, unless all matching rules have zero weight.
          If no rule matches a sample, its row is filled with `REJECTED`.

        See <https://scikit-learn.org/dev/glossary.html#term-decision-function>
        """
        check_is_fitted(self, ['learner_', 'categorical_mask_'])
        X: np.ndarray = check_array(X, dtype=None)
        n_features = X.shape[1]
        if self.n_features_ != n_features:
            raise ValueError("Number of features of the model must "
                             "match the input. Model n_features is %s and "
                             "input n_features is %s "
                             % (self.n_features_, n_features))

        scores = np.zeros((len(X), self.n_classes_))
        for i, record in enumerate(self._records(X)):
            prediction = self.learner_.predict_one(record)
            if prediction.rejected:
                scores[i, :] = REJECTED
                continue
            for label, vote in zip(prediction.classes, prediction.votes):
                scores[i, self._label_index[label]] = vote
        return scores

    def export_text(self) -> str:
        """Build a text report showing the learned rules.

        See Also `sklearn.tree.export_text`
        """
        check_is_fitted(self, ['learner_'])
        return self.learner_.export_text()
