"""Custom preprocessing steps used by :mod:`housing_regression.features.recipe`.

Both transformers are sklearn-compatible (``fit`` / ``transform``) and must
be fitted *only* on training data.

Stateful parameters learned during ``fit``:
    - :class:`CollapseRareCategories`: ``levels_`` (levels kept as-is) and
      ``pooled_`` (levels folded into the "other" bucket).
    - :class:`NearZeroVarianceFilter`: ``keep_`` (retained columns) and
      ``removed_`` (dropped columns).
"""

import logging
from typing import List, Optional

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.utils.validation import check_is_fitted

logger = logging.getLogger(__name__)


class CollapseRareCategories(BaseEstimator, TransformerMixin):
    """Pool infrequent levels of one categorical column into an "other" level.

    Args:
        column: Categorical column to collapse.  When the column is absent
            from the data the step is a no-op.
        threshold: Levels below this training frequency are pooled.  Values
            below 1 are proportions of rows; values of 1 or more are counts.
        other_label: Name of the pooled level.
    """

    def __init__(
        self,
        column: Optional[str] = "Neighborhood",
        threshold: float = 0.05,
        other_label: str = "other",
    ) -> None:
        self.column = column
        self.threshold = threshold
        self.other_label = other_label

    def fit(self, X: pd.DataFrame, y=None) -> "CollapseRareCategories":
        """Learn which levels survive and which are pooled.

        Args:
            X: Training predictors.
            y: Ignored; present for sklearn compatibility.

        Returns:
            Fitted transformer (self).

        Raises:
            ValueError: If ``other_label`` already names a kept level.
        """
        self.feature_names_in_ = np.asarray(X.columns, dtype=object)
        self.levels_: List[str] = []
        self.pooled_: List[str] = []

        if self.column is None or self.column not in X.columns:
            logger.info("Rare-category column %r not present; step skipped.", self.column)
            return self

        counts = X[self.column].astype(str).value_counts()
        if self.threshold < 1:
            share = counts / counts.sum()
            rare = share < self.threshold
        else:
            rare = counts < self.threshold

        self.levels_ = sorted(counts.index[~rare])
        self.pooled_ = sorted(counts.index[rare])

        if self.pooled_ and self.other_label in self.levels_:
            raise ValueError(
                f"Level {self.other_label!r} already exists in '{self.column}'; "
                "choose a different other_label."
            )
        logger.info(
            "Collapsing %d rare level(s) of '%s' into %r: %s",
            len(self.pooled_),
            self.column,
            self.other_label,
            self.pooled_,
        )
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, "levels_")
        X = X.copy()
        if not self.pooled_ or self.column not in X.columns:
            return X
        values = X[self.column].astype(str).astype(object)
        X[self.column] = values.where(values.isin(self.levels_), self.other_label)
        return X

    def get_feature_names_out(self, input_features=None) -> np.ndarray:
        check_is_fitted(self, "levels_")
        return self.feature_names_in_


class NearZeroVarianceFilter(BaseEstimator, TransformerMixin):
    """Drop predictors that are constant or almost constant.

    A column is removed when it holds a single distinct value, or when both
    of the following hold:

    - the ratio of the most common value's count to the second most common
      value's count exceeds ``freq_cut``;
    - the number of distinct values is at most ``unique_cut`` percent of the
      number of rows.

    Args:
        freq_cut: Frequency-ratio cutoff (default 95/5).
        unique_cut: Percent-unique cutoff (default 10).
    """

    def __init__(self, freq_cut: float = 95 / 5, unique_cut: float = 10.0) -> None:
        self.freq_cut = freq_cut
        self.unique_cut = unique_cut

    def fit(self, X: pd.DataFrame, y=None) -> "NearZeroVarianceFilter":
        """Learn which columns carry enough variation to keep.

        Args:
            X: Training predictors (numeric).
            y: Ignored; present for sklearn compatibility.

        Returns:
            Fitted transformer (self).
        """
        self.feature_names_in_ = np.asarray(X.columns, dtype=object)
        n_rows = len(X)
        self.keep_: List[str] = []
        self.removed_: List[str] = []

        for col in X.columns:
            counts = X[col].value_counts(dropna=True)
            if len(counts) <= 1:
                self.removed_.append(col)
                continue
            freq_ratio = counts.iloc[0] / counts.iloc[1]
            pct_unique = 100.0 * len(counts) / n_rows
            if freq_ratio > self.freq_cut and pct_unique <= self.unique_cut:
                self.removed_.append(col)
            else:
                self.keep_.append(col)

        if self.removed_:
            logger.info(
                "Near-zero-variance filter removed %d column(s): %s",
                len(self.removed_),
                self.removed_,
            )
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, "keep_")
        return X[self.keep_].copy()

    def get_feature_names_out(self, input_features=None) -> np.ndarray:
        check_is_fitted(self, "keep_")
        return np.asarray(self.keep_, dtype=object)
