"""Preprocessing recipe shared by every model variant.

The recipe is an ordered scikit-learn :class:`~sklearn.pipeline.Pipeline`
of predictor steps plus a separate outcome transform:

1. ``other``  – collapse rare levels of one categorical column.
2. ``dummy``  – dummy-encode every non-numeric predictor.
3. ``center`` – subtract the training mean of every predictor.
4. ``scale``  – divide every predictor by its training standard deviation.
5. ``nzv``    – drop near-zero-variance predictors.
6. outcome    – log-transform the sale price (base 10 by default).

Centering and scaling run after encoding, so indicator columns are
standardised as well; the variance filter runs last, so sparse indicator
columns are candidates for removal.

``prep`` learns every parameter from the training frame only.  ``bake``
reapplies those frozen parameters unchanged to any frame with the same
schema.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype
from sklearn.base import BaseEstimator, clone
from sklearn.compose import ColumnTransformer, make_column_selector
from sklearn.exceptions import NotFittedError
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from housing_regression.features.steps import (
    CollapseRareCategories,
    NearZeroVarianceFilter,
)

logger = logging.getLogger(__name__)

_MISSING_LEVEL = "missing"


class HousingRecipe(BaseEstimator):
    """Prep/bake preprocessing recipe for the sale-price models.

    Args:
        target: Name of the outcome column.
        other_column: Categorical column whose rare levels are pooled.
        other_threshold: Frequency below which a level is pooled.
        one_hot: Keep every level when encoding (``True``) or drop the
            first, reference level (``False``).
        nzv_freq_cut: Frequency-ratio cutoff of the variance filter.
        nzv_unique_cut: Percent-unique cutoff of the variance filter.
        log_base: Base of the outcome log transform.
    """

    def __init__(
        self,
        target: str = "Sale_Price",
        other_column: Optional[str] = "Neighborhood",
        other_threshold: float = 0.05,
        one_hot: bool = False,
        nzv_freq_cut: float = 95 / 5,
        nzv_unique_cut: float = 10.0,
        log_base: float = 10,
    ) -> None:
        self.target = target
        self.other_column = other_column
        self.other_threshold = other_threshold
        self.one_hot = one_hot
        self.nzv_freq_cut = nzv_freq_cut
        self.nzv_unique_cut = nzv_unique_cut
        self.log_base = log_base

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "HousingRecipe":
        """Build an unprepped recipe from the ``target`` / ``preprocessing`` sections."""
        pre = cfg.get("preprocessing", {})
        return cls(
            target=cfg["target"]["column"],
            other_column=pre.get("other_column", "Neighborhood"),
            other_threshold=pre.get("other_threshold", 0.05),
            one_hot=pre.get("one_hot", False),
            nzv_freq_cut=pre.get("nzv_freq_cut", 95 / 5),
            nzv_unique_cut=pre.get("nzv_unique_cut", 10.0),
            log_base=cfg["target"].get("log_base", 10),
        )

    # ------------------------------------------------------------------
    # Recipe API
    # ------------------------------------------------------------------

    def build_pipeline(self) -> Pipeline:
        """Return the unfitted predictor pipeline, steps in fixed order."""
        encoder = OneHotEncoder(
            drop=None if self.one_hot else "first",
            handle_unknown="ignore",
            sparse_output=False,
        )
        dummy = ColumnTransformer(
            [("dummy", encoder, make_column_selector(dtype_exclude="number"))],
            remainder="passthrough",
            verbose_feature_names_out=False,
        )
        pipeline = Pipeline(
            [
                ("other", CollapseRareCategories(self.other_column, self.other_threshold)),
                ("dummy", dummy),
                ("center", StandardScaler(with_std=False)),
                ("scale", StandardScaler(with_mean=False)),
                ("nzv", NearZeroVarianceFilter(self.nzv_freq_cut, self.nzv_unique_cut)),
            ]
        )
        return pipeline.set_output(transform="pandas")

    def prep(self, df: pd.DataFrame) -> "HousingRecipe":
        """Learn all step parameters from training data only.

        Args:
            df: Raw training frame including the target column.

        Returns:
            Prepped recipe (self).

        Raises:
            ValueError: If the target column is missing or numeric
                predictors contain missing values.
        """
        if self.target not in df.columns:
            raise ValueError(f"Target column '{self.target}' is missing.")

        X = self._predictors(df)
        na_cols = [c for c in X.columns if is_numeric_dtype(X[c]) and X[c].isnull().any()]
        if na_cols:
            raise ValueError(f"Numeric predictors contain missing values: {na_cols}")

        self.pipeline_ = self.build_pipeline()
        self._train_baked_ = (
            self.pipeline_.fit_transform(X),
            self._log_outcome(df[self.target]),
        )
        self.feature_names_: List[str] = list(self._train_baked_[0].columns)
        logger.info(
            "Recipe prepped on %d rows: %d predictors in → %d features out.",
            len(df),
            X.shape[1],
            len(self.feature_names_),
        )
        return self

    def bake(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, Optional[pd.Series]]:
        """Apply the frozen recipe to a frame with the training schema.

        Args:
            df: Raw frame; the target column is optional.

        Returns:
            ``(X, y)`` where ``X`` holds the retained features and ``y`` the
            log-transformed outcome, or ``None`` when ``df`` has no target.

        Raises:
            NotFittedError: If the recipe has not been prepped.
        """
        self._check_prepped()
        X = self.pipeline_.transform(self._predictors(df))
        y = self._log_outcome(df[self.target]) if self.target in df.columns else None
        return X, y

    def juice(self) -> Tuple[pd.DataFrame, pd.Series]:
        """Return the baked training data computed during :meth:`prep`."""
        self._check_prepped()
        X, y = self._train_baked_
        return X.copy(), y.copy()

    def fresh(self) -> "HousingRecipe":
        """Return an unprepped copy with identical settings."""
        return clone(self)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _check_prepped(self) -> None:
        if not hasattr(self, "pipeline_"):
            raise NotFittedError("Recipe has not been prepped; call prep() first.")

    def _predictors(self, df: pd.DataFrame) -> pd.DataFrame:
        X = df.drop(columns=[self.target], errors="ignore")
        cat_cols = [c for c in X.columns if not is_numeric_dtype(X[c])]
        if cat_cols:
            X = X.copy()
            for col in cat_cols:
                values = X[col].astype(object)
                X[col] = values.where(values.notna(), _MISSING_LEVEL).map(str).astype(object)
        return X

    def _log_outcome(self, y: pd.Series) -> pd.Series:
        values = y.to_numpy(dtype=float)
        if (values <= 0).any():
            raise ValueError(
                f"Target '{self.target}' must be strictly positive to log-transform."
            )
        if self.log_base == 10:
            logged = np.log10(values)
        else:
            logged = np.log(values) / np.log(self.log_base)
        return pd.Series(logged, index=y.index, name=self.target)
