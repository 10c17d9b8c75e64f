"""Final fits and coefficient-based feature importance.

After tuning, each model is finalised with *its own* selected penalty: the
recipe is prepped on the entire training set, the estimator is fitted once,
and feature importance is read off the coefficients as their absolute
value.
"""

import logging
from typing import Dict, Optional

import numpy as np
import pandas as pd
from sklearn.base import RegressorMixin

from housing_regression.evaluation.metrics import compute_metrics
from housing_regression.features.recipe import HousingRecipe
from housing_regression.models.specs import ModelSpec

logger = logging.getLogger(__name__)


class FittedWorkflow:
    """A prepped recipe plus the estimator fitted on its baked output.

    Args:
        spec: Model specification the estimator was built from.
        penalty: Penalty the estimator was fitted with (``None`` for OLS).
        recipe: Recipe prepped on the full training set.
        estimator: Fitted scikit-learn regressor.
    """

    def __init__(
        self,
        spec: ModelSpec,
        penalty: Optional[float],
        recipe: HousingRecipe,
        estimator: RegressorMixin,
    ) -> None:
        self.spec = spec
        self.penalty = penalty
        self.recipe = recipe
        self.estimator = estimator

    @property
    def name(self) -> str:
        return self.spec.name

    def coefficients(self) -> pd.DataFrame:
        """Return fitted coefficients as a ``term, estimate`` table.

        The intercept comes first, followed by one row per retained
        feature in recipe order.
        """
        terms = ["(Intercept)"] + list(self.recipe.feature_names_)
        estimates = np.concatenate(
            [[float(self.estimator.intercept_)], np.ravel(self.estimator.coef_)]
        )
        return pd.DataFrame({"term": terms, "estimate": estimates})

    def importance(self) -> pd.DataFrame:
        """Return absolute-coefficient importance, one row per feature.

        Returns:
            DataFrame with columns ``Variable``, ``Importance`` (``|coef|``)
            and ``Sign`` (``"POS"`` for positive coefficients, ``"NEG"``
            otherwise, zeros included), sorted by importance
            descending.  The intercept is excluded.
        """
        coefs = self.coefficients().iloc[1:]
        return (
            pd.DataFrame(
                {
                    "Variable": coefs["term"].to_numpy(),
                    "Importance": np.abs(coefs["estimate"].to_numpy()),
                    "Sign": np.where(coefs["estimate"] > 0, "POS", "NEG"),
                }
            )
            .sort_values("Importance", ascending=False, kind="stable")
            .reset_index(drop=True)
        )

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        """Predict the log-scale outcome for raw rows."""
        X, _ = self.recipe.bake(df)
        return self.estimator.predict(X)

    def evaluate(self, df: pd.DataFrame, label: str = "") -> Dict[str, float]:
        """Score the workflow on a held-out raw frame holding the target.

        Raises:
            ValueError: If ``df`` has no target column.
        """
        X, y = self.recipe.bake(df)
        if y is None:
            raise ValueError(f"Frame has no '{self.recipe.target}' column to score against.")
        return compute_metrics(y.to_numpy(), self.estimator.predict(X), label=label or self.name)


def finalize_workflow(
    spec: ModelSpec,
    params: Dict[str, Optional[float]],
    recipe: HousingRecipe,
    train_df: pd.DataFrame,
) -> FittedWorkflow:
    """Fit a model once on the entire training set.

    Args:
        spec: Model specification.
        params: Selected hyperparameters of *this* model, as returned by
            :meth:`TuningResult.select_best`.
        recipe: Recipe settings; a fresh copy is prepped on ``train_df``.
        train_df: Full raw training frame.

    Returns:
        :class:`FittedWorkflow` ready for importance extraction.
    """
    penalty = params.get("penalty")
    final_recipe = recipe.fresh().prep(train_df)
    X, y = final_recipe.juice()

    estimator = spec.make_estimator(penalty, n_samples=len(X))
    estimator.fit(X, y)
    logger.info(
        "Finalised %s (penalty=%s) on %d rows × %d features.",
        spec.name,
        "none" if penalty is None else f"{penalty:.3g}",
        *X.shape,
    )
    return FittedWorkflow(spec, penalty, final_recipe, estimator)
