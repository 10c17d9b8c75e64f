"""Resampled grid search over the regularisation penalty.

A single procedure, :func:`tune_model`, serves every model variant: it
takes a :class:`~housing_regression.models.specs.ModelSpec`, an unprepped
recipe, the training frame, a fixed list of folds and (for penalised
models) a penalty grid.

For each fold the recipe is prepped on the analysis rows only, and both
analysis and assessment rows are baked with those frozen parameters.  The
baked fold is reused for every grid point.  Each grid point is fitted on
the analysis rows and scored on the assessment rows; fold scores are then
averaged per grid point.

Fold failures:
    A degenerate fold, a non-converged fit (``ConvergenceWarning``), a
    linear-algebra failure or a non-finite prediction raises
    :class:`FoldFitError` for that ``(model, penalty, fold)`` triple.  With
    ``on_failure="exclude"`` the fold is dropped from that grid point's
    average and logged at WARNING; with ``on_failure="abort"`` the error
    propagates immediately.
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning

from housing_regression.evaluation.metrics import MINIMISE, compute_metrics
from housing_regression.features.recipe import HousingRecipe
from housing_regression.models.resampling import Fold
from housing_regression.models.specs import ModelSpec

logger = logging.getLogger(__name__)

_FAILURE_POLICIES = ("exclude", "abort")


class FoldFitError(RuntimeError):
    """A single ``(model, penalty, fold)`` fit that could not be scored."""

    def __init__(
        self,
        model: str,
        penalty: Optional[float],
        fold: str,
        reason: str,
    ) -> None:
        self.model = model
        self.penalty = penalty
        self.fold = fold
        self.reason = reason
        super().__init__(
            f"{model} (penalty={_fmt_penalty(penalty)}) failed on {fold}: {reason}"
        )


class TuningError(RuntimeError):
    """A tuning run that produced no usable configuration."""


def _fmt_penalty(penalty: Optional[float]) -> str:
    return "none" if penalty is None else f"{penalty:.3g}"


def penalty_grid(levels: int = 10, penalty_range: Sequence[float] = (-10.0, 0.0)) -> np.ndarray:
    """Regular grid of penalty values, evenly spaced on the log10 scale.

    Args:
        levels: Number of candidate values.
        penalty_range: ``(low, high)`` exponents of the grid.

    Returns:
        Ascending array of ``levels`` penalties from ``10**low`` to
        ``10**high``.

    Raises:
        ValueError: If ``levels < 1`` or the range is inverted.
    """
    low, high = penalty_range
    if levels < 1:
        raise ValueError(f"levels must be at least 1; got {levels}.")
    if low > high:
        raise ValueError(f"penalty_range is inverted: {penalty_range}.")
    return 10.0 ** np.linspace(low, high, levels)


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass
class TuningResult:
    """Per-fold scores and their per-configuration summary.

    Attributes:
        model: Model label.
        mixture: L1 share of the penalty (``None`` for OLS).
        grid: Candidate penalties in grid order (``[None]`` when untuned).
        fold_metrics: One row per successful ``(config, fold)`` fit with
            columns ``config, penalty, fold, rmse, mae, rsq``.
        summary: One row per ``(config, metric)`` with columns
            ``config, penalty, metric, mean, n, std_err, n_failed``.
        failures: Every fold failure that was excluded.
    """

    model: str
    mixture: Optional[float]
    grid: List[Optional[float]]
    fold_metrics: pd.DataFrame
    summary: pd.DataFrame
    failures: List[FoldFitError] = field(default_factory=list)

    def collect_metrics(self) -> pd.DataFrame:
        """Return the averaged metrics for every configuration."""
        return self.summary.copy()

    def show_best(self, metric: str = "rmse", n: int = 5) -> pd.DataFrame:
        """Return the top ``n`` configurations for ``metric``.

        Ranking uses the mean fold score; ties keep grid order.
        Configurations with no successful fold are ranked last.

        Args:
            metric: One of ``"rmse"``, ``"mae"`` or ``"rsq"``.
            n: Number of rows to return.

        Returns:
            Summary rows for ``metric``, best first.
        """
        if metric not in MINIMISE:
            raise ValueError(f"Unknown metric {metric!r}; choose from {list(MINIMISE)}.")
        rows = self.summary[self.summary["metric"] == metric]
        key = rows["mean"] if MINIMISE[metric] else -rows["mean"]
        ranked = (
            rows.assign(_key=key)
            .sort_values(["_key", "config"], na_position="last", kind="stable")
            .drop(columns="_key")
        )
        return ranked.head(n).reset_index(drop=True)

    def select_best(self, metric: str = "rmse") -> Dict[str, Optional[float]]:
        """Return the winning hyperparameters for ``metric``.

        Raises:
            TuningError: If no configuration has a successful fold.
        """
        best = self.show_best(metric, n=1)
        if best.empty or pd.isna(best.loc[0, "mean"]):
            raise TuningError(f"No configuration of '{self.model}' produced a score.")
        penalty = best.loc[0, "penalty"]
        return {"penalty": None if pd.isna(penalty) else float(penalty)}

    def best_score(self, metric: str = "rmse") -> pd.Series:
        """Return the summary row of the winning configuration."""
        return self.show_best(metric, n=1).iloc[0]


# ---------------------------------------------------------------------------
# Tuning procedure
# ---------------------------------------------------------------------------


def _bake_fold(
    recipe: HousingRecipe,
    data: pd.DataFrame,
    fold: Fold,
    model: str,
    penalty: Optional[float],
) -> Tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series]:
    """Prep the recipe on the analysis rows and bake both sides of a fold."""
    if len(fold.analysis) < 2 or len(fold.assessment) < 2:
        raise FoldFitError(
            model,
            penalty,
            fold.id,
            f"degenerate fold ({len(fold.analysis)} analysis / "
            f"{len(fold.assessment)} assessment rows)",
        )

    fold_recipe = recipe.fresh().prep(data.iloc[fold.analysis])
    X_fit, y_fit = fold_recipe.juice()
    if np.isclose(y_fit.var(), 0.0):
        raise FoldFitError(model, penalty, fold.id, "zero outcome variance in analysis set")

    X_assess, y_assess = fold_recipe.bake(data.iloc[fold.assessment])
    return X_fit, y_fit, X_assess, y_assess


def _fit_and_score(
    spec: ModelSpec,
    penalty: Optional[float],
    fold_id: str,
    X_fit: pd.DataFrame,
    y_fit: pd.Series,
    X_assess: pd.DataFrame,
    y_assess: pd.Series,
) -> Dict[str, float]:
    """Fit one configuration on a fold and score it on the held-out rows."""
    estimator = spec.make_estimator(penalty, n_samples=len(X_fit))
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", ConvergenceWarning)
            estimator.fit(X_fit, y_fit)
        y_pred = estimator.predict(X_assess)
    except (ConvergenceWarning, np.linalg.LinAlgError, ValueError) as exc:
        raise FoldFitError(spec.name, penalty, fold_id, str(exc)) from exc

    if not np.all(np.isfinite(y_pred)):
        raise FoldFitError(spec.name, penalty, fold_id, "non-finite predictions")

    return compute_metrics(y_assess, y_pred, label=f"{spec.name}/{fold_id}")


def _summarise(
    fold_metrics: pd.DataFrame,
    grid: List[Optional[float]],
    failures: List[FoldFitError],
) -> pd.DataFrame:
    rows = []
    for config, penalty in enumerate(grid):
        scored = fold_metrics[fold_metrics["config"] == config]
        n_failed = sum(1 for f in failures if f.penalty == penalty)
        for metric in MINIMISE:
            values = scored[metric].dropna() if not scored.empty else pd.Series(dtype=float)
            n = int(len(values))
            std_err = float(values.std(ddof=1) / np.sqrt(n)) if n > 1 else float("nan")
            rows.append(
                {
                    "config": config,
                    "penalty": np.nan if penalty is None else penalty,
                    "metric": metric,
                    "mean": float(values.mean()) if n else float("nan"),
                    "n": n,
                    "std_err": std_err,
                    "n_failed": n_failed,
                }
            )
    return pd.DataFrame(rows)


def tune_model(
    spec: ModelSpec,
    recipe: HousingRecipe,
    data: pd.DataFrame,
    folds: Sequence[Fold],
    grid: Optional[Sequence[float]] = None,
    metric: str = "rmse",
    on_failure: str = "exclude",
) -> TuningResult:
    """Cross-validate one model family over a penalty grid.

    Args:
        spec: Model specification.
        recipe: Unprepped (or prepped; it is cloned) preprocessing recipe.
        data: Raw training frame the folds index into.
        folds: Fixed resampling plan shared across model families.
        grid: Candidate penalties.  Required when ``spec.tune_penalty``;
            ignored otherwise.
        metric: Metric whose best configuration is logged.
        on_failure: ``"exclude"`` to drop failed folds from the average,
            ``"abort"`` to raise on the first failure.

    Returns:
        :class:`TuningResult` for the model.

    Raises:
        ValueError: If ``on_failure``/``metric`` are unknown, or a tuned
            model is given no grid.
        FoldFitError: On the first failure when ``on_failure="abort"``.
        TuningError: If every fit failed.
    """
    if on_failure not in _FAILURE_POLICIES:
        raise ValueError(f"on_failure must be one of {_FAILURE_POLICIES}; got {on_failure!r}.")
    if metric not in MINIMISE:
        raise ValueError(f"Unknown metric {metric!r}; choose from {list(MINIMISE)}.")

    if spec.tune_penalty:
        if grid is None or len(grid) == 0:
            raise ValueError(f"Model '{spec.name}' tunes its penalty; a grid is required.")
        configs: List[Optional[float]] = [float(p) for p in grid]
    else:
        if grid is not None:
            logger.warning("Model '%s' has no tunable parameters; grid ignored.", spec.name)
        configs = [spec.penalty]

    logger.info(
        "Tuning %s over %d configuration(s) × %d folds.", spec.name, len(configs), len(folds)
    )

    records: List[Dict[str, Any]] = []
    failures: List[FoldFitError] = []

    def _record_failure(exc: FoldFitError) -> None:
        if on_failure == "abort":
            raise exc
        logger.warning("Excluding fold from average: %s", exc)
        failures.append(exc)

    for fold in folds:
        try:
            baked = _bake_fold(recipe, data, fold, spec.name, None)
        except FoldFitError as exc:
            for penalty in configs:
                _record_failure(FoldFitError(spec.name, penalty, fold.id, exc.reason))
            continue

        for config, penalty in enumerate(configs):
            try:
                scores = _fit_and_score(spec, penalty, fold.id, *baked)
            except FoldFitError as exc:
                _record_failure(exc)
                continue
            records.append({"config": config, "penalty": penalty, "fold": fold.id, **scores})

    if not records:
        raise TuningError(
            f"Every fit of '{spec.name}' failed ({len(failures)} failure(s))."
        )

    fold_metrics = pd.DataFrame(records)
    fold_metrics["penalty"] = fold_metrics["penalty"].astype(float)
    result = TuningResult(
        model=spec.name,
        mixture=spec.mixture,
        grid=configs,
        fold_metrics=fold_metrics,
        summary=_summarise(fold_metrics, configs, failures),
        failures=failures,
    )

    best = result.best_score(metric)
    logger.info(
        "%s best %s=%.5f (penalty=%s, n=%d, failed=%d)",
        spec.name,
        metric,
        best["mean"],
        _fmt_penalty(None if pd.isna(best["penalty"]) else best["penalty"]),
        best["n"],
        len(failures),
    )
    return result
