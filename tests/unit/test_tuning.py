"""Unit tests for housing_regression/models/tuning.py."""

import logging
import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
import pytest
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.exceptions import ConvergenceWarning

from housing_regression.data.synthetic import make_synthetic_housing
from housing_regression.features.recipe import HousingRecipe
from housing_regression.models.resampling import Fold, make_folds
from housing_regression.models.specs import ModelSpec, get_model_spec
from housing_regression.models.tuning import (
    FoldFitError,
    TuningError,
    TuningResult,
    penalty_grid,
    tune_model,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _NonConvergingRegressor(BaseEstimator, RegressorMixin):
    """Always emits a ConvergenceWarning during fit."""

    def fit(self, X, y):
        warnings.warn("Objective did not converge.", ConvergenceWarning)
        return self

    def predict(self, X):
        return np.zeros(len(X))


@dataclass(frozen=True)
class _FlakySpec(ModelSpec):
    """Lasso whose fit never converges at one particular penalty."""

    failing_penalty: float = 1e-3

    def make_estimator(self, penalty, n_samples):
        if penalty == self.failing_penalty:
            return _NonConvergingRegressor()
        return super().make_estimator(penalty, n_samples)


@pytest.fixture(scope="module")
def train_df() -> pd.DataFrame:
    return make_synthetic_housing(n_rows=300, seed=11)


@pytest.fixture(scope="module")
def folds(train_df: pd.DataFrame):
    return make_folds(train_df, v=5, seed=3)


@pytest.fixture()
def recipe() -> HousingRecipe:
    return HousingRecipe()


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------


class TestPenaltyGrid:
    def test_default_grid(self) -> None:
        grid = penalty_grid(10)
        assert len(grid) == 10
        assert grid[0] == pytest.approx(1e-10)
        assert grid[-1] == pytest.approx(1.0)
        assert np.all(np.diff(grid) > 0)

    def test_log_spacing(self) -> None:
        grid = penalty_grid(3, (-4.0, 0.0))
        np.testing.assert_allclose(grid, [1e-4, 1e-2, 1.0])

    def test_invalid_levels_raise(self) -> None:
        with pytest.raises(ValueError, match="levels"):
            penalty_grid(0)

    def test_inverted_range_raises(self) -> None:
        with pytest.raises(ValueError, match="inverted"):
            penalty_grid(5, (0.0, -3.0))


# ---------------------------------------------------------------------------
# Tuning
# ---------------------------------------------------------------------------


class TestTuneModel:
    def test_untuned_model_averages_folds(self, recipe, train_df, folds) -> None:
        result = tune_model(get_model_spec("lm"), recipe, train_df, folds)
        assert result.grid == [None]
        assert len(result.fold_metrics) == len(folds)
        best = result.best_score("rmse")
        assert best["mean"] == pytest.approx(result.fold_metrics["rmse"].mean())
        assert best["n"] == len(folds)
        assert result.select_best("rmse") == {"penalty": None}

    def test_single_point_grid_degenerates_to_plain_average(self, recipe, train_df, folds) -> None:
        result = tune_model(get_model_spec("lasso"), recipe, train_df, folds, grid=[1e-3])
        assert result.select_best("rmse") == {"penalty": pytest.approx(1e-3)}
        assert result.best_score("rmse")["mean"] == pytest.approx(
            result.fold_metrics["rmse"].mean()
        )

    def test_grid_summary_shape(self, recipe, train_df, folds) -> None:
        grid = penalty_grid(4, (-5.0, -1.0))
        result = tune_model(get_model_spec("ridge"), recipe, train_df, folds, grid=grid)
        assert len(result.fold_metrics) == 4 * len(folds)
        rmse = result.collect_metrics().query("metric == 'rmse'")
        assert len(rmse) == 4
        assert (rmse["mean"] >= 0).all()
        assert (rmse["n"] == len(folds)).all()
        assert (rmse["n_failed"] == 0).all()

    def test_best_penalty_minimises_rmse(self, recipe, train_df, folds) -> None:
        grid = penalty_grid(5, (-6.0, 0.0))
        result = tune_model(get_model_spec("enet"), recipe, train_df, folds, grid=grid)
        rmse = result.collect_metrics().query("metric == 'rmse'")
        best = result.select_best("rmse")["penalty"]
        assert best == pytest.approx(rmse.loc[rmse["mean"].idxmin(), "penalty"])
        # A penalty of 1 shrinks every coefficient to zero on a log10 target.
        assert best < 1.0

    def test_tuned_model_requires_grid(self, recipe, train_df, folds) -> None:
        with pytest.raises(ValueError, match="grid is required"):
            tune_model(get_model_spec("lasso"), recipe, train_df, folds)

    def test_grid_ignored_for_untuned_model(self, recipe, train_df, folds, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            result = tune_model(get_model_spec("lm"), recipe, train_df, folds, grid=[0.1, 0.2])
        assert result.grid == [None]
        assert "grid ignored" in caplog.text

    def test_unknown_policy_raises(self, recipe, train_df, folds) -> None:
        with pytest.raises(ValueError, match="on_failure"):
            tune_model(get_model_spec("lm"), recipe, train_df, folds, on_failure="retry")

    def test_same_inputs_same_result(self, recipe, train_df, folds) -> None:
        grid = penalty_grid(3, (-4.0, -2.0))
        a = tune_model(get_model_spec("lasso"), recipe, train_df, folds, grid=grid)
        b = tune_model(get_model_spec("lasso"), recipe, train_df, folds, grid=grid)
        pd.testing.assert_frame_equal(a.collect_metrics(), b.collect_metrics())


class TestFoldFailures:
    def test_non_converged_fits_are_excluded(self, recipe, train_df, folds, caplog) -> None:
        spec = _FlakySpec("lasso", mixture=1.0, tune_penalty=True)
        with caplog.at_level(logging.WARNING):
            result = tune_model(spec, recipe, train_df, folds, grid=[1e-3, 1e-2])
        assert len(result.failures) == len(folds)
        assert all(f.penalty == 1e-3 for f in result.failures)
        assert "Excluding fold" in caplog.text

        rmse = result.collect_metrics().query("metric == 'rmse'").set_index("config")
        assert rmse.loc[0, "n"] == 0
        assert rmse.loc[0, "n_failed"] == len(folds)
        assert np.isnan(rmse.loc[0, "mean"])
        assert result.select_best("rmse") == {"penalty": pytest.approx(1e-2)}

    def test_abort_policy_raises_first_failure(self, recipe, train_df, folds) -> None:
        spec = _FlakySpec("lasso", mixture=1.0, tune_penalty=True)
        with pytest.raises(FoldFitError) as excinfo:
            tune_model(spec, recipe, train_df, folds, grid=[1e-3, 1e-2], on_failure="abort")
        assert excinfo.value.model == "lasso"
        assert excinfo.value.penalty == pytest.approx(1e-3)
        assert excinfo.value.fold == folds[0].id

    def test_all_failures_raise_tuning_error(self, recipe, train_df, folds) -> None:
        spec = _FlakySpec("lasso", mixture=1.0, tune_penalty=True)
        with pytest.raises(TuningError):
            tune_model(spec, recipe, train_df, folds, grid=[1e-3])

    def test_degenerate_fold_is_excluded(self, recipe, train_df, folds) -> None:
        tiny = Fold("Fold99", np.arange(2, len(train_df)), np.array([0]))
        result = tune_model(get_model_spec("lm"), recipe, train_df, list(folds) + [tiny])
        assert [f.fold for f in result.failures] == ["Fold99"]
        assert "degenerate" in result.failures[0].reason
        assert result.best_score("rmse")["n"] == len(folds)

    def test_constant_outcome_fails_every_fold(self, recipe, train_df, folds) -> None:
        flat = train_df.assign(Sale_Price=150_000.0)
        with pytest.raises(TuningError):
            tune_model(get_model_spec("lm"), recipe, flat, folds)


class TestTuningResultSelection:
    def _result(self) -> TuningResult:
        summary = pd.DataFrame(
            {
                "config": [0, 1, 2, 0, 1, 2],
                "penalty": [0.1, 0.2, 0.3, 0.1, 0.2, 0.3],
                "metric": ["rmse"] * 3 + ["rsq"] * 3,
                "mean": [0.05, 0.04, 0.04, 0.80, 0.85, 0.85],
                "n": [10] * 6,
                "std_err": [0.01] * 6,
                "n_failed": [0] * 6,
            }
        )
        return TuningResult("lasso", 1.0, [0.1, 0.2, 0.3], pd.DataFrame(), summary)

    def test_ties_broken_by_grid_order(self) -> None:
        assert self._result().select_best("rmse") == {"penalty": pytest.approx(0.2)}

    def test_rsq_is_maximised(self) -> None:
        result = self._result()
        assert result.select_best("rsq") == {"penalty": pytest.approx(0.2)}
        assert result.show_best("rsq", n=3)["config"].tolist() == [1, 2, 0]

    def test_show_best_orders_ascending(self) -> None:
        assert self._result().show_best("rmse", n=3)["config"].tolist() == [1, 2, 0]

    def test_unknown_metric_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown metric"):
            self._result().show_best("mape")
