"""Unit tests for housing_regression/evaluation/metrics.py."""

import numpy as np
import pytest

from housing_regression.evaluation.metrics import compute_metrics, metrics_to_dataframe


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestComputeMetrics:
    def test_perfect_predictions(self) -> None:
        y = np.array([5.1, 5.3, 5.6])
        metrics = compute_metrics(y, y)
        assert metrics["rmse"] == pytest.approx(0.0, abs=1e-9)
        assert metrics["mae"] == pytest.approx(0.0, abs=1e-9)
        assert metrics["rsq"] == pytest.approx(1.0, abs=1e-9)

    def test_known_rmse_and_mae(self) -> None:
        y_true = np.array([5.0, 5.0, 5.0, 5.0])
        y_pred = np.array([5.1, 4.9, 5.3, 4.7])
        metrics = compute_metrics(y_true, y_pred)
        assert metrics["rmse"] == pytest.approx(np.sqrt((0.01 + 0.01 + 0.09 + 0.09) / 4))
        assert metrics["mae"] == pytest.approx(0.2)

    def test_rmse_is_non_negative(self) -> None:
        rng = np.random.default_rng(0)
        y = rng.normal(5, 0.2, 50)
        metrics = compute_metrics(y, y + rng.normal(0, 0.05, 50))
        assert metrics["rmse"] >= 0

    def test_single_observation_has_nan_rsq(self) -> None:
        metrics = compute_metrics(np.array([5.0]), np.array([5.2]))
        assert metrics["rmse"] == pytest.approx(0.2)
        assert np.isnan(metrics["rsq"])

    def test_shape_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="Shape mismatch"):
            compute_metrics(np.array([1.0, 2.0]), np.array([1.0]))

    def test_empty_raises(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            compute_metrics(np.array([]), np.array([]))

    def test_returns_all_keys(self) -> None:
        y = np.array([5.2, 5.5, 5.1])
        metrics = compute_metrics(y, y * 1.01)
        assert set(metrics.keys()) == {"rmse", "mae", "rsq"}

    def test_label_does_not_affect_values(self) -> None:
        y = np.array([5.0, 5.3])
        y_pred = np.array([5.1, 5.2])
        m1 = compute_metrics(y, y_pred, label="lasso/Fold01")
        m2 = compute_metrics(y, y_pred, label="ridge/test")
        for k in m1:
            assert m1[k] == pytest.approx(m2[k])


class TestMetricsToDataFrame:
    def test_shape(self) -> None:
        results = {
            "lm": {"rmse": 0.06, "mae": 0.04, "rsq": 0.88},
            "lasso": {"rmse": 0.05, "mae": 0.03, "rsq": 0.90},
        }
        df = metrics_to_dataframe(results)
        assert df.shape == (2, 3)
        assert df.index.name == "model"
        assert df.loc["lasso", "rmse"] == pytest.approx(0.05)
