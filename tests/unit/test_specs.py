"""Unit tests for housing_regression/models/specs.py."""

import pytest
from sklearn.linear_model import ElasticNet, Lasso, LinearRegression, Ridge

from housing_regression.models.specs import ModelSpec, get_model_spec


class TestGetModelSpec:
    @pytest.mark.parametrize(
        "name, mixture, tuned",
        [("lm", None, False), ("lasso", 1.0, True), ("ridge", 0.0, True), ("enet", 0.5, True)],
    )
    def test_registry(self, name, mixture, tuned) -> None:
        spec = get_model_spec(name)
        assert spec.name == name
        assert spec.mixture == mixture
        assert spec.tune_penalty is tuned

    def test_overrides(self) -> None:
        spec = get_model_spec("enet", mixture=0.25, max_iter=500)
        assert spec.mixture == pytest.approx(0.25)
        assert spec.max_iter == 500

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown model"):
            get_model_spec("xgb")

    def test_invalid_mixture_raises(self) -> None:
        with pytest.raises(ValueError, match="mixture"):
            get_model_spec("enet", mixture=1.5)


class TestMakeEstimator:
    def test_lm_is_ols(self) -> None:
        assert isinstance(get_model_spec("lm").make_estimator(None, 100), LinearRegression)

    def test_zero_penalty_is_ols(self) -> None:
        assert isinstance(get_model_spec("lasso").make_estimator(0.0, 100), LinearRegression)

    def test_lasso(self) -> None:
        est = get_model_spec("lasso").make_estimator(0.01, 100)
        assert isinstance(est, Lasso)
        assert est.alpha == pytest.approx(0.01)

    def test_ridge_penalty_rescaled_by_rows(self) -> None:
        est = get_model_spec("ridge").make_estimator(0.01, 200)
        assert isinstance(est, Ridge)
        assert est.alpha == pytest.approx(2.0)

    def test_enet(self) -> None:
        est = ModelSpec("enet", mixture=0.5, tune_penalty=True, max_iter=123).make_estimator(0.1, 50)
        assert isinstance(est, ElasticNet)
        assert est.alpha == pytest.approx(0.1)
        assert est.l1_ratio == pytest.approx(0.5)
        assert est.max_iter == 123
