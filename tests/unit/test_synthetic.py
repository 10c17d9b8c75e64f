"""Unit tests for housing_regression/data/synthetic.py."""

import numpy as np
import pandas as pd
import pytest
from pandas.api.types import is_numeric_dtype

from housing_regression.data.synthetic import make_synthetic_housing


class TestMakeSyntheticHousing:
    def test_default_shape(self) -> None:
        df = make_synthetic_housing()
        assert df.shape == (1000, 13)

    def test_column_types(self) -> None:
        df = make_synthetic_housing(n_rows=200)
        predictors = df.drop(columns=["Sale_Price"])
        numeric = [c for c in predictors.columns if is_numeric_dtype(predictors[c])]
        assert len(numeric) == 10
        assert len(predictors.columns) - len(numeric) == 2

    def test_target_positive_and_log_normal_ish(self) -> None:
        y = make_synthetic_housing(n_rows=2000)["Sale_Price"]
        assert (y > 0).all()
        # Skewed on the raw scale, roughly symmetric on the log scale.
        assert y.skew() > 0.2
        assert abs(np.log10(y).skew()) < 0.3

    def test_rare_neighborhoods_present(self) -> None:
        shares = make_synthetic_housing(n_rows=1000)["Neighborhood"].value_counts(normalize=True)
        assert (shares < 0.05).sum() >= 2

    def test_seed_reproducible(self) -> None:
        pd.testing.assert_frame_equal(make_synthetic_housing(seed=1), make_synthetic_housing(seed=1))

    def test_extra_columns(self) -> None:
        df = make_synthetic_housing(n_rows=50, n_numeric=12, n_categorical=3)
        assert "Feature_01" in df.columns
        assert "Category_01" in df.columns
        assert df.shape[1] == 16

    def test_invalid_sizes_raise(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            make_synthetic_housing(n_rows=0)
