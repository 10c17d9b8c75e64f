"""Unit tests for housing_regression/data/quality.py."""

import numpy as np
import pandas as pd
import pytest

from housing_regression.data.quality import DataQualityChecker
from housing_regression.data.synthetic import make_synthetic_housing


@pytest.fixture()
def raw_df() -> pd.DataFrame:
    return make_synthetic_housing(n_rows=60, seed=0)


class TestValidateSchema:
    def test_valid_frame_passes(self, raw_df: pd.DataFrame) -> None:
        DataQualityChecker(target="Sale_Price", required=["Neighborhood"]).validate_schema(raw_df)

    def test_missing_target_raises(self, raw_df: pd.DataFrame) -> None:
        with pytest.raises(ValueError, match="missing"):
            DataQualityChecker().validate_schema(raw_df.drop(columns=["Sale_Price"]))

    def test_non_numeric_target_raises(self, raw_df: pd.DataFrame) -> None:
        raw_df["Sale_Price"] = raw_df["Sale_Price"].astype(str)
        with pytest.raises(ValueError, match="numeric"):
            DataQualityChecker().validate_schema(raw_df)

    def test_non_positive_target_raises(self, raw_df: pd.DataFrame) -> None:
        raw_df.loc[0, "Sale_Price"] = 0.0
        with pytest.raises(ValueError, match="positive"):
            DataQualityChecker().validate_schema(raw_df)

    def test_missing_target_values_raise(self, raw_df: pd.DataFrame) -> None:
        raw_df.loc[3, "Sale_Price"] = np.nan
        with pytest.raises(ValueError, match="missing values"):
            DataQualityChecker().validate_schema(raw_df)

    def test_missing_required_column_raises(self, raw_df: pd.DataFrame) -> None:
        checker = DataQualityChecker(required=["Neighborhood", "Lot_Frontage"])
        with pytest.raises(ValueError, match="Lot_Frontage"):
            checker.validate_schema(raw_df)

    def test_empty_frame_raises(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            DataQualityChecker().validate_schema(pd.DataFrame())


class TestReports:
    def test_report_nulls_counts(self, raw_df: pd.DataFrame) -> None:
        raw_df.loc[:4, "Lot_Area"] = np.nan
        summary = DataQualityChecker().report_nulls(raw_df)
        assert summary.loc["Lot_Area", "missing_count"] == 5
        assert summary.index[0] == "Lot_Area"

    def test_report_cardinality_covers_categoricals(self, raw_df: pd.DataFrame) -> None:
        summary = DataQualityChecker().report_cardinality(raw_df)
        assert set(summary.index) == {"Neighborhood", "Bldg_Type"}

    def test_run_all(self, raw_df: pd.DataFrame) -> None:
        DataQualityChecker(required=["Neighborhood"]).run_all(raw_df)
