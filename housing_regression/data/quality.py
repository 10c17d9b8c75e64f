"""Data quality checks for the housing-sales table."""

import logging
from typing import List, Optional, Sequence

import pandas as pd
from pandas.api.types import is_numeric_dtype

logger = logging.getLogger(__name__)


class DataQualityChecker:
    """Runs schema validation and data quality reports on a DataFrame.

    These methods are stateless – they inspect the data and raise/log
    issues without fitting any parameters for later use.

    Args:
        target: Name of the numeric outcome column.
        required: Additional columns that must be present (e.g. the
            stratification column or the rare-category column).
    """

    def __init__(
        self,
        target: str = "Sale_Price",
        required: Optional[Sequence[str]] = None,
    ) -> None:
        self.target = target
        self.required: List[str] = list(required or [])

    def validate_schema(self, df: pd.DataFrame) -> None:
        """Fail fast on a table that cannot be modelled.

        Args:
            df: Raw DataFrame immediately after loading.

        Raises:
            ValueError: If the frame is empty, the target is missing,
                non-numeric or non-positive, or a required column is missing.
        """
        if df.empty:
            raise ValueError("DataFrame is empty.")

        if self.target not in df.columns:
            raise ValueError(f"Target column '{self.target}' is missing.")

        y = df[self.target]
        if not is_numeric_dtype(y) or y.dtype == bool:
            raise ValueError(
                f"Target column '{self.target}' must be numeric; got {y.dtype}."
            )
        if y.isnull().any():
            raise ValueError(
                f"Target column '{self.target}' has {int(y.isnull().sum())} missing values."
            )
        if (y <= 0).any():
            # The outcome is log-transformed downstream.
            raise ValueError(
                f"Target column '{self.target}' must be strictly positive."
            )

        missing = [c for c in self.required if c not in df.columns]
        if missing:
            raise ValueError(f"DataFrame is missing required columns: {missing}")

        if df.shape[1] < 2:
            raise ValueError("DataFrame has no predictor columns.")

        logger.info("Schema validation passed – target '%s' is usable.", self.target)

    def report_nulls(self, df: pd.DataFrame, top_n: int = 20) -> pd.DataFrame:
        """Return a summary of missing-value rates for the top-N columns.

        Args:
            df: DataFrame to inspect.
            top_n: Number of columns with the most nulls to return.

        Returns:
            DataFrame with columns ``missing_count`` and ``missing_pct``,
            sorted descending by ``missing_pct``.
        """
        summary = pd.DataFrame(
            {
                "missing_count": df.isnull().sum(),
                "missing_pct": df.isnull().mean() * 100,
            }
        ).sort_values("missing_pct", ascending=False)

        high_null = summary[summary["missing_pct"] > 0].head(top_n)
        if not high_null.empty:
            logger.info(
                "Top-%d columns by missing rate:\n%s", top_n, high_null.to_string()
            )
        return summary

    def report_cardinality(self, df: pd.DataFrame) -> pd.DataFrame:
        """Return unique-value counts for all non-numeric columns.

        Args:
            df: DataFrame to inspect.

        Returns:
            DataFrame with columns ``dtype`` and ``n_unique`` for categorical
            columns, sorted descending.
        """
        cat_cols = [c for c in df.columns if not is_numeric_dtype(df[c])]
        summary = pd.DataFrame(
            {
                "dtype": df[cat_cols].dtypes,
                "n_unique": df[cat_cols].nunique(),
            }
        ).sort_values("n_unique", ascending=False)
        logger.info("Cardinality report:\n%s", summary.to_string())
        return summary

    def run_all(self, df: pd.DataFrame) -> None:
        """Run all quality checks and log results.

        Args:
            df: Raw DataFrame to check.
        """
        self.validate_schema(df)
        self.report_nulls(df)
        self.report_cardinality(df)
        logger.info("All quality checks complete.")
