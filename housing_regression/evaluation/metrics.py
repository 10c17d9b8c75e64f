"""Regression metrics on the log10 sale-price scale.

Models are fitted on the log-transformed outcome, so every metric here is
reported on that scale.  RMSE is the primary metric used for tuning and
model comparison.
"""

import logging
from typing import Dict

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

logger = logging.getLogger(__name__)

# Direction of improvement for each metric.
MINIMISE = {"rmse": True, "mae": True, "rsq": False}


def compute_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    label: str = "",
) -> Dict[str, float]:
    """Compute the regression metric suite.

    Args:
        y_true: Observed (log-scale) outcomes.
        y_pred: Predicted (log-scale) outcomes.
        label: Optional label for log output (e.g. ``"lasso/test"``).

    Returns:
        Dictionary with the following keys:

        - ``rmse`` – Root Mean Squared Error.
        - ``mae``  – Mean Absolute Error.
        - ``rsq``  – Coefficient of Determination (``nan`` with fewer than
          two observations).

    Raises:
        ValueError: If ``y_true`` and ``y_pred`` have different shapes or
            are empty.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    if y_true.shape != y_pred.shape:
        raise ValueError(
            f"Shape mismatch: y_true {y_true.shape} vs y_pred {y_pred.shape}."
        )
    if y_true.size == 0:
        raise ValueError("Cannot compute metrics on empty arrays.")

    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))
    mae = float(mean_absolute_error(y_true, y_pred))
    rsq = float(r2_score(y_true, y_pred)) if y_true.size > 1 else float("nan")

    results: Dict[str, float] = {"rmse": rmse, "mae": mae, "rsq": rsq}

    prefix = f"[{label}] " if label else ""
    logger.debug("%sRMSE=%.5f | MAE=%.5f | R²=%.4f", prefix, rmse, mae, rsq)
    return results


def metrics_to_dataframe(results: Dict[str, Dict[str, float]]) -> pd.DataFrame:
    """Convert a dict of {label: metrics_dict} into a tidy DataFrame.

    Args:
        results: Mapping from a label (e.g. ``"lasso"``) to the dict
            returned by :func:`compute_metrics`.

    Returns:
        DataFrame with labels as rows and metric names as columns.
    """
    return pd.DataFrame(results).T.rename_axis("model")
