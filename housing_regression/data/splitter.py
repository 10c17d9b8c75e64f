"""Stratified train/test splitting.

Numeric stratification variables are binned into quantile groups before
sampling so that the outcome distribution is preserved in both subsets.
Strata that are too small to sample from reliably are pooled into an
adjacent group.
"""

import logging
from typing import NamedTuple, Sequence, Union

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype
from sklearn.model_selection import train_test_split

logger = logging.getLogger(__name__)

# Numeric columns with this few distinct values are treated as categorical.
_MIN_UNIQUE_NUMERIC = 5


class Split(NamedTuple):
    """Disjoint train/test subsets of one dataset."""

    train: pd.DataFrame
    test: pd.DataFrame


def _pool_small_strata(strata: pd.Series, pool: float) -> pd.Series:
    """Merge strata holding less than ``pool`` of the rows into a neighbour.

    Args:
        strata: Stratum label per row.
        pool: Minimum share of rows a stratum must hold.

    Returns:
        Series of (possibly merged) stratum labels.
    """
    strata = strata.copy()
    n = len(strata)
    while strata.nunique() > 1 and (strata.value_counts() / n).min() < pool:
        strata = _merge_smallest(strata)
    return strata


def _merge_smallest(strata: pd.Series) -> pd.Series:
    """Fold the smallest stratum into its ordered neighbour."""
    counts = strata.value_counts().sort_index()
    labels = list(counts.index)
    smallest = counts.idxmin()
    pos = labels.index(smallest)
    neighbour = labels[pos - 1] if pos > 0 else labels[pos + 1]
    logger.debug(
        "Pooling stratum %s (%d rows) into %s.", smallest, counts[smallest], neighbour
    )
    strata = strata.copy()
    strata[strata == smallest] = neighbour
    return strata


def make_strata(
    values: Union[pd.Series, Sequence],
    breaks: int = 4,
    pool: float = 0.1,
) -> pd.Series:
    """Turn a stratification variable into discrete stratum labels.

    Args:
        values: Stratification variable, one entry per row.
        breaks: Number of quantile groups for numeric variables.
        pool: Strata holding less than this share of rows are merged
            into an adjacent stratum.

    Returns:
        Series of stratum labels aligned positionally with ``values``.
    """
    values = pd.Series(values).reset_index(drop=True)

    if is_numeric_dtype(values) and values.nunique() > _MIN_UNIQUE_NUMERIC and breaks > 1:
        strata = pd.qcut(values, q=breaks, labels=False, duplicates="drop")
    else:
        strata = values.astype(str)

    return _pool_small_strata(strata, pool)


def stratified_split(
    df: pd.DataFrame,
    prop: float = 0.7,
    strata: str = "Sale_Price",
    seed: int = 123,
    breaks: int = 4,
    pool: float = 0.1,
) -> Split:
    """Split a dataset into training and testing subsets.

    The training set receives ``floor(prop * n)`` rows, drawn so that each
    stratum is represented in the same proportion in both subsets.

    Args:
        df: Full dataset.
        prop: Proportion of rows assigned to the training set.
        strata: Column used for stratification.
        seed: Random seed for the sampling.
        breaks: Quantile groups used when ``strata`` is numeric.
        pool: Minimum stratum share before pooling.

    Returns:
        :class:`Split` holding independent copies of both subsets.

    Raises:
        ValueError: If ``prop`` is outside (0, 1), ``strata`` is not a
            column, or either subset would be empty.
    """
    if not 0 < prop < 1:
        raise ValueError(f"prop must lie in (0, 1); got {prop}.")
    if strata not in df.columns:
        raise ValueError(f"Stratification column '{strata}' is missing.")

    n = len(df)
    n_train = int(np.floor(prop * n))
    if n_train == 0 or n_train == n:
        raise ValueError(
            f"prop={prop} on {n} rows leaves an empty training or testing set."
        )

    labels = make_strata(df[strata], breaks=breaks, pool=pool)
    # Each side needs one row per stratum and each stratum needs two rows.
    max_strata = min(n_train, n - n_train)
    while labels.nunique() > 1 and (
        labels.nunique() > max_strata or labels.value_counts().min() < 2
    ):
        labels = _merge_smallest(labels)

    train, test = train_test_split(
        df,
        train_size=n_train,
        random_state=seed,
        shuffle=True,
        stratify=labels.to_numpy() if labels.nunique() > 1 else None,
    )
    logger.info(
        "Stratified split on '%s' (%d strata) → train: %d | test: %d",
        strata,
        labels.nunique(),
        len(train),
        len(test),
    )
    return Split(train=train.copy(), test=test.copy())
