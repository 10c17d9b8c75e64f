"""V-fold cross-validation plan shared by every model variant."""

import logging
from typing import List, NamedTuple, Union

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold, RepeatedKFold

logger = logging.getLogger(__name__)


class Fold(NamedTuple):
    """One resample: positional rows used to fit and to assess."""

    id: str
    analysis: np.ndarray
    assessment: np.ndarray


def make_folds(
    data: Union[pd.DataFrame, int],
    v: int = 10,
    repeats: int = 1,
    seed: int = 20211102,
) -> List[Fold]:
    """Partition rows into ``v`` disjoint, near-equal assessment groups.

    Each fold's assessment rows are one group; its analysis rows are the
    other ``v - 1`` groups.  The same seed and row count always produce the
    same partition.

    Args:
        data: Training frame, or its number of rows.
        v: Number of folds.
        repeats: Number of independent repetitions of the partition.
        seed: Random seed for the shuffle.

    Returns:
        List of ``v * repeats`` :class:`Fold` objects.

    Raises:
        ValueError: If ``v < 2``, ``v`` exceeds the row count, or
            ``repeats < 1``.
    """
    n_rows = data if isinstance(data, int) else len(data)
    if v < 2:
        raise ValueError(f"v must be at least 2; got {v}.")
    if v > n_rows:
        raise ValueError(f"Cannot make {v} folds from {n_rows} rows.")
    if repeats < 1:
        raise ValueError(f"repeats must be at least 1; got {repeats}.")

    if repeats == 1:
        splitter = KFold(n_splits=v, shuffle=True, random_state=seed)
    else:
        splitter = RepeatedKFold(n_splits=v, n_repeats=repeats, random_state=seed)

    folds = []
    for i, (analysis, assessment) in enumerate(splitter.split(np.arange(n_rows))):
        fold_id = f"Fold{i % v + 1:02d}"
        if repeats > 1:
            fold_id = f"Repeat{i // v + 1}_{fold_id}"
        folds.append(Fold(fold_id, analysis, assessment))

    logger.info(
        "Built %d-fold CV plan (%d repeat(s), seed=%d) over %d rows.",
        v,
        repeats,
        seed,
        n_rows,
    )
    return folds
