"""Synthetic Ames-like housing data.

Used when no sales file is available and as a fixture for the test suite.
The generated frame mimics the structure the recipe expects: informative
and uninformative numeric predictors, a near-constant numeric column, a
``Neighborhood`` column with rare levels, and a log-normal ``Sale_Price``.
"""

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# (name, mean, sd, coefficient on the log10 price per sd)
_NUMERIC_COLS = [
    ("Gr_Liv_Area", 1500.0, 500.0, 0.080),
    ("Year_Built", 1970.0, 30.0, 0.050),
    ("Total_Bsmt_SF", 1050.0, 420.0, 0.040),
    ("Garage_Area", 470.0, 210.0, 0.030),
    ("Lot_Area", 10000.0, 3000.0, 0.015),
    ("First_Flr_SF", 1150.0, 380.0, 0.010),
    ("Full_Bath", 1.6, 0.5, 0.0),
    ("Bedroom_AbvGr", 2.9, 0.8, 0.0),
    ("TotRms_AbvGrd", 6.4, 1.5, 0.0),
]

_NEIGHBORHOODS = {
    "North_Ames": (0.26, -0.02),
    "College_Creek": (0.20, 0.03),
    "Old_Town": (0.18, -0.06),
    "Edwards": (0.14, -0.05),
    "Somerset": (0.12, 0.08),
    "Northridge": (0.04, 0.12),
    "Blueste": (0.03, -0.01),
    "Green_Hills": (0.03, 0.05),
}

_BLDG_TYPES = {
    "OneFam": (0.85, 0.0),
    "TwnhsE": (0.08, -0.02),
    "Duplex": (0.05, -0.04),
    "Twnhs": (0.02, -0.03),
}


def _draw_category(rng: np.random.Generator, levels: dict, n: int) -> np.ndarray:
    """Shuffle exact level counts so level shares do not depend on the seed."""
    names = list(levels)
    counts = np.rint(np.array([levels[k][0] for k in names]) * n).astype(int)
    counts[0] += n - counts.sum()
    return rng.permutation(np.repeat(np.array(names, dtype=object), counts))


def make_synthetic_housing(
    n_rows: int = 1000,
    n_numeric: int = 10,
    n_categorical: int = 2,
    seed: int = 123,
    target: str = "Sale_Price",
) -> pd.DataFrame:
    """Generate a synthetic housing-sales table.

    The last numeric column (``Pool_Area``) is zero for roughly 98 % of
    rows so that the near-zero-variance filter has something to remove.

    Args:
        n_rows: Number of sales.
        n_numeric: Number of numeric predictors (at least 1).
        n_categorical: Number of categorical predictors (at least 1).
        seed: Random seed.
        target: Name of the sale-price column.

    Returns:
        DataFrame with ``n_numeric + n_categorical`` predictors and a
        strictly positive, log-normally distributed target.

    Raises:
        ValueError: If a size argument is not positive.
    """
    if n_rows < 1 or n_numeric < 1 or n_categorical < 1:
        raise ValueError("n_rows, n_numeric and n_categorical must all be positive.")

    rng = np.random.default_rng(seed)
    data = {}
    log_price = np.full(n_rows, 5.2)

    n_informative = min(n_numeric - 1, len(_NUMERIC_COLS))
    for name, mean, sd, coef in _NUMERIC_COLS[:n_informative]:
        z = rng.standard_normal(n_rows)
        data[name] = np.round(mean + sd * z, 1)
        log_price += coef * z
    for i in range(n_numeric - 1 - n_informative):
        data[f"Feature_{i + 1:02d}"] = rng.normal(0.0, 1.0, n_rows)

    pool = rng.random(n_rows) < 0.02
    data["Pool_Area"] = np.where(pool, rng.uniform(200, 700, n_rows).round(), 0.0)

    neighborhood = _draw_category(rng, _NEIGHBORHOODS, n_rows)
    data["Neighborhood"] = neighborhood
    log_price += np.array([_NEIGHBORHOODS[v][1] for v in neighborhood])

    if n_categorical >= 2:
        bldg = _draw_category(rng, _BLDG_TYPES, n_rows)
        data["Bldg_Type"] = bldg
        log_price += np.array([_BLDG_TYPES[v][1] for v in bldg])
    for i in range(n_categorical - 2):
        data[f"Category_{i + 1:02d}"] = rng.choice(["A", "B", "C"], size=n_rows)

    log_price += rng.normal(0.0, 0.06, n_rows)
    data[target] = np.round(10 ** log_price, 0)

    df = pd.DataFrame(data)
    logger.info("Generated synthetic housing data: %d rows × %d columns.", *df.shape)
    return df
