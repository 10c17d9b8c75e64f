"""Cross-model comparison tables.

Aggregates the tuning results and importance tables of every model into
the tables the comparison plots consume, and writes them to
``outputs/reports``:

  model_comparison.csv   – best CV score per model (plus test score)
  importances.csv        – every model's full importance table
  top_importances.csv    – each model's top-N features
  importances_vs_lm.csv  – regularised importances joined to OLS's
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

import pandas as pd

from housing_regression.evaluation.metrics import MINIMISE
from housing_regression.models.tuning import TuningResult

logger = logging.getLogger(__name__)


def compare_models(
    results: Mapping[str, TuningResult],
    test_metrics: Optional[Mapping[str, Dict[str, float]]] = None,
    metric: str = "rmse",
) -> pd.DataFrame:
    """Tabulate the best cross-validated score of each model.

    Args:
        results: ``{model_name: TuningResult}``.
        test_metrics: Optional ``{model_name: compute_metrics(...)}`` on the
            held-out test set; adds a ``test_<metric>`` column.
        metric: Metric to compare on.

    Returns:
        DataFrame with columns ``model, penalty, mixture, <metric>,
        std_err, n, n_failed`` (and ``test_<metric>``), best model first.
    """
    rows = []
    for name, result in results.items():
        best = result.best_score(metric)
        row = {
            "model": name,
            "penalty": best["penalty"],
            "mixture": result.mixture,
            metric: best["mean"],
            "std_err": best["std_err"],
            "n": int(best["n"]),
            "n_failed": int(best["n_failed"]),
        }
        if test_metrics is not None and name in test_metrics:
            row[f"test_{metric}"] = test_metrics[name][metric]
        rows.append(row)

    table = pd.DataFrame(rows)
    if table.empty:
        return table
    return table.sort_values(
        metric, ascending=MINIMISE[metric], kind="stable"
    ).reset_index(drop=True)


def stack_importances(importances: Mapping[str, pd.DataFrame]) -> pd.DataFrame:
    """Stack per-model importance tables into one long table with a ``model`` column."""
    frames = [imp.assign(model=name) for name, imp in importances.items()]
    if not frames:
        return pd.DataFrame(columns=["model", "Variable", "Importance"])
    stacked = pd.concat(frames, ignore_index=True)
    return stacked[["model"] + [c for c in stacked.columns if c != "model"]]


def top_importances(
    importances: Mapping[str, pd.DataFrame],
    n: int = 10,
    exclude: Iterable[str] = (),
) -> pd.DataFrame:
    """Return the ``n`` most important features of each model.

    Args:
        importances: ``{model_name: FittedWorkflow.importance()}``.
        n: Features kept per model.
        exclude: Model names to leave out (e.g. ``["lm"]``).

    Returns:
        Long DataFrame with columns ``model, Variable, Importance``.
    """
    excluded = set(exclude)
    kept = {k: v for k, v in importances.items() if k not in excluded}
    stacked = stack_importances(kept)
    if stacked.empty:
        return stacked[["model", "Variable", "Importance"]]
    top = (
        stacked.sort_values(["model", "Importance"], ascending=[True, False], kind="stable")
        .groupby("model", sort=False)
        .head(n)
    )
    return top[["model", "Variable", "Importance"]].reset_index(drop=True)


def join_importances(
    importances: Mapping[str, pd.DataFrame],
    base: str = "lm",
) -> pd.DataFrame:
    """Join every model's importance onto the ``base`` model's features.

    Args:
        importances: ``{model_name: FittedWorkflow.importance()}``.
        base: Model whose feature list anchors the join.

    Returns:
        Wide DataFrame keyed by ``Variable`` with one column per model.

    Raises:
        KeyError: If ``base`` is not among the models.
    """
    if base not in importances:
        raise KeyError(f"Base model '{base}' not found in {list(importances)}.")

    joined = importances[base][["Variable", "Importance"]].rename(
        columns={"Importance": base}
    )
    for name, imp in importances.items():
        if name == base:
            continue
        joined = joined.merge(
            imp[["Variable", "Importance"]].rename(columns={"Importance": name}),
            on="Variable",
            how="left",
        )
    return joined


def write_reports(
    output_dir: Union[str, Path],
    comparison: pd.DataFrame,
    importances: Mapping[str, pd.DataFrame],
    top_n: int = 10,
    base: str = "lm",
) -> Dict[str, Path]:
    """Write the comparison tables as CSV files.

    Args:
        output_dir: Directory to write into (created if missing).
        comparison: Output of :func:`compare_models`.
        importances: ``{model_name: FittedWorkflow.importance()}``.
        top_n: Features kept per model in ``top_importances.csv``.
        base: Model anchoring ``importances_vs_<base>.csv``; skipped when
            it was not run.

    Returns:
        Mapping from report name to written path.
    """
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    tables = {
        "model_comparison": comparison,
        "importances": stack_importances(importances),
        "top_importances": top_importances(importances, n=top_n),
    }
    if base in importances:
        tables[f"importances_vs_{base}"] = join_importances(importances, base=base)

    written: Dict[str, Path] = {}
    for name, table in tables.items():
        path = out_dir / f"{name}.csv"
        table.to_csv(path, index=False)
        written[name] = path
        logger.info("Wrote %s (%d rows).", path, len(table))
    return written
