"""Entry point for the regularised linear-model comparison.

Usage
-----
    python main.py                       # uses configs/config.yaml
    python main.py --config path/to.yaml
    python main.py --models lasso ridge  # select a subset of models
    python main.py --data path/to.csv    # override data path
    python main.py --synthetic           # run on generated Ames-like data

Pipeline steps
--------------
1. Load the housing-sales table (or generate a synthetic one).
2. Run data quality checks (fail fast on an unusable target).
3. Stratified train/test split on the binned sale price.
4. Define the preprocessing recipe and log the baked training shape.
5. Build one v-fold CV plan, shared by every model.
6. Tune each model's penalty on the folds, then finalise it on the full
   training set with its own best penalty.
7. Compare best CV RMSE and feature importances; write the report tables.
"""

import argparse
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

# ---------------------------------------------------------------------------
# Bootstrap logging before any local imports so module-level loggers work.
# ---------------------------------------------------------------------------


def _setup_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    fmt = fmt or "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO), format=fmt, force=True
    )


_setup_logging()  # default until config is loaded
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Local imports
# ---------------------------------------------------------------------------

from housing_regression.config import MODEL_NAMES, load_config
from housing_regression.data.loader import DataIngestor
from housing_regression.data.quality import DataQualityChecker
from housing_regression.data.splitter import stratified_split
from housing_regression.data.synthetic import make_synthetic_housing
from housing_regression.evaluation.comparison import (
    compare_models,
    top_importances,
    write_reports,
)
from housing_regression.evaluation.metrics import metrics_to_dataframe
from housing_regression.features.recipe import HousingRecipe
from housing_regression.models.finalize import finalize_workflow
from housing_regression.models.resampling import make_folds
from housing_regression.models.specs import get_model_spec
from housing_regression.models.tuning import penalty_grid, tune_model


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def run_pipeline(
    config_path: Optional[str] = "configs/config.yaml",
    data_path: Optional[str] = None,
    model_names: Optional[List[str]] = None,
    synthetic: bool = False,
    cfg: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Execute the full tuning and comparison pipeline.

    Args:
        config_path: Path to the YAML configuration file.
        data_path: Override for the raw data path in the config.
        model_names: Models to run.  Defaults to all models defined in the
            config (``["lm", "lasso", "ridge", "enet"]``).
        synthetic: Generate an Ames-like dataset instead of loading one.
        cfg: Already-loaded configuration; takes precedence over
            ``config_path``.

    Returns:
        Dict with keys ``comparison`` (DataFrame), ``importances``
        (``{model: DataFrame}``), ``tuning`` (``{model: TuningResult}``),
        ``workflows`` (``{model: FittedWorkflow}``), ``test_metrics`` and
        ``split``.
    """
    # ------------------------------------------------------------------ #
    # 0. Config                                                           #
    # ------------------------------------------------------------------ #
    if cfg is None:
        cfg = load_config(config_path)
    log_cfg = cfg.get("logging", {})
    _setup_logging(level=log_cfg.get("level", "INFO"), fmt=log_cfg.get("format"))

    target: str = cfg["target"]["column"]
    split_cfg: dict = cfg["split"]
    cv_cfg: dict = cfg["resampling"]
    tune_cfg: dict = cfg["tuning"]
    model_cfg: dict = cfg.get("models", {})
    metric: str = tune_cfg["metric"]

    if model_names is None:
        model_names = [m for m in MODEL_NAMES if m in model_cfg]

    logger.info(
        "Pipeline config: target=%s | prop=%.2f | folds=%d | levels=%d | models=%s",
        target,
        split_cfg["prop"],
        cv_cfg["folds"],
        tune_cfg["levels"],
        model_names,
    )

    # ------------------------------------------------------------------ #
    # 1. Load                                                             #
    # ------------------------------------------------------------------ #
    if synthetic:
        df_raw = make_synthetic_housing(seed=split_cfg["seed"], target=target)
    else:
        ingestor = DataIngestor(data_path or cfg["data"]["raw_path"])
        df_raw = ingestor.load(sheet_name=cfg["data"].get("sheet_name", 0))

    # ------------------------------------------------------------------ #
    # 2. Quality checks                                                   #
    # ------------------------------------------------------------------ #
    checker = DataQualityChecker(target=target, required=[split_cfg["strata"]])
    checker.run_all(df_raw)

    # ------------------------------------------------------------------ #
    # 3. Split                                                            #
    # ------------------------------------------------------------------ #
    split = stratified_split(
        df_raw,
        prop=split_cfg["prop"],
        strata=split_cfg["strata"],
        seed=split_cfg["seed"],
        breaks=split_cfg["breaks"],
    )

    # ------------------------------------------------------------------ #
    # 4. Recipe                                                           #
    # ------------------------------------------------------------------ #
    recipe = HousingRecipe.from_config(cfg)
    X_train, _ = recipe.fresh().prep(split.train).juice()
    logger.info("Engineered training data: %d rows × %d features.", *X_train.shape)

    # ------------------------------------------------------------------ #
    # 5. Resampling plan                                                  #
    # ------------------------------------------------------------------ #
    folds = make_folds(
        split.train,
        v=cv_cfg["folds"],
        repeats=cv_cfg.get("repeats", 1),
        seed=cv_cfg["seed"],
    )
    grid = penalty_grid(tune_cfg["levels"], tune_cfg["penalty_range"])

    # ------------------------------------------------------------------ #
    # 6. Tune and finalise                                                #
    # ------------------------------------------------------------------ #
    tuning, workflows, importances, test_metrics = {}, {}, {}, {}

    for name in model_names:
        logger.info("=" * 60)
        logger.info("Model: %s", name.upper())
        params = dict(model_cfg.get(name) or {})
        spec = get_model_spec(
            name,
            max_iter=tune_cfg.get("max_iter", 10000),
            tol=tune_cfg.get("tol", 1e-4),
            **params,
        )

        result = tune_model(
            spec,
            recipe,
            split.train,
            folds,
            grid=grid if spec.tune_penalty else None,
            metric=metric,
            on_failure=tune_cfg["on_failure"],
        )
        best = result.select_best(metric)
        workflow = finalize_workflow(spec, best, recipe, split.train)

        tuning[name] = result
        workflows[name] = workflow
        importances[name] = workflow.importance()
        test_metrics[name] = workflow.evaluate(split.test, label=f"{name}/test")

    # ------------------------------------------------------------------ #
    # 7. Comparison                                                       #
    # ------------------------------------------------------------------ #
    comparison = compare_models(tuning, test_metrics=test_metrics, metric=metric)
    report_cfg = cfg.get("reporting", {})
    write_reports(
        report_cfg.get("output_dir", "outputs/reports"),
        comparison,
        importances,
        top_n=report_cfg.get("top_n", 10),
    )
    _print_summary(
        comparison,
        importances,
        top_n=report_cfg.get("top_n", 10),
        test_metrics=test_metrics,
    )

    return {
        "comparison": comparison,
        "importances": importances,
        "tuning": tuning,
        "workflows": workflows,
        "test_metrics": test_metrics,
        "split": split,
    }


def _print_summary(
    comparison: pd.DataFrame,
    importances: Dict[str, pd.DataFrame],
    top_n: int = 10,
    test_metrics: Optional[Dict[str, Dict[str, float]]] = None,
) -> None:
    """Print the model comparison, test-set metrics and each model's top features.

    Args:
        comparison: Output of :func:`compare_models`.
        importances: Per-model importance tables.
        top_n: Features shown per model.
        test_metrics: Optional ``{model: metrics}`` scored on the test split.
    """
    if comparison.empty:
        logger.warning("No metrics to display.")
        return

    top = top_importances(importances, n=top_n)
    logger.info("\n\n=== MODEL COMPARISON ===\n%s\n", comparison.to_string(index=False))
    print("\n=== MODEL COMPARISON ===")
    print(comparison.to_string(index=False))
    if test_metrics:
        print("\n=== TEST-SET METRICS ===")
        print(metrics_to_dataframe(test_metrics).round(5).to_string())
    print(f"\n=== TOP {top_n} FEATURES PER MODEL ===")
    print(top.to_string(index=False))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare OLS, LASSO, ridge and elastic-net models on housing prices."
    )
    parser.add_argument(
        "--config",
        default="configs/config.yaml",
        help="Path to YAML config (default: configs/config.yaml).",
    )
    parser.add_argument(
        "--data",
        default=None,
        help="Override raw data path from config.",
    )
    parser.add_argument(
        "--models",
        nargs="+",
        default=None,
        choices=MODEL_NAMES,
        help="Models to run (default: all).",
    )
    parser.add_argument(
        "--synthetic",
        action="store_true",
        help="Use a generated Ames-like dataset instead of loading one.",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = _parse_args()
    run_pipeline(
        config_path=args.config,
        data_path=args.data,
        model_names=args.models,
        synthetic=args.synthetic,
    )
