# housing_regression/config.py

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

TARGET = "Sale_Price"

RANDOM_STATE = 123
TRAIN_PROP = 0.7
FOLD_SEED = 20211102
N_FOLDS = 10

MODEL_NAMES = ["lm", "lasso", "ridge", "enet"]

DEFAULT_CONFIG: Dict[str, Any] = {
    "data": {"raw_path": "data/ames.csv", "sheet_name": 0},
    "target": {"column": TARGET, "log_base": 10},
    "split": {"seed": RANDOM_STATE, "prop": TRAIN_PROP, "strata": TARGET, "breaks": 4},
    "preprocessing": {
        "other_column": "Neighborhood",
        "other_threshold": 0.05,
        "one_hot": False,
        "nzv_freq_cut": 95 / 5,
        "nzv_unique_cut": 10.0,
    },
    "resampling": {"seed": FOLD_SEED, "folds": N_FOLDS, "repeats": 1},
    "tuning": {
        "levels": 10,
        "penalty_range": [-10.0, 0.0],
        "metric": "rmse",
        "on_failure": "exclude",
        "max_iter": 10000,
        "tol": 1e-4,
    },
    "models": {
        "lm": {},
        "lasso": {"mixture": 1.0},
        "ridge": {"mixture": 0.0},
        "enet": {"mixture": 0.5},
    },
    "reporting": {"top_n": 10, "output_dir": "outputs/reports"},
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    },
}

_METRICS = ("rmse", "mae", "rsq")
_FAILURE_POLICIES = ("exclude", "abort")
_MODEL_KEYS = ("mixture", "penalty", "tune_penalty")


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load a YAML configuration file and merge it onto the defaults.

    Args:
        path: Path to the YAML config file.  ``None`` returns the defaults.

    Returns:
        Validated configuration dictionary.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the file does not hold a mapping or a value is invalid.
    """
    if path is None:
        cfg = copy.deepcopy(DEFAULT_CONFIG)
    else:
        cfg_path = Path(path)
        if not cfg_path.exists():
            raise FileNotFoundError(f"Config not found: {cfg_path}")
        with open(cfg_path) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config {cfg_path} must contain a mapping at the top level.")
        cfg = _deep_merge(DEFAULT_CONFIG, raw)
        # A models section lists the models to run; it is not merged.
        if "models" in raw:
            cfg["models"] = copy.deepcopy(raw["models"])
        logger.info("Loaded configuration from %s", cfg_path)

    validate_config(cfg)
    return cfg


def validate_config(cfg: Dict[str, Any]) -> None:
    """Reject malformed configuration values before any work starts.

    Args:
        cfg: Merged configuration dictionary.

    Raises:
        ValueError: On the first invalid value found.
    """
    prop = cfg["split"]["prop"]
    if not 0 < float(prop) < 1:
        raise ValueError(f"split.prop must lie in (0, 1); got {prop}.")

    if int(cfg["split"]["breaks"]) < 1:
        raise ValueError("split.breaks must be at least 1.")

    folds = cfg["resampling"]["folds"]
    if int(folds) < 2:
        raise ValueError(f"resampling.folds must be at least 2; got {folds}.")
    if int(cfg["resampling"]["repeats"]) < 1:
        raise ValueError("resampling.repeats must be at least 1.")

    tuning = cfg["tuning"]
    if int(tuning["levels"]) < 1:
        raise ValueError(f"tuning.levels must be at least 1; got {tuning['levels']}.")
    low, high = tuning["penalty_range"]
    if low > high:
        raise ValueError(f"tuning.penalty_range is inverted: {tuning['penalty_range']}.")
    if tuning["metric"] not in _METRICS:
        raise ValueError(f"tuning.metric must be one of {_METRICS}; got {tuning['metric']!r}.")
    if tuning["on_failure"] not in _FAILURE_POLICIES:
        raise ValueError(
            f"tuning.on_failure must be one of {_FAILURE_POLICIES}; "
            f"got {tuning['on_failure']!r}."
        )

    pre = cfg["preprocessing"]
    if float(pre["other_threshold"]) <= 0:
        raise ValueError("preprocessing.other_threshold must be positive.")
    if float(pre["nzv_freq_cut"]) <= 0 or float(pre["nzv_unique_cut"]) < 0:
        raise ValueError("preprocessing.nzv_freq_cut / nzv_unique_cut are out of range.")

    if float(cfg["target"]["log_base"]) <= 1:
        raise ValueError("target.log_base must be greater than 1.")

    models = cfg.get("models")
    if not isinstance(models, dict) or not models:
        raise ValueError("models must be a non-empty mapping of model name to settings.")
    for name, params in models.items():
        if name not in MODEL_NAMES:
            raise ValueError(f"models.{name} is not a known model; choose from {MODEL_NAMES}.")
        if params is not None and not isinstance(params, dict):
            raise ValueError(f"models.{name} must be a mapping; got {params!r}.")
        unknown = sorted(set(params or {}) - set(_MODEL_KEYS))
        if unknown:
            raise ValueError(
                f"models.{name}.{unknown[0]} is not a model setting; "
                f"allowed keys are {_MODEL_KEYS}."
            )
        mixture = (params or {}).get("mixture")
        if mixture is not None and not 0 <= float(mixture) <= 1:
            raise ValueError(f"models.{name}.mixture must lie in [0, 1]; got {mixture}.")
