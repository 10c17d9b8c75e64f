"""Model specifications for the four linear-model variants.

Each specification names an algorithm family and whether its penalty is
tuned.  Penalised models use the elastic-net parameterisation

    1/(2n) * RSS + penalty * [(1 - mixture)/2 * ||b||_2^2 + mixture * ||b||_1]

so that ``mixture=1`` is the LASSO, ``mixture=0`` is ridge regression and
values in between are elastic nets.  :meth:`ModelSpec.make_estimator`
translates ``(penalty, mixture)`` onto the matching scikit-learn estimator.

Available specifications:
    - ``lm``    – ordinary least squares (no tuning).
    - ``lasso`` – mixture 1.
    - ``ridge`` – mixture 0.
    - ``enet``  – mixture 0.5.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from sklearn.base import RegressorMixin
from sklearn.linear_model import ElasticNet, Lasso, LinearRegression, Ridge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelSpec:
    """Algorithm family plus fixed or to-be-tuned hyperparameters.

    Args:
        name: Short model label used in reports.
        mixture: L1 share of the penalty (``None`` for OLS).
        tune_penalty: Whether the penalty is selected by grid search.
        penalty: Fixed penalty, used when ``tune_penalty`` is ``False``.
        max_iter: Iteration cap for the coordinate-descent solvers.
        tol: Convergence tolerance for the coordinate-descent solvers.
    """

    name: str
    mixture: Optional[float] = None
    tune_penalty: bool = False
    penalty: Optional[float] = None
    max_iter: int = 10000
    tol: float = 1e-4

    def make_estimator(self, penalty: Optional[float], n_samples: int) -> RegressorMixin:
        """Instantiate an unfitted estimator for one penalty value.

        Args:
            penalty: Regularisation strength; ``None`` or ``0`` gives OLS.
            n_samples: Rows in the training data, needed to rescale the
                ridge penalty (scikit-learn's ridge loss is not divided
                by ``2n``).

        Returns:
            Unfitted scikit-learn regressor.
        """
        if self.mixture is None or penalty is None or penalty == 0:
            return LinearRegression()
        if self.mixture == 1:
            return Lasso(alpha=penalty, max_iter=self.max_iter, tol=self.tol)
        if self.mixture == 0:
            return Ridge(alpha=penalty * n_samples)
        return ElasticNet(
            alpha=penalty,
            l1_ratio=self.mixture,
            max_iter=self.max_iter,
            tol=self.tol,
        )


# ---------------------------------------------------------------------------
# Registry helper
# ---------------------------------------------------------------------------

_SPEC_REGISTRY: Dict[str, ModelSpec] = {
    "lm": ModelSpec("lm"),
    "lasso": ModelSpec("lasso", mixture=1.0, tune_penalty=True),
    "ridge": ModelSpec("ridge", mixture=0.0, tune_penalty=True),
    "enet": ModelSpec("enet", mixture=0.5, tune_penalty=True),
}


def get_model_spec(name: str, **overrides: Any) -> ModelSpec:
    """Look up a model specification by name.

    Args:
        name: One of ``"lm"``, ``"lasso"``, ``"ridge"`` or ``"enet"``.
        **overrides: Fields replaced on the registered specification
            (e.g. ``mixture``, ``max_iter``).

    Returns:
        Model specification.

    Raises:
        ValueError: If ``name`` is not in the registry or ``mixture`` is
            outside [0, 1].
    """
    if name not in _SPEC_REGISTRY:
        raise ValueError(
            f"Unknown model '{name}'. Choose from: {list(_SPEC_REGISTRY)}"
        )
    spec = replace(_SPEC_REGISTRY[name], **overrides)
    if spec.mixture is not None and not 0 <= spec.mixture <= 1:
        raise ValueError(f"mixture must lie in [0, 1]; got {spec.mixture}.")
    return spec
