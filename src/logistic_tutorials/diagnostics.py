"""Model diagnostics.

Binary (GLM) diagnostics
~~~~~~~~~~~~~~~~~~~~~~~~
:func:`glm_diagnostics` collects the per-observation quantities behind
the classic four-panel GLM diagnostic plot:

* **Deviance residuals** ``dᵢ``: signed square roots of each
  observation's contribution to the deviance.  Under a correctly
  specified model they have mean ≈ 0 and variance ≈ 1, and
  ``|dᵢ| > 2`` marks a poorly fit observation.
* **Standardized deviance residuals** ``dᵢ / √(1 − hᵢ)``.
* **Leverage** ``hᵢ``: diagonal of the IRLS hat matrix.
* **Cook's distance**: the influence of observation i on the
  coefficient vector.

:func:`influential_points` applies the reference lines drawn by R's
``boot::glm.diag.plots``: Cook's distance above ``8 / (n − 2p)`` and
leverage ratio ``h / (1 − h)`` above ``2p / (n − 2p)``.

Classification diagnostics
~~~~~~~~~~~~~~~~~~~~~~~~~~
:func:`confusion_matrix` and :func:`accuracy` compare observed and
predicted categories for the multinomial pipeline.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import numpy as np
import pandas as pd
from scipy import stats
from sklearn import metrics

from .models import FittedModel

logger = logging.getLogger(__name__)


def _require_binomial(model: FittedModel, what: str) -> None:
    if model.family.name != "binomial":
        msg = f"{what} is only available for binomial models, got {model.family.name!r}."
        raise NotImplementedError(msg)


# ------------------------------------------------------------------ #
# Per-observation GLM diagnostics
# ------------------------------------------------------------------ #


def glm_diagnostics(model: FittedModel) -> pd.DataFrame:
    """Per-observation residuals, leverage and influence of a binomial fit.

    Returns:
        DataFrame indexed like the training rows with columns
        ``fitted``, ``linear_predictor``, ``resid_deviance``,
        ``resid_pearson``, ``std_resid_deviance``, ``leverage`` and
        ``cooks_distance``.

    Raises:
        NotImplementedError: For multinomial models.
    """
    _require_binomial(model, "glm_diagnostics")
    result = model.result
    influence = result.get_influence()

    leverage = np.asarray(influence.hat_matrix_diag, dtype=float)
    resid_dev = np.asarray(result.resid_deviance, dtype=float)
    exog = np.asarray(result.model.exog, dtype=float)
    eta = exog @ np.asarray(result.params, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        std_dev = resid_dev / np.sqrt(1.0 - leverage)

    return pd.DataFrame(
        {
            "fitted": np.asarray(result.fittedvalues, dtype=float),
            "linear_predictor": eta,
            "resid_deviance": resid_dev,
            "resid_pearson": np.asarray(result.resid_pearson, dtype=float),
            "std_resid_deviance": std_dev,
            "leverage": leverage,
            "cooks_distance": np.asarray(influence.cooks_distance[0], dtype=float),
        },
        index=model.data.index,
    )


def influential_points(diagnostics: pd.DataFrame, n_params: int) -> pd.DataFrame:
    """Rows of *diagnostics* above the Cook's distance or leverage lines.

    Args:
        diagnostics: Output of :func:`glm_diagnostics`.
        n_params: Number of coefficients p in the model.

    Returns:
        The flagged rows, with boolean ``high_cook`` and
        ``high_leverage`` columns added.  Empty when nothing is
        flagged or when ``n ≤ 2p`` (no reference line exists).
    """
    n = len(diagnostics)
    denom = n - 2 * n_params
    if denom <= 0:
        logger.debug("No influence thresholds for n=%d, p=%d", n, n_params)
        return diagnostics.iloc[0:0].assign(high_cook=False, high_leverage=False)

    cook_line = 8.0 / denom
    lev_line = 2.0 * n_params / denom
    h = diagnostics["leverage"]
    flagged = diagnostics.assign(
        high_cook=diagnostics["cooks_distance"] > cook_line,
        high_leverage=(h / (1.0 - h)) > lev_line,
    )
    return flagged[flagged["high_cook"] | flagged["high_leverage"]]


# ------------------------------------------------------------------ #
# Deviance residual summary
# ------------------------------------------------------------------ #


def _runs_test(binary_seq: np.ndarray) -> tuple[float, float]:
    """Wald-Wolfowitz runs test for randomness of a binary sequence.

    Under H₀ (random arrangement of n₊ ones and n₋ zeros) the number
    of runs R has

        μ_R = 2·n₊·n₋ / n + 1
        σ²_R = 2·n₊·n₋·(2·n₊·n₋ − n) / (n²·(n − 1))

    and Z = (R − μ_R) / σ_R is approximately standard normal for
    n ≥ 20.

    Returns:
        ``(z_statistic, p_value)``; ``(0.0, 1.0)`` for degenerate
        sequences.
    """
    n = len(binary_seq)
    if n < 2:
        return 0.0, 1.0

    n_pos = int(np.sum(binary_seq))
    n_neg = n - n_pos
    if n_pos == 0 or n_neg == 0:
        return 0.0, 1.0

    runs = 1 + int(np.sum(binary_seq[1:] != binary_seq[:-1]))
    mu = 2.0 * n_pos * n_neg / n + 1.0
    var = 2.0 * n_pos * n_neg * (2.0 * n_pos * n_neg - n) / (n**2 * (n - 1))
    if var <= 0:
        return 0.0, 1.0
    z = (runs - mu) / math.sqrt(var)
    return float(z), float(2.0 * stats.norm.sf(abs(z)))


def residual_summary(model: FittedModel) -> dict[str, Any]:
    """Deviance-residual summary of a binomial fit.

    Returns:
        Dict with ``mean``, ``variance``, ``n_extreme`` (count of
        ``|d| > 2``), ``runs_test_z`` and ``runs_test_p`` (signs of the
        residuals ordered by fitted probability) and a ``warning``
        string, empty when nothing is flagged.

    Raises:
        NotImplementedError: For multinomial models.
    """
    _require_binomial(model, "residual_summary")
    dev = np.asarray(model.result.resid_deviance, dtype=float)
    order = np.argsort(np.asarray(model.result.fittedvalues, dtype=float), kind="stable")
    signs = (dev[order] >= 0).astype(int)
    runs_z, runs_p = _runs_test(signs)

    n_extreme = int(np.sum(np.abs(dev) > 2))
    warnings_found = []
    if n_extreme:
        warnings_found.append(f"{n_extreme} obs. with |deviance residual| > 2.")
    if runs_p < 0.05:
        warnings_found.append("Runs test p < 0.05: non-random residual pattern.")
    return {
        "mean": float(np.mean(dev)),
        "variance": float(np.var(dev, ddof=1)),
        "n_extreme": n_extreme,
        "runs_test_z": runs_z,
        "runs_test_p": runs_p,
        "warning": " ".join(warnings_found),
    }


# ------------------------------------------------------------------ #
# Classification diagnostics
# ------------------------------------------------------------------ #


def _label_codes(values: pd.Series, labels: list[Any]) -> np.ndarray:
    """Integer position of each value in *labels*; -1 where absent.

    sklearn cannot infer a target type for object arrays of numbers, so
    labels of any type are compared through their codes.
    """
    lookup = {label: code for code, label in enumerate(labels)}
    codes = pd.Series(values).astype(object).map(lookup)
    return codes.fillna(-1).to_numpy(dtype=int)


def confusion_matrix(
    observed: pd.Series,
    predicted: pd.Series,
    labels: list[Any] | None = None,
) -> pd.DataFrame:
    """Observed (rows) against predicted (columns) category counts.

    Args:
        observed: Observed categories.
        predicted: Predicted categories, aligned with *observed*.
        labels: Category order.  Defaults to the categories of
            *predicted* if it is categorical, else the sorted union.

    Raises:
        ValueError: If the two series differ in length.
    """
    if len(observed) != len(predicted):
        msg = f"observed has {len(observed)} rows but predicted has {len(predicted)}."
        raise ValueError(msg)
    if labels is None:
        if isinstance(predicted.dtype, pd.CategoricalDtype):
            labels = list(predicted.cat.categories)
        else:
            labels = sorted(set(observed.tolist()) | set(predicted.tolist()))
    counts = metrics.confusion_matrix(
        _label_codes(observed, labels),
        _label_codes(predicted, labels),
        labels=np.arange(len(labels)),
    )
    return pd.DataFrame(
        counts,
        index=pd.Index(labels, name="observed"),
        columns=pd.Index(labels, name="predicted"),
    )


def accuracy(observed: pd.Series, predicted: pd.Series) -> float:
    """Share of rows whose predicted category equals the observed one."""
    labels = list(dict.fromkeys([*observed.tolist(), *predicted.tolist()]))
    return float(
        metrics.accuracy_score(_label_codes(observed, labels), _label_codes(predicted, labels))
    )
