"""Manual Wald inference from coefficient and standard-error tables.

statsmodels already reports Wald p-values; these helpers recompute
them by hand the way the tutorial does, as a check on the printed
output:

    z = β̂ / SE(β̂)
    p = 2·(1 − Φ(|z|))

where Φ is the standard normal CDF.  The upper tail is taken from
``norm.sf`` rather than ``1 − norm.cdf`` so that very large |z| do not
round to a p-value of exactly zero.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from scipy import stats

from ._results import WaldTable
from .exceptions import DimensionError
from .models import FittedModel

Table = pd.Series | pd.DataFrame


def _check_aligned(coefs: Table, std_errors: Table) -> None:
    if type(coefs) is not type(std_errors) or coefs.shape != std_errors.shape:
        msg = (
            f"Coefficient table ({type(coefs).__name__}, shape {coefs.shape}) and "
            f"standard-error table ({type(std_errors).__name__}, shape "
            f"{std_errors.shape}) must have the same type and shape."
        )
        raise DimensionError(msg)
    if not coefs.index.equals(std_errors.index):
        msg = (
            f"Row labels differ: coefficients {list(coefs.index)} vs "
            f"standard errors {list(std_errors.index)}."
        )
        raise DimensionError(msg)
    if isinstance(coefs, pd.DataFrame) and not coefs.columns.equals(std_errors.columns):
        msg = (
            f"Column labels differ: coefficients {list(coefs.columns)} vs "
            f"standard errors {list(std_errors.columns)}."
        )
        raise DimensionError(msg)


def wald_z_scores(coefs: Table, std_errors: Table) -> Table:
    """Elementwise ``coefs / std_errors``.

    Raises:
        DimensionError: If the tables differ in type, shape or labels.
    """
    _check_aligned(coefs, std_errors)
    return coefs / std_errors


def two_tailed_p_values(z: Table | np.ndarray | float) -> Table | np.ndarray | float:
    """Two-tailed standard-normal p-values, ``2·(1 − Φ(|z|))``.

    Preserves the container type: a DataFrame in gives a DataFrame
    with the same labels out, a float in gives a float out.
    """
    if isinstance(z, pd.DataFrame):
        return pd.DataFrame(
            2.0 * stats.norm.sf(np.abs(z.to_numpy(dtype=float))),
            index=z.index,
            columns=z.columns,
        )
    if isinstance(z, pd.Series):
        return pd.Series(2.0 * stats.norm.sf(np.abs(z.to_numpy(dtype=float))), index=z.index, name=z.name)
    p = 2.0 * stats.norm.sf(np.abs(z))
    return float(p) if np.ndim(p) == 0 else p


def wald_tests(model: FittedModel) -> WaldTable:
    """z-scores and p-values for every coefficient of *model*."""
    z_scores = wald_z_scores(model.params, model.bse)
    p_values = two_tailed_p_values(z_scores)
    return WaldTable(z_scores=z_scores, p_values=p_values)
