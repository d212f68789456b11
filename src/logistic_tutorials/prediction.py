"""Predictions from fitted models.

New tables are encoded with the training design (see
:meth:`FittedModel.design_matrix`), so a prediction grid may contain
only some levels of a categorical predictor.  No function here
mutates the model or draws random numbers: identical inputs give
identical outputs.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd
from scipy.special import expit

from ._compat import DataFrameLike, _ensure_pandas_df
from .models import FittedModel

logger = logging.getLogger(__name__)


def predict_link(model: FittedModel, newdata: DataFrameLike) -> pd.DataFrame:
    """Log-odds predictions with standard errors.

    Returns:
        DataFrame indexed like *newdata* with ``fit`` and ``se_fit``.

    Raises:
        NotImplementedError: For multinomial models.
    """
    X = model.design_matrix(newdata)
    return model.family.predict_link(model.result, X)


def confidence_band(
    model: FittedModel,
    newdata: DataFrameLike,
    z: float = 1.96,
) -> pd.DataFrame:
    """Predicted probability with a pointwise confidence envelope.

    The envelope is built on the link scale and mapped back through
    the inverse logit, so it always stays inside ``(0, 1)``::

        lower = expit(fit − z·se_fit)
        upper = expit(fit + z·se_fit)

    Returns:
        *newdata* with ``fit``, ``lower`` and ``upper`` columns
        appended (all on the probability scale).
    """
    df = _ensure_pandas_df(newdata, name="newdata")
    link = predict_link(model, df)
    band = df.copy()
    band["fit"] = expit(link["fit"].to_numpy())
    band["lower"] = expit((link["fit"] - z * link["se_fit"]).to_numpy())
    band["upper"] = expit((link["fit"] + z * link["se_fit"]).to_numpy())
    return band


def predict_proba(model: FittedModel, newdata: DataFrameLike) -> pd.Series | pd.DataFrame:
    """Predicted probabilities.

    Binomial models give a Series of ``P(Y = 1)``.  Multinomial
    models give one column per response category, reference first;
    each row sums to one.
    """
    X = model.design_matrix(newdata)
    return model.family.predict_proba(model.result, X, model.categories)


def predict_class(model: FittedModel, newdata: DataFrameLike) -> pd.Series:
    """Most probable category for each row.

    Ties are resolved in favour of the first-listed category (the
    reference category comes first).  For binomial models the classes
    are 0 and 1 and a probability of exactly 0.5 maps to 0.

    Returns:
        Categorical Series indexed like *newdata*.
    """
    probs = predict_proba(model, newdata)
    if isinstance(probs, pd.Series):
        probs = pd.DataFrame({0: 1.0 - probs, 1: probs}, index=probs.index)
    # np.argmax returns the first maximal position, which is the
    # tie-break rule.
    codes = np.argmax(probs.to_numpy(), axis=1)
    labels = [probs.columns[c] for c in codes]
    return pd.Series(
        pd.Categorical(labels, categories=list(probs.columns)),
        index=probs.index,
        name="predicted",
    )


def prediction_grid(**axes: Any) -> pd.DataFrame:
    """Cartesian product of predictor values.

    The first keyword varies slowest, so
    ``prediction_grid(schtyp=["public", "private"], write=range(30, 71))``
    lists every writing score for public schools, then for private
    schools.

    Raises:
        ValueError: If no axis is given or an axis is empty.
    """
    if not axes:
        msg = "prediction_grid needs at least one axis."
        raise ValueError(msg)
    values = {name: list(vals) for name, vals in axes.items()}
    empty = [name for name, vals in values.items() if not vals]
    if empty:
        msg = f"prediction_grid axes {empty} are empty."
        raise ValueError(msg)
    index = pd.MultiIndex.from_product(list(values.values()), names=list(values))
    return index.to_frame(index=False)


def melt_probabilities(
    grid: pd.DataFrame,
    probabilities: pd.DataFrame,
    id_vars: list[str] | None = None,
) -> pd.DataFrame:
    """Reshape a wide probability table to long form for plotting.

    Args:
        grid: The predictor values the probabilities were computed at.
        probabilities: One column per category, same index as *grid*.
        id_vars: Grid columns that key each row.  Defaults to all grid
            columns.

    Returns:
        DataFrame with the *id_vars* columns plus ``category`` and
        ``probability``; one row per grid row and category.

    Raises:
        ValueError: If *grid* and *probabilities* are not aligned.
    """
    if not grid.index.equals(probabilities.index):
        msg = (
            f"grid (shape {grid.shape}) and probabilities "
            f"(shape {probabilities.shape}) must share an index."
        )
        raise ValueError(msg)
    id_vars = list(grid.columns) if id_vars is None else list(id_vars)
    wide = pd.concat([grid[id_vars], probabilities], axis=1)
    long = wide.melt(
        id_vars=id_vars,
        value_vars=list(probabilities.columns),
        var_name="category",
        value_name="probability",
    )
    long["category"] = pd.Categorical(long["category"], categories=list(probabilities.columns))
    return long
