"""Exploratory summaries of an observation table.

Everything here is a pure read: the input table is never mutated.
Requests for columns the table does not have raise ``KeyError`` with
the missing names and the table shape.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm

from ._compat import DataFrameLike, _ensure_pandas_df, _require_columns


def summarize(data: DataFrameLike, columns: Sequence[str] | None = None) -> pd.DataFrame:
    """Count, mean, spread and quartiles of numeric columns.

    Categorical and string columns report count, number of unique
    values, the most frequent value and its frequency instead.  The
    returned frame has one column per input column, in input order.
    """
    df = _ensure_pandas_df(data)
    cols = list(df.columns) if columns is None else list(columns)
    _require_columns(df, cols)
    pieces = []
    for col in cols:
        series = df[col]
        if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
            pieces.append(series.describe())
        else:
            pieces.append(series.astype("object").describe())
    return pd.concat(pieces, axis=1)


def frequency_table(data: DataFrameLike, column: str) -> pd.Series:
    """Counts per level of *column*, including declared levels with zero count."""
    df = _ensure_pandas_df(data)
    _require_columns(df, [column])
    series = df[column]
    counts = series.value_counts(sort=False, dropna=True)
    if isinstance(series.dtype, pd.CategoricalDtype):
        counts = counts.reindex(series.cat.categories, fill_value=0)
    else:
        counts = counts.sort_index()
    counts.name = "count"
    counts.index.name = column
    return counts


def crosstab(data: DataFrameLike, row: str, column: str) -> pd.DataFrame:
    """Two-way frequency table of *row* against *column*."""
    df = _ensure_pandas_df(data)
    _require_columns(df, [row, column])
    return pd.crosstab(df[row], df[column], dropna=False)


def subset(
    data: DataFrameLike,
    column: str,
    value: object,
    columns: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Rows where ``data[column] == value``, restricted to *columns*."""
    df = _ensure_pandas_df(data)
    cols = list(df.columns) if columns is None else list(columns)
    _require_columns(df, [column, *cols])
    return df.loc[df[column] == value, cols].copy()


def collinearity_check(data: DataFrameLike, columns: Sequence[str]) -> pd.Series:
    """Variance inflation factor of each numeric predictor in *columns*.

    VIF_j = 1 / (1 − R²_j), where R²_j comes from regressing column j
    on the remaining columns with an intercept.  A perfectly collinear
    column gets ``inf``.  Values above roughly 5 to 10 point to
    coefficient estimates that will be unstable.

    Raises:
        KeyError: If a column is missing.
        ValueError: If a column is not numeric.
    """
    df = _ensure_pandas_df(data)
    cols = list(columns)
    _require_columns(df, cols)
    non_numeric = [c for c in cols if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        msg = f"collinearity_check needs numeric columns; got non-numeric {non_numeric}."
        raise ValueError(msg)

    X_np = df[cols].to_numpy(dtype=float)
    vifs = np.ones(len(cols))
    for j in range(len(cols)):
        X_others = np.delete(X_np, j, axis=1)
        if X_others.shape[1] == 0:
            # A single predictor cannot be collinear with anything.
            continue
        if np.ptp(X_np[:, j]) == 0:
            # Zero variance: R² is undefined, and the column is the intercept.
            vifs[j] = np.inf
            continue
        r_squared = sm.OLS(X_np[:, j], sm.add_constant(X_others)).fit().rsquared
        if np.isnan(r_squared) or r_squared >= 1.0:
            vifs[j] = np.inf
        else:
            vifs[j] = 1.0 / (1.0 - r_squared)
    return pd.Series(vifs, index=cols, name="vif")
