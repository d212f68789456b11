"""matplotlib figures for the exploratory, diagnostic and prediction steps.

Every function builds and returns a new ``Figure`` (or draws on the
``Axes`` it is given); nothing is shown or saved implicitly.  Callers
in an interactive session can ``fig.show()``; scripts can
``fig.savefig(...)`` and ``plt.close(fig)``.
"""

from __future__ import annotations

from collections.abc import Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from scipy import stats

from ._compat import DataFrameLike, _ensure_pandas_df, _require_columns

# ------------------------------------------------------------------ #
# Exploratory plots
# ------------------------------------------------------------------ #


def plot_histograms(data: DataFrameLike, columns: Sequence[str], bins: int | str = "auto") -> Figure:
    """One histogram per column; categorical columns get a bar chart of counts."""
    df = _ensure_pandas_df(data)
    cols = list(columns)
    _require_columns(df, cols)
    fig, axes = plt.subplots(1, len(cols), figsize=(4.5 * len(cols), 4), squeeze=False)
    for ax, col in zip(axes[0], cols, strict=True):
        series = df[col].dropna()
        if pd.api.types.is_numeric_dtype(series) and not isinstance(series.dtype, pd.CategoricalDtype):
            ax.hist(series.to_numpy(dtype=float), bins=bins, edgecolor="black")
        else:
            counts = series.value_counts(sort=False)
            ax.bar([str(i) for i in counts.index], counts.to_numpy(), edgecolor="black")
        ax.set_title(f"Histogram of {col}")
        ax.set_xlabel(col)
        ax.set_ylabel("Frequency")
    fig.tight_layout()
    return fig


def plot_scatter(
    data: DataFrameLike,
    x: str,
    y: str,
    ax: Axes | None = None,
) -> Axes:
    """Scatter plot of *y* against *x*."""
    df = _ensure_pandas_df(data)
    _require_columns(df, [x, y])
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 4.5))
    ax.scatter(df[x], df[y], facecolors="none", edgecolors="black")
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    return ax


def plot_boxplots(
    data: DataFrameLike,
    value: str,
    group: str,
    by: str | None = None,
) -> Figure:
    """Box plots of *value* for each level of *group*.

    With *by*, one panel is drawn per level of *by* (for example the
    writing score by programme, separately for public and private
    schools).
    """
    df = _ensure_pandas_df(data)
    _require_columns(df, [value, group] + ([by] if by else []))

    def _levels(col: str) -> list:
        s = df[col]
        if isinstance(s.dtype, pd.CategoricalDtype):
            return [lvl for lvl in s.cat.categories if (s == lvl).any()]
        return sorted(s.dropna().unique().tolist())

    panels = [(None, df)] if by is None else [(lvl, df[df[by] == lvl]) for lvl in _levels(by)]
    groups = _levels(group)
    fig, axes = plt.subplots(1, len(panels), figsize=(5 * len(panels), 4.5), squeeze=False, sharey=True)
    for ax, (panel_level, panel_df) in zip(axes[0], panels, strict=True):
        samples = [panel_df.loc[panel_df[group] == g, value].dropna().to_numpy(dtype=float) for g in groups]
        ax.boxplot(samples)
        ax.set_xticks(range(1, len(groups) + 1), [str(g) for g in groups])
        ax.set_xlabel(group)
        ax.set_ylabel(value)
        if panel_level is not None:
            ax.set_title(f"{by} = {panel_level}")
    fig.tight_layout()
    return fig


def plot_pairs(data: DataFrameLike, columns: Sequence[str]) -> Figure:
    """Scatter-plot matrix of *columns* (the pairwise association check)."""
    df = _ensure_pandas_df(data)
    cols = list(columns)
    _require_columns(df, cols)
    size = 2.5 * len(cols)
    axes = pd.plotting.scatter_matrix(df[cols].astype(float), figsize=(size, size))
    return np.ravel(axes)[0].get_figure()


# ------------------------------------------------------------------ #
# Diagnostics
# ------------------------------------------------------------------ #


def plot_glm_diagnostics(diagnostics: pd.DataFrame, n_params: int) -> Figure:
    """Four-panel GLM diagnostic plot.

    Panels, left to right and top to bottom:

    1. deviance residuals against the linear predictor;
    2. normal Q-Q plot of standardized deviance residuals;
    3. Cook's distance against the leverage ratio ``h / (1 − h)``;
    4. Cook's distance against case number.

    Dashed reference lines in panels 3 and 4 mark the thresholds used
    by :func:`~logistic_tutorials.diagnostics.influential_points`.

    Args:
        diagnostics: Output of
            :func:`~logistic_tutorials.diagnostics.glm_diagnostics`.
        n_params: Number of coefficients p in the model.
    """
    n = len(diagnostics)
    fig, axes = plt.subplots(2, 2, figsize=(10, 8))
    (ax1, ax2), (ax3, ax4) = axes

    ax1.scatter(diagnostics["linear_predictor"], diagnostics["resid_deviance"], facecolors="none", edgecolors="black")
    ax1.axhline(0.0, linestyle=":", color="grey")
    ax1.set_xlabel("Linear predictor")
    ax1.set_ylabel("Residuals")

    std_resid = diagnostics["std_resid_deviance"].to_numpy(dtype=float)
    (osm, osr), _ = stats.probplot(std_resid[np.isfinite(std_resid)], dist="norm")
    ax2.scatter(osm, osr, facecolors="none", edgecolors="black")
    ax2.axline((0.0, 0.0), slope=1.0, linestyle=":", color="grey")
    ax2.set_xlabel("Quantiles of standard normal")
    ax2.set_ylabel("Ordered deviance residuals")

    h = diagnostics["leverage"].to_numpy(dtype=float)
    cook = diagnostics["cooks_distance"].to_numpy(dtype=float)
    ax3.scatter(h / (1.0 - h), cook, facecolors="none", edgecolors="black")
    ax3.set_xlabel("h/(1-h)")
    ax3.set_ylabel("Cook statistic")

    ax4.scatter(np.arange(1, n + 1), cook, facecolors="none", edgecolors="black")
    ax4.set_xlabel("Case")
    ax4.set_ylabel("Cook statistic")

    denom = n - 2 * n_params
    if denom > 0:
        ax3.axhline(8.0 / denom, linestyle="--", color="grey")
        ax3.axvline(2.0 * n_params / denom, linestyle="--", color="grey")
        ax4.axhline(8.0 / denom, linestyle="--", color="grey")

    fig.tight_layout()
    return fig


# ------------------------------------------------------------------ #
# Prediction plots
# ------------------------------------------------------------------ #


def plot_confidence_band(
    data: DataFrameLike,
    x: str,
    y: str,
    band: pd.DataFrame,
    *,
    xlabel: str | None = None,
    ylabel: str | None = None,
) -> Figure:
    """Raw binary data with the fitted probability curve and its envelope.

    Args:
        data: Observed table (points).
        x: Predictor column, present in both *data* and *band*.
        y: Binary response column of *data*.
        band: Output of
            :func:`~logistic_tutorials.prediction.confidence_band`.
    """
    df = _ensure_pandas_df(data)
    _require_columns(df, [x, y])
    _require_columns(band, [x, "fit", "lower", "upper"], name="band")
    ordered = band.sort_values(x)

    fig, ax = plt.subplots(figsize=(7, 5))
    plot_scatter(df, x, y, ax=ax)
    ax.plot(ordered[x], ordered["fit"], linewidth=2, color="black")
    ax.plot(ordered[x], ordered["lower"], linestyle=":", color="black")
    ax.plot(ordered[x], ordered["upper"], linestyle=":", color="black")
    ax.set_xlabel(xlabel or x)
    ax.set_ylabel(ylabel or f"{y} probability")
    ax.set_ylim(-0.05, 1.05)
    fig.tight_layout()
    return fig


def plot_probability_facets(
    long: pd.DataFrame,
    x: str,
    group: str,
    *,
    category: str = "category",
    probability: str = "probability",
    xlabel: str | None = None,
    group_label: str | None = None,
) -> Figure:
    """One panel per response category, one line per *group* level.

    *long* is the output of
    :func:`~logistic_tutorials.prediction.melt_probabilities`.  At
    every ``(x, group)`` point the probabilities across panels sum to
    one.
    """
    _require_columns(long, [x, group, category, probability], name="long")
    cat_series = long[category]
    if isinstance(cat_series.dtype, pd.CategoricalDtype):
        categories = list(cat_series.cat.categories)
    else:
        categories = list(dict.fromkeys(cat_series))
    groups = list(dict.fromkeys(long[group]))

    fig, axes = plt.subplots(len(categories), 1, figsize=(7, 2.6 * len(categories)), sharex=True, squeeze=False)
    for ax, cat in zip(axes[:, 0], categories, strict=True):
        panel = long[long[category] == cat]
        for g in groups:
            line = panel[panel[group] == g].sort_values(x)
            ax.plot(line[x], line[probability], label=str(g))
        ax.set_ylim(0.0, 1.0)
        ax.set_ylabel("Probability")
        ax.set_title(str(cat), loc="right", fontsize="medium")
    axes[-1, 0].set_xlabel(xlabel or x)
    axes[0, 0].legend(title=group_label or group, loc="upper left")
    fig.tight_layout()
    return fig
