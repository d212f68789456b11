"""Formatted ASCII tables for fitted models and comparisons.

The layout mirrors the statsmodels summary style: an 80-column header
panel with model-level statistics followed by one row per
coefficient.  Multinomial models print one coefficient block per
non-reference category, in the order of ``summary(multinom(...))``.
"""

from __future__ import annotations

import textwrap
from typing import Any

import pandas as pd

from ._config import get_significance_level
from ._results import ComparisonResult, WaldTable
from .models import FittedModel

_WIDTH = 80


def _truncate(name: str, max_len: int) -> str:
    """Truncate *name* to *max_len*, appending ``'...'`` if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def _fmt_p(p: float | None) -> str:
    """Format a p-value for display: scientific notation if tiny, 4 dp otherwise."""
    if p is None or p != p:  # nan check
        return "N/A"
    if p < 0.0001:
        return f"{p:.2e}"
    return f"{p:.4f}"


def _significance_marker(p: float, alpha: float | None = None) -> str:
    """``(***)``, ``(**)``, ``(*)`` or ``(ns)`` for a p-value.

    The single-star threshold is *alpha* (the configured significance
    level by default); the others are fixed at 0.01 and 0.001.
    """
    alpha = get_significance_level() if alpha is None else alpha
    if p < 0.001:
        return "(***)"
    if p < 0.01:
        return "(**)"
    if p < alpha:
        return "(*)"
    return "(ns)"


def _print_title(title: str) -> None:
    print("=" * _WIDTH)
    for line in textwrap.wrap(title, width=_WIDTH - 2):
        print(f"{line:^{_WIDTH}}")
    print("=" * _WIDTH)


def _print_pair(left_label: str, left_value: Any, right_label: str, right_value: Any) -> None:
    left = f"{left_label:<16}{_truncate(str(left_value), 24):<24}"
    right = f"{right_label:>27} {str(right_value):>12}"
    print(f"{left}{right}")


# ------------------------------------------------------------------ #
# Model summary
# ------------------------------------------------------------------ #


def _coef_rows(coefs: pd.Series, ses: pd.Series, pvals: pd.Series, alpha: float) -> None:
    fc = 24
    for name in coefs.index:
        z = coefs[name] / ses[name] if ses[name] else float("nan")
        p = float(pvals[name])
        print(
            f"{_truncate(str(name), fc):<{fc}}"
            f"{coefs[name]:>11.4f}{ses[name]:>11.4f}{z:>9.3f}"
            f"{_fmt_p(p):>12} {_significance_marker(p, alpha):>6}"
        )


def print_model_summary(
    model: FittedModel,
    *,
    title: str | None = None,
    alpha: float | None = None,
) -> None:
    """Print the coefficient table and fit statistics of *model*."""
    alpha = get_significance_level() if alpha is None else alpha
    _print_title(title or f"{model.family.name.capitalize()} Logistic Regression Results")
    _print_pair("Dep. Variable:", model.response, "No. Observations:", model.nobs)
    _print_pair("Family:", model.family.name, "Parameters:", model.n_params)
    _print_pair("Link:", model.family.link, "Log-Likelihood:", f"{model.llf:.4f}")
    _print_pair("Converged:", model.converged, "Residual Deviance:", f"{model.deviance:.4f}")
    _print_pair("Reference:", model.categories[0], "AIC:", f"{model.aic:.4f}")
    for line in textwrap.wrap(f"Formula: {model.formula}", width=_WIDTH):
        print(line)
    print("-" * _WIDTH)
    print(f"{'Term':<24}{'Coef':>11}{'Std.Err':>11}{'z':>9}{'P>|z|':>12}")

    params, bse, pvalues = model.params, model.bse, model.pvalues
    if isinstance(params, pd.DataFrame):
        for category in params.index:
            print("-" * _WIDTH)
            print(f"{model.response} = {category}  (vs {model.categories[0]})")
            _coef_rows(params.loc[category], bse.loc[category], pvalues.loc[category], alpha)
    else:
        print("-" * _WIDTH)
        _coef_rows(params, bse, pvalues, alpha)

    print("-" * _WIDTH)
    print(f"(***) p < 0.001   (**) p < 0.01   (*) p < {alpha}   (ns) p >= {alpha}")
    print("=" * _WIDTH)


# ------------------------------------------------------------------ #
# Nested comparison
# ------------------------------------------------------------------ #


def print_comparison_table(
    comparison: ComparisonResult,
    *,
    title: str = "Nested Model Comparison",
) -> None:
    """Print a likelihood-ratio / AIC comparison and the decision."""
    _print_title(title)
    fc = 40
    print(f"{'Model':<{fc}}{'Params':>8}{'Log-Lik':>16}{'AIC':>16}")
    print("-" * _WIDTH)
    for label, model in (("Full", comparison.full), ("Reduced", comparison.reduced)):
        name = _truncate(f"{label}: {model.formula}", fc - 1)
        print(f"{name:<{fc}}{model.n_params:>8}{model.llf:>16.4f}{model.aic:>16.4f}")
    print("-" * _WIDTH)
    _print_pair("LR statistic:", f"{comparison.lr_statistic:.4f}", "df:", comparison.df_diff)
    _print_pair(
        "Dropped:",
        ", ".join(comparison.dropped_terms),
        "P(>Chi):",
        f"{_fmt_p(comparison.p_value)} {_significance_marker(comparison.p_value, comparison.alpha)}",
    )
    print("-" * _WIDTH)
    print(f"Preferred: {comparison.preferred} model ({comparison.selected.formula})")
    for line in textwrap.wrap(f"Reason: {comparison.reason}", width=_WIDTH, subsequent_indent="  "):
        print(line)
    print("=" * _WIDTH)


def print_anova_table(
    table: pd.DataFrame,
    *,
    title: str = "Analysis of Deviance",
) -> None:
    """Print the output of :func:`~logistic_tutorials.comparison.anova_table`."""
    _print_title(title)
    fc = 34
    print(f"{'Model':<{fc}}{'Resid.Df':>9}{'Deviance':>11}{'Df':>5}{'LR':>9}{'P(>Chi)':>12}")
    print("-" * _WIDTH)
    for formula, row in table.iterrows():
        df = "" if row["df"] != row["df"] else f"{int(row['df'])}"
        lr = "" if row["lr_statistic"] != row["lr_statistic"] else f"{row['lr_statistic']:.4f}"
        p = "" if row["p_value"] != row["p_value"] else _fmt_p(row["p_value"])
        print(
            f"{_truncate(str(formula), fc - 1):<{fc}}{int(row['resid_df']):>9}"
            f"{row['deviance']:>11.4f}{df:>5}{lr:>9}{p:>12}"
        )
    print("=" * _WIDTH)


# ------------------------------------------------------------------ #
# Wald tables
# ------------------------------------------------------------------ #


def print_wald_table(
    wald: WaldTable,
    *,
    title: str = "Wald z-scores and two-tailed p-values",
) -> None:
    """Print manually derived z-scores next to their p-values."""
    _print_title(title)
    z, p = wald.z_scores, wald.p_values
    if isinstance(z, pd.Series):
        z = z.to_frame(name="estimate").T
        p = p.to_frame(name="estimate").T
    fc = 24
    print(f"{'Row':<14}{'Term':<{fc}}{'z':>12}{'P>|z|':>14}")
    print("-" * _WIDTH)
    for row_label in z.index:
        for term in z.columns:
            pv = float(p.loc[row_label, term])
            print(
                f"{_truncate(str(row_label), 13):<14}{_truncate(str(term), fc - 1):<{fc}}"
                f"{z.loc[row_label, term]:>12.4f}{_fmt_p(pv):>14} {_significance_marker(pv):>6}"
            )
    print("=" * _WIDTH)
