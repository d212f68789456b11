"""Nested model comparison and minimal-adequate-model selection.

Two models are *nested* when the reduced model's terms are a strict
subset of the full model's terms and both were fit with the same
family on the same rows.  For such a pair the likelihood-ratio
statistic

    LR = 2·(ℓ_full − ℓ_reduced)

is asymptotically χ² with ``df = k_full − k_reduced`` degrees of
freedom under the null hypothesis that the dropped coefficients are
all zero.  This is the test behind R's ``anova(m1, m2, test="Chi")``
for GLMs and ``lrtest(m1, m2)`` for multinomial fits.

Selection policy
~~~~~~~~~~~~~~~~
The reduced model is preferred (principle of parsimony) when any of
the following holds:

1. the LR test is not significant at ``alpha``;
2. none of the dropped coefficients has a significant Wald test;
3. the reduced model's AIC is no larger than the full model's.

Otherwise the full model is kept.  Exact ties go to the reduced model.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import pandas as pd
from scipy import stats

from ._config import get_significance_level
from ._results import ComparisonResult
from .exceptions import ComparisonError
from .models import FittedModel, term_key

logger = logging.getLogger(__name__)

# AIC values closer than this are treated as equal.
_AIC_TOL = 1e-8


def _check_nested(full: FittedModel, reduced: FittedModel) -> list[str]:
    """Validate that *reduced* is nested in *full*; return the dropped terms."""
    if full.family.name != reduced.family.name:
        msg = (
            f"Models use different families ({full.family.name!r} vs "
            f"{reduced.family.name!r}) and cannot be compared."
        )
        raise ComparisonError(msg)
    if full.response != reduced.response:
        msg = (
            f"Models have different responses ({full.response!r} vs "
            f"{reduced.response!r}) and cannot be compared."
        )
        raise ComparisonError(msg)

    full_keys = {term_key(t) for t in full.terms}
    reduced_keys = {term_key(t) for t in reduced.terms}
    if not reduced_keys < full_keys:
        extra = sorted(":".join(sorted(k)) for k in reduced_keys - full_keys)
        detail = f"terms {extra} are not in the full model" if extra else "the term sets are equal"
        msg = (
            f"'{reduced.formula}' is not nested in '{full.formula}': {detail}."
        )
        raise ComparisonError(msg)

    # Same rows, same values in every column the reduced model uses.
    shared = [full.response, *reduced.variables]
    same_rows = full.data.index.equals(reduced.data.index)
    if not same_rows or not full.data[shared].equals(reduced.data[shared]):
        msg = (
            f"Models were fit on different data (full: {full.data.shape}, "
            f"reduced: {reduced.data.shape}); refit both on the same table."
        )
        raise ComparisonError(msg)

    if full.categories != reduced.categories:
        msg = (
            f"Models have different response categories "
            f"({full.categories} vs {reduced.categories})."
        )
        raise ComparisonError(msg)

    return [t for t in full.terms if term_key(t) not in reduced_keys]


def _dropped_columns(full: FittedModel, reduced: FittedModel) -> list[str]:
    reduced_cols = set(reduced.exog_names)
    return [c for c in full.exog_names if c not in reduced_cols]


def compare_nested(
    full: FittedModel,
    reduced: FittedModel,
    alpha: float | None = None,
) -> ComparisonResult:
    """Compare a full model against a nested reduced model.

    Args:
        full: The larger model.
        reduced: A model whose terms are a strict subset of *full*'s,
            fit on the same rows.
        alpha: Significance level.  Defaults to
            :func:`~logistic_tutorials.get_significance_level`.

    Returns:
        A :class:`ComparisonResult` with the LR test, both AICs, the
        Wald p-values of the dropped coefficients and the decision.

    Raises:
        ComparisonError: If the models are not a nested pair fit on
            the same data.
    """
    alpha = get_significance_level() if alpha is None else float(alpha)
    dropped_terms = _check_nested(full, reduced)

    df_diff = full.n_params - reduced.n_params
    if df_diff <= 0:
        msg = (
            f"Full model has {full.n_params} parameters, reduced has "
            f"{reduced.n_params}; the full model must have more."
        )
        raise ComparisonError(msg)

    # Tiny negative values appear when the dropped terms contribute
    # nothing and the optimiser stops marginally short of the optimum.
    lr = max(0.0, 2.0 * (full.llf - reduced.llf))
    p_value = float(stats.chi2.sf(lr, df_diff))

    dropped_cols = _dropped_columns(full, reduced)
    wald_p = np.ravel(np.asarray(full.pvalues[dropped_cols], dtype=float))
    aic_full, aic_reduced = full.aic, reduced.aic

    reasons = []
    if p_value > alpha:
        reasons.append(f"LR test not significant (p = {p_value:.4g} > {alpha})")
    if wald_p.size and np.all(wald_p > alpha):
        reasons.append(f"no dropped coefficient significant (min Wald p = {wald_p.min():.4g})")
    if aic_reduced <= aic_full + _AIC_TOL:
        reasons.append(f"AIC not higher ({aic_reduced:.4f} <= {aic_full:.4f})")

    if reasons:
        preferred = "reduced"
        reason = "; ".join(reasons)
    else:
        preferred = "full"
        reason = (
            f"dropped terms {dropped_terms} are significant "
            f"(LR p = {p_value:.4g}) and AIC rises to {aic_reduced:.4f} "
            f"from {aic_full:.4f}"
        )

    logger.info(
        "Nested comparison '%s' vs '%s': LR=%.4f, df=%d, p=%.4g -> %s",
        full.formula,
        reduced.formula,
        lr,
        df_diff,
        p_value,
        preferred,
    )
    return ComparisonResult(
        full=full,
        reduced=reduced,
        llf_full=full.llf,
        llf_reduced=reduced.llf,
        lr_statistic=lr,
        df_diff=df_diff,
        p_value=p_value,
        aic_full=aic_full,
        aic_reduced=aic_reduced,
        dropped_terms=tuple(dropped_terms),
        dropped_wald_p=tuple(float(p) for p in wald_p),
        alpha=alpha,
        preferred=preferred,
        reason=reason,
    )


def anova_table(models: Sequence[FittedModel]) -> pd.DataFrame:
    """Analysis-of-deviance table for a sequence of nested models.

    Models may be given in any order; they are sorted from the
    smallest to the largest.  Each row after the first tests the
    model against the previous one.

    Returns:
        DataFrame indexed by formula with columns ``resid_df``,
        ``deviance``, ``df``, ``lr_statistic`` and ``p_value``.

    Raises:
        ComparisonError: If fewer than two models are given or any
            consecutive pair is not nested.
    """
    if len(models) < 2:
        msg = f"anova_table needs at least two models, got {len(models)}."
        raise ComparisonError(msg)

    ordered = sorted(models, key=lambda m: m.n_params)
    rows = []
    for i, model in enumerate(ordered):
        row = {
            "resid_df": model.nobs - model.n_params,
            "deviance": model.deviance,
            "df": np.nan,
            "lr_statistic": np.nan,
            "p_value": np.nan,
        }
        if i > 0:
            prev = ordered[i - 1]
            _check_nested(model, prev)
            df = model.n_params - prev.n_params
            lr = max(0.0, prev.deviance - model.deviance)
            row.update(df=df, lr_statistic=lr, p_value=float(stats.chi2.sf(lr, df)))
        rows.append(row)
    return pd.DataFrame(rows, index=pd.Index([m.formula for m in ordered], name="model"))
