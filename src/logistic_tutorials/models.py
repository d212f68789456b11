"""Model fitting: formula terms → design matrix → fitted model.

A model is described by a response column and a list of formula
terms.  Terms use the usual Wilkinson-Rogers notation understood by
patsy:

* ``"length"``: a main effect (numeric or categorical);
* ``"schtyp:write"``: an interaction;
* ``"schtyp*write"``: shorthand for ``schtyp + write + schtyp:write``.

:func:`fit_model` expands the terms, builds the design matrix with
patsy (intercept always included), checks the response and the design
for degeneracy, and hands the matrices to the family's statsmodels
estimator.  The result is an immutable :class:`FittedModel` which
keeps the patsy ``DesignInfo`` so that new tables can be encoded
exactly like the training table at prediction time.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
import patsy

from ._compat import DataFrameLike, _ensure_pandas_df, _require_columns
from .exceptions import FitError
from .families import ModelFamily, resolve_family

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------ #
# Term handling
# ------------------------------------------------------------------ #


def term_key(term: str) -> frozenset[str]:
    """Order-insensitive identity of a term (``a:b`` ≡ ``b:a``)."""
    return frozenset(part.strip() for part in term.split(":"))


def expand_terms(predictors: str | Iterable[str]) -> tuple[str, ...]:
    """Expand ``*`` shorthand and ``+`` separators into a tuple of terms.

    Duplicates (including reordered interactions) are dropped, keeping
    the first spelling seen.  ``"1"`` and empty pieces are ignored
    because the intercept is always included.

    Examples:
        >>> expand_terms("schtyp*write")
        ('schtyp', 'write', 'schtyp:write')
        >>> expand_terms(["length", "spots"])
        ('length', 'spots')
    """
    pieces = [predictors] if isinstance(predictors, str) else list(predictors)
    terms: list[str] = []
    seen: set[frozenset[str]] = set()

    def _add(term: str) -> None:
        key = term_key(term)
        if key not in seen:
            seen.add(key)
            terms.append(":".join(part.strip() for part in term.split(":")))

    for piece in pieces:
        for raw in piece.split("+"):
            raw = raw.strip()
            if raw in ("", "1"):
                continue
            if "*" in raw:
                factors = [f.strip() for f in raw.split("*")]
                for r in range(1, len(factors) + 1):
                    for combo in itertools.combinations(factors, r):
                        _add(":".join(combo))
            else:
                _add(raw)
    return tuple(terms)


def _term_variables(terms: Sequence[str]) -> list[str]:
    """Column names referenced by *terms*, in first-appearance order."""
    variables: list[str] = []
    for term in terms:
        for part in term.split(":"):
            name = part.strip()
            if name not in variables:
                variables.append(name)
    return variables


def _collinear_columns(X: pd.DataFrame) -> list[str]:
    """Design columns that are linear combinations of earlier columns.

    Columns are added left to right; a column that does not raise the
    matrix rank is reported.  The intercept comes first, so a constant
    predictor is flagged rather than the intercept.
    """
    X_np = X.to_numpy(dtype=float)
    kept: list[int] = []
    offenders: list[str] = []
    for j, name in enumerate(X.columns):
        candidate = [*kept, j]
        if np.linalg.matrix_rank(X_np[:, candidate]) > len(kept):
            kept.append(j)
        else:
            offenders.append(str(name))
    return offenders


# ------------------------------------------------------------------ #
# FittedModel
# ------------------------------------------------------------------ #


@dataclass(frozen=True, eq=False)
class FittedModel:
    """An immutable fitted logistic-type model.

    Created by :func:`fit_model` and consumed read-only by the
    comparison, prediction, inference, diagnostic and display
    modules.  Coefficient, standard-error and p-value tables share a
    shape (see ``families.py``).
    """

    family: ModelFamily
    """Resolved model family."""

    response: str
    """Response column name."""

    terms: tuple[str, ...]
    """Expanded formula terms (intercept implicit)."""

    categories: tuple[Any, ...]
    """Response categories, reference first."""

    data: pd.DataFrame = field(repr=False)
    """Complete-case training rows (response plus term variables)."""

    source: pd.DataFrame = field(repr=False)
    """Every column of the input table, restricted to the training rows."""

    design_info: Any = field(repr=False)
    """patsy ``DesignInfo`` for re-encoding new tables."""

    result: Any = field(repr=False)
    """Underlying statsmodels results object."""

    maxiter: int = 100
    """Iteration cap used for the fit (reused by :func:`update_model`)."""

    # ---- Formula ---------------------------------------------------

    @property
    def formula(self) -> str:
        rhs = " + ".join(self.terms) if self.terms else "1"
        return f"{self.response} ~ {rhs}"

    @property
    def exog_names(self) -> list[str]:
        return list(self.design_info.column_names)

    @property
    def variables(self) -> list[str]:
        """Predictor columns referenced by the terms."""
        return _term_variables(self.terms)

    # ---- Estimates -------------------------------------------------

    @property
    def params(self) -> pd.Series | pd.DataFrame:
        return self.family.coef_table(self.result, self.categories)

    @property
    def bse(self) -> pd.Series | pd.DataFrame:
        return self.family.std_error_table(self.result, self.categories)

    @property
    def pvalues(self) -> pd.Series | pd.DataFrame:
        return self.family.pvalue_table(self.result, self.categories)

    # ---- Fit statistics --------------------------------------------

    @property
    def llf(self) -> float:
        return float(self.result.llf)

    @property
    def deviance(self) -> float:
        """Residual deviance, ``−2ℓ`` (the saturated model has ℓ = 0)."""
        return -2.0 * self.llf

    @property
    def n_params(self) -> int:
        return self.family.n_params(self.result)

    @property
    def aic(self) -> float:
        return self.deviance + 2.0 * self.n_params

    @property
    def bic(self) -> float:
        return self.deviance + np.log(self.nobs) * self.n_params

    @property
    def nobs(self) -> int:
        return len(self.data)

    @property
    def converged(self) -> bool:
        return self.family.converged(self.result)

    # ---- Design ----------------------------------------------------

    def design_matrix(self, newdata: DataFrameLike) -> pd.DataFrame:
        """Encode *newdata* with the training design (same columns, same levels).

        Raises:
            KeyError: If a predictor column is missing from *newdata*.
        """
        df = _ensure_pandas_df(newdata, name="newdata")
        _require_columns(df, self.variables, name="newdata")
        (X,) = patsy.build_design_matrices(
            [self.design_info], df, NA_action="raise", return_type="dataframe"
        )
        return X

    def summary(self) -> Any:
        """statsmodels summary object of the underlying fit."""
        return self.result.summary()


# ------------------------------------------------------------------ #
# Fitting
# ------------------------------------------------------------------ #


def fit_model(
    data: DataFrameLike,
    response: str,
    predictors: str | Iterable[str] = (),
    family: str | ModelFamily = "auto",
    maxiter: int = 100,
) -> FittedModel:
    """Fit ``response ~ predictors`` with an intercept.

    Rows with a missing value in any used column are dropped (and the
    drop is logged), matching R's default ``na.action``.

    Args:
        data: Observation table.
        response: Response column.
        predictors: Formula terms, as a list or a ``+``-separated
            string.  ``*`` expands to main effects plus interaction.
        family: ``"binomial"`` / ``"logistic"``, ``"multinomial"``, a
            ``ModelFamily`` instance, or ``"auto"``.
        maxiter: Iteration cap for the optimiser.

    Returns:
        A :class:`FittedModel`.

    Raises:
        KeyError: If the response or a predictor column is missing.
        FitError: If the response has fewer than two observed
            categories, is not coded as the family requires, or the
            design matrix is rank deficient.
    """
    df = _ensure_pandas_df(data)
    terms = expand_terms(predictors)
    variables = _term_variables(terms)
    if response in variables:
        msg = f"Response '{response}' also appears among the predictors {list(terms)}."
        raise FitError(msg)
    _require_columns(df, [response, *variables])

    used = df[[response, *variables]]
    complete = used.dropna()
    n_dropped = len(used) - len(complete)
    if n_dropped:
        logger.warning(
            "Dropped %d of %d rows with missing values in %s",
            n_dropped,
            len(used),
            [response, *variables],
        )

    fam = resolve_family(family, complete[response])
    y, categories = fam.encode_response(complete[response])

    rhs = " + ".join(terms) if terms else "1"
    X = patsy.dmatrix(rhs, complete, NA_action="raise", return_type="dataframe")

    collinear = _collinear_columns(X)
    if collinear:
        msg = (
            f"Design matrix for '{response} ~ {rhs}' is rank deficient "
            f"(shape {X.shape}); column(s) {collinear} are linear "
            f"combinations of the others."
        )
        raise FitError(msg)

    result = fam.fit(y, X, maxiter=maxiter)
    model = FittedModel(
        family=fam,
        response=response,
        terms=terms,
        categories=categories,
        data=complete.copy(),
        source=df.loc[complete.index].copy(),
        design_info=X.design_info,
        result=result,
        maxiter=maxiter,
    )
    if not model.converged:
        logger.warning("%s fit of '%s' did not converge in %d iterations", fam.name, model.formula, maxiter)
    logger.debug(
        "Fitted %s model '%s' on %d rows: logLik=%.4f, AIC=%.4f",
        fam.name,
        model.formula,
        model.nobs,
        model.llf,
        model.aic,
    )
    return model


def update_model(
    model: FittedModel,
    drop: str | Iterable[str] = (),
    add: str | Iterable[str] = (),
) -> FittedModel:
    """Refit *model* with terms removed and/or added.

    The refit draws on every column of the table *model* was fit on,
    restricted to its training rows, and reuses its family and
    iteration cap.  Dropping terms therefore keeps the rows identical;
    an added variable with missing values drops those rows (logged).

    Raises:
        ValueError: If a term in *drop* is not in the model.
        KeyError: If an added term references a column not in the
            table *model* was fit on.
    """
    drop_keys = {term_key(t) for t in expand_terms(drop)}
    present = {term_key(t) for t in model.terms}
    absent = [":".join(sorted(k)) for k in drop_keys - present]
    if absent:
        msg = f"Cannot drop term(s) {absent}: not in '{model.formula}'."
        raise ValueError(msg)

    kept = [t for t in model.terms if term_key(t) not in drop_keys]
    new_terms = expand_terms([*kept, *expand_terms(add)])
    return fit_model(
        model.source,
        model.response,
        new_terms,
        family=model.family,
        maxiter=model.maxiter,
    )


def odds_ratios(model: FittedModel) -> pd.Series | pd.DataFrame:
    """Exponentiated coefficients: the multiplicative change in odds."""
    return np.exp(model.params)
