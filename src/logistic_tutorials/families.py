"""Model family protocol and resolution logic.

The ``ModelFamily`` protocol isolates everything that differs between
binary and multinomial logistic regression (response encoding, the
statsmodels estimator, the shape of the coefficient table, the
prediction output) from the generic fitting, comparison and
prediction code in ``models.py``, ``comparison.py`` and
``prediction.py``.  Those modules program against the protocol and
never branch on the family name.

Coefficient tables
~~~~~~~~~~~~~~~~~~
The two families return coefficients in different shapes:

==========================  ==========================================
Family                      ``coef_table`` shape
==========================  ==========================================
``BinomialFamily``          ``Series`` indexed by design column
``MultinomialFamily``       ``DataFrame``: one row per non-reference
                            category, one column per design column
==========================  ==========================================

Column selection by design-column name (``table[cols]``) works the
same way on both shapes, which is what the nested-model comparator
relies on.  Standard-error and p-value tables always share the
coefficient table's shape and labels.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Protocol, runtime_checkable

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.tools.sm_exceptions import HessianInversionWarning

from .exceptions import FitError

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------ #
# ModelFamily protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class ModelFamily(Protocol):
    """Interface that every logistic-type family must implement.

    Attributes:
        name: Short identifier used in results and printed tables
            (``"binomial"`` or ``"multinomial"``).
        link: Name of the link function, for display.
    """

    @property
    def name(self) -> str: ...

    @property
    def link(self) -> str: ...

    def encode_response(self, y: pd.Series) -> tuple[np.ndarray, tuple[Any, ...]]:
        """Encode *y* as integer codes and return the ordered categories.

        The first category is the reference (baseline) category.

        Raises:
            FitError: If *y* has fewer than two observed categories or
                cannot be encoded for this family.
        """
        ...

    def fit(self, y: np.ndarray, X: pd.DataFrame, maxiter: int = 100) -> Any:
        """Fit the model and return the statsmodels results object."""
        ...

    def converged(self, result: Any) -> bool: ...

    def n_params(self, result: Any) -> int:
        """Number of estimated parameters (all categories, all columns)."""
        ...

    def coef_table(self, result: Any, categories: tuple[Any, ...]) -> pd.Series | pd.DataFrame: ...

    def std_error_table(
        self, result: Any, categories: tuple[Any, ...]
    ) -> pd.Series | pd.DataFrame: ...

    def pvalue_table(self, result: Any, categories: tuple[Any, ...]) -> pd.Series | pd.DataFrame: ...

    def predict_proba(
        self,
        result: Any,
        X: pd.DataFrame,
        categories: tuple[Any, ...],
    ) -> pd.Series | pd.DataFrame:
        """Predicted probabilities for the rows of design matrix *X*."""
        ...

    def predict_link(self, result: Any, X: pd.DataFrame) -> pd.DataFrame:
        """Link-scale predictions with standard errors (``fit``, ``se_fit``)."""
        ...


def _observed_levels(y: pd.Series) -> list[Any]:
    """Distinct non-missing values of *y*, in categorical or sorted order."""
    if isinstance(y.dtype, pd.CategoricalDtype):
        return [lvl for lvl in y.cat.categories if (y == lvl).any()]
    return sorted(y.dropna().unique().tolist())


# ------------------------------------------------------------------ #
# BinomialFamily
# ------------------------------------------------------------------ #


class BinomialFamily:
    """Binary logistic regression via statsmodels ``GLM``.

    The response must be coded 0/1 (or boolean).  Fitting uses IRLS
    on the ``Binomial`` family with its canonical logit link, which
    gives the same estimates as R's ``glm(..., family="binomial")``
    including the AIC convention ``−2ℓ + 2k``.
    """

    @property
    def name(self) -> str:
        return "binomial"

    @property
    def link(self) -> str:
        return "logit"

    # ---- Response encoding -----------------------------------------
    #
    # A single-class response is degenerate: the MLE of the intercept
    # diverges to ±∞ because the likelihood is monotone.  Codings
    # other than 0/1 ("yes"/"no", 1/2) must be recoded by the caller
    # so that the meaning of a positive coefficient is never guessed.

    def encode_response(self, y: pd.Series) -> tuple[np.ndarray, tuple[Any, ...]]:
        """Check that *y* is 0/1 with both classes observed."""
        if pd.api.types.is_bool_dtype(y):
            y = y.astype(int)
        if not pd.api.types.is_numeric_dtype(y):
            msg = (
                f"Binomial response '{y.name}' must be numeric 0/1 or boolean, "
                f"got dtype {y.dtype}."
            )
            raise FitError(msg)
        levels = _observed_levels(y)
        if not set(levels) <= {0, 1}:
            msg = f"Binomial response '{y.name}' must be coded 0/1, got values {levels}."
            raise FitError(msg)
        if len(levels) < 2:
            msg = (
                f"Response '{y.name}' has {len(levels)} observed category "
                f"({levels}); logistic regression needs both 0 and 1."
            )
            raise FitError(msg)
        return y.to_numpy(dtype=float), (0, 1)

    # ---- Fitting ---------------------------------------------------

    def fit(self, y: np.ndarray, X: pd.DataFrame, maxiter: int = 100) -> Any:
        with warnings.catch_warnings():
            # exp() overflow on extreme linear predictors is harmless
            # here; IRLS clips the fitted means internally.
            warnings.filterwarnings("ignore", category=RuntimeWarning)
            warnings.filterwarnings("ignore", category=HessianInversionWarning)
            return sm.GLM(y, X, family=sm.families.Binomial()).fit(maxiter=maxiter)

    def converged(self, result: Any) -> bool:
        return bool(getattr(result, "converged", True))

    def n_params(self, result: Any) -> int:
        return int(np.size(result.params))

    # ---- Coefficient tables ----------------------------------------

    def coef_table(self, result: Any, categories: tuple[Any, ...]) -> pd.Series:  # noqa: ARG002
        return pd.Series(result.params, name="coef")

    def std_error_table(self, result: Any, categories: tuple[Any, ...]) -> pd.Series:  # noqa: ARG002
        return pd.Series(result.bse, name="std_err")

    def pvalue_table(self, result: Any, categories: tuple[Any, ...]) -> pd.Series:  # noqa: ARG002
        return pd.Series(result.pvalues, name="p_value")

    # ---- Prediction ------------------------------------------------

    def predict_proba(
        self,
        result: Any,
        X: pd.DataFrame,
        categories: tuple[Any, ...],  # noqa: ARG002
    ) -> pd.Series:
        """P(Y = 1) for each row of *X*."""
        return pd.Series(np.asarray(result.predict(X)), index=X.index, name="probability")

    def predict_link(self, result: Any, X: pd.DataFrame) -> pd.DataFrame:
        """Log-odds and their delta-method standard errors.

        ``se_i = √(xᵢᵀ Σ xᵢ)`` where Σ is the estimated covariance of
        the coefficients.  These are the ``fit`` and ``se.fit`` that
        R's ``predict(type="link", se=TRUE)`` returns.
        """
        X_np = X.to_numpy(dtype=float)
        params = np.asarray(result.params, dtype=float)
        cov = np.asarray(result.cov_params(), dtype=float)
        eta = X_np @ params
        se = np.sqrt(np.einsum("ij,jk,ik->i", X_np, cov, X_np))
        return pd.DataFrame({"fit": eta, "se_fit": se}, index=X.index)


# ------------------------------------------------------------------ #
# MultinomialFamily
# ------------------------------------------------------------------ #


class MultinomialFamily:
    """Multinomial (softmax) logistic regression via statsmodels ``MNLogit``.

    The first response category is the reference: the model estimates
    K − 1 coefficient vectors, each giving the log odds of one
    category against the reference.  Fitting uses Newton-Raphson, the
    same optimiser family as ``nnet::multinom`` converges to.
    """

    @property
    def name(self) -> str:
        return "multinomial"

    @property
    def link(self) -> str:
        return "generalized logit"

    def encode_response(self, y: pd.Series) -> tuple[np.ndarray, tuple[Any, ...]]:
        """Integer-code *y* by its category order, dropping unused levels."""
        levels = _observed_levels(y)
        if len(levels) < 2:
            msg = (
                f"Response '{y.name}' has {len(levels)} observed category "
                f"({levels}); multinomial regression needs at least two."
            )
            raise FitError(msg)
        if isinstance(y.dtype, pd.CategoricalDtype):
            codes = y.cat.remove_unused_categories().cat.codes
        else:
            codes = pd.Categorical(y, categories=levels).codes
        return np.asarray(codes, dtype=int), tuple(levels)

    def fit(self, y: np.ndarray, X: pd.DataFrame, maxiter: int = 100) -> Any:
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", category=RuntimeWarning)
            warnings.filterwarnings("ignore", category=HessianInversionWarning)
            # disp=0 suppresses the iteration log statsmodels prints by
            # default for iterative MLE solvers.
            return sm.MNLogit(y, X).fit(method="newton", maxiter=maxiter, disp=0)

    def converged(self, result: Any) -> bool:
        return bool(result.mle_retvals.get("converged", True))

    def n_params(self, result: Any) -> int:
        return int(np.size(result.params))

    # ---- Coefficient tables ----------------------------------------
    #
    # statsmodels stores MNLogit parameters as (design columns × K−1)
    # with integer column labels.  The tables are transposed and
    # relabelled so that rows are the non-reference categories, which
    # is the layout of ``summary(multinom(...))``.

    def _category_frame(self, values: Any, result: Any, categories: tuple[Any, ...]) -> pd.DataFrame:
        exog_names = list(result.model.exog_names)
        return pd.DataFrame(
            np.asarray(values, dtype=float).T,
            index=pd.Index(categories[1:], name="category"),
            columns=exog_names,
        )

    def coef_table(self, result: Any, categories: tuple[Any, ...]) -> pd.DataFrame:
        return self._category_frame(result.params, result, categories)

    def std_error_table(self, result: Any, categories: tuple[Any, ...]) -> pd.DataFrame:
        return self._category_frame(result.bse, result, categories)

    def pvalue_table(self, result: Any, categories: tuple[Any, ...]) -> pd.DataFrame:
        return self._category_frame(result.pvalues, result, categories)

    # ---- Prediction ------------------------------------------------

    def predict_proba(
        self,
        result: Any,
        X: pd.DataFrame,
        categories: tuple[Any, ...],
    ) -> pd.DataFrame:
        """One probability column per category, reference first."""
        probs = np.asarray(result.predict(X), dtype=float)
        return pd.DataFrame(probs, index=X.index, columns=list(categories))

    def predict_link(self, result: Any, X: pd.DataFrame) -> pd.DataFrame:  # noqa: ARG002
        """Not implemented: a multinomial model has one link per category.

        Raises:
            NotImplementedError: Always.
        """
        msg = (
            "Link-scale predictions with standard errors are only available "
            "for the binomial family. Use predict_proba for multinomial models."
        )
        raise NotImplementedError(msg)


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #

_FAMILIES: dict[str, type] = {}
"""Registry mapping family name strings to concrete ModelFamily classes."""


def register_family(name: str, cls: type) -> None:
    """Register a concrete ``ModelFamily`` class under *name*.

    Raises:
        TypeError: If *cls* does not satisfy the ``ModelFamily``
            protocol.
    """
    try:
        instance = cls()
    except TypeError:
        msg = f"{cls!r} could not be instantiated for protocol check."
        raise TypeError(msg) from None
    if not isinstance(instance, ModelFamily):
        msg = f"{cls!r} does not implement the ModelFamily protocol."
        raise TypeError(msg)
    _FAMILIES[name] = cls


def resolve_family(family: str | ModelFamily, y: pd.Series | None = None) -> ModelFamily:
    """Resolve a family string or instance to a concrete ``ModelFamily``.

    Instances are returned as-is.  ``"auto"`` picks ``"binomial"`` when
    *y* has exactly the values 0 and 1 and ``"multinomial"`` otherwise.

    Raises:
        ValueError: If *family* is ``"auto"`` without *y*, or an
            unregistered name.
    """
    if isinstance(family, ModelFamily):
        return family
    if family == "auto":
        if y is None:
            msg = "resolve_family() requires 'y' when family='auto'."
            raise ValueError(msg)
        levels = _observed_levels(y)
        is_binary = (
            pd.api.types.is_numeric_dtype(y) and len(levels) == 2 and set(levels) <= {0, 1}
        )
        family = "binomial" if is_binary else "multinomial"
        logger.debug("Auto-resolved family for '%s' to %s", y.name, family)

    if family not in _FAMILIES:
        available = ", ".join(sorted(_FAMILIES)) or "(none registered)"
        msg = f"Unknown family {family!r}.  Available families: {available}."
        raise ValueError(msg)

    instance: ModelFamily = _FAMILIES[family]()
    return instance


register_family("binomial", BinomialFamily)
register_family("logistic", BinomialFamily)
register_family("multinomial", MultinomialFamily)
