"""Typed result objects.

Frozen dataclasses that provide:

* **Attribute access**: ``result.preferred``, ``result.p_value``.
* **Dict-like access**: ``result["preferred"]``, ``result.get("key")``,
  ``"key" in result`` for consumers that prefer bracket syntax.
* **Serialisation**: ``.to_dict()`` returns a plain ``dict[str, Any]``
  with NumPy and pandas values converted to native Python.

Results are frozen because they are a snapshot of a completed
analysis step; later steps read them but never change them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from .models import FittedModel

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy and pandas values to Python natives.

    DataFrames become ``{row_label: {column: value}}`` dicts and
    Series become ``{label: value}`` dicts so that :meth:`to_dict`
    returns a fully JSON-serialisable structure (labels are turned
    into strings).
    """
    if isinstance(obj, pd.DataFrame):
        return {
            str(idx): {str(col): _numpy_to_python(val) for col, val in row.items()}
            for idx, row in obj.iterrows()
        }
    if isinstance(obj, pd.Series):
        return {str(idx): _numpy_to_python(val) for idx, val in obj.items()}
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


def _model_formula(model: FittedModel | None) -> str | None:
    return None if model is None else model.formula


# ------------------------------------------------------------------ #
# Dict-compatibility mixin
# ------------------------------------------------------------------ #


class _DictAccessMixin:
    """Dict-like access convenience for result dataclasses.

    Subclasses may extend ``_SERIALIZERS`` to register conversion
    functions for non-primitive fields (e.g. ``FittedModel`` → its
    formula string) and ``_EXCLUDE_FROM_DICT`` for fields that should
    not be serialised at all (figures, raw tables).
    """

    _SERIALIZERS: ClassVar[dict[str, Any]] = {}

    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset({"figures"})

    def __getitem__(self, key: str) -> Any:
        """Attribute lookup via bracket syntax."""
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        """Attribute lookup with a fallback default."""
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        """Membership test: ``"key" in result``."""
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain, JSON-serialisable dictionary."""
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._EXCLUDE_FROM_DICT:
                continue
            val = getattr(self, f.name)
            if f.name in self._SERIALIZERS:
                val = self._SERIALIZERS[f.name](val)
            result[f.name] = _numpy_to_python(val)
        return result


# ------------------------------------------------------------------ #
# ComparisonResult
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class ComparisonResult(_DictAccessMixin):
    """Outcome of a nested-model comparison.

    Returned by :func:`~logistic_tutorials.comparison.compare_nested`.
    """

    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "full": _model_formula,
        "reduced": _model_formula,
    }

    full: FittedModel = field(repr=False)
    reduced: FittedModel = field(repr=False)

    # ---- Likelihood-ratio test -------------------------------------
    llf_full: float
    llf_reduced: float
    lr_statistic: float
    """``2·(ℓ_full − ℓ_reduced)``, clipped at zero."""

    df_diff: int
    """Number of parameters dropped."""

    p_value: float
    """χ² upper-tail probability of ``lr_statistic`` on ``df_diff``."""

    # ---- Information criteria --------------------------------------
    aic_full: float
    aic_reduced: float

    # ---- Dropped coefficients --------------------------------------
    dropped_terms: tuple[str, ...]
    dropped_wald_p: tuple[float, ...]
    """Wald p-values of every dropped coefficient in the full model."""

    # ---- Decision --------------------------------------------------
    alpha: float
    preferred: str
    """``"full"`` or ``"reduced"``."""

    reason: str

    @property
    def selected(self) -> FittedModel:
        """The preferred model object."""
        return self.reduced if self.preferred == "reduced" else self.full


# ------------------------------------------------------------------ #
# WaldTable
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class WaldTable(_DictAccessMixin):
    """Manually derived Wald z-scores and two-tailed p-values.

    Both tables share the coefficient table's shape and labels.
    """

    z_scores: pd.Series | pd.DataFrame
    p_values: pd.Series | pd.DataFrame


# ------------------------------------------------------------------ #
# Pipeline results
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class BinaryAnalysisResult(_DictAccessMixin):
    """Every artifact of the fish-mortality (binary) pipeline."""

    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "full_model": _model_formula,
        "reduced_model": _model_formula,
        "selected_model": _model_formula,
        "comparison": lambda c: c.to_dict(),
    }
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset({"figures", "data", "band"})

    data: pd.DataFrame = field(repr=False)
    summary: pd.DataFrame = field(repr=False)
    vif: pd.Series
    full_model: FittedModel
    reduced_model: FittedModel
    comparison: ComparisonResult
    selected_model: FittedModel
    influential: pd.DataFrame = field(repr=False)
    residual_summary: dict[str, Any]
    band: pd.DataFrame = field(repr=False)
    figures: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class MultinomialAnalysisResult(_DictAccessMixin):
    """Every artifact of the programme-choice (multinomial) pipeline."""

    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "full_model": _model_formula,
        "reduced_model": _model_formula,
        "selected_model": _model_formula,
        "comparison": lambda c: c.to_dict(),
        "wald": lambda w: w.to_dict(),
        "predicted_class": lambda s: s.astype(str).tolist(),
    }
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset(
        {"figures", "data", "probabilities", "grid_probabilities"}
    )

    data: pd.DataFrame = field(repr=False)
    summary: pd.DataFrame = field(repr=False)
    program_counts: pd.Series
    school_counts: pd.Series
    school_by_program: pd.DataFrame
    full_model: FittedModel
    reduced_model: FittedModel
    comparison: ComparisonResult
    selected_model: FittedModel
    odds_ratios: pd.DataFrame
    probabilities: pd.DataFrame = field(repr=False)
    predicted_class: pd.Series = field(repr=False)
    confusion: pd.DataFrame
    accuracy: float
    wald: WaldTable
    grid_probabilities: pd.DataFrame = field(repr=False)
    figures: dict[str, Any] = field(default_factory=dict, repr=False)
