"""Configuration for the logistic_tutorials package.

Two layers of configuration exist:

* A package-wide **significance level** used whenever a caller does
  not pass ``alpha`` explicitly (nested-model comparison, significance
  markers in printed tables).
* A per-run :class:`AnalysisConfig` session object, passed explicitly
  from one pipeline stage to the next.  Nothing is read from ambient
  global state once a run has started.

Significance level resolution order (first match wins):
    1. Programmatic override via :func:`set_significance_level`.
    2. The ``LOGISTIC_TUTORIALS_ALPHA`` environment variable.
    3. The default of ``0.05``.

Examples:
    Use a stricter level from the shell::

        export LOGISTIC_TUTORIALS_ALPHA=0.01

    Or programmatically::

        import logistic_tutorials
        logistic_tutorials.set_significance_level(0.01)

    Restore the default resolution order::

        logistic_tutorials.set_significance_level(None)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_ENV_VAR = "LOGISTIC_TUTORIALS_ALPHA"
_DEFAULT_ALPHA = 0.05

# Sentinel indicating "no programmatic override has been set".
_alpha_override: float | None = None


def _validate_alpha(value: float) -> float:
    alpha = float(value)
    if not 0.0 < alpha < 1.0:
        msg = f"Significance level must lie strictly between 0 and 1, got {value!r}."
        raise ValueError(msg)
    return alpha


def get_significance_level() -> float:
    """Return the active significance level.

    Resolution order:
        1. Value set by :func:`set_significance_level`.
        2. ``LOGISTIC_TUTORIALS_ALPHA`` environment variable.
        3. ``0.05``.

    An unparseable environment value is ignored with a warning in the
    log rather than breaking every downstream call.

    Returns:
        A float in ``(0, 1)``.
    """
    # 1. Programmatic override
    if _alpha_override is not None:
        return _alpha_override

    # 2. Environment variable
    env = os.environ.get(_ENV_VAR, "").strip()
    if env:
        try:
            return _validate_alpha(env)
        except ValueError:
            logger.warning(
                "Ignoring invalid %s=%r; falling back to %s.",
                _ENV_VAR,
                env,
                _DEFAULT_ALPHA,
            )

    # 3. Default
    return _DEFAULT_ALPHA


def set_significance_level(alpha: float | None) -> None:
    """Override the package-wide significance level.

    Args:
        alpha: A value strictly between 0 and 1, or ``None`` to
            restore the default resolution order.

    Raises:
        ValueError: If *alpha* is outside ``(0, 1)``.
    """
    global _alpha_override
    _alpha_override = None if alpha is None else _validate_alpha(alpha)


@dataclass(frozen=True)
class AnalysisConfig:
    """Session settings shared by every stage of one pipeline run.

    Attributes:
        alpha: Significance level for nested-model comparison.
            Defaults to :func:`get_significance_level` at construction.
        z_critical: Normal quantile used for confidence envelopes
            around link-scale predictions.
        seed: Seed for the synthetic dataset generator.  ``None``
            draws fresh entropy, so every run sees new spot counts.
        maxiter: Iteration cap handed to the statsmodels optimisers.
        make_plots: Build matplotlib figures for each stage.
        write_range: Inclusive ``(low, high)`` writing-score range of
            the multinomial prediction grid.
        length_points: Number of evenly spaced lengths in the binary
            prediction grid.
    """

    alpha: float = field(default_factory=get_significance_level)
    z_critical: float = 1.96
    seed: int | None = None
    maxiter: int = 100
    make_plots: bool = True
    write_range: tuple[int, int] = (30, 70)
    length_points: int = 100

    def __post_init__(self) -> None:
        _validate_alpha(self.alpha)
        if self.z_critical <= 0:
            msg = f"z_critical must be positive, got {self.z_critical}."
            raise ValueError(msg)
        if self.maxiter < 1:
            msg = f"maxiter must be at least 1, got {self.maxiter}."
            raise ValueError(msg)
        low, high = self.write_range
        if low > high:
            msg = f"write_range must be (low, high) with low <= high, got {self.write_range}."
            raise ValueError(msg)
