"""End-to-end analysis pipelines.

Each pipeline is a linear sequence of stages.  Every intermediate
artifact is bound to a local name, passed explicitly to the next
stage and returned in the result object; the only shared input is the
:class:`~logistic_tutorials.AnalysisConfig` session object.

Binary pipeline (fish mortality)::

    make_fish_mortality → summarize / collinearity_check
      → fit mortality ~ length + spots
      → update (drop spots) → compare_nested
      → glm_diagnostics / influential_points / residual_summary
      → confidence_band over a length grid

Multinomial pipeline (programme choice)::

    load_program_choice → relevel(prog, "academic")
      → summarize / frequency tables / crosstab
      → fit prog2 ~ schtyp * write
      → update (drop schtyp:write) → compare_nested
      → odds_ratios → predict_proba / predict_class → confusion_matrix
      → wald_tests → predict over a (schtyp × write) grid → melt
"""

from __future__ import annotations

import logging
import os
from typing import Any

import numpy as np
import pandas as pd

from ._config import AnalysisConfig
from ._results import BinaryAnalysisResult, MultinomialAnalysisResult
from .comparison import compare_nested
from .datasets import load_program_choice, make_fish_mortality, relevel
from .diagnostics import (
    accuracy,
    confusion_matrix,
    glm_diagnostics,
    influential_points,
    residual_summary,
)
from .explore import collinearity_check, crosstab, frequency_table, summarize
from .inference import wald_tests
from .models import FittedModel, fit_model, odds_ratios, update_model
from .prediction import (
    confidence_band,
    melt_probabilities,
    predict_class,
    predict_proba,
    prediction_grid,
)

logger = logging.getLogger(__name__)


def _hold_at_mean(grid: pd.DataFrame, model: FittedModel) -> pd.DataFrame:
    """Fill predictors of *model* missing from *grid* with their training mean."""
    filled = grid.copy()
    for var in model.variables:
        if var not in filled.columns:
            filled[var] = float(model.data[var].mean())
    return filled


# ------------------------------------------------------------------ #
# Binary pipeline
# ------------------------------------------------------------------ #


def run_binary_analysis(config: AnalysisConfig | None = None) -> BinaryAnalysisResult:
    """Fish mortality: binary logistic regression of death on length and spots.

    Args:
        config: Session settings.  ``AnalysisConfig()`` if omitted.

    Returns:
        A :class:`~logistic_tutorials.BinaryAnalysisResult`.
    """
    config = config or AnalysisConfig()
    figures: dict[str, Any] = {}

    # ---- Data & exploration ----------------------------------------
    data = make_fish_mortality(seed=config.seed)
    logger.info("Generated fish mortality table with shape %s", data.shape)
    summary = summarize(data)
    vif = collinearity_check(data, ["spots", "length"])
    logger.info("Predictor VIFs: %s", vif.round(3).to_dict())

    if config.make_plots:
        from . import plotting

        figures["histograms"] = plotting.plot_histograms(data, ["spots", "length", "mortality"])
        figures["mortality_vs_length"] = plotting.plot_scatter(data, "length", "mortality").figure
        figures["mortality_vs_spots"] = plotting.plot_scatter(data, "spots", "mortality").figure
        figures["pairs"] = plotting.plot_pairs(data, ["spots", "length", "mortality"])

    # ---- Model selection -------------------------------------------
    full = fit_model(data, "mortality", ["length", "spots"], family="binomial", maxiter=config.maxiter)
    reduced = update_model(full, drop="spots")
    comparison = compare_nested(full, reduced, alpha=config.alpha)
    selected = comparison.selected
    logger.info("Minimal adequate model: %s (%s)", selected.formula, comparison.reason)

    # ---- Diagnostics -----------------------------------------------
    diag = glm_diagnostics(selected)
    influential = influential_points(diag, selected.n_params)
    resid = residual_summary(selected)
    if resid["warning"]:
        logger.info("Residual diagnostics: %s", resid["warning"])
    if len(influential):
        logger.info("Influential observations: %s", list(influential.index))

    # ---- Prediction ------------------------------------------------
    grid = prediction_grid(length=np.linspace(10.0, 100.0, config.length_points))
    band = confidence_band(selected, _hold_at_mean(grid, selected), z=config.z_critical)

    if config.make_plots:
        from . import plotting

        figures["diagnostics_full"] = plotting.plot_glm_diagnostics(glm_diagnostics(full), full.n_params)
        figures["diagnostics_selected"] = plotting.plot_glm_diagnostics(diag, selected.n_params)
        figures["prediction"] = plotting.plot_confidence_band(
            data,
            "length",
            "mortality",
            band,
            xlabel="Length (cm)",
            ylabel="Mortality probability",
        )

    return BinaryAnalysisResult(
        data=data,
        summary=summary,
        vif=vif,
        full_model=full,
        reduced_model=reduced,
        comparison=comparison,
        selected_model=selected,
        influential=influential,
        residual_summary=resid,
        band=band,
        figures=figures,
    )


# ------------------------------------------------------------------ #
# Multinomial pipeline
# ------------------------------------------------------------------ #


def run_multinomial_analysis(
    path: str | os.PathLike[str],
    config: AnalysisConfig | None = None,
) -> MultinomialAnalysisResult:
    """Programme choice: multinomial regression on school type and writing score.

    Args:
        path: Location of ``hsbdemo.dta`` (local path or URL).
        config: Session settings.  ``AnalysisConfig()`` if omitted.

    Returns:
        A :class:`~logistic_tutorials.MultinomialAnalysisResult`.

    Raises:
        LoadError: If the data file is missing or malformed.
    """
    config = config or AnalysisConfig()
    figures: dict[str, Any] = {}

    # ---- Data & exploration ----------------------------------------
    data = load_program_choice(path)
    data = data.assign(prog2=relevel(data["prog"], "academic"))
    logger.info("Loaded programme-choice table with shape %s", data.shape)

    summary = summarize(data, ["prog", "schtyp", "write"])
    program_counts = frequency_table(data, "prog")
    school_counts = frequency_table(data, "schtyp")
    school_by_program = crosstab(data, "schtyp", "prog")

    if config.make_plots:
        from . import plotting

        figures["write_histogram"] = plotting.plot_histograms(data, ["write"])
        figures["write_by_prog"] = plotting.plot_boxplots(data, "write", "prog")
        figures["write_by_prog_and_schtyp"] = plotting.plot_boxplots(data, "write", "prog", by="schtyp")

    # ---- Model selection -------------------------------------------
    full = fit_model(data, "prog2", "schtyp*write", family="multinomial", maxiter=config.maxiter)
    reduced = update_model(full, drop="schtyp:write")
    comparison = compare_nested(full, reduced, alpha=config.alpha)
    selected = comparison.selected
    logger.info("Minimal adequate model: %s (%s)", selected.formula, comparison.reason)

    ratios = odds_ratios(selected)

    # ---- In-sample prediction --------------------------------------
    training = selected.data
    probabilities = predict_proba(selected, training)
    predicted = predict_class(selected, training)
    confusion = confusion_matrix(training["prog2"], predicted)
    acc = accuracy(training["prog2"], predicted)
    logger.info("In-sample classification accuracy: %.3f", acc)

    # ---- Manual significance tests ---------------------------------
    wald = wald_tests(selected)

    # ---- Prediction grid -------------------------------------------
    low, high = config.write_range
    grid = prediction_grid(
        schtyp=[lvl for lvl, n in school_counts.items() if n > 0],
        write=range(low, high + 1),
    )
    grid_probs = predict_proba(selected, grid)
    long = melt_probabilities(grid, grid_probs, id_vars=["schtyp", "write"])

    if config.make_plots:
        from . import plotting

        figures["probabilities"] = plotting.plot_probability_facets(
            long,
            "write",
            "schtyp",
            xlabel="Writing score",
            group_label="School type",
        )

    return MultinomialAnalysisResult(
        data=data,
        summary=summary,
        program_counts=program_counts,
        school_counts=school_counts,
        school_by_program=school_by_program,
        full_model=full,
        reduced_model=reduced,
        comparison=comparison,
        selected_model=selected,
        odds_ratios=ratios,
        probabilities=probabilities,
        predicted_class=predicted,
        confusion=confusion,
        accuracy=acc,
        wald=wald,
        grid_probabilities=long,
        figures=figures,
    )
