"""
Tutorial 1: Binary Logistic Regression
Synthetic fish mortality data (50 fish, spot count, body length)

Demonstrates:
- ``family="binomial"`` GLM fit of ``mortality ~ length + spots``
- Model simplification with ``update_model`` and ``compare_nested``
  (likelihood-ratio test, Wald p-values and AIC)
- Four-panel GLM diagnostics and influential observations
- A fitted probability curve with a ``expit(fit ± 1.96·se)`` envelope
"""

import logging

import matplotlib.pyplot as plt
import numpy as np

from logistic_tutorials import (
    anova_table,
    collinearity_check,
    compare_nested,
    confidence_band,
    fit_model,
    glm_diagnostics,
    influential_points,
    make_fish_mortality,
    prediction_grid,
    print_anova_table,
    print_comparison_table,
    print_model_summary,
    residual_summary,
    summarize,
    update_model,
)
from logistic_tutorials.plotting import (
    plot_confidence_band,
    plot_glm_diagnostics,
    plot_histograms,
    plot_pairs,
)

logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

# ============================================================================
# Generate data
# ============================================================================

fish = make_fish_mortality()
print(summarize(fish))
print("\nVariance inflation factors:")
print(collinearity_check(fish, ["spots", "length"]))

plot_histograms(fish, ["spots", "length", "mortality"])
plot_pairs(fish, ["spots", "length", "mortality"])

# ============================================================================
# Full model: mortality ~ length + spots
# ============================================================================

model1 = fit_model(fish, "mortality", ["length", "spots"], family="binomial")
print_model_summary(model1, title="Model 1: mortality ~ length + spots")
plot_glm_diagnostics(glm_diagnostics(model1), model1.n_params)

# ============================================================================
# Reduced model: drop spots
# ============================================================================

model2 = update_model(model1, drop="spots")
print_model_summary(model2, title="Model 2: mortality ~ length")

comparison = compare_nested(model1, model2)
print_comparison_table(comparison)
print_anova_table(anova_table([model1, model2]))

selected = comparison.selected
diagnostics = glm_diagnostics(selected)
plot_glm_diagnostics(diagnostics, selected.n_params)
print("\nInfluential observations:")
print(influential_points(diagnostics, selected.n_params))
print("\nDeviance residuals:", residual_summary(selected))

# ============================================================================
# Predicted mortality with a 95% envelope
# ============================================================================

grid = prediction_grid(length=np.linspace(10, 100, 100))
if "spots" in selected.variables:
    grid["spots"] = fish["spots"].mean()
band = confidence_band(selected, grid, z=1.96)
plot_confidence_band(
    fish,
    "length",
    "mortality",
    band,
    xlabel="Length (cm)",
    ylabel="Mortality probability",
)

plt.show()
