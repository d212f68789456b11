"""logistic_tutorials: binary and multinomial logistic regression workflows.

Two worked analyses built on statsmodels: a binomial GLM of fish
mortality on length and spot count (fit, simplify by nested
comparison, diagnose, predict with a confidence envelope) and a
multinomial regression of high-school programme choice on school type
and writing score (relevel, fit, likelihood-ratio test, odds ratios,
manual Wald tests, predicted probabilities over a grid).

Public API:
    .. autosummary::
        run_binary_analysis
        run_multinomial_analysis
        make_fish_mortality
        load_program_choice
        relevel
        summarize
        frequency_table
        crosstab
        subset
        collinearity_check
        fit_model
        update_model
        odds_ratios
        compare_nested
        anova_table
        predict_link
        predict_proba
        predict_class
        confidence_band
        prediction_grid
        melt_probabilities
        wald_z_scores
        two_tailed_p_values
        wald_tests
        glm_diagnostics
        influential_points
        residual_summary
        confusion_matrix
        accuracy
        print_model_summary
        print_comparison_table
        print_anova_table
        print_wald_table
        get_significance_level
        set_significance_level
        AnalysisConfig
        ModelFamily
        BinomialFamily
        MultinomialFamily
        resolve_family
        register_family
        FittedModel
        ComparisonResult
        WaldTable
        BinaryAnalysisResult
        MultinomialAnalysisResult

Plotting helpers live in :mod:`logistic_tutorials.plotting` and are
not imported here, so that importing the package does not pull in
matplotlib.
"""

from ._config import AnalysisConfig, get_significance_level, set_significance_level
from ._results import (
    BinaryAnalysisResult,
    ComparisonResult,
    MultinomialAnalysisResult,
    WaldTable,
)
from .comparison import anova_table, compare_nested
from .datasets import HSBDEMO_URL, load_program_choice, make_fish_mortality, relevel
from .diagnostics import (
    accuracy,
    confusion_matrix,
    glm_diagnostics,
    influential_points,
    residual_summary,
)
from .display import (
    print_anova_table,
    print_comparison_table,
    print_model_summary,
    print_wald_table,
)
from .exceptions import (
    AnalysisError,
    ComparisonError,
    DimensionError,
    FitError,
    LoadError,
)
from .explore import collinearity_check, crosstab, frequency_table, subset, summarize
from .families import (
    BinomialFamily,
    ModelFamily,
    MultinomialFamily,
    register_family,
    resolve_family,
)
from .inference import two_tailed_p_values, wald_tests, wald_z_scores
from .models import FittedModel, fit_model, odds_ratios, update_model
from .pipelines import run_binary_analysis, run_multinomial_analysis
from .prediction import (
    confidence_band,
    melt_probabilities,
    predict_class,
    predict_link,
    predict_proba,
    prediction_grid,
)

__all__ = [
    "AnalysisConfig",
    "BinaryAnalysisResult",
    "ComparisonResult",
    "MultinomialAnalysisResult",
    "WaldTable",
    "FittedModel",
    "AnalysisError",
    "ComparisonError",
    "DimensionError",
    "FitError",
    "LoadError",
    "HSBDEMO_URL",
    "run_binary_analysis",
    "run_multinomial_analysis",
    "make_fish_mortality",
    "load_program_choice",
    "relevel",
    "summarize",
    "frequency_table",
    "crosstab",
    "subset",
    "collinearity_check",
    "fit_model",
    "update_model",
    "odds_ratios",
    "compare_nested",
    "anova_table",
    "predict_link",
    "predict_proba",
    "predict_class",
    "confidence_band",
    "prediction_grid",
    "melt_probabilities",
    "wald_z_scores",
    "two_tailed_p_values",
    "wald_tests",
    "glm_diagnostics",
    "influential_points",
    "residual_summary",
    "confusion_matrix",
    "accuracy",
    "print_model_summary",
    "print_comparison_table",
    "print_anova_table",
    "print_wald_table",
    "get_significance_level",
    "set_significance_level",
    "ModelFamily",
    "BinomialFamily",
    "MultinomialFamily",
    "resolve_family",
    "register_family",
]

__version__ = "0.1.0"
