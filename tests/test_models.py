"""Tests for term expansion, fit_model, update_model and odds_ratios."""

import numpy as np
import pandas as pd
import pytest

from logistic_tutorials.datasets import make_fish_mortality
from logistic_tutorials.exceptions import FitError
from logistic_tutorials.models import (
    expand_terms,
    fit_model,
    odds_ratios,
    term_key,
    update_model,
)

# ------------------------------------------------------------------ #
# Term handling
# ------------------------------------------------------------------ #


class TestExpandTerms:
    def test_star_expands_to_main_effects_and_interaction(self):
        assert expand_terms("schtyp*write") == ("schtyp", "write", "schtyp:write")

    def test_plus_separated(self):
        assert expand_terms("length + spots") == ("length", "spots")

    def test_list_input(self):
        assert expand_terms(["length", "spots"]) == ("length", "spots")

    def test_duplicates_dropped(self):
        assert expand_terms(["a*b", "b:a", "a"]) == ("a", "b", "a:b")

    def test_intercept_and_empty_ignored(self):
        assert expand_terms("1 + x +") == ("x",)
        assert expand_terms(()) == ()

    def test_term_key_is_order_insensitive(self):
        assert term_key("a:b") == term_key("b : a")


# ------------------------------------------------------------------ #
# Binomial fits
# ------------------------------------------------------------------ #


class TestFitBinomial:
    def test_coefficient_count(self, fish):
        model = fit_model(fish, "mortality", ["length", "spots"], family="binomial")
        assert model.n_params == 3
        assert len(model.params) == 3
        assert model.exog_names == ["Intercept", "length", "spots"]

    def test_converges_with_negative_length_effect(self):
        for seed in range(5):
            model = fit_model(make_fish_mortality(seed=seed), "mortality", ["length", "spots"])
            assert model.converged
            assert model.params["length"] < 0

    def test_auto_family_is_binomial(self, fish):
        model = fit_model(fish, "mortality", "length")
        assert model.family.name == "binomial"
        assert model.categories == (0, 1)

    def test_fit_statistics(self, fish):
        model = fit_model(fish, "mortality", "length")
        assert model.deviance == pytest.approx(-2 * model.llf)
        assert model.aic == pytest.approx(model.deviance + 2 * 2)
        assert model.bic == pytest.approx(model.deviance + np.log(50) * 2)
        assert model.nobs == 50

    def test_formula(self, fish):
        assert fit_model(fish, "mortality", ["length", "spots"]).formula == "mortality ~ length + spots"
        assert fit_model(fish, "mortality").formula == "mortality ~ 1"

    def test_intercept_only(self, fish):
        model = fit_model(fish, "mortality")
        assert model.n_params == 1
        assert model.params["Intercept"] == pytest.approx(np.log(26 / 24))

    def test_missing_column(self, fish):
        with pytest.raises(KeyError, match="weight"):
            fit_model(fish, "mortality", ["weight"])

    def test_single_class_response(self, fish):
        with pytest.raises(FitError, match="both 0 and 1"):
            fit_model(fish.assign(mortality=1), "mortality", ["length"], family="binomial")

    def test_response_as_predictor(self, fish):
        with pytest.raises(FitError, match="also appears"):
            fit_model(fish, "mortality", ["mortality"])

    def test_collinear_design(self, fish):
        with pytest.raises(FitError, match="rank deficient"):
            fit_model(fish.assign(length2=2 * fish["length"]), "mortality", ["length", "length2"])

    def test_constant_predictor(self, fish):
        with pytest.raises(FitError, match="spots"):
            fit_model(fish.assign(spots=3), "mortality", ["length", "spots"])

    def test_rows_with_missing_values_dropped(self, fish, caplog):
        data = fish.astype({"spots": float})
        data.loc[[0, 5], "spots"] = np.nan
        with caplog.at_level("WARNING", logger="logistic_tutorials.models"):
            model = fit_model(data, "mortality", ["length", "spots"])
        assert model.nobs == 48
        assert "Dropped 2 of 50 rows" in caplog.text

    def test_does_not_mutate_input(self, fish):
        before = fish.copy()
        fit_model(fish, "mortality", ["length", "spots"])
        pd.testing.assert_frame_equal(fish, before)


# ------------------------------------------------------------------ #
# Multinomial fits
# ------------------------------------------------------------------ #


class TestFitMultinomial:
    def test_reference_category_first(self, program_choice):
        model = fit_model(program_choice, "prog2", "schtyp*write")
        assert model.family.name == "multinomial"
        assert model.categories == ("academic", "general", "vocation")
        assert list(model.params.index) == ["general", "vocation"]

    def test_coefficient_count(self, program_choice):
        model = fit_model(program_choice, "prog2", "schtyp*write")
        # (1 intercept + 3 predictors) per non-reference category
        assert model.params.shape == (2, 4)
        assert model.n_params == 8
        assert model.exog_names == [
            "Intercept",
            "schtyp[T.private]",
            "write",
            "schtyp[T.private]:write",
        ]

    def test_tables_share_shape(self, program_choice):
        model = fit_model(program_choice, "prog2", "schtyp + write")
        assert model.bse.shape == model.params.shape
        assert model.pvalues.columns.equals(model.params.columns)

    def test_write_lowers_odds_of_vocation(self, program_choice):
        model = fit_model(program_choice, "prog2", "schtyp + write")
        assert model.converged
        assert model.params.loc["vocation", "write"] < 0

    def test_releveling_changes_reference(self, program_choice):
        model = fit_model(program_choice, "prog", "write")
        assert model.categories[0] == "general"
        assert list(model.params.index) == ["academic", "vocation"]


# ------------------------------------------------------------------ #
# update_model
# ------------------------------------------------------------------ #


class TestUpdateModel:
    def test_drop_term(self, fish):
        full = fit_model(fish, "mortality", ["length", "spots"])
        reduced = update_model(full, drop="spots")
        assert reduced.terms == ("length",)
        assert reduced.n_params == 2
        assert reduced.family.name == full.family.name
        assert reduced.data.index.equals(full.data.index)

    def test_drop_interaction_any_order(self, program_choice):
        full = fit_model(program_choice, "prog2", "schtyp*write")
        reduced = update_model(full, drop="write:schtyp")
        assert reduced.terms == ("schtyp", "write")

    def test_add_term(self, fish):
        small = fit_model(fish, "mortality", ["length"])
        bigger = update_model(small, add="spots")
        assert bigger.terms == ("length", "spots")
        assert bigger.data.index.equals(small.data.index)
        assert bigger.n_params == 3

    def test_add_variable_with_missing_values(self, fish, caplog):
        data = fish.assign(weight=fish["length"] * 0.3 + fish["spots"])
        data.loc[[2, 9], "weight"] = np.nan
        small = fit_model(data, "mortality", ["length"])
        with caplog.at_level("WARNING", logger="logistic_tutorials.models"):
            bigger = update_model(small, add="weight")
        assert small.nobs == 50
        assert bigger.nobs == 48
        assert "Dropped 2 of 50 rows" in caplog.text

    def test_add_unknown_column(self, fish):
        small = fit_model(fish, "mortality", ["length"])
        with pytest.raises(KeyError, match="weight"):
            update_model(small, add="weight")

    def test_refit_ignores_rows_dropped_by_first_fit(self, fish):
        data = fish.astype({"spots": float})
        data.loc[[0, 5], "spots"] = np.nan
        full = fit_model(data, "mortality", ["length", "spots"])
        reduced = update_model(full, drop="spots")
        assert reduced.nobs == 48
        assert reduced.data.index.equals(full.data.index)

    def test_drop_absent_term(self, fish):
        full = fit_model(fish, "mortality", ["length"])
        with pytest.raises(ValueError, match="Cannot drop"):
            update_model(full, drop="spots")

    def test_input_model_unchanged(self, fish):
        full = fit_model(fish, "mortality", ["length", "spots"])
        params = full.params.copy()
        update_model(full, drop="spots")
        pd.testing.assert_series_equal(full.params, params)


# ------------------------------------------------------------------ #
# Design re-encoding and odds ratios
# ------------------------------------------------------------------ #


class TestDesignMatrix:
    def test_grid_with_one_level_encodes_like_training(self, program_choice):
        model = fit_model(program_choice, "prog2", "schtyp + write")
        grid = pd.DataFrame({"schtyp": ["private", "private"], "write": [40, 60]})
        X = model.design_matrix(grid)
        assert list(X.columns) == model.exog_names
        assert X["schtyp[T.private]"].tolist() == [1.0, 1.0]

    def test_missing_predictor(self, fish):
        model = fit_model(fish, "mortality", ["length", "spots"])
        with pytest.raises(KeyError, match="spots"):
            model.design_matrix(pd.DataFrame({"length": [10.0]}))


class TestOddsRatios:
    def test_exponentiated_coefficients(self, fish):
        model = fit_model(fish, "mortality", ["length"])
        np.testing.assert_allclose(odds_ratios(model), np.exp(model.params))

    def test_multinomial_shape(self, program_choice):
        model = fit_model(program_choice, "prog2", "schtyp + write")
        ratios = odds_ratios(model)
        assert ratios.shape == model.params.shape
        assert (ratios > 0).all().all()
