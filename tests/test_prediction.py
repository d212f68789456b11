"""Tests for link-scale prediction, bands, class prediction and grids."""

import numpy as np
import pandas as pd
import pytest
from scipy.special import expit

from logistic_tutorials.models import fit_model
from logistic_tutorials.prediction import (
    confidence_band,
    melt_probabilities,
    predict_class,
    predict_link,
    predict_proba,
    prediction_grid,
)


@pytest.fixture()
def length_model(fish):
    return fit_model(fish, "mortality", ["length"], family="binomial")


@pytest.fixture()
def program_model(program_choice):
    return fit_model(program_choice, "prog2", "schtyp + write", family="multinomial")


@pytest.fixture()
def length_grid():
    return pd.DataFrame({"length": np.linspace(10, 100, 25)})


# ------------------------------------------------------------------ #
# Binomial predictions
# ------------------------------------------------------------------ #


class TestPredictLink:
    def test_columns_and_index(self, length_model, length_grid):
        link = predict_link(length_model, length_grid)
        assert list(link.columns) == ["fit", "se_fit"]
        assert link.index.equals(length_grid.index)

    def test_fit_is_linear_predictor(self, length_model, length_grid):
        link = predict_link(length_model, length_grid)
        expected = length_model.params["Intercept"] + length_model.params["length"] * length_grid["length"]
        np.testing.assert_allclose(link["fit"], expected)

    def test_multinomial_not_supported(self, program_model, program_choice):
        with pytest.raises(NotImplementedError):
            predict_link(program_model, program_choice)


class TestConfidenceBand:
    def test_band_brackets_fit(self, length_model, length_grid):
        band = confidence_band(length_model, length_grid)
        assert (band["lower"] <= band["fit"]).all()
        assert (band["fit"] <= band["upper"]).all()
        assert ((band["lower"] > 0) & (band["upper"] < 1)).all()

    def test_band_is_expit_of_link_envelope(self, length_model, length_grid):
        link = predict_link(length_model, length_grid)
        band = confidence_band(length_model, length_grid, z=1.96)
        np.testing.assert_allclose(band["upper"], expit(link["fit"] + 1.96 * link["se_fit"]))
        np.testing.assert_allclose(band["lower"], expit(link["fit"] - 1.96 * link["se_fit"]))

    def test_fit_decreases_with_length(self, length_model, length_grid):
        band = confidence_band(length_model, length_grid)
        assert band["fit"].is_monotonic_decreasing

    def test_wider_z_wider_band(self, length_model, length_grid):
        narrow = confidence_band(length_model, length_grid, z=1.0)
        wide = confidence_band(length_model, length_grid, z=2.576)
        assert ((wide["upper"] - wide["lower"]) > (narrow["upper"] - narrow["lower"])).all()

    def test_keeps_grid_columns(self, length_model, length_grid):
        band = confidence_band(length_model, length_grid)
        assert list(band.columns) == ["length", "fit", "lower", "upper"]
        assert "fit" not in length_grid.columns


class TestPredictProbaBinomial:
    def test_series_of_probabilities(self, length_model, length_grid):
        proba = predict_proba(length_model, length_grid)
        assert isinstance(proba, pd.Series)
        assert ((proba > 0) & (proba < 1)).all()

    def test_matches_band_fit(self, length_model, length_grid):
        proba = predict_proba(length_model, length_grid)
        np.testing.assert_allclose(proba, confidence_band(length_model, length_grid)["fit"])


# ------------------------------------------------------------------ #
# Multinomial predictions
# ------------------------------------------------------------------ #


class TestPredictProbaMultinomial:
    def test_rows_sum_to_one(self, program_model, program_choice):
        proba = predict_proba(program_model, program_choice)
        assert list(proba.columns) == ["academic", "general", "vocation"]
        np.testing.assert_allclose(proba.sum(axis=1), 1.0)
        assert ((proba >= 0) & (proba <= 1)).all().all()

    def test_deterministic(self, program_model, program_choice):
        a = predict_proba(program_model, program_choice)
        b = predict_proba(program_model, program_choice)
        pd.testing.assert_frame_equal(a, b)

    def test_matches_fitted_values(self, program_model, program_choice):
        proba = predict_proba(program_model, program_choice)
        np.testing.assert_allclose(proba.to_numpy(), np.asarray(program_model.result.predict()))


class TestPredictClass:
    def test_is_argmax_of_probabilities(self, program_model, program_choice):
        proba = predict_proba(program_model, program_choice)
        classes = predict_class(program_model, program_choice)
        expected = proba.idxmax(axis=1)
        assert classes.astype(str).tolist() == expected.astype(str).tolist()

    def test_categories_follow_model(self, program_model, program_choice):
        classes = predict_class(program_model, program_choice)
        assert list(classes.cat.categories) == ["academic", "general", "vocation"]
        assert classes.name == "predicted"

    def test_binomial_classes(self, length_model, length_grid):
        classes = predict_class(length_model, length_grid)
        proba = predict_proba(length_model, length_grid)
        assert classes.tolist() == [1 if p > 0.5 else 0 for p in proba]


# ------------------------------------------------------------------ #
# Grids
# ------------------------------------------------------------------ #


class TestPredictionGrid:
    def test_first_axis_varies_slowest(self):
        grid = prediction_grid(schtyp=["public", "private"], write=range(30, 33))
        assert list(grid.columns) == ["schtyp", "write"]
        assert grid["schtyp"].tolist() == ["public"] * 3 + ["private"] * 3
        assert grid["write"].tolist() == [30, 31, 32] * 2

    def test_full_size(self):
        grid = prediction_grid(schtyp=["public", "private"], write=range(30, 71))
        assert len(grid) == 82

    def test_no_axes(self):
        with pytest.raises(ValueError, match="at least one axis"):
            prediction_grid()

    def test_empty_axis(self):
        with pytest.raises(ValueError, match="empty"):
            prediction_grid(write=[])

    def test_grid_predictions(self, program_model):
        grid = prediction_grid(schtyp=["public", "private"], write=range(30, 71))
        proba = predict_proba(program_model, grid)
        assert proba.shape == (82, 3)
        np.testing.assert_allclose(proba.sum(axis=1), 1.0)
        public = proba[grid["schtyp"] == "public"]
        # Higher writing scores favour the academic programme.
        assert public["academic"].iloc[-1] > public["academic"].iloc[0]


class TestMeltProbabilities:
    def test_long_form(self, program_model):
        grid = prediction_grid(schtyp=["public", "private"], write=range(30, 71))
        long = melt_probabilities(grid, predict_proba(program_model, grid))
        assert len(long) == 82 * 3
        assert list(long.columns) == ["schtyp", "write", "category", "probability"]
        assert list(long["category"].cat.categories) == ["academic", "general", "vocation"]

    def test_probabilities_sum_to_one_per_point(self, program_model):
        grid = prediction_grid(schtyp=["public", "private"], write=range(30, 71))
        long = melt_probabilities(grid, predict_proba(program_model, grid), id_vars=["schtyp", "write"])
        totals = long.groupby(["schtyp", "write"], observed=True)["probability"].sum()
        np.testing.assert_allclose(totals, 1.0)

    def test_misaligned(self, program_model):
        grid = prediction_grid(write=range(30, 40))
        proba = pd.DataFrame({"a": np.full(5, 0.5), "b": np.full(5, 0.5)})
        with pytest.raises(ValueError, match="share an index"):
            melt_probabilities(grid, proba)
