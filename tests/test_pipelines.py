"""End-to-end tests for the two analysis pipelines."""

import json

import numpy as np
import pytest

from logistic_tutorials import AnalysisConfig, run_binary_analysis, run_multinomial_analysis
from logistic_tutorials.exceptions import LoadError

pytestmark = pytest.mark.usefixtures("close_figures")


class TestBinaryPipeline:
    def test_runs_and_selects_nested_model(self):
        result = run_binary_analysis(AnalysisConfig(seed=11, make_plots=False))
        assert result.full_model.terms == ("length", "spots")
        assert result.reduced_model.terms == ("length",)
        assert result.selected_model is result.comparison.selected
        assert result.figures == {}

    def test_length_effect_negative(self):
        result = run_binary_analysis(AnalysisConfig(seed=11, make_plots=False))
        assert result.full_model.converged
        assert result.full_model.params["length"] < 0

    def test_selects_length_when_spots_not_significant(self):
        for seed in range(10):
            result = run_binary_analysis(AnalysisConfig(seed=seed, make_plots=False))
            if result.full_model.pvalues["spots"] > 0.05:
                assert result.selected_model.formula == "mortality ~ length"

    def test_band_over_length_grid(self):
        config = AnalysisConfig(seed=11, make_plots=False, length_points=40)
        band = run_binary_analysis(config).band
        assert len(band) == 40
        assert band["length"].iloc[0] == 10.0
        assert band["length"].iloc[-1] == 100.0
        assert (band["lower"] <= band["upper"]).all()

    def test_seeded_runs_are_reproducible(self):
        a = run_binary_analysis(AnalysisConfig(seed=5, make_plots=False))
        b = run_binary_analysis(AnalysisConfig(seed=5, make_plots=False))
        np.testing.assert_allclose(a.band["fit"], b.band["fit"])
        assert a.comparison.p_value == b.comparison.p_value

    def test_figures(self):
        result = run_binary_analysis(AnalysisConfig(seed=11))
        assert {"histograms", "pairs", "diagnostics_selected", "prediction"} <= set(result.figures)

    def test_to_dict_is_json_serialisable(self):
        result = run_binary_analysis(AnalysisConfig(seed=11, make_plots=False))
        payload = result.to_dict()
        assert payload["selected_model"] == result.selected_model.formula
        assert "figures" not in payload
        json.dumps(payload)


class TestMultinomialPipeline:
    def test_runs(self, program_choice_dta):
        result = run_multinomial_analysis(program_choice_dta, AnalysisConfig(make_plots=False))
        assert result.full_model.terms == ("schtyp", "write", "schtyp:write")
        assert result.reduced_model.terms == ("schtyp", "write")
        assert result.selected_model.categories[0] == "academic"
        assert list(result.data["prog2"].cat.categories)[0] == "academic"

    def test_predictions_consistent(self, program_choice_dta):
        result = run_multinomial_analysis(program_choice_dta, AnalysisConfig(make_plots=False))
        np.testing.assert_allclose(result.probabilities.sum(axis=1), 1.0)
        expected = result.probabilities.idxmax(axis=1).astype(str).tolist()
        assert result.predicted_class.astype(str).tolist() == expected
        assert result.confusion.to_numpy().sum() == len(result.data)
        assert 0.0 <= result.accuracy <= 1.0

    def test_odds_ratios_and_wald(self, program_choice_dta):
        result = run_multinomial_analysis(program_choice_dta, AnalysisConfig(make_plots=False))
        np.testing.assert_allclose(result.odds_ratios, np.exp(result.selected_model.params))
        assert result.wald.z_scores.shape == result.selected_model.params.shape

    def test_grid_covers_write_range(self, program_choice_dta):
        config = AnalysisConfig(make_plots=False, write_range=(35, 45))
        long = run_multinomial_analysis(program_choice_dta, config).grid_probabilities
        assert long["write"].min() == 35
        assert long["write"].max() == 45
        assert len(long) == 2 * 11 * 3
        totals = long.groupby(["schtyp", "write"], observed=True)["probability"].sum()
        np.testing.assert_allclose(totals, 1.0)

    def test_figures(self, program_choice_dta):
        result = run_multinomial_analysis(program_choice_dta)
        assert {"write_histogram", "write_by_prog", "probabilities"} <= set(result.figures)

    def test_to_dict(self, program_choice_dta):
        payload = run_multinomial_analysis(program_choice_dta, AnalysisConfig(make_plots=False)).to_dict()
        assert payload["comparison"]["df_diff"] == 2
        assert "grid_probabilities" not in payload
        json.dumps(payload)

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError):
            run_multinomial_analysis(tmp_path / "hsbdemo.dta")
