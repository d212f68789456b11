"""Shared fixtures: the fish table and a synthetic hsbdemo-like table."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

import logistic_tutorials._config as _cfg
from logistic_tutorials.datasets import make_fish_mortality, relevel


def make_program_choice(n=200, seed=0):
    """hsbdemo-shaped table: prog / schtyp categoricals, integer write.

    Programme choice is drawn from a softmax with academic as the
    baseline, so writing score lowers the odds of general and
    vocational programmes and private schooling lowers them further.
    """
    rng = np.random.default_rng(seed)
    private = rng.random(n) < 0.16
    write = np.clip(np.round(rng.normal(52.8, 9.5, n)), 31, 67).astype(int)
    eta_general = 2.8 - 0.057 * write - 0.55 * private
    eta_vocation = 5.2 - 0.11 * write - 1.2 * private
    logits = np.column_stack([eta_general, np.zeros(n), eta_vocation])
    probs = np.exp(logits) / np.exp(logits).sum(axis=1, keepdims=True)
    levels = np.array(["general", "academic", "vocation"])
    prog = levels[[rng.choice(3, p=row) for row in probs]]
    return pd.DataFrame(
        {
            "id": np.arange(1, n + 1),
            "prog": pd.Categorical(prog, categories=list(levels)),
            "schtyp": pd.Categorical(
                np.where(private, "private", "public"), categories=["public", "private"]
            ),
            "write": write,
        }
    )


@pytest.fixture(autouse=True)
def _reset_significance_level(monkeypatch):
    monkeypatch.delenv("LOGISTIC_TUTORIALS_ALPHA", raising=False)
    _cfg._alpha_override = None
    yield
    _cfg._alpha_override = None


@pytest.fixture()
def fish():
    return make_fish_mortality(seed=7)


@pytest.fixture()
def program_choice():
    data = make_program_choice()
    return data.assign(prog2=relevel(data["prog"], "academic"))


@pytest.fixture()
def program_choice_dta(tmp_path):
    path = tmp_path / "hsbdemo.dta"
    make_program_choice().to_stata(path, write_index=False)
    return path


@pytest.fixture()
def close_figures():
    import matplotlib.pyplot as plt

    yield
    plt.close("all")
