"""Dataset providers for the two tutorial pipelines.

Fish mortality (binary)
~~~~~~~~~~~~~~~~~~~~~~~
A synthetic 50-row table of fish with a spot count, a body length and
a dead/alive indicator.  The mortality labels are a fixed literal
sequence, not generated from the predictors: the generative process
therefore encodes no causal link between length and mortality.  The
labels do, however, contain far more deaths among the shorter
(earlier) fish, which is what produces the negative length
coefficient the tutorial describes.  Spot counts are random on every
call unless a seed is given.

Programme choice (multinomial)
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
The UCLA ``hsbdemo`` Stata file: 200 high-school students with their
programme choice (general, academic, vocation), school type (public,
private) and writing score, among other columns.
"""

from __future__ import annotations

import logging
import os
import struct

import numpy as np
import pandas as pd

from .exceptions import LoadError

logger = logging.getLogger(__name__)

# 1 = dead, 0 = alive.  Order matches the ascending length sequence.
FISH_MORTALITY: tuple[int, ...] = (
    1, 1, 1, 1, 1, 1, 1, 1, 1, 1,
    1, 1, 1, 0, 1, 1, 1, 0, 0, 1,
    0, 1, 0, 1, 1, 1, 0, 0, 0, 0,
    1, 0, 0, 0, 1, 0, 1, 0, 0, 1,
    0, 0, 0, 0, 0, 1, 0, 0, 0, 0,
)  # fmt: skip

PROGRAM_CHOICE_COLUMNS: tuple[str, ...] = ("prog", "schtyp", "write")

HSBDEMO_URL = "https://stats.idre.ucla.edu/stat/data/hsbdemo.dta"


def make_fish_mortality(n: int = 50, seed: int | None = None) -> pd.DataFrame:
    """Build the synthetic fish-mortality table.

    Args:
        n: Number of fish.  Only 50 is supported because the mortality
            labels are a fixed sequence of that length.
        seed: Seed for ``numpy.random.default_rng``.  ``None`` gives a
            different spot vector on every call.

    Returns:
        DataFrame with integer ``spots`` (uniform over 0..9), float
        ``length`` (evenly spaced from 10 to 100) and integer
        ``mortality``.

    Raises:
        ValueError: If *n* differs from the label sequence length.
    """
    if n != len(FISH_MORTALITY):
        msg = (
            f"The fish mortality labels are a fixed sequence of "
            f"{len(FISH_MORTALITY)} values; got n={n}."
        )
        raise ValueError(msg)
    rng = np.random.default_rng(seed)
    return pd.DataFrame(
        {
            "spots": rng.integers(0, 10, size=n),
            "length": np.linspace(10.0, 100.0, n),
            "mortality": np.asarray(FISH_MORTALITY, dtype=int),
        }
    )


def load_program_choice(path: str | os.PathLike[str]) -> pd.DataFrame:
    """Read the ``hsbdemo`` programme-choice table from a Stata file.

    *path* may be a local file or a URL understood by
    :func:`pandas.read_stata`.  Stata value labels are converted to
    ordered-as-stored pandas categoricals.

    Raises:
        LoadError: If a local file does not exist, the file cannot be
            parsed as Stata, or any of ``prog``, ``schtyp``, ``write``
            is missing.
    """
    path_str = os.fspath(path)
    is_url = "://" in path_str
    if not is_url and not os.path.exists(path_str):
        msg = f"Programme-choice data file not found: {path_str}"
        raise LoadError(msg)

    try:
        data = pd.read_stata(path_str)
    except FileNotFoundError as exc:
        msg = f"Programme-choice data file not found: {path_str}"
        raise LoadError(msg) from exc
    except (ValueError, OSError, UnicodeDecodeError, struct.error) as exc:
        msg = f"Could not read {path_str} as a Stata file: {exc}"
        raise LoadError(msg) from exc

    missing = [c for c in PROGRAM_CHOICE_COLUMNS if c not in data.columns]
    if missing:
        msg = (
            f"{path_str} is missing required column(s) {missing} "
            f"(shape {data.shape}, columns {list(data.columns)})."
        )
        raise LoadError(msg)

    logger.debug("Loaded %s with shape %s", path_str, data.shape)
    return data


def relevel(values: pd.Series, ref: object) -> pd.Series:
    """Return *values* as a categorical with *ref* as the baseline level.

    The remaining levels keep their existing order.  Non-categorical
    input is first converted to a categorical with sorted levels.

    Args:
        values: Series to relevel.
        ref: Level to move to the front.

    Returns:
        A new categorical Series with the same index and name.

    Raises:
        ValueError: If *ref* is not one of the levels.
    """
    if isinstance(values.dtype, pd.CategoricalDtype):
        cat = values.astype("category")
    else:
        cat = values.astype(pd.CategoricalDtype(sorted(values.dropna().unique())))
    levels = list(cat.cat.categories)
    if ref not in levels:
        msg = f"Reference level {ref!r} is not a level of '{values.name}': {levels}."
        raise ValueError(msg)
    reordered = [ref] + [lvl for lvl in levels if lvl != ref]
    return cat.cat.reorder_categories(reordered, ordered=False)
