"""Table input helpers.

All public functions accept pandas DataFrames.  Polars DataFrames (or
LazyFrames) are converted to pandas at the boundary so that the
statsmodels and patsy code underneath only ever sees pandas.

Polars is **not** a required dependency.  If it is not installed, the
converter simply passes pandas objects through untouched.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, TypeAlias

import pandas as pd

if TYPE_CHECKING:
    import polars as pl

    DataFrameLike: TypeAlias = pd.DataFrame | pl.DataFrame | pl.LazyFrame
else:
    DataFrameLike: TypeAlias = pd.DataFrame

# Runtime detection; polars stays optional.
try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False


def _ensure_pandas_df(obj: DataFrameLike, *, name: str = "data") -> pd.DataFrame:
    """Convert *obj* to a :class:`pandas.DataFrame` if necessary.

    Args:
        obj: A pandas or Polars DataFrame (or LazyFrame).
        name: Label used in error messages.

    Returns:
        A pandas ``DataFrame``.

    Raises:
        TypeError: If *obj* is not a recognised DataFrame type.
    """
    if isinstance(obj, pd.DataFrame):
        return obj

    if _HAS_POLARS:
        if isinstance(obj, pl.LazyFrame):
            return obj.collect().to_pandas()
        if isinstance(obj, pl.DataFrame):
            return obj.to_pandas()

    raise TypeError(
        f"'{name}' must be a pandas DataFrame"
        + (" or Polars DataFrame/LazyFrame" if _HAS_POLARS else "")
        + f", got {type(obj).__name__}."
    )


def _require_columns(data: pd.DataFrame, columns: Iterable[str], *, name: str = "data") -> None:
    """Raise ``KeyError`` listing every column of *columns* absent from *data*."""
    missing = [c for c in columns if c not in data.columns]
    if missing:
        msg = (
            f"Column(s) {missing} not found in '{name}' "
            f"(shape {data.shape}, columns {list(data.columns)})."
        )
        raise KeyError(msg)
