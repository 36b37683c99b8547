from __future__ import annotations
from typing import Iterable, Sequence

import pandas as pd

from .config import FRACTIONS, HYDRO_PERIODS
from .exceptions import SchemaError

# column -> fixed display order (not lexical: Base < Peak and DOP < DRP alphabetically)
ORDERS = {
    "hydro": HYDRO_PERIODS,
    "fraction": FRACTIONS,
}
SUFFIX = "_ord"


def ordered(values: pd.Series, levels: Sequence[str]) -> pd.Categorical:
    unknown = sorted(set(values.dropna()) - set(levels))
    if unknown:
        raise SchemaError([values.name], detail=f"unexpected labels {unknown}, expected {list(levels)}")
    return pd.Categorical(values, categories=list(levels), ordered=True)


def order_categories(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add ordered-category columns for ``hydro`` and/or ``fraction``.

    New columns are ``hydro_ord`` (Rise < Peak < Base) and ``fraction_ord``
    (TP < PP < TDP < DRP < DOP). Missing labels stay missing; any other
    label raises SchemaError.
    """
    present = [c for c in ORDERS if c in df.columns]
    if not present:
        raise SchemaError(list(ORDERS), detail="no categorical column to order")
    out = df.copy()
    for col in present:
        out[col + SUFFIX] = ordered(out[col], ORDERS[col])
    return out


def sort_ordered(df: pd.DataFrame, by: Iterable[str] = ("site", "hydro", "fraction")) -> pd.DataFrame:
    """Sort by the given columns, using the ordered ``*_ord`` column where one exists."""
    keys = []
    for col in by:
        if col + SUFFIX in df.columns:
            keys.append(col + SUFFIX)
        elif col in df.columns:
            keys.append(col)
    return df.sort_values(keys, kind="stable").reset_index(drop=True)
