from __future__ import annotations
from typing import Iterable, Mapping, Optional

import pandas as pd

from .config import FRACTION_COLUMNS
from .exceptions import SchemaError


def gather_fractions(
    df: pd.DataFrame,
    id_cols: Optional[Iterable[str]] = None,
    fraction_columns: Mapping[str, str] = FRACTION_COLUMNS,
) -> pd.DataFrame:
    """
    Wide-to-long: one row per (input row, phosphorus fraction).

    Fraction columns are selected by name, never by position. Each output row
    carries the identifier columns plus ``fraction`` (display label) and
    ``value`` (the cell as loaded, sentinels included).

    Args:
        df: wide table holding every column in ``fraction_columns``
        id_cols: columns to carry along (default: every non-fraction column)
        fraction_columns: CSV column -> label, in output order

    Returns:
        DataFrame with 5x the input rows, fraction-major in TP, PP, TDP, DRP, DOP order.
    """
    missing = [c for c in fraction_columns if c not in df.columns]
    if missing:
        raise SchemaError(missing, detail="fraction columns not found")

    if id_cols is None:
        id_cols = [c for c in df.columns if c not in fraction_columns]
    else:
        id_cols = list(id_cols)
        absent = [c for c in id_cols if c not in df.columns]
        if absent:
            raise SchemaError(absent, detail="identifier columns not found")

    # object dtype keeps floats and Sentinel members side by side
    wide = df[id_cols + list(fraction_columns)].astype({c: object for c in fraction_columns})
    long = wide.melt(
        id_vars=id_cols,
        value_vars=list(fraction_columns),
        var_name="fraction",
        value_name="value",
        ignore_index=True,
    )
    long["fraction"] = long["fraction"].map(dict(fraction_columns))
    return long
