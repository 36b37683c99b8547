from __future__ import annotations
from collections import Counter
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from .config import MEANS_KEYS, MEASUREMENT_COLUMNS
from .exceptions import SchemaError
from .sentinels import Sentinel, is_number

_SENTINEL_RANK = {s: i for i, s in enumerate(Sentinel)}


def mean_or_sentinel(values: Iterable):
    """
    Mean of the numeric values; sentinels are excluded, never counted as zero.

    With no numeric value at all, the most frequent sentinel is returned
    (ties go to the earlier member: DRY, NO_ACCESS, LOST). An all-missing
    group returns NaN.
    """
    values = list(values)
    nums = [float(v) for v in values if is_number(v)]
    if nums:
        return float(np.mean(nums))
    tags = Counter(v for v in values if isinstance(v, Sentinel))
    if tags:
        return min(tags, key=lambda s: (-tags[s], _SENTINEL_RANK[s]))
    return np.nan


def mean_by_period(
    df: pd.DataFrame,
    keys: Sequence[str] = MEANS_KEYS,
    value_cols: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Collapse sample events (two sampling years) to one row per (site, hydro).

    Args:
        df: per-event table; value cells are floats, Sentinel members or NaN
        keys: grouping columns
        value_cols: columns to average (default: the measurement columns present)

    Returns:
        One row per group, in order of first appearance. Other columns that are
        constant per site (``stream``, ``stream_name``) carry their first value.
    """
    keys = list(keys)
    missing = [k for k in keys if k not in df.columns]
    if missing:
        raise SchemaError(missing, detail="grouping columns not found")

    if value_cols is None:
        value_cols = [c for c in MEASUREMENT_COLUMNS if c in df.columns]
    else:
        absent = [c for c in value_cols if c not in df.columns]
        if absent:
            raise SchemaError(absent, detail="value columns not found")

    carry = [c for c in ("stream", "stream_name") if c in df.columns and c not in keys]
    how = {c: "first" for c in carry}
    how.update({c: mean_or_sentinel for c in value_cols})

    grouped = df.groupby(keys, sort=False, dropna=False).agg(how).reset_index()
    for col in value_cols:
        if not grouped[col].map(lambda v: isinstance(v, Sentinel)).any():
            grouped[col] = grouped[col].astype("float64")
    return grouped[keys + carry + list(value_cols)]
