"""
Sentinel values recorded in place of a measurement.

A measurement cell holds one of:
- a float (a real reading),
- a ``Sentinel`` member (dry streambed, site not reachable, sample lost),
- NaN (nothing recorded).

Sentinels are kept as enum members through every table operation so they can
never be averaged or plotted as numbers by accident.
"""
from __future__ import annotations
import logging
import math
from enum import Enum
from numbers import Real
from typing import Iterable, Tuple

import numpy as np
import pandas as pd

from .exceptions import SchemaError

logger = logging.getLogger(__name__)


class Sentinel(Enum):
    DRY = "dry"
    NO_ACCESS = "no_access"
    LOST = "lost"

    @classmethod
    def from_token(cls, token: str) -> "Sentinel":
        return cls(token.strip().lower())

    def __str__(self) -> str:
        return self.value


ALL_SENTINELS: Tuple[Sentinel, ...] = tuple(Sentinel)


def as_sentinels(tokens: Iterable) -> Tuple[Sentinel, ...]:
    """Normalize a mix of token strings and Sentinel members."""
    return tuple(t if isinstance(t, Sentinel) else Sentinel.from_token(t) for t in tokens)


def is_sentinel(x) -> bool:
    return isinstance(x, Sentinel)


def is_number(x) -> bool:
    """True for real, non-NaN numbers (bools excluded)."""
    if isinstance(x, (bool, np.bool_)) or not isinstance(x, Real):
        return False
    return not math.isnan(x)


def is_missing(x) -> bool:
    if x is None or x is pd.NA:
        return True
    return isinstance(x, Real) and not isinstance(x, bool) and math.isnan(x)


def parse_cell(text, tokens: Iterable = ALL_SENTINELS):
    """
    Parse one raw cell into a float, a Sentinel, or NaN.

    Raises ValueError for a token that is neither numeric nor an allowed sentinel;
    a sentinel token not listed in ``tokens`` is rejected as well.
    """
    if is_missing(text):
        return np.nan
    if isinstance(text, Sentinel):
        s = text.value
    elif is_number(text):
        return float(text)
    else:
        s = str(text).strip()
    if s == "":
        return np.nan
    allowed = {t.value for t in as_sentinels(tokens)}
    if s.lower() in allowed:
        return Sentinel.from_token(s)
    try:
        value = float(s)
    except ValueError:
        raise ValueError(f"not a number or allowed sentinel: {s!r}") from None
    if math.isnan(value):
        raise ValueError(f"not a number or allowed sentinel: {s!r}")
    return value


def sentinel_mask(values: pd.Series, sentinels: Iterable = ALL_SENTINELS) -> pd.Series:
    allowed = set(as_sentinels(sentinels))
    return values.map(lambda v: isinstance(v, Sentinel) and v in allowed).astype(bool)


def numeric_mask(values: pd.Series) -> pd.Series:
    return values.map(is_number).astype(bool)


def split_sentinels(
    df: pd.DataFrame,
    value_col: str = "value",
    sentinels: Iterable = ALL_SENTINELS,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split a table into a numeric-only table and a sentinel table.

    Returns
    -------
    numeric : rows whose ``value_col`` is a number, cast to float64
    sentinel : rows whose ``value_col`` is one of ``sentinels``, with an added
        ``sentinel`` column holding the token string

    The outputs are disjoint. Rows with a missing value, or with a sentinel
    outside ``sentinels``, land in neither.
    """
    if value_col not in df.columns:
        raise SchemaError([value_col], detail="value column not found")

    values = df[value_col]
    is_num = numeric_mask(values)
    is_sent = sentinel_mask(values, sentinels)

    numeric = df.loc[is_num].copy()
    numeric[value_col] = numeric[value_col].astype("float64")

    tagged = df.loc[is_sent].copy()
    tagged["sentinel"] = tagged[value_col].map(lambda s: s.value)

    dropped = len(df) - int(is_num.sum()) - int(is_sent.sum())
    if dropped:
        logger.debug("split_sentinels: %d row(s) with no usable '%s' dropped", dropped, value_col)
    return numeric, tagged


def count_sentinels(df: pd.DataFrame, cols: Iterable[str] | None = None) -> dict[str, int]:
    """Sentinel counts by token across the given columns (all columns by default)."""
    cols = list(df.columns if cols is None else cols)
    counts = {s.value: 0 for s in Sentinel}
    for col in cols:
        for v in df[col]:
            if is_sentinel(v):
                counts[v.value] += 1
    return {k: v for k, v in counts.items() if v}
