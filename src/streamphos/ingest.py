from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

import pandas as pd

from .config import (
    RAW_FLOW_CSV, RAW_CONC_CSV, RAW_LOAD_CSV,
    RAW_FLOWMEANS_CSV, RAW_CONCMEANS_CSV, RAW_LOADMEANS_CSV,
    RAW_HISTORIC_CSV, RAW_SITES_CSV,
    FLOW_SENTINELS, CONC_SENTINELS, LOAD_SENTINELS, MEANS_SENTINELS,
    FLOW_COLUMNS, FRACTION_TABLE_COLUMNS, FRACTION_COLUMNS, MEANS_KEYS, MEASUREMENT_COLUMNS,
    HISTORIC_COLUMNS, SITE_COLUMNS, HISTORIC_TP_LIMIT,
)
from .cleaning import normalize_columns, harmonize_ids
from .exceptions import MissingFileError, ParseError, SchemaError
from .sentinels import Sentinel, as_sentinels, count_sentinels, parse_cell

logger = logging.getLogger(__name__)

MISSING_TOKENS = ["", "NA"]


def _parse_column(values: pd.Series, tokens, path, column: str) -> pd.Series:
    parsed = []
    for row, raw in zip(values.index, values):
        try:
            parsed.append(parse_cell(raw, tokens))
        except ValueError:
            # header is line 1, first data row is line 2
            raise ParseError(path, column, row=int(row) + 2, token=raw) from None
    out = pd.Series(parsed, index=values.index, name=column, dtype=object)
    if not any(isinstance(v, Sentinel) for v in parsed):
        out = out.astype("float64")
    return out


def read_table(
    path: str | Path,
    sentinels: Iterable = (),
    numeric_cols: Optional[Sequence[str]] = None,
    required: Optional[Sequence[str]] = None,
    parse_dates: Optional[Sequence[str]] = None,
    lower: bool = True,
) -> pd.DataFrame:
    """
    Read a delimited text file into a typed table.

    Args:
        path: CSV file to read
        sentinels: tokens (or Sentinel members) allowed in numeric columns
        numeric_cols: columns to parse as float/Sentinel (default: known
            measurement columns present in the file)
        required: columns that must be present
        parse_dates: columns to parse as datetimes
        lower: lower-case column names after normalizing them

    Returns:
        DataFrame whose numeric cells are floats, Sentinel members or NaN.
        Columns without any sentinel are plain float64.

    Raises:
        MissingFileError: path does not exist
        SchemaError: a required or numeric column is absent
        ParseError: a numeric cell is neither a number nor an allowed sentinel
    """
    path = Path(path)
    if not path.exists():
        raise MissingFileError(path)

    # only blank cells and R's NA are missing; any other token reaches parse_cell
    df = pd.read_csv(path, dtype=str, skipinitialspace=True,
                     keep_default_na=False, na_values=MISSING_TOKENS)
    df = normalize_columns(df, lower=lower)

    missing = [c for c in (required or []) if c not in df.columns]
    if missing:
        raise SchemaError(missing, source=path, detail="required columns not found")

    if numeric_cols is None:
        numeric_cols = [c for c in MEASUREMENT_COLUMNS if c in df.columns]
    else:
        absent = [c for c in numeric_cols if c not in df.columns]
        if absent:
            raise SchemaError(absent, source=path, detail="numeric columns not found")

    tokens = as_sentinels(sentinels)
    for col in numeric_cols:
        df[col] = _parse_column(df[col], tokens, path, col)

    for col in parse_dates or []:
        try:
            df[col] = pd.to_datetime(df[col])
        except (ValueError, TypeError) as err:
            raise ParseError(path, col, token=str(err)) from err

    if "site" in df.columns:
        try:
            df = harmonize_ids(df, id_col="site")
        except SchemaError as err:
            raise SchemaError(err.columns, source=path, detail="blank site id") from err

    counts = count_sentinels(df, numeric_cols)
    logger.info("Loaded %s: %d rows, sentinels %s", path.name, len(df), counts or "none")
    return df


def read_flow(path: str | None = None) -> pd.DataFrame:
    return read_table(path or RAW_FLOW_CSV, FLOW_SENTINELS,
                      numeric_cols=["cfs", "ls"], required=FLOW_COLUMNS, parse_dates=["date"])


def read_conc(path: str | None = None) -> pd.DataFrame:
    return read_table(path or RAW_CONC_CSV, CONC_SENTINELS,
                      numeric_cols=MEASUREMENT_COLUMNS, required=FRACTION_TABLE_COLUMNS,
                      parse_dates=["date"])


def read_load(path: str | None = None) -> pd.DataFrame:
    return read_table(path or RAW_LOAD_CSV, LOAD_SENTINELS,
                      numeric_cols=MEASUREMENT_COLUMNS, required=FRACTION_TABLE_COLUMNS,
                      parse_dates=["date"])


_MEANS_FILES = {
    "flow": RAW_FLOWMEANS_CSV,
    "conc": RAW_CONCMEANS_CSV,
    "load": RAW_LOADMEANS_CSV,
}


def read_means(kind: str, path: str | None = None) -> pd.DataFrame:
    """Read one of the per (site, hydro) mean tables: kind is 'flow', 'conc' or 'load'."""
    if kind not in _MEANS_FILES:
        raise ValueError(f"Unknown means table: {kind!r} (expected one of {list(_MEANS_FILES)})")
    required = list(MEANS_KEYS)
    required += ["ls"] if kind == "flow" else list(FRACTION_COLUMNS)
    return read_table(path or _MEANS_FILES[kind], MEANS_SENTINELS, required=required)


def read_sites(path: str | None = None) -> pd.DataFrame:
    """Site coordinates (decimal degrees, WGS84)."""
    return read_table(path or RAW_SITES_CSV, numeric_cols=["lat", "long"], required=SITE_COLUMNS)


def read_historic(path: str | None = None, tp_limit: float = HISTORIC_TP_LIMIT) -> pd.DataFrame:
    """
    Read the historic daily discharge record.

    Rows with TP >= ``tp_limit`` are instrument-fault readings and are removed;
    rows with no TP reading are kept for the discharge line.
    """
    df = read_table(path or RAW_HISTORIC_CSV, numeric_cols=["CFS", "TP"],
                    required=HISTORIC_COLUMNS, parse_dates=["DATE"], lower=False)
    tp = df["TP"].astype("float64")
    faulty = (tp >= tp_limit).to_numpy()
    if faulty.any():
        logger.info("Dropping %d historic row(s) with TP >= %s", int(faulty.sum()), tp_limit)
    return df.loc[~faulty].sort_values("DATE").reset_index(drop=True)
