from __future__ import annotations
from pathlib import Path
import pandas as pd
from .config import INTERIM
from .sentinels import Sentinel

_TOKEN_PREFIX = "sentinel:"


def _encode(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for col in out.columns:
        if out[col].dtype == object and out[col].map(lambda v: isinstance(v, Sentinel)).any():
            out[col] = out[col].map(
                lambda v: _TOKEN_PREFIX + v.value if isinstance(v, Sentinel)
                else (None if pd.isna(v) else str(float(v)))
            )
    return out


def _decode(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for col in out.columns:
        dtype = out[col].dtype
        if isinstance(dtype, pd.CategoricalDtype) or pd.api.types.is_numeric_dtype(dtype) \
                or pd.api.types.is_datetime64_any_dtype(dtype):
            continue
        if out[col].map(lambda v: isinstance(v, str) and v.startswith(_TOKEN_PREFIX)).any():
            out[col] = out[col].map(
                lambda v: Sentinel(v[len(_TOKEN_PREFIX):]) if isinstance(v, str) and v.startswith(_TOKEN_PREFIX)
                else (float("nan") if pd.isna(v) else float(v))
            ).astype(object)
    return out


def save_interim(df: pd.DataFrame, name: str, directory: Path | None = None) -> Path:
    """
    Save a DataFrame to the interim data directory as a Parquet file.

    Columns mixing numbers and sentinels are stored as strings and restored
    by ``load_interim``.

    Args:
        df: The DataFrame to save
        name: The filename (without path) for the saved file
        directory: Override the interim directory

    Returns:
        Path: The full path to the saved file
    """
    directory = directory or INTERIM
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    _encode(df).to_parquet(path, index=False)
    return path


def load_interim(name: str, directory: Path | None = None) -> pd.DataFrame:
    """
    Load a DataFrame from the interim data directory.

    Args:
        name: The filename (without path) to load
        directory: Override the interim directory

    Returns:
        pd.DataFrame: The loaded DataFrame
    """
    return _decode(pd.read_parquet((directory or INTERIM) / name))
